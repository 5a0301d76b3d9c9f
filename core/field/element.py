"""
Field Elements
Prime-field scalars used as keys, values, hashes and tree nodes.

A field element is a plain Python ``int`` in ``[0, p)``. The modulus is
carried by a ``PrimeField`` value rather than baked into the tree and
hash code; the default field is the BN254 scalar field as exposed by
``py_ecc``.

Serialization Rules:
1. Elements are written as base-10 strings of the canonical residue
2. Never hexadecimal, never signed
3. Parsing accepts ints, decimal strings and 0x-prefixed hex strings
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from py_ecc import bn128

from core.schemas.errors import InvalidFieldElementException


# Distinguished empty sentinel for absent leaves and subtrees
EMPTY: int = 0

# keccak256("tornado") mod p, the zero leaf of the Tornado-style dense tree
TORNADO_ZERO: int = (
    21663839004416932945382355908790599225266501822907911457504978515578255421292
)

_DECIMAL_RE = re.compile(r"^[0-9]+$")
_HEX_RE = re.compile(r"^0[xX][0-9a-fA-F]+$")
_ADDRESS_RE = re.compile(r"^(0[xX])?[0-9a-fA-F]+$")


@dataclass(frozen=True)
class PrimeField:
    """
    A prime field identified by its modulus.

    Only reduction and validation live here; the hash backends do the
    arithmetic.
    """
    modulus: int
    name: str = "custom"

    def __post_init__(self) -> None:
        if self.modulus < 2:
            raise ValueError(f"Field modulus must be >= 2, got {self.modulus}")

    @property
    def bit_length(self) -> int:
        return self.modulus.bit_length()

    def is_element(self, value: Any) -> bool:
        """Check that value is already a canonical element of this field."""
        return (
            isinstance(value, int)
            and not isinstance(value, bool)
            and 0 <= value < self.modulus
        )

    def element(self, value: Any, *, reduce: bool = False) -> int:
        """
        Convert value to a canonical field element.

        Args:
            value: int, decimal string or 0x-prefixed hex string
            reduce: Reduce values >= modulus instead of rejecting them

        Returns:
            Integer in [0, modulus)

        Raises:
            InvalidFieldElementException: If value is malformed, negative,
                or (without reduce) not below the modulus
        """
        number = _to_int(value)
        if number < 0:
            raise InvalidFieldElementException(
                "Field element must be non-negative", value=value
            )
        if number >= self.modulus:
            if reduce:
                return number % self.modulus
            raise InvalidFieldElementException(
                f"Field element exceeds {self.name} modulus", value=value
            )
        return number

    def elements(self, values: Any, *, reduce: bool = False) -> list[int]:
        """Convert an iterable of values with element()."""
        return [self.element(v, reduce=reduce) for v in values]


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidFieldElementException(
            "Booleans are not field elements", value=value
        )
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if _DECIMAL_RE.match(text):
            return int(text, 10)
        if _HEX_RE.match(text):
            return int(text, 16)
        if text.startswith("-") and _DECIMAL_RE.match(text[1:]):
            return -int(text[1:], 10)
        raise InvalidFieldElementException(
            "Malformed field element string", value=value
        )
    raise InvalidFieldElementException(
        f"Unsupported field element type: {type(value).__name__}", value=value
    )


# BN254 (alt_bn128) scalar field, the field circom and snarkjs work in
BN254_SCALAR_FIELD = PrimeField(modulus=bn128.curve_order, name="bn254")

DEFAULT_FIELD = BN254_SCALAR_FIELD


def to_field(value: Any, *, reduce: bool = False) -> int:
    """Convert value to an element of the default field."""
    return DEFAULT_FIELD.element(value, reduce=reduce)


def to_decimal(element: int) -> str:
    """
    Serialize a field element as a canonical decimal string.

    Example:
        >>> to_decimal(255)
        '255'
    """
    if isinstance(element, bool) or not isinstance(element, int) or element < 0:
        raise InvalidFieldElementException(
            "Only non-negative integers serialize as field elements",
            value=element,
        )
    return str(element)


def address_to_key(address: str) -> int:
    """
    Convert a hex address (with or without 0x, any case) to its integer key.

    Example:
        >>> address_to_key("0x00000000000000000000000000000000000000ff")
        255
    """
    if not isinstance(address, str):
        raise InvalidFieldElementException(
            "Address must be a string", value=address
        )
    text = address.strip()
    if not _ADDRESS_RE.match(text):
        raise InvalidFieldElementException(
            "Address must be a hexadecimal string", value=address
        )
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    return to_field(int(text, 16))


__all__ = [
    "EMPTY",
    "TORNADO_ZERO",
    "PrimeField",
    "BN254_SCALAR_FIELD",
    "DEFAULT_FIELD",
    "to_field",
    "to_decimal",
    "address_to_key",
]
