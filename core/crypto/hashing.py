"""
Hash Backends
Fixed-arity permutations over prime-field elements.

This module provides:
- HashBackend: base class with explicit setup/readiness
- PoseidonBackend: circomlib-compatible Poseidon (circuit-friendly, default)
- Sha256FieldBackend: sha256 mapped into the field (off-circuit tooling)
- create_backend: name -> backend factory

Readiness Rules:
1. A backend must complete setup() before hashing
2. Hashing before setup raises HashNotReadyException, never blocks
3. Each backend hashes a fixed set of arities; other arities are rejected

Security/Determinism Notes:
- Inputs must already be canonical field elements
- Outputs are canonical field elements
- The same inputs always produce the same output across runs
"""
from __future__ import annotations

import contextlib
import hashlib
import io
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Sequence

import poseidon

from core.crypto.poseidon_params import circom_params
from core.field.element import DEFAULT_FIELD, PrimeField
from core.schemas.errors import (
    ConfigurationException,
    HashNotReadyException,
    InvalidFieldElementException,
)


logger = logging.getLogger(__name__)


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


class HashBackend(ABC):
    """
    A provider of fixed-arity permutations over one prime field.

    Subclasses implement _setup() and _hash(); the base class enforces
    readiness, arity and input-range checks.
    """

    name: ClassVar[str] = "abstract"
    supported_arities: tuple[int, ...] = (2, 3)

    def __init__(self, field: PrimeField = DEFAULT_FIELD) -> None:
        self.field = field
        self._ready = False
        self._setup_lock = threading.Lock()

    @property
    def ready(self) -> bool:
        return self._ready

    def setup(self) -> "HashBackend":
        """Run the one-time setup. Safe to call more than once."""
        with self._setup_lock:
            if not self._ready:
                self._setup()
                self._ready = True
                logger.debug("Hash backend %s ready (arities %s)", self.name, self.supported_arities)
        return self

    def hash(self, inputs: Sequence[int]) -> int:
        """
        Hash a fixed number of field elements.

        Raises:
            HashNotReadyException: If setup() has not completed
            InvalidFieldElementException: If an input is outside the field
            ValueError: If the arity is not supported
        """
        if not self._ready:
            raise HashNotReadyException(backend=self.name)
        if len(inputs) not in self.supported_arities:
            raise ValueError(
                f"{self.name} backend does not support arity {len(inputs)}"
            )
        for value in inputs:
            if not self.field.is_element(value):
                raise InvalidFieldElementException(
                    f"Hash input is not a canonical {self.field.name} element",
                    value=value,
                )
        return self._hash(tuple(inputs))

    @abstractmethod
    def _setup(self) -> None:
        ...

    @abstractmethod
    def _hash(self, inputs: tuple[int, ...]) -> int:
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(field={self.field.name!r}, ready={self._ready})"


class PoseidonBackend(HashBackend):
    """
    Poseidon permutations, one instance per arity, width t = arity + 1.

    Hashing matches circomlib's poseidon(inputs): the state starts as
    [0, *inputs], runs R_F / 2 full, R_P partial and R_F / 2 full rounds,
    and the digest is state[0]. Building the permutations happens once
    in setup().
    """

    name: ClassVar[str] = "poseidon"

    def __init__(
        self,
        field: PrimeField = DEFAULT_FIELD,
        arities: tuple[int, ...] = (2, 3),
        security_level: int = 128,
        alpha: int = 5,
    ) -> None:
        super().__init__(field)
        self.supported_arities = tuple(arities)
        self.security_level = security_level
        self.alpha = alpha
        self._permutations: dict[int, Any] = {}
        # the permutation keeps its state on the instance
        self._locks: dict[int, threading.Lock] = {}

    def _setup(self) -> None:
        for arity in self.supported_arities:
            t = arity + 1
            logger.info("Building Poseidon permutation t=%d over %s", t, self.field.name)
            params = circom_params(self.field.modulus, t)
            # poseidon-hash reports progress with print()
            captured = io.StringIO()
            with contextlib.redirect_stdout(captured):
                self._permutations[arity] = poseidon.Poseidon(
                    p=self.field.modulus,
                    security_level=self.security_level,
                    alpha=self.alpha,
                    input_rate=arity,
                    t=t,
                    full_round=params.full_round,
                    partial_round=params.partial_round,
                    mds_matrix=[list(row) for row in params.mds_matrix],
                    rc_list=list(params.round_constants),
                )
            for line in captured.getvalue().splitlines():
                logger.debug("poseidon t=%d: %s", t, line)
            self._locks[arity] = threading.Lock()

    def _hash(self, inputs: tuple[int, ...]) -> int:
        arity = len(inputs)
        permutation = self._permutations[arity]
        with self._locks[arity]:
            permutation.state = permutation.field_p([0, *inputs])
            permutation.rc_counter = 0
            permutation.full_rounds()
            permutation.partial_rounds()
            permutation.full_rounds()
            result = permutation.state[0]
        return int(result) % self.field.modulus


class Sha256FieldBackend(HashBackend):
    """
    sha256 over fixed-width big-endian encodings, reduced into the field.

    Deterministic and fast, but not circuit compatible. Inputs of
    different arities have different encoded lengths, so arities never
    collide with each other.
    """

    name: ClassVar[str] = "sha256"

    def _setup(self) -> None:
        self._width = max(32, (self.field.bit_length + 7) // 8)

    def _hash(self, inputs: tuple[int, ...]) -> int:
        data = b"".join(v.to_bytes(self._width, byteorder="big", signed=False) for v in inputs)
        return int.from_bytes(sha256(data), byteorder="big") % self.field.modulus


HASH_BACKENDS: dict[str, type[HashBackend]] = {
    PoseidonBackend.name: PoseidonBackend,
    Sha256FieldBackend.name: Sha256FieldBackend,
}


def create_backend(name: str, field: PrimeField = DEFAULT_FIELD) -> HashBackend:
    """
    Create an (unready) backend by name.

    Raises:
        ConfigurationException: If the name is unknown
    """
    try:
        backend_cls = HASH_BACKENDS[name.lower()]
    except KeyError:
        raise ConfigurationException(
            f"Unknown hash backend {name!r}; expected one of {sorted(HASH_BACKENDS)}",
            setting="hash.backend",
        ) from None
    return backend_cls(field=field)


__all__ = [
    "sha256",
    "HashBackend",
    "PoseidonBackend",
    "Sha256FieldBackend",
    "HASH_BACKENDS",
    "create_backend",
]
