"""
Field element model.

Every key, value, hash and tree node is an int reduced into a prime
field. The default field is the BN254 scalar field.
"""
from .element import (
    EMPTY,
    TORNADO_ZERO,
    PrimeField,
    BN254_SCALAR_FIELD,
    DEFAULT_FIELD,
    to_field,
    to_decimal,
    address_to_key,
)

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
