"""
Core cryptographic utilities.

Hash backends, domain-separated field hashing and nullifier derivation.
"""
from .hashing import (
    sha256,
    HashBackend,
    PoseidonBackend,
    Sha256FieldBackend,
    HASH_BACKENDS,
    create_backend,
)
from .field_hash import (
    HashScheme,
    FieldHash,
    build_field_hash,
)
from .nullifier import (
    derive_nullifier,
    NullifierDeriver,
)

__all__ = [
    "sha256",
    "HashBackend",
    "PoseidonBackend",
    "Sha256FieldBackend",
    "HASH_BACKENDS",
    "create_backend",
    "HashScheme",
    "FieldHash",
    "build_field_hash",
    "derive_nullifier",
    "NullifierDeriver",
]
