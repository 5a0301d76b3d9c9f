"""
FieldHash - Domain-Separated Tree Hashing

Three fixed-arity hashes, each in its own domain:
- node_hash(left, right): combine two children into a parent
- leaf_hash(key, value): content hash of a leaf
- nullifier_hash(key, nullifier): public commitment to a nullifier

Canonical Commitment Rules (Hard Contracts):
1. The scheme is chosen once per run and used for construction AND
   verification. Mixing schemes yields roots that are internally
   consistent but match no other implementation.
2. HashScheme.SMT (default), the circomlib sparse-tree convention:
   node = P2(left, right), leaf = P3(key, value, 1),
   nullifier = P2(key, nullifier)
3. HashScheme.TAGGED:
   node = P3(left, right, 0), leaf = P3(key, value, 1),
   nullifier = P2(key, nullifier)
4. A FieldHash can only be built around a ready backend.
"""
from __future__ import annotations

from enum import Enum

from core.crypto.hashing import HashBackend, create_backend
from core.field.element import DEFAULT_FIELD, PrimeField
from core.schemas.errors import ConfigurationException, HashNotReadyException


# Domain tags appended as the last permutation input
NODE_DOMAIN_TAG = 0
LEAF_DOMAIN_TAG = 1


class HashScheme(str, Enum):
    """Domain-separation layout for node, leaf and nullifier hashing."""
    SMT = "smt"
    TAGGED = "tagged"

    @classmethod
    def parse(cls, value: "str | HashScheme") -> "HashScheme":
        if isinstance(value, HashScheme):
            return value
        try:
            return cls(value.lower())
        except ValueError:
            raise ConfigurationException(
                f"Unknown hash scheme {value!r}; expected one of {[s.value for s in cls]}",
                setting="hash.scheme",
            ) from None


class FieldHash:
    """
    Ready handle for domain-separated hashing.

    Obtain one through build_field_hash(); every existing instance wraps
    a backend whose setup has completed.
    """

    def __init__(self, backend: HashBackend, scheme: HashScheme = HashScheme.SMT) -> None:
        if not backend.ready:
            raise HashNotReadyException(
                "FieldHash requires a backend that finished setup()",
                backend=backend.name,
            )
        self.backend = backend
        self.scheme = HashScheme.parse(scheme)

    @property
    def field(self) -> PrimeField:
        return self.backend.field

    def node_hash(self, left: int, right: int) -> int:
        """Hash two children into their parent."""
        if self.scheme is HashScheme.TAGGED:
            return self.backend.hash((left, right, NODE_DOMAIN_TAG))
        return self.backend.hash((left, right))

    def leaf_hash(self, key: int, value: int) -> int:
        """Hash a (key, value) pair into a leaf."""
        return self.backend.hash((key, value, LEAF_DOMAIN_TAG))

    def nullifier_hash(self, key: int, nullifier: int) -> int:
        """Public commitment to a nullifier, checked on-chain for reuse."""
        return self.backend.hash((key, nullifier))

    def describe(self) -> dict[str, str]:
        """Backend and scheme names, for output metadata."""
        return {
            "backend": self.backend.name,
            "scheme": self.scheme.value,
            "field": self.field.name,
        }

    def __repr__(self) -> str:
        return f"FieldHash(backend={self.backend.name!r}, scheme={self.scheme.value!r})"


def build_field_hash(
    backend: str | HashBackend = "poseidon",
    scheme: str | HashScheme = HashScheme.SMT,
    field: PrimeField = DEFAULT_FIELD,
) -> FieldHash:
    """
    Set up a hash backend and return a ready FieldHash.

    This is the single initialization point: all hashing call sites are
    ordered after it by construction.

    Args:
        backend: Backend name ("poseidon", "sha256") or an instance
        scheme: Domain-separation scheme
        field: Prime field for a backend created by name

    Returns:
        FieldHash ready for use
    """
    if isinstance(backend, str):
        backend = create_backend(backend, field=field)
    backend.setup()
    return FieldHash(backend, HashScheme.parse(scheme))


__all__ = [
    "NODE_DOMAIN_TAG",
    "LEAF_DOMAIN_TAG",
    "HashScheme",
    "FieldHash",
    "build_field_hash",
]
