"""
Nullifier Derivation
Per-entry one-time tags and their public commitments.

Rules:
1. nullifier = leading 248 bits of sha256(identity + secret), as an int
   (truncation keeps it a canonical element of any ~254-bit field)
2. nullifier_hash = FieldHash.nullifier_hash(key, nullifier)
3. Only the nullifier hash is published; the nullifier stays private
"""
from __future__ import annotations

import hashlib

from core.crypto.field_hash import FieldHash
from core.schemas.errors import ConfigurationException


# 62 hex digits = 248 bits
NULLIFIER_HEX_DIGITS = 62


def derive_nullifier(identity: str, secret: str) -> int:
    """
    Derive the nullifier for an identity under a secret.

    Example:
        >>> derive_nullifier("0xabc", "s") == derive_nullifier("0xabc", "s")
        True
    """
    if not secret:
        raise ConfigurationException("Nullifier secret must not be empty", setting="secret")
    digest = hashlib.sha256((identity + secret).encode("utf-8")).hexdigest()
    return int(digest[:NULLIFIER_HEX_DIGITS], 16)


class NullifierDeriver:
    """
    Derives nullifiers with a per-run secret and commits to them.

    Example:
        >>> deriver = NullifierDeriver(field_hash, secret="run-secret")
        >>> nullifier = deriver.derive("0x1234")
        >>> commitment = deriver.commit(0x1234, nullifier)
    """

    def __init__(self, field_hash: FieldHash, secret: str) -> None:
        if not secret:
            raise ConfigurationException("Nullifier secret must not be empty", setting="secret")
        self.field_hash = field_hash
        self._secret = secret

    def derive(self, identity: str, secret: str | None = None) -> int:
        """Derive a nullifier; a per-entry secret overrides the run secret."""
        return derive_nullifier(identity, secret if secret is not None else self._secret)

    def commit(self, key: int, nullifier: int) -> int:
        return self.field_hash.nullifier_hash(key, nullifier)

    def derive_and_commit(self, identity: str, key: int) -> tuple[int, int]:
        nullifier = self.derive(identity)
        return nullifier, self.commit(key, nullifier)

    def __repr__(self) -> str:
        return f"NullifierDeriver(field_hash={self.field_hash!r}, secret=<redacted>)"


__all__ = [
    "NULLIFIER_HEX_DIGITS",
    "derive_nullifier",
    "NullifierDeriver",
]
