"""
Authenticated Tree Base
Shared state and rules for the dense and sparse trees.

Tree Rules:
1. A tree has a fixed depth D >= 1 chosen at construction
2. Every internal node is FieldHash.node_hash(left, right) and is
   registered in the NodeStore under its hash
3. Mutations are serialized by a per-tree lock; each committed mutation
   appends the new root to the tree's history
4. Old roots stay walkable through the NodeStore, so proofs can be
   generated against any root in history
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional

from core.crypto.field_hash import FieldHash
from core.merkle.merkle_proofs import InclusionProof, verify_proof
from core.merkle.node_store import NodeStore
from core.schemas.errors import ConfigurationException


class BitOrder(str, Enum):
    """
    Which key bit selects the side at each tree level.

    LEAF_FIRST: bit h of the key picks the side at height h (0 = just
        above the leaves), so a key's path bits equal the dense-tree path
        bits of the same integer index.
    ROOT_FIRST: bit 0 of the key picks the side at the root. This is the
        insertion order circom sparse-tree generators use; set
        tree.bit_order = "root_first" to reproduce their sparse roots.
    """
    LEAF_FIRST = "leaf_first"
    ROOT_FIRST = "root_first"

    @classmethod
    def parse(cls, value: "str | BitOrder") -> "BitOrder":
        if isinstance(value, BitOrder):
            return value
        try:
            return cls(value.lower())
        except ValueError:
            raise ConfigurationException(
                f"Unknown bit order {value!r}; expected one of {[o.value for o in cls]}",
                setting="tree.bit_order",
            ) from None

    def bit(self, key: int, height: int, depth: int) -> int:
        """Side bit for key at height (0 = leaf level) in a depth-D tree."""
        shift = height if self is BitOrder.LEAF_FIRST else depth - 1 - height
        return (key >> shift) & 1

    def path_bits(self, key: int, depth: int) -> list[int]:
        """All side bits for key, leaf level first."""
        return [self.bit(key, height, depth) for height in range(depth)]

    def slot(self, key: int, depth: int) -> int:
        """Leaf position key lands on; keys sharing a slot collide."""
        return sum(bit << height for height, bit in enumerate(self.path_bits(key, depth)))


# Single switch for sparse-tree key bit order; proofs, insertion and the
# circuit must agree on it.
KEY_BIT_ORDER = BitOrder.LEAF_FIRST


class AuthenticatedTree(ABC):
    """
    Base class for fixed-depth authenticated trees.

    Subclasses implement root(), proof() and proof_at().
    """

    def __init__(
        self,
        field_hash: FieldHash,
        depth: int,
        node_store: Optional[NodeStore] = None,
    ) -> None:
        if isinstance(depth, bool) or not isinstance(depth, int):
            raise ValueError(f"Tree depth must be an integer, got {depth!r}")
        if depth < 1 or depth > field_hash.field.bit_length:
            raise ValueError(
                f"Tree depth must be in [1, {field_hash.field.bit_length}], got {depth}"
            )
        self.field_hash = field_hash
        self.depth = depth
        self.node_store = node_store if node_store is not None else NodeStore()
        self._lock = threading.RLock()
        self._history: list[int] = []

    @property
    def field(self):
        return self.field_hash.field

    @abstractmethod
    def root(self) -> int:
        ...

    @abstractmethod
    def proof(self, locator: Any) -> InclusionProof:
        ...

    @abstractmethod
    def proof_at(self, root: int, locator: Any) -> InclusionProof:
        ...

    def verify(self, proof: InclusionProof) -> bool:
        """Verify a proof against this tree's current root."""
        return verify_proof(
            self.field_hash, proof.leaf, proof.siblings, proof.path_bits, self.root()
        )

    def history(self) -> list[int]:
        """Roots after each committed mutation, oldest first."""
        with self._lock:
            return list(self._history)

    def _hash_node(self, left: int, right: int) -> int:
        node_hash = self.field_hash.node_hash(left, right)
        return self.node_store.put(node_hash, left, right)

    def _commit_root(self, root: int) -> None:
        self._history.append(root)


__all__ = [
    "BitOrder",
    "KEY_BIT_ORDER",
    "AuthenticatedTree",
]
