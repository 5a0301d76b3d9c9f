"""
Sparse Merkle Tree
Key-addressed fixed-depth tree with content-addressed node storage.

Canonical Commitment Rules (Hard Contracts):
1. A (key, value) pair is stored at leaf = FieldHash.leaf_hash(key, value)
2. The key's path is chosen by the tree's BitOrder over the low D bits
   of the key (KEY_BIT_ORDER unless overridden)
3. Absent subtrees are EMPTY (0) at every level; a missing node reads
   as EMPTY, never as an error
4. A node whose two children are both EMPTY is itself EMPTY, so
   removing a key restores the exact previous root
5. Two distinct keys that share a leaf position are rejected

Insertion, proof generation and the verifier all derive path bits from
the same BitOrder, so a proof for an inserted key always verifies.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from core.crypto.field_hash import FieldHash
from core.field.element import EMPTY, to_decimal
from core.merkle.base import KEY_BIT_ORDER, AuthenticatedTree, BitOrder
from core.merkle.merkle_proofs import InclusionProof
from core.merkle.node_store import NodeStore
from core.schemas.errors import ElementNotFoundException, KeyCollisionException


logger = logging.getLogger(__name__)


class SparseMerkleTree(AuthenticatedTree):
    """
    Sparse Merkle tree keyed by field elements.

    Example:
        >>> tree = SparseMerkleTree(field_hash, depth=5)
        >>> leaf = tree.insert(0x1234, 1000)
        >>> tree.verify(tree.proof(0x1234))
        True
    """

    def __init__(
        self,
        field_hash: FieldHash,
        depth: int,
        *,
        bit_order: "str | BitOrder" = KEY_BIT_ORDER,
        node_store: Optional[NodeStore] = None,
    ) -> None:
        super().__init__(field_hash, depth, node_store)
        self.bit_order = BitOrder.parse(bit_order)
        self._root = EMPTY
        # slot -> (key, value, leaf)
        self._slots: dict[int, tuple[int, int, int]] = {}
        self._commit_root(self._root)

    def root(self) -> int:
        return self._root

    # Queries

    def get(self, key: Any) -> Optional[int]:
        """Leaf hash stored for key, or None if the key is absent."""
        key = self.field.element(key)
        entry = self._slots.get(self.bit_order.slot(key, self.depth))
        if entry is None or entry[0] != key:
            return None
        return entry[2]

    def value_of(self, key: Any) -> Optional[int]:
        key = self.field.element(key)
        entry = self._slots.get(self.bit_order.slot(key, self.depth))
        if entry is None or entry[0] != key:
            return None
        return entry[1]

    def items(self) -> list[tuple[int, int]]:
        """(key, value) pairs ordered by leaf position."""
        with self._lock:
            return [(entry[0], entry[1]) for _, entry in sorted(self._slots.items())]

    def __contains__(self, key: object) -> bool:
        try:
            return self.get(key) is not None
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._slots)

    # Mutations

    def insert(self, key: Any, value: Any) -> int:
        """
        Insert or overwrite the value stored under key.

        Returns:
            The leaf hash written

        Raises:
            KeyCollisionException: If another key already occupies the
                same leaf position
        """
        key = self.field.element(key)
        value = self.field.element(value)
        slot = self.bit_order.slot(key, self.depth)
        with self._lock:
            existing = self._slots.get(slot)
            if existing is not None and existing[0] != key:
                raise KeyCollisionException(key, existing[0], slot)
            leaf = self.field_hash.leaf_hash(key, value)
            self._root = self._insert_at(self._root, key, leaf, self.depth)
            self._slots[slot] = (key, value, leaf)
            self._commit_root(self._root)
        return leaf

    def remove(self, key: Any) -> None:
        """
        Remove key, collapsing emptied subtrees back to EMPTY.

        Raises:
            ElementNotFoundException: If key is not in the tree
        """
        key = self.field.element(key)
        slot = self.bit_order.slot(key, self.depth)
        with self._lock:
            existing = self._slots.get(slot)
            if existing is None or existing[0] != key:
                raise ElementNotFoundException(
                    "Key not found in tree", details={"key": to_decimal(key)}
                )
            self._root = self._remove_at(self._root, key, self.depth)
            del self._slots[slot]
            self._commit_root(self._root)

    def _children(self, node_hash: int) -> tuple[int, int]:
        if node_hash == EMPTY:
            return EMPTY, EMPTY
        node = self.node_store.get(node_hash)
        if node is None:
            return EMPTY, EMPTY
        return node

    def _insert_at(self, node_hash: int, key: int, leaf: int, height: int) -> int:
        """Rewrite the path below node_hash, which spans height levels."""
        if height == 0:
            return leaf
        left, right = self._children(node_hash)
        if self.bit_order.bit(key, height - 1, self.depth):
            right = self._insert_at(right, key, leaf, height - 1)
        else:
            left = self._insert_at(left, key, leaf, height - 1)
        return self._hash_node(left, right)

    def _remove_at(self, node_hash: int, key: int, height: int) -> int:
        if height == 0:
            return EMPTY
        left, right = self._children(node_hash)
        if self.bit_order.bit(key, height - 1, self.depth):
            right = self._remove_at(right, key, height - 1)
        else:
            left = self._remove_at(left, key, height - 1)
        if left == EMPTY and right == EMPTY:
            return EMPTY
        return self._hash_node(left, right)

    # Proofs

    def proof(self, key: Any) -> InclusionProof:
        """
        Proof for the leaf position of key against the current root.

        For an absent key the proof's leaf is whatever occupies the
        position (EMPTY when nothing does).
        """
        with self._lock:
            return self._walk_proof(self._root, key)

    def proof_at(self, root: int, key: Any) -> InclusionProof:
        """
        Proof for key against a past root from this tree's history.

        Raises:
            ElementNotFoundException: If root is not in history
        """
        if root not in self.history():
            raise ElementNotFoundException(
                "Root is not in tree history", details={"root": to_decimal(root)}
            )
        return self._walk_proof(root, key)

    def _walk_proof(self, root: int, key: Any) -> InclusionProof:
        key = self.field.element(key)
        path_bits = self.bit_order.path_bits(key, self.depth)
        siblings, leaf = self.node_store.walk(root, list(reversed(path_bits)), empty=EMPTY)
        return InclusionProof(
            leaf=leaf,
            siblings=tuple(reversed(siblings)),
            path_bits=tuple(path_bits),
            root=root,
            key=key,
        )

    def __repr__(self) -> str:
        return (
            f"SparseMerkleTree(depth={self.depth}, keys={len(self)}, "
            f"bit_order={self.bit_order.value!r}, root={self._root})"
        )


__all__ = ["SparseMerkleTree"]
