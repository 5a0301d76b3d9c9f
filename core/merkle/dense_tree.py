"""
Dense Merkle Tree
Append-friendly fixed-depth tree over an ordered list of leaves.

This module provides:
- DenseMerkleTree: insert, update, remove, proofs, (de)serialization
- create_tree_with_root: rebuild a tree and check it against a known root

Canonical Commitment Rules (Hard Contracts):
1. Capacity is 2**D leaves; leaves occupy positions 0..n-1 in order
2. zeros[0] = zero_element, zeros[l] = node_hash(zeros[l-1], zeros[l-1])
3. A node missing its right child at level l pairs with zeros[l]
4. Empty tree root = zeros[D]
5. Leaf i's path bits are the bits of i, least-significant first
6. Removing a leaf overwrites it with zero_element; positions never shift

Determinism Notes:
- The root depends only on the leaf sequence, D, zero_element and FieldHash
- This module never sorts leaves - it trusts input order
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Sequence

from core.crypto.field_hash import FieldHash
from core.field.element import EMPTY, to_decimal
from core.merkle.base import AuthenticatedTree
from core.merkle.merkle_proofs import InclusionProof
from core.merkle.node_store import NodeStore
from core.schemas.errors import (
    AirdropException,
    ElementNotFoundException,
    ErrorCodes,
    IndexOutOfRangeException,
    TreeFullException,
)


logger = logging.getLogger(__name__)


def _set(layer: list[int], index: int, value: int) -> None:
    if index == len(layer):
        layer.append(value)
    else:
        layer[index] = value


class DenseMerkleTree(AuthenticatedTree):
    """
    Fixed-depth Merkle tree over indexed leaves.

    Example:
        >>> tree = DenseMerkleTree(field_hash, depth=2, elements=[1, 2, 3])
        >>> proof = tree.proof(1)
        >>> tree.verify(proof)
        True
    """

    def __init__(
        self,
        field_hash: FieldHash,
        depth: int,
        elements: Iterable[Any] = (),
        *,
        zero_element: Any = EMPTY,
        node_store: Optional[NodeStore] = None,
    ) -> None:
        super().__init__(field_hash, depth, node_store)
        self.capacity = 2 ** depth
        leaves = self.field.elements(elements)
        if len(leaves) > self.capacity:
            raise TreeFullException(self.capacity, requested=len(leaves))

        self.zero_element = self.field.element(zero_element)
        self._zeros = [self.zero_element]
        for level in range(1, depth + 1):
            below = self._zeros[level - 1]
            self._zeros.append(self._hash_node(below, below))

        self._layers: list[list[int]] = [leaves] + [[] for _ in range(depth)]
        self._rebuild()
        self._commit_root(self.root())
        logger.debug("Built dense tree depth=%d with %d leaves", depth, len(leaves))

    def _rebuild(self) -> None:
        for level in range(1, self.depth + 1):
            below = self._layers[level - 1]
            zero = self._zeros[level - 1]
            self._layers[level] = [
                self._hash_node(
                    below[i * 2],
                    below[i * 2 + 1] if i * 2 + 1 < len(below) else zero,
                )
                for i in range((len(below) + 1) // 2)
            ]

    # Queries

    def root(self) -> int:
        with self._lock:
            top = self._layers[self.depth]
            return top[0] if top else self._zeros[self.depth]

    @property
    def zeros(self) -> list[int]:
        return list(self._zeros)

    @property
    def capacity_remaining(self) -> int:
        return self.capacity - len(self)

    def elements(self) -> list[int]:
        with self._lock:
            return list(self._layers[0])

    def index_of(self, element: Any) -> int:
        """
        Position of the first leaf equal to element.

        Raises:
            ElementNotFoundException: If no leaf matches
        """
        value = self.field.element(element)
        with self._lock:
            try:
                return self._layers[0].index(value)
            except ValueError:
                raise ElementNotFoundException(
                    "Element not found in tree", details={"element": to_decimal(value)}
                ) from None

    def __contains__(self, element: object) -> bool:
        with self._lock:
            return element in self._layers[0]

    def __len__(self) -> int:
        with self._lock:
            return len(self._layers[0])

    def number_of_elements(self) -> int:
        return len(self)

    # Mutations

    def insert(self, element: Any) -> int:
        """
        Append a leaf.

        Returns:
            Index of the new leaf

        Raises:
            TreeFullException: If the tree is at capacity
        """
        with self._lock:
            index = len(self._layers[0])
            if index >= self.capacity:
                raise TreeFullException(self.capacity, requested=index + 1)
            self.update(index, element)
            return index

    def bulk_insert(self, elements: Iterable[Any]) -> None:
        """
        Append many leaves, hashing each completed pair once.

        Only the final root is recorded in history.
        """
        values = self.field.elements(elements)
        if not values:
            return
        with self._lock:
            size = len(self._layers[0])
            if size + len(values) > self.capacity:
                raise TreeFullException(self.capacity, requested=size + len(values))
            for value in values[:-1]:
                self._layers[0].append(value)
                level = 0
                index = len(self._layers[0]) - 1
                while index % 2 == 1:
                    level += 1
                    index >>= 1
                    below = self._layers[level - 1]
                    _set(self._layers[level], index, self._hash_node(below[index * 2], below[index * 2 + 1]))
            self.update(len(self._layers[0]), values[-1])

    def update(self, index: int, element: Any) -> None:
        """
        Set the leaf at index, or append when index == len(tree).

        Raises:
            IndexOutOfRangeException: If index < 0, index > len(tree)
                or index >= capacity
        """
        value = self.field.element(element)
        with self._lock:
            size = len(self._layers[0])
            if (
                isinstance(index, bool)
                or not isinstance(index, int)
                or index < 0
                or index > size
                or index >= self.capacity
            ):
                raise IndexOutOfRangeException(index, size, capacity=self.capacity)
            _set(self._layers[0], index, value)
            for level in range(1, self.depth + 1):
                index >>= 1
                below = self._layers[level - 1]
                right = below[index * 2 + 1] if index * 2 + 1 < len(below) else self._zeros[level - 1]
                _set(self._layers[level], index, self._hash_node(below[index * 2], right))
            self._commit_root(self.root())

    def remove(self, element: Any) -> None:
        """Zero out the first leaf equal to element."""
        with self._lock:
            self.remove_by_index(self.index_of(element))

    def remove_by_index(self, index: int) -> None:
        """
        Zero out the leaf at index; positions of other leaves are unchanged.

        Raises:
            IndexOutOfRangeException: If index is not an existing leaf
        """
        with self._lock:
            size = len(self._layers[0])
            if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < size:
                raise IndexOutOfRangeException(index, size, capacity=self.capacity)
            self.update(index, self.zero_element)

    def bulk_remove(self, elements: Iterable[Any]) -> None:
        with self._lock:
            for element in elements:
                self.remove(element)

    # Proofs

    def proof(self, index: int) -> InclusionProof:
        """
        Generate an inclusion proof for the leaf at index.

        Raises:
            IndexOutOfRangeException: If index is not an existing leaf
        """
        with self._lock:
            size = len(self._layers[0])
            if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < size:
                raise IndexOutOfRangeException(index, size, capacity=self.capacity)
            siblings: list[int] = []
            path_bits: list[int] = []
            position = index
            for level in range(self.depth):
                path_bits.append(position & 1)
                sibling = position ^ 1
                layer = self._layers[level]
                siblings.append(layer[sibling] if sibling < len(layer) else self._zeros[level])
                position >>= 1
            return InclusionProof(
                leaf=self._layers[0][index],
                siblings=tuple(siblings),
                path_bits=tuple(path_bits),
                root=self.root(),
                index=index,
            )

    def proof_at(self, root: int, index: int) -> InclusionProof:
        """
        Generate a proof for position index against a past root.

        Raises:
            ElementNotFoundException: If root is not in this tree's history
            IndexOutOfRangeException: If index >= capacity
        """
        if root not in self.history():
            raise ElementNotFoundException(
                "Root is not in tree history", details={"root": to_decimal(root)}
            )
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < self.capacity:
            raise IndexOutOfRangeException(index, len(self), capacity=self.capacity)
        path_bits = [(index >> level) & 1 for level in range(self.depth)]
        siblings, leaf = self.node_store.walk(root, list(reversed(path_bits)))
        return InclusionProof(
            leaf=leaf,
            siblings=tuple(reversed(siblings)),
            path_bits=tuple(path_bits),
            root=root,
            index=index,
        )

    # Serialization

    def serialize(self) -> dict[str, Any]:
        """Snapshot as a JSON-ready dict of decimal strings."""
        with self._lock:
            return {
                "levels": self.depth,
                "zeroElement": to_decimal(self.zero_element),
                "layers": [[to_decimal(v) for v in layer] for layer in self._layers],
                "zeros": [to_decimal(z) for z in self._zeros],
            }

    @classmethod
    def deserialize(
        cls,
        data: dict[str, Any],
        field_hash: FieldHash,
        node_store: Optional[NodeStore] = None,
    ) -> "DenseMerkleTree":
        """
        Rebuild a tree from serialize() output.

        The tree is recomputed from its leaves; a stored root that does
        not match the recomputed one is rejected.

        Raises:
            AirdropException: ROOT_MISMATCH if the snapshot is inconsistent
        """
        layers = data["layers"]
        tree = cls(
            field_hash,
            int(data["levels"]),
            elements=layers[0],
            zero_element=data.get("zeroElement", EMPTY),
            node_store=node_store,
        )
        stored_top = layers[-1] if len(layers) == tree.depth + 1 else []
        if stored_top and field_hash.field.element(stored_top[0]) != tree.root():
            raise AirdropException(
                "Serialized tree root does not match its leaves",
                code=ErrorCodes.ROOT_MISMATCH,
                details={"stored_root": str(stored_top[0]), "computed_root": to_decimal(tree.root())},
            )
        return tree

    def __repr__(self) -> str:
        return f"DenseMerkleTree(depth={self.depth}, leaves={len(self)}, root={self.root()})"


def create_tree_with_root(
    field_hash: FieldHash,
    depth: int,
    leaves: Sequence[Any],
    target_root: Any,
    *,
    zero_element: Any = EMPTY,
) -> Optional[DenseMerkleTree]:
    """
    Build a tree from leaves and return it only if its root is target_root.

    Returns:
        The tree, or None if the leaves do not fit or the root differs
    """
    if len(leaves) > 2 ** depth:
        return None
    tree = DenseMerkleTree(field_hash, depth, zero_element=zero_element)
    tree.bulk_insert(leaves)
    if tree.root() != field_hash.field.element(target_root):
        logger.debug("Rebuilt root differs from target root")
        return None
    return tree


__all__ = [
    "DenseMerkleTree",
    "create_tree_with_root",
]
