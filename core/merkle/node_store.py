"""
Content-Addressed Node Storage

Maps a node hash to its (left, right) children. Structurally identical
subtrees share one entry, and entries are never overwritten: a mutation
writes new nodes and leaves the old ones addressable, so any past root
can still be walked.
"""
from __future__ import annotations

import threading
from typing import Iterator, Optional, Sequence

from core.schemas.errors import ElementNotFoundException


Node = tuple[int, int]


class NodeStore:
    """Hash -> (left, right) arena shared by one or more trees."""

    def __init__(self) -> None:
        self._nodes: dict[int, Node] = {}
        self._lock = threading.Lock()

    def put(self, node_hash: int, left: int, right: int) -> int:
        """Register a node under its hash; an existing entry is kept."""
        if node_hash not in self._nodes:
            with self._lock:
                self._nodes.setdefault(node_hash, (left, right))
        return node_hash

    def get(self, node_hash: int) -> Optional[Node]:
        return self._nodes.get(node_hash)

    def __contains__(self, node_hash: object) -> bool:
        return node_hash in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._nodes))

    def walk(
        self,
        root: int,
        directions: Sequence[int],
        empty: Optional[int] = None,
    ) -> tuple[list[int], int]:
        """
        Walk from root following directions (root first, 1 = right).

        Args:
            root: Hash of the node to start from
            directions: One bit per level, root level first
            empty: Sentinel for sparse trees. When given, reaching it or
                an unknown hash ends the walk and every remaining sibling
                is the sentinel. When None, an unknown hash is an error.

        Returns:
            (siblings ordered root first, hash reached at the bottom)

        Raises:
            ElementNotFoundException: If a node is missing and empty is None
        """
        siblings: list[int] = []
        current = root
        for level, direction in enumerate(directions):
            node = None if (empty is not None and current == empty) else self.get(current)
            if node is None:
                if empty is None:
                    raise ElementNotFoundException(
                        f"Node {current} not found in store",
                        details={"node": str(current), "level_from_root": level},
                    )
                siblings.extend([empty] * (len(directions) - level))
                return siblings, empty
            left, right = node
            if direction:
                siblings.append(left)
                current = right
            else:
                siblings.append(right)
                current = left
        return siblings, current


__all__ = ["Node", "NodeStore"]
