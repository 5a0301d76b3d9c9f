"""
Merkle Proofs and Verification
Inclusion proofs and the standalone verifier.

Proof Layout (Hard Contract):
1. siblings: exactly D field elements, ordered from the leaf level upward
2. path_bits: one bit per level in the same order; 1 means the node on
   the path is the RIGHT child at that level
3. Dense trees: path_bits encode the leaf index, least-significant bit first
4. Sparse trees: path_bits are the key bits picked by the tree's BitOrder

Verification recomputes the root bottom-up and needs no tree instance,
so any external party can check a proof with only a FieldHash.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from core.crypto.field_hash import FieldHash
from core.field.element import DEFAULT_FIELD, to_decimal
from core.schemas.errors import InvalidFieldElementException, ProofVerificationException


logger = logging.getLogger(__name__)


def path_bits_from_index(index: int, depth: int) -> list[int]:
    """
    Decompose a leaf index into depth bits, least-significant first.

    Example:
        >>> path_bits_from_index(6, 3)
        [0, 1, 1]
    """
    if index < 0 or index >= 2 ** depth:
        raise ValueError(f"Index {index} does not fit in {depth} bits")
    return [(index >> level) & 1 for level in range(depth)]


def index_from_path_bits(path_bits: Sequence[int]) -> int:
    """
    Recombine LSB-first path bits into a leaf position.

    Example:
        >>> index_from_path_bits([0, 1, 1])
        6
    """
    return sum(bit << level for level, bit in enumerate(path_bits))


@dataclass(frozen=True)
class InclusionProof:
    """
    An inclusion proof for one leaf.

    Attributes:
        leaf: The leaf value being proven
        siblings: Sibling hashes from the leaf level up to the root
        path_bits: Side taken at each level (1 = right child), same order
        root: The root this proof was generated against
        index: Leaf index (dense trees)
        key: Leaf key (sparse trees)
    """
    leaf: int
    siblings: tuple[int, ...]
    path_bits: tuple[int, ...]
    root: int
    index: Optional[int] = None
    key: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate proof structure."""
        object.__setattr__(self, "siblings", tuple(self.siblings))
        object.__setattr__(self, "path_bits", tuple(self.path_bits))
        if len(self.siblings) != len(self.path_bits):
            raise ValueError(
                f"Proof has {len(self.siblings)} siblings but {len(self.path_bits)} path bits"
            )
        if any(bit not in (0, 1) for bit in self.path_bits):
            raise ValueError(f"Path bits must be 0 or 1, got {list(self.path_bits)}")
        if self.index is not None and self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")

    @property
    def depth(self) -> int:
        return len(self.siblings)

    @property
    def position(self) -> int:
        """Leaf position encoded by the path bits."""
        return index_from_path_bits(self.path_bits)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with decimal strings."""
        data: dict[str, Any] = {
            "leaf": to_decimal(self.leaf),
            "pathElements": [to_decimal(s) for s in self.siblings],
            "pathIndices": list(self.path_bits),
            "root": to_decimal(self.root),
        }
        if self.index is not None:
            data["index"] = self.index
        if self.key is not None:
            data["key"] = to_decimal(self.key)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InclusionProof":
        """Parse a proof produced by to_dict()."""
        field = DEFAULT_FIELD
        path_indices = data["pathIndices"]
        siblings = field.elements(data["pathElements"])
        if isinstance(path_indices, (int, str)):
            # Integer position form
            path_bits = path_bits_from_index(int(path_indices), len(siblings))
        else:
            path_bits = [int(b) for b in path_indices]
        return cls(
            leaf=field.element(data["leaf"]),
            siblings=tuple(siblings),
            path_bits=tuple(path_bits),
            root=field.element(data["root"]),
            index=data.get("index"),
            key=field.element(data["key"]) if data.get("key") is not None else None,
        )


def compute_root(
    field_hash: FieldHash,
    leaf: int,
    siblings: Sequence[int],
    path_bits: Sequence[int],
) -> int:
    """
    Recompute a root from a leaf and its sibling path.

    Raises:
        ValueError: If lengths differ or a bit is not 0/1
        InvalidFieldElementException: If a sibling is outside the field
    """
    if len(siblings) != len(path_bits):
        raise ValueError("siblings and path_bits must have the same length")
    current = leaf
    for sibling, bit in zip(siblings, path_bits):
        if bit == 1:
            current = field_hash.node_hash(sibling, current)
        elif bit == 0:
            current = field_hash.node_hash(current, sibling)
        else:
            raise ValueError(f"Path bit must be 0 or 1, got {bit}")
    return current


def verify_proof(
    field_hash: FieldHash,
    leaf: int,
    siblings: Sequence[int],
    path_bits: Sequence[int],
    expected_root: int,
) -> bool:
    """
    Verify a leaf against a root using a sibling path.

    Malformed input counts as a failed verification, not an error.

    Returns:
        True iff the recomputed root equals expected_root
    """
    try:
        return compute_root(field_hash, leaf, siblings, path_bits) == expected_root
    except (ValueError, InvalidFieldElementException) as e:
        logger.debug("Proof rejected as malformed: %s", e)
        return False


def verify_merkle_proof(field_hash: FieldHash, proof: InclusionProof) -> bool:
    """Verify a proof against the root it carries."""
    return verify_proof(field_hash, proof.leaf, proof.siblings, proof.path_bits, proof.root)


class ProofVerifier:
    """
    Verifies inclusion proofs with a fixed FieldHash.

    Example:
        >>> verifier = ProofVerifier(field_hash)
        >>> verifier.verify(tree.proof(1))
        True
    """

    def __init__(self, field_hash: FieldHash) -> None:
        self.field_hash = field_hash

    def verify(self, proof: InclusionProof, expected_root: Optional[int] = None) -> bool:
        """Verify against expected_root, or the proof's own root if omitted."""
        root = proof.root if expected_root is None else expected_root
        return verify_proof(self.field_hash, proof.leaf, proof.siblings, proof.path_bits, root)

    def verify_entry(
        self,
        key: int,
        value: int,
        proof: InclusionProof,
        expected_root: Optional[int] = None,
    ) -> bool:
        """Verify that (key, value) hashes to a leaf included under the root."""
        leaf = self.field_hash.leaf_hash(key, value)
        root = proof.root if expected_root is None else expected_root
        return verify_proof(self.field_hash, leaf, proof.siblings, proof.path_bits, root)

    def verify_or_raise(self, proof: InclusionProof, expected_root: Optional[int] = None) -> None:
        """
        Raises:
            ProofVerificationException: If the proof does not verify
        """
        if not self.verify(proof, expected_root):
            root = proof.root if expected_root is None else expected_root
            raise ProofVerificationException(
                "Recomputed root does not match expected root",
                leaf_index=proof.index,
                details={"expected_root": to_decimal(root)},
            )


__all__ = [
    "InclusionProof",
    "path_bits_from_index",
    "index_from_path_bits",
    "compute_root",
    "verify_proof",
    "verify_merkle_proof",
    "ProofVerifier",
]
