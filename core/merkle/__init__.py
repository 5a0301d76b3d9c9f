"""
Authenticated Merkle trees over a prime field.

This module provides:
- DenseMerkleTree: indexed, append-friendly tree with zero padding
- SparseMerkleTree: key-addressed tree with EMPTY defaults
- InclusionProof: sibling path from a leaf to a root
- verify_proof / ProofVerifier: stateless verification
- NodeStore: content-addressed node storage shared across roots

Usage:
    from core.crypto import build_field_hash
    from core.merkle import DenseMerkleTree, ProofVerifier

    field_hash = build_field_hash("poseidon")
    tree = DenseMerkleTree(field_hash, depth=5, elements=[1, 2, 3])

    proof = tree.proof(2)
    assert ProofVerifier(field_hash).verify(proof)
"""
from .node_store import NodeStore

from .merkle_proofs import (
    InclusionProof,
    path_bits_from_index,
    index_from_path_bits,
    compute_root,
    verify_proof,
    verify_merkle_proof,
    ProofVerifier,
)

from .base import (
    BitOrder,
    KEY_BIT_ORDER,
    AuthenticatedTree,
)

from .dense_tree import (
    DenseMerkleTree,
    create_tree_with_root,
)

from .sparse_tree import SparseMerkleTree


__all__ = [
    # Storage
    "NodeStore",
    # Proofs
    "InclusionProof",
    "path_bits_from_index",
    "index_from_path_bits",
    "compute_root",
    "verify_proof",
    "verify_merkle_proof",
    "ProofVerifier",
    # Trees
    "BitOrder",
    "KEY_BIT_ORDER",
    "AuthenticatedTree",
    "DenseMerkleTree",
    "create_tree_with_root",
    "SparseMerkleTree",
]
