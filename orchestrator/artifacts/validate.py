"""
Results Validation
File: validate.py

Purpose: Re-check a results document independently of the tree that built it.
"""

from __future__ import annotations

import logging
from typing import Any

from core.crypto.field_hash import FieldHash
from core.field.element import DEFAULT_FIELD, EMPTY
from core.merkle.base import KEY_BIT_ORDER
from core.merkle.dense_tree import create_tree_with_root
from core.merkle.merkle_proofs import path_bits_from_index, verify_proof
from core.merkle.sparse_tree import SparseMerkleTree
from core.schemas.errors import InvalidFieldElementException, KeyCollisionException
from core.schemas.results import LeafResult, TreeResults
from core.schemas.verification import CheckResult, VerificationResult


logger = logging.getLogger(__name__)


def _make_check(check_id: str, ok: bool, message: str, details: dict[str, Any] | None = None) -> CheckResult:
    """Create a CheckResult."""
    return CheckResult(
        check_id=check_id,
        ok=ok,
        severity="info" if ok else "error",
        message=message,
        details=details or {},
    )


def validate_leaf_hash(field_hash: FieldHash, position: int, leaf: LeafResult) -> CheckResult:
    """leaf == leaf_hash(keyUint, value)."""
    check_id = f"leaf_{position}_hash"
    try:
        computed = field_hash.leaf_hash(DEFAULT_FIELD.element(leaf.key_uint), DEFAULT_FIELD.element(leaf.value))
    except InvalidFieldElementException as e:
        return _make_check(check_id, False, f"Leaf inputs are not field elements: {e}", {"key": leaf.key})
    if str(computed) == leaf.leaf:
        return _make_check(check_id, True, "Leaf hash matches key and value")
    return _make_check(
        check_id, False, "Leaf hash mismatch",
        {"key": leaf.key, "computed": str(computed), "stored": leaf.leaf},
    )


def validate_leaf_proof(
    field_hash: FieldHash,
    position: int,
    leaf: LeafResult,
    root: int,
    depth: int,
) -> CheckResult:
    """The sibling path recomputes the document root."""
    check_id = f"leaf_{position}_proof"
    if len(leaf.path_elements) != depth:
        return _make_check(
            check_id, False,
            f"Proof has {len(leaf.path_elements)} siblings, expected {depth}",
            {"key": leaf.key},
        )
    try:
        path_bits = path_bits_from_index(int(leaf.path_indices), depth)
        siblings = DEFAULT_FIELD.elements(leaf.path_elements)
        leaf_value = DEFAULT_FIELD.element(leaf.leaf)
    except (ValueError, InvalidFieldElementException) as e:
        return _make_check(check_id, False, f"Malformed proof: {e}", {"key": leaf.key})
    if verify_proof(field_hash, leaf_value, siblings, path_bits, root):
        return _make_check(check_id, True, "Proof recomputes the root")
    return _make_check(check_id, False, "Proof does not recompute the root", {"key": leaf.key})


def validate_nullifier_hash(field_hash: FieldHash, position: int, leaf: LeafResult) -> CheckResult:
    """nullifierHash == nullifier_hash(keyUint, nullifier)."""
    check_id = f"leaf_{position}_nullifier"
    try:
        computed = field_hash.nullifier_hash(
            DEFAULT_FIELD.element(leaf.key_uint), DEFAULT_FIELD.element(leaf.nullifier)
        )
    except InvalidFieldElementException as e:
        return _make_check(check_id, False, f"Nullifier inputs are not field elements: {e}", {"key": leaf.key})
    if str(computed) == leaf.nullifier_hash:
        return _make_check(check_id, True, "Nullifier hash matches")
    return _make_check(check_id, False, "Nullifier hash mismatch", {"key": leaf.key})


def validate_total_amount(results: TreeResults) -> CheckResult:
    total = sum(int(leaf.value) for leaf in results.leaves)
    if str(total) == results.total_amount:
        return _make_check("total_amount", True, "Total amount matches leaf values")
    return _make_check(
        "total_amount", False, "Total amount mismatch",
        {"computed": str(total), "stored": results.total_amount},
    )


def validate_dense_rebuild(field_hash: FieldHash, results: TreeResults) -> CheckResult:
    """Rebuilding a dense tree from the leaves in order yields the root."""
    ordered = sorted(results.leaves, key=lambda leaf: int(leaf.path_indices))
    positions = [int(leaf.path_indices) for leaf in ordered]
    if positions != list(range(len(ordered))):
        return _make_check("dense_rebuild", False, "Dense leaf positions are not contiguous from 0")
    try:
        tree = create_tree_with_root(
            field_hash,
            results.tree_levels,
            [leaf.leaf for leaf in ordered],
            results.root,
            zero_element=results.zero_element or EMPTY,
        )
    except ValueError as e:
        return _make_check("dense_rebuild", False, f"Leaves are not field elements: {e}")
    if tree is not None:
        return _make_check("dense_rebuild", True, "Rebuilt tree root matches")
    return _make_check("dense_rebuild", False, "Rebuilt tree root differs from document root")


def validate_sparse_rebuild(field_hash: FieldHash, results: TreeResults) -> CheckResult:
    """Re-inserting every (key, value) into a sparse tree yields the root."""
    try:
        tree = SparseMerkleTree(
            field_hash,
            results.tree_levels,
            bit_order=results.bit_order or KEY_BIT_ORDER,
        )
        for leaf in results.leaves:
            tree.insert(leaf.key_uint, leaf.value)
    except (ValueError, KeyCollisionException) as e:
        return _make_check("sparse_rebuild", False, f"Entries cannot be re-inserted: {e}")
    if str(tree.root()) == results.root:
        return _make_check("sparse_rebuild", True, "Rebuilt tree root matches")
    return _make_check("sparse_rebuild", False, "Rebuilt tree root differs from document root")


def validate_results(results: TreeResults, field_hash: FieldHash) -> VerificationResult:
    """
    Validate every leaf of a results document.

    Performs the following checks:
    1. Each leaf hash matches its key and value
    2. Each proof recomputes the root
    3. Each nullifier hash matches its nullifier
    4. totalAmount is the sum of values
    5. The tree rebuilds from the leaves to the same root

    Args:
        results: Loaded results document
        field_hash: Hash matching the document's hashFunction/hashScheme

    Returns:
        VerificationResult with all checks
    """
    all_checks: list[CheckResult] = []
    root = DEFAULT_FIELD.element(results.root)

    for position, leaf in enumerate(results.leaves):
        all_checks.append(validate_leaf_hash(field_hash, position, leaf))
        all_checks.append(validate_leaf_proof(field_hash, position, leaf, root, results.tree_levels))
        all_checks.append(validate_nullifier_hash(field_hash, position, leaf))

    all_checks.append(validate_total_amount(results))
    if results.tree_shape == "dense":
        all_checks.append(validate_dense_rebuild(field_hash, results))
    elif results.tree_shape == "sparse":
        all_checks.append(validate_sparse_rebuild(field_hash, results))

    result = VerificationResult.from_checks(all_checks)
    logger.info(
        "Validated %d leaves: %d/%d checks passed",
        len(results.leaves), result.passed_count, len(all_checks),
    )
    return result


__all__ = [
    "validate_leaf_hash",
    "validate_leaf_proof",
    "validate_nullifier_hash",
    "validate_total_amount",
    "validate_dense_rebuild",
    "validate_sparse_rebuild",
    "validate_results",
]
