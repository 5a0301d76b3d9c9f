"""
Results Artifacts

Provides functionality for saving, loading and validating tree results.
"""

from orchestrator.artifacts.io import (
    ResultsIOError,
    dump_json,
    write_results,
    load_results,
    load_circuit_inputs,
    circuit_inputs_from_results,
    find_circuit_inputs,
)

from orchestrator.artifacts.validate import (
    validate_leaf_hash,
    validate_leaf_proof,
    validate_nullifier_hash,
    validate_total_amount,
    validate_dense_rebuild,
    validate_sparse_rebuild,
    validate_results,
)

__all__ = [
    # IO
    "ResultsIOError",
    "dump_json",
    "write_results",
    "load_results",
    "load_circuit_inputs",
    "circuit_inputs_from_results",
    "find_circuit_inputs",
    # Validation
    "validate_leaf_hash",
    "validate_leaf_proof",
    "validate_nullifier_hash",
    "validate_total_amount",
    "validate_dense_rebuild",
    "validate_sparse_rebuild",
    "validate_results",
]
