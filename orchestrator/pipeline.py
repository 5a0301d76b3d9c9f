"""
Claim Tree Pipeline

Deterministic, testable, in-process build of an airdrop claim tree.

Steps:
1. build_tree: insert every entry's leaf into the configured tree shape
2. generate_proofs: one proof per entry, each self-checked against the
   fresh root (optionally in a thread pool; the tree is read-only by then)
3. assemble_results: nullifiers, nullifier hashes and output documents

A proof that fails its self-check flags the entry isValid = false; the
entry is still written. Capacity overflow aborts before any hashing.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

from core.config.runtime import RuntimeConfig
from core.crypto.field_hash import FieldHash, build_field_hash
from core.crypto.nullifier import NullifierDeriver
from core.field.element import to_decimal
from core.merkle.base import AuthenticatedTree
from core.merkle.dense_tree import DenseMerkleTree
from core.merkle.merkle_proofs import InclusionProof, ProofVerifier
from core.merkle.sparse_tree import SparseMerkleTree
from core.schemas.errors import ConfigurationException, TreeFullException
from core.schemas.results import CircuitInputs, LeafResult, TreeResults
from core.schemas.verification import CheckResult, VerificationResult

from orchestrator.dataset import DatasetEntry
from orchestrator.sop_executor import PipelineState, SOPExecutor, make_step


logger = logging.getLogger(__name__)


# =============================================================================
# Tree Factory
# =============================================================================

def create_tree(config: RuntimeConfig, field_hash: FieldHash) -> AuthenticatedTree:
    """Create an empty tree of the configured shape and depth."""
    if config.tree.shape == "sparse":
        return SparseMerkleTree(
            field_hash,
            config.tree.depth,
            bit_order=config.tree.bit_order,
        )
    if config.tree.shape == "dense":
        return DenseMerkleTree(
            field_hash,
            config.tree.depth,
            zero_element=config.tree.zero_element,
        )
    raise ConfigurationException(f"Unknown tree shape {config.tree.shape!r}", setting="tree.shape")


def field_hash_from_config(config: RuntimeConfig) -> FieldHash:
    return build_field_hash(backend=config.hash.backend, scheme=config.hash.scheme)


# =============================================================================
# Run Result
# =============================================================================

@dataclass
class PipelineResult:
    """Complete result of a pipeline run."""
    results: Optional[TreeResults] = None
    circuit_inputs: list[CircuitInputs] = field(default_factory=list)
    verification: Optional[VerificationResult] = None
    tree: Optional[AuthenticatedTree] = None
    errors: list[str] = field(default_factory=list)
    failure: Optional[Exception] = None
    ok: bool = False

    @property
    def root(self) -> Optional[str]:
        return self.results.root if self.results else None

    @property
    def all_valid(self) -> bool:
        return self.results is not None and self.results.invalid_count == 0

    def raise_for_failure(self) -> None:
        """Re-raise the exception that stopped the run, if any."""
        if self.failure is not None:
            raise self.failure

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "root": self.root,
            "leaves": len(self.results.leaves) if self.results else 0,
            "invalid": self.results.invalid_count if self.results else 0,
            "errors": self.errors,
        }


# =============================================================================
# Pipeline
# =============================================================================

class ClaimTreePipeline:
    """
    Builds the claim tree, proofs and output documents for a dataset.

    Example:
        >>> pipeline = ClaimTreePipeline(config, field_hash=field_hash)
        >>> result = pipeline.run(entries)
        >>> result.ok
        True
    """

    def __init__(
        self,
        config: Optional[RuntimeConfig] = None,
        *,
        field_hash: Optional[FieldHash] = None,
    ):
        """
        Initialize pipeline.

        Args:
            config: Runtime configuration (defaults apply if omitted)
            field_hash: Ready hash; built from config.hash if omitted
        """
        self.config = config or RuntimeConfig()
        self._field_hash = field_hash
        self._executor = SOPExecutor(stop_on_error=True)

    @property
    def field_hash(self) -> FieldHash:
        if self._field_hash is None:
            self._field_hash = field_hash_from_config(self.config)
        return self._field_hash

    def run(self, entries: list[DatasetEntry]) -> PipelineResult:
        """
        Run the full build.

        Raises:
            TreeFullException: If there are more entries than leaves
            ConfigurationException: If the nullifier secret is missing
        """
        capacity = 2 ** self.config.tree.depth
        if len(entries) > capacity:
            raise TreeFullException(capacity, requested=len(entries))
        if not self.config.dataset.secret:
            raise ConfigurationException(
                "SECRET is required to derive nullifiers", setting="dataset.secret"
            )

        logger.info(
            "Building %s tree depth=%d for %d entries",
            self.config.tree.shape, self.config.tree.depth, len(entries),
        )
        state = PipelineState(entries=list(entries), field_hash=self.field_hash)
        steps = [
            make_step("build_tree", self._step_build_tree),
            make_step("generate_proofs", self._step_generate_proofs),
            make_step("assemble_results", self._step_assemble_results),
        ]
        state = self._executor.execute(steps, state)
        return self._state_to_result(state)

    def _step_build_tree(self, state: PipelineState) -> PipelineState:
        tree = create_tree(self.config, state.field_hash)
        if isinstance(tree, SparseMerkleTree):
            state.leaf_hashes = [tree.insert(entry.key, entry.value) for entry in state.entries]
        else:
            state.leaf_hashes = [state.field_hash.leaf_hash(e.key, e.value) for e in state.entries]
            tree.bulk_insert(state.leaf_hashes)
        state.tree = tree
        state.root = tree.root()
        logger.info("Tree root: %s", state.root)
        return state

    def _prove(self, state: PipelineState, position: int) -> tuple[InclusionProof, bool]:
        entry = state.entries[position]
        if isinstance(state.tree, SparseMerkleTree):
            proof = state.tree.proof(entry.key)
        else:
            proof = state.tree.proof(position)
        verifier = ProofVerifier(state.field_hash)
        valid = verifier.verify_entry(entry.key, entry.value, proof, expected_root=state.root)
        return proof, valid

    def _step_generate_proofs(self, state: PipelineState) -> PipelineState:
        positions = range(len(state.entries))
        workers = self.config.output.proof_workers
        if workers > 1 and len(state.entries) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                outcomes = list(pool.map(lambda i: self._prove(state, i), positions))
        else:
            outcomes = [self._prove(state, i) for i in positions]

        for entry, (proof, valid) in zip(state.entries, outcomes):
            state.proofs.append(proof)
            state.proof_valid.append(valid)
            check_id = f"proof_row_{entry.row_index}"
            if valid:
                state.add_check(CheckResult.passed(check_id, "Proof recomputes the root"))
            else:
                logger.error("Invalid proof for %s (row %d)", entry.identity, entry.row_index)
                state.add_check(CheckResult.failed(
                    check_id,
                    f"Proof for {entry.identity} does not recompute the root",
                    details={"identity": entry.identity, "position": proof.position},
                ))
        return state

    def _step_assemble_results(self, state: PipelineState) -> PipelineState:
        deriver = NullifierDeriver(state.field_hash, self.config.dataset.secret)
        root = to_decimal(state.root)
        for entry, leaf, proof, valid in zip(
            state.entries, state.leaf_hashes, state.proofs, state.proof_valid
        ):
            nullifier, nullifier_hash = deriver.derive_and_commit(entry.identity, entry.key)
            path_elements = [to_decimal(s) for s in proof.siblings]
            position = str(proof.position)
            state.leaves.append(LeafResult(
                key=entry.identity,
                key_uint=to_decimal(entry.key),
                value=to_decimal(entry.value),
                leaf=to_decimal(leaf),
                nullifier=to_decimal(nullifier),
                nullifier_hash=to_decimal(nullifier_hash),
                path_elements=path_elements,
                path_indices=position,
                index=proof.index,
                is_valid=valid,
            ))
            state.circuit_inputs.append(CircuitInputs(
                merkle_root=root,
                nullifier_hash=to_decimal(nullifier_hash),
                user_address=to_decimal(entry.key),
                amount=to_decimal(entry.value),
                nullifier=to_decimal(nullifier),
                path_elements=path_elements,
                path_indices=position,
            ))
        return state

    def _state_to_result(self, state: PipelineState) -> PipelineResult:
        results = None
        if state.root is not None and len(state.leaves) == len(state.entries):
            described = state.field_hash.describe()
            results = TreeResults(
                root=to_decimal(state.root),
                tree_levels=self.config.tree.depth,
                tree_shape=self.config.tree.shape,
                hash_function=described["backend"],
                hash_scheme=described["scheme"],
                zero_element=to_decimal(state.tree.zero_element) if isinstance(state.tree, DenseMerkleTree) else None,
                bit_order=state.tree.bit_order.value if isinstance(state.tree, SparseMerkleTree) else None,
                total_amount=str(sum(e.value for e in state.entries)),
                leaves=state.leaves,
            )
            if results.invalid_count:
                logger.error("%d invalid proofs found", results.invalid_count)

        return PipelineResult(
            results=results,
            circuit_inputs=state.circuit_inputs,
            verification=VerificationResult.from_checks(state.checks),
            tree=state.tree,
            errors=state.errors,
            failure=state.failure,
            ok=state.ok and results is not None,
        )


def create_pipeline(
    config: Optional[RuntimeConfig] = None,
    *,
    field_hash: Optional[FieldHash] = None,
) -> ClaimTreePipeline:
    """Convenience function to create a pipeline."""
    return ClaimTreePipeline(config, field_hash=field_hash)
