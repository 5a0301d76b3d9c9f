"""
Pipeline Integration Tests
Tests for orchestrator/pipeline.py and orchestrator/sop_executor.py

1. Dense and sparse builds produce verifiable results
2. Invalid proofs are flagged, not dropped
3. Capacity and secret are checked before any hashing
4. Step failures are recorded and re-raisable
"""
import pytest

from fixtures import TEST_SECRET, make_config, make_entries

from core.crypto.nullifier import derive_nullifier
from core.merkle.dense_tree import DenseMerkleTree
from core.merkle.merkle_proofs import ProofVerifier
from core.merkle.sparse_tree import SparseMerkleTree
from core.schemas.errors import ConfigurationException, KeyCollisionException, TreeFullException
from orchestrator import pipeline as pipeline_module
from orchestrator.dataset import DatasetEntry
from orchestrator.pipeline import ClaimTreePipeline, create_pipeline, create_tree
from orchestrator.sop_executor import PipelineState, SOPExecutor, make_step


class TestCreateTree:
    """Tests for the tree factory."""

    def test_dense(self, field_hash):
        tree = create_tree(make_config(depth=4), field_hash)
        assert isinstance(tree, DenseMerkleTree)
        assert tree.depth == 4

    def test_sparse(self, field_hash):
        config = make_config(shape="sparse")
        config.tree.bit_order = "root_first"
        tree = create_tree(config, field_hash)
        assert isinstance(tree, SparseMerkleTree)
        assert tree.bit_order.value == "root_first"


class TestDensePipeline:
    """Dense tree builds."""

    def test_root_matches_tree(self, field_hash):
        entries = make_entries(5)
        result = ClaimTreePipeline(make_config(depth=3), field_hash=field_hash).run(entries)

        leaves = [field_hash.leaf_hash(e.key, e.value) for e in entries]
        expected = DenseMerkleTree(field_hash, 3, elements=leaves).root()
        assert result.ok
        assert result.root == str(expected)
        assert result.all_valid

    def test_results_document(self, field_hash):
        entries = make_entries(3)
        result = ClaimTreePipeline(make_config(depth=3), field_hash=field_hash).run(entries)
        results = result.results

        assert results.tree_levels == 3
        assert results.tree_shape == "dense"
        assert results.hash_function == "sha256"
        assert results.hash_scheme == "smt"
        assert results.zero_element == "0"
        assert results.bit_order is None
        assert results.total_amount == str(1000 + 2000 + 3000)
        for position, (entry, leaf) in enumerate(zip(entries, results.leaves)):
            assert leaf.key == entry.identity
            assert leaf.key_uint == str(entry.key)
            assert leaf.path_indices == str(position)
            assert leaf.index == position
            assert len(leaf.path_elements) == 3
            assert leaf.is_valid

    def test_nullifiers(self, field_hash):
        entries = make_entries(2)
        result = ClaimTreePipeline(make_config(), field_hash=field_hash).run(entries)
        for entry, leaf in zip(entries, result.results.leaves):
            nullifier = derive_nullifier(entry.identity, TEST_SECRET)
            assert leaf.nullifier == str(nullifier)
            assert leaf.nullifier_hash == str(field_hash.nullifier_hash(entry.key, nullifier))

    def test_circuit_inputs(self, field_hash):
        entries = make_entries(4)
        result = ClaimTreePipeline(make_config(), field_hash=field_hash).run(entries)
        assert len(result.circuit_inputs) == 4
        for entry, inputs, leaf in zip(entries, result.circuit_inputs, result.results.leaves):
            assert inputs.merkle_root == result.root
            assert inputs.user_address == str(entry.key)
            assert inputs.amount == str(entry.value)
            assert inputs.path_elements == leaf.path_elements
            assert inputs.path_indices == leaf.path_indices

    def test_proof_checks_recorded(self, field_hash):
        result = ClaimTreePipeline(make_config(), field_hash=field_hash).run(make_entries(3))
        assert result.verification.ok
        assert [c.check_id for c in result.verification.checks] == [
            "proof_row_1", "proof_row_2", "proof_row_3",
        ]
        assert result.verification.passed_count == 3
        assert result.verification.get_failed_checks() == []
        assert set(result.verification.model_dump()) == {"ok", "checks"}

    def test_worker_pool_gives_same_results(self, field_hash):
        entries = make_entries(8)
        serial = ClaimTreePipeline(make_config(depth=3), field_hash=field_hash).run(entries)
        pooled = ClaimTreePipeline(make_config(depth=3, proof_workers=4), field_hash=field_hash).run(entries)
        assert pooled.results == serial.results

    def test_empty_dataset(self, field_hash):
        result = ClaimTreePipeline(make_config(depth=2), field_hash=field_hash).run([])
        assert result.ok
        assert result.root == str(DenseMerkleTree(field_hash, 2).root())
        assert result.results.total_amount == "0"


class TestSparsePipeline:
    """Sparse tree builds."""

    def test_root_matches_tree(self, field_hash):
        entries = make_entries(6)
        config = make_config(depth=8, shape="sparse")
        result = ClaimTreePipeline(config, field_hash=field_hash).run(entries)

        tree = SparseMerkleTree(field_hash, 8)
        for entry in entries:
            tree.insert(entry.key, entry.value)
        assert result.root == str(tree.root())
        assert result.results.bit_order == "leaf_first"
        assert result.results.zero_element is None
        assert result.all_valid

    def test_path_indices_are_key_slots(self, field_hash):
        entries = make_entries(4)
        result = ClaimTreePipeline(make_config(depth=8, shape="sparse"), field_hash=field_hash).run(entries)
        for entry, leaf in zip(entries, result.results.leaves):
            assert leaf.path_indices == str(entry.key & 0xFF)
            assert leaf.index is None

    def test_collision_fails_build(self, field_hash):
        entries = [
            DatasetEntry(identity="0x0101", key=0x0101, value=1, row_index=1),
            DatasetEntry(identity="0x0201", key=0x0201, value=2, row_index=2),
        ]
        result = ClaimTreePipeline(make_config(depth=8, shape="sparse"), field_hash=field_hash).run(entries)
        assert not result.ok
        assert result.results is None
        assert isinstance(result.failure, KeyCollisionException)
        with pytest.raises(KeyCollisionException):
            result.raise_for_failure()


class TestPreChecks:
    """Checks that run before any hashing."""

    def test_capacity_overflow(self, field_hash):
        with pytest.raises(TreeFullException):
            ClaimTreePipeline(make_config(depth=2), field_hash=field_hash).run(make_entries(5))

    def test_missing_secret(self, field_hash):
        config = make_config(secret=None)
        with pytest.raises(ConfigurationException):
            ClaimTreePipeline(config, field_hash=field_hash).run(make_entries(1))


class TestInvalidProofs:
    """A failing self-check flags the entry."""

    def test_flagged_not_dropped(self, field_hash, monkeypatch):
        bad_key = make_entries(3)[1].key

        class FlakyVerifier(ProofVerifier):
            def verify_entry(self, key, value, proof, expected_root=None):
                if key == bad_key:
                    return False
                return super().verify_entry(key, value, proof, expected_root)

        monkeypatch.setattr(pipeline_module, "ProofVerifier", FlakyVerifier)
        result = ClaimTreePipeline(make_config(), field_hash=field_hash).run(make_entries(3))

        assert result.ok
        assert not result.all_valid
        assert len(result.results.leaves) == 3
        assert [leaf.is_valid for leaf in result.results.leaves] == [True, False, True]
        assert result.results.invalid_count == 1
        assert not result.verification.ok
        failed = result.verification.get_failed_checks()
        assert [c.check_id for c in failed] == ["proof_row_2"]
        assert failed[0].severity == "error"
        assert result.verification.passed_count == 2
        assert result.to_dict()["invalid"] == 1


class TestStepFailure:
    """Exceptions inside a step."""

    def test_failure_recorded(self, field_hash, monkeypatch):
        def broken(config, fh):
            raise RuntimeError("no tree today")

        monkeypatch.setattr(pipeline_module, "create_tree", broken)
        result = create_pipeline(make_config(), field_hash=field_hash).run(make_entries(2))
        assert not result.ok
        assert result.results is None
        assert "build_tree" in result.errors[0]
        with pytest.raises(RuntimeError, match="no tree today"):
            result.raise_for_failure()


class TestSOPExecutor:
    """Tests for the step runner."""

    def test_runs_in_order(self):
        seen = []

        def step(name):
            def run(state):
                seen.append(name)
                return state
            return make_step(name, run)

        executor = SOPExecutor()
        executor.execute([step("a"), step("b")], PipelineState())
        assert seen == ["a", "b"]
        assert executor.all_steps_succeeded()

    def test_stops_on_error(self):
        def fail(state):
            raise ValueError("boom")

        executor = SOPExecutor(stop_on_error=True)
        state = executor.execute(
            [make_step("fail", fail), make_step("after", lambda s: s)], PipelineState()
        )
        assert not state.ok
        assert isinstance(state.failure, ValueError)
        assert executor.get_failed_steps() == ["fail"]
        assert len(executor.step_results) == 1

    def test_continues_when_asked(self):
        def fail(state):
            raise ValueError("boom")

        executor = SOPExecutor(stop_on_error=False)
        executor.execute([make_step("fail", fail), make_step("after", lambda s: s)], PipelineState())
        assert [name for name, _, _ in executor.step_results] == ["fail", "after"]
