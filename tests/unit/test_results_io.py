"""
Results IO and Validation Tests
Tests for orchestrator/artifacts/io.py, orchestrator/artifacts/validate.py
and core/schemas/results.py
"""
import json

import pytest

from fixtures import make_address, make_config, make_entries

from core.schemas.results import CircuitInputs, LeafResult, TreeResults
from orchestrator.artifacts.io import (
    ResultsIOError,
    circuit_inputs_from_results,
    dump_json,
    find_circuit_inputs,
    load_circuit_inputs,
    load_results,
    write_results,
)
from orchestrator.artifacts.validate import validate_results
from orchestrator.pipeline import ClaimTreePipeline, PipelineResult


@pytest.fixture
def dense_result(field_hash):
    return ClaimTreePipeline(make_config(depth=3), field_hash=field_hash).run(make_entries(5))


@pytest.fixture
def sparse_result(field_hash):
    config = make_config(depth=8, shape="sparse")
    return ClaimTreePipeline(config, field_hash=field_hash).run(make_entries(5))


class TestResultModels:
    """Tests for the camelCase result models."""

    def test_camel_case_dump(self, dense_result):
        data = dense_result.results.to_json_dict()
        assert set(data) >= {"root", "treeLevels", "treeShape", "hashFunction", "totalAmount", "leaves"}
        assert "bitOrder" not in data
        leaf = data["leaves"][0]
        assert set(leaf) == {
            "key", "keyUint", "value", "leaf", "nullifier", "nullifierHash",
            "pathElements", "pathIndices", "index", "isValid",
        }

    def test_populate_by_name_and_alias(self):
        by_alias = CircuitInputs.model_validate({
            "merkleRoot": "1", "nullifierHash": "2", "userAddress": "3", "amount": "4",
            "nullifier": "5", "pathElements": ["6", "7"], "pathIndices": "2",
        })
        by_name = CircuitInputs(
            merkle_root="1", nullifier_hash="2", user_address="3", amount="4",
            nullifier="5", path_elements=["6", "7"], path_indices="2",
        )
        assert by_alias == by_name
        assert by_alias.path_bits == [0, 1]

    def test_rejects_hex(self):
        with pytest.raises(ValueError):
            CircuitInputs(
                merkle_root="0x1", nullifier_hash="2", user_address="3", amount="4",
                nullifier="5", path_elements=["6"], path_indices="0",
            )

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValueError):
            TreeResults.model_validate({"root": "1", "treeLevels": 2, "totalAmount": "0", "extra": 1})

    def test_find_leaf(self, dense_result):
        results = dense_result.results
        first = results.leaves[0]
        assert results.find_leaf(first.key_uint) is first
        assert results.find_leaf("424242") is None


class TestWriteLoad:
    """Tests for writing and reading the output files."""

    def test_write_creates_both_files(self, tmp_path, dense_result):
        results_path, inputs_path = write_results(dense_result, out_dir=tmp_path / "out")
        assert results_path.name == "smt_results.json"
        assert inputs_path.name == "inputs_circom.json"
        data = json.loads(results_path.read_text())
        assert data["root"] == dense_result.root
        assert results_path.read_text().startswith("{\n  ")

    def test_out_dir_from_config(self, tmp_path, dense_result):
        config = make_config(tmp_path / "cfg-out")
        results_path, _ = write_results(dense_result, config=config)
        assert results_path.parent == tmp_path / "cfg-out"

    def test_round_trip(self, tmp_path, dense_result):
        results_path, inputs_path = write_results(dense_result, out_dir=tmp_path)
        assert load_results(results_path) == dense_result.results
        assert load_circuit_inputs(inputs_path) == dense_result.circuit_inputs

    def test_inputs_derivable_from_results(self, dense_result):
        assert circuit_inputs_from_results(dense_result.results) == dense_result.circuit_inputs

    def test_nothing_to_write(self, tmp_path):
        with pytest.raises(ResultsIOError):
            write_results(PipelineResult(), out_dir=tmp_path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_results(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "smt_results.json"
        path.write_text("{not json")
        with pytest.raises(ResultsIOError) as exc_info:
            load_results(path)
        assert exc_info.value.code == "RESULTS_IO_ERROR"

    def test_invalid_document(self, tmp_path):
        path = tmp_path / "smt_results.json"
        path.write_text(json.dumps({"root": "1"}))
        with pytest.raises(ResultsIOError):
            load_results(path)

    def test_inputs_must_be_list(self, tmp_path):
        path = tmp_path / "inputs_circom.json"
        path.write_text("{}")
        with pytest.raises(ResultsIOError):
            load_circuit_inputs(path)

    def test_dump_json_list(self, dense_result):
        data = json.loads(dump_json(dense_result.circuit_inputs))
        assert data[0]["merkleRoot"] == dense_result.root


class TestFindCircuitInputs:
    """Tests for address lookup."""

    def test_hex_any_case(self, dense_result):
        inputs = dense_result.circuit_inputs
        address = make_address(2)
        assert find_circuit_inputs(inputs, address) is inputs[2]
        assert find_circuit_inputs(inputs, address.upper().replace("0X", "0x")) is inputs[2]
        assert find_circuit_inputs(inputs, address[2:]) is inputs[2]

    def test_decimal_key(self, dense_result):
        inputs = dense_result.circuit_inputs
        assert find_circuit_inputs(inputs, inputs[1].user_address) is inputs[1]

    def test_unknown(self, dense_result):
        assert find_circuit_inputs(dense_result.circuit_inputs, "0xdead") is None
        assert find_circuit_inputs(dense_result.circuit_inputs, "not-an-address") is None


class TestValidateResults:
    """Tests for offline validation."""

    def test_dense_ok(self, field_hash, dense_result, assert_check_passed):
        verification = validate_results(dense_result.results, field_hash)
        assert verification.ok
        assert_check_passed(verification, "dense_rebuild")
        assert_check_passed(verification, "total_amount")

    def test_sparse_ok(self, field_hash, sparse_result, assert_check_passed):
        verification = validate_results(sparse_result.results, field_hash)
        assert verification.ok
        assert_check_passed(verification, "sparse_rebuild")

    def test_tampered_path_element(self, field_hash, dense_result, assert_check_failed):
        results = dense_result.results.model_copy(deep=True)
        leaf = results.leaves[1]
        leaf.path_elements[0] = str(int(leaf.path_elements[0]) + 1)
        verification = validate_results(results, field_hash)
        assert not verification.ok
        assert_check_failed(verification, "leaf_1_proof")

    def test_tampered_value(self, field_hash, dense_result, assert_check_failed):
        results = dense_result.results.model_copy(deep=True)
        results.leaves[0].value = "1"
        verification = validate_results(results, field_hash)
        assert_check_failed(verification, "leaf_0_hash")
        assert_check_failed(verification, "total_amount")

    def test_tampered_nullifier_hash(self, field_hash, dense_result, assert_check_failed):
        results = dense_result.results.model_copy(deep=True)
        results.leaves[2].nullifier_hash = "12345"
        assert_check_failed(validate_results(results, field_hash), "leaf_2_nullifier")

    def test_wrong_hash_backend(self, tagged_hash, dense_result):
        assert not validate_results(dense_result.results, tagged_hash).ok

    def test_reordered_dense_leaves(self, field_hash, dense_result, assert_check_failed):
        results = dense_result.results.model_copy(deep=True)
        results.leaves[0].path_indices, results.leaves[1].path_indices = "1", "0"
        assert_check_failed(validate_results(results, field_hash), "dense_rebuild")
