"""
Merkle Proof Unit Tests
Tests for core/merkle/merkle_proofs.py

1. Path bit helpers
2. InclusionProof shape validation and dict round trip
3. Standalone verification, including malformed input
4. ProofVerifier entry checks and verify_or_raise
"""
import pytest

from core.merkle.merkle_proofs import (
    InclusionProof,
    ProofVerifier,
    compute_root,
    index_from_path_bits,
    path_bits_from_index,
    verify_merkle_proof,
    verify_proof,
)
from core.schemas.errors import ErrorCodes, ProofVerificationException


def _proof_for(field_hash, key=10, value=20):
    """Depth-2 proof for a leaf at position 2 next to leaf 7."""
    leaf = field_hash.leaf_hash(key, value)
    sibling_0 = 7
    sibling_1 = field_hash.node_hash(1, 2)
    root = field_hash.node_hash(sibling_1, field_hash.node_hash(leaf, sibling_0))
    return InclusionProof(
        leaf=leaf,
        siblings=(sibling_0, sibling_1),
        path_bits=(0, 1),
        root=root,
        index=2,
    )


class TestPathBits:
    """Tests for index <-> path bit helpers."""

    def test_from_index(self):
        assert path_bits_from_index(6, 3) == [0, 1, 1]
        assert path_bits_from_index(0, 2) == [0, 0]

    def test_from_index_out_of_range(self):
        with pytest.raises(ValueError):
            path_bits_from_index(8, 3)
        with pytest.raises(ValueError):
            path_bits_from_index(-1, 3)

    def test_round_trip(self):
        for index in range(16):
            assert index_from_path_bits(path_bits_from_index(index, 4)) == index


class TestInclusionProof:
    """Tests for the proof dataclass."""

    def test_lists_become_tuples(self):
        proof = InclusionProof(leaf=1, siblings=[2, 3], path_bits=[1, 0], root=4)
        assert proof.siblings == (2, 3)
        assert proof.depth == 2
        assert proof.position == 1

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            InclusionProof(leaf=1, siblings=(2, 3), path_bits=(1,), root=4)

    def test_bad_bit(self):
        with pytest.raises(ValueError):
            InclusionProof(leaf=1, siblings=(2,), path_bits=(2,), root=4)

    def test_negative_index(self):
        with pytest.raises(ValueError):
            InclusionProof(leaf=1, siblings=(2,), path_bits=(0,), root=4, index=-1)

    def test_to_dict_uses_decimal_strings(self, field_hash):
        data = _proof_for(field_hash).to_dict()
        assert data["pathIndices"] == [0, 1]
        assert all(isinstance(s, str) and s.isdigit() for s in data["pathElements"])
        assert data["index"] == 2
        assert "key" not in data

    def test_from_dict_list_form(self, field_hash):
        proof = _proof_for(field_hash)
        assert InclusionProof.from_dict(proof.to_dict()) == proof

    def test_from_dict_position_form(self, field_hash):
        proof = _proof_for(field_hash)
        data = proof.to_dict()
        data["pathIndices"] = "2"
        assert InclusionProof.from_dict(data).path_bits == (0, 1)


class TestVerifyProof:
    """Tests for standalone verification."""

    def test_valid_proof(self, field_hash):
        assert verify_merkle_proof(field_hash, _proof_for(field_hash))

    def test_compute_root(self, field_hash):
        proof = _proof_for(field_hash)
        assert compute_root(field_hash, proof.leaf, proof.siblings, proof.path_bits) == proof.root

    def test_wrong_root(self, field_hash):
        proof = _proof_for(field_hash)
        assert not verify_proof(field_hash, proof.leaf, proof.siblings, proof.path_bits, proof.root + 1)

    def test_flipped_bit(self, field_hash):
        proof = _proof_for(field_hash)
        assert not verify_proof(field_hash, proof.leaf, proof.siblings, (1, 1), proof.root)

    def test_length_mismatch_is_false(self, field_hash):
        proof = _proof_for(field_hash)
        assert not verify_proof(field_hash, proof.leaf, proof.siblings, (0,), proof.root)

    def test_compute_root_length_mismatch_raises(self, field_hash):
        with pytest.raises(ValueError):
            compute_root(field_hash, 1, (2, 3), (0,))

    def test_out_of_field_sibling_is_false(self, field_hash):
        proof = _proof_for(field_hash)
        too_big = field_hash.field.modulus
        assert not verify_proof(field_hash, proof.leaf, (too_big, proof.siblings[1]), proof.path_bits, proof.root)


class TestProofVerifier:
    """Tests for ProofVerifier."""

    def test_verify_against_own_root(self, field_hash):
        assert ProofVerifier(field_hash).verify(_proof_for(field_hash))

    def test_verify_against_expected_root(self, field_hash):
        proof = _proof_for(field_hash)
        verifier = ProofVerifier(field_hash)
        assert verifier.verify(proof, expected_root=proof.root)
        assert not verifier.verify(proof, expected_root=123)

    def test_verify_entry(self, field_hash):
        proof = _proof_for(field_hash, key=10, value=20)
        verifier = ProofVerifier(field_hash)
        assert verifier.verify_entry(10, 20, proof)
        assert not verifier.verify_entry(10, 21, proof)

    def test_verify_or_raise(self, field_hash):
        proof = _proof_for(field_hash)
        verifier = ProofVerifier(field_hash)
        verifier.verify_or_raise(proof)
        with pytest.raises(ProofVerificationException) as exc_info:
            verifier.verify_or_raise(proof, expected_root=1)
        assert exc_info.value.code == ErrorCodes.MERKLE_PROOF_INVALID
        assert exc_info.value.details["leaf_index"] == 2
