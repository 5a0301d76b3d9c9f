"""
Poseidon Parameter Tests
Tests for core/crypto/poseidon_params.py

1. Round numbers follow circomlib per width
2. Grain generation reproduces the shipped t=3 BN254 instance
3. Generated instances have the expected shape
"""
import pytest

from poseidon.parameters import matrix_254, prime_254, round_constants_254

from core.crypto.poseidon_params import (
    FULL_ROUNDS,
    circom_params,
    generate_params,
    grain_init_state,
    partial_rounds_for_width,
)
from core.field.element import DEFAULT_FIELD


class TestRoundNumbers:
    """Tests for round numbers."""

    def test_circomlib_widths(self):
        assert FULL_ROUNDS == 8
        assert partial_rounds_for_width(2) == 56
        assert partial_rounds_for_width(3) == 57
        assert partial_rounds_for_width(4) == 56

    @pytest.mark.parametrize("t", [1, 18])
    def test_unknown_width(self, t):
        with pytest.raises(ValueError):
            partial_rounds_for_width(t)


class TestGrainSeed:
    """Tests for the Grain LFSR seed."""

    def test_seed_layout(self):
        seed = grain_init_state(254, 3, 8, 57)
        assert len(seed) == 80
        assert seed[:2] == [0, 1]
        assert seed[2:6] == [0, 0, 0, 0]
        assert int("".join(map(str, seed[6:18])), 2) == 254
        assert int("".join(map(str, seed[18:30])), 2) == 3
        assert int("".join(map(str, seed[30:40])), 2) == 8
        assert int("".join(map(str, seed[40:50])), 2) == 57
        assert seed[50:] == [1] * 30


class TestGeneration:
    """Tests for parameter generation."""

    def test_bn254_is_the_default_field(self):
        assert DEFAULT_FIELD.modulus == prime_254

    def test_reproduces_shipped_width_three(self):
        params = generate_params(prime_254, 3)
        assert [int(c, 16) for c in params.round_constants] == [int(c, 16) for c in round_constants_254]
        assert [[int(v, 16) for v in row] for row in params.mds_matrix] == [
            [int(v, 16) for v in row] for row in matrix_254
        ]

    def test_width_four_shape(self):
        params = circom_params(prime_254, 4)
        assert params.partial_round == 56
        assert len(params.round_constants) == 4 * (8 + 56)
        assert len(params.mds_matrix) == 4
        assert all(len(row) == 4 for row in params.mds_matrix)
        assert all(int(c, 16) < prime_254 for c in params.round_constants)

    def test_width_three_uses_shipped_constants(self):
        params = circom_params(prime_254, 3)
        assert list(params.round_constants) == list(round_constants_254)

    def test_cached(self):
        assert circom_params(prime_254, 4) is circom_params(prime_254, 4)
