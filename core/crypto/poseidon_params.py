"""
Poseidon Parameters
circomlib-compatible round numbers, round constants and MDS matrices.

circomlib's Poseidon instances were generated with the Grain LFSR
parameter script of the Poseidon reference implementation
(field = prime, S-box = x^5, n = 254, R_F = 8, R_P per width). This
module reproduces that generation so any width can be instantiated:

1. Round constants are the first t * (R_F + R_P) n-bit Grain outputs below p
2. The MDS matrix is the Cauchy matrix 1 / (x_i + y_j) drawn from the
   following 2t Grain outputs (reduced mod p, redrawn on duplicates)
3. The t=3 BN254 instance shipped by poseidon-hash is used as-is

Parameters are plain hex strings, the format poseidon.Poseidon accepts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from poseidon.parameters import matrix_254, prime_254, round_constants_254
from poseidon.round_constants import calc_next_bits


logger = logging.getLogger(__name__)


FULL_ROUNDS = 8

# circomlib N_ROUNDS_P, indexed by width t - 2
PARTIAL_ROUNDS = (56, 57, 56, 60, 60, 63, 64, 63, 60, 66, 60, 65, 70, 60, 64, 68)

# Grain field/S-box flags: prime field, S-box x^alpha
_GRAIN_FIELD_FLAG = 1
_GRAIN_SBOX_FLAG = 0


@dataclass(frozen=True)
class PoseidonParams:
    """One Poseidon instance: width, round numbers and constants as hex."""

    t: int
    full_round: int
    partial_round: int
    round_constants: tuple[str, ...]
    mds_matrix: tuple[tuple[str, ...], ...]


def partial_rounds_for_width(t: int) -> int:
    if t < 2 or t - 2 >= len(PARTIAL_ROUNDS):
        raise ValueError(f"No circomlib round numbers for width t={t}")
    return PARTIAL_ROUNDS[t - 2]


def _to_hex(value: int) -> str:
    return f"0x{value:064x}"


def grain_init_state(prime_bit_len: int, t: int, full_round: int, partial_round: int) -> list[int]:
    """The 80-bit Grain seed, before the 160 discarded clocks."""
    bits = ""
    bits += bin(_GRAIN_FIELD_FLAG)[2:].zfill(2)
    bits += bin(_GRAIN_SBOX_FLAG)[2:].zfill(4)
    bits += bin(prime_bit_len)[2:].zfill(12)
    bits += bin(t)[2:].zfill(12)
    bits += bin(full_round)[2:].zfill(10)
    bits += bin(partial_round)[2:].zfill(10)
    bits += "1" * 30
    return [int(b) for b in bits]


class GrainStream:
    """Self-shrinking Grain LFSR yielding n-bit integers."""

    def __init__(self, prime_bit_len: int, t: int, full_round: int, partial_round: int) -> None:
        self.prime_bit_len = prime_bit_len
        self._state = grain_init_state(prime_bit_len, t, full_round, partial_round)
        for _ in range(160):
            s = self._state
            new_bit = s[62] ^ s[51] ^ s[38] ^ s[23] ^ s[13] ^ s[0]
            s.pop(0)
            s.append(new_bit)

    def next_int(self) -> int:
        self._state, bits = calc_next_bits(self._state, self.prime_bit_len)
        return int("".join(str(b) for b in bits), 2)

    def next_below(self, bound: int) -> int:
        value = self.next_int()
        while value >= bound:
            value = self.next_int()
        return value


def generate_params(modulus: int, t: int, prime_bit_len: int | None = None) -> PoseidonParams:
    """
    Generate round constants and MDS matrix for width t the way the
    reference parameter script does.
    """
    n = prime_bit_len if prime_bit_len is not None else modulus.bit_length()
    partial_round = partial_rounds_for_width(t)
    stream = GrainStream(n, t, FULL_ROUNDS, partial_round)

    constants = [stream.next_below(modulus) for _ in range(t * (FULL_ROUNDS + partial_round))]

    while True:
        draws = [stream.next_int() % modulus for _ in range(2 * t)]
        while len(set(draws)) != len(draws):
            draws = [stream.next_int() % modulus for _ in range(2 * t)]
        xs, ys = draws[:t], draws[t:]
        if all((x + y) % modulus != 0 for x in xs for y in ys):
            break

    matrix = tuple(
        tuple(_to_hex(pow(x + y, -1, modulus)) for y in ys)
        for x in xs
    )
    return PoseidonParams(
        t=t,
        full_round=FULL_ROUNDS,
        partial_round=partial_round,
        round_constants=tuple(_to_hex(c) for c in constants),
        mds_matrix=matrix,
    )


@lru_cache(maxsize=None)
def circom_params(modulus: int, t: int) -> PoseidonParams:
    """Parameters for width t over modulus, shipped when available."""
    if modulus == prime_254 and t == 3:
        return PoseidonParams(
            t=3,
            full_round=FULL_ROUNDS,
            partial_round=partial_rounds_for_width(3),
            round_constants=tuple(round_constants_254),
            mds_matrix=tuple(tuple(row) for row in matrix_254),
        )
    logger.debug("Generating Poseidon parameters t=%d", t)
    return generate_params(modulus, t)


__all__ = [
    "FULL_ROUNDS",
    "PARTIAL_ROUNDS",
    "PoseidonParams",
    "GrainStream",
    "circom_params",
    "generate_params",
    "grain_init_state",
    "partial_rounds_for_width",
]
