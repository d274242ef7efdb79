"""
Fiat-Shamir transcript over the Poseidon2 sponge.

Absorbs field elements and squeezes pseudorandom challenges, used to derive
the proof engine's query rows.
"""

from typing import List, Sequence

from slot_prover.primitives.constants import HASH_SIZE
from slot_prover.primitives.field import GOLDILOCKS_PRIME
from slot_prover.primitives.poseidon2 import poseidon2_hash

# Usable bits per squeezed element
_BITS_PER_FIELD = 63


class Transcript:
    """
    Sponge transcript.

    Attributes:
        arity: Determines sponge width (2, 3 or 4 -> 8, 12, 16)
        state: Current sponge state (full width)
        pending: Absorbed elements not yet permuted
        out: Squeezable output of the last permutation
    """

    def __init__(self, arity: int = 4):
        if arity not in [2, 3, 4]:
            raise ValueError(f"arity must be 2, 3, or 4, got {arity}")

        self.arity = arity
        self.sponge_width = HASH_SIZE * arity
        self.rate = self.sponge_width - HASH_SIZE

        self.state: List[int] = [0] * self.sponge_width
        self.pending: List[int] = []
        self.out: List[int] = []

    def put(self, input_data: Sequence[int]) -> None:
        """Absorb field elements."""
        for elem in input_data:
            self.pending.append(int(elem) % GOLDILOCKS_PRIME)
            # New input invalidates any cached output
            self.out = []
            if len(self.pending) == self.rate:
                self._update_state()

    def _update_state(self) -> None:
        """Permute pending (zero-padded rate) with the capacity of the current state."""
        rate_part = self.pending + [0] * (self.rate - len(self.pending))
        self.state = poseidon2_hash(rate_part + self.state[:HASH_SIZE], self.sponge_width)
        self.out = list(self.state)
        self.pending = []

    def _get_fields1(self) -> int:
        """Squeeze one field element."""
        if not self.out:
            self._update_state()
        return self.out.pop(0)

    def get_state(self, n_outputs: int = HASH_SIZE) -> List[int]:
        """Current sponge state, flushing pending input first."""
        if self.pending:
            self._update_state()
        return self.state[:n_outputs]

    def get_permutations(self, n: int, n_bits: int) -> List[int]:
        """
        Generate n values, each in [0, 2^n_bits).

        Bits are drawn from consecutive squeezed elements, 63 bits per element.
        """
        n_fields = ((n * n_bits - 1) // _BITS_PER_FIELD) + 1
        fields = [self._get_fields1() for _ in range(n_fields)]

        result = []
        cur_bit = 0
        cur_field = 0
        for _ in range(n):
            a = 0
            for j in range(n_bits):
                a |= ((fields[cur_field] >> cur_bit) & 1) << j
                cur_bit += 1
                if cur_bit == _BITS_PER_FIELD:
                    cur_bit = 0
                    cur_field += 1
            result.append(a)
        return result
