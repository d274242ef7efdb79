"""Trace layout of the block commitment circuit.

One sponge permutation occupies ROWS_PER_PERMUTATION consecutive rows: the
permutation input followed by the state after each scheduled round. Chunk p of
the inputs sits in the `inp` columns of permutation p's first row. Rows are
linked by four transition kinds, chosen per row by constant selectors:

    linear / full / partial  - the permutation rounds
    absorb                   - last row of permutation p to first row of p+1

The trace is padded to a bucketed number of permutations so that blocks of
similar size share one constant table. Padding rows repeat the final sponge
state. Which rows are live and which lanes carry inputs depends only on the
transaction count, so those masks are instance columns rebuilt from the shape
rather than part of the committed constant table.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from slot_prover.circuit.base import ColumnKey
from slot_prover.primitives.field import FFPoly, ff_array
from slot_prover.primitives.poseidon2 import (
    COMMITMENT_RATE, COMMITMENT_WIDTH, FULL, LINEAR, PARTIAL, round_schedule,
)

SCHEDULE = round_schedule(COMMITMENT_WIDTH)
ROWS_PER_PERMUTATION = len(SCHEDULE) + 1

SELECTOR_COLUMNS = {LINEAR: "sel_linear", FULL: "sel_full", PARTIAL: "sel_partial"}
ABSORB_COLUMN = "sel_absorb"
LIVE_COLUMN = "live"
INPUT_MASK_COLUMN = "inp_mask"


def padded_block_count(n_blocks: int) -> int:
    """Smallest 2^k or 3 * 2^(k-1) that is >= n_blocks."""
    if n_blocks <= 2:
        return max(n_blocks, 1)
    high = 1 << (n_blocks - 1).bit_length()
    three_quarters = 3 * high // 4
    return three_quarters if three_quarters >= n_blocks else high


@dataclass(frozen=True)
class CircuitShape:
    """Structure of a commitment circuit, independent of witness values."""
    n_transactions: int

    def __post_init__(self):
        if self.n_transactions < 0:
            raise ValueError(f"n_transactions must be >= 0, got {self.n_transactions}")

    @property
    def n_inputs(self) -> int:
        """Absorbed elements: the block commitment then each transaction."""
        return self.n_transactions + 1

    @property
    def n_blocks(self) -> int:
        """Sponge permutations that absorb inputs."""
        return -(-self.n_inputs // COMMITMENT_RATE)

    @property
    def padded_blocks(self) -> int:
        """Permutations in the trace; shapes with equal values share parameters."""
        return padded_block_count(self.n_blocks)

    @property
    def n_live_rows(self) -> int:
        return self.n_blocks * ROWS_PER_PERMUTATION

    @property
    def n_rows(self) -> int:
        return self.padded_blocks * ROWS_PER_PERMUTATION

    def input_position(self, index: int) -> Tuple[int, int]:
        """(row, lane) holding absorbed input `index`."""
        if not 0 <= index < self.n_inputs:
            raise IndexError(f"input index {index} out of range [0, {self.n_inputs})")
        block, lane = divmod(index, COMMITMENT_RATE)
        return block * ROWS_PER_PERMUTATION, lane


def constant_columns(shape: CircuitShape) -> Dict[ColumnKey, FFPoly]:
    """Selectors and round constants for every row of the padded trace."""
    n = shape.n_rows
    n_perms = shape.padded_blocks
    cols: Dict[ColumnKey, List[int]] = {
        (name, 0): [0] * n for name in list(SELECTOR_COLUMNS.values()) + [ABSORB_COLUMN]
    }
    cols[("L_first", 0)] = [0] * n
    cols[("L_last", 0)] = [0] * n
    for i in range(COMMITMENT_WIDTH):
        cols[("rc", i)] = [0] * n

    for p in range(n_perms):
        base = p * ROWS_PER_PERMUTATION
        for k, (kind, constants) in enumerate(SCHEDULE):
            row = base + k
            cols[(SELECTOR_COLUMNS[kind], 0)][row] = 1
            if kind == FULL:
                for i, c in enumerate(constants):
                    cols[("rc", i)][row] = c
            elif kind == PARTIAL:
                cols[("rc", 0)][row] = constants
        if p < n_perms - 1:
            cols[(ABSORB_COLUMN, 0)][base + ROWS_PER_PERMUTATION - 1] = 1

    cols[("L_first", 0)][0] = 1
    cols[("L_last", 0)][n - 1] = 1
    return {key: ff_array(values) for key, values in cols.items()}


def instance_columns(shape: CircuitShape) -> Dict[ColumnKey, FFPoly]:
    """Live-row mask and per-lane input masks for this transaction count."""
    n = shape.n_rows
    live = [1] * shape.n_live_rows + [0] * (n - shape.n_live_rows)
    masks = [[0] * n for _ in range(COMMITMENT_RATE)]
    for index in range(shape.n_inputs):
        row, lane = shape.input_position(index)
        masks[lane][row] = 1

    cols = {(LIVE_COLUMN, 0): ff_array(live)}
    for j in range(COMMITMENT_RATE):
        cols[(INPUT_MASK_COLUMN, j)] = ff_array(masks[j])
    return cols
