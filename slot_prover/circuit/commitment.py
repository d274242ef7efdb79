"""Block commitment circuit.

Proves `digest == sponge_digest(b, t_1, ..., t_n)` where b is the field-encoded
block hash and t_i the field-encoded transaction hashes. Every permutation
round of the sponge is a transition constraint over the trace, and a single
last-row constraint ties the computed output to the public digest. Rounds
and absorptions past the live rows are replaced by a hold (next state equals
this state), so the padded tail carries the digest to the last row.

Witness columns:
    state[0..7]  sponge state, one row per round
    inp[0..3]    absorbed chunk, on each permutation's first row only
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from slot_prover.circuit.base import ColumnKey, ConstraintContext
from slot_prover.circuit.layout import (
    ABSORB_COLUMN, INPUT_MASK_COLUMN, LIVE_COLUMN, SCHEDULE, SELECTOR_COLUMNS, CircuitShape,
)
from slot_prover.errors import MissingWitness
from slot_prover.primitives.constants import POSEIDON2_DIAG
from slot_prover.primitives.field import FF, FieldElement, FFPoly, GOLDILOCKS_PRIME, ff_array
from slot_prover.primitives.poseidon2 import (
    COMMITMENT_RATE, COMMITMENT_WIDTH, FULL, LINEAR, PARTIAL,
    apply_round, native_round, sponge_digest,
)

Constraint = Tuple[str, FFPoly]


def _sbox(x):
    return x ** 7


@dataclass
class CommitmentCircuit:
    """A commitment circuit instance, either shape-only or fully witnessed.

    Attributes:
        block_commitment: Encoded block hash, None in shape-only mode
        tx_commitments: Encoded transaction hashes, all None in shape-only mode
    """
    block_commitment: Optional[FieldElement]
    tx_commitments: List[Optional[FieldElement]] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        block_commitment: Optional[FieldElement],
        tx_commitments: Sequence[Optional[FieldElement]],
    ) -> "CommitmentCircuit":
        """Construct a circuit; all-None values give a shape-only instance.

        Raises:
            MissingWitness: If some values are present and others absent
        """
        values = [block_commitment, *tx_commitments]
        missing = [i for i, v in enumerate(values) if v is None]
        if missing and len(missing) != len(values):
            raise MissingWitness(f"witness values missing for inputs {missing}")
        return cls(block_commitment, list(tx_commitments))

    @classmethod
    def shape_only(cls, n_transactions: int) -> "CommitmentCircuit":
        return cls(None, [None] * n_transactions)

    @property
    def shape(self) -> CircuitShape:
        return CircuitShape(len(self.tx_commitments))

    @property
    def has_witness(self) -> bool:
        return self.block_commitment is not None

    # --- Witness ---

    def inputs(self) -> List[int]:
        """Absorbed inputs as ints: block commitment first.

        Raises:
            MissingWitness: In shape-only mode
        """
        values = [self.block_commitment, *self.tx_commitments]
        if any(v is None for v in values):
            raise MissingWitness("circuit has no witness (shape-only instance)")
        return [int(v) % GOLDILOCKS_PRIME for v in values]

    def digest(self) -> FieldElement:
        """Native sponge digest of the inputs."""
        return FF(sponge_digest(self.inputs()))

    def publics(self) -> Dict[str, FieldElement]:
        return {"block_commitment": FF(self.inputs()[0]), "digest": self.digest()}

    def generate_trace(self) -> Dict[ColumnKey, FFPoly]:
        """Run the sponge natively and record every intermediate state."""
        inputs = self.inputs()
        shape = self.shape

        state_rows: List[List[int]] = []
        inp_rows: List[List[int]] = []
        zero_chunk = [0] * COMMITMENT_RATE

        state = [0] * COMMITMENT_WIDTH
        state[COMMITMENT_RATE] = shape.n_inputs
        for p in range(shape.n_blocks):
            chunk = inputs[p * COMMITMENT_RATE:(p + 1) * COMMITMENT_RATE]
            chunk = chunk + [0] * (COMMITMENT_RATE - len(chunk))
            rate = [(s + c) % GOLDILOCKS_PRIME for s, c in zip(state, chunk)]
            state = rate + state[COMMITMENT_RATE:]
            state_rows.append(state)
            inp_rows.append(chunk)
            for kind, constants in SCHEDULE:
                state = native_round(kind, state, constants, COMMITMENT_WIDTH)
                state_rows.append(state)
                inp_rows.append(zero_chunk)

        # Padding permutations hold the final state
        while len(state_rows) < shape.n_rows:
            state_rows.append(state)
            inp_rows.append(zero_chunk)

        columns: Dict[ColumnKey, FFPoly] = {}
        for i in range(COMMITMENT_WIDTH):
            columns[("state", i)] = ff_array([row[i] for row in state_rows])
        for j in range(COMMITMENT_RATE):
            columns[("inp", j)] = ff_array([row[j] for row in inp_rows])
        return columns

    # --- Constraints ---

    @staticmethod
    def constraints(ctx: ConstraintContext, shape: CircuitShape) -> List[Constraint]:
        """Evaluate every constraint over all rows; each is zero when satisfied.

        Expects the constant table and the shape's instance columns in
        `ctx`'s constants.
        """
        s = [ctx.col("state", i) for i in range(COMMITMENT_WIDTH)]
        s_next = [ctx.next_col("state", i) for i in range(COMMITMENT_WIDTH)]
        inp = [ctx.col("inp", j) for j in range(COMMITMENT_RATE)]
        inp_next = [ctx.next_col("inp", j) for j in range(COMMITMENT_RATE)]
        rc = [ctx.const("rc", i) for i in range(COMMITMENT_WIDTH)]
        diag = [FF(d) for d in POSEIDON2_DIAG[COMMITMENT_WIDTH]]

        one = FF(1)
        live = ctx.const(LIVE_COLUMN)
        live_next = ctx.next_const(LIVE_COLUMN)

        expected = {
            LINEAR: apply_round(LINEAR, s, None, _sbox, diag),
            FULL: apply_round(FULL, s, rc, _sbox, diag),
            PARTIAL: apply_round(PARTIAL, s, rc[0], _sbox, diag),
        }
        absorbed = [
            s[i] + inp_next[i] if i < COMMITMENT_RATE else s[i]
            for i in range(COMMITMENT_WIDTH)
        ]
        sel_absorb = ctx.const(ABSORB_COLUMN)

        constraints: List[Constraint] = []

        # Round and absorb transitions; held past the live rows
        for i in range(COMMITMENT_WIDTH):
            hold = s_next[i] - s[i]
            acc = sel_absorb * (
                live_next * (s_next[i] - absorbed[i]) + (one - live_next) * hold
            )
            for kind, column in SELECTOR_COLUMNS.items():
                acc = acc + ctx.const(column) * (
                    live * (s_next[i] - expected[kind][i]) + (one - live) * hold
                )
            constraints.append((f"transition[{i}]", acc))

        # First row: rate lanes hold the first chunk, capacity holds the length
        l_first = ctx.const("L_first")
        for j in range(COMMITMENT_RATE):
            constraints.append((f"first_row_rate[{j}]", l_first * (s[j] - inp[j])))
        constraints.append(
            ("first_row_length", l_first * (s[COMMITMENT_RATE] - FF(shape.n_inputs)))
        )
        for i in range(COMMITMENT_RATE + 1, COMMITMENT_WIDTH):
            constraints.append((f"first_row_capacity[{i}]", l_first * s[i]))

        # Public bindings
        constraints.append(
            ("block_commitment", l_first * (inp[0] - ctx.public("block_commitment")))
        )
        constraints.append(("digest", ctx.const("L_last") * (s[0] - ctx.public("digest"))))

        # Inputs only where the layout places them
        for j in range(COMMITMENT_RATE):
            constraints.append(
                (f"input_padding[{j}]", (one - ctx.const(INPUT_MASK_COLUMN, j)) * inp[j])
            )
        return constraints
