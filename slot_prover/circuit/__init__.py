"""Commitment circuit: trace layout, witness generation and constraints."""

from slot_prover.circuit.base import ConstraintContext, TraceData
from slot_prover.circuit.commitment import CommitmentCircuit
from slot_prover.circuit.layout import (
    ROWS_PER_PERMUTATION, CircuitShape, constant_columns, instance_columns, padded_block_count,
)

__all__ = [
    "CircuitShape",
    "CommitmentCircuit",
    "ConstraintContext",
    "ROWS_PER_PERMUTATION",
    "TraceData",
    "constant_columns",
    "instance_columns",
    "padded_block_count",
]
