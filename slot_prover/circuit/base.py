"""Trace data and the constraint evaluation context.

Constraint code reads named columns through ConstraintContext and returns one
FF array per constraint, holding its value at every row. A satisfied
constraint is zero everywhere.

Example:
    def eval_constraint(ctx: ConstraintContext):
        a = ctx.col('a')
        return ctx.next_col('a') - a * a
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np

from slot_prover.primitives.field import FieldElement, FFPoly

ColumnKey = Tuple[str, int]


@dataclass
class TraceData:
    """Named columns for one circuit instance.

    Attributes:
        columns: Witness columns keyed by (name, index)
        constants: Constant (shape-derived) columns keyed by (name, index)
        publics: Public values keyed by name
    """
    columns: Dict[ColumnKey, FFPoly] = field(default_factory=dict)
    constants: Dict[ColumnKey, FFPoly] = field(default_factory=dict)
    publics: Dict[str, FieldElement] = field(default_factory=dict)

    @property
    def n_rows(self) -> int:
        first = next(iter(self.columns.values()), None)
        return 0 if first is None else len(first)


def _shifted(column: FFPoly) -> FFPoly:
    # Circular; transitions out of the last row are masked by selectors
    return type(column)(np.roll(column.view(np.ndarray), -1))


class ConstraintContext:
    """Row-vectorized access to a trace for constraint evaluation."""

    def __init__(self, data: TraceData):
        self._data = data

    def col(self, name: str, index: int = 0) -> FFPoly:
        return self._data.columns[(name, index)]

    def next_col(self, name: str, index: int = 0) -> FFPoly:
        return _shifted(self.col(name, index))

    def const(self, name: str, index: int = 0) -> FFPoly:
        return self._data.constants[(name, index)]

    def next_const(self, name: str, index: int = 0) -> FFPoly:
        return _shifted(self.const(name, index))

    def public(self, name: str) -> FieldElement:
        return self._data.publics[name]
