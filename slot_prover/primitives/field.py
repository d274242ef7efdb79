"""Goldilocks prime field GF(p).

Uses galois for all array arithmetic. FF is the field type; scalars are
0-dimensional FF arrays. Hashing code works on plain ints reduced mod p and
only converts at the boundary.
"""

from typing import List, Sequence

import galois
import numpy as np

# --- Field Construction ---

GOLDILOCKS_PRIME = 0xFFFFFFFF00000001

FF = galois.GF(GOLDILOCKS_PRIME)
"""Base field GF(p) - Goldilocks prime field."""

# Type aliases for documentation
FieldElement = FF  # 0-d FF array
FFPoly = FF        # 1-d FF array, one value per trace row

# Canonical byte width of a field element
FIELD_BYTES = 8


# --- Conversions ---

def is_canonical(value: int) -> bool:
    """True if value is the canonical representative of a field element."""
    return 0 <= value < GOLDILOCKS_PRIME


def ff_array(values: Sequence[int]) -> FFPoly:
    """Build an FF array from ints, reducing mod p."""
    return FF(np.asarray([int(v) % GOLDILOCKS_PRIME for v in values], dtype=np.uint64))


def ff_to_ints(values) -> List[int]:
    """Convert FF/int elements to plain ints."""
    return [int(v) for v in values]
