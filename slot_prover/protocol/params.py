"""Per-shape proving parameters.

Setup commits to the constant columns of a padded trace and mixes in fresh
randomness. The resulting `params_id` is carried by every proof made with
these parameters. Circuits whose shapes pad to the same number of
permutations share one set of parameters.
"""

import logging
import secrets
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from slot_prover.circuit.base import ColumnKey
from slot_prover.circuit.layout import ROWS_PER_PERMUTATION, CircuitShape, constant_columns
from slot_prover.primitives.constants import HASH_SIZE
from slot_prover.primitives.field import GOLDILOCKS_PRIME, FFPoly, ff_to_ints
from slot_prover.primitives.merkle_tree import MerkleRoot, MerkleTree
from slot_prover.primitives.poseidon2 import COMMITMENT_RATE, linear_hash

logger = logging.getLogger(__name__)

# Random elements mixed into each setup
SETUP_SEED_SIZE = HASH_SIZE


def random_elements(n: int, rng: Optional[np.random.Generator] = None) -> List[int]:
    """n uniform field elements; from `secrets` unless a generator is supplied."""
    if rng is None:
        return [secrets.randbelow(GOLDILOCKS_PRIME) for _ in range(n)]
    return [int(x) for x in rng.integers(0, GOLDILOCKS_PRIME, size=n, dtype=np.uint64)]


def table_rows(columns: Dict[ColumnKey, FFPoly]) -> List[List[int]]:
    """Row-major view of named columns, in sorted column order."""
    keys = sorted(columns)
    if not keys:
        return []
    return [list(row) for row in zip(*(ff_to_ints(columns[k]) for k in keys))]


@dataclass
class ProvingParameters:
    """
    Output of setup for one padded trace size.

    Attributes:
        padded_blocks: Permutations in every trace proved with these parameters
        constants: Constant columns of the padded trace
        constant_root: Merkle root over the constant table rows
        seed: Setup randomness
        params_id: linear_hash(constant_root + seed)
    """
    padded_blocks: int
    constants: Dict[ColumnKey, FFPoly] = field(default_factory=dict)
    constant_root: MerkleRoot = field(default_factory=list)
    seed: List[int] = field(default_factory=list)
    params_id: List[int] = field(default_factory=list)

    @property
    def n_rows(self) -> int:
        return self.padded_blocks * ROWS_PER_PERMUTATION

    @property
    def max_transactions(self) -> int:
        """Largest transaction count these parameters can prove."""
        return self.padded_blocks * COMMITMENT_RATE - 1

    def serves(self, shape: CircuitShape) -> bool:
        return shape.padded_blocks == self.padded_blocks


def setup(
    shape: CircuitShape,
    arity: int = 4,
    rng: Optional[np.random.Generator] = None,
) -> ProvingParameters:
    """Generate proving parameters for `shape`'s padded trace."""
    constants = constant_columns(shape)

    tree = MerkleTree(arity)
    tree.merkelize(table_rows(constants))
    constant_root = tree.get_root()

    seed = random_elements(SETUP_SEED_SIZE, rng)
    params_id = linear_hash(constant_root + seed, tree.sponge_width)

    logger.debug(
        "Setup for %d permutations: %d rows, %d constant columns",
        shape.padded_blocks, shape.n_rows, len(constants),
    )
    return ProvingParameters(
        padded_blocks=shape.padded_blocks,
        constants=constants,
        constant_root=constant_root,
        seed=seed,
        params_id=params_id,
    )
