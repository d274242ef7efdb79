"""Merkle tree commitment over Poseidon2 hashes."""

from dataclasses import dataclass, field
from typing import List, Sequence

from slot_prover.primitives.constants import HASH_SIZE
from slot_prover.primitives.field import ff_to_ints
from slot_prover.primitives.poseidon2 import hash_seq, linear_hash

# --- Type Aliases ---

MerkleRoot = List[int]
LeafData = List[int]

_EMPTY_HASH = [0] * HASH_SIZE


# --- Data Classes ---

@dataclass
class QueryProof:
    """Leaf values at a query index plus the authentication path.

    Attributes:
        v: Leaf row values
        mp: Sibling hashes per level, leaf to root. Each level holds
            (arity - 1) * HASH_SIZE elements.
    """
    v: List[int] = field(default_factory=list)
    mp: List[List[int]] = field(default_factory=list)


# --- Merkle Tree ---

class MerkleTree:
    """Variable-arity Merkle tree; leaves are rows of field elements."""

    def __init__(self, arity: int = 4):
        if arity not in [2, 3, 4]:
            raise ValueError(f"arity must be 2, 3, or 4, got {arity}")

        self.arity = arity
        self.sponge_width = {2: 8, 3: 12, 4: 16}[arity]

        # levels[0] holds leaf hashes, levels[-1] the root
        self.levels: List[List[List[int]]] = []
        self.rows: List[LeafData] = []

    @property
    def height(self) -> int:
        """Number of leaves."""
        return len(self.rows)

    # --- Core Operations ---

    def merkelize(self, rows: Sequence[Sequence[int]]) -> None:
        """Build the tree from leaf rows (FF or int elements)."""
        self.rows = [ff_to_ints(row) for row in rows]
        level = [linear_hash(row, self.sponge_width) for row in self.rows]
        self.levels = [level]

        while len(level) > 1:
            padded = self._pad(level)
            level = [
                hash_seq(self._flatten(padded[i:i + self.arity]), self.sponge_width)
                for i in range(0, len(padded), self.arity)
            ]
            self.levels.append(level)

    def get_root(self) -> MerkleRoot:
        """Return the Merkle root commitment."""
        if not self.levels or not self.levels[-1]:
            return list(_EMPTY_HASH)
        return list(self.levels[-1][0])

    def get_group_proof(self, idx: int) -> List[List[int]]:
        """Sibling hashes for leaf `idx`, one flattened group per level."""
        path: List[List[int]] = []
        for level in self.levels[:-1]:
            padded = self._pad(level)
            pos = idx % self.arity
            start = idx - pos
            siblings = [padded[start + i] for i in range(self.arity) if i != pos]
            path.append(self._flatten(siblings))
            idx //= self.arity
        return path

    def get_query_proof(self, idx: int) -> QueryProof:
        """Leaf values and authentication path for leaf `idx`.

        Raises:
            ValueError: If idx is out of range
        """
        if idx < 0 or idx >= self.height:
            raise ValueError(f"Query index {idx} out of range [0, {self.height})")
        return QueryProof(v=list(self.rows[idx]), mp=self.get_group_proof(idx))

    def verify_group_proof(
        self,
        root: MerkleRoot,
        proof: List[List[int]],
        idx: int,
        leaf_data: LeafData
    ) -> bool:
        """Recompute the root from a leaf and its path."""
        computed = linear_hash(ff_to_ints(leaf_data), self.sponge_width)

        for level_siblings in proof:
            pos = idx % self.arity
            idx //= self.arity
            siblings = [
                level_siblings[k * HASH_SIZE:(k + 1) * HASH_SIZE]
                for k in range(self.arity - 1)
            ]
            children = siblings[:pos] + [computed] + siblings[pos:]
            computed = hash_seq(self._flatten(children), self.sponge_width)

        return computed == list(root[:HASH_SIZE])

    # --- Proof Size Utilities ---

    def get_merkle_proof_length(self) -> int:
        """Number of levels in a Merkle proof."""
        return max(len(self.levels) - 1, 0)

    def get_num_siblings(self) -> int:
        """Number of sibling elements per proof level."""
        return (self.arity - 1) * HASH_SIZE

    # --- Internal Helpers ---

    def _pad(self, level: List[List[int]]) -> List[List[int]]:
        extra = (-len(level)) % self.arity
        return level + [list(_EMPTY_HASH)] * extra

    @staticmethod
    def _flatten(hashes: Sequence[Sequence[int]]) -> List[int]:
        return [x for h in hashes for x in h]
