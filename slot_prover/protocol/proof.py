"""Proof data structures and binary serialization.

Proofs serialize to a flat sequence of little-endian u64 words, led by a type
tag. Bundles store them as hex strings.
"""

import struct
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union

from slot_prover.primitives.constants import HASH_SIZE
from slot_prover.primitives.poseidon2 import COMMITMENT_RATE

# --- Type Aliases ---
Hash = List[int]  # Poseidon hash output [h0, h1, h2, h3]

# Public inputs of the commitment circuit, in serialization order
PUBLIC_NAMES = ("block_commitment", "digest")

# Type tags
COMMITMENT_PROOF_TAG = 1
INCLUSION_PROOF_TAG = 2

WORD_BYTES = 8


# --- Proof Data Structures ---

@dataclass
class RowOpening:
    """One committed trace row with its Merkle authentication path.

    Attributes:
        row: Row index in the trace
        values: Trace columns then the row's blinding element
        path: Sibling hashes per level, leaf to root
    """
    row: int
    values: List[int] = field(default_factory=list)
    path: List[List[int]] = field(default_factory=list)


@dataclass
class CommitmentProof:
    """Proof that a committed sponge trace produces the public digest."""
    params_id: Hash
    n_transactions: int
    publics: Dict[str, int]
    trace_root: Hash
    openings: List[RowOpening] = field(default_factory=list)


@dataclass
class InclusionProof:
    """Opening of the trace row that absorbs one input of a commitment proof.

    The input sits in lane `input_index % 4` of the `inp` columns of the
    opened row.
    """
    params_id: Hash
    trace_root: Hash
    input_index: int
    opening: RowOpening

    @property
    def value(self) -> int:
        """The opened input; `inp` columns lead each committed row."""
        return self.opening.values[self.input_index % COMMITMENT_RATE]


Proof = Union[CommitmentProof, InclusionProof]


# --- Word Encoding ---

def _opening_words(opening: RowOpening) -> List[int]:
    width = len(opening.path[0]) if opening.path else 0
    words = [opening.row, len(opening.values), *opening.values, len(opening.path), width]
    for level in opening.path:
        if len(level) != width:
            raise ValueError("Merkle path levels must have equal width")
        words.extend(level)
    return words


def to_words(proof: Proof) -> List[int]:
    """Flatten a proof into u64 words."""
    if isinstance(proof, CommitmentProof):
        words = [COMMITMENT_PROOF_TAG, *proof.params_id[:HASH_SIZE], proof.n_transactions]
        words.extend(proof.publics[name] for name in PUBLIC_NAMES)
        words.extend(proof.trace_root[:HASH_SIZE])
        words.append(len(proof.openings))
        for opening in proof.openings:
            words.extend(_opening_words(opening))
        return words
    if isinstance(proof, InclusionProof):
        words = [INCLUSION_PROOF_TAG, *proof.params_id[:HASH_SIZE]]
        words.extend(proof.trace_root[:HASH_SIZE])
        words.append(proof.input_index)
        words.extend(_opening_words(proof.opening))
        return words
    raise TypeError(f"not a proof: {type(proof).__name__}")


class _Words:
    """Sequential reader over decoded words."""

    def __init__(self, values: List[int]):
        self.values = values
        self.idx = 0

    def take(self, n: int) -> List[int]:
        if self.idx + n > len(self.values):
            raise ValueError("proof data is truncated")
        out = self.values[self.idx:self.idx + n]
        self.idx += n
        return out

    def one(self) -> int:
        return self.take(1)[0]

    def opening(self) -> RowOpening:
        row = self.one()
        values = self.take(self.one())
        n_levels, width = self.take(2)
        path = [self.take(width) for _ in range(n_levels)]
        return RowOpening(row=row, values=values, path=path)

    def finish(self) -> None:
        if self.idx != len(self.values):
            raise ValueError(f"{len(self.values) - self.idx} trailing words in proof data")


def from_words(values: List[int]) -> Proof:
    """Rebuild a proof from u64 words.

    Raises:
        ValueError: On an unknown tag, truncated data or trailing words
    """
    words = _Words(list(values))
    tag = words.one()

    if tag == COMMITMENT_PROOF_TAG:
        params_id = words.take(HASH_SIZE)
        n_transactions = words.one()
        publics = dict(zip(PUBLIC_NAMES, words.take(len(PUBLIC_NAMES))))
        trace_root = words.take(HASH_SIZE)
        openings = [words.opening() for _ in range(words.one())]
        words.finish()
        return CommitmentProof(params_id, n_transactions, publics, trace_root, openings)

    if tag == INCLUSION_PROOF_TAG:
        params_id = words.take(HASH_SIZE)
        trace_root = words.take(HASH_SIZE)
        input_index = words.one()
        opening = words.opening()
        words.finish()
        return InclusionProof(params_id, trace_root, input_index, opening)

    raise ValueError(f"unknown proof tag {tag}")


# --- Bytes / Hex ---

def to_bytes(proof: Proof) -> bytes:
    words = to_words(proof)
    return struct.pack(f'<{len(words)}Q', *words)


def from_bytes(data: bytes) -> Proof:
    if len(data) % WORD_BYTES:
        raise ValueError(f"proof data length {len(data)} is not a multiple of {WORD_BYTES}")
    n_words = len(data) // WORD_BYTES
    return from_words(list(struct.unpack(f'<{n_words}Q', data)))


def to_hex(proof: Proof) -> str:
    return to_bytes(proof).hex()


def from_hex(text: str) -> Proof:
    return from_bytes(bytes.fromhex(text))


def proof_size(proof: Proof) -> Tuple[int, int]:
    """(words, bytes) of the serialized proof."""
    n = len(to_words(proof))
    return n, n * WORD_BYTES
