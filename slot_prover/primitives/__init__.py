"""Primitives - field arithmetic, hashing, Merkle commitments and transcript."""

from slot_prover.primitives.constants import HASH_SIZE
from slot_prover.primitives.field import (
    FF,
    FIELD_BYTES,
    GOLDILOCKS_PRIME,
    FieldElement,
    ff_array,
    ff_to_ints,
    is_canonical,
)
from slot_prover.primitives.merkle_tree import MerkleRoot, MerkleTree, QueryProof
from slot_prover.primitives.poseidon2 import (
    CAPACITY,
    hash_seq,
    linear_hash,
    poseidon2_hash,
    sponge_digest,
)
from slot_prover.primitives.transcript import Transcript

__all__ = [
    # Field
    "FF",
    "FIELD_BYTES",
    "GOLDILOCKS_PRIME",
    "FieldElement",
    "ff_array",
    "ff_to_ints",
    "is_canonical",
    # Hash
    "CAPACITY",
    "HASH_SIZE",
    "poseidon2_hash",
    "linear_hash",
    "hash_seq",
    "sponge_digest",
    # Merkle
    "MerkleTree",
    "MerkleRoot",
    "QueryProof",
    # Transcript
    "Transcript",
]
