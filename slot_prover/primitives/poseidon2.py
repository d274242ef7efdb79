"""
Poseidon2-structured permutation and the sponges built on it.

The round functions below are written against `+` and `*` only, so the same
code runs natively on Python ints (reduced mod p after each round) and on
galois arrays inside the commitment circuit, where every round becomes a
transition constraint.
"""

from functools import reduce
from operator import add
from typing import Callable, List, Optional, Sequence, Tuple

from slot_prover.primitives.constants import (
    HASH_SIZE, POSEIDON2_DIAG, POSEIDON2_RC, ROUNDS_F, ROUNDS_P, SPONGE_WIDTHS,
)
from slot_prover.primitives.field import GOLDILOCKS_PRIME

# Capacity is always HASH_SIZE (hash output size)
CAPACITY = HASH_SIZE

# Commitment sponge parameters
COMMITMENT_WIDTH = 8
COMMITMENT_RATE = COMMITMENT_WIDTH - CAPACITY

# Round kinds, in schedule order
LINEAR = "linear"
FULL = "full"
PARTIAL = "partial"

Round = Tuple[str, Optional[object]]


# --- Generic Round Functions ---

def matmul_m4(x: Sequence) -> List:
    """4x4 MDS block of the external linear layer."""
    t0 = x[0] + x[1]
    t1 = x[2] + x[3]
    t2 = x[1] + x[1] + t1
    t3 = x[3] + x[3] + t0
    t4 = t1 + t1 + t1 + t1 + t3
    t5 = t0 + t0 + t0 + t0 + t2
    return [t3 + t5, t5, t2 + t4, t4]


def matmul_external(state: Sequence) -> List:
    """External linear layer: M4 per 4-lane block, then column sums for width > 4."""
    width = len(state)
    out: List = []
    for i in range(0, width, 4):
        out.extend(matmul_m4(state[i:i + 4]))
    if width > 4:
        sums = [reduce(add, out[lane::4]) for lane in range(4)]
        out = [v + sums[i % 4] for i, v in enumerate(out)]
    return out


def matmul_internal(state: Sequence, diag: Sequence) -> List:
    """Internal linear layer: x[i] * D[i] + sum(x)."""
    total = reduce(add, state)
    return [v * d + total for v, d in zip(state, diag)]


def apply_round(kind: str, state: Sequence, constants, sbox: Callable, diag: Sequence) -> List:
    """Apply one scheduled round.

    Args:
        kind: LINEAR, FULL or PARTIAL
        state: Current state lanes
        constants: Per-lane round constants (FULL) or a single constant (PARTIAL)
        sbox: x -> x^7 in the caller's representation
        diag: Internal-layer diagonal in the caller's representation
    """
    if kind == LINEAR:
        return matmul_external(state)
    if kind == FULL:
        return matmul_external([sbox(x + c) for x, c in zip(state, constants)])
    if kind == PARTIAL:
        head = sbox(state[0] + constants)
        return matmul_internal([head] + list(state[1:]), diag)
    raise ValueError(f"unknown round kind {kind!r}")


def round_schedule(width: int) -> List[Round]:
    """Rounds of one permutation in order: initial linear layer, full, partial, full."""
    _check_width(width)
    rc = POSEIDON2_RC[width]
    half = ROUNDS_F // 2
    n_partial = ROUNDS_P[width]

    schedule: List[Round] = [(LINEAR, None)]
    for r in range(half):
        schedule.append((FULL, rc[r * width:(r + 1) * width]))
    for r in range(n_partial):
        schedule.append((PARTIAL, rc[half * width + r]))
    offset = half * width + n_partial
    for r in range(half):
        schedule.append((FULL, rc[offset + r * width:offset + (r + 1) * width]))
    return schedule


# --- Native Permutation ---

def _pow7(x: int) -> int:
    return pow(x, 7, GOLDILOCKS_PRIME)


def _check_width(width: int) -> None:
    if width not in SPONGE_WIDTHS:
        raise ValueError(f"width must be one of {SPONGE_WIDTHS}, got {width}")


def native_round(kind: str, state: Sequence[int], constants, width: int) -> List[int]:
    """One round over ints, reduced mod p."""
    out = apply_round(kind, state, constants, _pow7, POSEIDON2_DIAG[width])
    return [v % GOLDILOCKS_PRIME for v in out]


def poseidon2_hash(input_data: Sequence[int], width: int = 12) -> List[int]:
    """Full permutation of a `width`-lane state."""
    _check_width(width)
    if len(input_data) != width:
        raise ValueError(f"input_data must have {width} elements, got {len(input_data)}")

    state = [int(x) % GOLDILOCKS_PRIME for x in input_data]
    for kind, constants in round_schedule(width):
        state = native_round(kind, state, constants, width)
    return state


def hash_seq(input_data: Sequence[int], width: int = 12) -> List[int]:
    """Permutation truncated to CAPACITY elements (two-to-one compression)."""
    return poseidon2_hash(input_data, width)[:CAPACITY]


def linear_hash(input_data: Sequence[int], width: int = 8) -> List[int]:
    """
    Hash variable-length input with an overwrite-mode sponge.

    Inputs of at most CAPACITY elements are returned zero-padded rather than
    hashed. Longer inputs are absorbed `width - CAPACITY` at a time, with the
    previous output carried into the capacity lanes.
    """
    _check_width(width)
    rate = width - CAPACITY
    data = [int(x) % GOLDILOCKS_PRIME for x in input_data]
    if len(data) <= CAPACITY:
        return data + [0] * (CAPACITY - len(data))

    state = [0] * width
    for offset in range(0, len(data), rate):
        chunk = data[offset:offset + rate]
        capacity = state[:CAPACITY] if offset else [0] * CAPACITY
        state = poseidon2_hash(chunk + [0] * (rate - len(chunk)) + capacity, width)
    return state[:CAPACITY]


def sponge_digest(inputs: Sequence[int]) -> int:
    """
    Commitment sponge used by the block commitment circuit.

    Width 8, rate 4. The first capacity lane holds the input length, chunks
    are added into the rate lanes, and the digest is lane 0 of the final
    state. At least one permutation always runs.
    """
    values = [int(x) % GOLDILOCKS_PRIME for x in inputs]
    state = [0] * COMMITMENT_WIDTH
    state[COMMITMENT_RATE] = len(values)
    n_chunks = max(1, -(-len(values) // COMMITMENT_RATE))
    for p in range(n_chunks):
        chunk = values[p * COMMITMENT_RATE:(p + 1) * COMMITMENT_RATE]
        for i, v in enumerate(chunk):
            state[i] = (state[i] + v) % GOLDILOCKS_PRIME
        state = poseidon2_hash(state, COMMITMENT_WIDTH)
    return state[0]
