"""Proof generation for commitment circuits."""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from slot_prover.circuit.base import ConstraintContext, TraceData
from slot_prover.circuit.commitment import CommitmentCircuit
from slot_prover.circuit.layout import CircuitShape, instance_columns
from slot_prover.errors import SynthesisError
from slot_prover.primitives.merkle_tree import MerkleTree
from slot_prover.primitives.transcript import Transcript
from slot_prover.protocol.params import ProvingParameters, random_elements, setup, table_rows
from slot_prover.protocol.proof import (
    PUBLIC_NAMES, CommitmentProof, InclusionProof, RowOpening, proof_size,
)

logger = logging.getLogger(__name__)

# --- Module Constants ---

DEFAULT_N_QUERIES = 16
DEFAULT_MERKLE_ARITY = 4
DEFAULT_SOUNDNESS_BITS = 0
DEFAULT_MAX_CACHED_PARAMS = 32


# --- Helper Functions ---

def _open_row(tree: MerkleTree, row: int) -> RowOpening:
    query = tree.get_query_proof(row)
    return RowOpening(row=row, values=list(query.v), path=query.mp)


def check_constraints(data: TraceData, shape: CircuitShape) -> None:
    """Evaluate every constraint over the trace.

    Raises:
        SynthesisError: Naming the first failing constraint and row
    """
    ctx = ConstraintContext(data)
    for name, values in CommitmentCircuit.constraints(ctx, shape):
        failing = np.flatnonzero(values.view(np.ndarray))
        if failing.size:
            raise SynthesisError(
                f"constraint {name} is not satisfied at row {int(failing[0])}"
                f" ({failing.size} rows fail)"
            )


def required_queries(n_transitions: int, soundness_bits: int) -> int:
    """Distinct transition queries needed so that a single forged transition
    escapes with probability at most 2^-soundness_bits."""
    return n_transitions - (n_transitions >> soundness_bits)


def escape_probability(n_transitions: int, n_queries: int) -> float:
    """Chance that q distinct queries miss a single forged transition: (T - q) / T."""
    q = min(n_queries, n_transitions)
    return (n_transitions - q) / n_transitions


# --- Results ---

@dataclass
class ProofResult:
    """A commitment proof plus the committed trace it was made from.

    Attributes:
        proof: The block-level commitment proof
        shape: Circuit shape of the proof
        tree: Merkle tree over the blinded trace rows
    """
    proof: CommitmentProof
    shape: CircuitShape
    tree: MerkleTree

    def open_input(self, index: int) -> InclusionProof:
        """Inclusion proof for absorbed input `index` (0 is the block commitment)."""
        row, _ = self.shape.input_position(index)
        return InclusionProof(
            params_id=list(self.proof.params_id),
            trace_root=list(self.proof.trace_root),
            input_index=index,
            opening=_open_row(self.tree, row),
        )


# --- Engine ---

class ProofEngine:
    """
    Setup and proving for commitment circuits.

    Setup runs once per padded trace size and is kept in a bounded cache,
    least recently used first out. An evicted size gets a fresh setup and a
    new `params_id` on its next use; every proof names the parameters it was
    made with. Proofs are randomized: every trace row is committed together
    with a fresh blinding element.

    Soundness is that of a spot check, not a low-degree argument. The
    transcript picks q distinct transitions out of the T = n_rows - 1 in the
    trace and opens both rows of each. A trace with f forged transitions
    survives with probability C(T - f, q) / C(T, q) <= (1 - f/T)^q, which is
    (T - q) / T for a single forged transition. `soundness_bits` raises q per
    proof until that single-forgery bound is at most 2^-soundness_bits; at
    log2(T) bits or more every row is opened.

    Attributes:
        n_queries: Minimum transitions opened per proof
        arity: Merkle tree arity
        soundness_bits: Target for the single-forgery escape bound; 0 uses n_queries as is
        max_cached_params: Parameter sets kept before the least recently used is dropped
        rng: Optional generator for reproducible randomness; `secrets` otherwise
    """

    def __init__(
        self,
        n_queries: int = DEFAULT_N_QUERIES,
        arity: int = DEFAULT_MERKLE_ARITY,
        rng: Optional[np.random.Generator] = None,
        soundness_bits: int = DEFAULT_SOUNDNESS_BITS,
        max_cached_params: int = DEFAULT_MAX_CACHED_PARAMS,
    ):
        if n_queries < 1:
            raise ValueError(f"n_queries must be >= 1, got {n_queries}")
        if arity not in [2, 3, 4]:
            raise ValueError(f"arity must be 2, 3, or 4, got {arity}")
        if soundness_bits < 0:
            raise ValueError(f"soundness_bits must be >= 0, got {soundness_bits}")
        if max_cached_params < 1:
            raise ValueError(f"max_cached_params must be >= 1, got {max_cached_params}")
        self.n_queries = n_queries
        self.arity = arity
        self.soundness_bits = soundness_bits
        self.max_cached_params = max_cached_params
        self.rng = rng
        self._params: "OrderedDict[int, ProvingParameters]" = OrderedDict()

    @property
    def cached_shapes(self) -> List[int]:
        """Padded permutation counts with cached parameters."""
        return sorted(self._params)

    def setup(self, circuit: CommitmentCircuit) -> ProvingParameters:
        """Parameters for the circuit's padded shape, generated on first use."""
        shape = circuit.shape
        key = shape.padded_blocks
        params = self._params.get(key)
        if params is not None:
            self._params.move_to_end(key)
            return params

        logger.info(
            "Generating parameters for %d permutations (%d transactions)",
            key, shape.n_transactions,
        )
        params = setup(shape, self.arity, self.rng)
        self._params[key] = params
        while len(self._params) > self.max_cached_params:
            evicted, _ = self._params.popitem(last=False)
            logger.warning("Parameter cache full; dropped parameters for %d permutations", evicted)
        return params

    def queries_for(self, n_rows: int) -> int:
        """Distinct transitions opened for a trace of n_rows."""
        n_transitions = n_rows - 1
        wanted = max(self.n_queries, required_queries(n_transitions, self.soundness_bits))
        return min(wanted, n_transitions)

    def prove(self, params: ProvingParameters, circuit: CommitmentCircuit) -> ProofResult:
        """
        Prove a witnessed circuit.

        Raises:
            ValueError: If the circuit's padded shape differs from the parameters'
            SynthesisError: If the witness is missing or a constraint fails
        """
        shape = circuit.shape
        if not params.serves(shape):
            raise ValueError(
                f"circuit with {shape.n_transactions} transactions needs {shape.padded_blocks}"
                f" permutations but parameters were generated for {params.padded_blocks}"
            )

        columns = circuit.generate_trace()
        publics = circuit.publics()
        constants = {**params.constants, **instance_columns(shape)}
        check_constraints(TraceData(columns, constants, publics), shape)

        # Commit blinded rows
        rows = table_rows(columns)
        blinds = random_elements(len(rows), self.rng)
        tree = MerkleTree(self.arity)
        tree.merkelize([row + [blind] for row, blind in zip(rows, blinds)])
        trace_root = tree.get_root()

        public_values = {name: int(publics[name]) for name in PUBLIC_NAMES}
        transcript = Transcript(self.arity)
        transcript.put(params.params_id)
        transcript.put([shape.n_transactions])
        transcript.put([public_values[name] for name in PUBLIC_NAMES])
        transcript.put(trace_root)

        n_queries = self.queries_for(shape.n_rows)
        openings = [_open_row(tree, r) for r in self._query_rows(transcript, shape.n_rows, n_queries)]
        proof = CommitmentProof(
            params_id=list(params.params_id),
            n_transactions=shape.n_transactions,
            publics=public_values,
            trace_root=trace_root,
            openings=openings,
        )

        n_words, n_bytes = proof_size(proof)
        logger.debug(
            "Proved %d rows, opened %d (%d transitions, single-forgery escape %.3g),"
            " proof is %d words (%d bytes)",
            shape.n_rows, len(openings), n_queries,
            escape_probability(shape.n_rows - 1, n_queries), n_words, n_bytes,
        )
        return ProofResult(proof=proof, shape=shape, tree=tree)

    @staticmethod
    def _query_rows(transcript: Transcript, n_rows: int, n_queries: int) -> List[int]:
        """Rows q and q+1 for n_queries distinct transitions q, plus the first and last rows."""
        n_transitions = n_rows - 1
        if n_queries >= n_transitions:
            return list(range(n_rows))

        n_bits = max(n_transitions.bit_length(), 1)
        chosen = set()
        while len(chosen) < n_queries:
            for sample in transcript.get_permutations(n_queries - len(chosen), n_bits):
                chosen.add(sample % n_transitions)

        rows = {0, n_rows - 1}
        for q in chosen:
            rows.update((q, q + 1))
        return sorted(rows)
