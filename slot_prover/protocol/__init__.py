"""Protocol - setup, proof generation and proof serialization."""

from slot_prover.protocol.engine import (
    DEFAULT_MERKLE_ARITY,
    DEFAULT_N_QUERIES,
    DEFAULT_SOUNDNESS_BITS,
    ProofEngine,
    ProofResult,
    check_constraints,
    escape_probability,
    required_queries,
)
from slot_prover.protocol.params import ProvingParameters, random_elements, setup
from slot_prover.protocol.proof import (
    CommitmentProof,
    InclusionProof,
    RowOpening,
    from_bytes,
    from_hex,
    to_bytes,
    to_hex,
)

__all__ = [
    # Engine
    "DEFAULT_MERKLE_ARITY",
    "DEFAULT_N_QUERIES",
    "DEFAULT_SOUNDNESS_BITS",
    "ProofEngine",
    "ProofResult",
    "check_constraints",
    "escape_probability",
    "required_queries",
    # Setup
    "ProvingParameters",
    "random_elements",
    "setup",
    # Proofs
    "CommitmentProof",
    "InclusionProof",
    "RowOpening",
    "from_bytes",
    "from_hex",
    "to_bytes",
    "to_hex",
]
