"""slot_prover - commitment proofs for every block of a Solana node."""

from slot_prover.bundle import BlockProof, TransactionProof
from slot_prover.chain import ChainClient, ChainTracker, SolanaRpcClient
from slot_prover.config import ProverConfig
from slot_prover.encoding import FieldEncoder
from slot_prover.errors import MissingWitness, SynthesisError
from slot_prover.pipeline import BlockProver
from slot_prover.protocol import ProofEngine
from slot_prover.store import ProofBundleStore

__version__ = "0.1.0"

__all__ = [
    "BlockProof",
    "BlockProver",
    "ChainClient",
    "ChainTracker",
    "FieldEncoder",
    "MissingWitness",
    "ProofBundleStore",
    "ProofEngine",
    "ProverConfig",
    "SolanaRpcClient",
    "SynthesisError",
    "TransactionProof",
]
