"""Runtime configuration.

Defaults are overridden by `SLOT_PROVER_*` environment variables, which the
command line in turn overrides.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from slot_prover.chain.client import DEFAULT_RPC_URL
from slot_prover.chain.tracker import DEFAULT_POLL_INTERVAL
from slot_prover.protocol.engine import DEFAULT_MERKLE_ARITY, DEFAULT_N_QUERIES, DEFAULT_SOUNDNESS_BITS
from slot_prover.store import DEFAULT_OUTPUT_DIR

ENV_PREFIX = "SLOT_PROVER_"

COMMITMENT_LEVELS = ("processed", "confirmed", "finalized")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ProverConfig:
    """
    Attributes:
        rpc_url: JSON-RPC endpoint of the node
        poll_interval: Seconds to wait when no new slot is available
        output_dir: Directory for proof bundles, cleared at start
        start_slot: last_slot at start; enumeration begins after it
        n_queries: Minimum transitions opened per block proof
        soundness_bits: Open more transitions until a single forged one escapes
            with probability at most 2^-soundness_bits; 0 keeps n_queries
        merkle_arity: Arity of the trace and constant Merkle trees
        request_timeout: Per-request timeout in seconds
        max_retries: Retries per RPC call before the node counts as unreachable
        commitment: Commitment level for slot and block queries
        log_level: Root logging level
    """
    rpc_url: str = DEFAULT_RPC_URL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    output_dir: str = DEFAULT_OUTPUT_DIR
    start_slot: int = 0
    n_queries: int = DEFAULT_N_QUERIES
    soundness_bits: int = DEFAULT_SOUNDNESS_BITS
    merkle_arity: int = DEFAULT_MERKLE_ARITY
    request_timeout: float = 30.0
    max_retries: int = 5
    commitment: str = "finalized"
    log_level: str = "INFO"

    def __post_init__(self):
        self.log_level = self.log_level.upper()
        if self.poll_interval < 0:
            raise ValueError(f"poll_interval must be >= 0, got {self.poll_interval}")
        if self.start_slot < 0:
            raise ValueError(f"start_slot must be >= 0, got {self.start_slot}")
        if self.n_queries < 1:
            raise ValueError(f"n_queries must be >= 1, got {self.n_queries}")
        if self.soundness_bits < 0:
            raise ValueError(f"soundness_bits must be >= 0, got {self.soundness_bits}")
        if self.merkle_arity not in [2, 3, 4]:
            raise ValueError(f"merkle_arity must be 2, 3, or 4, got {self.merkle_arity}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be > 0, got {self.request_timeout}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.commitment not in COMMITMENT_LEVELS:
            raise ValueError(f"commitment must be one of {COMMITMENT_LEVELS}, got {self.commitment!r}")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProverConfig":
        env = os.environ if environ is None else environ

        def get(name: str, default):
            return env.get(ENV_PREFIX + name, default)

        return cls(
            rpc_url=get("RPC_URL", DEFAULT_RPC_URL),
            poll_interval=float(get("POLL_INTERVAL", DEFAULT_POLL_INTERVAL)),
            output_dir=get("OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
            start_slot=int(get("START_SLOT", 0)),
            n_queries=int(get("N_QUERIES", DEFAULT_N_QUERIES)),
            soundness_bits=int(get("SOUNDNESS_BITS", DEFAULT_SOUNDNESS_BITS)),
            merkle_arity=int(get("MERKLE_ARITY", DEFAULT_MERKLE_ARITY)),
            request_timeout=float(get("REQUEST_TIMEOUT", 30.0)),
            max_retries=int(get("MAX_RETRIES", 5)),
            commitment=get("COMMITMENT", "finalized"),
            log_level=get("LOG_LEVEL", "INFO"),
        )
