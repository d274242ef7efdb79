"""Chain access and the slot tracker."""

from slot_prover.chain.client import DEFAULT_RPC_URL, ChainClient, SolanaRpcClient
from slot_prover.chain.errors import (
    ChainError,
    ChainUnavailable,
    FetchFailure,
    FetchFailureKind,
    RpcError,
    SlotUnavailable,
    classify_fetch_error,
    mentions_unavailable_slot,
    parse_first_available_block,
)
from slot_prover.chain.models import Block, Transaction
from slot_prover.chain.tracker import ChainTracker, PassReport, SlotOutcome, TrackerState

__all__ = [
    # Client
    "DEFAULT_RPC_URL",
    "ChainClient",
    "SolanaRpcClient",
    # Errors
    "ChainError",
    "ChainUnavailable",
    "FetchFailure",
    "FetchFailureKind",
    "RpcError",
    "SlotUnavailable",
    "classify_fetch_error",
    "mentions_unavailable_slot",
    "parse_first_available_block",
    # Models
    "Block",
    "Transaction",
    # Tracker
    "ChainTracker",
    "PassReport",
    "SlotOutcome",
    "TrackerState",
]
