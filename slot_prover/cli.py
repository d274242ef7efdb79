"""Command line entry point: `slot-prover`."""

import argparse
import dataclasses
import logging
import signal
import sys
import threading
from typing import List, Optional

from slot_prover.chain.client import SolanaRpcClient
from slot_prover.chain.errors import ChainError, ChainUnavailable
from slot_prover.chain.tracker import ChainTracker
from slot_prover.config import COMMITMENT_LEVELS, LOG_LEVELS, ProverConfig
from slot_prover.pipeline import BlockProver
from slot_prover.protocol.engine import ProofEngine
from slot_prover.store import ProofBundleStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='slot-prover',
        description='Follow a Solana node and write a commitment proof bundle for every block'
    )
    parser.add_argument('--rpc-url', type=str, help='JSON-RPC endpoint of the node')
    parser.add_argument('--poll-interval', type=float, help='Seconds between polls when no new slot is available')
    parser.add_argument('--output-dir', type=str, help='Directory for proof bundles (cleared at start)')
    parser.add_argument('--start-slot', type=int, help='Begin after this slot')
    parser.add_argument('--n-queries', type=int, help='Minimum transitions opened per block proof')
    parser.add_argument(
        '--soundness-bits',
        type=int,
        help='Open enough transitions that a single forged one escapes with probability at most 2^-N'
    )
    parser.add_argument('--merkle-arity', type=int, choices=[2, 3, 4], help='Merkle tree arity')
    parser.add_argument('--request-timeout', type=float, help='Per-request timeout in seconds')
    parser.add_argument('--max-retries', type=int, help='Retries per RPC call')
    parser.add_argument('--commitment', choices=COMMITMENT_LEVELS, help='Commitment level')
    parser.add_argument('--log-level', type=str.upper, choices=LOG_LEVELS, help='Logging level')
    parser.add_argument(
        '--max-passes',
        type=int,
        default=None,
        help='Stop after this many poll passes (default: run until interrupted)'
    )
    return parser


def load_config(args: argparse.Namespace) -> ProverConfig:
    """Environment config with command line overrides applied."""
    config = ProverConfig.from_env()
    overrides = {
        f.name: getattr(args, f.name)
        for f in dataclasses.fields(ProverConfig)
        if getattr(args, f.name, None) is not None
    }
    return dataclasses.replace(config, **overrides)


def install_signal_handlers(tracker: ChainTracker) -> None:
    def handle(signum, _frame):
        logger.info("Received %s; stopping after the current slot", signal.Signals(signum).name)
        tracker.stop()

    signal.signal(signal.SIGINT, handle)
    signal.signal(signal.SIGTERM, handle)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    store = ProofBundleStore(config.output_dir)
    store.reset()

    client = SolanaRpcClient(
        url=config.rpc_url,
        timeout=config.request_timeout,
        max_retries=config.max_retries,
        commitment=config.commitment,
    )
    engine = ProofEngine(
        n_queries=config.n_queries,
        arity=config.merkle_arity,
        soundness_bits=config.soundness_bits,
    )
    tracker = ChainTracker(
        client,
        BlockProver(engine),
        store,
        poll_interval=config.poll_interval,
        start_slot=config.start_slot,
        stop_event=threading.Event(),
    )
    install_signal_handlers(tracker)

    logger.info("Tracking %s from slot %d, writing to %s", config.rpc_url, config.start_slot, store.directory)
    try:
        passes = tracker.run(max_passes=args.max_passes)
    except ChainUnavailable as e:
        logger.error("Node unreachable: %s", e)
        return 1
    except ChainError as e:
        logger.error("Chain error: %s", e)
        return 1
    logger.info(
        "Stopped after %d passes: %d blocks proved, last slot %d",
        passes, len(tracker.seen_slots), tracker.last_slot,
    )
    return 0


if __name__ == '__main__':
    sys.exit(main())
