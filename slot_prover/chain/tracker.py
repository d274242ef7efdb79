"""ChainTracker - the polling loop.

Each pass reads the chain tip, then walks pending slots in ascending order:
slots that failed on an earlier pass first, then every slot after
`last_slot` up to the tip. A slot is proved and persisted at most once per
run. A node-reported floor ("first available block") moves `last_slot`
forward and ends the pass early.
"""

import enum
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Set

from slot_prover.chain.client import ChainClient
from slot_prover.chain.errors import ChainError, FetchFailureKind, classify_fetch_error
from slot_prover.errors import SynthesisError
from slot_prover.store import ProofBundleStore

if TYPE_CHECKING:
    from slot_prover.pipeline import BlockProver

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0


class TrackerState(enum.Enum):
    IDLE = "idle"
    POLLING = "polling"
    ENUMERATING = "enumerating"
    RESYNCING = "resyncing"


class SlotOutcome(enum.Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    RESYNC = "resync"
    FAILED = "failed"


@dataclass
class PassReport:
    """
    What one poll pass did.

    Attributes:
        start_slot: last_slot when the pass began
        tip: Chain tip read at the start of the pass
        outcomes: Outcome per attempted slot, in attempt order
        resync_floor: Floor the pass resynced to, if any
        interrupted: True if a stop request ended the pass
    """
    start_slot: int
    tip: int
    outcomes: Dict[int, SlotOutcome] = field(default_factory=dict)
    resync_floor: Optional[int] = None
    interrupted: bool = False

    @property
    def idle(self) -> bool:
        """No new slots were available."""
        return self.tip <= self.start_slot

    def slots(self, outcome: SlotOutcome) -> List[int]:
        return [slot for slot, o in self.outcomes.items() if o is outcome]


class ChainTracker:
    """
    Owns the tracker state and drives client, prover and store.

    Attributes:
        last_slot: Highest slot the tracker has moved past
        seen_slots: Slots proved and persisted in this run
        skipped_slots: Slots the node reported as having no block
        retry_slots: Slots that failed and are attempted again next pass
        state: Current TrackerState
    """

    def __init__(
        self,
        client: ChainClient,
        prover: "BlockProver",
        store: ProofBundleStore,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        start_slot: int = 0,
        stop_event: Optional[threading.Event] = None,
    ):
        self.client = client
        self.prover = prover
        self.store = store
        self.poll_interval = poll_interval
        self.stop_event = stop_event if stop_event is not None else threading.Event()

        self.state = TrackerState.IDLE
        self.last_slot = start_slot
        self.seen_slots: Set[int] = set()
        self.skipped_slots: Set[int] = set()
        self.retry_slots: Set[int] = set()

    def stop(self) -> None:
        """Request shutdown; honoured at the next slot boundary."""
        self.stop_event.set()

    # --- Loop ---

    def run(self, max_passes: Optional[int] = None) -> int:
        """Poll until stopped, or for at most `max_passes` passes. Returns the pass count."""
        passes = 0
        while not self.stop_event.is_set():
            if max_passes is not None and passes >= max_passes:
                break
            report = self.poll_once()
            passes += 1
            if report.idle:
                self.stop_event.wait(self.poll_interval)
        self.state = TrackerState.IDLE
        return passes

    def pending_slots(self, tip: int) -> Iterator[int]:
        """Retries at or below last_slot, then (last_slot, tip], lazily."""
        retries = sorted(s for s in self.retry_slots if s <= self.last_slot)
        return itertools.chain(retries, range(self.last_slot + 1, tip + 1))

    def poll_once(self) -> PassReport:
        """One pass: read the tip and walk every pending slot."""
        self.state = TrackerState.POLLING
        tip = self.client.current_slot()
        report = PassReport(start_slot=self.last_slot, tip=tip)
        if report.idle:
            logger.debug("No new slots (tip %d, last %d)", tip, self.last_slot)

        self.state = TrackerState.ENUMERATING
        for slot in self.pending_slots(tip):
            if self.stop_event.is_set():
                report.interrupted = True
                break
            if slot in self.seen_slots:
                self.retry_slots.discard(slot)
                continue
            outcome = self._process_slot(slot, report)
            report.outcomes[slot] = outcome
            if outcome is SlotOutcome.RESYNC:
                break

        if report.resync_floor is None and not report.interrupted:
            self.last_slot = max(self.last_slot, tip)
        self.state = TrackerState.IDLE
        return report

    # --- Per Slot ---

    def _process_slot(self, slot: int, report: PassReport) -> SlotOutcome:
        try:
            block = self.client.block_at(slot)
        except ChainError as e:
            return self._fetch_failed(slot, e, report)

        try:
            bundle = self.prover.prove_block(slot, block)
        except SynthesisError as e:
            logger.error("Proof generation failed for slot %d: %s", slot, e)
            self.retry_slots.add(slot)
            return SlotOutcome.FAILED

        self.store.persist(bundle)
        self.seen_slots.add(slot)
        self.retry_slots.discard(slot)
        return SlotOutcome.PROCESSED

    def _fetch_failed(self, slot: int, error: ChainError, report: PassReport) -> SlotOutcome:
        failure = classify_fetch_error(error)

        if failure.kind is FetchFailureKind.RESYNC:
            floor = failure.first_available
            if floor > self.last_slot:
                self._resync(slot, floor)
                report.resync_floor = floor
                return SlotOutcome.RESYNC
            logger.warning(
                "Slot %d unavailable but first available block %d is not past last slot %d",
                slot, floor, self.last_slot,
            )
            if slot < floor:
                return self._skip(slot)
        elif failure.kind is FetchFailureKind.SKIPPED:
            return self._skip(slot)

        logger.error("Error fetching block %d: %s", slot, error)
        self.retry_slots.add(slot)
        return SlotOutcome.FAILED

    def _skip(self, slot: int) -> SlotOutcome:
        logger.info("Slot %d has no block; skipping", slot)
        self.skipped_slots.add(slot)
        self.retry_slots.discard(slot)
        return SlotOutcome.SKIPPED

    def _resync(self, slot: int, floor: int) -> None:
        self.state = TrackerState.RESYNCING
        logger.warning("Slot %d unavailable; resyncing to first available block %d", slot, floor)
        self.last_slot = floor
        self.retry_slots = {s for s in self.retry_slots if s > floor}
