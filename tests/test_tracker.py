"""Tests for ChainTracker against a scripted chain."""

import json

import pytest

from conftest import FakeChainClient, make_block
from slot_prover.chain.errors import CLEANED_UP, SKIPPED, ChainError, SlotUnavailable
from slot_prover.chain.tracker import ChainTracker, SlotOutcome, TrackerState
from slot_prover.encoding import FieldEncoder, sha256_digest
from slot_prover.errors import SynthesisError
from slot_prover.pipeline import BlockProver
from slot_prover.protocol.proof import CommitmentProof, InclusionProof, from_hex


def _tracker(client, prover, store, start_slot):
    return ChainTracker(client, prover, store, poll_interval=0, start_slot=start_slot)


def _load(store, slot):
    return json.loads(store.path_for(slot).read_text(encoding="utf-8"))


class FlakyProver:
    """Fails synthesis for chosen slots a fixed number of times."""

    def __init__(self, inner, failures):
        self.inner = inner
        self.failures = dict(failures)

    def prove_block(self, slot, block):
        if self.failures.get(slot, 0) > 0:
            self.failures[slot] -= 1
            raise SynthesisError(f"no witness for slot {slot}")
        return self.inner.prove_block(slot, block)


class TestGaplessRange:

    def test_every_slot_yields_one_bundle(self, prover, store):
        client = FakeChainClient(tips=15)
        tracker = _tracker(client, prover, store, start_slot=10)

        report = tracker.poll_once()

        assert client.fetched == [11, 12, 13, 14, 15]
        assert report.slots(SlotOutcome.PROCESSED) == [11, 12, 13, 14, 15]
        assert tracker.seen_slots == {11, 12, 13, 14, 15}
        assert tracker.last_slot == 15
        assert tracker.state is TrackerState.IDLE
        assert sorted(p.name for p in store.directory.iterdir()) == [
            f"block_proof_{s}.json" for s in range(11, 16)
        ]

    def test_seen_slots_are_not_reprocessed(self, prover, store):
        client = FakeChainClient(tips=12)
        tracker = _tracker(client, prover, store, start_slot=10)
        tracker.poll_once()

        tracker.last_slot = 10
        report = tracker.poll_once()

        assert client.fetched == [11, 12]
        assert report.outcomes == {}

    def test_idle_pass_fetches_nothing(self, prover, store):
        client = FakeChainClient(tips=10)
        tracker = _tracker(client, prover, store, start_slot=10)

        report = tracker.poll_once()

        assert report.idle
        assert client.fetched == []
        assert tracker.last_slot == 10


class TestBundleContents:

    def test_multi_signature_block(self, prover, store):
        """Each signature becomes its own transaction entry, in block order."""
        block = make_block("abcd", ["sigA"], ["sigB1", "sigB2"])
        client = FakeChainClient(tips=10, blocks={10: block})
        tracker = _tracker(client, prover, store, start_slot=9)

        tracker.poll_once()

        bundle = _load(store, 10)
        assert bundle["slot"] == 10
        assert bundle["block_hash"] == "abcd"
        assert [tx["transaction_hash"] for tx in bundle["transactions"]] == ["sigA", "sigB1", "sigB2"]

        encoder = FieldEncoder()
        for i, tx in enumerate(bundle["transactions"]):
            inclusion = from_hex(tx["proof"])
            assert isinstance(inclusion, InclusionProof)
            assert inclusion.input_index == i + 1
            assert inclusion.value == int(encoder.encode(tx["transaction_hash"]))

        block_proof = from_hex(bundle["block_proof"])
        assert isinstance(block_proof, CommitmentProof)
        assert block_proof.n_transactions == 3
        assert block_proof.publics["block_commitment"] == int(encoder.encode("abcd"))

    def test_zero_encoded_hash_does_not_halt_enumeration(self, engine, store):
        def digest(data):
            return b"\xff" * 32 if data == b"sigBad" else sha256_digest(data)

        prover = BlockProver(engine, FieldEncoder(digest=digest))
        client = FakeChainClient(tips=12, blocks={11: make_block("h11", ["sigBad", "sigOK"])})
        tracker = _tracker(client, prover, store, start_slot=10)

        report = tracker.poll_once()

        assert report.slots(SlotOutcome.PROCESSED) == [11, 12]
        bundle = _load(store, 11)
        assert [tx["transaction_hash"] for tx in bundle["transactions"]] == ["sigBad", "sigOK"]
        assert from_hex(bundle["transactions"][0]["proof"]).value == 0

    def test_empty_block_still_gets_block_proof(self, prover, store):
        client = FakeChainClient(tips=11, blocks={11: make_block("empty")})
        tracker = _tracker(client, prover, store, start_slot=10)

        tracker.poll_once()

        bundle = _load(store, 11)
        assert bundle["transactions"] == []
        assert from_hex(bundle["block_proof"]).n_transactions == 0


class TestResync:

    def test_cleaned_up_block_resyncs_to_floor(self, prover, store):
        error = ChainError("Block cleaned up, does not exist on node. First available block: 25, retry later")
        client = FakeChainClient(tips=30, blocks={20: error})
        tracker = _tracker(client, prover, store, start_slot=19)

        report = tracker.poll_once()

        assert client.fetched == [20]
        assert report.outcomes == {20: SlotOutcome.RESYNC}
        assert report.resync_floor == 25
        assert tracker.last_slot == 25
        assert not tracker.seen_slots & {21, 22, 23, 24}
        assert 20 not in tracker.retry_slots

        client.fetched.clear()
        tracker.poll_once()
        assert client.fetched == [26, 27, 28, 29, 30]
        assert tracker.last_slot == 30

    def test_typed_unavailable_slot_resyncs(self, prover, store):
        client = FakeChainClient(tips=30, blocks={20: SlotUnavailable(20, CLEANED_UP, 57)})
        tracker = _tracker(client, prover, store, start_slot=19)

        tracker.poll_once()

        assert tracker.last_slot == 57

    def test_typed_error_without_floor_resyncs_from_node_message(self, prover, store):
        error = SlotUnavailable(
            20, CLEANED_UP, None,
            "Block 20 cleaned up, does not exist on node. First available block: 25,",
        )
        client = FakeChainClient(tips=30, blocks={20: error})
        tracker = _tracker(client, prover, store, start_slot=19)

        report = tracker.poll_once()

        assert report.outcomes == {20: SlotOutcome.RESYNC}
        assert tracker.last_slot == 25
        assert 20 not in tracker.skipped_slots

    def test_resync_drops_retries_below_floor(self, prover, store):
        client = FakeChainClient(tips=[13, 20], blocks={12: ChainError("connection reset")})
        tracker = _tracker(client, prover, store, start_slot=10)
        tracker.poll_once()
        assert tracker.retry_slots == {12}

        client.blocks[12] = ChainError("connection reset")
        client.blocks[14] = SlotUnavailable(14, CLEANED_UP, 15)
        tracker.poll_once()

        assert tracker.retry_slots == set()
        assert tracker.last_slot == 15

    def test_floor_behind_last_slot_never_moves_backward(self, prover, store):
        error = ChainError("Slot 21 was skipped, First available block: 15, node restarted")
        client = FakeChainClient(tips=22, blocks={21: error})
        tracker = _tracker(client, prover, store, start_slot=20)

        report = tracker.poll_once()

        assert report.outcomes == {21: SlotOutcome.FAILED, 22: SlotOutcome.PROCESSED}
        assert report.resync_floor is None
        assert tracker.retry_slots == {21}
        assert tracker.last_slot == 22

    def test_unparseable_floor_falls_through_to_retry(self, prover, store):
        client = FakeChainClient(tips=12, blocks={11: ChainError("Block 11 cleaned up, First available block: ?")})
        tracker = _tracker(client, prover, store, start_slot=10)

        report = tracker.poll_once()

        assert report.outcomes == {11: SlotOutcome.FAILED, 12: SlotOutcome.PROCESSED}
        assert tracker.last_slot == 12


class TestFailures:

    def test_unclassified_error_is_retried_next_pass(self, prover, store):
        client = FakeChainClient(tips=[13, 14], blocks={12: ChainError("connection reset")})
        tracker = _tracker(client, prover, store, start_slot=10)

        first = tracker.poll_once()
        assert first.outcomes == {11: SlotOutcome.PROCESSED, 12: SlotOutcome.FAILED, 13: SlotOutcome.PROCESSED}
        assert tracker.last_slot == 13
        assert tracker.retry_slots == {12}
        assert not store.path_for(12).exists()

        del client.blocks[12]
        client.fetched.clear()
        second = tracker.poll_once()

        assert client.fetched == [12, 14]
        assert second.slots(SlotOutcome.PROCESSED) == [12, 14]
        assert tracker.retry_slots == set()
        assert store.path_for(12).exists()

    def test_skipped_slot_is_recorded_and_not_retried(self, prover, store):
        client = FakeChainClient(tips=[13, 14], blocks={12: SlotUnavailable(12, SKIPPED)})
        tracker = _tracker(client, prover, store, start_slot=10)

        report = tracker.poll_once()
        assert report.outcomes[12] is SlotOutcome.SKIPPED
        assert tracker.skipped_slots == {12}
        assert tracker.retry_slots == set()

        client.fetched.clear()
        tracker.poll_once()
        assert client.fetched == [14]

    def test_synthesis_failure_is_isolated_and_retried(self, prover, store):
        client = FakeChainClient(tips=[12, 12])
        tracker = _tracker(client, FlakyProver(prover, {11: 1}), store, start_slot=10)

        first = tracker.poll_once()
        assert first.outcomes == {11: SlotOutcome.FAILED, 12: SlotOutcome.PROCESSED}
        assert not store.path_for(11).exists()

        second = tracker.poll_once()
        assert second.outcomes == {11: SlotOutcome.PROCESSED}
        assert store.path_for(11).exists()

    def test_persistence_error_propagates(self, prover, store):
        class BrokenStore:
            def persist(self, bundle):
                raise OSError("disk full")

        tracker = _tracker(FakeChainClient(tips=11), prover, BrokenStore(), start_slot=10)
        with pytest.raises(OSError, match="disk full"):
            tracker.poll_once()
        assert tracker.seen_slots == set()


class TestRun:

    def test_run_bounded_passes(self, prover, store):
        client = FakeChainClient(tips=[11, 11, 12])
        tracker = _tracker(client, prover, store, start_slot=10)

        assert tracker.run(max_passes=3) == 3
        assert tracker.seen_slots == {11, 12}
        assert tracker.state is TrackerState.IDLE

    def test_stop_before_run(self, prover, store):
        client = FakeChainClient(tips=20)
        tracker = _tracker(client, prover, store, start_slot=10)
        tracker.stop()

        assert tracker.run() == 0
        assert client.fetched == []

    def test_stop_takes_effect_at_slot_boundary(self, prover, store):
        client = FakeChainClient(tips=15)
        tracker = _tracker(client, prover, store, start_slot=10)

        class StoppingProver:
            def prove_block(self, slot, block):
                tracker.stop()
                return prover.prove_block(slot, block)

        tracker.prover = StoppingProver()
        report = tracker.poll_once()

        assert report.interrupted
        assert tracker.seen_slots == {11}
        assert store.path_for(11).exists()
        assert tracker.last_slot == 10
