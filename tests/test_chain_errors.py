"""Tests for chain error parsing and classification."""

import pytest

from slot_prover.chain.errors import (
    CLEANED_UP,
    SKIPPED,
    ChainError,
    FetchFailureKind,
    RpcError,
    SlotUnavailable,
    classify_fetch_error,
    mentions_unavailable_slot,
    parse_first_available_block,
)


class TestParseFirstAvailableBlock:

    def test_parses_number_before_comma(self):
        assert parse_first_available_block("Block cleaned up, First available block: 57, retry") == 57

    def test_large_slot(self):
        assert parse_first_available_block("First available block: 312345678,") == 312345678

    @pytest.mark.parametrize("text", [
        "",
        "First available block: 57",
        "First available block: ,",
        "First available block: abc,",
        "first available block: 57,",
        "First available block:57,",
        "First available block: -5,",
    ])
    def test_malformed_returns_none(self, text):
        assert parse_first_available_block(text) is None


class TestMentionsUnavailableSlot:

    @pytest.mark.parametrize("text", [
        "Slot 20 was skipped, or missing due to ledger jump",
        "slot was skipped",
        "Block 20 cleaned up, does not exist on node",
        "Block cleaned up",
        "block was cleaned up",
    ])
    def test_matches(self, text):
        assert mentions_unavailable_slot(text)

    @pytest.mark.parametrize("text", [
        "connection reset by peer",
        "Block not available for slot 20",
        "timeslot was skipped",
    ])
    def test_does_not_match(self, text):
        assert not mentions_unavailable_slot(text)


class TestClassifyFetchError:

    def test_typed_with_floor_resyncs(self):
        failure = classify_fetch_error(SlotUnavailable(20, CLEANED_UP, 25))
        assert failure.kind is FetchFailureKind.RESYNC
        assert failure.first_available == 25

    def test_typed_without_floor_skips(self):
        failure = classify_fetch_error(SlotUnavailable(20, SKIPPED))
        assert failure.kind is FetchFailureKind.SKIPPED

    def test_typed_without_floor_uses_node_message(self):
        error = SlotUnavailable(
            20, CLEANED_UP, None,
            "Block 20 cleaned up, does not exist on node. First available block: 25,",
        )
        failure = classify_fetch_error(error)
        assert failure.kind is FetchFailureKind.RESYNC
        assert failure.first_available == 25

    def test_text_fallback_resyncs(self):
        error = ChainError("Block cleaned up; First available block: 25, try later")
        failure = classify_fetch_error(error)
        assert failure.kind is FetchFailureKind.RESYNC
        assert failure.first_available == 25

    def test_text_without_floor_is_unclassified(self):
        failure = classify_fetch_error(ChainError("Slot 20 was skipped"))
        assert failure.kind is FetchFailureKind.UNCLASSIFIED

    def test_floor_without_condition_is_unclassified(self):
        failure = classify_fetch_error(ChainError("First available block: 25, but something else"))
        assert failure.kind is FetchFailureKind.UNCLASSIFIED

    def test_rpc_error_is_unclassified(self):
        failure = classify_fetch_error(RpcError(-32004, "Block not available for slot 20"))
        assert failure.kind is FetchFailureKind.UNCLASSIFIED

    def test_slot_unavailable_message(self):
        error = SlotUnavailable(20, CLEANED_UP, 25)
        assert mentions_unavailable_slot(str(error))
        assert parse_first_available_block(str(error)) == 25
