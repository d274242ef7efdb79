"""Tests for FieldEncoder."""

import logging

import pytest

from slot_prover.encoding import FieldEncoder, sha256_digest
from slot_prover.primitives.field import FF, FIELD_BYTES, GOLDILOCKS_PRIME


class TestFieldEncoder:
    """Encoding of hash strings as field elements."""

    def test_encode_is_deterministic(self):
        """Repeated calls with the same input give the same element."""
        encoder = FieldEncoder()
        assert encoder.encode("sigA") == encoder.encode("sigA")
        assert FieldEncoder().encode("sigA") == encoder.encode("sigA")

    def test_encode_reads_first_bytes_little_endian(self):
        """The element is the little-endian reading of the digest prefix."""
        expected = int.from_bytes(sha256_digest(b"abcd")[:FIELD_BYTES], "little")
        encoder = FieldEncoder()
        assert encoder.repr_of("abcd") == expected
        if expected < GOLDILOCKS_PRIME:
            assert int(encoder.encode("abcd")) == expected

    def test_distinct_inputs_encode_differently(self):
        encoder = FieldEncoder()
        assert encoder.encode("sigB1") != encoder.encode("sigB2")

    def test_out_of_range_digest_encodes_as_zero(self, caplog):
        """A non-canonical reading falls back to zero and logs a warning."""
        encoder = FieldEncoder(digest=lambda data: b"\xff" * 32)

        with caplog.at_level(logging.WARNING, logger="slot_prover.encoding"):
            value = encoder.encode("collides")

        assert value == FF(0)
        assert not encoder.is_canonical_digest("collides")
        assert any("outside the field" in r.getMessage() for r in caplog.records)

    def test_zero_fallback_distinguishable_from_genuine_zero(self):
        """A digest that reads as zero is canonical; the fallback is not."""
        genuine = FieldEncoder(digest=lambda data: b"\x00" * 32)
        fallback = FieldEncoder(digest=lambda data: b"\xff" * 32)

        assert genuine.encode("x") == fallback.encode("x") == FF(0)
        assert genuine.is_canonical_digest("x")
        assert not fallback.is_canonical_digest("x")

    @pytest.mark.parametrize("prefix,canonical", [
        ((GOLDILOCKS_PRIME - 1).to_bytes(8, "little"), True),
        (GOLDILOCKS_PRIME.to_bytes(8, "little"), False),
    ])
    def test_canonical_boundary(self, prefix, canonical):
        encoder = FieldEncoder(digest=lambda data: prefix + b"\x00" * 24)
        assert encoder.is_canonical_digest("x") is canonical
        expected = GOLDILOCKS_PRIME - 1 if canonical else 0
        assert int(encoder.encode("x")) == expected
