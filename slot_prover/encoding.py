"""FieldEncoder - canonical mapping from hash strings to field elements.

Every circuit input goes through here so all commitments are canonicalized
the same way.
"""

import hashlib
import logging
from typing import Callable

from slot_prover.primitives.field import FF, FIELD_BYTES, FieldElement, is_canonical

logger = logging.getLogger(__name__)

Digest = Callable[[bytes], bytes]


def sha256_digest(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


class FieldEncoder:
    """
    Encode opaque strings as field elements.

    The SHA-256 digest of the UTF-8 bytes is read little-endian over its first
    FIELD_BYTES bytes. A non-canonical reading (>= p) encodes as FF(0), the
    additive identity: a lossy but defined fallback. Callers that need
    injectivity must check `is_canonical_digest` rather than compare against
    zero, since a genuine zero commitment looks identical.
    """

    def __init__(self, digest: Digest = sha256_digest):
        self._digest = digest

    def repr_of(self, raw: str) -> int:
        """Integer reading of the digest before reduction checks."""
        return int.from_bytes(self._digest(raw.encode("utf-8"))[:FIELD_BYTES], "little")

    def is_canonical_digest(self, raw: str) -> bool:
        return is_canonical(self.repr_of(raw))

    def encode(self, raw: str) -> FieldElement:
        value = self.repr_of(raw)
        if not is_canonical(value):
            logger.warning("Hash %r is outside the field; encoding as zero", raw)
            return FF(0)
        logger.debug("Converting hash to field element: %s -> %d", raw, value)
        return FF(value)
