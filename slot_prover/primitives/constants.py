"""Round constants for the Poseidon2-structured permutation.

Constants are expanded from SHA-256 in counter mode under a fixed domain tag,
with rejection sampling so every value is canonical. They are not the
published Poseidon2 Goldilocks constants: hashes are only comparable with
other output of this package.
"""

import hashlib
from typing import Dict, List

from slot_prover.primitives.field import GOLDILOCKS_PRIME

HASH_SIZE = 4
ROUNDS_F = 8
ROUNDS_P = {4: 21, 8: 22, 12: 22, 16: 22}
SPONGE_WIDTHS = (4, 8, 12, 16)

_DOMAIN = b"slot-prover/poseidon2"


def _expand(tag: str, width: int, count: int) -> List[int]:
    """Draw `count` field elements for (tag, width)."""
    values: List[int] = []
    counter = 0
    while len(values) < count:
        block = hashlib.sha256(_DOMAIN + f"/{tag}/{width}/{counter}".encode()).digest()
        for i in range(0, len(block), 8):
            candidate = int.from_bytes(block[i:i + 8], "little")
            if candidate < GOLDILOCKS_PRIME:
                values.append(candidate)
        counter += 1
    return values[:count]


POSEIDON2_RC: Dict[int, List[int]] = {
    w: _expand("rc", w, ROUNDS_F * w + ROUNDS_P[w]) for w in SPONGE_WIDTHS
}
POSEIDON2_DIAG: Dict[int, List[int]] = {
    w: _expand("diag", w, w) for w in SPONGE_WIDTHS
}
