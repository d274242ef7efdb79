"""Chain errors and classification of failed block fetches.

Clients raise typed errors where the node reports structured ones. The text
helpers are the fallback for anything else: they recognise the node's
"skipped" and "cleaned up" messages and its "First available block: N,"
label.
"""

import enum
import re
from dataclasses import dataclass
from typing import Optional

# SlotUnavailable reasons
SKIPPED = "skipped"
CLEANED_UP = "cleaned_up"

_FIRST_AVAILABLE_RE = re.compile(r"First available block: (\d+),")
_UNAVAILABLE_RES = (
    re.compile(r"\bslot\b(?:\s+\d+)?\s+was skipped", re.IGNORECASE),
    re.compile(r"\bblock\b(?:\s+\d+)?\s+(?:was\s+)?cleaned up", re.IGNORECASE),
)


class ChainError(Exception):
    """Base class for errors reported by a chain client."""


class RpcError(ChainError):
    """A JSON-RPC error object returned by the node."""

    def __init__(self, code: Optional[int], message: str):
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message


class SlotUnavailable(ChainError):
    """The node has no block for a slot: it was skipped or has been pruned.

    Attributes:
        slot: The requested slot
        reason: SKIPPED or CLEANED_UP
        first_available: Lowest slot the node still serves, when known
    """

    def __init__(self, slot: int, reason: str, first_available: Optional[int] = None, detail: str = ""):
        if reason == SKIPPED:
            text = f"Slot {slot} was skipped"
        else:
            text = f"Block {slot} cleaned up"
        if first_available is not None:
            text += f", First available block: {first_available},"
        if detail:
            text += f" ({detail})"
        super().__init__(text)
        self.slot = slot
        self.reason = reason
        self.first_available = first_available


class ChainUnavailable(ChainError):
    """The node could not be reached after all retries."""


# --- Text Fallback ---

def parse_first_available_block(text: str) -> Optional[int]:
    """Number following "First available block: " and ended by a comma, else None."""
    match = _FIRST_AVAILABLE_RE.search(text)
    if match is None:
        return None
    return int(match.group(1))


def mentions_unavailable_slot(text: str) -> bool:
    """True if the text reports a skipped slot or a cleaned-up block."""
    return any(regex.search(text) for regex in _UNAVAILABLE_RES)


# --- Classification ---

class FetchFailureKind(enum.Enum):
    RESYNC = "resync"
    SKIPPED = "skipped"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class FetchFailure:
    kind: FetchFailureKind
    first_available: Optional[int] = None


def classify_fetch_error(error: Exception) -> FetchFailure:
    """
    Decide how the tracker reacts to a failed fetch.

    Typed SlotUnavailable errors are matched first: with a known floor they
    resync. A typed error without one still resyncs when the node's own
    message carries a floor, and is skipped otherwise. Other errors resync
    only when their text both reports an unavailable slot and carries a
    parseable floor; everything else is unclassified.
    """
    if isinstance(error, SlotUnavailable):
        floor = error.first_available
        if floor is None:
            floor = parse_first_available_block(str(error))
        if floor is not None:
            return FetchFailure(FetchFailureKind.RESYNC, floor)
        return FetchFailure(FetchFailureKind.SKIPPED)

    text = str(error)
    if mentions_unavailable_slot(text):
        floor = parse_first_available_block(text)
        if floor is not None:
            return FetchFailure(FetchFailureKind.RESYNC, floor)
    return FetchFailure(FetchFailureKind.UNCLASSIFIED)
