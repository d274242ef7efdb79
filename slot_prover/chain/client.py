"""Chain clients: the tracker's view of the network."""

import abc
import itertools
import logging
import time
from typing import Any, Callable, List, Optional

import requests
from requests.adapters import HTTPAdapter

from slot_prover.chain.errors import (
    CLEANED_UP, SKIPPED, ChainError, ChainUnavailable, RpcError, SlotUnavailable,
    parse_first_available_block,
)
from slot_prover.chain.models import Block

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"

# JSON-RPC error codes reported by Solana nodes
SLOT_SKIPPED_CODES = (-32007, -32009)
BLOCK_CLEANED_UP_CODE = -32001

_MAX_BACKOFF = 8.0


class ChainClient(abc.ABC):
    """Source of slots and blocks."""

    @abc.abstractmethod
    def current_slot(self) -> int:
        """Latest slot at the client's commitment level."""

    @abc.abstractmethod
    def block_at(self, slot: int) -> Block:
        """Block at `slot`.

        Raises:
            SlotUnavailable: If the slot was skipped or its block pruned
            ChainError: For any other failure
        """


class SolanaRpcClient(ChainClient):
    """
    JSON-RPC client for a Solana node over a shared requests Session.

    Transport errors and HTTP 429 are retried with exponential backoff,
    honouring Retry-After. Running out of retries raises ChainUnavailable.
    """

    def __init__(
        self,
        url: str = DEFAULT_RPC_URL,
        timeout: float = 30.0,
        max_retries: int = 5,
        commitment: str = "finalized",
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.url = url
        self.timeout = timeout
        self.max_retries = max_retries
        self.commitment = commitment
        self._sleep = sleep
        self._ids = itertools.count(1)

        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=4, pool_maxsize=4)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

    # --- JSON-RPC ---

    def call(self, method: str, params: List[Any]) -> Any:
        """Issue one request and return its `result`.

        Raises:
            RpcError: If the node answers with an error object
            ChainUnavailable: If no answer arrives within the retry budget
        """
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        backoff = 0.5
        for attempt in range(self.max_retries + 1):
            if attempt:
                self._sleep(backoff)
                backoff = min(backoff * 2, _MAX_BACKOFF)
            try:
                r = self.session.post(self.url, json=payload, timeout=self.timeout)
                if r.status_code == 429:
                    ra = r.headers.get("Retry-After")
                    if ra and ra.isdigit():
                        backoff = float(ra)
                    logger.warning("Rate limited on %s (attempt %d)", method, attempt + 1)
                    continue
                r.raise_for_status()
                resp = r.json()
            except requests.exceptions.RequestException as e:
                logger.warning("Request %s failed (attempt %d): %s", method, attempt + 1, e)
                continue

            if resp.get("error") is not None:
                error = resp["error"]
                if isinstance(error, dict):
                    raise RpcError(error.get("code"), str(error.get("message", "")))
                raise RpcError(None, str(error))
            return resp.get("result")

        raise ChainUnavailable(f"{method} failed after {self.max_retries + 1} attempts against {self.url}")

    # --- ChainClient ---

    def current_slot(self) -> int:
        return int(self.call("getSlot", [{"commitment": self.commitment}]))

    def first_available_block(self) -> int:
        return int(self.call("getFirstAvailableBlock", []))

    def block_at(self, slot: int) -> Block:
        config = {
            "encoding": "json",
            "transactionDetails": "full",
            "maxSupportedTransactionVersion": 0,
            "rewards": False,
            "commitment": self.commitment,
        }
        try:
            result = self.call("getBlock", [slot, config])
        except RpcError as e:
            if e.code in SLOT_SKIPPED_CODES:
                raise SlotUnavailable(slot, SKIPPED, detail=e.message) from e
            if e.code == BLOCK_CLEANED_UP_CODE:
                floor = parse_first_available_block(e.message)
                if floor is None:
                    floor = self._first_available_or_none()
                raise SlotUnavailable(slot, CLEANED_UP, floor, e.message) from e
            raise

        if result is None:
            raise ChainError(f"node returned no block for slot {slot}")
        return Block.from_rpc(result)

    def _first_available_or_none(self) -> Optional[int]:
        try:
            return self.first_available_block()
        except ChainError as e:
            logger.warning("Could not read first available block: %s", e)
            return None
