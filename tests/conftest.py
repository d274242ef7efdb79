"""
Pytest configuration for slot_prover tests.

Chain access is replaced by FakeChainClient; nothing here touches the network.
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import pytest

# Add the project root to the path so absolute imports work without installing
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from slot_prover.chain.client import ChainClient  # noqa: E402
from slot_prover.chain.models import Block, Transaction  # noqa: E402
from slot_prover.pipeline import BlockProver  # noqa: E402
from slot_prover.protocol.engine import ProofEngine  # noqa: E402
from slot_prover.store import ProofBundleStore  # noqa: E402


def make_block(blockhash: str, *transactions: Sequence[str]) -> Block:
    """Block whose transactions carry the given signature lists."""
    return Block(blockhash=blockhash, transactions=tuple(Transaction(tuple(sigs)) for sigs in transactions))


class FakeChainClient(ChainClient):
    """
    Scripted chain.

    Attributes:
        tips: Tip returned by successive current_slot() calls; the last repeats
        blocks: Block or exception per slot; missing slots get a one-signature block
        fetched: Slots passed to block_at, in call order
    """

    def __init__(self, tips: Union[int, List[int]], blocks: Optional[Dict[int, object]] = None):
        self.tips = [tips] if isinstance(tips, int) else list(tips)
        self.blocks = dict(blocks or {})
        self.fetched: List[int] = []

    def current_slot(self) -> int:
        if len(self.tips) > 1:
            return self.tips.pop(0)
        return self.tips[0]

    def block_at(self, slot: int) -> Block:
        self.fetched.append(slot)
        entry = self.blocks.get(slot)
        if isinstance(entry, Exception):
            raise entry
        if entry is None:
            return make_block(f"hash{slot}", [f"sig{slot}"])
        return entry


@pytest.fixture
def engine() -> ProofEngine:
    return ProofEngine(n_queries=4, rng=np.random.default_rng(1234))


@pytest.fixture
def prover(engine) -> BlockProver:
    return BlockProver(engine)


@pytest.fixture
def store(tmp_path) -> ProofBundleStore:
    s = ProofBundleStore(tmp_path / "proofs")
    s.reset()
    return s
