"""Per-slot proof bundles as persisted to disk."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class TransactionProof:
    """A transaction signature and its serialized inclusion proof."""
    transaction_hash: str
    proof: str

    def to_json(self) -> Dict[str, Any]:
        return {"transaction_hash": self.transaction_hash, "proof": self.proof}


@dataclass(frozen=True)
class BlockProof:
    """
    Everything proved for one slot.

    Attributes:
        slot: Slot of the block
        block_hash: Block hash as reported by the chain
        transactions: One entry per signature, in block order
        block_proof: Serialized commitment proof over the block hash and
            every transaction hash
    """
    slot: int
    block_hash: str
    transactions: List[TransactionProof] = field(default_factory=list)
    block_proof: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        j: Dict[str, Any] = {
            "slot": self.slot,
            "block_hash": self.block_hash,
            "transactions": [tx.to_json() for tx in self.transactions],
        }
        if self.block_proof is not None:
            j["block_proof"] = self.block_proof
        return j

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "BlockProof":
        return cls(
            slot=int(data["slot"]),
            block_hash=data["block_hash"],
            transactions=[
                TransactionProof(tx["transaction_hash"], tx["proof"])
                for tx in data.get("transactions", [])
            ],
            block_proof=data.get("block_proof"),
        )
