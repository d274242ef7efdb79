"""Blocks and transactions as seen by the tracker."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from slot_prover.chain.errors import ChainError


@dataclass(frozen=True)
class Transaction:
    """A transaction's signatures, in declaration order."""
    signatures: Tuple[str, ...] = ()

    @classmethod
    def from_rpc(cls, entry: Any) -> "Transaction":
        """Build from one `getBlock` transaction entry.

        Binary encodings arrive as `[data, encoding]` and carry no readable
        signatures.
        """
        tx = entry.get("transaction") if isinstance(entry, dict) else None
        if not isinstance(tx, dict):
            return cls()
        return cls(tuple(tx.get("signatures") or ()))


@dataclass(frozen=True)
class Block:
    """
    A confirmed block.

    Attributes:
        blockhash: Block hash string
        transactions: Transactions in block order
        parent_slot: Slot of the parent block, if reported
    """
    blockhash: str
    transactions: Tuple[Transaction, ...] = field(default_factory=tuple)
    parent_slot: Optional[int] = None

    def signatures(self) -> List[str]:
        """Every signature of every transaction, in block order."""
        return [sig for tx in self.transactions for sig in tx.signatures]

    @classmethod
    def from_rpc(cls, result: Dict[str, Any]) -> "Block":
        """Build from a `getBlock` result.

        A result requested with `transactionDetails: "signatures"` holds a
        flat signature list; each signature becomes its own transaction.

        Raises:
            ChainError: If the result is not an object or has no block hash
        """
        if not isinstance(result, dict) or not isinstance(result.get("blockhash"), str):
            raise ChainError(f"malformed getBlock result: {str(result)[:200]}")
        if "transactions" in result:
            transactions = tuple(Transaction.from_rpc(e) for e in result["transactions"] or ())
        else:
            transactions = tuple(Transaction((sig,)) for sig in result.get("signatures") or ())
        return cls(
            blockhash=result["blockhash"],
            transactions=transactions,
            parent_slot=result.get("parentSlot"),
        )
