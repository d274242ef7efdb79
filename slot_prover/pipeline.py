"""BlockProver - turns a fetched block into a proof bundle."""

import logging
from typing import Optional

from slot_prover.bundle import BlockProof, TransactionProof
from slot_prover.chain.models import Block
from slot_prover.circuit.commitment import CommitmentCircuit
from slot_prover.encoding import FieldEncoder
from slot_prover.protocol.engine import ProofEngine
from slot_prover.protocol.proof import to_hex

logger = logging.getLogger(__name__)


class BlockProver:
    """
    Encode a block's hashes, prove the commitment circuit and assemble the
    bundle. Every signature is its own transaction entry, in block order.
    """

    def __init__(self, engine: Optional[ProofEngine] = None, encoder: Optional[FieldEncoder] = None):
        self.engine = engine if engine is not None else ProofEngine()
        self.encoder = encoder if encoder is not None else FieldEncoder()

    def prove_block(self, slot: int, block: Block) -> BlockProof:
        """
        Raises:
            SynthesisError: If the circuit cannot be proved
        """
        signatures = block.signatures()
        logger.info("Processing slot %d: %d transactions", slot, len(signatures))

        circuit = CommitmentCircuit.build(
            self.encoder.encode(block.blockhash),
            [self.encoder.encode(sig) for sig in signatures],
        )
        params = self.engine.setup(CommitmentCircuit.shape_only(len(signatures)))
        result = self.engine.prove(params, circuit)

        # Input 0 is the block commitment; transaction i is input i + 1
        transactions = [
            TransactionProof(sig, to_hex(result.open_input(i + 1)))
            for i, sig in enumerate(signatures)
        ]
        return BlockProof(
            slot=slot,
            block_hash=block.blockhash,
            transactions=transactions,
            block_proof=to_hex(result.proof),
        )
