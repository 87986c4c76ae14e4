"""
Transfer filter.

Turns one parsed transaction into the transfer rows that should be
stored for the tracked account.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from paytrack.db.models.transfer import TransferStatus
from paytrack.indexer.clients.base import ParsedTransaction, SystemTransfer

LAMPORTS_PER_SOL = 1_000_000_000


def lamports_to_sol(lamports: int) -> float:
    """Convert lamports to SOL."""
    return lamports / LAMPORTS_PER_SOL


@dataclass(frozen=True)
class TransferCandidate:
    """A transfer ready to be inserted into the ``transfers`` table."""

    signature: str
    sender: str
    amount: float
    lamports: int
    status: TransferStatus
    meta: Optional[Dict[str, Any]] = None
    slot: Optional[int] = None
    block_time: Optional[int] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "signature": self.signature,
            "sender": self.sender,
            "amount": self.amount,
            "lamports": self.lamports,
            "status": self.status.value,
            "meta": self.meta,
            "slot": self.slot,
            "block_time": self.block_time,
        }


@dataclass(frozen=True)
class TransferFilter:
    """Matches System Program transfers whose destination is the tracked account."""

    tracked_address: str

    def extract(
        self, signature: str, transaction: Optional[ParsedTransaction]
    ) -> List[TransferCandidate]:
        """
        Return one candidate per matching instruction.

        Transactions without a body or without execution metadata yield
        nothing. The sender is always the fee payer, not the instruction's
        ``source``.
        """
        if transaction is None or transaction.meta is None:
            return []

        status = (
            TransferStatus.FAILURE
            if transaction.error is not None
            else TransferStatus.SUCCESS
        )
        sender = transaction.fee_payer or ""

        candidates = []
        for ix in transaction.instructions:
            if not isinstance(ix, SystemTransfer):
                continue
            if ix.destination != self.tracked_address:
                continue
            candidates.append(
                TransferCandidate(
                    signature=signature,
                    sender=sender,
                    amount=lamports_to_sol(ix.lamports),
                    lamports=ix.lamports,
                    status=status,
                    meta=transaction.meta,
                    slot=transaction.slot,
                    block_time=transaction.block_time,
                )
            )

        return candidates
