"""Transfer model for storing incoming payments found on the ledger."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from sqlalchemy import JSON, BigInteger, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from paytrack.db.base import Base


class TransferStatus(str, Enum):
    """Outcome of the transaction that carried the transfer."""

    SUCCESS = "Success"
    FAILURE = "Failure"


class Transfer(Base):
    """
    One native SOL transfer instruction paid to the tracked account.

    A transaction may carry several matching instructions, so the signature
    is indexed but not unique.
    """

    __tablename__ = "transfers"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Transaction identification
    signature: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        index=True,
        comment="Ledger transaction signature (base58)",
    )
    sender: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        comment="First account key (fee payer) of the transaction",
    )

    # Transfer details
    amount: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="Amount in SOL (lamports / 1e9)",
    )
    lamports: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Raw amount in lamports",
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        index=True,
        comment="'Success' or 'Failure' from the execution metadata",
    )

    # Ledger position
    slot: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True, comment="Slot the transaction landed in"
    )
    block_time: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True, comment="Unix timestamp of the block"
    )

    # Raw execution metadata, kept for audit only
    meta: Mapped[Optional[Any]] = mapped_column(
        JSON, nullable=True, comment="Execution metadata as returned by the feed"
    )

    # Audit fields
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (Index("idx_transfer_sender_status", "sender", "status"),)

    def __repr__(self) -> str:
        return (
            f"<Transfer(id={self.id}, signature={self.signature}, "
            f"sender={self.sender}, amount={self.amount}, status={self.status})>"
        )
