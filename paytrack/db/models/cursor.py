"""Cursor model holding the newest fully processed signature."""

from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from paytrack.db.base import Base


class CursorState(Base):
    """
    Single row per tracked account.

    An empty ``last_processed_signature`` means no history has been
    processed yet.
    """

    __tablename__ = "cursor_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    account: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        comment="Tracked account address this cursor belongs to",
    )
    last_processed_signature: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        default="",
        comment="Signature of the newest persisted transaction",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return (
            f"<CursorState(id={self.id}, account={self.account}, "
            f"last_processed_signature={self.last_processed_signature!r})>"
        )
