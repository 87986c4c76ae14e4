"""Durable cursor for the tracked account."""

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from paytrack.db.unit_of_work import UnitOfWork

logger = structlog.get_logger()


class CursorStore:
    """Reads and advances the newest fully processed signature."""

    def __init__(self, account: str, session: Optional[AsyncSession] = None):
        self.account = account
        self._session = session

    async def load(self) -> str:
        """Return the stored signature, creating an empty cursor on first use."""
        async with UnitOfWork(session=self._session) as uow:
            state = await uow.cursors.get_or_create(self.account)
            signature = state.last_processed_signature
            await uow.commit()
        return signature

    async def advance(self, signature: str) -> None:
        """Point the cursor at ``signature``; called only after a batch is stored."""
        async with UnitOfWork(session=self._session) as uow:
            await uow.cursors.set_signature(self.account, signature)
            await uow.commit()
        logger.info("cursor.updated", account=self.account, signature=signature)
