"""Unit of Work pattern for managing database transactions."""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from paytrack.db import base
from paytrack.db.models import CursorState, Transfer
from paytrack.db.repositories import CursorRepository, TransferRepository


class UnitOfWork:
    """
    Unit of Work pattern implementation for managing database transactions.

    All repositories inside one context share the same session, so a batch
    insert either lands completely or not at all.

    Usage:
        async with UnitOfWork() as uow:
            existing = await uow.transfers.get_existing_signatures(sigs)
            await uow.transfers.create_many(rows)
            await uow.commit()
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        """
        Initialize Unit of Work.

        Args:
            session: Optional existing session (useful for testing)
        """
        self._session = session
        self._owned_session = session is None

        # Repositories (initialized in __aenter__)
        self.transfers: TransferRepository = None  # type: ignore
        self.cursors: CursorRepository = None  # type: ignore

    async def __aenter__(self):
        """Enter async context manager."""
        if self._owned_session:
            self._session = base.AsyncSessionLocal()

        assert self._session is not None, "Session must be initialized"
        self.transfers = TransferRepository(Transfer, self._session)
        self.cursors = CursorRepository(CursorState, self._session)

        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager."""
        if exc_type is not None:
            await self.rollback()
        else:
            if self._owned_session:
                await self.commit()

        if self._owned_session and self._session:
            await self._session.close()

    async def commit(self):
        """Commit the current transaction."""
        if self._session:
            await self._session.commit()

    async def rollback(self):
        """Rollback the current transaction."""
        if self._session:
            await self._session.rollback()
