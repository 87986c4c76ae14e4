"""Cursor repository: one row per tracked account."""

from paytrack.db.models.cursor import CursorState
from paytrack.db.repository import BaseRepository


class CursorRepository(BaseRepository[CursorState]):
    """Repository for CursorState with get-or-create semantics."""

    async def get_or_create(self, account: str) -> CursorState:
        """
        Get the cursor for ``account``, inserting an empty one if absent.

        Args:
            account: Tracked account address

        Returns:
            The existing or newly created cursor row
        """
        state = await self.get_by_field("account", account)
        if state is None:
            state = await self.create(account=account, last_processed_signature="")
        return state

    async def set_signature(self, account: str, signature: str) -> CursorState:
        """Point the cursor for ``account`` at ``signature``."""
        state = await self.get_or_create(account)
        updated = await self.update(state.id, last_processed_signature=signature)
        assert updated is not None
        return updated
