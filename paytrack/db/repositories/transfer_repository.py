"""Transfer repository with deduplication queries."""

from typing import Iterable, List, Optional, Set
from sqlalchemy import select

from paytrack.db.models.transfer import Transfer
from paytrack.db.repository import BaseRepository


class TransferRepository(BaseRepository[Transfer]):
    """Repository for Transfer model with specialized queries."""

    async def get_existing_signatures(self, signatures: Iterable[str]) -> Set[str]:
        """
        Return the subset of ``signatures`` that already have a stored transfer.

        Args:
            signatures: Candidate transaction signatures

        Returns:
            Set of signatures present in storage
        """
        wanted = list(dict.fromkeys(signatures))
        if not wanted:
            return set()

        query = select(self.model.signature).where(self.model.signature.in_(wanted))
        result = await self.session.execute(query)
        return set(result.scalars().all())

    async def get_by_signature(self, signature: str) -> List[Transfer]:
        """Get every transfer recorded for one transaction, in insert order."""
        query = (
            select(self.model)
            .where(self.model.signature == signature)
            .order_by(self.model.id)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_recent(
        self,
        limit: Optional[int] = 50,
        offset: Optional[int] = None,
        sender: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Transfer]:
        """List transfers newest first, optionally filtered by sender and status."""
        return await self.filter(
            limit=limit, offset=offset, sender=sender, status=status
        )
