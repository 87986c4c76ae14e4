"""
Dedup and batch persister.

Given a batch of signatures, stores transfers for the ones not seen
before. Fetching and inserting are each a single round trip per batch.
"""

import time
from typing import List, Optional, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from paytrack.db.unit_of_work import UnitOfWork
from paytrack.indexer.clients.base import BaseLedgerClient
from paytrack.indexer.filter import TransferCandidate, TransferFilter

logger = structlog.get_logger()


class BatchPersister:
    """Removes known signatures, fetches the rest, filters and bulk-inserts."""

    def __init__(
        self,
        client: BaseLedgerClient,
        transfer_filter: TransferFilter,
        session: Optional[AsyncSession] = None,
    ):
        """
        Args:
            client: Ledger feed client
            transfer_filter: Filter bound to the tracked account
            session: Optional database session for testing
        """
        self.client = client
        self.transfer_filter = transfer_filter
        self._session = session

    async def new_signatures(self, signatures: Sequence[str]) -> List[str]:
        """Return the signatures with no stored transfer, keeping input order."""
        unique = list(dict.fromkeys(signatures))
        if not unique:
            return []
        async with UnitOfWork(session=self._session) as uow:
            existing = await uow.transfers.get_existing_signatures(unique)
        return [sig for sig in unique if sig not in existing]

    async def process_batch(self, signatures: Sequence[str]) -> int:
        """
        Store transfers for every signature not already in storage.

        Args:
            signatures: Candidate signatures, newest first

        Returns:
            Number of transfer rows inserted
        """
        new_signatures = await self.new_signatures(signatures)
        logger.info(
            "batch.deduplicated",
            total=len(signatures),
            new=len(new_signatures),
            duplicate=len(signatures) - len(new_signatures),
        )
        if not new_signatures:
            return 0

        api_start = time.time()
        bodies = await self.client.get_parsed_transactions(new_signatures)
        logger.debug(
            "batch.transactions_fetched",
            count=len(new_signatures),
            latency_seconds=round(time.time() - api_start, 3),
        )

        candidates: List[TransferCandidate] = []
        skipped = 0
        for signature, body in zip(new_signatures, bodies):
            if body is None or body.meta is None:
                skipped += 1
                continue
            candidates.extend(self.transfer_filter.extract(signature, body))

        if skipped:
            logger.debug("batch.bodies_unavailable", count=skipped)

        if not candidates:
            logger.info("batch.no_matching_transfers", fetched=len(new_signatures))
            return 0

        async with UnitOfWork(session=self._session) as uow:
            await uow.transfers.create_many([c.to_row() for c in candidates])
            await uow.commit()

        for c in candidates:
            logger.info(
                "batch.transfer_stored",
                signature=c.signature,
                sender=c.sender,
                amount=c.amount,
                status=c.status.value,
            )
        return len(candidates)
