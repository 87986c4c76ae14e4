"""Signature paginator for the tracked account."""

from typing import List, Optional

import structlog

from paytrack.indexer.clients.base import BaseLedgerClient, SignatureInfo

logger = structlog.get_logger()


def sort_newest_first(page: List[SignatureInfo]) -> List[SignatureInfo]:
    """Order signatures by block time, newest first; unknown times sort last."""
    return sorted(page, key=lambda s: s.block_time or 0, reverse=True)


class SignaturePaginator:
    """
    Fetches signature pages for one account.

    Pages are returned exactly as the feed orders them (newest first) and
    are never filtered. An empty page means the requested range is
    exhausted.
    """

    def __init__(self, client: BaseLedgerClient, address: str):
        self.client = client
        self.address = address

    async def older_than(
        self, cursor: Optional[str], limit: int
    ) -> List[SignatureInfo]:
        """Signatures strictly older than ``cursor`` (or the newest page if None)."""
        page = await self.client.get_signatures_for_address(
            self.address, limit=limit, before=cursor or None
        )
        logger.debug("paginator.page", direction="older", cursor=cursor, count=len(page))
        return page

    async def newer_than(
        self, cursor: Optional[str], limit: int
    ) -> List[SignatureInfo]:
        """Signatures strictly newer than ``cursor`` (or the newest page if None)."""
        page = await self.client.get_signatures_for_address(
            self.address, limit=limit, until=cursor or None
        )
        logger.debug("paginator.page", direction="newer", cursor=cursor, count=len(page))
        return page
