"""
Payment indexer engine.

Backfills the tracked account's history once, then polls for newer
signatures forever. Both loops share the paginator, the batch persister
and the cursor store; only the poll loop is wrapped by backoff.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from paytrack.core.config import Settings, get_settings
from paytrack.db.unit_of_work import UnitOfWork
from paytrack.indexer.address import validate_address
from paytrack.indexer.clients.base import BaseLedgerClient, SignatureInfo
from paytrack.indexer.clients.rpc_client import SolanaRpcClient
from paytrack.indexer.config import IndexerConfig
from paytrack.indexer.cursor import CursorStore
from paytrack.indexer.filter import TransferFilter
from paytrack.indexer.metrics import CycleKind, CycleStatus, IndexerMetrics
from paytrack.indexer.paginator import SignaturePaginator, sort_newest_first
from paytrack.indexer.persister import BatchPersister
from paytrack.indexer.retry import BackoffController, BackoffState

logger = structlog.get_logger()

Sleep = Callable[[float], Awaitable[Any]]


class PaymentIndexer:
    """
    Indexes incoming SOL transfers to one account.

    Construction validates the tracked address and fails fast with
    :class:`~paytrack.indexer.address.InvalidAddressError`. Run
    :meth:`start` to backfill and then poll for the lifetime of the
    process.
    """

    def __init__(
        self,
        client: BaseLedgerClient,
        tracked_address: str,
        config: Optional[IndexerConfig] = None,
        session: Optional[AsyncSession] = None,
        sleep: Optional[Sleep] = None,
    ):
        """
        Args:
            client: Ledger feed client
            tracked_address: Base58 address whose incoming payments are indexed
            config: Indexer configuration (defaults to IndexerConfig())
            session: Optional database session for testing
            sleep: Coroutine used to wait between poll cycles
        """
        self.address = validate_address(tracked_address)
        self.config = config or IndexerConfig()
        self.client = client
        self._session = session
        self._sleep: Sleep = sleep or asyncio.sleep

        self.paginator = SignaturePaginator(client, self.address)
        self.persister = BatchPersister(
            client, TransferFilter(self.address), session=session
        )
        self.cursor = CursorStore(self.address, session=session)
        self.backoff = BackoffController(
            self.config.poll_interval_ms, self.config.backoff
        )
        self.backoff_state: BackoffState = self.backoff.initial()
        self.metrics = IndexerMetrics()
        self._running = False

        logger.info(
            "indexer.initialized",
            address=self.address,
            source=client.get_source_name(),
            poll_interval_ms=self.config.poll_interval_ms,
        )

    async def start(self) -> None:
        """Backfill history, then poll forever. Backfill errors propagate."""
        logger.info("indexer.starting", address=self.address)
        await self.sync()
        logger.info("indexer.history_synced")
        await self.run_forever()

    async def sync(self) -> int:
        """
        Backfill every signature the feed still holds for the account.

        Walks backwards one page at a time, using the oldest signature seen
        so far as the next ``before`` bound, until the feed returns an empty
        page or ``max_backfill_pages`` is reached. The whole history is then
        persisted as one batch.

        Returns:
            Number of transfer rows stored
        """
        cycle = self.metrics.start_cycle(CycleKind.SYNC)
        logger.info("sync.started", address=self.address)

        try:
            accumulated: List[SignatureInfo] = []
            before: Optional[str] = None
            while True:
                if cycle.pages >= self.config.max_backfill_pages:
                    logger.warning(
                        "sync.page_cap_reached",
                        max_pages=self.config.max_backfill_pages,
                        accumulated=len(accumulated),
                    )
                    break

                page = await self.paginator.older_than(
                    before, self.config.backfill_page_size
                )
                cycle.pages += 1
                if not page:
                    break

                accumulated.extend(page)
                before = page[-1].signature
                logger.info(
                    "sync.page_fetched",
                    count=len(page),
                    total=len(accumulated),
                    oldest=before,
                )

            cycle.signatures_fetched = len(accumulated)
            logger.info("sync.signatures_collected", total=len(accumulated))

            ordered = sort_newest_first(accumulated)
            stored = await self.persister.process_batch(
                [s.signature for s in ordered]
            )
            cycle.transfers_stored = stored

            if stored < 1:
                logger.info("sync.no_new_transfers")
                self.metrics.end_cycle(CycleStatus.SKIPPED)
                return 0

            await self.cursor.advance(ordered[0].signature)
        except Exception as e:
            logger.error("sync.failed", error=str(e), error_type=type(e).__name__)
            self.metrics.end_cycle(CycleStatus.FAILED, error=str(e))
            raise

        self.metrics.end_cycle(CycleStatus.SUCCESS)
        logger.info("sync.completed", stored=stored, cursor=ordered[0].signature)
        return stored

    async def poll_once(self) -> int:
        """
        Run one incremental cycle.

        Fetches a single page of signatures newer than the stored cursor,
        persists new transfers and advances the cursor to the page's newest
        signature when at least one transfer was stored.

        Returns:
            Number of transfer rows stored
        """
        cycle = self.metrics.start_cycle(CycleKind.POLL)
        try:
            last_signature = await self.cursor.load()
            logger.info("poll.started", newer_than=last_signature or None)

            page = await self.paginator.newer_than(
                last_signature, self.config.poll_page_size
            )
            cycle.pages = 1
            cycle.signatures_fetched = len(page)
            if not page:
                logger.info("poll.no_new_signatures")
                self.metrics.end_cycle(CycleStatus.SKIPPED)
                return 0
            logger.info("poll.signatures_found", count=len(page))

            ordered = sort_newest_first(page)
            stored = await self.persister.process_batch(
                [s.signature for s in ordered]
            )
            cycle.transfers_stored = stored
            if stored < 1:
                logger.info("poll.no_new_transfers")
                self.metrics.end_cycle(CycleStatus.SKIPPED)
                return 0

            await self.cursor.advance(ordered[0].signature)
        except Exception as e:
            self.metrics.end_cycle(CycleStatus.FAILED, error=str(e))
            raise

        self.metrics.end_cycle(CycleStatus.SUCCESS)
        return stored

    async def run_cycle(self) -> BackoffState:
        """Run one poll cycle and fold its outcome into the backoff state."""
        try:
            await self.poll_once()
        except Exception as e:
            logger.error(
                "poll.failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            self.backoff_state = self.backoff.on_failure(self.backoff_state)
        else:
            self.backoff_state = self.backoff.on_success(self.backoff_state)
        return self.backoff_state

    async def run_forever(self) -> None:
        """Poll, then sleep for the current interval, for the life of the process."""
        self._running = True
        try:
            while True:
                state = await self.run_cycle()
                await self._sleep(state.interval_ms / 1000)
        finally:
            self._running = False

    async def get_status(self) -> Dict[str, Any]:
        """
        Get current indexer status.

        Returns:
            Status dictionary with cursor, stored count, backoff and metrics
        """
        async with UnitOfWork(session=self._session) as uow:
            state = await uow.cursors.get_by_field("account", self.address)
            stored = await uow.transfers.count()

        last_cycle = self.metrics.get_last_cycle()
        return {
            "address": self.address,
            "source": self.client.get_source_name(),
            "running": self._running,
            "cursor": state.last_processed_signature if state else "",
            "transfers_stored": stored,
            "stored_since_start": self.metrics.total_stored(),
            "backoff": self.backoff_state.to_dict(),
            "last_cycle": last_cycle.to_dict() if last_cycle else None,
            "recent_cycles": [c.to_dict() for c in self.metrics.get_history(limit=10)],
            "success_rate": self.metrics.get_success_rate(),
        }


def create_indexer(settings: Optional[Settings] = None) -> PaymentIndexer:
    """
    Build an indexer wired to the Solana RPC endpoint from settings.

    Raises:
        RuntimeError: If SOLANA_RPC_URL or TRACKED_ADDRESS is not configured
        InvalidAddressError: If TRACKED_ADDRESS is not a valid address
    """
    settings = settings or get_settings()
    if not settings.SOLANA_RPC_URL:
        raise RuntimeError("SOLANA_RPC_URL not found")
    if not settings.TRACKED_ADDRESS:
        raise RuntimeError("TRACKED_ADDRESS not found")

    config = IndexerConfig.from_settings(settings)
    client = SolanaRpcClient(
        settings.SOLANA_RPC_URL,
        timeout=config.rpc_timeout,
        commitment=config.commitment,
    )
    return PaymentIndexer(client, settings.TRACKED_ADDRESS, config=config)
