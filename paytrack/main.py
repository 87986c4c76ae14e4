from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI

from paytrack.api.router import router as transfers_router
from paytrack.core.config import get_settings
from paytrack.core.logging import configure_logging, request_id_middleware
from paytrack.db.init import create_tables, sanitize_db_url
from paytrack.indexer.engine import PaymentIndexer, create_indexer

logger = structlog.get_logger(__name__)

settings = get_settings()
configure_logging(settings.ENV, settings.DEBUG)


async def _run_indexer(indexer: PaymentIndexer) -> None:
    try:
        await indexer.start()
    except asyncio.CancelledError:
        logger.info("indexer.cancelled")
        raise
    except Exception as e:
        # Backfill failures end the indexer; the read API keeps serving
        logger.error(
            "indexer.stopped_on_error",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and run the indexer in the background for the app's lifetime."""
    logger.info(
        "app.starting",
        env=settings.ENV,
        database=sanitize_db_url(settings.get_database_url()),
    )
    await create_tables()

    indexer: Optional[PaymentIndexer] = None
    task: Optional[asyncio.Task] = None
    if settings.SOLANA_RPC_URL and settings.TRACKED_ADDRESS:
        indexer = create_indexer(settings)
        if settings.INDEXER_AUTOSTART:
            task = asyncio.create_task(_run_indexer(indexer))
            logger.info("indexer.background_started", address=indexer.address)
    else:
        logger.warning("indexer.not_configured")
    app.state.indexer = indexer

    yield

    logger.info("app.stopping")
    if task:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
    if indexer:
        await indexer.client.aclose()
    logger.info("app.stopped")


app = FastAPI(title="paytrack", version="0.1.0", lifespan=lifespan)
app.middleware("http")(request_id_middleware)
app.include_router(transfers_router)


@app.get("/")
def health_check():
    return {"status": "ok"}


@app.get("/healthz")
def healthz():
    return {"status": "healthy", "env": settings.ENV}
