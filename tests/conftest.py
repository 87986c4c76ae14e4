import os
import sys
from pathlib import Path

# Force test database URL before any paytrack imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

# Ensure project root is on sys.path so `import paytrack` works when running pytest from root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from paytrack.db import base  # noqa: E402
from paytrack.db.models import CursorState, Transfer  # noqa: E402,F401
from paytrack.indexer.clients.memory_client import InMemoryLedgerClient  # noqa: E402

TRACKED_ADDRESS = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
OTHER_ADDRESS = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"


@pytest_asyncio.fixture
async def test_db(monkeypatch):
    """
    Provide a session factory bound to a fresh in-memory database.

    paytrack.db.base is patched so code that opens its own UnitOfWork
    lands in the same database.
    """
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(base.Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(base, "engine", engine)
    monkeypatch.setattr(base, "AsyncSessionLocal", factory)

    yield factory

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_db):
    """Get a database session for a test."""
    async with test_db() as session:
        yield session


@pytest.fixture
def ledger() -> InMemoryLedgerClient:
    """An empty in-memory ledger."""
    return InMemoryLedgerClient()


@pytest.fixture
def tracked_address() -> str:
    return TRACKED_ADDRESS
