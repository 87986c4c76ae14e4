from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Holds everything the process boundary owns: where the ledger feed lives,
    where records are stored, and which account is being tracked.
    """

    # App basics
    ENV: Literal["development", "staging", "production"] = "development"
    """Environment mode: affects log rendering and database reset guards."""

    DEBUG: bool = True
    """Enable debug mode: verbose logging."""

    # DB
    DATABASE_URL: Optional[str] = None
    """Database connection URL. If None, uses a local SQLite file."""

    # Ledger feed
    SOLANA_RPC_URL: Optional[str] = None
    """Solana JSON-RPC HTTP endpoint (e.g. https://api.devnet.solana.com)."""

    RPC_TIMEOUT: float = 30.0
    """Timeout in seconds for each JSON-RPC request."""

    TRACKED_ADDRESS: Optional[str] = None
    """Base58 address of the account whose incoming payments are indexed."""

    POLL_INTERVAL_MS: int = 3000
    """Base delay between poll cycles in milliseconds."""

    INDEXER_AUTOSTART: bool = True
    """Run the indexer in the background when the API server starts."""

    # Model config
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    def get_database_url(self) -> str:
        """Return the configured database URL or the SQLite default."""
        return self.DATABASE_URL or "sqlite+aiosqlite:///./paytrack.db"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance to avoid re-parsing .env repeatedly."""
    return Settings()
