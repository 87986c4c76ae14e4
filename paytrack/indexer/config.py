"""
Indexer configuration.

Defines page sizes, poll interval and backoff policy for the
backfill and polling loops.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from paytrack.core.config import Settings


class BackoffConfig(BaseModel):
    """Backoff policy applied to consecutive poll-cycle failures."""

    max_retries: int = Field(
        default=5, ge=1, description="Failures before the interval resets to base"
    )
    backoff_factor: float = Field(
        default=2.0, gt=1, description="Multiplier applied per consecutive failure"
    )


class IndexerConfig(BaseModel):
    """Main indexer configuration."""

    # Polling behavior
    poll_interval_ms: int = Field(
        default=3000, ge=1, description="Base delay between poll cycles"
    )
    poll_page_size: int = Field(
        default=1000, ge=1, le=1000, description="Signatures per poll request"
    )

    # Backfill behavior
    backfill_page_size: int = Field(
        default=1000, ge=1, le=1000, description="Signatures per backfill page"
    )
    max_backfill_pages: int = Field(
        default=10_000,
        ge=1,
        description="Stop the backfill after this many pages even if the feed "
        "keeps returning data",
    )

    # Feed
    commitment: Literal["processed", "confirmed", "finalized"] = Field(
        default="confirmed", description="Commitment level for RPC reads"
    )
    rpc_timeout: float = Field(
        default=30.0, gt=0, description="RPC request timeout in seconds"
    )

    backoff: BackoffConfig = Field(default_factory=BackoffConfig)

    @classmethod
    def from_settings(cls, settings: Settings) -> "IndexerConfig":
        """Build indexer config from process-level settings."""
        return cls(
            poll_interval_ms=settings.POLL_INTERVAL_MS,
            rpc_timeout=settings.RPC_TIMEOUT,
        )
