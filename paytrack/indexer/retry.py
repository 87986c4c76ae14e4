"""
Backoff state for the poll loop.

The loop threads an immutable :class:`BackoffState` through each cycle:
every failure or success returns a new state instead of mutating
counters in place.
"""

from dataclasses import dataclass, replace

import structlog

from paytrack.indexer.config import BackoffConfig

logger = structlog.get_logger()


@dataclass(frozen=True)
class BackoffState:
    """Consecutive poll failures and the delay before the next cycle."""

    retry_count: int
    interval_ms: float

    @classmethod
    def initial(cls, base_interval_ms: float) -> "BackoffState":
        return cls(retry_count=0, interval_ms=base_interval_ms)

    def to_dict(self) -> dict:
        return {"retry_count": self.retry_count, "interval_ms": self.interval_ms}


class BackoffController:
    """
    Pure transitions for :class:`BackoffState`.

    Failures grow the interval geometrically from the base until
    ``max_retries`` is reached; the next failure after that resets to the
    base interval instead of giving up. A success only clears the retry
    count, so the interval stays where the last failure left it.
    """

    def __init__(self, base_interval_ms: float, config: BackoffConfig):
        self.base_interval_ms = base_interval_ms
        self.config = config

    def initial(self) -> BackoffState:
        return BackoffState.initial(self.base_interval_ms)

    def on_failure(self, state: BackoffState) -> BackoffState:
        if state.retry_count < self.config.max_retries:
            retry_count = state.retry_count + 1
            interval_ms = self.base_interval_ms * (
                self.config.backoff_factor**retry_count
            )
            logger.info(
                "backoff.retrying",
                retry_count=retry_count,
                interval_ms=interval_ms,
            )
            return BackoffState(retry_count=retry_count, interval_ms=interval_ms)

        logger.warning(
            "backoff.max_retries_reached",
            max_retries=self.config.max_retries,
            reset_interval_ms=self.base_interval_ms,
        )
        return self.initial()

    def on_success(self, state: BackoffState) -> BackoffState:
        return replace(state, retry_count=0)
