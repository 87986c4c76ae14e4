"""
Indexer cycle metrics.

Tracks each backfill and poll cycle in memory so the CLI and the
status endpoint can report what the indexer has been doing.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
from dataclasses import dataclass, asdict
from enum import Enum


class CycleKind(str, Enum):
    """Which loop ran the cycle."""

    SYNC = "sync"
    POLL = "poll"


class CycleStatus(str, Enum):
    """Status of a sync or poll cycle."""

    SUCCESS = "success"
    SKIPPED = "skipped"  # Feed returned no new signatures
    FAILED = "failed"


@dataclass
class CycleMetrics:
    """Metrics for a single cycle."""

    cycle_id: str
    kind: CycleKind
    started_at: datetime
    ended_at: Optional[datetime] = None
    status: CycleStatus = CycleStatus.SUCCESS

    signatures_fetched: int = 0
    transfers_stored: int = 0
    pages: int = 0
    duration_seconds: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for output."""
        data = asdict(self)
        data["kind"] = self.kind.value
        data["started_at"] = self.started_at.isoformat()
        data["ended_at"] = self.ended_at.isoformat() if self.ended_at else None
        data["status"] = self.status.value
        return data


class IndexerMetrics:
    """
    In-memory metrics tracker for the indexer.

    Keeps the current cycle and a bounded history of finished ones.
    The stored total covers every cycle, including ones trimmed from history.
    """

    def __init__(self, history_size: int = 100):
        self.history_size = history_size
        self._current: Optional[CycleMetrics] = None
        self._history: List[CycleMetrics] = []
        self._counter = 0
        self._total_stored = 0

    def start_cycle(self, kind: CycleKind) -> CycleMetrics:
        """Start tracking a new cycle and return its record."""
        self._counter += 1
        now = datetime.now(timezone.utc)
        cycle_id = f"{kind.value}-{now.strftime('%Y%m%d-%H%M%S')}-{self._counter}"
        self._current = CycleMetrics(cycle_id=cycle_id, kind=kind, started_at=now)
        return self._current

    def end_cycle(
        self, status: CycleStatus = CycleStatus.SUCCESS, error: Optional[str] = None
    ) -> Optional[CycleMetrics]:
        """Close the current cycle and move it to history."""
        cycle = self._current
        if cycle is None:
            return None

        cycle.ended_at = datetime.now(timezone.utc)
        cycle.status = status
        cycle.error = error
        cycle.duration_seconds = (cycle.ended_at - cycle.started_at).total_seconds()
        self._total_stored += cycle.transfers_stored

        self._history.append(cycle)
        if len(self._history) > self.history_size:
            self._history = self._history[-self.history_size :]

        self._current = None
        return cycle

    def get_last_cycle(self) -> Optional[CycleMetrics]:
        return self._history[-1] if self._history else None

    def get_history(self, limit: Optional[int] = None) -> List[CycleMetrics]:
        """Recent cycles, newest first."""
        history = list(reversed(self._history))
        if limit:
            history = history[:limit]
        return history

    def get_success_rate(self) -> float:
        """Fraction of finished cycles that did not fail (0.0 when none ran)."""
        if not self._history:
            return 0.0
        ok = sum(1 for c in self._history if c.status != CycleStatus.FAILED)
        return ok / len(self._history)

    def total_stored(self) -> int:
        """Transfers stored by every cycle since the tracker was created."""
        return self._total_stored
