"""Tests for the poll-loop backoff state transitions."""

from paytrack.indexer.config import BackoffConfig
from paytrack.indexer.retry import BackoffController, BackoffState


def _controller(base: float = 3000, max_retries: int = 5, factor: float = 2.0):
    return BackoffController(
        base, BackoffConfig(max_retries=max_retries, backoff_factor=factor)
    )


class TestBackoffController:
    """Tests for BackoffController failure/success transitions."""

    def test_initial_state(self):
        state = _controller().initial()
        assert state == BackoffState(retry_count=0, interval_ms=3000)

    def test_failures_grow_geometrically(self):
        controller = _controller()
        state = controller.initial()

        intervals = []
        for _ in range(5):
            state = controller.on_failure(state)
            intervals.append(state.interval_ms)

        assert intervals == [6000, 12000, 24000, 48000, 96000]
        assert state.retry_count == 5

    def test_failure_after_max_retries_resets_to_base(self):
        controller = _controller(max_retries=3)
        state = controller.initial()
        for _ in range(3):
            state = controller.on_failure(state)
        assert state.retry_count == 3

        state = controller.on_failure(state)

        assert state == BackoffState(retry_count=0, interval_ms=3000)

    def test_reset_cycle_repeats(self):
        controller = _controller(max_retries=2)
        state = controller.initial()
        seen = []
        for _ in range(6):
            state = controller.on_failure(state)
            seen.append((state.retry_count, state.interval_ms))

        assert seen == [
            (1, 6000),
            (2, 12000),
            (0, 3000),
            (1, 6000),
            (2, 12000),
            (0, 3000),
        ]

    def test_success_keeps_current_interval(self):
        """A success clears the retry count but does not restore the base interval."""
        controller = _controller()
        state = controller.initial()
        state = controller.on_failure(state)
        state = controller.on_failure(state)

        state = controller.on_success(state)

        assert state.retry_count == 0
        assert state.interval_ms == 12000

    def test_failure_after_success_starts_from_base(self):
        controller = _controller()
        state = controller.on_success(controller.on_failure(controller.initial()))

        state = controller.on_failure(state)

        assert state == BackoffState(retry_count=1, interval_ms=6000)

    def test_transitions_do_not_mutate(self):
        controller = _controller()
        state = controller.initial()
        controller.on_failure(state)
        assert state.retry_count == 0
        assert state.to_dict() == {"retry_count": 0, "interval_ms": 3000}
