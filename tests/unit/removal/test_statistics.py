"""Unit tests for SessionStatistics."""

import threading

import pytest
from scrubctl.removal.statistics import SessionStatistics, StatisticsSnapshot


class TestSessionStatistics:
    """Tests for the statistics accumulator."""

    def test_starts_at_zero(self) -> None:
        """A new session has empty totals."""
        assert SessionStatistics().snapshot() == StatisticsSnapshot()

    def test_record_removal(self) -> None:
        """Bytes and items accumulate; batches only when flagged."""
        stats = SessionStatistics()
        stats.record_removal(100, 1)
        stats.record_removal(50, 3, batch=True)

        assert stats.snapshot() == StatisticsSnapshot(total_bytes=150, total_items=4, batches=1)

    def test_negative_amounts_rejected(self) -> None:
        """Totals can only grow."""
        stats = SessionStatistics()
        with pytest.raises(ValueError, match="negative"):
            stats.record_removal(-1, 0)
        with pytest.raises(ValueError, match="negative"):
            stats.record_removal(0, -1)
        assert stats.snapshot() == StatisticsSnapshot()

    def test_reset_is_idempotent(self) -> None:
        """reset() zeroes the totals and can be repeated."""
        stats = SessionStatistics()
        stats.record_removal(10, 1, batch=True)

        stats.reset()
        stats.reset()

        assert stats.snapshot() == StatisticsSnapshot()

    def test_snapshot_is_a_copy(self) -> None:
        """Later updates do not change an earlier snapshot."""
        stats = SessionStatistics()
        snap = stats.snapshot()
        stats.record_removal(1, 1)
        assert snap.total_items == 0

    def test_concurrent_updates_are_not_lost(self) -> None:
        """Updates from many threads all land."""
        stats = SessionStatistics()
        threads_count = 8
        per_thread = 1000

        def worker() -> None:
            for _ in range(per_thread):
                stats.record_removal(3, 1)

        threads = [threading.Thread(target=worker) for _ in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        snap = stats.snapshot()
        assert snap.total_items == threads_count * per_thread
        assert snap.total_bytes == 3 * threads_count * per_thread
