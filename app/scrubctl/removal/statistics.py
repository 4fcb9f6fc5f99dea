"""Per-session removal statistics."""

import threading
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class StatisticsSnapshot:
    """Point-in-time copy of session statistics.

    Attributes:
        total_bytes: Bytes reclaimed (projected in dry-run).
        total_items: Items removed (projected in dry-run).
        batches: Number of recorded batches.
    """

    total_bytes: int = 0
    total_items: int = 0
    batches: int = 0


class SessionStatistics:
    """Thread-safe accumulator owned by one cleanup session.

    All mutations hold a lock, so concurrent removal workers never lose
    updates.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_bytes = 0
        self._total_items = 0
        self._batches = 0

    def record_removal(self, bytes_: int, item_count: int, *, batch: bool = False) -> None:
        """Add removed bytes and items to the running totals.

        Args:
            bytes_: Bytes reclaimed.
            item_count: Items removed.
            batch: Count this update as one processed batch.

        Raises:
            ValueError: If either amount is negative.
        """
        if bytes_ < 0 or item_count < 0:
            msg = f"Cannot record negative amounts ({bytes_} bytes, {item_count} items)"
            raise ValueError(msg)

        with self._lock:
            self._total_bytes += bytes_
            self._total_items += item_count
            if batch:
                self._batches += 1

    def snapshot(self) -> StatisticsSnapshot:
        """Return a consistent copy of the current totals."""
        with self._lock:
            return StatisticsSnapshot(
                total_bytes=self._total_bytes,
                total_items=self._total_items,
                batches=self._batches,
            )

    def reset(self) -> None:
        """Zero all totals. Safe to call repeatedly."""
        with self._lock:
            self._total_bytes = 0
            self._total_items = 0
            self._batches = 0
