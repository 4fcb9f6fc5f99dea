"""Unit tests for removal result models."""

import pytest
from scrubctl.removal.models import (
    VERDICT_OUTCOMES,
    BatchResult,
    CleanupOperation,
    FailureKind,
    Outcome,
)
from scrubctl.safety.validator import Verdict


def _op(outcome: Outcome, size: int = 0, failure: FailureKind | None = None) -> CleanupOperation:
    return CleanupOperation(
        raw_path="/tmp/x",
        resolved_path="/tmp/x",
        outcome=outcome,
        size_bytes=size,
        failure=failure,
    )


class TestOutcome:
    """Tests for Outcome helpers."""

    def test_skip_outcomes(self) -> None:
        """All skipped-* outcomes are skips and nothing else is."""
        skips = {o for o in Outcome if o.is_skip}
        assert skips == {
            Outcome.SKIPPED_PROTECTED,
            Outcome.SKIPPED_WHITELISTED,
            Outcome.SKIPPED_INVALID,
            Outcome.SKIPPED_MISSING,
        }

    def test_counts_as_removed(self) -> None:
        """Removed and simulated both count as removed."""
        assert Outcome.REMOVED.counts_as_removed
        assert Outcome.SIMULATED.counts_as_removed
        assert not Outcome.FAILED.counts_as_removed

    def test_every_rejecting_verdict_has_an_outcome(self) -> None:
        """Each non-safe verdict maps to a skip outcome."""
        assert set(VERDICT_OUTCOMES) == {v for v in Verdict if v != Verdict.SAFE}
        assert all(o.is_skip for o in VERDICT_OUTCOMES.values())


class TestCleanupOperation:
    """Tests for CleanupOperation validation."""

    def test_negative_size_rejected(self) -> None:
        """Sizes cannot be negative."""
        with pytest.raises(ValueError, match="negative"):
            _op(Outcome.REMOVED, size=-1)

    def test_failed_requires_failure_kind(self) -> None:
        """A failed outcome needs a failure kind."""
        with pytest.raises(ValueError, match="Failure kind"):
            _op(Outcome.FAILED)

    def test_failure_kind_only_for_failed(self) -> None:
        """Non-failed outcomes cannot carry a failure kind."""
        with pytest.raises(ValueError, match="Failure kind"):
            _op(Outcome.REMOVED, failure=FailureKind.FILESYSTEM)

    def test_success(self) -> None:
        """success mirrors counts_as_removed."""
        assert _op(Outcome.SIMULATED).success is True
        assert _op(Outcome.SKIPPED_MISSING).success is False


class TestBatchResult:
    """Tests for BatchResult aggregation."""

    def test_counts_and_bytes(self) -> None:
        """Aggregates count only what they describe."""
        result = BatchResult.of(
            [
                _op(Outcome.REMOVED, size=10),
                _op(Outcome.SIMULATED, size=5),
                _op(Outcome.SKIPPED_PROTECTED),
                _op(Outcome.SKIPPED_MISSING),
                _op(Outcome.FAILED, failure=FailureKind.SYMLINK_BOUNDARY),
            ]
        )

        assert result.removed_count == 2
        assert result.skipped_count == 2
        assert result.failed_count == 1
        assert result.total_bytes == 15
        assert len(result.failures) == 1
        assert result.cancelled is False

    def test_empty(self) -> None:
        """An empty batch has zero totals."""
        result = BatchResult()
        assert (result.removed_count, result.total_bytes, result.failures) == (0, 0, ())
