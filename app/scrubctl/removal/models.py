"""Removal domain models.

This module defines the per-item and per-batch result structures that
the removal executor hands back to callers.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from scrubctl.safety.validator import Verdict


class Outcome(str, Enum):
    """Outcome of a single removal request.

    Attributes:
        REMOVED: Entry was deleted.
        SIMULATED: Dry-run; entry would have been deleted.
        SKIPPED_PROTECTED: Refused, path is protected.
        SKIPPED_WHITELISTED: Refused, path matches a whitelist rule.
        SKIPPED_INVALID: Refused, input is not a valid path.
        SKIPPED_MISSING: Nothing to do, path does not exist.
        FAILED: The operating system refused or the tree was unsafe.
    """

    REMOVED = "removed"
    SIMULATED = "simulated"
    SKIPPED_PROTECTED = "skipped-protected"
    SKIPPED_WHITELISTED = "skipped-whitelisted"
    SKIPPED_INVALID = "skipped-invalid"
    SKIPPED_MISSING = "skipped-missing"
    FAILED = "failed"

    @property
    def is_skip(self) -> bool:
        """Check if the engine deliberately did nothing."""
        return self.value.startswith("skipped-")

    @property
    def counts_as_removed(self) -> bool:
        """Check if the item was (or in dry-run would be) removed."""
        return self in (Outcome.REMOVED, Outcome.SIMULATED)


# Skip outcome for every rejecting validation verdict
VERDICT_OUTCOMES: dict[Verdict, Outcome] = {
    Verdict.INVALID: Outcome.SKIPPED_INVALID,
    Verdict.PROTECTED: Outcome.SKIPPED_PROTECTED,
    Verdict.WHITELISTED: Outcome.SKIPPED_WHITELISTED,
}


class FailureKind(str, Enum):
    """Why a removal failed.

    Attributes:
        FILESYSTEM: OS-level error (permission, in use, vanished).
        SYMLINK_BOUNDARY: Tree contains a symlink escaping its subtree.
        GUARDED_CONTENT: Tree contains a protected or whitelisted entry.
    """

    FILESYSTEM = "filesystem"
    SYMLINK_BOUNDARY = "symlink-boundary"
    GUARDED_CONTENT = "guarded-content"


@dataclass(frozen=True, slots=True)
class CleanupOperation:
    """One removal request and its recorded outcome.

    Attributes:
        raw_path: Path as requested by the caller.
        resolved_path: Canonical path, None if the input was invalid.
        outcome: What happened.
        size_bytes: Size measured before removal (0 when not measured).
        description: Optional human-readable label.
        failure: Failure classification for FAILED outcomes.
        error: Error or skip reason, None on success.
    """

    raw_path: str
    resolved_path: str | None
    outcome: Outcome
    size_bytes: int = 0
    description: str | None = None
    failure: FailureKind | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        """Validate operation data after initialization."""
        if self.size_bytes < 0:
            msg = f"Size cannot be negative, got {self.size_bytes}"
            raise ValueError(msg)
        if (self.outcome == Outcome.FAILED) != (self.failure is not None):
            msg = "Failure kind must be set exactly for failed outcomes"
            raise ValueError(msg)

    @property
    def success(self) -> bool:
        """Check if the item was removed or simulated."""
        return self.outcome.counts_as_removed


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Aggregate result of a batch of removal requests.

    Attributes:
        operations: Per-item operations in request order.
        cancelled: True if the batch stopped early on cancellation.
    """

    operations: tuple[CleanupOperation, ...] = field(default_factory=tuple)
    cancelled: bool = False

    @classmethod
    def of(
        cls, operations: Iterable[CleanupOperation], *, cancelled: bool = False
    ) -> "BatchResult":
        """Build a result from any iterable of operations."""
        return cls(operations=tuple(operations), cancelled=cancelled)

    @property
    def removed_count(self) -> int:
        """Items removed (or simulated in dry-run)."""
        return sum(1 for op in self.operations if op.outcome.counts_as_removed)

    @property
    def failed_count(self) -> int:
        """Items the operating system refused to remove."""
        return self.count(Outcome.FAILED)

    @property
    def skipped_count(self) -> int:
        """Items deliberately left alone."""
        return sum(1 for op in self.operations if op.outcome.is_skip)

    @property
    def total_bytes(self) -> int:
        """Bytes reclaimed (or projected) by removed items."""
        return sum(op.size_bytes for op in self.operations if op.outcome.counts_as_removed)

    def count(self, outcome: Outcome) -> int:
        """Number of operations with a given outcome."""
        return sum(1 for op in self.operations if op.outcome == outcome)

    @property
    def failures(self) -> tuple[CleanupOperation, ...]:
        """Operations that failed."""
        return tuple(op for op in self.operations if op.outcome == Outcome.FAILED)
