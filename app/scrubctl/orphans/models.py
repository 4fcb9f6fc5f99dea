"""Orphan detection models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class OrphanCandidate:
    """Application data whose owning application appears to be gone.

    Candidates are produced fresh on every scan and never mutated.

    Attributes:
        app_id: Bundle identifier of the owning application.
        path: Absolute path of the data entry.
        last_modified: Modification time of the entry (timezone-aware UTC).
        checked_locations: Install locations inspected for the application.
        size_bytes: Size in bytes (recursive for directories, None if unavailable).
    """

    app_id: str
    path: str
    last_modified: datetime
    checked_locations: tuple[str, ...]
    size_bytes: int | None = None

    def __post_init__(self) -> None:
        """Validate candidate data after initialization."""
        if not self.path:
            msg = "Path cannot be empty"
            raise ValueError(msg)
        if self.last_modified.tzinfo is None:
            msg = "last_modified must be timezone-aware"
            raise ValueError(msg)

    def age_days(self, now: datetime) -> float:
        """Age of the entry in days relative to ``now``."""
        return (now - self.last_modified).total_seconds() / 86400
