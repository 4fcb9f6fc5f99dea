"""Validated removal, dry-run simulation and session statistics."""

from scrubctl.removal.executor import RemovalExecutor, RemovalOptions, survey
from scrubctl.removal.models import BatchResult, CleanupOperation, FailureKind, Outcome
from scrubctl.removal.statistics import SessionStatistics, StatisticsSnapshot

__all__ = [
    "BatchResult",
    "CleanupOperation",
    "FailureKind",
    "Outcome",
    "RemovalExecutor",
    "RemovalOptions",
    "SessionStatistics",
    "StatisticsSnapshot",
    "survey",
]
