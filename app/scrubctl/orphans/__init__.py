"""Orphaned application data detection."""

from scrubctl.orphans.detector import OrphanDetector
from scrubctl.orphans.models import OrphanCandidate

__all__ = [
    "OrphanCandidate",
    "OrphanDetector",
]
