"""Safety validation for removals.

This module provides path resolution, the protected path registry,
whitelist matching and the validator that composes them into a single
gate in front of every removal.
"""

from scrubctl.safety.errors import (
    InvalidBundleIdError,
    InvalidPathError,
    ScrubctlError,
    SymlinkBoundaryError,
    WhitelistUnavailableError,
)
from scrubctl.safety.protected import ProtectionRegistry, ProtectionRule
from scrubctl.safety.resolver import ResolvedPath, resolve_path
from scrubctl.safety.validator import PathValidator, ValidationResult, Verdict
from scrubctl.safety.whitelist import (
    WhitelistMatcher,
    bundle_pattern,
    is_valid_bundle_id,
)

__all__ = [
    "InvalidBundleIdError",
    "InvalidPathError",
    "PathValidator",
    "ProtectionRegistry",
    "ProtectionRule",
    "ResolvedPath",
    "ScrubctlError",
    "SymlinkBoundaryError",
    "ValidationResult",
    "Verdict",
    "WhitelistMatcher",
    "WhitelistUnavailableError",
    "bundle_pattern",
    "is_valid_bundle_id",
    "resolve_path",
]
