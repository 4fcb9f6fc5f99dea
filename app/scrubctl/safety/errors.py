"""Exception taxonomy for the safety and removal engine.

Validation failures raised here are caught inside the engine and turned
into verdicts or outcomes. They only escape from the low-level helpers
(``resolve_path``, ``bundle_pattern``) that callers use directly.
"""


class ScrubctlError(Exception):
    """Base exception for scrubctl errors."""


class InvalidPathError(ScrubctlError):
    """Raised for empty, malformed or traversal-bearing path input."""


class WhitelistUnavailableError(ScrubctlError):
    """Raised when the user whitelist file exists but cannot be read."""


class InvalidBundleIdError(ScrubctlError):
    """Raised when an identifier is not a well-formed reverse-DNS bundle id."""


class SymlinkBoundaryError(ScrubctlError):
    """Raised when a tree contains a symlink escaping its own subtree."""

    def __init__(self, link: str, target: str) -> None:
        super().__init__(f"Symlink {link} points outside the tree: {target}")
        self.link = link
        self.target = target


class GuardedContentError(ScrubctlError):
    """Raised when a tree holds an entry that must not be removed with it."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(reason)
        self.path = path
        self.reason = reason


class SettingsError(ScrubctlError):
    """Base exception for settings file errors."""


class SettingsParseError(SettingsError):
    """Raised when the settings file is not valid TOML."""
