"""Whitelist matching for user-excluded paths.

Whitelisted paths are deliberately skipped by every removal. Two sources
feed the whitelist: built-in patterns from the platform profile (compiled
once) and the user's whitelist file (re-read on every check, so edits
take effect without restarting).

All glob handling lives here. Patterns use shell-glob semantics
(``*``, ``?``, ``[...]``) via ``fnmatch.translate``. Identifiers that are
interpolated into patterns must pass ``is_valid_bundle_id`` first.
"""

import fnmatch
import logging
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from scrubctl.core.platform import CasePolicy
from scrubctl.safety.errors import InvalidBundleIdError, WhitelistUnavailableError
from scrubctl.safety.protected import ProtectionRegistry
from scrubctl.safety.resolver import expand, has_control_chars

logger = logging.getLogger(__name__)

# Reverse-DNS identifier: at least two [A-Za-z0-9-]+ segments joined by dots
_BUNDLE_ID_RE = re.compile(r"[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)+")

WHITELIST_HEADER = (
    "# scrubctl whitelist: one absolute path or glob pattern per line.\n"
    "# Matching paths are never removed. Lines starting with # are ignored.\n"
)


def is_valid_bundle_id(value: str) -> bool:
    """Check that an identifier is a well-formed reverse-DNS bundle id.

    Args:
        value: Candidate identifier (e.g., "org.mozilla.firefox").

    Returns:
        True if the identifier is safe to interpolate into a glob pattern.
    """
    return bool(_BUNDLE_ID_RE.fullmatch(value))


def bundle_pattern(template: str, bundle_id: str) -> str:
    """Build a pattern from a template and a bundle identifier.

    Args:
        template: Pattern template containing ``{app_id}``.
        bundle_id: Application bundle identifier.

    Returns:
        The template with the identifier interpolated.

    Raises:
        InvalidBundleIdError: If the identifier is not well-formed.
    """
    if not is_valid_bundle_id(bundle_id):
        raise InvalidBundleIdError(f"Invalid bundle identifier: {bundle_id!r}")
    return template.format(app_id=bundle_id)


class Matcher(Protocol):
    """A source of whitelist patterns."""

    def matches(self, path: str) -> bool:
        """Return True if the normalized path matches a pattern."""
        ...


class PatternSet:
    """Compiled glob patterns with protection-aware admission.

    A pattern is admitted only if, after ``~`` and ``$VAR`` expansion, it
    is absolute, free of control characters, and matches neither a
    protected path nor any ancestor of one.

    Args:
        registry: Protection registry used to vet patterns.
    """

    def __init__(self, registry: ProtectionRegistry) -> None:
        self._registry = registry
        self._flags = re.IGNORECASE if registry.case_policy == CasePolicy.INSENSITIVE else 0
        self._ancestry = registry.protected_ancestry()

    def compile(self, patterns: Iterable[str], *, source: str) -> list[tuple[str, re.Pattern[str]]]:
        """Expand, vet and compile patterns.

        Args:
            patterns: Raw pattern lines.
            source: Name of the pattern source for log messages.

        Returns:
            List of (expanded pattern, compiled regex) pairs.
        """
        compiled: list[tuple[str, re.Pattern[str]]] = []
        for raw in patterns:
            pattern = self.admit(raw)
            if pattern is None:
                logger.warning("Ignoring whitelist pattern from %s: %r", source, raw)
                continue
            compiled.append((pattern, re.compile(fnmatch.translate(pattern), self._flags)))
        return compiled

    def admit(self, raw: str) -> str | None:
        """Expand a pattern and return it if it is acceptable.

        Args:
            raw: Pattern as written.

        Returns:
            Expanded pattern, or None if the pattern is rejected.
        """
        if has_control_chars(raw):
            return None

        pattern = expand(raw.strip())
        if not pattern.startswith("/") or has_control_chars(pattern):
            return None
        if len(pattern) > 1:
            pattern = pattern.rstrip("/")

        regex = re.compile(fnmatch.translate(pattern), self._flags)
        if any(regex.match(protected) for protected in self._ancestry):
            return None

        return pattern


class BuiltinMatcher:
    """Matcher over patterns compiled once at construction.

    Args:
        patterns: Glob patterns.
        pattern_set: Compiler/vetting policy.
        source: Name of the pattern source for log messages.
    """

    def __init__(
        self, patterns: Iterable[str], pattern_set: PatternSet, *, source: str = "built-in"
    ) -> None:
        self._compiled = pattern_set.compile(patterns, source=source)

    @property
    def patterns(self) -> tuple[str, ...]:
        """Admitted patterns after expansion."""
        return tuple(pattern for pattern, _ in self._compiled)

    def matches(self, path: str) -> bool:
        """Return True if the path matches one of the patterns."""
        return any(regex.match(path) for _, regex in self._compiled)


class UserFileMatcher:
    """Matcher over the user whitelist file, re-read on every call.

    Args:
        path: Location of the whitelist file.
        pattern_set: Compiler/vetting policy.
    """

    def __init__(self, path: Path, pattern_set: PatternSet) -> None:
        self._path = path
        self._pattern_set = pattern_set

    @property
    def path(self) -> Path:
        """Location of the whitelist file."""
        return self._path

    def read_lines(self) -> list[str]:
        """Read pattern lines, skipping comments and blanks.

        Returns:
            Raw pattern lines. Empty if the file does not exist.

        Raises:
            WhitelistUnavailableError: If the file exists but cannot be read.
        """
        try:
            text = self._path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return []
        except OSError as e:
            raise WhitelistUnavailableError(f"Cannot read whitelist {self._path}: {e}") from e

        lines: list[str] = []
        for line in text.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            lines.append(stripped)
        return lines

    def patterns(self) -> tuple[str, ...]:
        """Admitted patterns currently in the file."""
        compiled = self._pattern_set.compile(self.read_lines(), source=str(self._path))
        return tuple(pattern for pattern, _ in compiled)

    def matches(self, path: str) -> bool:
        """Return True if the path matches a pattern in the file.

        Raises:
            WhitelistUnavailableError: If the file cannot be read.
        """
        compiled = self._pattern_set.compile(self.read_lines(), source=str(self._path))
        return any(regex.match(path) for _, regex in compiled)


class WhitelistMatcher:
    """Combined whitelist: built-in patterns first, then the user file.

    Args:
        registry: Protection registry used to vet patterns.
        builtin_patterns: Built-in patterns from the platform profile.
        user_file: Location of the user whitelist file.
    """

    def __init__(
        self,
        registry: ProtectionRegistry,
        builtin_patterns: Iterable[str],
        user_file: Path,
    ) -> None:
        self._pattern_set = PatternSet(registry)
        self._builtin = BuiltinMatcher(builtin_patterns, self._pattern_set)
        self._user = UserFileMatcher(user_file, self._pattern_set)
        self._matchers: tuple[Matcher, ...] = (self._builtin, self._user)

    @property
    def user_file(self) -> Path:
        """Location of the user whitelist file."""
        return self._user.path

    def is_whitelisted(self, path: str) -> bool:
        """Check a normalized path against all whitelist sources.

        Raises:
            WhitelistUnavailableError: If the user file cannot be read.
        """
        return any(matcher.matches(path) for matcher in self._matchers)

    def snapshot(self) -> tuple[Matcher, ...]:
        """Freeze the current patterns into matchers that never read the disk.

        Used to check many paths against one consistent view of the user
        file.

        Raises:
            WhitelistUnavailableError: If the user file cannot be read.
        """
        user = BuiltinMatcher(
            self._user.read_lines(), self._pattern_set, source=str(self._user.path)
        )
        return (self._builtin, user)

    def list_patterns(self) -> dict[str, tuple[str, ...]]:
        """Effective patterns grouped by source ("builtin", "user")."""
        return {"builtin": self._builtin.patterns, "user": self._user.patterns()}

    def add_pattern(self, pattern: str) -> bool:
        """Append a pattern to the user whitelist file.

        Args:
            pattern: Absolute path or glob pattern.

        Returns:
            True if the pattern was written, False if it was rejected.
        """
        if self._pattern_set.admit(pattern) is None:
            logger.warning("Refusing to whitelist pattern: %r", pattern)
            return False

        path = self._user.path
        path.parent.mkdir(parents=True, exist_ok=True)
        new_file = not path.exists()
        with path.open(mode="a", encoding="utf-8") as f:
            if new_file:
                f.write(WHITELIST_HEADER)
            f.write(pattern.strip() + "\n")
        return True

    def protect_application(self, bundle_id: str, templates: Iterable[str]) -> bool:
        """Whitelist every data location of an application.

        Args:
            bundle_id: Application bundle identifier.
            templates: Data path templates containing ``{app_id}``.

        Returns:
            True if patterns were written, False if the identifier is
            malformed (nothing is written in that case).
        """
        try:
            patterns = [bundle_pattern(template, bundle_id) for template in templates]
        except InvalidBundleIdError as e:
            logger.warning("Skipping application whitelist: %s", e)
            return False

        written = False
        for pattern in patterns:
            written = self.add_pattern(pattern) or written
            written = self.add_pattern(pattern.rstrip("/") + "/*") or written
        return written
