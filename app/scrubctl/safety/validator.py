"""Single safety gate in front of every removal.

The checks run as an explicit, ordered pipeline:

1. resolve   - the input must be a well-formed absolute path
2. protect   - the path must not be protected (never skippable)
3. contents  - no protected path may lie below it (removal only)
4. whitelist - the path must not match a whitelist pattern

The first failing stage decides the verdict. Expected failures never
raise; they come back as a ``ValidationResult``.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from scrubctl.safety.errors import InvalidPathError, WhitelistUnavailableError
from scrubctl.safety.protected import ProtectionRegistry
from scrubctl.safety.resolver import ResolvedPath, resolve_path
from scrubctl.safety.whitelist import Matcher, WhitelistMatcher

logger = logging.getLogger(__name__)


class Verdict(str, Enum):
    """Outcome of path validation.

    Attributes:
        SAFE: Path may be removed.
        INVALID: Input is malformed, empty or traversal-bearing.
        PROTECTED: Path equals, lies below or (for removal) contains a
            protected path.
        WHITELISTED: Path matches a whitelist pattern (or the whitelist
            could not be read, which fails closed).
    """

    SAFE = "safe"
    INVALID = "invalid"
    PROTECTED = "protected"
    WHITELISTED = "whitelisted"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Result of validating one path.

    Attributes:
        raw: Path as supplied by the caller.
        resolved: Resolved path, None if resolution failed.
        verdict: Validation verdict.
        reason: Human-readable explanation for non-safe verdicts.
    """

    raw: str
    resolved: ResolvedPath | None
    verdict: Verdict
    reason: str | None = None

    @property
    def is_safe(self) -> bool:
        """Check if the path may be removed."""
        return self.verdict == Verdict.SAFE

    @property
    def canonical(self) -> str | None:
        """Canonical path, None if resolution failed."""
        return self.resolved.canonical if self.resolved else None


# A stage returns a rejecting result, or None to pass the path on
_Stage = Callable[[str, ResolvedPath], ValidationResult | None]


class PathValidator:
    """Composes resolver, protection registry and whitelist.

    Args:
        registry: Protection registry (hard veto).
        whitelist: Whitelist matcher (user and built-in exclusions).
    """

    def __init__(self, registry: ProtectionRegistry, whitelist: WhitelistMatcher) -> None:
        self._registry = registry
        self._whitelist = whitelist

    @property
    def registry(self) -> ProtectionRegistry:
        """Protection registry used by the protect stage."""
        return self._registry

    @property
    def whitelist(self) -> WhitelistMatcher:
        """Whitelist matcher used by the whitelist stage."""
        return self._whitelist

    def pipeline(
        self, *, honour_whitelist: bool = True, recursive: bool = True
    ) -> tuple[_Stage, ...]:
        """Ordered post-resolution stages.

        The protection stage is always first and always present.
        """
        stages: list[_Stage] = [self._check_protected]
        if recursive:
            stages.append(self._check_contents)
        if honour_whitelist:
            stages.append(self._check_whitelisted)
        return tuple(stages)

    def validate(
        self, path: str, *, honour_whitelist: bool = True, recursive: bool = True
    ) -> ValidationResult:
        """Run the validation pipeline on a path.

        Args:
            path: Path as supplied by the caller.
            honour_whitelist: If False, skip the whitelist stage. The
                protection stage cannot be skipped.
            recursive: If True (removal), a path with a protected entry
                below it is PROTECTED too. Pass False for a directory that
                is only walked and whose entries are validated one by one.

        Returns:
            ValidationResult with the verdict of the first failing stage.
        """
        try:
            resolved = resolve_path(path)
        except InvalidPathError as e:
            return ValidationResult(raw=path, resolved=None, verdict=Verdict.INVALID, reason=str(e))

        for stage in self.pipeline(honour_whitelist=honour_whitelist, recursive=recursive):
            rejection = stage(path, resolved)
            if rejection is not None:
                logger.debug("Rejected %s: %s", path, rejection.verdict.value)
                return rejection

        return ValidationResult(raw=path, resolved=resolved, verdict=Verdict.SAFE)

    def is_safe_to_remove(self, path: str) -> bool:
        """Check if a path passes every validation stage."""
        return self.validate(path).is_safe

    def tree_guard(
        self, resolved: ResolvedPath, *, honour_whitelist: bool = True
    ) -> Callable[[str], str | None]:
        """Build a check for the entries of a directory about to be removed.

        The returned callable takes the path of an entry below
        ``resolved.canonical`` and returns a rejection reason, or None if
        the entry may be removed with its parent. The user whitelist is
        read once, here; if it cannot be read every entry is rejected.

        Args:
            resolved: The directory that passed ``validate``.
            honour_whitelist: If False, only protection is checked.

        Returns:
            Entry check function.
        """
        matchers: tuple[Matcher, ...] = ()
        unavailable: str | None = None
        if honour_whitelist:
            try:
                matchers = self._whitelist.snapshot()
            except WhitelistUnavailableError as e:
                logger.warning("%s; keeping everything below %s", e, resolved.raw)
                unavailable = str(e)

        root = resolved.canonical.rstrip("/")

        def check(path: str) -> str | None:
            forms = [path]
            # Entries are listed below the canonical form; rebuild the lexical one
            if resolved.lexical != resolved.canonical and path.startswith(root + "/"):
                forms.append(resolved.lexical.rstrip("/") + path[len(root) :])

            for form in forms:
                if self._registry.is_protected(form):
                    return f"Contains protected path: {form}"
            if unavailable is not None:
                return unavailable
            for form in forms:
                if any(matcher.matches(form) for matcher in matchers):
                    return f"Contains whitelisted path: {form}"
            return None

        return check

    def _check_protected(self, raw: str, resolved: ResolvedPath) -> ValidationResult | None:
        for form in resolved.forms:
            if self._registry.is_protected(form):
                return ValidationResult(
                    raw=raw,
                    resolved=resolved,
                    verdict=Verdict.PROTECTED,
                    reason=f"Protected path cannot be removed: {form}",
                )
        return None

    def _check_contents(self, raw: str, resolved: ResolvedPath) -> ValidationResult | None:
        for form in resolved.forms:
            if self._registry.contains_protected(form):
                return ValidationResult(
                    raw=raw,
                    resolved=resolved,
                    verdict=Verdict.PROTECTED,
                    reason=f"Path contains a protected path: {form}",
                )
        return None

    def _check_whitelisted(self, raw: str, resolved: ResolvedPath) -> ValidationResult | None:
        try:
            for form in resolved.forms:
                if self._whitelist.is_whitelisted(form):
                    return ValidationResult(
                        raw=raw,
                        resolved=resolved,
                        verdict=Verdict.WHITELISTED,
                        reason=f"Whitelisted by user rule: {form}",
                    )
        except WhitelistUnavailableError as e:
            logger.warning("%s; treating %s as whitelisted", e, raw)
            return ValidationResult(
                raw=raw,
                resolved=resolved,
                verdict=Verdict.WHITELISTED,
                reason=str(e),
            )
        return None
