"""Protected filesystem paths that must never be removed.

The registry is the one hard veto of the engine: no caller flag, not
even ``force``, can remove a path that equals a rule or lies below one.
Rules are built once per process from the platform profile.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from scrubctl.core.platform import CasePolicy, PlatformProfile
from scrubctl.safety.resolver import normalize


@dataclass(frozen=True, slots=True)
class ProtectionRule:
    """A single protected absolute path.

    Attributes:
        path: Normalized absolute path.
        descendants: If True, everything below ``path`` is protected too.
            If False, only the exact path is.
    """

    path: str
    descendants: bool = True

    def __post_init__(self) -> None:
        """Validate rule data after initialization."""
        if not self.path.startswith("/"):
            msg = f"Protection rule must be absolute, got {self.path!r}"
            raise ValueError(msg)
        if normalize(self.path) != self.path:
            msg = f"Protection rule must be normalized, got {self.path!r}"
            raise ValueError(msg)


def _expand_home(path: str, home: str) -> str:
    """Expand a leading ``~`` against an explicit home directory."""
    if path == "~":
        return home
    if path.startswith("~/"):
        return home + path[1:]
    return path


class ProtectionRegistry:
    """Immutable set of protected paths with prefix-aware matching.

    Args:
        rules: Protection rules.
        case_policy: Whether comparisons ignore case.
    """

    def __init__(
        self,
        rules: Iterable[ProtectionRule],
        *,
        case_policy: CasePolicy = CasePolicy.SENSITIVE,
    ) -> None:
        self._rules: tuple[ProtectionRule, ...] = tuple(rules)
        self._case_policy = case_policy
        self._folded: tuple[tuple[str, bool], ...] = tuple(
            (self._fold(rule.path), rule.descendants) for rule in self._rules
        )

    @classmethod
    def from_profile(
        cls,
        profile: PlatformProfile,
        *,
        home: Path | None = None,
        case_policy: CasePolicy | None = None,
    ) -> "ProtectionRegistry":
        """Build the built-in registry for a platform.

        Args:
            profile: Platform profile providing the protected tables.
            home: Home directory used to expand ``~`` entries.
            case_policy: Override of the profile's case policy.

        Returns:
            ProtectionRegistry for the platform.
        """
        home_str = normalize(str(home or Path.home()))
        rules: list[ProtectionRule] = []

        for entry in profile.protected_paths:
            rules.append(ProtectionRule(normalize(_expand_home(entry, home_str))))
        for entry in profile.protected_exact:
            rules.append(
                ProtectionRule(normalize(_expand_home(entry, home_str)), descendants=False)
            )

        return cls(rules, case_policy=case_policy or profile.case_policy)

    @property
    def rules(self) -> tuple[ProtectionRule, ...]:
        """Protection rules in registration order."""
        return self._rules

    @property
    def case_policy(self) -> CasePolicy:
        """Case policy used for comparisons."""
        return self._case_policy

    def is_protected(self, path: str) -> bool:
        """Check if a normalized absolute path is protected.

        Args:
            path: Normalized absolute path (see ``resolve_path``).

        Returns:
            True if the path equals a rule or lies below a recursive rule.
        """
        candidate = self._fold(path)

        for rule_path, descendants in self._folded:
            if candidate == rule_path:
                return True
            if descendants and candidate.startswith(rule_path.rstrip("/") + "/"):
                return True

        return False

    def contains_protected(self, path: str) -> bool:
        """Check if a protected rule lies strictly below a path.

        Removing such a path recursively would remove the protected
        entry with it.

        Args:
            path: Normalized absolute path (see ``resolve_path``).

        Returns:
            True if any rule path is a strict descendant of ``path``.
        """
        prefix = self._fold(path).rstrip("/") + "/"
        return any(
            rule_path != prefix[:-1] and rule_path.startswith(prefix)
            for rule_path, _ in self._folded
        )

    def protected_ancestry(self) -> frozenset[str]:
        """All rule paths plus every ancestor directory of each rule.

        Used to reject whitelist patterns that would match a protected
        path or one of its parents.
        """
        paths: set[str] = set()
        for rule in self._rules:
            current = rule.path
            paths.add(current)
            while current != "/":
                current = current.rsplit("/", 1)[0] or "/"
                paths.add(current)
        return frozenset(paths)

    def _fold(self, path: str) -> str:
        if self._case_policy == CasePolicy.INSENSITIVE:
            return path.casefold()
        return path
