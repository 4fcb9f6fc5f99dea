"""Path normalization and canonicalization.

Turns arbitrary caller input into an absolute path that the protection
and whitelist checks can reason about. The parent chain is resolved
through symlinks, the final component is kept as named: checks apply to
the entry the caller asked for, not to whatever it happens to point at.
"""

import os
import posixpath
from dataclasses import dataclass

from scrubctl.safety.errors import InvalidPathError


@dataclass(frozen=True, slots=True)
class ResolvedPath:
    """A validated, normalized path.

    Attributes:
        raw: Input exactly as received.
        lexical: Expanded and normalized path, symlinks untouched.
        canonical: ``lexical`` with its parent chain resolved through
            symlinks; the final component is not followed.
    """

    raw: str
    lexical: str
    canonical: str

    @property
    def forms(self) -> tuple[str, ...]:
        """Distinct path forms that safety checks must consider."""
        if self.lexical == self.canonical:
            return (self.lexical,)
        return (self.lexical, self.canonical)


def has_control_chars(value: str) -> bool:
    """Check for newline, NUL and other control characters."""
    return any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value)


def expand(value: str) -> str:
    """Expand ``~`` and environment variables in a path or pattern."""
    return os.path.expanduser(os.path.expandvars(value))


def normalize(path: str) -> str:
    """Collapse duplicate separators and ``.`` segments.

    Trailing separators are dropped (except for the root itself).
    """
    normalized = posixpath.normpath(path)
    # POSIX keeps a leading double slash; it has no meaning here
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def resolve_path(raw: str) -> ResolvedPath:
    """Validate and canonicalize a path string.

    Args:
        raw: Path as supplied by the caller.

    Returns:
        ResolvedPath with lexical and canonical forms.

    Raises:
        InvalidPathError: If the input is empty, contains control
            characters, is relative after expansion, or contains a
            ``..`` traversal component.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidPathError("Path is empty")

    if has_control_chars(raw):
        raise InvalidPathError(f"Path contains control characters: {raw!r}")

    expanded = expand(raw)
    if has_control_chars(expanded):
        raise InvalidPathError(f"Expanded path contains control characters: {raw!r}")

    if not expanded.startswith("/"):
        raise InvalidPathError(f"Path is not absolute: {raw}")

    if ".." in expanded.split("/"):
        raise InvalidPathError(f"Path contains a traversal sequence: {raw}")

    lexical = normalize(expanded)
    if lexical == "/":
        return ResolvedPath(raw=raw, lexical="/", canonical="/")

    parent, name = posixpath.split(lexical)
    canonical_parent = os.path.realpath(parent)
    canonical = normalize(posixpath.join(canonical_parent, name))

    return ResolvedPath(raw=raw, lexical=lexical, canonical=canonical)
