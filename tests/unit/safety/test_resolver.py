"""Unit tests for path resolution.

Tests input rejection, normalization, home expansion and canonical
resolution of symlinked parent directories.
"""

from pathlib import Path

import pytest
from scrubctl.safety.errors import InvalidPathError
from scrubctl.safety.resolver import has_control_chars, normalize, resolve_path


class TestResolvePathRejection:
    """Tests for inputs that must be rejected."""

    @pytest.mark.parametrize("raw", ["", "   ", "\t"])
    def test_empty_input(self, raw: str) -> None:
        """Empty and whitespace-only input is invalid."""
        with pytest.raises(InvalidPathError, match="empty"):
            resolve_path(raw)

    def test_relative_path(self) -> None:
        """Relative paths are rejected."""
        with pytest.raises(InvalidPathError, match="not absolute"):
            resolve_path("some/relative/dir")

    @pytest.mark.parametrize(
        "raw",
        ["/tmp/../etc", "/tmp/a/../../etc/passwd", "/..", "~/../root"],
    )
    def test_traversal_component(self, raw: str) -> None:
        """Any '..' component is rejected, even if it would stay in bounds."""
        with pytest.raises(InvalidPathError, match="traversal"):
            resolve_path(raw)

    def test_dotdot_inside_name_is_allowed(self) -> None:
        """Names merely containing dots are not traversal."""
        resolved = resolve_path("/tmp/archive..old")
        assert resolved.lexical == "/tmp/archive..old"

    @pytest.mark.parametrize("raw", ["/tmp/a\nb", "/tmp/\x00x", "/tmp/\x7f"])
    def test_control_characters(self, raw: str) -> None:
        """Newlines, NUL and DEL are rejected."""
        with pytest.raises(InvalidPathError, match="control"):
            resolve_path(raw)

    def test_non_string_input(self) -> None:
        """Non-string input is treated as empty."""
        with pytest.raises(InvalidPathError):
            resolve_path(None)  # type: ignore[arg-type]


class TestResolvePathNormalization:
    """Tests for normalization and expansion."""

    def test_duplicate_separators_and_dots(self) -> None:
        """Redundant separators and '.' segments are collapsed."""
        resolved = resolve_path("//tmp//./scrubctl-test///")
        assert resolved.lexical == "/tmp/scrubctl-test"

    def test_root(self) -> None:
        """The root resolves to itself."""
        resolved = resolve_path("/")
        assert resolved.lexical == "/"
        assert resolved.canonical == "/"
        assert resolved.forms == ("/",)

    def test_home_expansion(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """A leading ~ expands to $HOME."""
        monkeypatch.setenv("HOME", str(tmp_path))
        resolved = resolve_path("~/.cache/thing")
        assert resolved.lexical == f"{tmp_path}/.cache/thing"

    def test_env_var_expansion(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Environment variables are expanded."""
        monkeypatch.setenv("SCRUBCTL_TEST_DIR", str(tmp_path))
        resolved = resolve_path("$SCRUBCTL_TEST_DIR/logs")
        assert resolved.lexical == f"{tmp_path}/logs"

    def test_raw_is_preserved(self) -> None:
        """The raw input is kept verbatim."""
        resolved = resolve_path("/tmp//x/")
        assert resolved.raw == "/tmp//x/"


class TestResolvePathCanonical:
    """Tests for symlink handling."""

    def test_symlinked_parent_is_resolved(self, tmp_path: Path) -> None:
        """A symlink in the parent chain is followed for the canonical form."""
        real = tmp_path / "real"
        real.mkdir()
        link = tmp_path / "link"
        link.symlink_to(real)

        resolved = resolve_path(f"{link}/file.txt")

        assert resolved.lexical == f"{link}/file.txt"
        assert resolved.canonical == f"{real}/file.txt"
        assert resolved.forms == (f"{link}/file.txt", f"{real}/file.txt")

    def test_final_symlink_is_not_followed(self, tmp_path: Path) -> None:
        """The entry itself is kept as named even if it is a symlink."""
        target = tmp_path / "target"
        target.mkdir()
        link = tmp_path / "entry"
        link.symlink_to(target)

        resolved = resolve_path(str(link))

        assert resolved.canonical == str(link)

    def test_nonexistent_path_resolves(self, tmp_path: Path) -> None:
        """Paths that do not exist still resolve."""
        resolved = resolve_path(f"{tmp_path}/missing/deeper")
        assert resolved.canonical == f"{tmp_path}/missing/deeper"


class TestHelpers:
    """Tests for module helpers."""

    def test_normalize_keeps_root(self) -> None:
        """Normalizing the root yields the root."""
        assert normalize("/") == "/"
        assert normalize("//") == "/"

    def test_normalize_strips_trailing_slash(self) -> None:
        """Trailing separators are dropped."""
        assert normalize("/a/b/") == "/a/b"

    def test_has_control_chars(self) -> None:
        """Control characters are detected, printable text is not."""
        assert has_control_chars("a\nb")
        assert not has_control_chars("/Library/Application Support")
