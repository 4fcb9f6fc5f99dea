"""Unit tests for whitelist matching.

Tests bundle id validation, pattern admission, the user whitelist file
(read on every check) and built-in patterns.
"""

import os
from pathlib import Path

import pytest
from scrubctl.safety.errors import InvalidBundleIdError, WhitelistUnavailableError
from scrubctl.safety.protected import ProtectionRegistry
from scrubctl.safety.whitelist import (
    WHITELIST_HEADER,
    PatternSet,
    WhitelistMatcher,
    bundle_pattern,
    is_valid_bundle_id,
)


class TestBundleIds:
    """Tests for bundle identifier validation."""

    @pytest.mark.parametrize(
        "value",
        ["org.mozilla.firefox", "com.spotify.Client", "io.github.foo-bar.App", "com.example"],
    )
    def test_valid(self, value: str) -> None:
        """Reverse-DNS identifiers are accepted."""
        assert is_valid_bundle_id(value) is True

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "firefox",
            "com..example",
            ".com.example",
            "com.example.",
            "com/example",
            "com.*",
            "a b.c",
        ],
    )
    def test_invalid(self, value: str) -> None:
        """Single segments, empty segments, separators and globs are rejected."""
        assert is_valid_bundle_id(value) is False

    def test_bundle_pattern(self) -> None:
        """The identifier is interpolated into the template."""
        pattern = bundle_pattern("~/.config/{app_id}", "org.example.App")
        assert pattern == "~/.config/org.example.App"

    def test_bundle_pattern_rejects_glob(self) -> None:
        """Identifiers carrying glob characters never reach a pattern."""
        with pytest.raises(InvalidBundleIdError):
            bundle_pattern("~/.config/{app_id}", "org.*")


class TestPatternAdmission:
    """Tests for PatternSet.admit()."""

    def test_absolute_pattern_admitted(self, registry: ProtectionRegistry, tmp_path: Path) -> None:
        """An absolute pattern outside protected paths is admitted."""
        pattern_set = PatternSet(registry)
        assert pattern_set.admit(f"{tmp_path}/work/keep*") == f"{tmp_path}/work/keep*"

    def test_trailing_slash_stripped(self, registry: ProtectionRegistry, tmp_path: Path) -> None:
        """A trailing separator does not change the pattern."""
        pattern_set = PatternSet(registry)
        assert pattern_set.admit(f"{tmp_path}/work/") == f"{tmp_path}/work"

    def test_relative_pattern_rejected(self, registry: ProtectionRegistry) -> None:
        """Relative patterns are rejected."""
        assert PatternSet(registry).admit("*.log") is None

    def test_protected_pattern_rejected(
        self, registry: ProtectionRegistry, protected_dir: Path
    ) -> None:
        """A pattern matching a protected path is rejected."""
        assert PatternSet(registry).admit(str(protected_dir)) is None

    def test_ancestor_pattern_rejected(self, registry: ProtectionRegistry, tmp_path: Path) -> None:
        """A pattern matching an ancestor of a protected path is rejected."""
        pattern_set = PatternSet(registry)
        assert pattern_set.admit(str(tmp_path)) is None
        assert pattern_set.admit("/*") is None
        assert pattern_set.admit("/") is None

    def test_control_characters_rejected(self, registry: ProtectionRegistry) -> None:
        """Patterns with control characters are rejected."""
        assert PatternSet(registry).admit("/tmp/a\nb") is None


class TestUserWhitelistFile:
    """Tests for the user whitelist file."""

    def test_missing_file_matches_nothing(
        self, whitelist: WhitelistMatcher, workspace: Path
    ) -> None:
        """A missing file is an empty whitelist."""
        assert whitelist.is_whitelisted(str(workspace / "anything")) is False

    def test_comments_and_blanks_ignored(
        self, whitelist: WhitelistMatcher, whitelist_file: Path, workspace: Path
    ) -> None:
        """Comment and blank lines are not patterns."""
        whitelist_file.parent.mkdir(parents=True)
        whitelist_file.write_text(f"# {workspace}/commented\n\n   \n{workspace}/kept\n")

        assert whitelist.list_patterns()["user"] == (f"{workspace}/kept",)
        assert whitelist.is_whitelisted(f"{workspace}/kept") is True
        assert whitelist.is_whitelisted(f"{workspace}/commented") is False

    def test_glob_semantics(
        self, whitelist: WhitelistMatcher, whitelist_file: Path, workspace: Path
    ) -> None:
        """Patterns use shell-glob semantics."""
        whitelist_file.parent.mkdir(parents=True)
        whitelist_file.write_text(f"{workspace}/cache-?/*.db\n")

        assert whitelist.is_whitelisted(f"{workspace}/cache-a/index.db") is True
        assert whitelist.is_whitelisted(f"{workspace}/cache-ab/index.db") is False

    def test_edit_takes_effect_without_restart(
        self, whitelist: WhitelistMatcher, workspace: Path
    ) -> None:
        """Adding a pattern is visible to the very next check."""
        target = f"{workspace}/project/build"
        assert whitelist.is_whitelisted(target) is False

        assert whitelist.add_pattern(f"{workspace}/project/*") is True

        assert whitelist.is_whitelisted(target) is True

    def test_add_pattern_writes_header_once(
        self, whitelist: WhitelistMatcher, whitelist_file: Path, workspace: Path
    ) -> None:
        """A new file starts with the header; later additions append."""
        whitelist.add_pattern(f"{workspace}/a")
        whitelist.add_pattern(f"{workspace}/b")

        content = whitelist_file.read_text()
        assert content.startswith(WHITELIST_HEADER)
        assert content.count(WHITELIST_HEADER) == 1
        assert content.endswith(f"{workspace}/a\n{workspace}/b\n")

    def test_add_protected_pattern_refused(
        self, whitelist: WhitelistMatcher, whitelist_file: Path, protected_dir: Path
    ) -> None:
        """Protected patterns are never written."""
        assert whitelist.add_pattern(f"{protected_dir}") is False
        assert not whitelist_file.exists()

    def test_invalid_lines_in_file_ignored(
        self, whitelist: WhitelistMatcher, whitelist_file: Path, workspace: Path
    ) -> None:
        """Hand-written patterns covering protected paths are skipped."""
        whitelist_file.parent.mkdir(parents=True)
        whitelist_file.write_text("/*\nrelative/path\n" f"{workspace}/ok\n")

        assert whitelist.list_patterns()["user"] == (f"{workspace}/ok",)

    @pytest.mark.skipif(os.geteuid() == 0, reason="root can read any file")
    def test_unreadable_file_raises(
        self, whitelist: WhitelistMatcher, whitelist_file: Path, workspace: Path
    ) -> None:
        """An existing but unreadable file raises WhitelistUnavailableError."""
        whitelist_file.parent.mkdir(parents=True)
        whitelist_file.write_text(f"{workspace}/x\n")
        whitelist_file.chmod(0)
        try:
            with pytest.raises(WhitelistUnavailableError):
                whitelist.is_whitelisted(f"{workspace}/x")
        finally:
            whitelist_file.chmod(0o600)

    def test_directory_in_place_of_file_raises(
        self, whitelist: WhitelistMatcher, whitelist_file: Path, workspace: Path
    ) -> None:
        """A whitelist path that is a directory cannot be read."""
        whitelist_file.mkdir(parents=True)
        with pytest.raises(WhitelistUnavailableError):
            whitelist.is_whitelisted(f"{workspace}/x")

    def test_snapshot_ignores_later_edits(
        self, whitelist: WhitelistMatcher, whitelist_file: Path, workspace: Path
    ) -> None:
        """A snapshot keeps the patterns read when it was taken."""
        whitelist.add_pattern(f"{workspace}/keep")

        matchers = whitelist.snapshot()
        whitelist_file.write_text("")

        assert any(m.matches(f"{workspace}/keep") for m in matchers)
        assert not whitelist.is_whitelisted(f"{workspace}/keep")

    def test_snapshot_of_unreadable_file_raises(
        self, whitelist: WhitelistMatcher, whitelist_file: Path
    ) -> None:
        """Taking a snapshot fails closed like a direct check."""
        whitelist_file.mkdir(parents=True)
        with pytest.raises(WhitelistUnavailableError):
            whitelist.snapshot()


class TestProtectApplication:
    """Tests for WhitelistMatcher.protect_application()."""

    def test_writes_pattern_and_children(
        self, whitelist: WhitelistMatcher, workspace: Path
    ) -> None:
        """Each data location is whitelisted with its contents."""
        templates = (f"{workspace}/config/{{app_id}}",)

        assert whitelist.protect_application("org.example.App", templates) is True

        assert whitelist.list_patterns()["user"] == (
            f"{workspace}/config/org.example.App",
            f"{workspace}/config/org.example.App/*",
        )
        assert whitelist.is_whitelisted(f"{workspace}/config/org.example.App/state.json")

    def test_invalid_bundle_id_writes_nothing(
        self, whitelist: WhitelistMatcher, whitelist_file: Path, workspace: Path
    ) -> None:
        """A malformed identifier is refused before anything is written."""
        templates = (f"{workspace}/config/{{app_id}}",)

        assert whitelist.protect_application("*", templates) is False
        assert not whitelist_file.exists()


class TestBuiltinPatterns:
    """Tests for built-in whitelist patterns."""

    def test_builtin_patterns_match(
        self, registry: ProtectionRegistry, whitelist_file: Path, workspace: Path
    ) -> None:
        """Built-in patterns apply without a user file."""
        matcher = WhitelistMatcher(registry, (f"{workspace}/models*",), whitelist_file)

        assert matcher.is_whitelisted(f"{workspace}/models/llama") is True
        assert matcher.list_patterns() == {"builtin": (f"{workspace}/models*",), "user": ()}

    def test_env_var_expansion(
        self,
        registry: ProtectionRegistry,
        whitelist_file: Path,
        workspace: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """$HOME in built-in patterns is expanded."""
        monkeypatch.setenv("HOME", str(workspace))
        matcher = WhitelistMatcher(registry, ("$HOME/.ollama/models*",), whitelist_file)

        assert matcher.is_whitelisted(f"{workspace}/.ollama/models/blobs") is True
