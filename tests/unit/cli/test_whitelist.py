"""Unit tests for whitelist CLI commands."""

from pathlib import Path

from scrubctl.cli.main import app
from scrubctl.core.paths import get_whitelist_path
from typer.testing import CliRunner

runner = CliRunner()


class TestWhitelistShow:
    """Tests for scrubctl whitelist show command."""

    def test_empty(self, cli_env: Path) -> None:
        """Without a user file an info line is printed."""
        result = runner.invoke(app, ["whitelist", "show"])

        assert result.exit_code == 0
        assert "Whitelist" in result.stdout
        assert "No user patterns" in result.stdout

    def test_lists_user_patterns(self, cli_env: Path) -> None:
        """Patterns from the user file are shown."""
        runner.invoke(app, ["whitelist", "add", "/srv/keep*"])

        result = runner.invoke(app, ["whitelist", "show"])

        assert "/srv/keep*" in result.stdout
        assert "No user patterns" not in result.stdout


class TestWhitelistAdd:
    """Tests for scrubctl whitelist add command."""

    def test_adds_pattern(self, cli_env: Path) -> None:
        """A valid pattern is appended to the user file."""
        result = runner.invoke(app, ["whitelist", "add", "/srv/keep*"])

        assert result.exit_code == 0
        assert "/srv/keep*" in get_whitelist_path().read_text()

    def test_rejects_protected_cover(self, cli_env: Path) -> None:
        """A pattern covering a protected path is refused."""
        result = runner.invoke(app, ["whitelist", "add", "/*"])

        assert result.exit_code == 1
        assert not get_whitelist_path().exists()

    def test_rejects_relative(self, cli_env: Path) -> None:
        """Relative patterns are refused."""
        result = runner.invoke(app, ["whitelist", "add", "relative/path"])

        assert result.exit_code == 1

    def test_whitelisted_path_skipped(self, cli_env: Path) -> None:
        """A whitelisted path survives clean without --force."""
        target = cli_env / ".cache" / "keep.log"
        target.write_text("x")
        runner.invoke(app, ["whitelist", "add", str(target)])

        result = runner.invoke(app, ["clean", "--yes", str(target)])

        assert result.exit_code == 0
        assert "Nothing to remove." in result.stdout
        assert target.exists()


class TestWhitelistApp:
    """Tests for scrubctl whitelist app command."""

    def test_protects_application_data(self, cli_env: Path) -> None:
        """Every data template of the application is whitelisted."""
        result = runner.invoke(app, ["whitelist", "app", "org.example.Editor"])

        assert result.exit_code == 0
        assert "~/.config/org.example.Editor" in get_whitelist_path().read_text()

        target = cli_env / ".cache" / "org.example.Editor" / "blob"
        checked = runner.invoke(app, ["check", str(target)])
        assert "0 of 1" in checked.stdout

    def test_invalid_bundle_id(self, cli_env: Path) -> None:
        """Malformed identifiers are refused before writing."""
        result = runner.invoke(app, ["whitelist", "app", "../etc"])

        assert result.exit_code == 1
        assert not get_whitelist_path().exists()


class TestWhitelistPath:
    """Tests for scrubctl whitelist path command."""

    def test_prints_path(self, cli_env: Path) -> None:
        """The user whitelist location is printed."""
        result = runner.invoke(app, ["whitelist", "path"])

        assert result.exit_code == 0
        assert "whitelist" in result.stdout
