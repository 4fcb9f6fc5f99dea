"""Shared fixtures for CLI tests.

Sessions created by the CLI use a platform profile rooted in a
temporary home directory and mocked system probes, so commands never
touch the real home directory or run system tools.
"""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from scrubctl.core.platform import CasePolicy, InstallLayout, PlatformProfile
from scrubctl.utils.probes import SystemProbes


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "home"
    (path / ".cache").mkdir(parents=True)
    (path / ".config").mkdir()
    monkeypatch.setenv("HOME", str(path))
    return path


@pytest.fixture
def profile(tmp_path: Path) -> PlatformProfile:
    return PlatformProfile(
        name="linux",
        case_policy=CasePolicy.SENSITIVE,
        protected_paths=("~/.ssh",),
        protected_exact=("/", "~"),
        builtin_whitelist=(),
        install_layout=InstallLayout.DESKTOP_ENTRIES,
        install_locations=(str(tmp_path / "apps"), "~/apps", str(tmp_path / "flatpak")),
        app_data_templates=("~/.config/{app_id}", "~/.cache/{app_id}"),
        app_data_roots=("~/.config",),
        cache_dirs=("~/.cache",),
        excluded_app_prefixes=(),
    )


@pytest.fixture
def probes() -> MagicMock:
    mock = MagicMock(spec=SystemProbes)
    mock.backup_in_progress.return_value = False
    mock.is_network_volume.return_value = False
    mock.service_active.return_value = False
    return mock


@pytest.fixture
def cli_env(home: Path, profile: PlatformProfile, probes: MagicMock) -> Iterator[Path]:
    """Patch session construction and yield the temporary home."""
    with (
        patch("scrubctl.core.session.current_profile", return_value=profile),
        patch("scrubctl.core.session.SystemProbes", return_value=probes),
    ):
        yield home
