"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from pathlib import Path

import pytest
from scrubctl.core.platform import CasePolicy
from scrubctl.removal.statistics import SessionStatistics
from scrubctl.safety.protected import ProtectionRegistry, ProtectionRule
from scrubctl.safety.validator import PathValidator
from scrubctl.safety.whitelist import WhitelistMatcher


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG config at a temporary directory and clear scrubctl env flags."""
    config_home = tmp_path / "xdg-config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.delenv("SCRUBCTL_DRY_RUN", raising=False)
    monkeypatch.delenv("SCRUBCTL_DEBUG", raising=False)
    return config_home


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Directory tree root for removal tests (outside any protected path)."""
    root = tmp_path / "work"
    root.mkdir()
    return root


@pytest.fixture
def protected_dir(tmp_path: Path) -> Path:
    """A directory protected together with its descendants."""
    path = tmp_path / "protected"
    path.mkdir()
    (path / "important.txt").write_text("keep me")
    return path


@pytest.fixture
def registry(protected_dir: Path) -> ProtectionRegistry:
    """Registry protecting ``protected_dir`` recursively and "/" exactly."""
    return ProtectionRegistry(
        [
            ProtectionRule(str(protected_dir)),
            ProtectionRule("/", descendants=False),
        ],
        case_policy=CasePolicy.SENSITIVE,
    )


@pytest.fixture
def whitelist_file(tmp_path: Path) -> Path:
    """Location of the user whitelist file (not created)."""
    return tmp_path / "config" / "whitelist"


@pytest.fixture
def whitelist(registry: ProtectionRegistry, whitelist_file: Path) -> WhitelistMatcher:
    """Whitelist with no built-in patterns."""
    return WhitelistMatcher(registry, (), whitelist_file)


@pytest.fixture
def validator(registry: ProtectionRegistry, whitelist: WhitelistMatcher) -> PathValidator:
    """Validator composed from the test registry and whitelist."""
    return PathValidator(registry, whitelist)


@pytest.fixture
def statistics() -> SessionStatistics:
    """Fresh session statistics."""
    return SessionStatistics()
