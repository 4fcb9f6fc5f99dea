"""Unit tests for platform profiles."""

from unittest.mock import patch

import pytest
from scrubctl.core.platform import (
    DARWIN,
    LINUX,
    CasePolicy,
    InstallLayout,
    PlatformProfile,
    current_profile,
)
from scrubctl.safety.resolver import normalize


@pytest.mark.parametrize("profile", [LINUX, DARWIN], ids=["linux", "darwin"])
class TestProfiles:
    """Consistency checks for the built-in profiles."""

    def test_three_install_locations(self, profile: PlatformProfile) -> None:
        """Presence checks consult three canonical locations."""
        assert len(profile.install_locations) == 3

    def test_templates_carry_app_id(self, profile: PlatformProfile) -> None:
        """Every data template has a bundle id placeholder."""
        assert all("{app_id}" in t for t in profile.app_data_templates)

    def test_entries_absolute_or_home(self, profile: PlatformProfile) -> None:
        """Table entries are absolute or home-relative."""
        entries = (
            *profile.protected_paths,
            *profile.protected_exact,
            *profile.install_locations,
            *profile.app_data_roots,
            *profile.cache_dirs,
        )
        assert all(e.startswith(("/", "~")) for e in entries)

    def test_entries_normalized(self, profile: PlatformProfile) -> None:
        """Absolute entries are already normalized."""
        absolute = [e for e in profile.protected_paths if e.startswith("/")]
        assert all(normalize(e) == e for e in absolute)

    def test_root_and_home_exact(self, profile: PlatformProfile) -> None:
        """The filesystem root and home are protected exactly."""
        assert "/" in profile.protected_exact
        assert "~" in profile.protected_exact

    def test_credentials_protected(self, profile: PlatformProfile) -> None:
        """Credential stores are protected with their contents."""
        assert "~/.ssh" in profile.protected_paths
        assert "~/.gnupg" in profile.protected_paths


class TestDifferences:
    """Tests for platform-specific values."""

    def test_linux(self) -> None:
        """Linux is case-sensitive and uses desktop entries."""
        assert LINUX.case_policy == CasePolicy.SENSITIVE
        assert LINUX.install_layout == InstallLayout.DESKTOP_ENTRIES

    def test_darwin(self) -> None:
        """macOS is case-insensitive and uses app bundles."""
        assert DARWIN.case_policy == CasePolicy.INSENSITIVE
        assert DARWIN.install_layout == InstallLayout.APP_BUNDLES


class TestCurrentProfile:
    """Tests for current_profile function."""

    def test_darwin(self) -> None:
        """macOS selects the darwin profile."""
        with patch("scrubctl.core.platform.sys.platform", "darwin"):
            assert current_profile() is DARWIN

    @pytest.mark.parametrize("platform", ["linux", "freebsd14"])
    def test_other_posix(self, platform: str) -> None:
        """Everything else falls back to the linux profile."""
        with patch("scrubctl.core.platform.sys.platform", platform):
            assert current_profile() is LINUX
