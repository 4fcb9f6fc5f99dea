"""Platform profiles for the safety engine.

A profile bundles everything that differs between operating systems:
the protected path table, the filename case policy, built-in whitelist
patterns, the canonical application install locations and the places
where applications keep their per-user data.

Entries starting with ``~`` are relative to the user's home directory
and are expanded by the components that consume them.
"""

import sys
from dataclasses import dataclass
from enum import Enum


class CasePolicy(str, Enum):
    """Filename comparison policy of the target filesystem.

    Attributes:
        SENSITIVE: Paths differing only in case are different paths.
        INSENSITIVE: Paths differing only in case name the same entry.
    """

    SENSITIVE = "sensitive"
    INSENSITIVE = "insensitive"


class InstallLayout(str, Enum):
    """How installed applications are discovered in an install location.

    Attributes:
        DESKTOP_ENTRIES: ``<app-id>.desktop`` files (freedesktop).
        APP_BUNDLES: ``*.app`` bundles carrying an ``Info.plist`` (macOS).
    """

    DESKTOP_ENTRIES = "desktop_entries"
    APP_BUNDLES = "app_bundles"


@dataclass(frozen=True, slots=True)
class PlatformProfile:
    """Platform-specific tables consumed by the engine.

    Attributes:
        name: Short platform name ("linux", "darwin").
        case_policy: Default filename case policy.
        protected_paths: Paths protected together with their descendants.
        protected_exact: Paths protected only by exact match.
        builtin_whitelist: Glob patterns that are always whitelisted.
        install_layout: How to detect installed applications.
        install_locations: The canonical application install locations.
        app_data_templates: Per-application data path templates, with
            ``{app_id}`` standing for a validated bundle identifier.
        app_data_roots: Directories whose entries name application data.
        cache_dirs: Default cache directories for bulk cache cleanup.
        excluded_app_prefixes: Vendor/identifier prefixes never orphaned.
    """

    name: str
    case_policy: CasePolicy
    protected_paths: tuple[str, ...]
    protected_exact: tuple[str, ...]
    builtin_whitelist: tuple[str, ...]
    install_layout: InstallLayout
    install_locations: tuple[str, ...]
    app_data_templates: tuple[str, ...]
    app_data_roots: tuple[str, ...]
    cache_dirs: tuple[str, ...]
    excluded_app_prefixes: tuple[str, ...]


# Shared between profiles
_COMMON_PROTECTED: tuple[str, ...] = (
    # Security
    "~/.ssh",
    "~/.gnupg",
    "~/.gpg",
    # scrubctl itself
    "~/.config/scrubctl",
)

LINUX = PlatformProfile(
    name="linux",
    case_policy=CasePolicy.SENSITIVE,
    protected_paths=(
        *_COMMON_PROTECTED,
        "/bin",
        "/sbin",
        "/lib",
        "/lib32",
        "/lib64",
        "/usr",
        "/etc",
        "/boot",
        "/dev",
        "/proc",
        "/sys",
        "/run",
        "/snap",
        "/var/lib/dpkg",
        "/var/lib/apt",
        "/var/lib/rpm",
        "/var/lib/flatpak",
        "/var/lib/snapd",
        "/var/lib/systemd",
        "/opt/microsoft/mdatp",
        "/opt/sophos-spl",
        "/opt/CrowdStrike",
        "~/.local/share/keyrings",
        "~/.local/share/flatpak",
        "~/.pki",
    ),
    protected_exact=("/", "/home", "/root", "/var", "/opt", "~"),
    builtin_whitelist=(
        "$HOME/.cache/ms-playwright*",
        "$HOME/.cache/huggingface*",
        "$HOME/.m2/repository*",
        "$HOME/.ollama/models*",
    ),
    install_layout=InstallLayout.DESKTOP_ENTRIES,
    install_locations=(
        "/usr/share/applications",
        "~/.local/share/applications",
        "/var/lib/flatpak/exports/share/applications",
    ),
    app_data_templates=(
        "~/.var/app/{app_id}",
        "~/.config/{app_id}",
        "~/.cache/{app_id}",
        "~/.local/share/{app_id}",
        "~/.local/state/{app_id}",
    ),
    app_data_roots=(
        "~/.var/app",
        "~/.config",
        "~/.cache",
        "~/.local/share",
    ),
    cache_dirs=("~/.cache",),
    excluded_app_prefixes=(
        "org.freedesktop.",
        "org.gnome.",
        "org.kde.",
        "com.system76.",
        "io.scrubctl.",
    ),
)

DARWIN = PlatformProfile(
    name="darwin",
    case_policy=CasePolicy.INSENSITIVE,
    protected_paths=(
        *_COMMON_PROTECTED,
        "/System",
        "/bin",
        "/sbin",
        "/usr",
        "/etc",
        "/private/etc",
        "/private/var/db",
        "/var/db",
        "/Library/Apple",
        "/Library/Extensions",
        "/Library/Keychains",
        "/Library/Security",
        "/Library/Application Support/CrowdStrike",
        "/Library/Application Support/Objective-See",
        "/Library/Little Snitch",
        "/Applications/Utilities",
        "~/Library/Keychains",
        "~/Library/Mobile Documents",
        "~/Library/Mail",
    ),
    protected_exact=(
        "/",
        "/Users",
        "/Applications",
        "/Library",
        "/private",
        "/var",
        "~",
        "~/Library",
    ),
    builtin_whitelist=(
        "$HOME/Library/Caches/ms-playwright*",
        "$HOME/Library/Caches/com.nssurge.surge-mac*",
        "$HOME/Library/Application Support/FileProvider*",
        "$HOME/.m2/repository*",
        "$HOME/.ollama/models*",
    ),
    install_layout=InstallLayout.APP_BUNDLES,
    install_locations=(
        "/Applications",
        "~/Applications",
        "/System/Applications",
    ),
    app_data_templates=(
        "~/Library/Application Support/{app_id}",
        "~/Library/Caches/{app_id}",
        "~/Library/Containers/{app_id}",
        "~/Library/HTTPStorages/{app_id}",
        "~/Library/WebKit/{app_id}",
        "~/Library/Saved Application State/{app_id}.savedState",
        "~/Library/Preferences/{app_id}.plist",
        "~/Library/Preferences/ByHost/{app_id}.*.plist",
    ),
    app_data_roots=(
        "~/Library/Application Support",
        "~/Library/Caches",
        "~/Library/Containers",
        "~/Library/Preferences",
        "~/Library/Saved Application State",
    ),
    cache_dirs=("~/Library/Caches", "~/Library/Logs"),
    excluded_app_prefixes=(
        "com.apple.",
        "com.microsoft.",
        "com.crowdstrike.",
        "io.scrubctl.",
    ),
)


def current_profile() -> PlatformProfile:
    """Return the profile matching the running operating system.

    Unknown POSIX platforms use the Linux profile.
    """
    if sys.platform == "darwin":
        return DARWIN
    return LINUX
