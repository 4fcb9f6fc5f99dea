"""XDG-compliant path management for scrubctl.

XDG defaults:
- Config: ~/.config/scrubctl/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "scrubctl"

WHITELIST_FILENAME = "whitelist"
SETTINGS_FILENAME = "config.toml"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/scrubctl/ (or XDG_CONFIG_HOME/scrubctl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_whitelist_path() -> Path:
    """Get the user whitelist file path.

    Returns:
        Path to ~/.config/scrubctl/whitelist.
    """
    return get_config_dir() / WHITELIST_FILENAME


def get_settings_path() -> Path:
    """Get the engine settings file path.

    Returns:
        Path to ~/.config/scrubctl/config.toml.
    """
    return get_config_dir() / SETTINGS_FILENAME


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_config_dir() -> Path:
    """Create the configuration directory if it doesn't exist.

    Returns:
        Path to the configuration directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_config_dir(), "config")
