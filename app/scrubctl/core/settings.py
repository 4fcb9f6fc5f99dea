"""Engine settings and their persistence.

Settings are read once at session start from
``~/.config/scrubctl/config.toml`` and then overridden by the
``SCRUBCTL_DRY_RUN`` and ``SCRUBCTL_DEBUG`` environment variables.
The resulting model is frozen: nothing in a session can flip dry-run
mode once removals have started.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from scrubctl.core.paths import ensure_config_dir, get_settings_path
from scrubctl.safety.errors import SettingsError, SettingsParseError

logger = logging.getLogger(__name__)

DRY_RUN_ENV = "SCRUBCTL_DRY_RUN"
DEBUG_ENV = "SCRUBCTL_DEBUG"

_TRUTHY: frozenset[str] = frozenset({"1", "true", "yes", "on"})

# Hard upper bound for the removal worker pool
MAX_WORKERS_CAP = 16


class EngineSettings(BaseModel):
    """Configuration for one cleanup session.

    Attributes:
        dry_run: Simulate removals without mutating the filesystem.
        debug: Enable debug logging.
        retention_days: Minimum age of application data before it can
            be considered orphaned.
        max_workers: Upper bound for the removal worker pool.
        empty_dir_max_passes: Maximum passes of empty-directory removal.
        case_insensitive: Override of the platform case policy
            (None keeps the platform default).
        excluded_app_prefixes: Extra bundle id prefixes never orphaned.
        respect_backups: Skip bulk cache cleanup while a backup runs.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    dry_run: Annotated[bool, Field(description="Simulate removals")] = False
    debug: Annotated[bool, Field(description="Enable debug logging")] = False
    retention_days: Annotated[
        int,
        Field(ge=1, le=3650, description="Orphan retention threshold in days"),
    ] = 60
    max_workers: Annotated[
        int,
        Field(ge=1, le=MAX_WORKERS_CAP, description="Removal worker pool size"),
    ] = 4
    empty_dir_max_passes: Annotated[
        int,
        Field(ge=1, le=20, description="Maximum empty-directory passes"),
    ] = 5
    case_insensitive: Annotated[
        bool | None,
        Field(description="Case policy override (None = platform default)"),
    ] = None
    excluded_app_prefixes: Annotated[
        tuple[str, ...],
        Field(description="Additional bundle id prefixes never orphaned"),
    ] = ()
    respect_backups: Annotated[
        bool,
        Field(description="Skip cache cleanup while a backup is running"),
    ] = True


def env_flag(name: str) -> bool | None:
    """Read a boolean environment variable.

    Args:
        name: Environment variable name.

    Returns:
        True/False when the variable is set, None when it is unset or empty.
    """
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip().lower() in _TRUTHY


def load_settings(path: Path | None = None, *, use_env: bool = True) -> EngineSettings:
    """Load settings from TOML and apply environment overrides.

    A missing settings file yields the defaults.

    Args:
        path: Settings file to read. If None, uses the default location.
        use_env: Apply ``SCRUBCTL_DRY_RUN``/``SCRUBCTL_DEBUG`` overrides.

    Returns:
        Validated, frozen EngineSettings.

    Raises:
        SettingsParseError: If the TOML syntax is invalid.
        SettingsError: If the file cannot be read or violates the schema.
    """
    settings_path = path or get_settings_path()
    data: dict[str, object] = {}

    if settings_path.exists():
        try:
            with open(settings_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise SettingsParseError(f"Invalid TOML syntax in {settings_path}: {e}") from e
        except OSError as e:
            raise SettingsError(f"Failed to read settings: {e}") from e
        logger.debug("Loaded settings from %s", settings_path)

    if use_env:
        for env_name, key in ((DRY_RUN_ENV, "dry_run"), (DEBUG_ENV, "debug")):
            flag = env_flag(env_name)
            if flag is not None:
                data[key] = flag

    try:
        return EngineSettings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings: {e}") from e


def save_settings(settings: EngineSettings, path: Path | None = None) -> Path:
    """Write settings to a TOML file.

    Session-only flags (dry_run, debug) and unset values are not written.

    Args:
        settings: Settings to persist.
        path: Target file. If None, uses the default location.

    Returns:
        Path the settings were written to.

    Raises:
        SettingsError: If the file cannot be written.
    """
    if path is None:
        ensure_config_dir()
        path = get_settings_path()

    data = settings.model_dump(exclude={"dry_run", "debug"}, exclude_none=True)
    data["excluded_app_prefixes"] = list(settings.excluded_app_prefixes)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            tomli_w.dump(data, f)
    except OSError as e:
        raise SettingsError(f"Failed to write settings: {e}") from e

    return path
