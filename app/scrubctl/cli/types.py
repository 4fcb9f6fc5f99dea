"""Shared types and utilities for CLI commands.

This module provides common enums and helper functions used across
multiple CLI command modules to avoid code duplication.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

import typer

from scrubctl.core.session import CleanupSession
from scrubctl.core.settings import load_settings
from scrubctl.safety.errors import SettingsError
from scrubctl.utils.formatting import print_error, print_info, print_warning

# Conventional exit status for SIGINT
INTERRUPTED_EXIT_CODE = 130


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def get_session(ctx: typer.Context) -> CleanupSession:
    """Get the cleanup session for this invocation, creating it once.

    Settings are loaded from the settings file and environment; the
    global ``--dry-run`` flag can only switch dry-run on.

    Args:
        ctx: Typer context carrying the global options.

    Returns:
        The invocation's CleanupSession.

    Raises:
        typer.Exit: If the settings cannot be loaded.
    """
    obj = ctx.ensure_object(dict)
    session = obj.get("session")
    if isinstance(session, CleanupSession):
        return session

    try:
        settings = load_settings()
    except SettingsError as e:
        print_error(str(e))
        print_info("Fix the file or run 'scrubctl config init --force'.")
        raise typer.Exit(code=1) from e

    if obj.get("dry_run") and not settings.dry_run:
        settings = settings.model_copy(update={"dry_run": True})

    session = CleanupSession(settings)
    obj["session"] = session
    return session


@contextmanager
def interruptible(session: CleanupSession) -> Iterator[None]:
    """Stop a session cleanly on Ctrl+C and exit with status 130.

    Items already being removed complete; nothing new starts.
    """
    try:
        yield
    except KeyboardInterrupt:
        session.executor.cancel()
        print_warning("Interrupted. Items already in progress were completed.")
        raise typer.Exit(code=INTERRUPTED_EXIT_CODE) from None
