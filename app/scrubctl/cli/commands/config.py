"""Settings commands.

Provides commands to show the effective settings and to write a
default settings file.
"""

from typing import Annotated

import tomli_w
import typer

from scrubctl.core.paths import get_settings_path
from scrubctl.core.settings import EngineSettings, load_settings, save_settings
from scrubctl.safety.errors import SettingsError
from scrubctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show and initialize settings.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Show the effective settings (file plus environment)."""
    try:
        settings = load_settings()
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    path = get_settings_path()
    source = str(path) if path.exists() else "defaults (no settings file)"
    console.print(f"[dim]# {source}[/dim]")
    data = settings.model_dump(mode="json", exclude_none=True)
    console.print(tomli_w.dumps(data), markup=False)


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing settings file."),
    ] = False,
) -> None:
    """Write a settings file with the default values."""
    path = get_settings_path()
    if path.exists() and not force:
        print_error(f"Settings file already exists: {path}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    try:
        written = save_settings(EngineSettings())
    except (SettingsError, RuntimeError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Settings written to {written}")
