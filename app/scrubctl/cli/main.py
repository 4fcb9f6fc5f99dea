"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from scrubctl import __version__
from scrubctl.cli.commands import clean, config, orphans, whitelist
from scrubctl.core.settings import DEBUG_ENV, env_flag
from scrubctl.utils.formatting import setup_logging

# Create main Typer app
app = typer.Typer(
    name="scrubctl",
    help="Safe cleanup of caches, logs and leftover application data.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"scrubctl version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be removed without removing anything.",
        ),
    ] = False,
) -> None:
    """scrubctl - Safe cleanup of caches, logs and leftover application data.

    Protected system paths are never removed, whatever the options.
    Paths on your whitelist are skipped unless --force is given.
    """
    setup_logging(verbose or bool(env_flag(DEBUG_ENV)))

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["dry_run"] = dry_run


# Register commands
app.command("check")(clean.check)
app.command("clean")(clean.clean)
app.command("old-files")(clean.old_files)
app.command("empty-dirs")(clean.empty_dirs)
app.command("caches")(clean.caches)
app.add_typer(orphans.app, name="orphans")
app.add_typer(whitelist.app, name="whitelist")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
