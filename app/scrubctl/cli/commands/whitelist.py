"""Whitelist management commands.

Whitelisted paths are skipped by every removal. Edits take effect
immediately, including in sessions that are already running.
"""

from typing import Annotated

import typer
from rich.table import Table

from scrubctl.cli.types import get_session
from scrubctl.safety.whitelist import is_valid_bundle_id
from scrubctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show and edit the whitelist.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def show(ctx: typer.Context) -> None:
    """Show built-in and user whitelist patterns."""
    session = get_session(ctx)
    patterns = session.whitelist.list_patterns()

    table = Table(
        title="Whitelist",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Source", width=8)
    table.add_column("Pattern")
    for source, entries in patterns.items():
        for entry in entries:
            table.add_row(f"[muted]{source}[/muted]", entry)

    console.print(table)
    if not patterns["user"]:
        print_info(f"No user patterns in {session.whitelist.user_file}")


@app.command()
def add(
    ctx: typer.Context,
    pattern: Annotated[str, typer.Argument(help="Absolute path or glob pattern.")],
) -> None:
    """Add a path or glob pattern to the user whitelist."""
    session = get_session(ctx)
    if not session.whitelist.add_pattern(pattern):
        print_error(
            f"Pattern rejected: {pattern} "
            "(must be absolute and must not cover a protected path)"
        )
        raise typer.Exit(code=1)
    print_success(f"Whitelisted: {pattern}")


@app.command("app")
def app_(
    ctx: typer.Context,
    bundle_id: Annotated[str, typer.Argument(help="Application bundle identifier.")],
) -> None:
    """Whitelist every data location of an application."""
    if not is_valid_bundle_id(bundle_id):
        print_error(f"Invalid bundle identifier: {bundle_id}")
        raise typer.Exit(code=1)

    session = get_session(ctx)
    if not session.whitelist.protect_application(bundle_id, session.profile.app_data_templates):
        print_error(f"No patterns could be added for {bundle_id}")
        raise typer.Exit(code=1)
    print_success(f"Whitelisted data locations of {bundle_id}")


@app.command()
def path(ctx: typer.Context) -> None:
    """Print the location of the user whitelist file."""
    session = get_session(ctx)
    console.print(str(session.whitelist.user_file))
