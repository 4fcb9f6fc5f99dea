"""Orphaned application data commands.

Provides commands to find data left behind by uninstalled applications
and to remove it.
"""

import json
from datetime import UTC, datetime
from typing import Annotated

import typer
from rich.table import Table

from scrubctl.cli.display import confirm_destructive, print_batch_summary, print_statistics
from scrubctl.cli.types import OutputFormat, get_session, interruptible
from scrubctl.orphans.models import OrphanCandidate
from scrubctl.utils.formatting import console, format_size, print_info, print_success

app = typer.Typer(
    help="Find and remove data of uninstalled applications.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def scan(
    ctx: typer.Context,
    app_ids: Annotated[
        list[str] | None,
        typer.Argument(help="Bundle identifiers to check (default: discover)."),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """List application data whose application is no longer installed."""
    session = get_session(ctx)
    orphans = list(session.detector.scan(app_ids or None))

    if output_format == OutputFormat.JSON:
        _print_json(orphans)
        return

    if not orphans:
        print_success("No orphaned application data found.")
        return

    _print_table(orphans)
    total_size = sum(o.size_bytes or 0 for o in orphans)
    console.print(
        f"\n[dim]Found {len(orphans)} orphaned entries ({format_size(total_size)} total)[/dim]"
    )


@app.command()
def clean(
    ctx: typer.Context,
    app_ids: Annotated[
        list[str] | None,
        typer.Argument(help="Bundle identifiers to clean (default: discover)."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompts."),
    ] = False,
) -> None:
    """Remove orphaned application data."""
    session = get_session(ctx)
    orphans = list(session.detector.scan(app_ids or None))

    if not orphans:
        print_success("No orphaned application data found.")
        return

    _print_table(orphans)
    if not session.dry_run and not yes:
        if not confirm_destructive(f"Remove {len(orphans)} orphaned entries"):
            print_info("Aborted.")
            raise typer.Exit(code=0)

    with interruptible(session):
        results = session.remove_orphans(orphans)

    for app_id, result in results.items():
        console.print(f"\n[bold_header]{app_id}[/bold_header]")
        print_batch_summary(result, session.dry_run)

    print_statistics(session.snapshot(), session.dry_run)
    if any(result.failed_count for result in results.values()):
        raise typer.Exit(code=1)


# === Private helper functions ===


def _print_table(orphans: list[OrphanCandidate]) -> None:
    """Display orphans as a Rich table."""
    now = datetime.now(tz=UTC)
    table = Table(
        title="Orphaned Application Data",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Application", style="info", no_wrap=True)
    table.add_column("Path", no_wrap=True)
    table.add_column("Size", justify="right", width=10)
    table.add_column("Age", justify="right", width=8)

    for o in orphans:
        size_str = format_size(o.size_bytes) if o.size_bytes is not None else "-"
        table.add_row(o.app_id, o.path, size_str, f"{int(o.age_days(now))}d")

    console.print(table)


def _print_json(orphans: list[OrphanCandidate]) -> None:
    """Display orphans as JSON."""
    data = [
        {
            "app_id": o.app_id,
            "path": o.path,
            "last_modified": o.last_modified.isoformat(),
            "size_bytes": o.size_bytes,
            "checked_locations": list(o.checked_locations),
        }
        for o in orphans
    ]
    console.print_json(json.dumps(data))
