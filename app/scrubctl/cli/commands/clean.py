"""Validation and removal commands.

Provides commands to check paths against the safety rules and to remove
explicit paths, old files, empty directories and cache contents.
"""

import fnmatch
from pathlib import Path
from typing import Annotated

import typer

from scrubctl.cli.display import (
    confirm_destructive,
    create_operations_table,
    create_verdicts_table,
    print_batch_summary,
    print_statistics,
)
from scrubctl.cli.types import get_session, interruptible
from scrubctl.removal.executor import RemovalOptions
from scrubctl.removal.models import BatchResult
from scrubctl.utils.formatting import console, format_size, print_info, print_success, print_warning


def check(
    ctx: typer.Context,
    paths: Annotated[list[str], typer.Argument(help="Paths to check.")],
    force: Annotated[
        bool,
        typer.Option("--force", help="Ignore whitelist rules (protected paths stay protected)."),
    ] = False,
) -> None:
    """Show whether paths may be removed, without touching them."""
    session = get_session(ctx)
    results = [session.validator.validate(p, honour_whitelist=not force) for p in paths]
    console.print(create_verdicts_table(results))

    safe = sum(1 for r in results if r.is_safe)
    console.print(f"\n[dim]{safe} of {len(results)} path(s) may be removed[/dim]")


def clean(
    ctx: typer.Context,
    paths: Annotated[list[str], typer.Argument(help="Files or directories to remove.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompts."),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", help="Ignore whitelist rules (protected paths stay protected)."),
    ] = False,
) -> None:
    """Remove files or directories after validating each one.

    Protected paths are always refused. Whitelisted paths are skipped
    unless --force is given.

    Examples:
        scrubctl clean ~/.cache/old-tool          # Remove after confirmation
        scrubctl --dry-run clean ~/Downloads/tmp  # Preview only
    """
    session = get_session(ctx)
    options = RemovalOptions(force=force)

    validations = [session.validator.validate(p, honour_whitelist=not force) for p in paths]
    console.print(create_verdicts_table(validations, title="Removal Plan"))

    accepted = sum(1 for v in validations if v.is_safe)
    if accepted == 0:
        print_info("Nothing to remove.")
        return

    if not session.dry_run and not yes:
        if not confirm_destructive(f"Remove {accepted} path(s)"):
            print_info("Aborted.")
            raise typer.Exit(code=0)

    with interruptible(session):
        result = session.executor.remove_many(paths, description="clean", options=options)

    _report(result, session.dry_run)
    print_statistics(session.snapshot(), session.dry_run)
    if result.failed_count:
        raise typer.Exit(code=1)


def old_files(
    ctx: typer.Context,
    directory: Annotated[str, typer.Argument(help="Directory to search.")],
    days: Annotated[
        int,
        typer.Option("--days", "-d", min=0, help="Minimum age in days."),
    ] = 30,
    pattern: Annotated[
        str | None,
        typer.Option("--pattern", "-p", help="Only files whose name matches this glob."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompts."),
    ] = False,
) -> None:
    """Remove regular files older than a number of days below a directory."""
    session = get_session(ctx)

    def name_filter(path: Path) -> bool:
        return pattern is None or fnmatch.fnmatch(path.name, pattern)

    plan = session.preview().remove_old_files(directory, days, name_filter)
    if plan.removed_count == 0:
        print_success(f"No removable files older than {days} day(s) in {directory}.")
        return

    console.print(create_operations_table(plan.operations, title="Old Files"))
    if not session.dry_run and not yes:
        summary = f"Remove {plan.removed_count} file(s) ({format_size(plan.total_bytes)})"
        if not confirm_destructive(summary):
            print_info("Aborted.")
            raise typer.Exit(code=0)

    with interruptible(session):
        result = session.executor.remove_old_files(
            directory, days, name_filter, description="old-files"
        )

    _report(result, session.dry_run)
    print_statistics(session.snapshot(), session.dry_run)
    if result.failed_count:
        raise typer.Exit(code=1)


def empty_dirs(
    ctx: typer.Context,
    root: Annotated[str, typer.Argument(help="Directory to clean.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompts."),
    ] = False,
) -> None:
    """Remove empty directories below a directory (the directory itself is kept)."""
    session = get_session(ctx)

    planned = session.preview().remove_empty_directories(root)
    if planned == 0:
        print_success(f"No empty directories in {root}.")
        return

    if not session.dry_run and not yes:
        if not confirm_destructive(f"Remove {planned} empty director(ies) below {root}"):
            print_info("Aborted.")
            raise typer.Exit(code=0)

    with interruptible(session):
        removed = session.executor.remove_empty_directories(root)

    verb = "would be removed" if session.dry_run else "removed"
    print_success(f"{removed} empty director(ies) {verb}.")
    print_statistics(session.snapshot(), session.dry_run)


def caches(
    ctx: typer.Context,
    dirs: Annotated[
        list[str] | None,
        typer.Argument(help="Cache directories (defaults to the platform's)."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompts."),
    ] = False,
) -> None:
    """Remove the contents of cache directories.

    Directories are cleaned in parallel. Nothing is removed while a
    system backup is running, and directories on network volumes (or on
    volumes that cannot be identified) are left alone.
    """
    session = get_session(ctx)
    targets = [session.expand_home(d) for d in dirs] if dirs else session.default_cache_dirs()

    console.print("Cache directories:")
    for target in targets:
        console.print(f"  [info]{target}[/info]")

    if not session.dry_run and not yes:
        if not confirm_destructive(f"Remove the contents of {len(targets)} directory(ies)"):
            print_info("Aborted.")
            raise typer.Exit(code=0)

    with interruptible(session):
        report = session.clean_cache_dirs(targets)

    for directory, reason in report.skipped.items():
        print_warning(f"Skipped {directory}: {reason}")
    for directory, result in report.results.items():
        console.print(f"\n[bold_header]{directory}[/bold_header]")
        print_batch_summary(result, session.dry_run)

    print_statistics(session.snapshot(), session.dry_run)
    if report.failed_count:
        raise typer.Exit(code=1)


# === Private helper functions ===


def _report(result: BatchResult, dry_run: bool) -> None:
    """Display a batch result table and summary."""
    if result.operations:
        console.print(create_operations_table(result.operations))
    print_batch_summary(result, dry_run)
