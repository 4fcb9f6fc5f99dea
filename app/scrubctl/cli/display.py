"""Shared Rich display functions for plans and results.

Provides reusable table builders, summary printers and the destructive
confirmation prompt used across CLI commands.
"""

from collections.abc import Iterable

import typer
from rich.table import Table

from scrubctl.removal.models import BatchResult, CleanupOperation, Outcome
from scrubctl.removal.statistics import StatisticsSnapshot
from scrubctl.safety.validator import ValidationResult, Verdict
from scrubctl.utils.formatting import console, format_size, print_info

# Word the user must type to confirm a destructive run
CONFIRMATION_WORD = "delete"

_OUTCOME_STYLES: dict[Outcome, str] = {
    Outcome.REMOVED: "removed",
    Outcome.SIMULATED: "simulated",
    Outcome.SKIPPED_PROTECTED: "protected",
    Outcome.SKIPPED_WHITELISTED: "skipped",
    Outcome.SKIPPED_INVALID: "warning",
    Outcome.SKIPPED_MISSING: "muted",
    Outcome.FAILED: "error",
}

_VERDICT_STYLES: dict[Verdict, str] = {
    Verdict.SAFE: "success",
    Verdict.INVALID: "warning",
    Verdict.PROTECTED: "protected",
    Verdict.WHITELISTED: "skipped",
}


def create_verdicts_table(results: Iterable[ValidationResult], title: str = "Validation") -> Table:
    """Create a Rich table displaying validation verdicts.

    Args:
        results: Validation results to display.
        title: Table title.

    Returns:
        Rich Table configured for verdict display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Verdict", width=12)
    table.add_column("Path", no_wrap=True)
    table.add_column("Reason", style="muted")

    for result in results:
        style = _VERDICT_STYLES[result.verdict]
        table.add_row(
            f"[{style}]{result.verdict.value}[/{style}]",
            result.canonical or result.raw,
            result.reason or "",
        )

    return table


def create_operations_table(
    operations: Iterable[CleanupOperation],
    title: str = "Results",
) -> Table:
    """Create a Rich table displaying removal outcomes.

    Args:
        operations: Operations to display.
        title: Table title.

    Returns:
        Rich Table configured for operation display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Outcome", width=20)
    table.add_column("Path", no_wrap=True)
    table.add_column("Size", style="info", justify="right")
    table.add_column("Details", style="muted")

    for op in operations:
        style = _OUTCOME_STYLES[op.outcome]
        size = format_size(op.size_bytes) if op.outcome.counts_as_removed else "-"
        details = op.error or op.description or ""
        if op.failure is not None:
            details = f"{op.failure.value}: {details}"
        table.add_row(
            f"[{style}]{op.outcome.value}[/{style}]",
            op.resolved_path or op.raw_path,
            size,
            details,
        )

    return table


def print_batch_summary(result: BatchResult, dry_run: bool = False) -> None:
    """Print counts of a batch result.

    Args:
        result: Batch result to summarize.
        dry_run: Whether removals were simulated.
    """
    verb = "would be removed" if dry_run else "removed"
    size = format_size(result.total_bytes)
    parts = [f"[success]{result.removed_count} {verb}[/success] ({size})"]
    if result.skipped_count:
        parts.append(f"[skipped]{result.skipped_count} skipped[/skipped]")
    if result.failed_count:
        parts.append(f"[error]{result.failed_count} failed[/error]")
    if result.cancelled:
        parts.append("[warning]cancelled[/warning]")
    console.print("\nSummary: " + ", ".join(parts))


def print_statistics(snapshot: StatisticsSnapshot, dry_run: bool = False) -> None:
    """Print the session statistics line.

    Args:
        snapshot: Statistics to print.
        dry_run: Whether totals are projections.
    """
    label = "Projected" if dry_run else "Reclaimed"
    console.print(
        f"[dim]{label}: {format_size(snapshot.total_bytes)} in "
        f"{snapshot.total_items} item(s) across {snapshot.batches} batch(es)[/dim]"
    )
    if dry_run:
        print_info("Dry-run mode: No changes were made.")


def confirm_destructive(summary: str) -> bool:
    """Ask for two-step confirmation of a destructive run.

    The user first answers a yes/no question, then types the
    confirmation word.

    Args:
        summary: What is about to be removed.

    Returns:
        True if both steps were confirmed.
    """
    if not typer.confirm(f"\n{summary}. Proceed?", default=False):
        return False
    answer = typer.prompt(f"Type '{CONFIRMATION_WORD}' to confirm", default="", show_default=False)
    return answer.strip() == CONFIRMATION_WORD
