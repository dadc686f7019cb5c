"""CLI output formatting functions.

This module contains functions for displaying sync summaries, conflict
details and run history on the command line.
"""

from typing import TYPE_CHECKING

import click

from crm_sync.storage.db import RunStatus

if TYPE_CHECKING:
    from crm_sync.storage.db import SyncRun
    from crm_sync.sync.engine import SyncSummary

# Maximum number of items listed per section
MAX_LISTED = 10

STATUS_COLORS = {
    RunStatus.RUNNING: "yellow",
    RunStatus.SUCCESS: "green",
    RunStatus.ERROR: "red",
}


def show_sample_contacts(summary: "SyncSummary") -> None:
    """
    Display the sample contacts of a sync summary.

    Args:
        summary: Summary returned by SyncEngine.run()
    """
    if not summary.sample_contacts:
        return

    click.echo("\nSample contacts:")
    for contact in summary.sample_contacts:
        details = ", ".join(part for part in (contact.company, contact.phone) if part)
        line = f"  {contact.name or '(no name)'} <{contact.email}>"
        if details:
            line += f" - {details}"
        click.echo(line)


def show_conflicts(summary: "SyncSummary") -> None:
    """
    Display matched contacts whose fields differ between the two CRMs.

    Args:
        summary: Summary returned by SyncEngine.run()
    """
    result = summary.reconciliation
    if result is None or not result.conflicts_count:
        return

    conflicting = [match for match in result.matched if match.has_conflicts]

    click.echo("\n=== Conflicts ===")
    for match in conflicting[:MAX_LISTED]:
        click.echo(f"  {match.contact_a.email}:")
        for name in sorted(match.conflicts):
            value_a = getattr(match.contact_a, name)
            value_b = getattr(match.contact_b, name)
            click.echo(f"    {name}: Salesforce={value_a!r} HubSpot={value_b!r}")
    if len(conflicting) > MAX_LISTED:
        click.echo(f"  ... and {len(conflicting) - MAX_LISTED} more")

    click.echo(
        f"\nOnly in Salesforce: {len(result.only_in_a)}, "
        f"only in HubSpot: {len(result.only_in_b)}"
    )


def format_run(run: "SyncRun") -> str:
    """
    Format one run log entry as a single line.

    Args:
        run: Run log entry

    Returns:
        Formatted (colored) line
    """
    status = click.style(run.status.value.upper(), fg=STATUS_COLORS[run.status])
    started = run.started_at.strftime("%Y-%m-%d %H:%M:%S")

    line = (
        f"#{run.id} {started} {status} "
        f"processed={run.contacts_processed} conflicts={run.conflicts_count}"
    )
    if run.duration is not None:
        line += f" ({run.duration:.1f}s)"
    if run.error_message:
        line += f"\n    error: {run.error_message}"
    return line


def show_history(runs: list["SyncRun"], user_id: str) -> None:
    """
    Display run history, newest first.

    Args:
        runs: Runs returned by SyncDatabase.get_recent_sync_runs()
        user_id: User the history belongs to
    """
    if not runs:
        click.echo(f"No sync runs recorded for {user_id}.")
        return

    click.echo(f"=== Sync History for {user_id} ===\n")
    for run in runs:
        click.echo(format_run(run))
