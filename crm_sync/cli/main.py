"""
Command-line interface for crm_sync.

Provides CLI commands for running a Salesforce to HubSpot contact sync and
inspecting the run history.

Usage:
    # Show help
    crm-sync --help

    # Run a full sync (credentials from the environment)
    export SF_ACCESS_TOKEN=... SF_INSTANCE_URL=https://acme.my.salesforce.com
    export HUBSPOT_ACCESS_TOKEN=...
    crm-sync sync --user-id alice

    # Preview a few Salesforce contacts without writing anything
    crm-sync sync --tier limited

    # Show recent runs
    crm-sync history --user-id alice
"""

import json
import os
import sys
from pathlib import Path
from typing import Any, Optional

import click

from crm_sync import __version__
from crm_sync.api.base import MissingCredentialsError, SourceCredentials, UpstreamError
from crm_sync.cli.formatters import show_conflicts, show_history, show_sample_contacts
from crm_sync.config.generator import save_config_file
from crm_sync.config.loader import DEFAULT_CONFIG_FILE, ConfigError, ConfigLoader
from crm_sync.config.settings import SyncSettings
from crm_sync.storage.db import SyncDatabase
from crm_sync.sync.engine import SyncEngine, SyncTier
from crm_sync.utils import resolve_config_dir
from crm_sync.utils.logging import cleanup_old_logs, get_logger, setup_logging

# Environment variables carrying CRM credentials
ENV_SF_ACCESS_TOKEN = "SF_ACCESS_TOKEN"
ENV_SF_INSTANCE_URL = "SF_INSTANCE_URL"
ENV_HUBSPOT_ACCESS_TOKEN = "HUBSPOT_ACCESS_TOKEN"

VALID_TIERS = tuple(tier.value for tier in SyncTier)


def get_config_dir(config_dir: Optional[str]) -> Path:
    """Get the configuration directory path."""
    return resolve_config_dir(config_dir)


def get_config_file(config_file: Optional[str], config_dir: Path) -> Path:
    """Get the configuration file path."""
    if config_file:
        return Path(config_file)
    return config_dir / DEFAULT_CONFIG_FILE


def open_database(settings: SyncSettings, config_dir: Path) -> SyncDatabase:
    """Open (and create if needed) the run log database."""
    db_path = settings.resolve_database_path(config_dir)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    database = SyncDatabase(str(db_path))
    database.initialize()
    return database


def build_credentials(
    sf_token: Optional[str],
    sf_instance_url: Optional[str],
    hubspot_token: Optional[str],
) -> tuple[Optional[SourceCredentials], Optional[SourceCredentials]]:
    """
    Build explicit credential values from CLI options.

    Returns:
        Tuple of (Salesforce credentials, HubSpot credentials); either is
        None when its token was not supplied
    """
    primary = None
    if sf_token:
        primary = SourceCredentials(sf_token, instance_url=sf_instance_url)

    sink = SourceCredentials(hubspot_token) if hubspot_token else None
    return primary, sink


@click.group()
@click.version_option(version=__version__, prog_name="crm-sync")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="CRM_SYNC_CONFIG_DIR",
    help="Configuration directory path (default: ~/.crm-sync).",
)
@click.option(
    "--config-file",
    "-f",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="CRM_SYNC_CONFIG_FILE",
    help="Configuration file path (default: <config dir>/config.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: Optional[str],
    config_file: Optional[str],
) -> None:
    """
    Salesforce to HubSpot Contact Sync.

    Matches Salesforce and HubSpot contacts by email, reports field
    conflicts, and mirrors Salesforce contacts into HubSpot.
    """
    ctx.ensure_object(dict)

    resolved_config_dir = get_config_dir(config_dir)
    resolved_config_file = get_config_file(config_file, resolved_config_dir)

    ctx.obj["config_dir"] = resolved_config_dir
    ctx.obj["config_file"] = resolved_config_file

    config: dict[str, Any] = {}
    try:
        loader = ConfigLoader(config_dir=resolved_config_dir)
        config = loader.load_from_file(resolved_config_file)
        if config:
            loader.validate(config)
    except ConfigError as e:
        # Keep going with defaults so the CLI stays usable
        click.echo(
            click.style(f"Warning: Configuration error: {e}", fg="yellow"), err=True
        )
        config = {}

    settings = SyncSettings.from_dict(config)
    ctx.obj["settings"] = settings

    effective_verbose = verbose or settings.verbose
    ctx.obj["verbose"] = effective_verbose

    log_dir = settings.resolve_log_dir()
    setup_logging(verbose=effective_verbose, log_dir=log_dir)
    cleanup_old_logs(log_dir=log_dir, keep_count=settings.log_retention_count)


# =============================================================================
# Sync Command
# =============================================================================


@cli.command("sync")
@click.option(
    "--user-id",
    "-u",
    envvar="CRM_SYNC_USER_ID",
    help="User the run is recorded for (runs without one are not logged).",
)
@click.option(
    "--tier",
    "-t",
    type=click.Choice(VALID_TIERS, case_sensitive=False),
    default=SyncTier.FULL.value,
    show_default=True,
    help="full: sync to HubSpot; limited: preview Salesforce contacts only.",
)
@click.option(
    "--sf-token",
    envvar=ENV_SF_ACCESS_TOKEN,
    help=f"Salesforce access token (env: {ENV_SF_ACCESS_TOKEN}).",
)
@click.option(
    "--sf-instance-url",
    envvar=ENV_SF_INSTANCE_URL,
    help=f"Salesforce instance URL (env: {ENV_SF_INSTANCE_URL}).",
)
@click.option(
    "--hubspot-token",
    envvar=ENV_HUBSPOT_ACCESS_TOKEN,
    help=f"HubSpot access token (env: {ENV_HUBSPOT_ACCESS_TOKEN}).",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@click.pass_context
def sync_command(
    ctx: click.Context,
    user_id: Optional[str],
    tier: str,
    sf_token: Optional[str],
    sf_instance_url: Optional[str],
    hubspot_token: Optional[str],
    as_json: bool,
) -> None:
    """
    Synchronize Salesforce contacts into HubSpot.

    Fetches Salesforce and HubSpot contacts in parallel, matches them by
    email and reports conflicting fields. On the full tier the first
    contacts are created or updated in HubSpot; the limited tier only
    previews a few Salesforce contacts.

    Examples:

        # Full sync recorded for a user
        crm-sync sync --user-id alice

        # Salesforce preview only
        crm-sync sync --tier limited

        # Machine-readable output
        crm-sync sync --user-id alice --json
    """
    logger = get_logger(__name__)
    settings: SyncSettings = ctx.obj["settings"]
    verbose = ctx.obj["verbose"]

    primary, sink = build_credentials(sf_token, sf_instance_url, hubspot_token)
    sync_tier = SyncTier(tier.lower())

    try:
        database = open_database(settings, ctx.obj["config_dir"])
        engine = SyncEngine(database=database, settings=settings)

        if not as_json:
            mode = "Previewing" if sync_tier is SyncTier.LIMITED else "Synchronizing"
            click.echo(f"{mode} contacts...")

        summary = engine.run(
            user_id=user_id, primary=primary, sink=sink, tier=sync_tier
        )

    except MissingCredentialsError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        click.echo(
            f"Set {ENV_SF_ACCESS_TOKEN} and {ENV_SF_INSTANCE_URL} "
            f"(and {ENV_HUBSPOT_ACCESS_TOKEN} for writes).",
            err=True,
        )
        sys.exit(1)

    except UpstreamError as e:
        logger.error(f"Sync failed: {e}")
        click.echo(click.style(f"\nSync failed: {e}", fg="red"), err=True)
        sys.exit(1)

    except Exception as e:
        logger.exception(f"Sync failed: {e}")
        click.echo(click.style(f"\nSync failed: {e}", fg="red"), err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(summary.to_payload(), indent=2))
        return

    click.echo("\n" + "=" * 50)
    click.echo(summary.summary())
    click.echo("=" * 50)

    show_sample_contacts(summary)
    if verbose:
        show_conflicts(summary)

    if summary.failed:
        click.echo(
            click.style(f"\nWarning: {summary.failed} writes failed.", fg="yellow")
        )


# =============================================================================
# History Command
# =============================================================================


@cli.command("history")
@click.option(
    "--user-id",
    "-u",
    required=True,
    envvar="CRM_SYNC_USER_ID",
    help="User whose runs to show.",
)
@click.option(
    "--limit",
    "-n",
    type=click.IntRange(min=1),
    default=10,
    show_default=True,
    help="Number of runs to show.",
)
@click.pass_context
def history_command(ctx: click.Context, user_id: str, limit: int) -> None:
    """
    Show recent sync runs for a user, newest first.

    Example:

        crm-sync history --user-id alice --limit 5
    """
    logger = get_logger(__name__)
    settings: SyncSettings = ctx.obj["settings"]

    try:
        engine = SyncEngine(
            database=open_database(settings, ctx.obj["config_dir"]), settings=settings
        )
        runs = engine.get_history(user_id, limit=limit)
    except Exception as e:
        logger.exception(f"Error reading history: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    show_history(runs, user_id)


# =============================================================================
# Status Command
# =============================================================================


@cli.command("status")
@click.pass_context
def status_command(ctx: click.Context) -> None:
    """
    Show configuration, credential and last-run status.

    Example:

        crm-sync status
    """
    settings: SyncSettings = ctx.obj["settings"]
    config_dir: Path = ctx.obj["config_dir"]
    config_file: Path = ctx.obj["config_file"]

    click.echo("=== CRM Sync Status ===\n")
    click.echo(f"Configuration directory: {config_dir}")
    config_status = "Found" if config_file.exists() else "Not found (using defaults)"
    click.echo(f"Configuration file: {config_status}")
    click.echo()

    credentials = (
        ("Salesforce token", ENV_SF_ACCESS_TOKEN),
        ("Salesforce instance URL", ENV_SF_INSTANCE_URL),
        ("HubSpot token", ENV_HUBSPOT_ACCESS_TOKEN),
    )
    for label, env_var in credentials:
        if os.environ.get(env_var):
            state = click.style("Set", fg="green")
        else:
            state = click.style("Not set", fg="red")
        click.echo(f"{label} ({env_var}): {state}")
    click.echo()

    db_path = settings.resolve_database_path(config_dir)
    if not db_path.exists():
        click.echo("Run log: Not initialized (no syncs performed yet)")
        return

    database = SyncDatabase(str(db_path))
    database.initialize()
    click.echo(f"Run log: {db_path}")
    click.echo(f"Recorded runs: {database.get_run_count()}")
    click.echo(f"Synced contacts: {database.get_contact_count()}")

    last_run = database.get_last_sync_run()
    if last_run:
        click.echo(
            f"Last run: #{last_run.id} for {last_run.user_id} "
            f"({last_run.status.value}, {last_run.contacts_processed} processed)"
        )


# =============================================================================
# Init-Config Command
# =============================================================================


@cli.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite existing configuration file if it exists.",
)
@click.pass_context
def init_config_command(ctx: click.Context, force: bool) -> None:
    """
    Generate a default configuration file.

    Examples:

        crm-sync init-config
        crm-sync init-config --force
    """
    config_file = ctx.obj["config_file"]

    click.echo(f"Creating configuration file: {config_file}")
    success, error = save_config_file(config_file, overwrite=force)

    if not success:
        click.echo(click.style(f"Error: {error}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style("Configuration file created successfully!", fg="green"))


# =============================================================================
# Health Command
# =============================================================================


@cli.command("health")
def health_command() -> None:
    """
    Check application health status.

    Example:

        crm-sync health
    """
    click.echo("healthy")
