"""
Default configuration file generator for crm-sync.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def generate_default_config() -> str:
    """
    Generate the default YAML configuration with every option documented.

    All options are commented out, so the generated file behaves exactly
    like having no configuration file.

    Returns:
        String containing YAML configuration with comments
    """
    return """# crm-sync Configuration
# ======================
#
# Default options for crm-sync. CLI arguments always override these values.
# Credentials are never read from this file: pass them with --sf-token,
# --sf-instance-url and --hubspot-token, or the SF_ACCESS_TOKEN,
# SF_INSTANCE_URL and HUBSPOT_ACCESS_TOKEN environment variables.

# Sync Policy
# -----------

# Contacts fetched from each CRM on the full tier (maximum 100)
# full_fetch_limit: 100

# Contacts written to HubSpot per full-tier run
# write_limit: 10

# Contacts included in the sample returned by a run
# sample_size: 5

# Minimum seconds between HubSpot create/update calls
# write_interval: 0.2

# Keep a local copy of every contact written to HubSpot
# persist_contacts: true


# API Options
# -----------

# HTTP timeout in seconds
# request_timeout: 30

# Salesforce REST API version
# salesforce_api_version: v59.0

# HubSpot API base URL
# hubspot_base_url: https://api.hubapi.com


# Storage and Logging
# -------------------

# SQLite database holding the run log (default: <config dir>/sync.db)
# database_path: ~/.crm-sync/sync.db

# Enable verbose output
# verbose: false

# Log directory and number of log files to keep
# log_dir: ~/.crm-sync/logs
# log_retention_count: 10
"""


def save_config_file(
    config_path: Path, overwrite: bool = False
) -> tuple[bool, str | None]:
    """
    Save the default configuration file.

    Args:
        config_path: Destination path
        overwrite: Replace an existing file

    Returns:
        Tuple of (success, error message or None)
    """
    config_path = config_path.expanduser().resolve()

    if config_path.exists() and not overwrite:
        return (
            False,
            f"Configuration file already exists: {config_path}\n"
            "Use --force to overwrite.",
        )

    try:
        config_path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)
        config_path.write_text(generate_default_config(), encoding="utf-8")
        config_path.chmod(0o600)
    except OSError as e:
        error_msg = f"Failed to create configuration file: {e}"
        logger.error(error_msg)
        return (False, error_msg)

    logger.info(f"Created configuration file: {config_path}")
    return (True, None)
