"""CLI package for crm_sync."""

from crm_sync.cli.formatters import (
    format_run,
    show_conflicts,
    show_history,
    show_sample_contacts,
)
from crm_sync.cli.main import (
    DEFAULT_CONFIG_FILE,
    VALID_TIERS,
    build_credentials,
    cli,
    get_config_dir,
)
from crm_sync.utils import DEFAULT_CONFIG_DIR

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
    "VALID_TIERS",
    "build_credentials",
    "cli",
    "format_run",
    "get_config_dir",
    "show_conflicts",
    "show_history",
    "show_sample_contacts",
]
