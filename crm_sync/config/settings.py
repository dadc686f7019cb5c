"""
Typed sync settings built from the YAML configuration dictionary.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from crm_sync.api.base import DEFAULT_TIMEOUT, MAX_FETCH_LIMIT
from crm_sync.api.hubspot import DEFAULT_BASE_URL as HUBSPOT_BASE_URL
from crm_sync.api.rate_limit import DEFAULT_WRITE_INTERVAL
from crm_sync.api.salesforce import DEFAULT_API_VERSION

# Contacts propagated to the sink per full-tier run
DEFAULT_WRITE_LIMIT = 10

# Contacts returned to limited-tier callers
DEFAULT_SAMPLE_SIZE = 5

# Database file name inside the config directory
DEFAULT_DATABASE_FILE = "sync.db"

DEFAULT_LOG_RETENTION_COUNT = 10


@dataclass(frozen=True)
class SyncSettings:
    """
    Settings governing fetch sizes, write pacing and storage.

    Attributes:
        full_fetch_limit: Contacts fetched per source on the full tier
        write_limit: Contacts written to the sink per full-tier run
        sample_size: Contacts included in the sample returned by a run
        write_interval: Minimum seconds between sink writes
        request_timeout: HTTP timeout in seconds
        salesforce_api_version: Salesforce REST API version
        hubspot_base_url: HubSpot API base URL
        persist_contacts: Store written contacts in the local database
        database_path: SQLite path (None = <config_dir>/sync.db)
        log_dir: Log directory (None = default)
        log_retention_count: Number of log files to keep
        verbose: Verbose console logging

    Usage:
        settings = SyncSettings.from_dict(ConfigLoader().load_and_validate())
    """

    full_fetch_limit: int = MAX_FETCH_LIMIT
    write_limit: int = DEFAULT_WRITE_LIMIT
    sample_size: int = DEFAULT_SAMPLE_SIZE
    write_interval: float = DEFAULT_WRITE_INTERVAL
    request_timeout: float = DEFAULT_TIMEOUT
    salesforce_api_version: str = DEFAULT_API_VERSION
    hubspot_base_url: str = HUBSPOT_BASE_URL
    persist_contacts: bool = True
    database_path: str | None = None
    log_dir: str | None = None
    log_retention_count: int = DEFAULT_LOG_RETENTION_COUNT
    verbose: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SyncSettings:
        """
        Build settings from a (validated) configuration dictionary.

        Unknown keys are ignored; missing keys keep their defaults. The
        full-tier fetch limit is capped at the API maximum of 100.

        Args:
            data: Configuration dictionary, or None

        Returns:
            SyncSettings instance
        """
        if not data:
            return cls()

        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        if "full_fetch_limit" in known:
            known["full_fetch_limit"] = min(known["full_fetch_limit"], MAX_FETCH_LIMIT)
        return cls(**known)

    def resolve_database_path(self, config_dir: Path) -> Path:
        """Return the database path, defaulting to <config_dir>/sync.db."""
        if self.database_path:
            return Path(self.database_path).expanduser()
        return config_dir / DEFAULT_DATABASE_FILE

    def resolve_log_dir(self) -> Path | None:
        """Return the configured log directory, if any."""
        if self.log_dir:
            return Path(self.log_dir).expanduser()
        return None
