"""
crm_sync.config - Configuration management module

Contains configuration loading, validation, and default settings.
"""

from crm_sync.config.loader import ConfigError, ConfigLoader
from crm_sync.config.settings import SyncSettings

__all__ = [
    "ConfigError",
    "ConfigLoader",
    "SyncSettings",
]
