"""
crm_sync.utils - Utility module

Common utilities: value normalization and config directory resolution.
"""

from crm_sync.utils.normalization import clean_value, join_name, split_name
from crm_sync.utils.paths import DEFAULT_CONFIG_DIR, resolve_config_dir

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "clean_value",
    "join_name",
    "resolve_config_dir",
    "split_name",
]
