"""
Configuration loader module for crm-sync.

Provides YAML-based configuration file loading with support for:
- Loading configuration from default or custom paths
- Graceful handling of missing configuration files
- Validation of known keys and value ranges
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from crm_sync.utils.paths import resolve_config_dir

# Default configuration file name
DEFAULT_CONFIG_FILE = "config.yaml"

logger = logging.getLogger(__name__)

# Known configuration keys and their expected types
VALID_KEYS: dict[str, type[Any] | tuple[type[Any], ...]] = {
    # Sync policy
    "full_fetch_limit": int,
    "write_limit": int,
    "sample_size": int,
    "write_interval": (int, float),
    "persist_contacts": bool,
    # API options
    "request_timeout": (int, float),
    "salesforce_api_version": str,
    "hubspot_base_url": str,
    # Storage
    "database_path": str,
    # Logging options
    "verbose": bool,
    "log_dir": str,
    "log_retention_count": int,
}

# Keys that must be >= 1
POSITIVE_INT_KEYS = ("full_fetch_limit", "sample_size", "log_retention_count")

# Keys that must be >= 0
NON_NEGATIVE_KEYS = ("write_limit", "write_interval")


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


class ConfigLoader:
    """
    YAML configuration file loader.

    Attributes:
        config_dir: Directory containing the configuration file
        config_file: Name of the configuration file

    Usage:
        loader = ConfigLoader()
        config = loader.load()

        # Load from specific file
        config = loader.load_from_file("/path/to/config.yaml")
    """

    def __init__(
        self, config_dir: Path | None = None, config_file: str = DEFAULT_CONFIG_FILE
    ):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing the configuration file.
                       Defaults to ~/.crm-sync/ or $CRM_SYNC_CONFIG_DIR
            config_file: Name of the configuration file (default: config.yaml)
        """
        self.config_dir = resolve_config_dir(config_dir)
        self.config_file = config_file

    @property
    def config_path(self) -> Path:
        """Full path to the configuration file."""
        return self.config_dir / self.config_file

    def load(self) -> dict[str, Any]:
        """
        Load configuration from the default configuration file.

        Returns:
            Configuration dictionary, or empty dict if the file doesn't exist

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        return self.load_from_file(self.config_path)

    def load_from_file(self, path: Path | str) -> dict[str, Any]:
        """
        Load configuration from a specific file.

        Args:
            path: Path to the configuration file

        Returns:
            Configuration dictionary, or empty dict if the file doesn't exist

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        path = Path(path)

        if not path.exists():
            logger.debug(f"Configuration file not found: {path}")
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML configuration file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}") from e

        if config is None:
            logger.debug(f"Configuration file is empty: {path}")
            return {}

        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration file must contain a YAML dictionary, "
                f"got {type(config).__name__}"
            )

        logger.debug(f"Loaded configuration from {path}")
        return config

    def validate(self, config: dict[str, Any]) -> None:
        """
        Validate configuration types and value ranges.

        Unknown keys are ignored.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ConfigError: If configuration is invalid
        """
        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration must be a dictionary, got {type(config).__name__}"
            )

        for key, value in config.items():
            expected_type = VALID_KEYS.get(key)
            if expected_type is None:
                continue
            # bool is an int subclass; reject it for numeric keys
            is_bool_for_number = isinstance(value, bool) and expected_type is not bool
            if is_bool_for_number or not isinstance(value, expected_type):
                if isinstance(expected_type, tuple):
                    type_name = " or ".join(t.__name__ for t in expected_type)
                else:
                    type_name = expected_type.__name__
                raise ConfigError(
                    f"Invalid type for '{key}': expected {type_name}, "
                    f"got {type(value).__name__}"
                )

        for key in POSITIVE_INT_KEYS:
            if key in config and config[key] < 1:
                raise ConfigError(f"{key} must be >= 1, got {config[key]}")

        for key in NON_NEGATIVE_KEYS:
            if key in config and config[key] < 0:
                raise ConfigError(f"{key} must be >= 0, got {config[key]}")

        if "request_timeout" in config and config["request_timeout"] <= 0:
            raise ConfigError(
                f"request_timeout must be > 0, got {config['request_timeout']}"
            )

    def load_and_validate(self) -> dict[str, Any]:
        """
        Load configuration and validate it.

        Returns:
            Validated configuration dictionary

        Raises:
            ConfigError: If configuration cannot be loaded or is invalid
        """
        config = self.load()
        if config:
            self.validate(config)
        return config
