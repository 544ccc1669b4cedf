"""Configuration management for the portfolio registry.

This module provides YAML configuration loading and access. Built-in defaults
are overlaid by the YAML file, which is in turn overlaid by environment
variables (optionally read from a ``.env`` file).
"""

import copy
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

DEFAULT_SETTINGS: dict[str, Any] = {
    "registry": {
        "deployer": "deployer",
        "fee_bps": 50,
    },
    "portfolio": {
        "min_tokens": 2,
        "max_tokens": 10,
        "max_user_portfolios": 20,
        "rebalance_interval": 144,
        "strict_allocation_updates": False,
    },
    "database": {
        "path": "data/registry.db",
    },
    "logging": {
        "level": "INFO",
        "format": None,
    },
}

# Environment variable -> dotted configuration key
ENV_OVERRIDES = {
    "REGISTRY_DB_PATH": "database.path",
    "REGISTRY_DEPLOYER": "registry.deployer",
    "REGISTRY_LOG_LEVEL": "logging.level",
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Simple configuration loader and accessor.

    Loads YAML configuration files and provides dict-like access to settings.

    Example:
        >>> config = Config.from_file("config/default.yaml")
        >>> interval = config.get("portfolio.rebalance_interval", 144)
    """

    def __init__(self, config_dict: dict[str, Any]) -> None:
        """Initialize with configuration dictionary.

        Args:
            config_dict: Configuration data as nested dictionary
        """
        self._config = config_dict

    @classmethod
    def from_file(cls, filepath: str | Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            filepath: Path to YAML configuration file

        Returns:
            Config instance with loaded configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {filepath}")

        with open(path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)

        if config_dict is None:
            config_dict = {}

        return cls(config_dict)

    @classmethod
    def with_defaults(cls, overrides: dict[str, Any] | None = None) -> "Config":
        """Build a configuration from the built-in defaults.

        Args:
            overrides: Nested dictionary merged over the defaults

        Returns:
            Config instance
        """
        return cls(_deep_merge(DEFAULT_SETTINGS, overrides or {}))

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key: Configuration key (supports dot notation for nested keys)
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get("portfolio.max_tokens")
            10
            >>> config.get("missing.key", "fallback")
            'fallback'
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation.

        Intermediate dictionaries are created as needed.
        """
        keys = key.split(".")
        node = self._config
        for k in keys[:-1]:
            if not isinstance(node.get(k), dict):
                node[k] = {}
            node = node[k]
        node[keys[-1]] = value

    def __getitem__(self, key: str) -> Any:
        """Get configuration value using bracket notation.

        Raises:
            KeyError: If key not found
        """
        value = self.get(key)
        if value is None:
            raise KeyError(f"Configuration key not found: {key}")
        return value

    def to_dict(self) -> dict[str, Any]:
        """Get the full configuration as dictionary."""
        return copy.deepcopy(self._config)


def load_config(filepath: str | Path = None) -> Config:
    """Load configuration from YAML, merged over the built-in defaults.

    Args:
        filepath: Path to YAML configuration file. If None, uses
            ``config/default.yaml`` under the project root when it exists.

    Returns:
        Config instance

    Raises:
        FileNotFoundError: If an explicit filepath doesn't exist
    """
    if filepath is None:
        root_dir = Path(__file__).parent.parent.parent.parent
        default_path = root_dir / "config" / "default.yaml"
        if not default_path.exists():
            return Config.with_defaults()
        filepath = default_path

    file_config = Config.from_file(filepath)
    return Config.with_defaults(file_config.to_dict())


def load_registry_config(
    config_file: str | Path = None,
    env_file: str | Path = None,
) -> Config:
    """Load registry configuration from YAML and environment variables.

    The ``.env`` file is optional; when present its values are exported
    before the environment overrides are applied.

    Args:
        config_file: Path to YAML file. If None, uses the default path.
        env_file: Path to ``.env`` file. If None, uses ``.env`` in the
            current working directory.

    Returns:
        Config instance with environment overrides applied

    Example:
        >>> config = load_registry_config()
        >>> db_path = config.get("database.path")
    """
    env_path = Path(env_file) if env_file is not None else Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config = load_config(config_file)

    for var, key in ENV_OVERRIDES.items():
        value = os.getenv(var)
        if value:
            config.set(key, value)

    return config
