"""YAML configuration loading."""
import os
from typing import Any, Optional
import yaml


class ConfigError(Exception):
    """Missing or malformed configuration."""
    pass


class Config:
    """Configuration manager.

    Reads a YAML file and offers dotted access to nested keys.

    Example:
        config = Config("config/config.yaml")
        window = config.get("anomaly.baseline_window", 30)
        horizons = config.get("forecast.horizons", [7, 14, 30])
    """

    def __init__(self, config_path: str):
        """Load a configuration file.

        Args:
            config_path: Path to the YAML file

        Raises:
            ConfigError: File missing, malformed, or not a mapping
        """
        self._config_path = config_path

        if not os.path.exists(config_path):
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                self._data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid config file format: {e}")

        if not isinstance(self._data, dict):
            raise ConfigError(f"Config root must be a mapping: {config_path}")

    @property
    def path(self) -> str:
        return self._config_path

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """Get a value by key.

        Nested keys are separated by dots, e.g. "anomaly.z_score.low".

        Args:
            key: Dotted key
            default: Returned when the key is absent

        Returns:
            Config value or default
        """
        keys = key.split(".")
        value = self._data

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def section(self, key: str) -> dict[str, Any]:
        """Get a nested mapping, empty if absent.

        Raises:
            ConfigError: The key exists but is not a mapping
        """
        value = self.get(key, {})
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ConfigError(f"Config section '{key}' must be a mapping")
        return value

    def __getitem__(self, key: str) -> Any:
        """Dict-style access."""
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value
