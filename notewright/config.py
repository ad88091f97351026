"""
Configuration management for Notewright.

This module handles loading and accessing configuration values from config.yaml.
A missing or broken file is not fatal: built-in defaults are used instead.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from .models import normalize_list_option


DEFAULT_CONFIG: Dict[str, Any] = {
    "paths": {
        "output_dir": "obsidian_vault",
        "log_file": "notewright.log",
    },
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
    "import": {
        "tags": [],
        "links": [],
        "incremental": True,
    },
}


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """
    Manages configuration loading and access for Notewright.
    """

    def __init__(self, config_path: Union[str, Path] = "config.yaml"):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file, layered over the defaults."""
        if not self.config_path.exists():
            logging.debug(f"Configuration file not found: {self.config_path}, using defaults")
            self._config = self._get_default_config()
            return

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise ValueError("top level must be a mapping")
            self._config = _merge(DEFAULT_CONFIG, loaded)
            logging.debug(f"Configuration loaded from {self.config_path}")
        except (OSError, yaml.YAMLError, ValueError) as e:
            logging.error(f"Failed to load configuration: {e}")
            # Fall back to default configuration
            self._config = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values as fallback."""
        return copy.deepcopy(DEFAULT_CONFIG)

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration value (e.g., "paths.output_dir")
            default: Default value if key is not found

        Returns:
            The configuration value

        Examples:
            config.get("logging.level")  # Returns "INFO"
            config.get("import.incremental")  # Returns True
        """
        keys = key_path.split(".")
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get an entire configuration section.

        Args:
            section: Name of the configuration section

        Returns:
            Dictionary containing the section configuration
        """
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    # Convenience properties for commonly used values

    @property
    def output_dir(self) -> str:
        """Get the default vault directory."""
        return self.get("paths.output_dir", "obsidian_vault")

    @property
    def log_filename(self) -> str:
        """Get log file name; empty disables file logging."""
        return self.get("paths.log_file", "notewright.log") or ""

    @property
    def log_level(self) -> str:
        return str(self.get("logging.level", "INFO")).upper()

    @property
    def log_format(self) -> str:
        return self.get("logging.format", DEFAULT_CONFIG["logging"]["format"])

    @property
    def default_tags(self) -> List[str]:
        """Tags added to every note unless overridden on the command line."""
        return normalize_list_option(self.get("import.tags", []))

    @property
    def default_links(self) -> List[str]:
        return normalize_list_option(self.get("import.links", []))

    @property
    def incremental(self) -> bool:
        return bool(self.get("import.incremental", True))
