"""
Configuration management for blockflow.

This module handles loading and accessing configuration values from config.yaml.
It provides a centralized way to manage editor, simulation, persistence and
logging settings without changing code.
"""

import yaml
from pathlib import Path
from typing import Any, Dict
import logging


class ConfigManager:
    """
    Manages configuration loading and access for blockflow.
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}

            logging.info(f"Configuration loaded from {self.config_path}")

        except (OSError, yaml.YAMLError) as e:
            logging.error(f"Failed to load configuration: {e}")
            # Fall back to default configuration
            self._config = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values as fallback."""
        return {
            "editor": {
                "grid_size": 20,
                "default_position": {"x": 100, "y": 100},
                "id_prefix": "block"
            },
            "simulation": {
                "step_delay": 0.3
            },
            "database": {
                "filename": "blockflow.db"
            },
            "paths": {
                "log_file": "blockflow.log"
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "catalog": {
                "definitions": {}
            }
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration value (e.g., "editor.grid_size")
            default: Default value if key is not found

        Returns:
            The configuration value

        Examples:
            config.get("editor.grid_size")  # Returns 20
            config.get("simulation.step_delay")  # Returns 0.3
        """
        keys = key_path.split('.')
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
    def grid_size(self) -> int:
        """Get the canvas grid unit positions snap to."""
        return int(self.get("editor.grid_size", 20))

    @property
    def default_position(self) -> Dict[str, int]:
        """Get the drop position used when a block is added by click."""
        return self.get("editor.default_position", {"x": 100, "y": 100})

    @property
    def id_prefix(self) -> str:
        """Get the prefix for generated block ids."""
        return self.get("editor.id_prefix", "block")

    @property
    def step_delay(self) -> float:
        """Get the simulated delay, in seconds, per visited block."""
        return float(self.get("simulation.step_delay", 0.3))

    @property
    def database_filename(self) -> str:
        """Get database filename."""
        return self.get("database.filename", "blockflow.db")

    @property
    def log_filename(self) -> str:
        """Get log file name."""
        return self.get("paths.log_file", "blockflow.log")

    @property
    def catalog_definitions(self) -> Dict[str, Any]:
        """Get per-kind catalog overrides from configuration."""
        return self.get("catalog.definitions", {}) or {}


# Global configuration instance
config = ConfigManager()
