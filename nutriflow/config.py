"""
Configuration management for NutriFlow.
Loads and manages YAML configuration files.
"""

import yaml
import os
from datetime import date
from typing import Any, Dict, Optional
import logging


class Config:
    """
    Application configuration manager
    """

    def __init__(self, config_path: Optional[str] = None, data: Optional[Dict] = None):
        """
        Load configuration from a YAML file or an in-memory dict

        Args:
            config_path: Path to config.yaml
            data: Configuration dict (used instead of a file when given)
        """
        self.logger = logging.getLogger(__name__)

        if data is not None:
            self._config = data
        else:
            if config_path is None or not os.path.exists(config_path):
                raise FileNotFoundError(f"Configuration file not found: {config_path}")

            with open(config_path, 'r') as f:
                self._config = yaml.safe_load(f) or {}

        # Expand environment variables in paths
        self._expand_paths(self._config)

        if config_path:
            self.logger.info(f"Configuration loaded from {config_path}")

    def _expand_paths(self, config: Dict):
        """Recursively expand environment variables in path strings"""
        for key, value in config.items():
            if isinstance(value, dict):
                self._expand_paths(value)
            elif isinstance(value, str) and ('$' in value or '~' in value):
                config[key] = os.path.expandvars(os.path.expanduser(value))

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation

        Args:
            path: Configuration path (e.g., 'transitions.enter_commit_delay')
            default: Default value if path doesn't exist

        Returns:
            Configuration value
        """
        keys = path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_date(self, path: str, default: Optional[date] = None) -> date:
        """
        Get a date value, accepting ISO strings or YAML dates

        Args:
            path: Configuration path (e.g., 'calendar.initial_date')
            default: Fallback when unset (today if None)
        """
        value = self.get(path)
        if value is None:
            return default or date.today()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value))
        except ValueError:
            self.logger.warning(f"Invalid date for {path}: {value!r}, using default")
            return default or date.today()
