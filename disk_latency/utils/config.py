# disk_latency/utils/config.py - Configuration management
"""
Configuration management for the disk latency monitor.
Loads and validates configuration from YAML files.
"""

import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from disk_latency.errors import ConfigurationError


class Config:
    """
    Configuration manager for the monitor.

    Loads configuration from YAML files and provides access to settings.
    """

    DEFAULT_CONFIG = {
        'store': {
            'path': 'disk_latency.db',
        },
        'capture': {
            # master, model and msdb; tempdb (2) stays in
            'excluded_database_ids': [1, 3, 4],
            'min_interval_minutes': 60,
        },
        'report': {
            'mode': 'historical',
            'lookback_hours': 24,
            'page_size_bytes': 8192,
        },
        'analysis': {
            'data_read_latency_ms': 20,
            'data_write_latency_ms': 10,
            'log_write_latency_ms': 5,
        },
        'output': {
            'format': 'stdout',
            'prometheus_port': 9090,
            'refresh_seconds': 60,
            'latency_warning_ms': 10,
            'latency_critical_ms': 20,
        },
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML configuration file
        """
        self.logger = logging.getLogger(__name__)
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file:
            self.load_from_file(config_file)

    def load_from_file(self, config_file: str):
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML file
        """
        config_path = Path(config_file)

        if not config_path.exists():
            self.logger.warning(f"Config file not found: {config_file}, using defaults")
            return

        try:
            with open(config_path, 'r') as f:
                loaded_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.logger.error(f"Failed to load config: {e}")
            raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e

        if loaded_config is None:
            return
        if not isinstance(loaded_config, dict):
            raise ConfigurationError(f"Config file {config_file} must contain a mapping")

        # Merge with defaults
        self._merge_config(self.config, loaded_config)
        self.logger.info(f"Loaded configuration from {config_file}")

    def _merge_config(self, base: Dict, override: Dict):
        """
        Recursively merge configuration dictionaries.

        Args:
            base: Base configuration dictionary
            override: Override configuration dictionary
        """
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'report.lookback_hours')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_int(self, key: str, default: Optional[int] = None, minimum: Optional[int] = None) -> int:
        """
        Get an integer configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found
            minimum: Smallest accepted value

        Returns:
            Integer value

        Raises:
            ConfigurationError: If the value is not an integer or is too small
        """
        value = self.get(key, default)

        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError(f"{key} must be an integer, got {value!r}")
        if minimum is not None and value < minimum:
            raise ConfigurationError(f"{key} must be >= {minimum}, got {value}")

        return value

    def set(self, key: str, value: Any):
        """
        Set configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'report.lookback_hours')
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def to_dict(self) -> Dict:
        """
        Get full configuration as dictionary.

        Returns:
            Configuration dictionary
        """
        return copy.deepcopy(self.config)

    def save_to_file(self, config_file: str):
        """
        Save current configuration to YAML file.

        Args:
            config_file: Path to output YAML file
        """
        config_path = Path(config_file)

        with open(config_path, 'w') as f:
            yaml.dump(self.config, f, default_flow_style=False)

        self.logger.info(f"Saved configuration to {config_file}")
