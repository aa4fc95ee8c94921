"""
Configuration loading and management.

Merges built-in defaults, an optional JSON config file, and environment
variable overrides into a validated MonitorSettings instance.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

from ..models.config import MonitorSettings
from .defaults import DEFAULT_SETTINGS, ENV_VAR_MAPPING, flatten_settings

logger = logging.getLogger(__name__)


class ConfigurationLoader:
    """Load and persist journal-monitor configuration"""

    CONFIG_FILENAME = "config.json"

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        if config_dir is None:
            config_dir = DEFAULT_SETTINGS["directories"]["config_dir"]
        self.config_dir = Path(config_dir).expanduser()

    @property
    def config_file(self) -> Path:
        return self.config_dir / self.CONFIG_FILENAME

    def load_settings(self, config_file: Optional[Union[str, Path]] = None) -> MonitorSettings:
        """
        Load settings from defaults, config file and environment.

        Args:
            config_file: Explicit config file; defaults to ``<config_dir>/config.json``

        Returns:
            Validated MonitorSettings
        """
        config_path = Path(config_file) if config_file else self.config_file

        data = copy.deepcopy(DEFAULT_SETTINGS)
        data["directories"]["config_dir"] = str(self.config_dir)

        if config_path.exists():
            data = self._merge(data, self._load_file(config_path))

        data = self._apply_env_overrides(data)
        return MonitorSettings(**flatten_settings(data))

    def _load_file(self, config_path: Path) -> Dict[str, Any]:
        """Load a JSON config document, falling back to defaults on errors"""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level JSON value must be an object")
            return data
        except (json.JSONDecodeError, ValueError, OSError) as e:
            logger.error(f"Failed to load config from {config_path}: {e}")
            return {}

    def _merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge override into base"""
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                base[key] = self._merge(base[key], value)
            else:
                base[key] = value
        return base

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration"""
        for env_var, config_path in ENV_VAR_MAPPING.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                self._set_nested_value(config_data, config_path, env_value)

        return config_data

    def _set_nested_value(self, data: Dict[str, Any], path: str, value: str) -> None:
        """Set nested dictionary value using dot notation path"""
        keys = path.split('.')
        current = data

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = self._convert_env_value(value)

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable string to appropriate type"""
        if value.lower() in ('true', 'yes', 'on'):
            return True
        elif value.lower() in ('false', 'no', 'off'):
            return False

        try:
            if '.' in value:
                return float(value)
            else:
                return int(value)
        except ValueError:
            pass

        return value

    def save_settings(self, settings: MonitorSettings) -> Path:
        """Write settings to the config file and return its path"""
        document = {
            "directories": {
                "journal_dir": str(settings.journal_dir),
                "database_path": str(settings.database_path),
                "config_dir": str(settings.config_dir)
            },
            "scheduler": {
                "tick_interval_s": settings.tick_interval_s,
                "idle_threshold_ticks": settings.idle_threshold_ticks,
                "file_pattern": settings.file_pattern
            },
            "merge": {
                "attempts": settings.merge_attempts,
                "delay_s": settings.merge_delay_s
            },
            "logging": {
                "level": settings.log_level,
                "log_to_file": settings.log_to_file
            }
        }

        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(document, f, indent=2, ensure_ascii=False)

        logger.info(f"Saved configuration to {self.config_file}")
        return self.config_file
