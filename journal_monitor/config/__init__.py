"""
Configuration management for journal-monitor.

Defaults live here; ``journal_monitor.config.loader`` merges them with a
config file and the environment.
"""

from .defaults import DEFAULT_SETTINGS, COMPANION_FILES, ENV_VAR_MAPPING

__all__ = ["DEFAULT_SETTINGS", "COMPANION_FILES", "ENV_VAR_MAPPING"]
