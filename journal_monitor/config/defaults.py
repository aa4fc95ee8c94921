"""
Default configuration values for journal-monitor.

Centralized defaults that can be overridden by environment variables or config files.
"""

from pathlib import Path
from typing import Any, Dict

# Global default settings
DEFAULT_SETTINGS = {
    # Journal location and persistence
    "directories": {
        "journal_dir": str(Path.home() / "Saved Games" / "Frontier Developments" / "Elite Dangerous"),
        "database_path": str(Path.home() / ".journal-monitor" / "journal.db"),
        "config_dir": str(Path.home() / ".journal-monitor")
    },

    # Tick scheduler
    "scheduler": {
        "tick_interval_s": 1.0,
        "idle_threshold_ticks": 30,
        "file_pattern": "journal*.log",
        "reconcile_recursive": True
    },

    # Companion snapshot merge
    "merge": {
        "attempts": 5,
        "delay_s": 0.5
    },

    # Logging
    "logging": {
        "level": "INFO",
        "log_to_file": False
    }
}

# Event types whose full record is written to a sibling snapshot file
COMPANION_FILES = {
    "Market": "Market.json",
    "Outfitting": "Outfitting.json",
    "Shipyard": "Shipyard.json",
    "ModuleInfo": "ModulesInfo.json"
}

# Environment variable mappings
ENV_VAR_MAPPING = {
    'JOURNAL_MONITOR_JOURNAL_DIR': 'directories.journal_dir',
    'JOURNAL_MONITOR_DATABASE_PATH': 'directories.database_path',
    'JOURNAL_MONITOR_TICK_INTERVAL_S': 'scheduler.tick_interval_s',
    'JOURNAL_MONITOR_IDLE_THRESHOLD_TICKS': 'scheduler.idle_threshold_ticks',
    'JOURNAL_MONITOR_FILE_PATTERN': 'scheduler.file_pattern',
    'JOURNAL_MONITOR_MERGE_ATTEMPTS': 'merge.attempts',
    'JOURNAL_MONITOR_MERGE_DELAY_S': 'merge.delay_s',
    'JOURNAL_MONITOR_LOG_LEVEL': 'logging.level',
    'JOURNAL_MONITOR_LOG_TO_FILE': 'logging.log_to_file'
}


def flatten_settings(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map a nested settings document onto MonitorSettings field names"""
    directories = data.get("directories", {})
    scheduler = data.get("scheduler", {})
    merge = data.get("merge", {})
    logging_cfg = data.get("logging", {})

    flat = {
        "journal_dir": directories.get("journal_dir"),
        "database_path": directories.get("database_path"),
        "config_dir": directories.get("config_dir"),
        "tick_interval_s": scheduler.get("tick_interval_s"),
        "idle_threshold_ticks": scheduler.get("idle_threshold_ticks"),
        "file_pattern": scheduler.get("file_pattern"),
        "merge_attempts": merge.get("attempts"),
        "merge_delay_s": merge.get("delay_s"),
        "log_level": logging_cfg.get("level"),
        "log_to_file": logging_cfg.get("log_to_file")
    }
    return {key: value for key, value in flat.items() if value is not None}
