"""
Configuration models for journal-monitor.

Handles retry policy, scheduler tuning, and process settings loaded from
the environment.
"""

from pathlib import Path
from typing import Dict, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..config.defaults import COMPANION_FILES, DEFAULT_SETTINGS


class RetryPolicy(BaseModel):
    """Bounded retry policy for reading companion snapshot files"""
    model_config = ConfigDict(frozen=True)

    attempts: int = Field(default=DEFAULT_SETTINGS["merge"]["attempts"], ge=1, le=50)
    delay_s: float = Field(default=DEFAULT_SETTINGS["merge"]["delay_s"], ge=0.0, le=10.0)


class SchedulerConfig(BaseModel):
    """Tick scheduler tuning"""
    model_config = ConfigDict(validate_assignment=True)

    idle_threshold_ticks: int = Field(
        default=DEFAULT_SETTINGS["scheduler"]["idle_threshold_ticks"], ge=1
    )
    file_pattern: str = DEFAULT_SETTINGS["scheduler"]["file_pattern"]
    reconcile_recursive: bool = DEFAULT_SETTINGS["scheduler"]["reconcile_recursive"]
    companion_files: Dict[str, str] = Field(default_factory=lambda: dict(COMPANION_FILES))
    merge_retry: RetryPolicy = Field(default_factory=RetryPolicy)

    @field_validator('file_pattern')
    @classmethod
    def validate_file_pattern(cls, v: str) -> str:
        """Patterns match bare filenames"""
        if not v or '/' in v:
            raise ValueError('File pattern must be a non-empty filename glob')
        return v


class MonitorSettings(BaseSettings):
    """Process settings with environment variable support"""
    model_config = SettingsConfigDict(
        env_prefix="JOURNAL_MONITOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    journal_dir: Path = Field(
        default_factory=lambda: Path(DEFAULT_SETTINGS["directories"]["journal_dir"]).expanduser()
    )
    database_path: Path = Field(
        default_factory=lambda: Path(DEFAULT_SETTINGS["directories"]["database_path"]).expanduser()
    )
    config_dir: Path = Field(
        default_factory=lambda: Path(DEFAULT_SETTINGS["directories"]["config_dir"]).expanduser()
    )

    # Scheduling
    tick_interval_s: float = Field(default=DEFAULT_SETTINGS["scheduler"]["tick_interval_s"], gt=0.0, le=60.0)
    idle_threshold_ticks: int = Field(default=DEFAULT_SETTINGS["scheduler"]["idle_threshold_ticks"], ge=1)
    file_pattern: str = DEFAULT_SETTINGS["scheduler"]["file_pattern"]

    # Companion merge
    merge_attempts: int = Field(default=DEFAULT_SETTINGS["merge"]["attempts"], ge=1, le=50)
    merge_delay_s: float = Field(default=DEFAULT_SETTINGS["merge"]["delay_s"], ge=0.0, le=10.0)

    # Logging
    log_level: str = Field(default=DEFAULT_SETTINGS["logging"]["level"], pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_to_file: bool = DEFAULT_SETTINGS["logging"]["log_to_file"]

    @field_validator('log_level', mode='before')
    @classmethod
    def normalise_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    def scheduler_config(self) -> SchedulerConfig:
        """Build the scheduler tuning block from these settings"""
        return SchedulerConfig(
            idle_threshold_ticks=self.idle_threshold_ticks,
            file_pattern=self.file_pattern,
            merge_retry=RetryPolicy(attempts=self.merge_attempts, delay_s=self.merge_delay_s)
        )

    def get_log_file(self) -> Optional[Path]:
        """Get log file path if logging to file is enabled"""
        if not self.log_to_file:
            return None
        log_dir = self.config_dir / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir / "journal-monitor.log"
