"""
journal-monitor: live ingestion of line-delimited JSON journals.
"""

from .models import (
    TrackedUnit,
    CandidateEntry,
    PersistedEntry,
    SchedulerConfig,
    MonitorSettings,
    JournalMonitorError,
    PersistenceError,
    WatchSetupError,
)
from .storage import JournalStore, SQLiteJournalStore
from .sync import JournalMonitor

__version__ = "1.0.0"

__all__ = [
    "TrackedUnit",
    "CandidateEntry",
    "PersistedEntry",
    "SchedulerConfig",
    "MonitorSettings",
    "JournalMonitorError",
    "PersistenceError",
    "WatchSetupError",
    "JournalStore",
    "SQLiteJournalStore",
    "JournalMonitor",
]
