"""
Core data models for journal-monitor

Pydantic models for tracked units, entries, configuration and results.
"""

from .entries import TrackedUnit, UnitKind, JournalEvent, CandidateEntry, PersistedEntry
from .results import (
    OperationStatus,
    ReadResult,
    MergeOutcome,
    MergeResult,
    CommitResult,
    SchedulerState,
    TickResult,
    BackfillResult,
)
from .config import RetryPolicy, SchedulerConfig, MonitorSettings
from .errors import (
    JournalMonitorError,
    WatchSetupError,
    StoreError,
    PersistenceError,
    EventDecodeError,
)

__all__ = [
    # Entries
    "TrackedUnit",
    "UnitKind",
    "JournalEvent",
    "CandidateEntry",
    "PersistedEntry",

    # Results
    "OperationStatus",
    "ReadResult",
    "MergeOutcome",
    "MergeResult",
    "CommitResult",
    "SchedulerState",
    "TickResult",
    "BackfillResult",

    # Configuration
    "RetryPolicy",
    "SchedulerConfig",
    "MonitorSettings",

    # Errors
    "JournalMonitorError",
    "WatchSetupError",
    "StoreError",
    "PersistenceError",
    "EventDecodeError",
]
