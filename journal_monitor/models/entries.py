"""
Journal data models.

Defines tracked journal units, decoded events, candidate entries produced
by a scan, and the durable entries held by the persistence engine.
"""

from datetime import datetime, timezone
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


def ensure_utc(value: datetime) -> datetime:
    """Normalise a datetime to an aware UTC value (naive values are taken as UTC)"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UnitKind(IntEnum):
    """Category flag for a tracked unit"""
    NETLOG = 1
    JOURNAL = 3


class TrackedUnit(BaseModel):
    """
    Durable bookkeeping record for one journal file.

    The cursor is the byte offset just past the last fully consumed line.
    An id of 0 means the unit has not been persisted yet.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: int = 0
    name: str
    path: Path
    kind: UnitKind = UnitKind.JOURNAL
    cursor: int = Field(default=0, ge=0)
    last_modified: Optional[datetime] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Unit names are bare filenames"""
        if not v.strip():
            raise ValueError('Unit name cannot be empty')
        if '/' in v or '\\' in v:
            raise ValueError('Unit name must be a filename, not a path')
        return v

    @property
    def file_path(self) -> Path:
        """Full path of the journal file"""
        return self.path / self.name

    @property
    def is_persisted(self) -> bool:
        return self.id > 0

    @classmethod
    def for_file(cls, file_path: Path) -> 'TrackedUnit':
        """Create an unpersisted unit for a journal file"""
        file_path = Path(file_path)
        return cls(name=file_path.name, path=file_path.parent)


class JournalEvent(BaseModel):
    """A decoded journal event, as returned by an event decoder"""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    event_type: str
    payload: Dict[str, Any]

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator('event_type')
    @classmethod
    def validate_event_type(cls, v: str) -> str:
        if not v:
            raise ValueError('Event type cannot be empty')
        return v


class CandidateEntry(BaseModel):
    """
    One event read from a journal, not yet persisted.

    Candidates always pass through deduplication and companion merging
    before they reach the writer. ``enriched`` marks a candidate whose
    payload was replaced by its companion snapshot.
    """
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    event_type: str
    payload: Dict[str, Any]
    unit_name: str
    unit_id: int = 0
    enriched: bool = False

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @classmethod
    def from_event(cls, event: JournalEvent, unit: TrackedUnit) -> 'CandidateEntry':
        return cls(
            timestamp=event.timestamp,
            event_type=event.event_type,
            payload=event.payload,
            unit_name=unit.name,
            unit_id=unit.id
        )


class PersistedEntry(BaseModel):
    """A journal entry as stored by the persistence engine"""
    model_config = ConfigDict(frozen=True)

    id: int
    unit_id: int
    timestamp: datetime
    event_type: str
    payload: Dict[str, Any]
    enriched: bool = False

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)
