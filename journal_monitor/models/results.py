"""
Explicit operation results for the ingestion pipeline.

Reads, merges, commits and scheduler ticks report their outcome through
these models instead of raising, so rollback and fallback paths stay
visible at each layer.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, computed_field

from .entries import CandidateEntry


class OperationStatus(Enum):
    """Status of a pipeline operation"""
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


class ReadResult(BaseModel):
    """
    Outcome of reading newly appended bytes from one journal.

    ``end_offset`` is where the cursor would move on a successful commit;
    it never points into an unterminated line.
    """
    entries: List[CandidateEntry] = Field(default_factory=list)
    start_offset: int = 0
    end_offset: int = 0
    lines_read: int = 0
    lines_skipped: int = 0
    file_missing: bool = False
    error: Optional[str] = None
    file_size: Optional[int] = None
    last_modified: Optional[datetime] = None

    @property
    def advanced(self) -> bool:
        """True when at least one complete line was consumed"""
        return self.end_offset > self.start_offset


class MergeOutcome(Enum):
    """Result of a companion file merge attempt"""
    NOT_APPLICABLE = "not_applicable"
    ENRICHED = "enriched"
    MISSING = "missing"
    MISMATCH = "mismatch"
    UNREADABLE = "unreadable"


class MergeResult(BaseModel):
    outcome: MergeOutcome
    entry: CandidateEntry
    attempts: int = 0
    error: Optional[str] = None

    @property
    def enriched(self) -> bool:
        return self.outcome == MergeOutcome.ENRICHED


class CommitResult(BaseModel):
    """Outcome of one transactional commit"""
    status: OperationStatus
    unit_name: str
    entries: List[CandidateEntry] = Field(default_factory=list)
    cursor: int
    error: Optional[str] = None

    @computed_field
    @property
    def success(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @classmethod
    def success_result(
        cls,
        unit_name: str,
        entries: List[CandidateEntry],
        cursor: int
    ) -> 'CommitResult':
        return cls(
            status=OperationStatus.SUCCESS,
            unit_name=unit_name,
            entries=entries,
            cursor=cursor
        )

    @classmethod
    def error_result(cls, unit_name: str, cursor: int, error: str) -> 'CommitResult':
        """Failed commit; ``cursor`` is the restored pre-scan value"""
        return cls(
            status=OperationStatus.RETRYABLE,
            unit_name=unit_name,
            cursor=cursor,
            error=error
        )


class SchedulerState(Enum):
    """What the scheduler did on a tick"""
    IDLE = "idle"
    CONTINUING_FILE = "continuing_file"
    SWITCHING_FILE = "switching_file"
    RECONCILING = "reconciling"


class TickResult(BaseModel):
    state: SchedulerState
    status: OperationStatus = OperationStatus.SUCCESS
    unit_name: Optional[str] = None
    entries: List[CandidateEntry] = Field(default_factory=list)
    idle_ticks: int = 0
    error: Optional[str] = None

    @computed_field
    @property
    def success(self) -> bool:
        return self.status == OperationStatus.SUCCESS


class BackfillResult(BaseModel):
    files_seen: int = 0
    files_scanned: int = 0
    entries_added: int = 0
    cancelled: bool = False
    last_unit: Optional[str] = None
