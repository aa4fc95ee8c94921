"""
Tick-driven journal scheduler.

Each tick does exactly one unit of work, in priority order:

1. Continue the active journal. If it produced entries the tick ends
   there, so a fast writer is never interleaved with queued files.
2. Switch to the next queued path and scan it.
3. Count an idle tick; after enough consecutive idle ticks, and only when
   the active journal is caught up, reconcile the directory to pick up
   journals whose notifications were missed.

All state here (active unit, idle counter, unit registry) belongs to the
thread that calls ``tick``.
"""

import logging
from pathlib import Path
from typing import List, Optional

from ..journal.cursor import FileCursor
from ..journal.discovery import find_journal_files
from ..models.config import SchedulerConfig
from ..models.entries import CandidateEntry, TrackedUnit
from ..models.errors import StoreError
from ..models.results import CommitResult, OperationStatus, SchedulerState, TickResult
from .dedup import Deduplicator
from .extra_info import ExtraInfoMerger
from .queue import ChangeQueue
from .units import UnitRegistry
from .writer import TransactionalWriter

logger = logging.getLogger(__name__)


class JournalScheduler:
    """Decides, tick by tick, which journal to read next"""

    def __init__(
        self,
        journal_dir: Path,
        change_queue: ChangeQueue,
        registry: UnitRegistry,
        file_cursor: FileCursor,
        deduplicator: Deduplicator,
        merger: ExtraInfoMerger,
        writer: TransactionalWriter,
        config: Optional[SchedulerConfig] = None
    ):
        self.journal_dir = Path(journal_dir)
        self.change_queue = change_queue
        self.registry = registry
        self.file_cursor = file_cursor
        self.deduplicator = deduplicator
        self.merger = merger
        self.writer = writer
        self.config = config or SchedulerConfig()

        self.active: Optional[TrackedUnit] = None
        self.idle_ticks = 0

    def adopt(self, unit: Optional[TrackedUnit]) -> None:
        """Make a unit the active journal (used for the backfill handoff)"""
        self.active = unit
        if unit is not None:
            logger.debug(f"Active journal is now {unit.name}")

    def scan(self, unit: TrackedUnit) -> Optional[CommitResult]:
        """
        Read, deduplicate, merge and commit one journal's new lines.

        Returns:
            CommitResult (failed when the file could not be read), or None
            when there was nothing to commit or the file has gone (its
            handle is dropped, its row kept)
        """
        read = self.file_cursor.read_new(unit)

        if read.file_missing:
            logger.info(f"Journal {unit.name} disappeared, dropping its handle")
            self.registry.drop(unit)
            if self.active is unit:
                self.active = None
            return None

        if read.error is not None:
            return CommitResult.error_result(unit.name, unit.cursor, read.error)

        if not read.advanced:
            return None

        fresh = self.deduplicator.filter_new(read.entries)
        final: List[CandidateEntry] = [self.merger.merge(entry, unit).entry for entry in fresh]

        return self.writer.commit(unit, final, read.end_offset, read.last_modified)

    def tick(self) -> TickResult:
        """Run one scheduling step"""
        if self.active is not None:
            if not self.active.file_path.exists():
                logger.info(f"Active journal {self.active.name} no longer exists")
                self.registry.drop(self.active)
                self.active = None
            else:
                result = self.scan(self.active)
                if result is not None and not result.success:
                    return self._failed(SchedulerState.CONTINUING_FILE, result)
                if result is not None and result.entries:
                    self.idle_ticks = 0
                    return TickResult(
                        state=SchedulerState.CONTINUING_FILE,
                        unit_name=result.unit_name,
                        entries=result.entries,
                        idle_ticks=self.idle_ticks
                    )

        path = self.change_queue.try_get()
        if path is not None and Path(path).is_file():
            return self._switch(Path(path))
        if path is not None:
            logger.debug(f"Ignoring queued path that is not a file: {path}")

        self.idle_ticks += 1
        if self.idle_ticks >= self.config.idle_threshold_ticks and self._caught_up():
            return self._reconcile()

        return TickResult(
            state=SchedulerState.IDLE,
            unit_name=self.active.name if self.active else None,
            idle_ticks=self.idle_ticks
        )

    def _switch(self, file_path: Path) -> TickResult:
        try:
            unit = self.registry.resolve(file_path)
        except StoreError as e:
            self.change_queue.put(file_path)
            logger.error(f"Cannot resolve journal {file_path.name}: {e}")
            return TickResult(
                state=SchedulerState.SWITCHING_FILE,
                status=OperationStatus.RETRYABLE,
                unit_name=file_path.name,
                idle_ticks=self.idle_ticks,
                error=str(e)
            )

        if unit is not self.active:
            logger.info(f"Switching to journal {unit.name}")
        self.active = unit
        return self._scan_as(SchedulerState.SWITCHING_FILE, unit)

    def _reconcile(self) -> TickResult:
        """Adopt the first journal on disk that the persistence engine has never seen"""
        self.idle_ticks = 0

        known = self.registry.persisted_names()
        unknown = sorted(
            (f for f in find_journal_files(
                self.journal_dir, self.config.file_pattern, self.config.reconcile_recursive
            ) if f.name not in known),
            key=lambda f: f.name
        )

        if not unknown:
            logger.debug(f"Reconciliation of {self.journal_dir} found no new journals")
            return TickResult(state=SchedulerState.RECONCILING, idle_ticks=self.idle_ticks)

        logger.info(f"No activity but found new journal {unknown[0]}")
        try:
            unit = self.registry.resolve(unknown[0])
        except StoreError as e:
            logger.error(f"Cannot resolve journal {unknown[0].name}: {e}")
            return TickResult(
                state=SchedulerState.RECONCILING,
                status=OperationStatus.RETRYABLE,
                unit_name=unknown[0].name,
                idle_ticks=self.idle_ticks,
                error=str(e)
            )

        self.active = unit
        return self._scan_as(SchedulerState.RECONCILING, unit)

    def _scan_as(self, state: SchedulerState, unit: TrackedUnit) -> TickResult:
        result = self.scan(unit)
        if result is not None and not result.success:
            return self._failed(state, result)

        entries = result.entries if result is not None else []
        if entries:
            self.idle_ticks = 0
        elif state != SchedulerState.RECONCILING:
            self.idle_ticks += 1

        return TickResult(state=state, unit_name=unit.name, entries=entries, idle_ticks=self.idle_ticks)

    def _failed(self, state: SchedulerState, result: CommitResult) -> TickResult:
        return TickResult(
            state=state,
            status=result.status,
            unit_name=result.unit_name,
            idle_ticks=self.idle_ticks,
            error=result.error
        )

    def _caught_up(self) -> bool:
        """True when there is no active journal or its cursor has reached the end of the file"""
        if self.active is None:
            return True
        try:
            return self.active.cursor >= self.active.file_path.stat().st_size
        except FileNotFoundError:
            return True
