"""
Journal Monitor.

Caller-facing facade that wires the watcher, queue, scheduler and backfill
scanner around one journal directory and one persistence engine.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..journal.cursor import FileCursor
from ..journal.decoder import EventDecoder, JournalEventDecoder
from ..models.config import SchedulerConfig
from ..models.entries import CandidateEntry
from ..models.errors import JournalMonitorError, PersistenceError
from ..models.results import BackfillResult, TickResult
from ..storage.base import JournalStore
from .backfill import BackfillScanner, CancelCheck, ProgressCallback
from .dedup import Deduplicator
from .extra_info import ExtraInfoMerger
from .queue import ChangeQueue
from .scheduler import JournalScheduler
from .units import UnitRegistry
from .watcher import JournalDirectoryWatcher
from .writer import TransactionalWriter

logger = logging.getLogger(__name__)


class JournalMonitor:
    """
    Live journal ingestion for one directory.

    Typical use::

        monitor = JournalMonitor(journal_dir, store)
        monitor.run_backfill()
        monitor.start_watching()
        while running:
            for entry in monitor.poll_tick():
                ...
            time.sleep(1)
        monitor.stop_watching()

    ``poll_tick`` and ``run_backfill`` must be called from the same thread;
    only the notification callback runs elsewhere.
    """

    def __init__(
        self,
        journal_dir: Union[str, Path],
        store: JournalStore,
        config: Optional[SchedulerConfig] = None,
        decoder: Optional[EventDecoder] = None,
        merger: Optional[ExtraInfoMerger] = None
    ):
        """
        Initialize the monitor.

        Args:
            journal_dir: Directory holding the journals
            store: Persistence engine
            config: Scheduler tuning; defaults apply when omitted
            decoder: Event decoder; the default journal decoder when omitted
            merger: Companion merger; built from ``config`` when omitted
        """
        self.journal_dir = Path(journal_dir).expanduser()
        self.store = store
        self.config = config or SchedulerConfig()
        decoder = decoder or JournalEventDecoder()

        self.change_queue = ChangeQueue()
        self.registry = UnitRegistry(store)
        self.file_cursor = FileCursor(decoder)
        self.deduplicator = Deduplicator(store)
        self.writer = TransactionalWriter(store)
        self.merger = merger or ExtraInfoMerger(
            companion_files=self.config.companion_files,
            retry_policy=self.config.merge_retry,
            decoder=decoder
        )

        self.scheduler = JournalScheduler(
            journal_dir=self.journal_dir,
            change_queue=self.change_queue,
            registry=self.registry,
            file_cursor=self.file_cursor,
            deduplicator=self.deduplicator,
            merger=self.merger,
            writer=self.writer,
            config=self.config
        )

        self.watcher: Optional[JournalDirectoryWatcher] = None
        self._ticks = 0
        self._last_tick_time: Optional[datetime] = None
        self._last_error: Optional[str] = None

    def start_watching(self, path: Optional[Union[str, Path]] = None) -> None:
        """
        Start OS-level change notification for the journal directory.

        Raises:
            WatchSetupError: the directory is missing or cannot be watched
        """
        if self.watcher is not None and self.watcher.is_watching:
            logger.warning(f"Already watching {self.watcher.journal_dir}")
            return

        if path is not None:
            self.journal_dir = Path(path).expanduser()
            self.scheduler.journal_dir = self.journal_dir

        watcher = JournalDirectoryWatcher(self.journal_dir, self.change_queue, self.config.file_pattern)
        watcher.start()
        self.watcher = watcher

    def stop_watching(self) -> None:
        """Stop change notification; pending queued paths are kept"""
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None

    @property
    def is_watching(self) -> bool:
        return self.watcher is not None and self.watcher.is_watching

    def tick(self) -> TickResult:
        """Run one scheduler tick and return its full result"""
        result = self.scheduler.tick()
        self._ticks += 1
        self._last_tick_time = datetime.now()
        self._last_error = result.error
        return result

    def poll_tick(self) -> List[CandidateEntry]:
        """
        Run one scheduler tick.

        Returns:
            Entries committed by this tick

        Raises:
            PersistenceError: the tick could not read or commit its journal;
                the cursor is unchanged and the next tick retries the same bytes
        """
        result = self.tick()
        if not result.success:
            active = self.scheduler.active
            raise PersistenceError(
                f"Tick failed for {result.unit_name}: {result.error}",
                unit_name=result.unit_name,
                cursor=active.cursor if active is not None else None
            )
        return result.entries

    def run_backfill(
        self,
        cancel_check: Optional[CancelCheck] = None,
        progress_cb: Optional[ProgressCallback] = None,
        force_reload: bool = False
    ) -> BackfillResult:
        """
        Import all journals under the directory, then hand the newest to live tailing.

        Raises:
            PersistenceError: a file's transaction failed
        """
        scanner = BackfillScanner(
            journal_dir=self.journal_dir,
            registry=self.registry,
            file_cursor=self.file_cursor,
            deduplicator=self.deduplicator,
            writer=self.writer,
            file_pattern=self.config.file_pattern
        )
        result = scanner.run(cancel_check, progress_cb, force_reload)

        if result.last_unit is not None:
            self.scheduler.adopt(self.registry.get(result.last_unit))
        return result

    async def run(self, tick_interval_s: float = 1.0, stop_event: Optional[asyncio.Event] = None, on_entries=None) -> None:
        """
        Tick on a fixed cadence until ``stop_event`` is set.

        Each tick runs in a worker thread so blocking reads, database work
        and companion retry delays do not stall the event loop; ticks never
        overlap. Failed ticks are logged and ticking continues; the next
        tick retries from the unchanged cursor.

        Args:
            tick_interval_s: Seconds between ticks
            stop_event: Event that ends the loop
            on_entries: Optional callback receiving each tick's entries
        """
        stop_event = stop_event or asyncio.Event()
        logger.info(f"Tailing {self.journal_dir} every {tick_interval_s}s")

        while not stop_event.is_set():
            try:
                entries = await asyncio.to_thread(self.poll_tick)
            except (JournalMonitorError, OSError) as e:
                logger.error(f"Journal tick failed, will retry: {e}")
            else:
                if entries and on_entries is not None:
                    on_entries(entries)

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=tick_interval_s)
            except asyncio.TimeoutError:
                pass

        logger.info("Stopped tailing journals")

    def get_status(self) -> Dict[str, Any]:
        active = self.scheduler.active
        return {
            "journal_dir": str(self.journal_dir),
            "is_watching": self.is_watching,
            "active_unit": active.name if active else None,
            "active_cursor": active.cursor if active else None,
            "idle_ticks": self.scheduler.idle_ticks,
            "ticks": self._ticks,
            "last_tick_time": self._last_tick_time.isoformat() if self._last_tick_time else None,
            "last_error": self._last_error,
            "pending_paths": self.change_queue.size(),
            "tracked_units": len(self.registry),
            "watcher": self.watcher.get_status() if self.watcher else None
        }
