"""
Journal Directory Watcher.

Bridges watchdog's OS-level notifications into the ChangeQueue. The
callback runs on the observer thread and does nothing but push paths; all
reading and persistence happens on the scheduler side.
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler, FileSystemEvent as WatchdogEvent
from watchdog.events import FileCreatedEvent, FileModifiedEvent, FileMovedEvent

from ..journal.discovery import matches_journal_pattern
from ..models.errors import WatchSetupError
from .queue import ChangeQueue

logger = logging.getLogger(__name__)


class JournalDirectoryWatcher:
    """
    Non-recursive watcher for journal files in one directory.

    Features:
    - Create, modify and rename-into-place notifications via watchdog
    - Case-insensitive journal filename filtering
    - Setup failures surfaced to the caller, never retried
    """

    def __init__(self, journal_dir: Path, change_queue: ChangeQueue, file_pattern: str = "journal*.log"):
        """
        Initialize the watcher.

        Args:
            journal_dir: Directory holding the journals
            change_queue: Queue receiving changed paths
            file_pattern: Filename glob for journal files
        """
        self.journal_dir = Path(journal_dir).expanduser()
        self.change_queue = change_queue
        self.file_pattern = file_pattern

        self.observer: Optional[Observer] = None
        self.event_handler: Optional['JournalEventHandler'] = None

        self._monitor_start_time: Optional[datetime] = None
        self._events_forwarded = 0

    def start(self) -> None:
        """
        Start watching the journal directory.

        Raises:
            WatchSetupError: directory missing or observer could not start
        """
        if self.observer is not None:
            logger.warning(f"Already watching {self.journal_dir}")
            return

        if not self.journal_dir.exists():
            raise WatchSetupError(f"Journal directory does not exist: {self.journal_dir}")
        if not self.journal_dir.is_dir():
            raise WatchSetupError(f"Journal path is not a directory: {self.journal_dir}")

        self.event_handler = JournalEventHandler(self)
        observer = Observer()
        try:
            observer.schedule(self.event_handler, str(self.journal_dir), recursive=False)
            observer.start()
        except (OSError, RuntimeError) as e:
            self.event_handler = None
            raise WatchSetupError(f"Failed to start watching {self.journal_dir}: {e}") from e

        self.observer = observer
        self._monitor_start_time = datetime.now()
        logger.info(f"Started watching {self.journal_dir} for {self.file_pattern}")

    def stop(self) -> None:
        """Stop watching and release the observer thread."""
        if self.observer is None:
            return

        try:
            self.observer.stop()
            self.observer.join(timeout=5.0)
        except RuntimeError as e:
            logger.warning(f"Error stopping observer: {e}")
        finally:
            self.observer = None
            self.event_handler = None

        logger.info(f"Stopped watching {self.journal_dir} (duration: {self.monitoring_duration})")
        self._monitor_start_time = None

    def forward(self, src_path: str) -> bool:
        """Push a path into the change queue if it names a journal"""
        if not matches_journal_pattern(Path(src_path).name, self.file_pattern):
            return False
        self.change_queue.put(src_path)
        self._events_forwarded += 1
        return True

    @property
    def is_watching(self) -> bool:
        return self.observer is not None

    @property
    def monitoring_duration(self) -> Optional[timedelta]:
        if not self._monitor_start_time:
            return None
        return datetime.now() - self._monitor_start_time

    def get_status(self) -> Dict[str, Any]:
        return {
            "is_watching": self.is_watching,
            "journal_dir": str(self.journal_dir),
            "file_pattern": self.file_pattern,
            "monitoring_duration": str(self.monitoring_duration) if self.monitoring_duration else None,
            "events_forwarded": self._events_forwarded
        }

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()


class JournalEventHandler(FileSystemEventHandler):
    """Watchdog handler that forwards journal paths to the watcher's queue"""

    def __init__(self, watcher: JournalDirectoryWatcher):
        super().__init__()
        self.watcher = watcher

    def on_created(self, event: FileCreatedEvent) -> None:
        if not event.is_directory:
            self.watcher.forward(event.src_path)

    def on_modified(self, event: FileModifiedEvent) -> None:
        if not event.is_directory:
            self.watcher.forward(event.src_path)

    def on_moved(self, event: FileMovedEvent) -> None:
        """A rename into place counts as a new file"""
        if not event.is_directory:
            self.watcher.forward(event.dest_path)

    def on_any_event(self, event: WatchdogEvent) -> None:
        logger.debug(f"Watchdog event: {event.event_type} {event.src_path}")
