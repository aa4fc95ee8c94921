"""
Live journal synchronization.

Tails a directory of append-only journals into a transactional store,
recovering from missed notifications and restarts.

Key Components:
- ChangeQueue: Paths announced by the notification thread
- JournalDirectoryWatcher: watchdog observer feeding the queue
- UnitRegistry: In-memory handles for tracked journal files
- Deduplicator: Same-record detection for rescanned bytes
- ExtraInfoMerger: Companion snapshot enrichment with bounded retry
- TransactionalWriter: Atomic entry insert plus cursor update
- JournalScheduler: Continue / switch / reconcile tick loop
- BackfillScanner: Cancellable historical import
- JournalMonitor: Caller-facing facade
"""

from .queue import ChangeQueue
from .watcher import JournalDirectoryWatcher
from .units import UnitRegistry
from .dedup import Deduplicator, is_same_entry
from .extra_info import ExtraInfoMerger
from .writer import TransactionalWriter
from .scheduler import JournalScheduler
from .backfill import BackfillScanner, PROGRESS_DONE
from .monitor import JournalMonitor

__all__ = [
    "ChangeQueue",
    "JournalDirectoryWatcher",
    "UnitRegistry",
    "Deduplicator",
    "is_same_entry",
    "ExtraInfoMerger",
    "TransactionalWriter",
    "JournalScheduler",
    "BackfillScanner",
    "PROGRESS_DONE",
    "JournalMonitor",
]
