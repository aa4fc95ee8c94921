"""
Change notification queue.

Carries raw file paths from the notification thread to the scheduler.
Delivery is unordered and at-least-once: a path may arrive for a file
with nothing new to read. Repeats of a path that is still waiting are
coalesced, so a busy journal occupies at most one slot however many
notifications it produces.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Set, Union

logger = logging.getLogger(__name__)


@dataclass
class QueueMetrics:
    """Metrics for monitoring queue traffic"""
    total_enqueued: int = 0
    total_dequeued: int = 0
    total_coalesced: int = 0


class ChangeQueue:
    """
    Thread-safe channel of pending journal paths.

    Producers are notification callbacks running on observer threads; the
    only consumer is the scheduler. A path is pending from ``put`` until
    ``try_get`` hands it out; putting it again after that queues it anew.
    """

    def __init__(self):
        self._queue: "queue.SimpleQueue[str]" = queue.SimpleQueue()
        self._lock = threading.Lock()
        self._pending: Set[str] = set()
        self.metrics = QueueMetrics()

    def put(self, path: Union[str, Path]) -> bool:
        """
        Announce a changed journal path.

        Returns:
            True if the path was queued, False if it was already pending
        """
        key = str(path)
        with self._lock:
            if key in self._pending:
                self.metrics.total_coalesced += 1
                return False
            self._pending.add(key)
            self._queue.put(key)
            self.metrics.total_enqueued += 1
        return True

    def try_get(self) -> Optional[str]:
        """Take one pending path without blocking, or None when empty"""
        with self._lock:
            try:
                path = self._queue.get_nowait()
            except queue.Empty:
                return None
            self._pending.discard(path)
            self.metrics.total_dequeued += 1
        return path

    def is_pending(self, path: Union[str, Path]) -> bool:
        with self._lock:
            return str(path) in self._pending

    def size(self) -> int:
        """Number of pending paths"""
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()

    def clear(self) -> int:
        """Drop all pending paths and return how many were dropped"""
        dropped = 0
        while self.try_get() is not None:
            dropped += 1
        if dropped:
            logger.debug(f"Cleared {dropped} pending paths")
        return dropped
