"""
Shared fixtures for journal-monitor tests.
"""

import json
import os
from pathlib import Path

import pytest

from journal_monitor.models.config import RetryPolicy, SchedulerConfig
from journal_monitor.models.errors import StoreError
from journal_monitor.storage.sqlite import SQLiteJournalStore


class FailingStore(SQLiteJournalStore):
    """SQLite store whose entry inserts fail after a configurable number of successes"""

    def __init__(self, fail_after: int = 0):
        super().__init__(":memory:")
        self.fail_after = fail_after
        self.failing = False
        self.inserts = 0

    def insert_entry(self, entry):
        if self.failing and self.inserts >= self.fail_after:
            raise StoreError("simulated insert failure")
        self.inserts += 1
        return super().insert_entry(entry)


def event_line(timestamp: str, event: str, **fields) -> str:
    """One terminated journal line"""
    document = {"timestamp": timestamp, "event": event}
    document.update(fields)
    return json.dumps(document) + "\n"


def append(path: Path, text: str) -> None:
    with open(path, 'a', encoding='utf-8', newline='') as f:
        f.write(text)


def set_mtime(path: Path, seconds: float) -> None:
    os.utime(path, (seconds, seconds))


@pytest.fixture
def store():
    store = SQLiteJournalStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def failing_store():
    store = FailingStore()
    yield store
    store.close()


@pytest.fixture
def journal_dir(tmp_path):
    directory = tmp_path / "journals"
    directory.mkdir()
    return directory


@pytest.fixture
def fast_config():
    """Scheduler config with no merge delay and a short idle threshold"""
    return SchedulerConfig(idle_threshold_ticks=3, merge_retry=RetryPolicy(attempts=5, delay_s=0.0))


@pytest.fixture
def line():
    return event_line


@pytest.fixture
def append_to():
    return append


@pytest.fixture
def touch_mtime():
    return set_mtime
