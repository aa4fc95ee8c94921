"""
Tests for BackfillScanner historical import.
"""

import json
import pytest

from journal_monitor.journal.cursor import FileCursor
from journal_monitor.models.errors import PersistenceError
from journal_monitor.sync.backfill import PROGRESS_DONE, BackfillScanner
from journal_monitor.sync.dedup import Deduplicator
from journal_monitor.sync.units import UnitRegistry
from journal_monitor.sync.writer import TransactionalWriter


def build_scanner(store, journal_dir):
    registry = UnitRegistry(store)
    scanner = BackfillScanner(
        journal_dir=journal_dir,
        registry=registry,
        file_cursor=FileCursor(),
        deduplicator=Deduplicator(store),
        writer=TransactionalWriter(store)
    )
    return scanner, registry


@pytest.fixture
def history(journal_dir, line, append_to, touch_mtime):
    """Three journals whose modification order differs from their name order"""
    files = {
        "journal.a.log": 1_700_000_000,
        "journal.b.log": 1_700_003_000,
        "journal.c.log": 1_700_002_000,
    }
    for name, mtime in files.items():
        path = journal_dir / name
        append_to(path, line("2024-05-01T10:00:00Z", "Fileheader", file=name))
        append_to(path, line("2024-05-01T10:00:01Z", "LoadGame", file=name))
        touch_mtime(path, mtime)
    return journal_dir


class TestBackfillScanner:
    """Test suite for the one-shot historical import."""

    def test_files_are_imported_oldest_first(self, store, history):
        scanner, registry = build_scanner(store, history)
        progress = []

        result = scanner.run(progress_cb=lambda percent, name: progress.append((percent, name)))

        assert progress == [
            (33, "journal.a.log"),
            (66, "journal.c.log"),
            (100, "journal.b.log"),
            (PROGRESS_DONE, ""),
        ]
        assert result.files_seen == 3
        assert result.files_scanned == 3
        assert result.entries_added == 6
        assert result.last_unit == "journal.b.log"
        assert result.cancelled is False
        assert registry.get("journal.b.log").cursor == (history / "journal.b.log").stat().st_size

    def test_second_run_only_rescans_newest(self, store, history):
        build_scanner(store, history)[0].run()

        scanner, _ = build_scanner(store, history)
        progress = []
        result = scanner.run(progress_cb=lambda percent, name: progress.append((percent, name)))

        assert progress == [(100, "journal.b.log"), (PROGRESS_DONE, "")]
        assert result.entries_added == 0
        assert store.count_entries() == 6

    def test_grown_journal_is_picked_up(self, store, history, line, append_to, touch_mtime):
        build_scanner(store, history)[0].run()
        append_to(history / "journal.a.log", line("2024-05-01T10:05:00Z", "Shutdown"))
        touch_mtime(history / "journal.a.log", 1_700_000_500)

        result = build_scanner(store, history)[0].run()

        assert result.files_scanned == 2
        assert result.entries_added == 1
        assert result.last_unit == "journal.b.log"

    def test_force_reload_does_not_duplicate(self, store, history):
        build_scanner(store, history)[0].run()

        result = build_scanner(store, history)[0].run(force_reload=True)

        assert result.files_scanned == 3
        assert result.entries_added == 0
        assert store.count_entries() == 6

    def test_nested_directories_are_included(self, store, history, line, append_to, touch_mtime):
        nested = history / "archive"
        nested.mkdir()
        append_to(nested / "journal.old.log", line("2023-01-01T00:00:00Z", "Fileheader"))
        touch_mtime(nested / "journal.old.log", 1_600_000_000)

        result = build_scanner(store, history)[0].run()

        assert result.files_seen == 4
        assert store.find_unit_by_name("journal.old.log").path == nested

    def test_cancellation_between_files(self, store, history):
        scanner, _ = build_scanner(store, history)
        progress = []

        result = scanner.run(
            cancel_check=lambda: len(progress) >= 1,
            progress_cb=lambda percent, name: progress.append((percent, name))
        )

        assert result.cancelled is True
        assert result.files_scanned == 1
        assert result.last_unit == "journal.a.log"
        assert progress == [(33, "journal.a.log"), (PROGRESS_DONE, "")]
        assert store.count_entries() == 2

    def test_companion_files_are_not_merged(self, store, journal_dir, line, append_to):
        (journal_dir / "Market.json").write_text(json.dumps({
            "timestamp": "2024-05-01T10:00:00Z", "event": "Market", "MarketID": 7, "Items": [{"Name": "gold"}]
        }))
        append_to(journal_dir / "journal.01.log", line("2024-05-01T10:00:00Z", "Market", MarketID=7))

        build_scanner(store, journal_dir)[0].run()

        unit = store.find_unit_by_name("journal.01.log")
        assert "Items" not in store.list_entries(unit.id)[0].payload

    def test_empty_directory(self, store, journal_dir):
        progress = []
        result = build_scanner(store, journal_dir)[0].run(
            progress_cb=lambda percent, name: progress.append((percent, name))
        )

        assert result.files_seen == 0
        assert result.last_unit is None
        assert progress == [(PROGRESS_DONE, "")]

    def test_commit_failure_raises(self, failing_store, history):
        failing_store.failing = True
        progress = []

        with pytest.raises(PersistenceError) as exc_info:
            build_scanner(failing_store, history)[0].run(
                progress_cb=lambda percent, name: progress.append((percent, name))
            )

        assert exc_info.value.unit_name == "journal.a.log"
        assert exc_info.value.cursor == 0
        assert progress == [(PROGRESS_DONE, "")]
        assert failing_store.count_entries() == 0
