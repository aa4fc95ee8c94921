"""
Tests for TransactionalWriter commit and rollback.
"""

import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from journal_monitor.models.entries import CandidateEntry, TrackedUnit
from journal_monitor.models.results import OperationStatus
from journal_monitor.sync.writer import TransactionalWriter

T0 = datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)


def entries_for(unit: TrackedUnit, count: int):
    return [
        CandidateEntry(
            timestamp=T0 + timedelta(seconds=i),
            event_type="Music",
            payload={"event": "Music", "n": i},
            unit_name=unit.name,
            unit_id=unit.id
        )
        for i in range(count)
    ]


class TestTransactionalWriter:
    """Atomicity of entries and cursor"""

    def test_commit_advances_cursor(self, store):
        unit = store.create_unit(TrackedUnit.for_file(Path("/j/journal.01.log")))
        writer = TransactionalWriter(store)

        result = writer.commit(unit, entries_for(unit, 3), 300, T0)

        assert result.success
        assert result.cursor == 300
        assert len(result.entries) == 3
        assert unit.cursor == 300
        assert unit.last_modified == T0
        assert store.count_entries(unit.id) == 3
        assert store.find_unit_by_name(unit.name).cursor == 300

    def test_empty_commit_still_moves_cursor(self, store):
        """Lines that were all duplicates or malformed are still consumed"""
        unit = store.create_unit(TrackedUnit.for_file(Path("/j/journal.01.log")))

        result = TransactionalWriter(store).commit(unit, [], 120)

        assert result.success
        assert result.entries == []
        assert store.find_unit_by_name(unit.name).cursor == 120

    def test_failure_rolls_back_everything(self, failing_store):
        unit = failing_store.create_unit(TrackedUnit.for_file(Path("/j/journal.01.log")))
        unit.cursor = 50
        failing_store.update_unit_cursor(unit.id, 50)
        failing_store.fail_after = 2
        failing_store.failing = True

        result = TransactionalWriter(failing_store).commit(unit, entries_for(unit, 5), 500)

        assert not result.success
        assert result.status == OperationStatus.RETRYABLE
        assert result.cursor == 50
        assert "simulated insert failure" in result.error
        assert unit.cursor == 50
        assert failing_store.count_entries() == 0
        assert failing_store.find_unit_by_name(unit.name).cursor == 50

    def test_retry_after_failure_writes_all(self, failing_store):
        unit = failing_store.create_unit(TrackedUnit.for_file(Path("/j/journal.01.log")))
        writer = TransactionalWriter(failing_store)
        batch = entries_for(unit, 4)

        failing_store.fail_after = 3
        failing_store.failing = True
        assert not writer.commit(unit, batch, 400).success

        failing_store.failing = False
        result = writer.commit(unit, batch, 400)

        assert result.success
        assert failing_store.count_entries(unit.id) == 4
        assert unit.cursor == 400

    def test_unpersisted_unit_fails_cleanly(self, store):
        unit = TrackedUnit.for_file(Path("/j/journal.01.log"))

        result = TransactionalWriter(store).commit(unit, entries_for(unit, 1), 10)

        assert not result.success
        assert unit.cursor == 0
