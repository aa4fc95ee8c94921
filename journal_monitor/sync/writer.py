"""
Transactional persistence of scan results.

A scan's net-new entries and the unit's advanced cursor are written in one
transaction. On failure the transaction is rolled back and the unit's
in-memory cursor is restored to its pre-scan value, so the next scan
re-reads and re-derives the same entries.
"""

import logging
from datetime import datetime
from typing import List, Optional

from ..models.entries import CandidateEntry, TrackedUnit
from ..models.results import CommitResult
from ..storage.base import JournalStore

logger = logging.getLogger(__name__)


class TransactionalWriter:
    """Commits entries and cursor updates atomically"""

    def __init__(self, store: JournalStore):
        self.store = store

    def commit(
        self,
        unit: TrackedUnit,
        entries: List[CandidateEntry],
        new_cursor: int,
        last_modified: Optional[datetime] = None
    ) -> CommitResult:
        """
        Persist entries and advance the unit's cursor in one transaction.

        Args:
            unit: Persisted unit owning the entries
            entries: Net-new entries, already deduplicated and merged
            new_cursor: Offset just past the last consumed line
            last_modified: File modification time observed by the scan

        Returns:
            CommitResult; on failure ``cursor`` is the restored pre-scan value
        """
        previous_cursor = unit.cursor

        try:
            with self.store.transaction():
                for entry in entries:
                    self.store.insert_entry(entry)
                self.store.update_unit_cursor(unit.id, new_cursor, last_modified)
        except Exception as e:
            unit.cursor = previous_cursor
            logger.error(
                f"Commit of {len(entries)} entries for {unit.name} failed, "
                f"cursor restored to {previous_cursor}: {e}"
            )
            return CommitResult.error_result(unit.name, previous_cursor, str(e))

        unit.cursor = new_cursor
        if last_modified is not None:
            unit.last_modified = last_modified

        if entries:
            logger.debug(f"Committed {len(entries)} entries for {unit.name}, cursor {previous_cursor} -> {new_cursor}")
        return CommitResult.success_result(unit.name, entries, new_cursor)
