"""
SQLite persistence engine.

Reference implementation of JournalStore used by the CLI and the tests.
Transactions are explicit: the connection runs in autocommit mode and
``begin``/``commit``/``rollback`` issue the statements directly. The
connection may move between threads (the async tick loop runs ticks in a
worker thread) but is never used by two threads at once.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from ..models.entries import CandidateEntry, PersistedEntry, TrackedUnit, UnitKind, ensure_utc
from ..models.errors import StoreError
from .base import JournalStore

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS tracked_units (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    path TEXT NOT NULL,
    kind INTEGER NOT NULL,
    cursor INTEGER NOT NULL DEFAULT 0,
    last_modified TEXT
);

CREATE TABLE IF NOT EXISTS journal_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    unit_id INTEGER NOT NULL REFERENCES tracked_units(id),
    event_time TEXT NOT NULL,
    event_type TEXT NOT NULL,
    payload TEXT NOT NULL,
    enriched INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_entries_unit_time
    ON journal_entries (unit_id, event_time);
"""


def _format_time(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return ensure_utc(value).isoformat()


class SQLiteJournalStore(JournalStore):
    """JournalStore backed by a single SQLite database file"""

    def __init__(self, database: Union[str, Path] = ":memory:"):
        self.database = str(database)
        if self.database != ":memory:":
            Path(self.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

        try:
            self._conn = sqlite3.connect(self.database, isolation_level=None, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open journal database {self.database}: {e}") from e

        logger.debug(f"Opened journal database {self.database}")

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreError(f"Journal database error: {e}") from e

    @staticmethod
    def _row_to_unit(row: sqlite3.Row) -> TrackedUnit:
        return TrackedUnit(
            id=row["id"],
            name=row["name"],
            path=Path(row["path"]),
            kind=UnitKind(row["kind"]),
            cursor=row["cursor"],
            last_modified=datetime.fromisoformat(row["last_modified"]) if row["last_modified"] else None
        )

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> PersistedEntry:
        return PersistedEntry(
            id=row["id"],
            unit_id=row["unit_id"],
            timestamp=datetime.fromisoformat(row["event_time"]),
            event_type=row["event_type"],
            payload=json.loads(row["payload"]),
            enriched=bool(row["enriched"])
        )

    # Units

    def find_unit_by_name(self, name: str) -> Optional[TrackedUnit]:
        row = self._execute("SELECT * FROM tracked_units WHERE name = ?", (name,)).fetchone()
        return self._row_to_unit(row) if row else None

    def create_unit(self, unit: TrackedUnit) -> TrackedUnit:
        cursor = self._execute(
            "INSERT INTO tracked_units (name, path, kind, cursor, last_modified) VALUES (?, ?, ?, ?, ?)",
            (unit.name, str(unit.path), int(unit.kind), unit.cursor, _format_time(unit.last_modified))
        )
        return unit.model_copy(update={"id": cursor.lastrowid})

    def update_unit_cursor(
        self,
        unit_id: int,
        cursor: int,
        last_modified: Optional[datetime] = None
    ) -> None:
        result = self._execute(
            "UPDATE tracked_units SET cursor = ?, last_modified = COALESCE(?, last_modified) WHERE id = ?",
            (cursor, _format_time(last_modified), unit_id)
        )
        if result.rowcount == 0:
            raise StoreError(f"No tracked unit with id {unit_id}")

    def list_units(self, kind: Optional[UnitKind] = None) -> List[TrackedUnit]:
        if kind is None:
            rows = self._execute("SELECT * FROM tracked_units ORDER BY name").fetchall()
        else:
            rows = self._execute(
                "SELECT * FROM tracked_units WHERE kind = ? ORDER BY name", (int(kind),)
            ).fetchall()
        return [self._row_to_unit(row) for row in rows]

    # Entries

    def find_entries(self, unit_id: int, timestamp: datetime) -> List[PersistedEntry]:
        rows = self._execute(
            "SELECT * FROM journal_entries WHERE unit_id = ? AND event_time = ? ORDER BY id",
            (unit_id, _format_time(timestamp))
        ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def list_entries(self, unit_id: int) -> List[PersistedEntry]:
        rows = self._execute(
            "SELECT * FROM journal_entries WHERE unit_id = ? ORDER BY id", (unit_id,)
        ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def insert_entry(self, entry: CandidateEntry) -> int:
        if entry.unit_id <= 0:
            raise StoreError(f"Entry for {entry.unit_name} has no persisted unit")
        cursor = self._execute(
            "INSERT INTO journal_entries (unit_id, event_time, event_type, payload, enriched) VALUES (?, ?, ?, ?, ?)",
            (
                entry.unit_id,
                _format_time(entry.timestamp),
                entry.event_type,
                json.dumps(entry.payload),
                int(entry.enriched)
            )
        )
        return cursor.lastrowid

    def count_entries(self, unit_id: Optional[int] = None) -> int:
        if unit_id is None:
            row = self._execute("SELECT COUNT(*) FROM journal_entries").fetchone()
        else:
            row = self._execute(
                "SELECT COUNT(*) FROM journal_entries WHERE unit_id = ?", (unit_id,)
            ).fetchone()
        return row[0]

    # Transactions

    def begin(self) -> None:
        self._execute("BEGIN")

    def commit(self) -> None:
        self._execute("COMMIT")

    def rollback(self) -> None:
        if self._conn.in_transaction:
            self._execute("ROLLBACK")

    def close(self) -> None:
        self._conn.close()
