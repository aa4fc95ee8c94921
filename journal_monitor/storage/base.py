"""
Persistence engine interface.

The watcher consumes a transactional store that keeps tracked units and
journal entries. Connection management and schema belong to the engine.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional, Set

from ..models.entries import CandidateEntry, PersistedEntry, TrackedUnit, UnitKind


class JournalStore(ABC):
    """Abstract transactional store for tracked units and journal entries"""

    # Units

    @abstractmethod
    def find_unit_by_name(self, name: str) -> Optional[TrackedUnit]:
        """Look up a unit by filename"""

    @abstractmethod
    def create_unit(self, unit: TrackedUnit) -> TrackedUnit:
        """Insert a unit and return it with its assigned id"""

    @abstractmethod
    def update_unit_cursor(
        self,
        unit_id: int,
        cursor: int,
        last_modified: Optional[datetime] = None
    ) -> None:
        """Persist a unit's byte cursor"""

    @abstractmethod
    def list_units(self, kind: Optional[UnitKind] = None) -> List[TrackedUnit]:
        """List units, optionally filtered by kind"""

    def list_unit_names(self, kind: Optional[UnitKind] = None) -> Set[str]:
        return {unit.name for unit in self.list_units(kind)}

    # Entries

    @abstractmethod
    def find_entries(self, unit_id: int, timestamp: datetime) -> List[PersistedEntry]:
        """Entries owned by a unit at an exact timestamp"""

    @abstractmethod
    def list_entries(self, unit_id: int) -> List[PersistedEntry]:
        """All entries owned by a unit, in insertion order"""

    @abstractmethod
    def insert_entry(self, entry: CandidateEntry) -> int:
        """Insert an entry for ``entry.unit_id`` and return its id"""

    @abstractmethod
    def count_entries(self, unit_id: Optional[int] = None) -> int:
        """Number of entries, for one unit or overall"""

    # Transactions

    @abstractmethod
    def begin(self) -> None:
        """Start a transaction"""

    @abstractmethod
    def commit(self) -> None:
        """Commit the current transaction"""

    @abstractmethod
    def rollback(self) -> None:
        """Roll back the current transaction"""

    @contextmanager
    def transaction(self) -> Iterator['JournalStore']:
        """Run a block atomically; any exception rolls back and propagates"""
        self.begin()
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        else:
            self.commit()

    def close(self) -> None:
        """Release engine resources"""
