"""
Tracked unit registry.

Owns the in-memory handles for journal files, keyed by persisted id. Only
the scheduler (and a backfill that runs before it) touches the registry.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Set

from ..models.entries import TrackedUnit, UnitKind
from ..storage.base import JournalStore

logger = logging.getLogger(__name__)


class UnitRegistry:
    """Resolves journal paths to persisted TrackedUnits"""

    def __init__(self, store: JournalStore):
        self.store = store
        self._units: Dict[int, TrackedUnit] = {}
        self._ids_by_name: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._units)

    def __contains__(self, name: str) -> bool:
        return name in self._ids_by_name

    def get(self, name: str) -> Optional[TrackedUnit]:
        unit_id = self._ids_by_name.get(name)
        return self._units.get(unit_id) if unit_id is not None else None

    def units(self) -> List[TrackedUnit]:
        return list(self._units.values())

    def _adopt(self, unit: TrackedUnit) -> TrackedUnit:
        self._units[unit.id] = unit
        self._ids_by_name[unit.name] = unit.id
        return unit

    def preload(self) -> int:
        """Load every persisted journal unit; returns the number loaded"""
        loaded = 0
        for unit in self.store.list_units(UnitKind.JOURNAL):
            if unit.name not in self._ids_by_name:
                self._adopt(unit)
                loaded += 1
        return loaded

    def resolve(self, file_path: Path) -> TrackedUnit:
        """
        Get the unit for a journal file, creating and persisting it if unseen.

        The unit's directory is refreshed from ``file_path`` so a journal
        folder that moved is still readable.
        """
        file_path = Path(file_path)
        unit = self.get(file_path.name)

        if unit is None:
            unit = self.store.find_unit_by_name(file_path.name)
            if unit is not None:
                unit = self._adopt(unit)

        if unit is None:
            with self.store.transaction():
                unit = self.store.create_unit(TrackedUnit.for_file(file_path))
            logger.info(f"Tracking new journal {unit.name} (id {unit.id})")
            return self._adopt(unit)

        if unit.path != file_path.parent:
            unit.path = file_path.parent
        return unit

    def drop(self, unit: TrackedUnit) -> None:
        """Forget the in-memory handle; the persisted row is kept"""
        self._units.pop(unit.id, None)
        self._ids_by_name.pop(unit.name, None)
        logger.debug(f"Dropped handle for {unit.name}")

    def persisted_names(self) -> Set[str]:
        """Names of journal units known to the persistence engine"""
        return self.store.list_unit_names(UnitKind.JOURNAL)
