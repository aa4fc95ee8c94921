"""
Duplicate entry detection.

Restarts, reconciliation rescans and backfill all re-observe bytes that
may already be persisted. Two entries are the same business record when
they share owning unit, exact timestamp and event type, and their payloads
are equal. A record that was enriched from a companion snapshot matches
when the candidate payload is contained in it, so the minimal journal line
it replaced is still recognised.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Union

from ..models.entries import CandidateEntry, PersistedEntry
from ..storage.base import JournalStore

logger = logging.getLogger(__name__)


def payload_contains(persisted: Mapping[str, Any], candidate: Mapping[str, Any]) -> bool:
    """True when every key/value of ``candidate`` is present and equal in ``persisted``"""
    for key, value in candidate.items():
        if key not in persisted or persisted[key] != value:
            return False
    return True


def is_same_entry(candidate: CandidateEntry, existing: Union[CandidateEntry, PersistedEntry]) -> bool:
    """Business-record equality between a candidate and a persisted or candidate entry"""
    if candidate.timestamp != existing.timestamp or candidate.event_type != existing.event_type:
        return False
    if existing.enriched:
        return payload_contains(existing.payload, candidate.payload)
    return candidate.payload == existing.payload


class Deduplicator:
    """
    Decides whether candidates are already recorded for their unit.

    Live tailing asks the store per candidate; backfill builds a timestamp
    lookup per file. Both use ``is_same_entry`` and also collapse repeats
    inside the batch being filtered, so the two paths agree.
    """

    def __init__(self, store: JournalStore):
        self.store = store

    def is_new(self, entry: CandidateEntry) -> bool:
        """Check one candidate against the entries persisted at its timestamp"""
        existing = self.store.find_entries(entry.unit_id, entry.timestamp)
        return not any(is_same_entry(entry, persisted) for persisted in existing)

    def filter_new(self, entries: Iterable[CandidateEntry]) -> List[CandidateEntry]:
        """Live path: keep candidates absent from the store and from earlier in the batch"""
        fresh: List[CandidateEntry] = []
        dropped = 0
        for entry in entries:
            if self.is_new(entry) and not any(is_same_entry(entry, kept) for kept in fresh):
                fresh.append(entry)
            else:
                dropped += 1

        if dropped:
            logger.debug(f"Dropped {dropped} already recorded entries")
        return fresh

    def filter_new_bulk(self, unit_id: int, entries: Iterable[CandidateEntry]) -> List[CandidateEntry]:
        """Backfill path: one query per unit, then a lookup keyed by exact timestamp"""
        lookup: Dict[datetime, List[Union[CandidateEntry, PersistedEntry]]] = defaultdict(list)
        for persisted in self.store.list_entries(unit_id):
            lookup[persisted.timestamp].append(persisted)

        fresh: List[CandidateEntry] = []
        for entry in entries:
            same_time = lookup[entry.timestamp]
            if not any(is_same_entry(entry, existing) for existing in same_time):
                fresh.append(entry)
                same_time.append(entry)
        return fresh
