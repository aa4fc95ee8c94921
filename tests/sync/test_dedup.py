"""
Tests for duplicate entry detection in the live and backfill paths.
"""

import pytest
from datetime import datetime, timezone
from pathlib import Path

from journal_monitor.models.entries import CandidateEntry, TrackedUnit
from journal_monitor.sync.dedup import Deduplicator, is_same_entry, payload_contains

T0 = datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)
T1 = datetime(2024, 5, 1, 10, 0, 1, tzinfo=timezone.utc)


class TestDeduplicator:
    """Test suite for same-record detection."""

    @pytest.fixture
    def unit(self, store):
        return store.create_unit(TrackedUnit.for_file(Path("/j/journal.01.log")))

    @pytest.fixture
    def dedup(self, store):
        return Deduplicator(store)

    def candidate(self, unit, event_type="Music", timestamp=T0, enriched=False, **fields):
        payload = {"timestamp": timestamp.isoformat(), "event": event_type}
        payload.update(fields)
        return CandidateEntry(
            timestamp=timestamp,
            event_type=event_type,
            payload=payload,
            unit_name=unit.name,
            unit_id=unit.id,
            enriched=enriched
        )

    def test_new_entry(self, dedup, unit):
        assert dedup.is_new(self.candidate(unit)) is True

    def test_persisted_entry_is_not_new(self, dedup, store, unit):
        entry = self.candidate(unit, MusicTrack="Combat")
        store.insert_entry(entry)

        assert dedup.is_new(entry) is False

    def test_same_time_different_content_is_new(self, dedup, store, unit):
        """Several events may share one timestamp"""
        store.insert_entry(self.candidate(unit, MusicTrack="Combat"))

        assert dedup.is_new(self.candidate(unit, MusicTrack="Exploration")) is True
        assert dedup.is_new(self.candidate(unit, "Location")) is True
        assert dedup.is_new(self.candidate(unit, timestamp=T1, MusicTrack="Combat")) is True

    def test_scope_is_owning_unit(self, dedup, store, unit):
        other = store.create_unit(TrackedUnit.for_file(Path("/j/journal.02.log")))
        store.insert_entry(self.candidate(other))

        assert dedup.is_new(self.candidate(unit)) is True

    def test_enriched_record_covers_minimal_line(self, dedup, store, unit):
        """A stored companion record still matches the journal line it replaced"""
        store.insert_entry(self.candidate(unit, "Market", enriched=True, MarketID=1, Items=[{"Name": "gold"}]))

        assert dedup.is_new(self.candidate(unit, "Market", MarketID=1)) is False
        assert dedup.is_new(self.candidate(unit, "Market", MarketID=2)) is True

    def test_plain_record_needs_equal_payload(self, dedup, store, unit):
        """A later event whose fields are a subset of an earlier one is still new"""
        store.insert_entry(self.candidate(unit, "Bounty", Target="Sidewinder", Reward=5000))

        assert dedup.is_new(self.candidate(unit, "Bounty", Target="Sidewinder")) is True
        assert dedup.is_new(self.candidate(unit, "Bounty", Target="Sidewinder", Reward=5000)) is False

    def test_bulk_path_keeps_subset_events(self, dedup, store, unit):
        store.insert_entry(self.candidate(unit, "Bounty", Target="Sidewinder", Reward=5000))
        batch = [self.candidate(unit, "Bounty", Target="Sidewinder")]

        assert dedup.filter_new_bulk(unit.id, batch) == batch
        assert dedup.filter_new(batch) == batch

    def test_filter_new_collapses_repeats_in_batch(self, dedup, store, unit):
        store.insert_entry(self.candidate(unit, "Fileheader"))
        batch = [
            self.candidate(unit, "Fileheader"),
            self.candidate(unit, MusicTrack="A"),
            self.candidate(unit, MusicTrack="A"),
            self.candidate(unit, MusicTrack="B"),
        ]

        fresh = dedup.filter_new(batch)

        assert [e.payload.get("MusicTrack") for e in fresh] == ["A", "B"]

    def test_bulk_and_live_paths_agree(self, dedup, store, unit):
        store.insert_entry(self.candidate(unit, "Fileheader"))
        store.insert_entry(self.candidate(unit, "Market", timestamp=T1, enriched=True, MarketID=1, Items=[]))
        batch = [
            self.candidate(unit, "Fileheader"),
            self.candidate(unit, "LoadGame"),
            self.candidate(unit, "LoadGame"),
            self.candidate(unit, "Market", timestamp=T1, MarketID=1),
            self.candidate(unit, "Music", timestamp=T1),
        ]

        assert dedup.filter_new(batch) == dedup.filter_new_bulk(unit.id, batch)
        assert [e.event_type for e in dedup.filter_new_bulk(unit.id, batch)] == ["LoadGame", "Music"]


class TestPayloadHelpers:

    def test_payload_contains(self):
        assert payload_contains({"a": 1, "b": 2}, {"a": 1})
        assert payload_contains({"a": 1}, {"a": 1})
        assert not payload_contains({"a": 1}, {"a": 2})
        assert not payload_contains({"a": 1}, {"a": 1, "c": 3})

    def test_is_same_entry_containment_only_for_enriched(self):
        minimal = CandidateEntry(timestamp=T0, event_type="Market", payload={"MarketID": 1}, unit_name="j.log")
        full = {"MarketID": 1, "Items": []}

        plain = CandidateEntry(timestamp=T0, event_type="Market", payload=full, unit_name="j.log")
        merged = CandidateEntry(timestamp=T0, event_type="Market", payload=full, unit_name="j.log", enriched=True)

        assert not is_same_entry(minimal, plain)
        assert is_same_entry(minimal, merged)

    def test_is_same_entry_needs_type_and_time(self):
        base = dict(payload={"x": 1}, unit_name="j.log", unit_id=1)
        a = CandidateEntry(timestamp=T0, event_type="A", **base)

        assert is_same_entry(a, CandidateEntry(timestamp=T0, event_type="A", **base))
        assert not is_same_entry(a, CandidateEntry(timestamp=T1, event_type="A", **base))
        assert not is_same_entry(a, CandidateEntry(timestamp=T0, event_type="B", **base))
