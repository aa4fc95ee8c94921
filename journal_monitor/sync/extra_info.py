"""
Companion snapshot merging.

Some events are written to the journal in a minimal form while the game
writes the full record to a fixed sibling file (``Market.json`` and
friends). The merger swaps in the full record when it provably belongs to
the same event: same timestamp and same event type string.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Dict, Optional

from ..config.defaults import COMPANION_FILES
from ..journal.decoder import EventDecoder, JournalEventDecoder, parse_event_text
from ..models.config import RetryPolicy
from ..models.entries import CandidateEntry, TrackedUnit
from ..models.errors import EventDecodeError
from ..models.results import MergeOutcome, MergeResult

logger = logging.getLogger(__name__)


class ExtraInfoMerger:
    """
    Enriches candidates from companion snapshot files.

    The companion file may be mid-write when the journal line appears, so
    unreadable, unparsable and mismatching content are all retried under
    the retry policy. Exhausting the retries is not an error: the minimal
    candidate is used as is.
    """

    def __init__(
        self,
        companion_files: Optional[Dict[str, str]] = None,
        retry_policy: Optional[RetryPolicy] = None,
        decoder: Optional[EventDecoder] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.companion_files = dict(COMPANION_FILES if companion_files is None else companion_files)
        self.retry_policy = retry_policy or RetryPolicy()
        self.decoder = decoder or JournalEventDecoder()
        self._sleep = sleep

    def companion_path(self, entry: CandidateEntry, unit: TrackedUnit) -> Optional[Path]:
        """Companion file for the entry's event type, in the journal's directory"""
        file_name = self.companion_files.get(entry.event_type)
        if file_name is None:
            return None
        return unit.path / file_name

    def merge(self, entry: CandidateEntry, unit: TrackedUnit) -> MergeResult:
        """
        Attempt to replace a candidate with its companion's full record.

        Returns:
            MergeResult whose ``entry`` is the enriched candidate on success
            and the original candidate otherwise
        """
        companion = self.companion_path(entry, unit)
        if companion is None:
            return MergeResult(outcome=MergeOutcome.NOT_APPLICABLE, entry=entry)

        if not companion.exists():
            logger.debug(f"No companion file {companion.name} for {entry.event_type}")
            return MergeResult(outcome=MergeOutcome.MISSING, entry=entry)

        outcome = MergeOutcome.UNREADABLE
        error: Optional[str] = None
        attempts = self.retry_policy.attempts

        for attempt in range(1, attempts + 1):
            try:
                text = companion.read_text(encoding='utf-8')
                event = parse_event_text(text, self.decoder)
            except FileNotFoundError:
                logger.debug(f"Companion file {companion.name} disappeared")
                return MergeResult(outcome=MergeOutcome.MISSING, entry=entry, attempts=attempt)
            except (OSError, UnicodeDecodeError, EventDecodeError) as e:
                outcome = MergeOutcome.UNREADABLE
                error = str(e)
            else:
                if event.timestamp == entry.timestamp and event.event_type == entry.event_type:
                    enriched = CandidateEntry(
                        timestamp=event.timestamp,
                        event_type=event.event_type,
                        payload=event.payload,
                        unit_name=entry.unit_name,
                        unit_id=entry.unit_id,
                        enriched=True
                    )
                    return MergeResult(outcome=MergeOutcome.ENRICHED, entry=enriched, attempts=attempt)

                outcome = MergeOutcome.MISMATCH
                error = (
                    f"companion holds {event.event_type} at {event.timestamp.isoformat()}, "
                    f"expected {entry.event_type} at {entry.timestamp.isoformat()}"
                )

            if attempt < attempts:
                self._sleep(self.retry_policy.delay_s)

        logger.warning(
            f"Using journal record for {entry.event_type} at {entry.timestamp.isoformat()}: "
            f"{companion.name} {outcome.value} after {attempts} attempts ({error})"
        )
        return MergeResult(outcome=outcome, entry=entry, attempts=attempts, error=error)

    def try_enrich(self, entry: CandidateEntry, unit: TrackedUnit) -> Optional[CandidateEntry]:
        """The enriched candidate, or None when no merge applies or succeeds"""
        result = self.merge(entry, unit)
        return result.entry if result.enriched else None
