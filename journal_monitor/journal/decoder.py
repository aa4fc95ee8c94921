"""
Journal event decoding.

The watcher only needs a timestamp and an event type from each line; the
richer typed interpretation of events belongs to whoever supplies the
decoder.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Protocol

from pydantic import ValidationError

from ..models.entries import JournalEvent
from ..models.errors import EventDecodeError

logger = logging.getLogger(__name__)


class EventDecoder(Protocol):
    """Turns one parsed JSON object into a JournalEvent"""

    def decode(self, raw: Dict[str, Any]) -> JournalEvent:
        ...


class JournalEventDecoder:
    """
    Default decoder for journal objects.

    Requires a ``timestamp`` (ISO-8601, ``Z`` suffix accepted) and a
    non-empty string ``event`` field. The raw object is kept as the payload.
    """

    TIMESTAMP_FIELD = "timestamp"
    EVENT_FIELD = "event"

    def decode(self, raw: Dict[str, Any]) -> JournalEvent:
        if not isinstance(raw, dict):
            raise EventDecodeError(f"Journal line is not a JSON object: {type(raw).__name__}")

        event_type = raw.get(self.EVENT_FIELD)
        if not isinstance(event_type, str) or not event_type:
            raise EventDecodeError("Journal object has no event type")

        timestamp = raw.get(self.TIMESTAMP_FIELD)
        if not isinstance(timestamp, str):
            raise EventDecodeError(f"{event_type} has no timestamp")

        try:
            parsed = datetime.fromisoformat(timestamp.replace('Z', '+00:00'))
            return JournalEvent(timestamp=parsed, event_type=event_type, payload=raw)
        except (ValueError, ValidationError) as e:
            raise EventDecodeError(f"{event_type} has an invalid timestamp {timestamp!r}: {e}") from e


def parse_event_text(text: str, decoder: EventDecoder) -> JournalEvent:
    """
    Parse and decode one JSON document.

    Raises:
        EventDecodeError: text is not JSON or does not decode to an event
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise EventDecodeError(f"Invalid JSON: {e}") from e
    return decoder.decode(raw)
