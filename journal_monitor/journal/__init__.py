"""
Journal file access: discovery, event decoding and incremental reads.
"""

from .decoder import EventDecoder, JournalEventDecoder, parse_event_text
from .cursor import FileCursor
from .discovery import find_journal_files, matches_journal_pattern, sort_by_modified

__all__ = [
    "EventDecoder",
    "JournalEventDecoder",
    "parse_event_text",
    "FileCursor",
    "find_journal_files",
    "matches_journal_pattern",
    "sort_by_modified",
]
