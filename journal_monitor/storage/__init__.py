"""
Persistence engines for tracked units and journal entries.
"""

from .base import JournalStore
from .sqlite import SQLiteJournalStore

__all__ = ["JournalStore", "SQLiteJournalStore"]
