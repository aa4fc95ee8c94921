"""Exception hierarchy for journal-monitor."""


class JournalMonitorError(Exception):
    """Base class for all journal-monitor errors"""


class WatchSetupError(JournalMonitorError):
    """The change-notification watch could not be established"""


class StoreError(JournalMonitorError):
    """The persistence engine failed an operation"""


class PersistenceError(JournalMonitorError):
    """
    A scan could not be persisted: its journal could not be read, or its
    transaction failed and was rolled back.

    The unit's cursor has already been restored to its pre-scan value, so
    the next scan re-reads the same bytes.
    """

    def __init__(self, message: str, unit_name: str = None, cursor: int = None):
        super().__init__(message)
        self.unit_name = unit_name
        self.cursor = cursor


class EventDecodeError(JournalMonitorError):
    """A journal line could not be decoded into an event"""
