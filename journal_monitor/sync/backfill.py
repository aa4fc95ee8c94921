"""
Historical journal import.

Walks every journal under the root in modification-time order and brings
the persistence engine up to date with them. The most recently written
journal is processed last and handed to the scheduler as its active unit,
so live tailing picks up exactly where the import stopped.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional

from ..journal.cursor import FileCursor
from ..journal.discovery import find_journal_files, sort_by_modified
from ..models.entries import TrackedUnit
from ..models.errors import PersistenceError
from ..models.results import BackfillResult
from .dedup import Deduplicator
from .units import UnitRegistry
from .writer import TransactionalWriter

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]
CancelCheck = Callable[[], bool]

PROGRESS_DONE = -1


class BackfillScanner:
    """
    One-shot, cancellable import of all journals under a directory.

    Must finish (or be cancelled) before live tailing starts on the same
    directory; the caller enforces that ordering.
    """

    def __init__(
        self,
        journal_dir: Path,
        registry: UnitRegistry,
        file_cursor: FileCursor,
        deduplicator: Deduplicator,
        writer: TransactionalWriter,
        file_pattern: str = "journal*.log"
    ):
        self.journal_dir = Path(journal_dir)
        self.registry = registry
        self.file_cursor = file_cursor
        self.deduplicator = deduplicator
        self.writer = writer
        self.file_pattern = file_pattern

    def run(
        self,
        cancel_check: Optional[CancelCheck] = None,
        progress_cb: Optional[ProgressCallback] = None,
        force_reload: bool = False
    ) -> BackfillResult:
        """
        Import all journals.

        Args:
            cancel_check: Polled between files; returning True stops the import
            progress_cb: Called with (percent, unit name) after each file's
                commit, and with (-1, "") once the import ends
            force_reload: Re-read every journal from byte 0

        Returns:
            BackfillResult summary

        Raises:
            PersistenceError: a file's transaction failed and was rolled back
        """
        cancel_check = cancel_check or (lambda: False)
        progress_cb = progress_cb or (lambda percent, name: None)
        result = BackfillResult()

        logger.info(f"Backfilling journals in {self.journal_dir}")
        self.registry.preload()

        files = sort_by_modified(find_journal_files(self.journal_dir, self.file_pattern, recursive=True))
        result.files_seen = len(files)

        selected = self._select(files, force_reload)

        try:
            for index, unit in enumerate(selected):
                if cancel_check():
                    logger.info(f"Backfill cancelled after {index} of {len(selected)} files")
                    result.cancelled = True
                    break

                result.entries_added += self._import(unit)
                result.files_scanned += 1
                result.last_unit = unit.name

                progress_cb((index + 1) * 100 // len(selected), unit.name)
        finally:
            progress_cb(PROGRESS_DONE, "")

        logger.info(
            f"Backfill scanned {result.files_scanned} of {result.files_seen} journals, "
            f"added {result.entries_added} entries"
        )
        return result

    def _select(self, files: List[Path], force_reload: bool) -> List[TrackedUnit]:
        """Resolve units and keep those with unread bytes, plus the newest journal"""
        selected: List[TrackedUnit] = []
        for index, file_path in enumerate(files):
            unit = self.registry.resolve(file_path)
            if force_reload:
                unit.cursor = 0

            try:
                size = file_path.stat().st_size
            except FileNotFoundError:
                logger.debug(f"Journal vanished before backfill: {file_path}")
                continue

            if unit.cursor != size or index == len(files) - 1:
                selected.append(unit)
        return selected

    def _import(self, unit: TrackedUnit) -> int:
        """Read a journal's unread tail and commit its net-new entries"""
        read = self.file_cursor.read_new(unit)
        if read.file_missing:
            logger.info(f"Journal {unit.name} disappeared during backfill")
            self.registry.drop(unit)
            return 0
        if read.error is not None:
            raise PersistenceError(
                f"Backfill of {unit.name} could not read the journal: {read.error}",
                unit_name=unit.name,
                cursor=unit.cursor
            )

        fresh = self.deduplicator.filter_new_bulk(unit.id, read.entries)
        for entry in fresh:
            logger.debug(f"Write journal entry {entry.timestamp.isoformat()} {entry.event_type}")

        commit = self.writer.commit(unit, fresh, read.end_offset, read.last_modified)
        if not commit.success:
            raise PersistenceError(
                f"Backfill of {unit.name} failed: {commit.error}",
                unit_name=unit.name,
                cursor=commit.cursor
            )
        return len(commit.entries)
