"""
Incremental journal reader.

Reads the bytes appended to a journal since a unit's cursor and splits
them into complete lines. An unterminated trailing line is left in place
for the next read, so an event is never split across scans.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from ..models.entries import CandidateEntry, TrackedUnit
from ..models.errors import EventDecodeError
from ..models.results import ReadResult
from .decoder import EventDecoder, JournalEventDecoder, parse_event_text

logger = logging.getLogger(__name__)

LINE_TERMINATOR = b"\n"
UTF8_BOM = b"\xef\xbb\xbf"


class FileCursor:
    """
    Reads newly appended events from journal files.

    The cursor never advances the unit itself: ``read_new`` reports the
    offset the unit should move to, and only a successful commit applies it.
    """

    def __init__(self, decoder: Optional[EventDecoder] = None):
        self.decoder = decoder or JournalEventDecoder()

    def read_new(self, unit: TrackedUnit, start_offset: Optional[int] = None) -> ReadResult:
        """
        Read all complete lines appended after the unit's cursor.

        Args:
            unit: Unit whose file is read
            start_offset: Offset to read from instead of ``unit.cursor``

        Returns:
            ReadResult with decoded candidates and the new end offset
        """
        offset = unit.cursor if start_offset is None else start_offset
        file_path = unit.file_path

        try:
            with open(file_path, 'rb') as f:
                stat = file_path.stat()
                file_size = stat.st_size
                last_modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)

                if file_size < offset:
                    logger.warning(
                        f"{unit.name} is shorter than its cursor ({file_size} < {offset}), "
                        f"not reading"
                    )
                    return ReadResult(
                        start_offset=offset,
                        end_offset=offset,
                        file_size=file_size,
                        last_modified=last_modified
                    )

                f.seek(offset)
                data = f.read()
        except FileNotFoundError:
            logger.debug(f"Journal file no longer exists: {file_path}")
            return ReadResult(start_offset=offset, end_offset=offset, file_missing=True)
        except OSError as e:
            logger.warning(f"Cannot read {unit.name}, will retry: {e}")
            return ReadResult(start_offset=offset, end_offset=offset, error=str(e))

        last_break = data.rfind(LINE_TERMINATOR)
        if last_break < 0:
            return ReadResult(
                start_offset=offset,
                end_offset=offset,
                file_size=file_size,
                last_modified=last_modified
            )

        complete = data[:last_break + 1]
        if offset == 0 and complete.startswith(UTF8_BOM):
            complete = complete[len(UTF8_BOM):]

        result = ReadResult(
            start_offset=offset,
            end_offset=offset + last_break + 1,
            file_size=file_size,
            last_modified=last_modified
        )

        for line_no, raw_line in enumerate(complete.split(LINE_TERMINATOR)[:-1], start=1):
            line = raw_line.rstrip(b"\r")
            if not line.strip():
                continue

            result.lines_read += 1
            entry = self._decode_line(line, unit, line_no)
            if entry is None:
                result.lines_skipped += 1
            else:
                result.entries.append(entry)

        logger.debug(
            f"Read {len(result.entries)} entries from {unit.name} "
            f"({result.start_offset} -> {result.end_offset})"
        )
        return result

    def _decode_line(self, line: bytes, unit: TrackedUnit, line_no: int) -> Optional[CandidateEntry]:
        try:
            event = parse_event_text(line.decode('utf-8'), self.decoder)
        except UnicodeDecodeError as e:
            logger.warning(f"Skipping undecodable line {line_no} after cursor in {unit.name}: {e}")
            return None
        except EventDecodeError as e:
            logger.warning(f"Skipping bad line {line_no} after cursor in {unit.name}: {e}")
            return None
        return CandidateEntry.from_event(event, unit)
