"""Journal file discovery."""

import fnmatch
import logging
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


def matches_journal_pattern(file_name: str, pattern: str) -> bool:
    """Case-insensitive match of a bare filename against the journal glob"""
    return fnmatch.fnmatch(file_name.lower(), pattern.lower())


def find_journal_files(root: Path, pattern: str, recursive: bool = True) -> List[Path]:
    """
    List journal files under a directory.

    Args:
        root: Directory to enumerate
        pattern: Filename glob, matched case-insensitively
        recursive: Whether to descend into subdirectories

    Returns:
        Matching files, unsorted
    """
    root = Path(root)
    candidates = root.rglob('*') if recursive else root.iterdir()

    files = []
    for file_path in candidates:
        if matches_journal_pattern(file_path.name, pattern) and file_path.is_file():
            files.append(file_path)
    return files


def sort_by_modified(files: List[Path]) -> List[Path]:
    """Order files by last-modified time, oldest first; vanished files are dropped"""
    stamped = []
    for file_path in files:
        try:
            stamped.append((file_path.stat().st_mtime, file_path.name, file_path))
        except FileNotFoundError:
            logger.debug(f"File vanished during discovery: {file_path}")
    stamped.sort(key=lambda item: (item[0], item[1]))
    return [item[2] for item in stamped]
