"""
Unit tests for CLI functionality.

Tests the journal-monitor command-line interface commands: backfill, watch, status.
"""

import logging
import pytest
from unittest.mock import patch
from click.testing import CliRunner

from journal_monitor.cli import main
from journal_monitor.storage.sqlite import SQLiteJournalStore


@pytest.fixture(autouse=True)
def _restore_logging():
    """The CLI reconfigures the root logger; put it back for later tests"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def interrupt(coro):
    """Stand-in for asyncio.run that simulates Ctrl-C"""
    coro.close()
    raise KeyboardInterrupt


class TestBackfillCommand:
    """Test the journal-monitor backfill command"""

    def setup_method(self):
        self.runner = CliRunner()

    def args(self, tmp_path, journal_dir, *extra):
        return [
            '--config-dir', str(tmp_path / "config"),
            '--journal-dir', str(journal_dir),
            '--database', str(tmp_path / "journal.db"),
            *extra
        ]

    def test_backfill_imports_history(self, tmp_path, journal_dir, line, append_to):
        append_to(journal_dir / "journal.01.log", line("2024-05-01T10:00:00Z", "Fileheader"))
        append_to(journal_dir / "journal.01.log", line("2024-05-01T10:00:01Z", "LoadGame"))

        result = self.runner.invoke(main, self.args(tmp_path, journal_dir, 'backfill'))

        assert result.exit_code == 0, result.output
        assert "added 2 entries" in result.output

        store = SQLiteJournalStore(tmp_path / "journal.db")
        try:
            assert store.count_entries() == 2
        finally:
            store.close()

    def test_backfill_twice_adds_nothing(self, tmp_path, journal_dir, line, append_to):
        append_to(journal_dir / "journal.01.log", line("2024-05-01T10:00:00Z", "Fileheader"))
        self.runner.invoke(main, self.args(tmp_path, journal_dir, 'backfill'))

        result = self.runner.invoke(main, self.args(tmp_path, journal_dir, 'backfill', '--force-reload'))

        assert result.exit_code == 0, result.output
        assert "added 0 entries" in result.output

    def test_status_lists_journals(self, tmp_path, journal_dir, line, append_to):
        append_to(journal_dir / "journal.01.log", line("2024-05-01T10:00:00Z", "Fileheader"))
        self.runner.invoke(main, self.args(tmp_path, journal_dir, 'backfill'))

        result = self.runner.invoke(main, self.args(tmp_path, journal_dir, 'status'))

        assert result.exit_code == 0, result.output
        assert "journal.01.log" in result.output
        assert "1 journals, 1 entries" in result.output


class TestWatchCommand:
    """Test the journal-monitor watch command"""

    def setup_method(self):
        self.runner = CliRunner()

    def test_watch_backfills_then_stops_on_interrupt(self, tmp_path, journal_dir, line, append_to):
        append_to(journal_dir / "journal.01.log", line("2024-05-01T10:00:00Z", "Fileheader"))

        with patch('journal_monitor.cli.asyncio.run', side_effect=interrupt) as mock_run:
            result = self.runner.invoke(main, [
                '--config-dir', str(tmp_path / "config"),
                '--journal-dir', str(journal_dir),
                '--database', str(tmp_path / "journal.db"),
                'watch'
            ])

        assert result.exit_code == 0, result.output
        assert "Imported 1 entries from history" in result.output
        assert "Stopping" in result.output
        mock_run.assert_called_once()

    def test_watch_missing_directory_fails(self, tmp_path):
        result = self.runner.invoke(main, [
            '--config-dir', str(tmp_path / "config"),
            '--journal-dir', str(tmp_path / "missing"),
            '--database', str(tmp_path / "journal.db"),
            'watch', '--no-backfill'
        ])

        assert result.exit_code == 1
        assert "does not exist" in result.output
