"""
CLI commands for journal-monitor.

Provides the `journal-monitor` command-line interface for historical
import, live tailing and status reporting.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, BarColumn, TextColumn

from journal_monitor import __version__
from journal_monitor.config.loader import ConfigurationLoader
from journal_monitor.models.config import MonitorSettings
from journal_monitor.models.entries import CandidateEntry, UnitKind
from journal_monitor.models.errors import JournalMonitorError
from journal_monitor.storage.sqlite import SQLiteJournalStore
from journal_monitor.sync.backfill import PROGRESS_DONE
from journal_monitor.sync.monitor import JournalMonitor

console = Console()


def _configure_logging(settings: MonitorSettings) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    log_file = settings.get_log_file()
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def _load_settings(ctx: click.Context) -> MonitorSettings:
    options = ctx.obj or {}
    loader = ConfigurationLoader(options.get("config_dir"))
    settings = loader.load_settings(options.get("config_file"))

    overrides = {}
    if options.get("journal_dir"):
        overrides["journal_dir"] = Path(options["journal_dir"])
    if options.get("database"):
        overrides["database_path"] = Path(options["database"])
    if overrides:
        settings = settings.model_copy(update=overrides)

    _configure_logging(settings)
    return settings


def _build_monitor(settings: MonitorSettings) -> JournalMonitor:
    store = SQLiteJournalStore(settings.database_path)
    return JournalMonitor(settings.journal_dir, store, config=settings.scheduler_config())


def _print_entries(entries: List[CandidateEntry]) -> None:
    for entry in entries:
        console.print(
            f"[green]{entry.timestamp.isoformat()}[/green] "
            f"[bold]{entry.event_type}[/bold] [dim]{entry.unit_name}[/dim]"
        )


@click.group()
@click.version_option(version=__version__, prog_name="journal-monitor")
@click.option('--config-dir', type=click.Path(file_okay=False), help='Configuration directory')
@click.option('--config-file', type=click.Path(dir_okay=False), help='Explicit JSON config file')
@click.option('--journal-dir', type=click.Path(file_okay=False), help='Journal directory to read')
@click.option('--database', type=click.Path(dir_okay=False), help='SQLite database path')
@click.pass_context
def main(
    ctx: click.Context,
    config_dir: Optional[str],
    config_file: Optional[str],
    journal_dir: Optional[str],
    database: Optional[str]
):
    """
    Journal Monitor CLI.

    Import and live-tail line-delimited JSON journals into a local database.
    """
    ctx.obj = {
        "config_dir": config_dir,
        "config_file": config_file,
        "journal_dir": journal_dir,
        "database": database
    }


@main.command()
@click.option('--force-reload', is_flag=True, help='Re-read every journal from the start')
@click.pass_context
def backfill(ctx: click.Context, force_reload: bool):
    """Import all journals in the journal directory."""
    settings = _load_settings(ctx)
    monitor = _build_monitor(settings)

    try:
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            console=console
        ) as progress:
            task = progress.add_task("Importing journals", total=100)

            def on_progress(percent: int, name: str) -> None:
                if percent == PROGRESS_DONE:
                    progress.update(task, completed=100, description="Done")
                else:
                    progress.update(task, completed=percent, description=f"Importing {name}")

            result = monitor.run_backfill(progress_cb=on_progress, force_reload=force_reload)
    except JournalMonitorError as e:
        console.print(f"[red]❌ Backfill failed: {e}[/red]")
        sys.exit(1)
    finally:
        monitor.store.close()

    console.print(
        f"[green]✅ Scanned {result.files_scanned} of {result.files_seen} journals, "
        f"added {result.entries_added} entries[/green]"
    )


@main.command()
@click.option('--backfill/--no-backfill', 'do_backfill', default=True, help='Import history before tailing')
@click.pass_context
def watch(ctx: click.Context, do_backfill: bool):
    """Tail the journal directory until interrupted."""
    settings = _load_settings(ctx)
    monitor = _build_monitor(settings)

    try:
        if do_backfill:
            result = monitor.run_backfill()
            console.print(f"[blue]Imported {result.entries_added} entries from history[/blue]")

        monitor.start_watching()
        console.print(f"[blue]👀 Watching {settings.journal_dir} (Ctrl-C to stop)[/blue]")
        asyncio.run(monitor.run(settings.tick_interval_s, on_entries=_print_entries))
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopping...[/yellow]")
    except JournalMonitorError as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)
    finally:
        monitor.stop_watching()
        monitor.store.close()


@main.command()
@click.pass_context
def status(ctx: click.Context):
    """Show tracked journals and their entry counts."""
    settings = _load_settings(ctx)
    store = SQLiteJournalStore(settings.database_path)

    try:
        table = Table(title="Tracked Journals")
        table.add_column("Journal", style="cyan")
        table.add_column("Cursor", justify="right")
        table.add_column("Entries", justify="right")
        table.add_column("Last Modified")

        units = store.list_units(UnitKind.JOURNAL)
        for unit in units:
            table.add_row(
                unit.name,
                str(unit.cursor),
                str(store.count_entries(unit.id)),
                unit.last_modified.isoformat() if unit.last_modified else "-"
            )

        console.print(table)
        console.print(f"{len(units)} journals, {store.count_entries()} entries in {settings.database_path}")
    finally:
        store.close()


if __name__ == "__main__":
    main()
