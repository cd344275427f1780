"""Command-line interface for the activity tracker."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import typer

from .paths import default_store_path, get_export_path, get_log_path
from .store import STORE_BACKENDS, SessionStore, open_store

app = typer.Typer(help="Foreground-app activity tracker.")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )


def _build_store(backend: str, path: Optional[Path]) -> SessionStore:
    if backend not in STORE_BACKENDS:
        raise typer.BadParameter(
            f"expected one of {', '.join(STORE_BACKENDS)}", param_hint="--store"
        )
    return open_store(backend, path or default_store_path(backend))


def _parse_day(value: Optional[str]) -> date:
    if not value:
        return datetime.now().date()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise typer.BadParameter("use YYYY-MM-DD", param_hint="--date") from exc


StoreOption = typer.Option(
    "sqlite",
    "--store",
    help="Session store backend: sqlite, json or memory.",
)
PathOption = typer.Option(
    None,
    "--db",
    path_type=Path,
    help="Location of the session store file.",
)


@app.command()
def track(
    store_backend: str = StoreOption,
    db_path: Optional[Path] = PathOption,
    sample_seconds: float = typer.Option(
        5.0,
        "--interval",
        min=1.0,
        help="Sampling interval in seconds.",
    ),
    retry_seconds: Optional[float] = typer.Option(
        None,
        "--retry-interval",
        min=1.0,
        help="Seconds between retries of failed writes (defaults to 6x sampling interval).",
    ),
    log_file: bool = typer.Option(
        False,
        "--log-file/--no-log-file",
        help="Also write logs to the tracker log file in the data directory.",
    ),
) -> None:
    """Sample the focused application until interrupted."""
    from .config import TrackerSettings
    from .errors import UnsupportedPlatform
    from .focus import default_focus_source
    from .runner import TrackerRunner
    from .tracker import SessionTracker

    if log_file:
        handler = logging.FileHandler(get_log_path(), encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(handler)

    try:
        focus_source = default_focus_source()
    except UnsupportedPlatform as exc:
        typer.echo(f"Cannot track on this platform: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    store = _build_store(store_backend, db_path)
    settings = TrackerSettings.from_intervals(
        sample_seconds=sample_seconds,
        retry_seconds=retry_seconds,
        store_backend=store_backend,
    )
    tracker = SessionTracker(store, focus_source=focus_source)
    runner = TrackerRunner(tracker, settings)
    try:
        runner.run_forever()
    finally:
        runner.close()
    if tracker.pending:
        typer.echo(f"{len(tracker.pending)} session(s) could not be stored.", err=True)
        raise typer.Exit(code=1)


@app.command()
def today(
    date: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date (YYYY-MM-DD) to summarize. Defaults to today.",
    ),
    top: int = typer.Option(8, "--top", min=0, help="Number of apps to list."),
    store_backend: str = StoreOption,
    db_path: Optional[Path] = PathOption,
) -> None:
    """Print per-app totals for a single day."""
    from .reporting import SummaryPrinter

    printer = SummaryPrinter(_build_store(store_backend, db_path))
    printer.print_daily_summary(_parse_day(date), top=top)


@app.command()
def week(
    store_backend: str = StoreOption,
    db_path: Optional[Path] = PathOption,
) -> None:
    """Print daily totals for the last seven days."""
    from .reporting import SummaryPrinter

    printer = SummaryPrinter(_build_store(store_backend, db_path))
    printer.print_week(datetime.now().date())


@app.command()
def export(
    date: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date (YYYY-MM-DD) to export. Defaults to today.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        path_type=Path,
        help="Destination JSON file.",
    ),
    store_backend: str = StoreOption,
    db_path: Optional[Path] = PathOption,
) -> None:
    """Write one day's activity in the interchange format."""
    from .aggregation import by_day
    from .errors import StoreReadFailed
    from .exporter import to_interchange, write_export
    from .history import load_sessions
    from .models import DailyAggregate, TimeRange

    target = _parse_day(date)
    store = _build_store(store_backend, db_path)
    try:
        sessions = load_sessions(store, TimeRange.for_day(target))
    except StoreReadFailed as exc:
        typer.echo(f"Cannot export: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    aggregate = by_day(sessions).get(target, DailyAggregate(day=target))
    path = write_export(to_interchange(aggregate), output or get_export_path())
    typer.echo(f"Exported {len(aggregate.totals)} apps to {path}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the API."
    ),
    store_backend: str = StoreOption,
    db_path: Optional[Path] = PathOption,
    sample_seconds: float = typer.Option(
        5.0,
        "--interval",
        min=1.0,
        help="Sampling interval in seconds.",
    ),
    autostart: bool = typer.Option(
        True,
        "--track/--no-track",
        help="Start sampling as soon as the server is up.",
    ),
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the interactive API docs in your default browser.",
    ),
) -> None:
    """Start the local JSON API with the background tracker."""
    from .config import TrackerSettings
    from .server_runner import run_server

    store = _build_store(store_backend, db_path)
    settings = TrackerSettings.from_intervals(
        sample_seconds=sample_seconds, store_backend=store_backend
    )
    run_server(
        store,
        host=host,
        port=port,
        settings=settings,
        autostart=autostart,
        open_browser=open_browser,
    )
