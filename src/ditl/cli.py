"""Command-line interface for Day in the Life."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from .config import TrackerSettings
from .db import ActivityNotFoundError, ActivityStore
from .paths import get_db_path
from .server_runner import run_server
from .stats import StatsPrinter, format_elapsed, format_minutes
from .theme import AppTheme, ThemePreference, parse_theme
from .timeline import DayTracker, InvalidActivityError

app = typer.Typer(help="Track what you spend your day on.")

logger = logging.getLogger(__name__)

DB_OPTION_HELP = "Location of the activity SQLite database."


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _store(db_path: Optional[Path]) -> ActivityStore:
    return ActivityStore(db_path or get_db_path())


def _parse_time(value: str, reference: datetime) -> datetime:
    """Accept ``HH:MM`` (on the reference day) or ``YYYY-MM-DD HH:MM``."""
    for fmt in ("%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        return reference.replace(
            hour=parsed.hour, minute=parsed.minute, second=parsed.second, microsecond=0
        )
    raise typer.BadParameter(f"Unrecognised time {value!r}; use HH:MM or 'YYYY-MM-DD HH:MM'.")


@app.command()
def today(
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=DB_OPTION_HELP),
) -> None:
    """List today's completed activities."""
    tracker = DayTracker(_store(db_path))
    entries = tracker.refresh()
    if not entries:
        typer.echo("Nothing tracked yet today.")
        return
    for activity in entries:
        typer.echo(
            f"[{activity.id:>4}] {activity.start_time:%H:%M}-{activity.end_time:%H:%M}  "
            f"{activity.title:<30} {format_minutes(activity.duration_minutes or 0)}"
        )


@app.command()
def add(
    title: str = typer.Argument(..., help="Activity title."),
    start: str = typer.Option(..., "--start", help="Start time (HH:MM or 'YYYY-MM-DD HH:MM')."),
    end: str = typer.Option(..., "--end", help="End time (HH:MM or 'YYYY-MM-DD HH:MM')."),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=DB_OPTION_HELP),
) -> None:
    """Record a completed activity by hand."""
    store = _store(db_path)
    now = store.clock()
    tracker = DayTracker(store)
    try:
        stored = tracker.add_entry(title, _parse_time(start, now), _parse_time(end, now))
    except InvalidActivityError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(f"Added #{stored.id} {stored.title} ({format_minutes(stored.duration_minutes or 0)}).")


@app.command()
def edit(
    activity_id: int = typer.Argument(..., help="Id of the activity to change."),
    title: Optional[str] = typer.Option(None, "--title", help="New title."),
    start: Optional[str] = typer.Option(None, "--start", help="New start time."),
    end: Optional[str] = typer.Option(None, "--end", help="New end time."),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=DB_OPTION_HELP),
) -> None:
    """Change the title or times of a recorded activity."""
    store = _store(db_path)
    tracker = DayTracker(store)
    try:
        existing = store.fetch_activity(activity_id)
    except ActivityNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    new_start = _parse_time(start, existing.start_time) if start else existing.start_time
    new_end = _parse_time(end, existing.start_time) if end else existing.end_time
    try:
        stored = tracker.edit_entry(
            activity_id, title or existing.title, new_start, new_end or new_start
        )
    except InvalidActivityError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(f"Updated #{stored.id} {stored.title} ({format_minutes(stored.duration_minutes or 0)}).")


@app.command()
def delete(
    activity_id: int = typer.Argument(..., help="Id of the activity to delete."),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=DB_OPTION_HELP),
) -> None:
    """Delete a recorded activity."""
    tracker = DayTracker(_store(db_path))
    try:
        tracker.delete_entry(activity_id)
    except ActivityNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Deleted #{activity_id}.")


@app.command()
def stats(
    date: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date (YYYY-MM-DD) to summarize. Defaults to today.",
    ),
    limit: int = typer.Option(5, "--limit", min=1, help="How many activities to rank."),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=DB_OPTION_HELP),
) -> None:
    """Print the day's total and its most time-consuming activities."""
    try:
        target = datetime.strptime(date, "%Y-%m-%d") if date else None
    except ValueError as exc:
        raise typer.BadParameter("Use YYYY-MM-DD.", param_hint="--date") from exc
    StatsPrinter(_store(db_path), limit=limit).print_daily_summary(target)


@app.command("quick-starts")
def quick_starts(
    defaults: Optional[List[str]] = typer.Option(
        None, "--default", help="Override the default suggestions (repeatable)."
    ),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=DB_OPTION_HELP),
) -> None:
    """Show the four suggested activities."""
    settings = TrackerSettings.from_options(quick_starts=defaults)
    tracker = DayTracker(_store(db_path), settings)
    for index, title in enumerate(tracker.quick_starts(), start=1):
        typer.echo(f"{index}. {title}")


@app.command()
def theme(
    value: Optional[str] = typer.Argument(None, help="light, dark or toggle."),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=DB_OPTION_HELP),
) -> None:
    """Show or change the theme preference."""
    preference = ThemePreference(_store(db_path))
    if value is None:
        selected = preference.get()
    elif value.lower() == "toggle":
        selected = preference.toggle()
    elif value.lower() in {item.value for item in AppTheme}:
        selected = preference.set(parse_theme(value))
    else:
        raise typer.BadParameter("Choose light, dark or toggle.", param_hint="VALUE")
    typer.echo(f"Theme: {selected.value}")


@app.command()
def track(
    title: Optional[str] = typer.Argument(
        None, help="Activity to start. Omit to pick from the quick starts."
    ),
    max_seconds: Optional[float] = typer.Option(
        None, "--max-seconds", min=0.0, help="Stop automatically after this many seconds."
    ),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=DB_OPTION_HELP),
) -> None:
    """Run one activity in the foreground until Ctrl+C, then save it."""
    settings = TrackerSettings()
    tracker = DayTracker(_store(db_path), settings)
    if title is None:
        options = tracker.quick_starts()
        for index, option in enumerate(options, start=1):
            typer.echo(f"{index}. {option}")
        choice = typer.prompt("Pick a quick start", type=int)
        if not 1 <= choice <= len(options):
            raise typer.BadParameter(f"Choose a number between 1 and {len(options)}.")
        title = options[choice - 1]

    try:
        current = tracker.start_activity(title)
    except InvalidActivityError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(f"Tracking {current.title} since {current.start_time:%H:%M}. Press Ctrl+C to end.")

    stop_event = threading.Event()
    interval = settings.tick_interval.total_seconds()
    try:
        while not stop_event.is_set():
            elapsed = tracker.elapsed()
            if max_seconds is not None and elapsed.total_seconds() >= max_seconds:
                break
            typer.echo(f"\r{format_elapsed(elapsed)} elapsed", nl=False)
            stop_event.wait(interval)
    except KeyboardInterrupt:
        logger.debug("Tracking interrupted by user.")
    finally:
        stored = tracker.end_activity()
    typer.echo("")
    typer.echo(f"Saved #{stored.id} {stored.title} ({format_minutes(stored.duration_minutes or 0)}).")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API server."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the API server."
    ),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=DB_OPTION_HELP),
    top_limit: int = typer.Option(
        5, "--top-limit", min=1, help="How many activities the stats endpoint ranks."
    ),
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the interactive API docs in your default browser.",
    ),
) -> None:
    """Serve the tracker API; the running activity lives as long as the server."""
    run_server(
        host=host,
        port=port,
        db_path=db_path or get_db_path(),
        settings=TrackerSettings.from_options(top_limit=top_limit),
        open_browser=open_browser,
    )
