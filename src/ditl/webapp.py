"""FastAPI application exposing the tracker as a local JSON API."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, field_validator

from . import __version__
from .config import TrackerSettings
from .db import ActivityNotFoundError, ActivityStore
from .models import Activity, as_local_naive
from .paths import get_db_path
from .stats import compute_daily_stats, format_elapsed, format_minutes
from .theme import AppTheme, ThemePreference, palette_for, parse_theme
from .timeline import DayTracker, InvalidActivityError

logger = logging.getLogger(__name__)


class StartPayload(BaseModel):
    title: str

    model_config = ConfigDict(extra="forbid")


class EntryPayload(BaseModel):
    title: str
    start_time: datetime
    end_time: datetime

    model_config = ConfigDict(extra="forbid")

    @field_validator("start_time", "end_time")
    @classmethod
    def _to_local_time(cls, value: datetime) -> datetime:
        return as_local_naive(value)


class ThemePayload(BaseModel):
    theme: Optional[str] = None
    toggle: bool = False

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[TrackerSettings] = None,
    store: Optional[ActivityStore] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_settings = settings or TrackerSettings()
    resolved_store = store or ActivityStore(Path(db_path or get_db_path()))
    tracker = DayTracker(resolved_store, resolved_settings)
    preference = ThemePreference(
        resolved_store, default=parse_theme(resolved_settings.default_theme)
    )
    # Sync handlers run in a thread pool; the in-progress slot is shared.
    lock = threading.Lock()

    app = FastAPI(title="Day in the Life", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.store = resolved_store
    app.state.tracker = tracker

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        tracker.refresh()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        current = tracker.current_activity
        if current is not None:
            logger.warning("Shutting down with %r still running; it was not saved.", current.title)

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        return {
            "state": tracker.state.value,
            "database_path": str(request.app.state.store.db_path),
            "tick_seconds": resolved_settings.tick_interval.total_seconds(),
            "version": __version__,
        }

    @app.get("/api/today")
    def today() -> Dict[str, Any]:
        with lock:
            tracker.refresh()
            return _today_payload(tracker)

    @app.post("/api/current")
    def start_current(payload: StartPayload) -> Dict[str, Any]:
        with lock:
            try:
                started = tracker.start_activity(payload.title)
            except InvalidActivityError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
            return {"started": started is not None, **_today_payload(tracker)}

    @app.post("/api/current/end")
    def end_current() -> Dict[str, Any]:
        with lock:
            stored = tracker.end_activity()
            return {
                "ended": stored is not None,
                "activity": _activity_payload(stored) if stored else None,
                **_today_payload(tracker),
            }

    @app.get("/api/quick-starts")
    def quick_starts() -> Dict[str, Any]:
        with lock:
            return {
                "quick_starts": tracker.quick_starts(),
                "disabled": tracker.current_activity is not None,
            }

    @app.get("/api/activities/template")
    def entry_template() -> Dict[str, Any]:
        return _activity_payload(tracker.new_entry_template())

    @app.post("/api/activities", status_code=201)
    def add_activity(payload: EntryPayload) -> Dict[str, Any]:
        with lock:
            try:
                stored = tracker.add_entry(
                    payload.title, payload.start_time, payload.end_time
                )
            except InvalidActivityError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _activity_payload(stored)

    @app.patch("/api/activities/{activity_id}")
    def edit_activity(activity_id: int, payload: EntryPayload) -> Dict[str, Any]:
        with lock:
            try:
                stored = tracker.edit_entry(
                    activity_id, payload.title, payload.start_time, payload.end_time
                )
            except ActivityNotFoundError as exc:
                raise HTTPException(status_code=404, detail="Activity not found") from exc
            except InvalidActivityError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _activity_payload(stored)

    @app.delete("/api/activities/{activity_id}")
    def delete_activity(activity_id: int) -> Dict[str, Any]:
        with lock:
            try:
                tracker.delete_entry(activity_id)
            except ActivityNotFoundError as exc:
                raise HTTPException(status_code=404, detail="Activity not found") from exc
        return {"deleted": activity_id}

    @app.get("/api/stats")
    def stats(
        date: Optional[str] = Query(
            default=None,
            description="Target date in YYYY-MM-DD format. Defaults to today.",
        ),
    ) -> Dict[str, Any]:
        target = _parse_date(date) if date else None
        daily = compute_daily_stats(
            resolved_store, target, limit=resolved_settings.top_activities_limit
        )
        return {
            "date": daily.day.strftime("%Y-%m-%d"),
            "total_minutes": daily.total_minutes,
            "total_display": format_minutes(daily.total_minutes),
            "most_time_consuming": [
                {
                    "activity": _activity_payload(entry.activity),
                    "minutes": entry.minutes,
                }
                for entry in daily.most_time_consuming
            ],
        }

    @app.get("/api/preferences/theme")
    def get_theme() -> Dict[str, Any]:
        with lock:
            return _theme_payload(preference.get())

    @app.put("/api/preferences/theme")
    def put_theme(payload: ThemePayload) -> Dict[str, Any]:
        if payload.toggle:
            with lock:
                return _theme_payload(preference.toggle())
        if payload.theme is None:
            raise HTTPException(status_code=400, detail="theme or toggle is required")
        try:
            theme = AppTheme(payload.theme.strip().lower())
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="theme must be light or dark") from exc
        with lock:
            return _theme_payload(preference.set(theme))

    @app.get("/api/video")
    def video() -> Dict[str, Any]:
        return {"title": "Video Diary", "available": False, "message": "Coming soon"}

    return app


def _parse_date(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date format") from exc


def _activity_payload(activity: Activity) -> Dict[str, Any]:
    return {
        "id": activity.id,
        "title": activity.title,
        "start_time": activity.start_time.isoformat(),
        "end_time": activity.end_time.isoformat() if activity.end_time else None,
        "duration_minutes": activity.duration_minutes,
        "in_progress": activity.is_running,
    }


def _today_payload(tracker: DayTracker) -> Dict[str, Any]:
    current = tracker.current_activity
    elapsed = tracker.elapsed()
    return {
        "date": tracker.store.clock().strftime("%Y-%m-%d"),
        "state": tracker.state.value,
        "current": (
            {
                **_activity_payload(current),
                "elapsed_seconds": int(elapsed.total_seconds()),
                "elapsed_display": format_elapsed(elapsed),
            }
            if current is not None and elapsed is not None
            else None
        ),
        "timeline": [_activity_payload(item) for item in tracker.display_timeline()],
        "quick_starts": tracker.quick_starts(),
        "quick_starts_disabled": current is not None,
    }


def _theme_payload(theme: AppTheme) -> Dict[str, Any]:
    palette = palette_for(theme)
    return {
        "theme": theme.value,
        "palette": {
            "pink_card": palette.pink_card,
            "pink_primary": palette.pink_primary,
            "lavender_quick": palette.lavender_quick,
            "background": palette.background,
            "foreground": palette.foreground,
        },
    }
