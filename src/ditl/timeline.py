"""Today's timeline and the single in-progress activity."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Sequence

from .config import TrackerSettings
from .db import ActivityStore
from .models import Activity, as_local_naive, duration_minutes_between
from .quickstart import resolve_quick_starts

logger = logging.getLogger(__name__)


class InvalidActivityError(ValueError):
    """Raised for entries with an empty title or an end before their start."""


class TrackerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


def build_display_timeline(
    persisted: Sequence[Activity], current: Optional[Activity]
) -> list[Activity]:
    """Persisted entries in stored order, followed by the running activity."""
    timeline = list(persisted)
    if current is not None:
        timeline.append(current)
    return timeline


def _clean_title(title: str) -> str:
    cleaned = title.strip()
    if not cleaned:
        raise InvalidActivityError("title must not be empty")
    return cleaned


def _checked_duration(start: datetime, end: datetime) -> int:
    if end < start:
        raise InvalidActivityError("end_time must not be before start_time")
    return duration_minutes_between(start, end)


class DayTracker:
    """Owns the in-progress activity slot and today's persisted entries.

    The persisted list is never patched in place: every write is followed by
    a fresh fetch from the store.
    """

    def __init__(
        self, store: ActivityStore, settings: Optional[TrackerSettings] = None
    ) -> None:
        self.store = store
        self.settings = settings or TrackerSettings()
        self._current: Optional[Activity] = None
        self._timeline: list[Activity] = []

    @property
    def current_activity(self) -> Optional[Activity]:
        return self._current

    @property
    def state(self) -> TrackerState:
        return TrackerState.RUNNING if self._current is not None else TrackerState.IDLE

    @property
    def timeline(self) -> list[Activity]:
        return list(self._timeline)

    def refresh(self) -> list[Activity]:
        self._timeline = self.store.fetch_today_activities()
        return self.timeline

    def display_timeline(self) -> list[Activity]:
        return build_display_timeline(self._timeline, self._current)

    def elapsed(self) -> Optional[timedelta]:
        if self._current is None:
            return None
        return self._current.elapsed(self.store.clock())

    def start_activity(self, title: str) -> Optional[Activity]:
        """Begin tracking ``title``; returns ``None`` if something is running."""
        if self._current is not None:
            logger.info(
                "Ignoring start of %r; %r is already running.",
                title,
                self._current.title,
            )
            return None
        cleaned = _clean_title(title)
        self._current = Activity.in_progress(cleaned, self.store.clock())
        logger.info("Started %r.", cleaned)
        return self._current

    def end_activity(self) -> Optional[Activity]:
        """Persist the running activity; returns ``None`` when idle."""
        current = self._current
        if current is None:
            logger.info("No activity running; nothing to end.")
            return None
        end = self.store.clock()
        if end < current.start_time:
            end = current.start_time
        completed = current.ended(end)
        stored = self.store.create_activity(
            completed.title,
            completed.start_time,
            end,
            completed.duration_minutes,
        )
        self._current = None
        self.refresh()
        logger.info("Ended %r after %d min.", stored.title, stored.duration_minutes)
        return stored

    def quick_starts(self) -> list[str]:
        top = self.store.top_quick_start_activities(self.settings.quick_start_slots)
        return resolve_quick_starts(
            top,
            self.settings.default_quick_starts,
            self.settings.quick_start_slots,
        )

    def new_entry_template(self) -> Activity:
        return Activity.template(self.store.clock())

    def add_entry(self, title: str, start: datetime, end: datetime) -> Activity:
        cleaned = _clean_title(title)
        start, end = as_local_naive(start), as_local_naive(end)
        duration = _checked_duration(start, end)
        stored = self.store.create_activity(cleaned, start, end, duration)
        self.refresh()
        return stored

    def edit_entry(
        self, activity_id: int, title: str, start: datetime, end: datetime
    ) -> Activity:
        cleaned = _clean_title(title)
        start, end = as_local_naive(start), as_local_naive(end)
        duration = _checked_duration(start, end)
        self.store.update_activity(
            activity_id,
            new_title=cleaned,
            new_end=end,
            new_duration=duration,
            new_start=start,
        )
        self.refresh()
        return self.store.fetch_activity(activity_id)

    def delete_entry(self, activity_id: int) -> None:
        self.store.delete_activity(activity_id)
        self.refresh()
