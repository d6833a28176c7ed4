"""Domain models for tracked activities."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional


UNSAVED_ID = -1


def as_local_naive(value: datetime) -> datetime:
    """Convert an offset-aware timestamp to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def duration_minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes between two timestamps, truncated toward zero."""
    return int((end - start).total_seconds() / 60)


@dataclass(slots=True)
class Activity:
    """A named interval the user is or was engaged in.

    ``end_time`` and ``duration_minutes`` are either both set (a completed
    activity) or both ``None`` (the activity is still running).
    """

    id: int
    title: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.end_time is None) != (self.duration_minutes is None):
            raise ValueError(
                "end_time and duration_minutes must both be set or both be None"
            )

    @classmethod
    def in_progress(cls, title: str, start_time: datetime) -> "Activity":
        return cls(id=UNSAVED_ID, title=title, start_time=start_time)

    @classmethod
    def template(cls, now: datetime) -> "Activity":
        """Blank record used to pre-fill an "add entry" form."""
        return cls(
            id=UNSAVED_ID,
            title="",
            start_time=now,
            end_time=now,
            duration_minutes=0,
        )

    @property
    def is_running(self) -> bool:
        return self.end_time is None

    @property
    def is_persisted(self) -> bool:
        return self.id != UNSAVED_ID

    def elapsed(self, now: datetime) -> timedelta:
        end = self.end_time if self.end_time is not None else now
        return end - self.start_time

    def ended(self, end_time: datetime) -> "Activity":
        return replace(
            self,
            end_time=end_time,
            duration_minutes=duration_minutes_between(self.start_time, end_time),
        )
