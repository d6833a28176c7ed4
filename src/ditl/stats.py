"""Daily aggregate statistics ("Wrapped") and their console rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from .db import ActivityStore
from .models import Activity


@dataclass(slots=True)
class RankedActivity:
    activity: Activity
    minutes: int


@dataclass(slots=True)
class DailyStats:
    day: datetime
    total_minutes: int
    most_time_consuming: list[RankedActivity] = field(default_factory=list)


def compute_daily_stats(
    store: ActivityStore, day: Optional[datetime] = None, limit: int = 5
) -> DailyStats:
    """Query the store for a day's totals; nothing is cached between calls."""
    target = day if day is not None else store.clock()
    total = store.total_time_today(target)
    ranked = sorted(
        store.most_time_consuming_activities(target),
        key=lambda item: item[1],
        reverse=True,
    )
    return DailyStats(
        day=target,
        total_minutes=total,
        most_time_consuming=[
            RankedActivity(activity=activity, minutes=minutes)
            for activity, minutes in ranked[:limit]
        ],
    )


def format_minutes(minutes: int) -> str:
    hours, mins = divmod(max(minutes, 0), 60)
    if hours:
        return f"{hours}h {mins:02d}m"
    return f"{mins}m"


def format_elapsed(elapsed: timedelta) -> str:
    total_seconds = max(int(elapsed.total_seconds()), 0)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


class StatsPrinter:
    """Render a day's summary in the console."""

    def __init__(self, store: ActivityStore, limit: int = 5) -> None:
        self.store = store
        self.limit = limit

    def print_daily_summary(self, day: Optional[datetime] = None) -> None:
        stats = compute_daily_stats(self.store, day, limit=self.limit)
        print(f"DITL Wrapped for {stats.day.strftime('%Y-%m-%d')}")
        print("-" * 40)
        if not stats.most_time_consuming:
            print("No activity recorded for the selected day.")
            return

        print(f"Total time tracked: {format_minutes(stats.total_minutes)}")
        print()
        print("Most time-consuming activities:")
        for entry in stats.most_time_consuming:
            print(f"  {entry.activity.title[:30]:<30} {format_minutes(entry.minutes)}")
