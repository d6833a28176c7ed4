"""Configuration models and helpers for the activity tracker."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Sequence


DEFAULT_QUICK_STARTS: tuple[str, ...] = ("Homework", "Scroll", "Code", "Eat")


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration shared by the CLI and the web API."""

    default_quick_starts: tuple[str, ...] = DEFAULT_QUICK_STARTS
    quick_start_slots: int = 4
    top_activities_limit: int = 5
    tick_interval: timedelta = timedelta(seconds=1)
    default_theme: str = "light"

    @classmethod
    def from_options(
        cls,
        quick_starts: Optional[Sequence[str]] = None,
        top_limit: Optional[int] = None,
        tick_seconds: Optional[float] = None,
    ) -> "TrackerSettings":
        settings = cls()
        if quick_starts:
            cleaned = tuple(title.strip() for title in quick_starts if title.strip())
            if cleaned:
                settings.default_quick_starts = cleaned
        if top_limit is not None:
            settings.top_activities_limit = max(top_limit, 1)
        if tick_seconds is not None:
            settings.tick_interval = timedelta(seconds=max(tick_seconds, 0.1))
        return settings
