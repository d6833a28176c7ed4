from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from ditl.db import ActivityStore


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 1, 10, 0, 0))


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "ditl.sqlite3"


@pytest.fixture
def store(db_path, clock) -> ActivityStore:
    return ActivityStore(db_path, clock=clock)


def at(hour: int, minute: int = 0, second: int = 0, day: int = 1) -> datetime:
    return datetime(2024, 5, day, hour, minute, second)
