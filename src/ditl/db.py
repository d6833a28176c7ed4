"""SQLite storage for activities and user preferences."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Iterator, Optional

from .models import Activity, as_local_naive


DATETIME_FMT = "%Y-%m-%d %H:%M:%S.%f"

logger = logging.getLogger(__name__)


class ActivityNotFoundError(ValueError):
    """Raised when an activity id does not exist in storage."""

    def __init__(self, activity_id: int) -> None:
        super().__init__(f"No activity found for id={activity_id}")
        self.activity_id = activity_id


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS activities (
            id INTEGER PRIMARY KEY,
            title TEXT NOT NULL,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            duration_minutes INTEGER NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_activities_start_time
            ON activities(start_time);

        CREATE TABLE IF NOT EXISTS preferences (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );
        """
    )


def format_timestamp(value: datetime) -> str:
    return as_local_naive(value).strftime(DATETIME_FMT)


def _day_bounds(day: datetime) -> tuple[str, str]:
    start = day.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1)
    return start.strftime(DATETIME_FMT), end.strftime(DATETIME_FMT)


def row_to_activity(row: sqlite3.Row) -> Activity:
    return Activity(
        id=row["id"],
        title=row["title"],
        start_time=datetime.strptime(row["start_time"], DATETIME_FMT),
        end_time=datetime.strptime(row["end_time"], DATETIME_FMT),
        duration_minutes=row["duration_minutes"],
    )


def insert_activity(
    conn: sqlite3.Connection,
    title: str,
    start_time: datetime,
    end_time: datetime,
    duration_minutes: int,
) -> int:
    cur = conn.execute(
        """
        INSERT INTO activities (title, start_time, end_time, duration_minutes)
        VALUES (?, ?, ?, ?)
        """,
        (
            title,
            format_timestamp(start_time),
            format_timestamp(end_time),
            duration_minutes,
        ),
    )
    return int(cur.lastrowid)


def fetch_activity(conn: sqlite3.Connection, activity_id: int) -> Activity:
    row = conn.execute(
        """
        SELECT id, title, start_time, end_time, duration_minutes
        FROM activities
        WHERE id = ?
        """,
        (activity_id,),
    ).fetchone()
    if row is None:
        raise ActivityNotFoundError(activity_id)
    return row_to_activity(row)


def fetch_activities_for_day(
    conn: sqlite3.Connection, day: datetime
) -> list[Activity]:
    """Fetch the completed activities that started on the provided day."""
    start_iso, end_iso = _day_bounds(day)
    rows = conn.execute(
        """
        SELECT id, title, start_time, end_time, duration_minutes
        FROM activities
        WHERE start_time >= ? AND start_time < ?
        ORDER BY start_time, id;
        """,
        (start_iso, end_iso),
    )
    return [row_to_activity(row) for row in rows]


def update_activity(
    conn: sqlite3.Connection,
    activity_id: int,
    *,
    title: str,
    end_time: datetime,
    duration_minutes: int,
    start_time: Optional[datetime] = None,
) -> None:
    """Update a single activity record."""
    fields = ["title = ?", "end_time = ?", "duration_minutes = ?"]
    params: list[object] = [title, format_timestamp(end_time), duration_minutes]
    if start_time is not None:
        fields.append("start_time = ?")
        params.append(format_timestamp(start_time))

    params.append(activity_id)
    cur = conn.execute(
        f"UPDATE activities SET {', '.join(fields)} WHERE id = ?",
        params,
    )
    if cur.rowcount == 0:
        raise ActivityNotFoundError(activity_id)


def delete_activity(conn: sqlite3.Connection, activity_id: int) -> None:
    cur = conn.execute("DELETE FROM activities WHERE id = ?", (activity_id,))
    if cur.rowcount == 0:
        raise ActivityNotFoundError(activity_id)


def fetch_total_minutes_for_day(conn: sqlite3.Connection, day: datetime) -> int:
    start_iso, end_iso = _day_bounds(day)
    row = conn.execute(
        """
        SELECT COALESCE(SUM(duration_minutes), 0) AS minutes
        FROM activities
        WHERE start_time >= ? AND start_time < ?
        """,
        (start_iso, end_iso),
    ).fetchone()
    return int(row["minutes"])


def fetch_title_totals_for_day(
    conn: sqlite3.Connection, day: datetime
) -> list[tuple[Activity, int]]:
    """Return total minutes per title, largest first.

    Each title is represented by its most recently created record of the day.
    """
    start_iso, end_iso = _day_bounds(day)
    rows = conn.execute(
        """
        SELECT
            a.id,
            a.title,
            a.start_time,
            a.end_time,
            a.duration_minutes,
            totals.minutes
        FROM (
            SELECT title, SUM(duration_minutes) AS minutes, MAX(id) AS latest_id
            FROM activities
            WHERE start_time >= ? AND start_time < ?
            GROUP BY title
        ) AS totals
        JOIN activities AS a ON a.id = totals.latest_id
        ORDER BY totals.minutes DESC, a.title;
        """,
        (start_iso, end_iso),
    )
    return [(row_to_activity(row), int(row["minutes"])) for row in rows]


def fetch_top_titles(conn: sqlite3.Connection, limit: int) -> list[str]:
    """Return the most frequently tracked titles across all history."""
    rows = conn.execute(
        """
        SELECT title, COUNT(*) AS uses, MAX(start_time) AS last_used
        FROM activities
        GROUP BY title
        ORDER BY uses DESC, last_used DESC
        LIMIT ?;
        """,
        (limit,),
    )
    return [row["title"] for row in rows]


def get_preference(conn: sqlite3.Connection, key: str) -> Optional[str]:
    row = conn.execute(
        "SELECT value FROM preferences WHERE key = ?", (key,)
    ).fetchone()
    return row["value"] if row is not None else None


def set_preference(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        """
        INSERT INTO preferences (key, value) VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET value = excluded.value
        """,
        (key, value),
    )


class ActivityStore:
    """Persistence gateway bound to a database file and a clock.

    Every call opens a short-lived connection, so a store can be shared
    between threads.
    """

    def __init__(
        self,
        db_path: Path,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.db_path = Path(db_path)
        self.clock = clock

    def _connect(self):
        return database_connection(self.db_path, check_same_thread=False)

    def _day(self, day: Optional[datetime]) -> datetime:
        return day if day is not None else self.clock()

    def fetch_today_activities(self, day: Optional[datetime] = None) -> list[Activity]:
        with self._connect() as conn:
            return fetch_activities_for_day(conn, self._day(day))

    def fetch_activity(self, activity_id: int) -> Activity:
        with self._connect() as conn:
            return fetch_activity(conn, activity_id)

    def create_activity(
        self,
        title: str,
        start_time: datetime,
        end_time: datetime,
        duration_minutes: int,
    ) -> Activity:
        start_time, end_time = as_local_naive(start_time), as_local_naive(end_time)
        with self._connect() as conn:
            activity_id = insert_activity(
                conn, title, start_time, end_time, duration_minutes
            )
        logger.debug("Stored activity %d (%s, %d min).", activity_id, title, duration_minutes)
        return Activity(
            id=activity_id,
            title=title,
            start_time=start_time,
            end_time=end_time,
            duration_minutes=duration_minutes,
        )

    def update_activity(
        self,
        activity_id: int,
        new_title: str,
        new_end: datetime,
        new_duration: int,
        new_start: Optional[datetime] = None,
    ) -> None:
        with self._connect() as conn:
            update_activity(
                conn,
                activity_id,
                title=new_title,
                end_time=new_end,
                duration_minutes=new_duration,
                start_time=new_start,
            )
        logger.debug("Updated activity %d.", activity_id)

    def delete_activity(self, activity_id: int) -> None:
        with self._connect() as conn:
            delete_activity(conn, activity_id)
        logger.debug("Deleted activity %d.", activity_id)

    def total_time_today(self, day: Optional[datetime] = None) -> int:
        with self._connect() as conn:
            return fetch_total_minutes_for_day(conn, self._day(day))

    def most_time_consuming_activities(
        self, day: Optional[datetime] = None
    ) -> list[tuple[Activity, int]]:
        with self._connect() as conn:
            return fetch_title_totals_for_day(conn, self._day(day))

    def top_quick_start_activities(self, limit: int = 4) -> list[str]:
        with self._connect() as conn:
            return fetch_top_titles(conn, limit)

    def get_preference(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            return get_preference(conn, key)

    def set_preference(self, key: str, value: str) -> None:
        with self._connect() as conn:
            set_preference(conn, key, value)
