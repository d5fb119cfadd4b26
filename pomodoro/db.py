"""SQLite session history. All public functions return Pydantic models."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Optional

from pomodoro.config import get_db_path as _config_get_db_path
from pomodoro.models import SessionRecord, SessionStatistics, SessionType

log = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS sessions (
    id               TEXT    PRIMARY KEY,
    start_time       TEXT    NOT NULL,
    end_time         TEXT    NOT NULL,
    kind             TEXT    NOT NULL,
    completed        INTEGER NOT NULL DEFAULT 1,
    duration_seconds REAL    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_sessions_start ON sessions (start_time);
"""


def _get_db_path() -> Path:
    """Return the database file path from config (or default)."""
    return _config_get_db_path()


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Open a connection and ensure the schema exists."""
    path = db_path or _get_db_path()
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.executescript(_SCHEMA)
    return conn


def _to_db_time(moment: datetime) -> str:
    """UTC ISO text. Naive datetimes are taken as local time."""
    return moment.astimezone(timezone.utc).isoformat()


def _from_db_time(text: str) -> datetime:
    return datetime.fromisoformat(text).astimezone(timezone.utc)


def _row_to_session(row: sqlite3.Row) -> SessionRecord:
    """Convert a database row to a SessionRecord model."""
    return SessionRecord(
        id=row["id"],
        start_time=_from_db_time(row["start_time"]),
        end_time=_from_db_time(row["end_time"]),
        kind=SessionType(row["kind"]),
        completed=bool(row["completed"]),
    )


def save_session(conn: sqlite3.Connection, record: SessionRecord) -> SessionRecord:
    """Insert a finished session and return it as stored."""
    conn.execute(
        "INSERT INTO sessions (id, start_time, end_time, kind, completed, duration_seconds) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (
            record.id,
            _to_db_time(record.start_time),
            _to_db_time(record.end_time),
            record.kind.value,
            int(record.completed),
            record.duration_seconds,
        ),
    )
    conn.commit()
    row = conn.execute("SELECT * FROM sessions WHERE id = ?", (record.id,)).fetchone()
    return _row_to_session(row)


def fetch_sessions(
    conn: sqlite3.Connection, start: datetime, end: datetime
) -> list[SessionRecord]:
    """Sessions that started within [start, end], most recent first."""
    rows = conn.execute(
        "SELECT * FROM sessions WHERE start_time >= ? AND start_time <= ? "
        "ORDER BY start_time DESC",
        (_to_db_time(start), _to_db_time(end)),
    ).fetchall()
    return [_row_to_session(r) for r in rows]


def fetch_all_sessions(
    conn: sqlite3.Connection, limit: Optional[int] = None
) -> list[SessionRecord]:
    """All sessions, most recent first."""
    query = "SELECT * FROM sessions ORDER BY start_time DESC"
    params: list[int] = []
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)
    rows = conn.execute(query, params).fetchall()
    return [_row_to_session(r) for r in rows]


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    """Local midnight to local midnight, as aware datetimes."""
    start = datetime.combine(day, time.min).astimezone()
    end = datetime.combine(day + timedelta(days=1), time.min).astimezone()
    return start, end


def _completed_work(sessions: list[SessionRecord]) -> list[SessionRecord]:
    return [s for s in sessions if s.kind is SessionType.WORK and s.completed]


def get_total_focus_time(conn: sqlite3.Connection, day: date) -> float:
    """Seconds spent in completed work sessions started on ``day``."""
    sessions = fetch_sessions(conn, *_day_bounds(day))
    return sum(s.duration_seconds for s in _completed_work(sessions))


def get_session_count(conn: sqlite3.Connection, day: date) -> int:
    """Number of completed work sessions started on ``day``."""
    sessions = fetch_sessions(conn, *_day_bounds(day))
    return len(_completed_work(sessions))


def get_statistics(
    conn: sqlite3.Connection, start: datetime, end: datetime
) -> SessionStatistics:
    """Aggregate the sessions that started within [start, end]."""
    sessions = fetch_sessions(conn, start, end)
    completed = [s for s in sessions if s.completed]
    work = [s for s in completed if s.kind is SessionType.WORK]
    breaks = [s for s in completed if s.kind is SessionType.BREAK]

    total_focus = sum(s.duration_seconds for s in work)
    total_break = sum(s.duration_seconds for s in breaks)
    average = total_focus / len(work) if work else 0.0

    return SessionStatistics(
        total_sessions=len(sessions),
        completed_sessions=len(completed),
        total_focus_seconds=total_focus,
        total_break_seconds=total_break,
        average_session_seconds=average,
    )


class SessionRepository:
    """Session recorder backed by an open connection.

    Write failures are logged, never raised: losing a history row must not
    disturb the running timer.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def save(self, record: SessionRecord) -> None:
        try:
            save_session(self.conn, record)
        except sqlite3.Error as exc:
            log.error("Failed to save session: %s", exc)
            return
        log.info(
            "Session saved: %s, duration: %.0fs", record.kind.value, record.duration_seconds
        )
