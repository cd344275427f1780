"""SQLite database layer for focus sessions."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from .models import Session


DATETIME_FMT = "%Y-%m-%d %H:%M:%S.%f"


def to_column(value: datetime) -> str:
    """Format a timestamp as naive local time; aware values are converted first."""
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.strftime(DATETIME_FMT)


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


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS sessions (
            id TEXT PRIMARY KEY,
            app_identity TEXT NOT NULL,
            display_name TEXT,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_sessions_start_time
            ON sessions(start_time);
        """
    )


def upsert_session(conn: sqlite3.Connection, session: Session) -> None:
    """Insert a closed session; re-inserting the same id rewrites the same row."""
    if session.end_time is None:
        raise ValueError(f"Session {session.id} is still open")
    conn.execute(
        """
        INSERT INTO sessions (
            id,
            app_identity,
            display_name,
            start_time,
            end_time
        ) VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            app_identity = excluded.app_identity,
            display_name = excluded.display_name,
            start_time = excluded.start_time,
            end_time = excluded.end_time
        """,
        (
            session.id,
            session.app_identity,
            session.display_name,
            to_column(session.start_time),
            to_column(session.end_time),
        ),
    )


def fetch_sessions_between(
    conn: sqlite3.Connection, start: datetime, end: Optional[datetime]
) -> list[Session]:
    """Fetch sessions overlapping ``[start, end)``, ordered by start time."""
    params: list[object] = [to_column(start)]
    clause = "(end_time > ? OR end_time = start_time)"
    if end is not None:
        clause += " AND start_time < ?"
        params.append(to_column(end))
    rows = conn.execute(
        f"""
        SELECT id, app_identity, display_name, start_time, end_time
        FROM sessions
        WHERE {clause}
        ORDER BY start_time, id;
        """,
        params,
    )
    return [_row_to_session(row) for row in rows]


def _row_to_session(row: sqlite3.Row) -> Session:
    return Session(
        id=row["id"],
        app_identity=row["app_identity"],
        display_name=row["display_name"],
        start_time=datetime.strptime(row["start_time"], DATETIME_FMT),
        end_time=datetime.strptime(row["end_time"], DATETIME_FMT),
    )
