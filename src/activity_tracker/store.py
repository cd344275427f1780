"""Session store contract and its local backends."""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from .db import fetch_sessions_between, open_database, upsert_session
from .errors import StoreReadFailed, StoreWriteFailed
from .models import Session, TimeRange

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("sqlite", "json", "memory")


class SessionStore(Protocol):
    """Durable, idempotent log of closed sessions keyed by id."""

    def append(self, session: Session) -> None: ...

    def query(self, time_range: TimeRange, now: Optional[datetime] = None) -> list[Session]: ...


def _require_closed(session: Session) -> None:
    if session.is_open:
        raise ValueError(f"Session {session.id} is still open")


def _select(
    sessions: list[Session], time_range: TimeRange, now: Optional[datetime]
) -> list[Session]:
    now = now or datetime.now()
    matching = [s for s in sessions if time_range.intersects(s, now)]
    return sorted(matching, key=lambda s: (s.start_time, s.id))


class MemorySessionStore:
    """Keeps sessions in a dict; used for tests and ephemeral runs."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def append(self, session: Session) -> None:
        _require_closed(session)
        with self._lock:
            self._sessions[session.id] = session

    def query(self, time_range: TimeRange, now: Optional[datetime] = None) -> list[Session]:
        with self._lock:
            sessions = list(self._sessions.values())
        return _select(sessions, time_range, now)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class JsonFileSessionStore:
    """Ordered JSON log of session records rewritten atomically on append."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def append(self, session: Session) -> None:
        _require_closed(session)
        with self._lock:
            try:
                records = self._load()
            except StoreReadFailed as exc:
                raise StoreWriteFailed(session.id, exc.reason) from exc
            record = session.to_record()
            for index, existing in enumerate(records):
                if existing.get("id") == session.id:
                    records[index] = record
                    break
            else:
                records.append(record)
            try:
                self._write(records)
            except OSError as exc:
                raise StoreWriteFailed(session.id, exc) from exc

    def query(self, time_range: TimeRange, now: Optional[datetime] = None) -> list[Session]:
        with self._lock:
            records = self._load()
        sessions: list[Session] = []
        for record in records:
            try:
                sessions.append(Session.from_record(record))
            except (AttributeError, KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed session record: %r", record)
        return _select(sessions, time_range, now)

    def _load(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, ValueError) as exc:
            raise StoreReadFailed(exc) from exc
        if not isinstance(data, list):
            raise StoreReadFailed(f"{self.path} does not contain a session list")
        if not all(isinstance(record, dict) for record in data):
            raise StoreReadFailed(f"{self.path} contains entries that are not session records")
        return data

    def _write(self, records: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(records, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)


class SqliteSessionStore:
    """Stores sessions in the local SQLite database."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self._conn = open_database(self.db_path, check_same_thread=False)

    def append(self, session: Session) -> None:
        _require_closed(session)
        with self._lock:
            try:
                upsert_session(self._conn, session)
            except sqlite3.Error as exc:
                raise StoreWriteFailed(session.id, exc) from exc

    def query(self, time_range: TimeRange, now: Optional[datetime] = None) -> list[Session]:
        with self._lock:
            try:
                sessions = fetch_sessions_between(self._conn, time_range.start, time_range.end)
            except sqlite3.Error as exc:
                raise StoreReadFailed(exc, time_range) from exc
        return _select(sessions, time_range, now)

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def open_store(backend: str, path: Optional[Path] = None) -> SessionStore:
    """Build the configured store backend."""
    if backend == "memory":
        return MemorySessionStore()
    if path is None:
        raise ValueError(f"The {backend!r} store needs a path")
    if backend == "sqlite":
        return SqliteSessionStore(path)
    if backend == "json":
        return JsonFileSessionStore(path)
    raise ValueError(f"Unknown store backend {backend!r}; expected one of {STORE_BACKENDS}")
