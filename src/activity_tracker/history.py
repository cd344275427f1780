"""Read session history from a store, including the session still open."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from .errors import StoreReadFailed
from .models import Session, TimeRange
from .store import SessionStore
from .tracker import SessionTracker

logger = logging.getLogger(__name__)


def load_sessions(
    store: SessionStore,
    time_range: TimeRange,
    *,
    tracker: Optional[SessionTracker] = None,
    now: Optional[datetime] = None,
) -> list[Session]:
    """Return stored sessions in range plus any unsaved ones the tracker holds.

    Sessions waiting for a retried write and the open session are merged in
    so a read right after a close (or a failed write) still sees them.
    """
    now = now or datetime.now()
    sessions = {session.id: session for session in store.query(time_range, now)}
    if tracker is not None:
        for held in tracker.pending:
            if held.id not in sessions and time_range.intersects(held, now):
                sessions[held.id] = held
        current = tracker.open_session
        if current is not None and time_range.intersects(current, now):
            sessions[current.id] = current
    return sorted(sessions.values(), key=lambda s: (s.start_time, s.id))


def safe_load_sessions(
    store: SessionStore,
    time_range: TimeRange,
    *,
    tracker: Optional[SessionTracker] = None,
    now: Optional[datetime] = None,
) -> tuple[list[Session], Optional[StoreReadFailed]]:
    """Like :func:`load_sessions`, but a read failure yields an empty result."""
    try:
        return load_sessions(store, time_range, tracker=tracker, now=now), None
    except StoreReadFailed as exc:
        logger.warning("Session history unavailable: %s", exc)
        return [], exc
