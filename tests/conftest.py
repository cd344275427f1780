from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

import pytest

from activity_tracker.errors import StoreWriteFailed
from activity_tracker.models import FocusObservation, Session
from activity_tracker.store import MemorySessionStore

BASE = datetime(2024, 3, 4, 9, 0, 0)


def at(seconds: float) -> datetime:
    return BASE + timedelta(seconds=seconds)


class FakeClock:
    def __init__(self, start: datetime = BASE) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class ScriptedFocusSource:
    """Returns queued observations; ``None`` entries mean nothing is focused."""

    def __init__(self, *observations: Optional[FocusObservation]) -> None:
        self.observations = list(observations)

    def current(self) -> Optional[FocusObservation]:
        if not self.observations:
            return None
        return self.observations.pop(0)


class FlakyStore(MemorySessionStore):
    def __init__(self) -> None:
        super().__init__()
        self.failing = False
        self.attempts: list[str] = []

    def append(self, session: Session) -> None:
        self.attempts.append(session.id)
        if self.failing:
            raise StoreWriteFailed(session.id, "store offline")
        super().append(session)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def flaky_store() -> FlakyStore:
    return FlakyStore()


def closed(identity: str, start: datetime, end: datetime, name: Optional[str] = None) -> Session:
    return Session(app_identity=identity, display_name=name, start_time=start, end_time=end)
