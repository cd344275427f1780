"""Domain models for recorded focus sessions."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from typing import Any, Optional


UNKNOWN_IDENTITY = "Unknown"
UNKNOWN_NAME = "Unknown"


def new_session_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class Session:
    """A contiguous block of time during which one application held focus."""

    app_identity: str
    start_time: datetime
    display_name: Optional[str] = None
    end_time: Optional[datetime] = None
    id: str = field(default_factory=new_session_id)

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def effective_end(self, now: Optional[datetime] = None) -> datetime:
        if self.end_time is not None:
            return self.end_time
        return now if now is not None else datetime.now()

    def duration_seconds(self, now: Optional[datetime] = None) -> float:
        elapsed = (self.effective_end(now) - self.start_time).total_seconds()
        return max(elapsed, 0.0)

    def close(self, at: datetime) -> "Session":
        if self.end_time is not None:
            raise ValueError(f"Session {self.id} is already closed")
        return replace(self, end_time=max(at, self.start_time))

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted layout."""
        return {
            "id": self.id,
            "appIdentity": self.app_identity,
            "displayName": self.display_name,
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat() if self.end_time else None,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Session":
        end_raw = record.get("endTime")
        return cls(
            id=str(record["id"]),
            app_identity=record.get("appIdentity") or UNKNOWN_IDENTITY,
            display_name=record.get("displayName"),
            start_time=datetime.fromisoformat(record["startTime"]),
            end_time=datetime.fromisoformat(end_raw) if end_raw else None,
        )


@dataclass(frozen=True, slots=True)
class FocusObservation:
    """What the focus source reported for a single sampling tick."""

    identity: Optional[str]
    display_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TimeRange:
    """Half-open ``[start, end)`` window; ``end=None`` extends to now."""

    start: datetime
    end: Optional[datetime] = None

    @classmethod
    def for_day(cls, day: date) -> "TimeRange":
        start = datetime.combine(day, time.min)
        return cls(start=start, end=start + timedelta(days=1))

    @classmethod
    def last_days(cls, end_day: date, days: int) -> "TimeRange":
        """Cover ``days`` whole calendar days ending with ``end_day``."""
        start = datetime.combine(end_day - timedelta(days=max(days, 1) - 1), time.min)
        return cls(start=start, end=datetime.combine(end_day, time.min) + timedelta(days=1))

    def intersects(self, session: Session, now: Optional[datetime] = None) -> bool:
        start = session.start_time
        end = session.effective_end(now)
        if self.end is not None and start >= self.end:
            return False
        if end <= start:
            return start >= self.start
        return end > self.start


@dataclass(slots=True)
class DailyAggregate:
    """Per-app totals for one calendar day; derived, never persisted."""

    day: date
    totals: dict[str, float] = field(default_factory=dict)

    @property
    def total_seconds(self) -> float:
        return sum(self.totals.values())
