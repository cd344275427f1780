"""Reduce sessions into per-app and per-day totals."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Mapping, Optional, Sequence

from .models import DailyAggregate, Session


def by_app(
    sessions: Iterable[Session], now: Optional[datetime] = None
) -> list[tuple[str, float]]:
    """Total seconds per app, longest first; ties ordered by identity."""
    totals: defaultdict[str, float] = defaultdict(float)
    for session in sessions:
        totals[session.app_identity] += session.duration_seconds(now)
    return rank(totals)


def rank(totals: Mapping[str, float]) -> list[tuple[str, float]]:
    return sorted(totals.items(), key=lambda item: (-item[1], item[0]))


def by_day(
    sessions: Iterable[Session],
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
) -> dict[date, DailyAggregate]:
    """Group totals by the calendar day each session started on.

    Sessions crossing midnight are not split; their whole duration counts
    toward the start day.
    """
    days: dict[date, DailyAggregate] = {}
    for session in sessions:
        day = day_of(session.start_time, tz)
        aggregate = days.get(day)
        if aggregate is None:
            aggregate = days[day] = DailyAggregate(day=day)
        aggregate.totals[session.app_identity] = (
            aggregate.totals.get(session.app_identity, 0.0) + session.duration_seconds(now)
        )
    return dict(sorted(days.items()))


def day_of(timestamp: datetime, tz: Optional[tzinfo] = None) -> date:
    if tz is not None and timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(tz)
    return timestamp.date()


def top_n(ranked: Sequence[tuple[str, float]], n: int) -> list[tuple[str, float]]:
    if n <= 0:
        return []
    return list(ranked[:n])


def daily_totals(aggregates: Mapping[date, DailyAggregate]) -> dict[date, float]:
    return {day: aggregate.total_seconds for day, aggregate in aggregates.items()}


def week_totals(
    aggregates: Mapping[date, DailyAggregate], end_day: date, days: int = 7
) -> list[tuple[date, float]]:
    """Zero-filled daily totals for the ``days`` days ending on ``end_day``."""
    series: list[tuple[date, float]] = []
    for offset in range(days - 1, -1, -1):
        day = end_day - timedelta(days=offset)
        aggregate = aggregates.get(day)
        series.append((day, aggregate.total_seconds if aggregate else 0.0))
    return series


def display_names(sessions: Iterable[Session]) -> dict[str, str]:
    """Latest known display name per app identity."""
    names: dict[str, tuple[datetime, str]] = {}
    for session in sessions:
        if not session.display_name:
            continue
        seen = names.get(session.app_identity)
        if seen is None or session.start_time >= seen[0]:
            names[session.app_identity] = (session.start_time, session.display_name)
    return {identity: name for identity, (_, name) in names.items()}
