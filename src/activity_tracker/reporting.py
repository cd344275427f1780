"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from .aggregation import by_app, by_day, display_names, top_n, week_totals
from .history import safe_load_sessions
from .models import TimeRange
from .store import SessionStore

BAR_WIDTH = 40


class SummaryPrinter:
    """Render human-readable summaries in the console."""

    def __init__(self, store: SessionStore) -> None:
        self.store = store

    def print_daily_summary(
        self, day: date, top: int = 8, now: Optional[datetime] = None
    ) -> None:
        now = now or datetime.now()
        sessions, error = safe_load_sessions(self.store, TimeRange.for_day(day), now=now)
        if error is not None:
            print(f"Warning: {error}")
        sessions = [s for s in sessions if s.start_time.date() == day]
        ranked = by_app(sessions, now)
        if not ranked:
            print("No activity recorded for the selected day.")
            return

        names = display_names(sessions)
        longest = ranked[0][1] or 1.0
        print(f"Summary for {day.isoformat()}")
        print("-" * 40)
        for identity, seconds in top_n(ranked, top):
            label = names.get(identity, identity)
            print(f"  {label[:15]:<15} {render_bar(seconds, longest)} {format_duration(seconds)}")
        total = sum(seconds for _, seconds in ranked)
        print()
        print(f"Total: {format_hours_minutes(total)}")

    def print_week(self, end_day: date, now: Optional[datetime] = None) -> None:
        now = now or datetime.now()
        sessions, error = safe_load_sessions(self.store, TimeRange.last_days(end_day, 7), now=now)
        if error is not None:
            print(f"Warning: {error}")
        series = week_totals(by_day(sessions, now=now), end_day)
        longest = max((seconds for _, seconds in series), default=0.0) or 1.0
        print("Last 7 days")
        print("-" * 40)
        for day, seconds in series:
            label = "Today" if day == now.date() else day.strftime("%a")
            print(f"  {label:<10} {render_bar(seconds, longest)} {format_hours_minutes(seconds)}")


def render_bar(seconds: float, longest: float) -> str:
    if longest <= 0:
        return ""
    return "#" * int((seconds / longest) * BAR_WIDTH)


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_hours_minutes(seconds: float) -> str:
    total_minutes = int(seconds // 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"
