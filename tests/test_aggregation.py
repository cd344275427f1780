from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from conftest import at, closed

from activity_tracker.aggregation import (
    by_app,
    by_day,
    daily_totals,
    display_names,
    rank,
    top_n,
    week_totals,
)
from activity_tracker.models import Session


def test_by_app_sorts_by_duration_then_identity():
    sessions = [
        closed("mail", at(0), at(60)),
        closed("browser", at(60), at(180)),
        closed("editor", at(180), at(300)),
        closed("mail", at(300), at(320)),
    ]

    assert by_app(sessions) == [
        ("browser", 120.0),
        ("editor", 120.0),
        ("mail", 80.0),
    ]


def test_by_app_empty_input():
    assert by_app([]) == []


def test_by_app_counts_open_session_up_to_now():
    sessions = [Session(app_identity="editor", start_time=at(0))]
    assert by_app(sessions, now=at(90)) == [("editor", 90.0)]


def test_by_day_attributes_session_to_start_day():
    late = datetime(2024, 3, 4, 23, 30)
    sessions = [
        closed("editor", late, late + timedelta(hours=1)),
        closed("browser", datetime(2024, 3, 5, 9, 0), datetime(2024, 3, 5, 9, 10)),
    ]

    days = by_day(sessions)

    assert list(days) == [date(2024, 3, 4), date(2024, 3, 5)]
    assert days[date(2024, 3, 4)].totals == {"editor": 3600.0}
    assert days[date(2024, 3, 5)].total_seconds == 600.0


def test_by_day_total_is_sum_of_apps():
    sessions = [
        closed("editor", at(0), at(100)),
        closed("browser", at(100), at(150)),
        closed("editor", at(150), at(200)),
    ]

    aggregate = by_day(sessions)[at(0).date()]

    assert aggregate.totals == {"editor": 150.0, "browser": 50.0}
    assert aggregate.total_seconds == 200.0
    assert rank(aggregate.totals) == [("editor", 150.0), ("browser", 50.0)]


def test_by_day_uses_timezone_for_aware_timestamps():
    start = datetime(2024, 3, 4, 23, 30, tzinfo=timezone.utc)
    sessions = [closed("editor", start, start + timedelta(minutes=10))]

    days = by_day(sessions, tz=timezone(timedelta(hours=2)))

    assert list(days) == [date(2024, 3, 5)]


def test_top_n():
    ranked = [("browser", 30.0), ("editor", 20.0), ("mail", 10.0)]

    assert top_n(ranked, 0) == []
    assert top_n(ranked, -3) == []
    assert top_n(ranked, 1) == [("browser", 30.0)]
    assert top_n(ranked, 1000) == ranked


def test_week_totals_fill_missing_days():
    sessions = [
        closed("editor", datetime(2024, 3, 1, 10), datetime(2024, 3, 1, 11)),
        closed("editor", datetime(2024, 3, 4, 10), datetime(2024, 3, 4, 10, 30)),
    ]
    days = by_day(sessions)

    series = week_totals(days, date(2024, 3, 4))

    assert [day for day, _ in series] == [date(2024, 2, 27) + timedelta(days=i) for i in range(7)]
    assert dict(series)[date(2024, 3, 1)] == 3600.0
    assert dict(series)[date(2024, 3, 2)] == 0.0
    assert dict(series)[date(2024, 3, 4)] == 1800.0
    assert daily_totals(days) == {date(2024, 3, 1): 3600.0, date(2024, 3, 4): 1800.0}


def test_display_names_prefers_latest():
    sessions = [
        closed("com.example.editor", at(0), at(10), name="Editor"),
        closed("com.example.editor", at(20), at(30), name="Editor Pro"),
        closed("com.example.mail", at(10), at(20)),
    ]

    assert display_names(sessions) == {"com.example.editor": "Editor Pro"}
