from __future__ import annotations

from datetime import timedelta

import pytest
from conftest import BASE, FakeClock, ScriptedFocusSource, at
from fastapi.testclient import TestClient

from activity_tracker import webapp
from activity_tracker.errors import StoreReadFailed, UnsupportedPlatform
from activity_tracker.models import FocusObservation
from activity_tracker.store import MemorySessionStore
from activity_tracker.webapp import create_app


class BrokenReadStore:
    def append(self, session):
        pass

    def query(self, time_range, now=None):
        raise StoreReadFailed("remote unavailable", time_range)


@pytest.fixture
def tracked_app(store):
    """App whose tracker saw Editor for 40 minutes, then Browser for 30."""
    clock = FakeClock()
    app = create_app(store, clock=clock)
    tracker = app.state.tracker
    tracker.start()
    tracker.sample(BASE, "Editor", "Editor")
    tracker.sample(at(40 * 60), "Browser", "Browser")
    clock.current = at(70 * 60)
    return app


def test_status_reports_open_session(tracked_app):
    with TestClient(tracked_app) as client:
        payload = client.get("/api/status").json()

    assert payload["running"] is False
    assert payload["state"] == "tracking-active"
    assert payload["current"]["app_identity"] == "Browser"
    assert payload["current"]["duration_seconds"] == 1800.0
    assert payload["pending_writes"] == 0


def test_today_ranks_apps(tracked_app):
    with TestClient(tracked_app) as client:
        payload = client.get("/api/today", params={"date": "2024-03-04"}).json()

    assert payload["degraded"] is False
    assert payload["total_seconds"] == 4200.0
    assert [(a["app_identity"], a["seconds"]) for a in payload["apps"]] == [
        ("Editor", 2400.0),
        ("Browser", 1800.0),
    ]


def test_today_top_limits_results(tracked_app):
    with TestClient(tracked_app) as client:
        payload = client.get("/api/today", params={"top": 1}).json()

    assert [a["app_identity"] for a in payload["apps"]] == ["Editor"]


def test_export_payload(tracked_app):
    with TestClient(tracked_app) as client:
        payload = client.get("/api/export", params={"date": "2024-03-04"}).json()

    assert payload == {
        "date": "2024-03-04",
        "activities": [
            {"appName": "Editor", "minutes": 40, "category": "productivity"},
            {"appName": "Browser", "minutes": 30, "category": "browsing"},
        ],
    }


def test_week_and_sessions(tracked_app):
    with TestClient(tracked_app) as client:
        week = client.get("/api/week").json()
        sessions = client.get("/api/sessions").json()

    assert len(week["days"]) == 7
    assert week["days"][-1] == {"date": "2024-03-04", "seconds": 4200.0}
    assert [s["end_time"] is None for s in sessions["sessions"]] == [False, True]


def test_invalid_date_is_rejected(tracked_app):
    with TestClient(tracked_app) as client:
        response = client.get("/api/today", params={"date": "03/04/2024"})

    assert response.status_code == 400


def test_read_failure_yields_empty_degraded_summary():
    app = create_app(BrokenReadStore(), clock=FakeClock())

    with TestClient(app) as client:
        payload = client.get("/api/today").json()
        export = client.get("/api/export").json()

    assert payload["degraded"] is True
    assert payload["apps"] == []
    assert export == {"date": "2024-03-04", "activities": []}


def test_retry_endpoint_flushes_pending_writes(flaky_store):
    app = create_app(flaky_store, clock=FakeClock())
    tracker = app.state.tracker
    tracker.start()
    tracker.sample(BASE, "Editor")
    flaky_store.failing = True
    tracker.sample(at(60), "Browser")

    with TestClient(app) as client:
        assert client.get("/api/status").json()["pending_writes"] == 1
        flaky_store.failing = False
        payload = client.post("/api/store/retry").json()

    assert payload == {"pending_writes": 0, "errors": []}


def test_tracking_start_and_stop(store):
    clock = FakeClock()
    source = ScriptedFocusSource(FocusObservation("Editor", "Editor"))
    app = create_app(store, clock=clock, focus_source=source)

    with TestClient(app) as client:
        assert client.post("/api/tracking/start").json() == {"started": True}
        assert client.post("/api/tracking/start").json() == {"started": False}
        clock.advance(timedelta(minutes=1).total_seconds())
        assert client.post("/api/tracking/stop").json() == {"stopped": True}
        status = client.get("/api/status").json()

    assert status["running"] is False
    assert status["state"] == "idle"


def test_autostart_without_focus_source_still_serves(monkeypatch):
    def no_focus_source():
        raise UnsupportedPlatform("no focus source for plan9")

    monkeypatch.setattr(webapp, "default_focus_source", no_focus_source)
    app = create_app(MemorySessionStore(), clock=FakeClock(), autostart=True)

    with TestClient(app) as client:
        status = client.get("/api/status")
        today = client.get("/api/today")
        start = client.post("/api/tracking/start")

    assert status.status_code == 200
    assert status.json()["running"] is False
    assert status.json()["state"] == "idle"
    assert today.status_code == 200
    assert today.json()["apps"] == []
    assert start.status_code == 503
    assert "plan9" in start.json()["detail"]
