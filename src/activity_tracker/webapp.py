"""FastAPI application that exposes a local JSON API for the activity tracker."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request

from .aggregation import by_app, by_day, display_names, top_n, week_totals
from .config import TrackerSettings
from .errors import UnsupportedPlatform
from .exporter import to_interchange
from .focus import Clock, FocusSource, default_focus_source
from .history import safe_load_sessions
from .models import DailyAggregate, Session, TimeRange
from .runner import TrackerRunner
from .store import SessionStore
from .tracker import SessionTracker

logger = logging.getLogger(__name__)


def create_app(
    store: SessionStore,
    *,
    settings: Optional[TrackerSettings] = None,
    focus_source: Optional[FocusSource] = None,
    clock: Optional[Clock] = None,
    autostart: bool = False,
) -> FastAPI:
    """Instantiate the FastAPI application around one tracker."""
    resolved_settings = settings or TrackerSettings()
    tracker = SessionTracker(store, clock=clock, focus_source=focus_source)
    runner = TrackerRunner(tracker, resolved_settings)

    app = FastAPI(title="Activity Tracker", version="0.1.0")
    app.state.store = store
    app.state.tracker = tracker
    app.state.runner = runner

    @app.on_event("startup")
    async def _startup() -> None:
        if not autostart:
            return
        try:
            _start_runner(runner)
        except UnsupportedPlatform as exc:
            logger.warning("Tracking not started: %s. Serving stored data only.", exc)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        runner.close()

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        current = tracker.open_session
        return {
            "running": request.app.state.runner.is_running(),
            "state": tracker.state.value,
            "current": _session_payload(current, tracker.clock.now()) if current else None,
            "pending_writes": len(tracker.pending),
            "last_write_error": str(tracker.last_write_error) if tracker.last_write_error else None,
            "store_backend": resolved_settings.store_backend,
            "sample_seconds": resolved_settings.sample_interval.total_seconds(),
        }

    @app.post("/api/tracking/start")
    def start_tracking() -> Dict[str, Any]:
        try:
            return {"started": _start_runner(runner)}
        except UnsupportedPlatform as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

    @app.post("/api/tracking/stop")
    def stop_tracking() -> Dict[str, Any]:
        was_running = runner.is_running()
        runner.stop()
        return {"stopped": was_running}

    @app.post("/api/store/retry")
    def retry_writes() -> Dict[str, Any]:
        failures = tracker.retry_pending()
        return {
            "pending_writes": len(tracker.pending),
            "errors": [str(exc) for exc in failures],
        }

    @app.get("/api/today")
    def today(
        date: Optional[str] = Query(
            default=None,
            description="Target date in YYYY-MM-DD format.",
        ),
        top: int = Query(default=8, description="Number of apps to return."),
    ) -> Dict[str, Any]:
        now = tracker.clock.now()
        target_day = _parse_date(date, now)
        sessions, error = safe_load_sessions(
            store, TimeRange.for_day(target_day), tracker=tracker, now=now
        )
        day_sessions = [s for s in sessions if s.start_time.date() == target_day]
        ranked = by_app(day_sessions, now)
        names = display_names(day_sessions)
        return {
            "date": target_day.isoformat(),
            "degraded": error is not None,
            "total_seconds": sum(seconds for _, seconds in ranked),
            "apps": [
                {
                    "app_identity": identity,
                    "display_name": names.get(identity, identity),
                    "seconds": seconds,
                }
                for identity, seconds in top_n(ranked, top)
            ],
        }

    @app.get("/api/week")
    def week(
        end: Optional[str] = Query(
            default=None,
            description="Last day of the week in YYYY-MM-DD format.",
        ),
    ) -> Dict[str, Any]:
        now = tracker.clock.now()
        end_day = _parse_date(end, now)
        sessions, error = safe_load_sessions(
            store, TimeRange.last_days(end_day, 7), tracker=tracker, now=now
        )
        series = week_totals(by_day(sessions, now=now), end_day)
        return {
            "end": end_day.isoformat(),
            "degraded": error is not None,
            "days": [{"date": day.isoformat(), "seconds": seconds} for day, seconds in series],
        }

    @app.get("/api/sessions")
    def sessions(
        date: Optional[str] = Query(
            default=None,
            description="Target date in YYYY-MM-DD format.",
        ),
    ) -> Dict[str, Any]:
        now = tracker.clock.now()
        target_day = _parse_date(date, now)
        found, error = safe_load_sessions(
            store, TimeRange.for_day(target_day), tracker=tracker, now=now
        )
        return {
            "date": target_day.isoformat(),
            "degraded": error is not None,
            "sessions": [_session_payload(session, now) for session in found],
        }

    @app.get("/api/export")
    def export(
        date: Optional[str] = Query(
            default=None,
            description="Target date in YYYY-MM-DD format.",
        ),
    ) -> Dict[str, Any]:
        now = tracker.clock.now()
        target_day = _parse_date(date, now)
        found, _ = safe_load_sessions(
            store, TimeRange.for_day(target_day), tracker=tracker, now=now
        )
        aggregate = by_day(found, now=now).get(target_day, DailyAggregate(day=target_day))
        return to_interchange(aggregate).to_payload()

    return app


def _start_runner(runner: TrackerRunner) -> bool:
    tracker = runner.tracker
    if tracker.focus_source is None:
        tracker.focus_source = default_focus_source()
    return runner.start()


def _parse_date(value: Optional[str], now: datetime) -> date:
    if not value:
        return now.date()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date format") from exc


def _session_payload(session: Session, now: datetime) -> Dict[str, Any]:
    return {
        "id": session.id,
        "app_identity": session.app_identity,
        "display_name": session.display_name,
        "start_time": session.start_time.isoformat(),
        "end_time": session.end_time.isoformat() if session.end_time else None,
        "duration_seconds": session.duration_seconds(now),
    }
