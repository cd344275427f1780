"""State machine that turns focus samples into closed sessions."""

from __future__ import annotations

import enum
import logging
import threading
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from .errors import ObservationUnavailable, StoreWriteFailed
from .focus import Clock, FocusSource, SystemClock
from .models import UNKNOWN_IDENTITY, UNKNOWN_NAME, Session

if TYPE_CHECKING:
    from .store import SessionStore

logger = logging.getLogger(__name__)


class TrackerState(enum.Enum):
    IDLE = "idle"
    TRACKING_NO_SESSION = "tracking-no-session"
    TRACKING_ACTIVE = "tracking-active"


class SessionTracker:
    """Owns at most one open session and emits each session once it closes.

    Only the sampling loop may call :meth:`sample`, :meth:`tick`, :meth:`start`
    and :meth:`stop`. Failed store writes are held in :attr:`pending` until
    :meth:`retry_pending` succeeds; that method may run on another thread.
    """

    def __init__(
        self,
        store: "SessionStore",
        *,
        clock: Optional[Clock] = None,
        focus_source: Optional[FocusSource] = None,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.focus_source = focus_source
        self.last_write_error: Optional[StoreWriteFailed] = None
        self._open: Optional[Session] = None
        self._tracking = False
        self._last_sample: Optional[datetime] = None
        self._pending: dict[str, Session] = {}
        self._pending_lock = threading.Lock()

    @property
    def tracking_enabled(self) -> bool:
        return self._tracking

    @property
    def open_session(self) -> Optional[Session]:
        return self._open

    @property
    def state(self) -> TrackerState:
        if not self._tracking:
            return TrackerState.IDLE
        if self._open is None:
            return TrackerState.TRACKING_NO_SESSION
        return TrackerState.TRACKING_ACTIVE

    @property
    def pending(self) -> tuple[Session, ...]:
        with self._pending_lock:
            return tuple(self._pending.values())

    def start(self, now: Optional[datetime] = None) -> bool:
        if self._tracking:
            logger.info("Already tracking; start ignored.")
            return False
        self._tracking = True
        self._last_sample = now
        logger.info("Tracking started.")
        return True

    def stop(self, now: Optional[datetime] = None) -> Optional[Session]:
        if not self._tracking:
            return None
        closed: Optional[Session] = None
        if self._open is not None:
            closed = self._open.close(self._monotonic(now or self.clock.now()))
            self._open = None
            self._emit(closed)
        self._tracking = False
        self._last_sample = None
        logger.info("Tracking stopped.")
        return closed

    def tick(self) -> Optional[Session]:
        """Pull one observation from the focus source and apply it."""
        if not self._tracking:
            return None
        if self.focus_source is None:
            raise RuntimeError("SessionTracker.tick() requires a focus source")
        now = self.clock.now()
        try:
            observation = self.focus_source.current()
        except ObservationUnavailable as exc:
            logger.debug("No focus observation this tick: %s", exc)
            return None
        if observation is None:
            logger.debug("Nothing focused; keeping current session.")
            return None
        return self.sample(now, observation.identity, observation.display_name)

    def sample(
        self,
        now: datetime,
        identity: Optional[str],
        display_name: Optional[str] = None,
    ) -> Optional[Session]:
        """Apply one focus sample; return the session closed by it, if any."""
        if not self._tracking:
            logger.debug("Sample at %s ignored while idle.", now)
            return None
        identity = (identity or "").strip() or UNKNOWN_IDENTITY
        display_name = (display_name or "").strip() or UNKNOWN_NAME
        now = self._monotonic(now)

        current = self._open
        if current is not None and current.app_identity == identity:
            return None

        closed: Optional[Session] = None
        if current is not None:
            closed = current.close(now)
            self._emit(closed)

        self._open = Session(app_identity=identity, display_name=display_name, start_time=now)
        logger.debug("Opened session %s for %s", self._open.id, identity)
        return closed

    def retry_pending(self) -> list[StoreWriteFailed]:
        """Re-append every held session; return the failures that remain."""
        with self._pending_lock:
            sessions = list(self._pending.values())
        failures: list[StoreWriteFailed] = []
        for session in sessions:
            failure = self._append(session)
            if failure is not None:
                failures.append(failure)
                continue
            with self._pending_lock:
                self._pending.pop(session.id, None)
            logger.debug("Stored previously failed session %s", session.id)
        if failures:
            logger.warning("%d session(s) still waiting to be stored.", len(failures))
        return failures

    def _emit(self, session: Session) -> None:
        logger.debug(
            "Closed session %s for %s (%.1fs)",
            session.id,
            session.app_identity,
            session.duration_seconds(),
        )
        failure = self._append(session)
        if failure is not None:
            logger.warning("Holding session %s for retry: %s", session.id, failure)
            with self._pending_lock:
                self._pending[session.id] = session

    def _append(self, session: Session) -> Optional[StoreWriteFailed]:
        """Append one closed session; a failure of any kind is returned, not raised."""
        try:
            self.store.append(session)
        except StoreWriteFailed as exc:
            self.last_write_error = exc
            return exc
        except Exception as exc:
            logger.exception("Store raised unexpectedly while appending %s", session.id)
            self.last_write_error = StoreWriteFailed(session.id, exc)
            return self.last_write_error
        return None

    def _monotonic(self, now: datetime) -> datetime:
        last = self._last_sample
        if last is not None and now < last:
            logger.warning("Clock moved backwards (%s < %s); clamping.", now, last)
            now = last
        if self._open is not None and now < self._open.start_time:
            now = self._open.start_time
        self._last_sample = now
        return now
