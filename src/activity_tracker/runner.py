"""Background sampling loop that drives a :class:`SessionTracker`."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Optional

from .config import TrackerSettings
from .tracker import SessionTracker

logger = logging.getLogger(__name__)


class TrackerRunner:
    """Run the tracker on a fixed cadence in a daemon thread.

    The loop thread is the only caller of ``tick``/``stop`` on the tracker.
    Retries of failed writes go to a single worker so they never delay a tick.
    """

    def __init__(self, tracker: SessionTracker, settings: TrackerSettings) -> None:
        self.tracker = tracker
        self.settings = settings
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._retry_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="store-retry")
        self._retry_future: Optional[Future] = None

    def start(self) -> bool:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return False
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self.run_until_stopped,
                args=(stop_event,),
                name="focus-sampler",
                daemon=True,
            )
            self._thread = thread
            self._stop_event = stop_event
            thread.start()
            logger.info("Sampling thread started.")
            return True

    def stop(self, timeout: float = 10.0) -> None:
        thread: Optional[threading.Thread] = None
        with self._lock:
            if not self._thread or not self._thread.is_alive() or not self._stop_event:
                return
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._stop_event = None
        if thread:
            thread.join(timeout=timeout)
            logger.info("Sampling thread stopped.")

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())

    def run_forever(self) -> None:
        stop_event = threading.Event()
        try:
            self.run_until_stopped(stop_event)
        except KeyboardInterrupt:
            logger.info("Tracker interrupted; closing the open session.")

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        """Sample until the provided event is set, then close the open session."""
        try:
            self._run_loop(stop_event)
        finally:
            self._shutdown()

    def close(self) -> None:
        self.stop()
        self._retry_executor.shutdown(wait=True)

    def _run_loop(self, stop_event: threading.Event) -> None:
        self.tracker.start()
        interval = self.settings.sample_interval.total_seconds()
        last_retry = datetime.now()
        while not stop_event.is_set():
            try:
                self.tracker.tick()
            except Exception:  # pragma: no cover - probe failures are platform specific
                logger.exception("Focus sample failed; skipping tick.")
            if datetime.now() - last_retry >= self.settings.retry_interval:
                self._schedule_retry()
                last_retry = datetime.now()
            # Sleep in an interruptible manner.
            stop_event.wait(interval)

    def _schedule_retry(self, *, force: bool = False) -> None:
        if not self.tracker.pending:
            return
        if not force and self._retry_future is not None and not self._retry_future.done():
            return
        self._retry_future = self._retry_executor.submit(self.tracker.retry_pending)

    def _shutdown(self) -> None:
        self.tracker.stop()
        # Queued behind any in-flight retry; close() waits for both.
        self._schedule_retry(force=True)
