"""Error types raised by the tracker core and its collaborators."""

from __future__ import annotations

from typing import Optional


class TrackerError(Exception):
    """Base class for every recoverable tracker failure."""


class ObservationUnavailable(TrackerError):
    """The focus source could not report a focused application this tick."""


class UnsupportedPlatform(TrackerError):
    """No focus probe exists for the running operating system."""


class StoreError(TrackerError):
    """A session store operation failed."""


class StoreWriteFailed(StoreError):
    def __init__(self, session_id: str, reason: object = None) -> None:
        self.session_id = session_id
        self.reason = reason
        message = f"Failed to store session {session_id}"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)


class StoreReadFailed(StoreError):
    def __init__(self, reason: object = None, time_range: Optional[object] = None) -> None:
        self.reason = reason
        self.time_range = time_range
        message = "Failed to read sessions"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)
