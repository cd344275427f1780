"""Clock and foreground-application probes consumed by the tracker."""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from typing import Optional, Protocol

import psutil

from .errors import ObservationUnavailable, UnsupportedPlatform
from .models import FocusObservation

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> datetime: ...


class FocusSource(Protocol):
    def current(self) -> Optional[FocusObservation]: ...


class SystemClock:
    """Wall-clock time in the local timezone."""

    def now(self) -> datetime:
        return datetime.now()


class WindowsFocusSource:
    """Reports the process that owns the foreground window."""

    def __init__(self) -> None:
        import ctypes

        self._ctypes = ctypes
        self._user32 = ctypes.windll.user32  # type: ignore[attr-defined]

    def current(self) -> Optional[FocusObservation]:
        from ctypes import wintypes

        hwnd = self._user32.GetForegroundWindow()
        if not hwnd:
            return None

        pid = wintypes.DWORD()
        self._user32.GetWindowThreadProcessId(hwnd, self._ctypes.byref(pid))
        if not pid.value:
            return FocusObservation(identity=None, display_name=None)
        try:
            process = psutil.Process(pid.value)
            name = process.name()
        except (psutil.Error, ProcessLookupError) as exc:
            raise ObservationUnavailable(f"process {pid.value} vanished") from exc
        return FocusObservation(identity=name.lower(), display_name=_strip_exe(name))


class MacFocusSource:
    """Reports the frontmost application via ``NSWorkspace``."""

    def __init__(self) -> None:
        from AppKit import NSWorkspace

        self._workspace = NSWorkspace.sharedWorkspace()

    def current(self) -> Optional[FocusObservation]:
        app = self._workspace.frontmostApplication()
        if app is None:
            return None
        return FocusObservation(
            identity=app.bundleIdentifier(),
            display_name=app.localizedName(),
        )


def default_focus_source() -> FocusSource:
    """Build the probe for the running platform."""
    if sys.platform == "win32":
        return WindowsFocusSource()
    if sys.platform == "darwin":
        try:
            return MacFocusSource()
        except ImportError as exc:
            raise UnsupportedPlatform("pyobjc-framework-Cocoa is not installed") from exc
    raise UnsupportedPlatform(f"No focus probe available for {sys.platform}")


def _strip_exe(name: str) -> str:
    if name.lower().endswith(".exe"):
        return name[:-4]
    return name
