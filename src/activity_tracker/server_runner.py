"""Helpers to launch the local JSON API."""

from __future__ import annotations

import logging
import threading
import time
import webbrowser
from typing import Optional

import uvicorn

from .config import TrackerSettings
from .store import SessionStore
from .webapp import create_app


def run_server(
    store: SessionStore,
    *,
    host: str = "127.0.0.1",
    port: int = 8765,
    settings: Optional[TrackerSettings] = None,
    autostart: bool = True,
    open_browser: bool = False,
    log_level: str = "info",
) -> None:
    """Start the FastAPI server and, optionally, its interactive docs page."""
    app = create_app(store, settings=settings or TrackerSettings(), autostart=autostart)

    if open_browser:
        url = f"http://{host}:{port}/docs"
        threading.Thread(
            target=_launch_browser_after_delay, args=(url,), daemon=True
        ).start()

    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    uvicorn.run(app, host=host, port=port, log_level=log_level)


def _launch_browser_after_delay(url: str) -> None:
    time.sleep(1.0)
    try:
        webbrowser.open(url)
    except Exception:
        logging.getLogger(__name__).exception("Failed to launch browser for %s", url)
