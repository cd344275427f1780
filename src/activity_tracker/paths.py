"""Helpers for locating application directories."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from platformdirs import PlatformDirs


APP_NAME = "ActivityTracker"
APP_AUTHOR = "ActivityTracker"


def get_data_dir() -> Path:
    """Return the base directory for persistent data."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True)
    path = Path(dirs.user_data_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_db_path() -> Path:
    return get_data_dir() / "activity.sqlite3"


def get_json_log_path() -> Path:
    return get_data_dir() / "activity_data.json"


def get_export_path() -> Path:
    return get_data_dir() / "activity_export.json"


def get_log_path() -> Path:
    return get_data_dir() / "tracker.log"


def default_store_path(backend: str) -> Optional[Path]:
    if backend == "sqlite":
        return get_db_path()
    if backend == "json":
        return get_json_log_path()
    return None
