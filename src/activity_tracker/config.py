"""Configuration models and helpers for the activity tracker."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .store import STORE_BACKENDS


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration for the sampling loop and its store."""

    sample_interval: timedelta = timedelta(seconds=5)
    retry_interval: timedelta = timedelta(seconds=30)
    store_backend: str = "sqlite"

    def __post_init__(self) -> None:
        if self.store_backend not in STORE_BACKENDS:
            raise ValueError(
                f"Unknown store backend {self.store_backend!r}; expected one of {STORE_BACKENDS}"
            )

    @classmethod
    def from_intervals(
        cls,
        sample_seconds: float,
        retry_seconds: float | None = None,
        store_backend: str = "sqlite",
    ) -> "TrackerSettings":
        retry = retry_seconds if retry_seconds is not None else max(sample_seconds * 6, 30.0)
        return cls(
            sample_interval=timedelta(seconds=sample_seconds),
            retry_interval=timedelta(seconds=retry),
            store_backend=store_backend,
        )
