"""Interchange export of daily activity for external habit tools."""

from __future__ import annotations

import datetime as dt
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .aggregation import rank
from .categories import classify
from .models import DailyAggregate

logger = logging.getLogger(__name__)


class ActivityEntry(BaseModel):
    app_name: str = Field(alias="appName")
    minutes: int = Field(ge=0)
    category: str

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


class ExportRecord(BaseModel):
    date: dt.date
    activities: list[ActivityEntry] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def to_interchange(aggregate: DailyAggregate) -> ExportRecord:
    """Map one day's totals to the export record, longest apps first."""
    return ExportRecord(
        date=aggregate.day,
        activities=[
            ActivityEntry(
                app_name=identity,
                minutes=int(seconds // 60),
                category=classify(identity),
            )
            for identity, seconds in rank(aggregate.totals)
        ],
    )


def write_export(record: ExportRecord, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(record.to_payload(), indent=2), encoding="utf-8")
    logger.info("Exported %d activities for %s to %s", len(record.activities), record.date, path)
    return path
