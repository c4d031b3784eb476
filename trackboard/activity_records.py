from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from .numeric_utils import as_float


logger = logging.getLogger(__name__)


def parse_utc(raw: Any) -> datetime | None:
    if isinstance(raw, datetime):
        if raw.tzinfo is None:
            return raw.replace(tzinfo=timezone.utc)
        return raw.astimezone(timezone.utc)
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class ActivityRecord:
    type: str
    distance: float
    moving_time: float
    elapsed_time: float
    total_elevation_gain: float
    start_date: datetime
    id: str | None = None
    name: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ActivityRecord | None":
        """Build a record from a Strava activity payload.

        Returns None when the payload has no usable type or start date.
        Numeric fields that are missing or not numbers count as 0.
        """
        activity_type = str(payload.get("type") or payload.get("sport_type") or "").strip()
        start_date = parse_utc(payload.get("start_date"))
        if not activity_type or start_date is None:
            return None

        raw_id = payload.get("id")
        raw_name = payload.get("name")
        return cls(
            type=activity_type,
            distance=as_float(payload.get("distance")) or 0.0,
            moving_time=as_float(payload.get("moving_time")) or 0.0,
            elapsed_time=as_float(payload.get("elapsed_time")) or 0.0,
            total_elevation_gain=as_float(payload.get("total_elevation_gain")) or 0.0,
            start_date=start_date,
            id=str(raw_id) if raw_id is not None else None,
            name=str(raw_name) if isinstance(raw_name, str) else None,
        )


def records_from_payloads(payloads: Iterable[Any]) -> list[ActivityRecord]:
    records: list[ActivityRecord] = []
    skipped = 0
    for payload in payloads:
        record = ActivityRecord.from_payload(payload) if isinstance(payload, dict) else None
        if record is None:
            skipped += 1
            continue
        records.append(record)
    if skipped:
        logger.debug("Skipped %s activity payload(s) without type or start_date.", skipped)
    return records


def load_activities_file(path: Path) -> list[ActivityRecord]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("activities", [])
    if not isinstance(payload, list):
        raise ValueError(f"Activities file {path} must contain a JSON list.")
    return records_from_payloads(payload)
