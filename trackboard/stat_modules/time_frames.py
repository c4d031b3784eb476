from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..activity_records import ActivityRecord, parse_utc


logger = logging.getLogger(__name__)

NAMED_TIME_FRAMES = ("day", "week", "month", "year", "all")
TIME_FRAME_ALIASES = {"ytd": "year"}
DEFAULT_WEEK_START = "monday"

TIME_FRAME_LABELS = {
    "day": "Today",
    "week": "This Week",
    "month": "This Month",
    "year": "This Year",
    "all": "All Time",
}


def _parse_bound(raw: Any) -> datetime | date | None:
    """Instants become aware UTC datetimes; calendar days stay dates."""
    if isinstance(raw, datetime):
        return parse_utc(raw)
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    text = raw.strip()
    if len(text) == 10:
        try:
            return date.fromisoformat(text)
        except ValueError:
            return None
    return parse_utc(text)


def _bound_utc(bound: datetime | date, *, is_end: bool, local_tz: ZoneInfo) -> datetime:
    if isinstance(bound, datetime):
        return bound
    # date-only end covers that whole local day
    day = bound + timedelta(days=1) if is_end else bound
    return _local_midnight_utc(day, local_tz)


@dataclass(frozen=True)
class TimeFrame:
    kind: str
    start: datetime | date | None = None
    end: datetime | date | None = None

    @classmethod
    def custom(cls, start: Any, end: Any) -> "TimeFrame":
        """Explicit window. A date-only ``end`` covers that whole day.

        Date-only bounds are calendar days in the timezone the frame is
        resolved in, the same days named frames use.
        """
        start_bound = _parse_bound(start)
        end_bound = _parse_bound(end)
        if start_bound is None or end_bound is None:
            raise ValueError("Custom time frame requires valid start and end dates.")
        utc = ZoneInfo("UTC")
        if _bound_utc(end_bound, is_end=True, local_tz=utc) < _bound_utc(start_bound, is_end=False, local_tz=utc):
            raise ValueError("Custom time frame end must not precede its start.")
        return cls("custom", start_bound, end_bound)

    @classmethod
    def parse(cls, value: Any) -> "TimeFrame":
        if isinstance(value, TimeFrame):
            return value
        if isinstance(value, dict):
            kind = str(value.get("kind") or "").strip().lower()
            if kind == "custom":
                return cls.custom(value.get("start"), value.get("end"))
            value = kind
        if isinstance(value, str):
            kind = value.strip().lower()
            kind = TIME_FRAME_ALIASES.get(kind, kind)
            if kind in NAMED_TIME_FRAMES:
                return cls(kind)
        raise ValueError(f"Unknown time frame: {value!r}")

    def to_json(self) -> str | dict[str, str]:
        if self.kind != "custom":
            return self.kind
        assert self.start is not None and self.end is not None
        return {"kind": "custom", "start": self.start.isoformat(), "end": self.end.isoformat()}


def _local_zone(timezone_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone '%s'. Falling back to UTC.", timezone_name)
        return ZoneInfo("UTC")


def _local_midnight_utc(day: date, local_tz: ZoneInfo) -> datetime:
    return datetime.combine(day, datetime.min.time(), tzinfo=local_tz).astimezone(timezone.utc)


def resolve_interval(
    frame: TimeFrame | str,
    *,
    now_utc: datetime | None = None,
    timezone_name: str = "UTC",
    week_start: str = DEFAULT_WEEK_START,
) -> tuple[datetime, datetime] | None:
    """Resolve ``frame`` to a half-open ``[start, end)`` interval in UTC.

    Named frames are calendar periods in the local timezone containing
    ``now_utc``; ``all`` has no interval and resolves to None.
    """
    frame = TimeFrame.parse(frame)
    if frame.kind == "all":
        return None
    local_tz = _local_zone(timezone_name)
    if frame.kind == "custom":
        assert frame.start is not None and frame.end is not None
        return (
            _bound_utc(frame.start, is_end=False, local_tz=local_tz),
            _bound_utc(frame.end, is_end=True, local_tz=local_tz),
        )

    now = now_utc or datetime.now(timezone.utc)
    local_today = now.astimezone(local_tz).date()

    if frame.kind == "day":
        start_date = local_today
        end_date = local_today + timedelta(days=1)
    elif frame.kind == "week":
        # weekday(): Monday == 0
        offset = local_today.weekday()
        if str(week_start).strip().lower() == "sunday":
            offset = (offset + 1) % 7
        start_date = local_today - timedelta(days=offset)
        end_date = start_date + timedelta(days=7)
    elif frame.kind == "month":
        start_date = local_today.replace(day=1)
        if start_date.month == 12:
            end_date = date(start_date.year + 1, 1, 1)
        else:
            end_date = date(start_date.year, start_date.month + 1, 1)
    else:
        start_date = date(local_today.year, 1, 1)
        end_date = date(local_today.year + 1, 1, 1)

    return (_local_midnight_utc(start_date, local_tz), _local_midnight_utc(end_date, local_tz))


def filter_by_time_frame(
    activities: Iterable[ActivityRecord] | None,
    frame: TimeFrame | str,
    *,
    now_utc: datetime | None = None,
    timezone_name: str = "UTC",
    week_start: str = DEFAULT_WEEK_START,
) -> list[ActivityRecord]:
    if activities is None:
        return []

    interval = resolve_interval(
        frame,
        now_utc=now_utc,
        timezone_name=timezone_name,
        week_start=week_start,
    )
    if interval is None:
        selected = list(activities)
    else:
        start, end = interval
        selected = [activity for activity in activities if start <= activity.start_date < end]

    selected.sort(key=lambda activity: activity.start_date, reverse=True)
    return selected


def _calendar_day(bound: datetime | date) -> date:
    return bound.date() if isinstance(bound, datetime) else bound


def describe(frame: TimeFrame | str) -> str:
    frame = TimeFrame.parse(frame)
    if frame.kind == "custom":
        assert frame.start is not None and frame.end is not None
        first_day = _calendar_day(frame.start)
        if isinstance(frame.end, datetime):
            # end instant is exclusive; show the last covered day
            last_day = max((frame.end - timedelta(microseconds=1)).date(), first_day)
        else:
            last_day = frame.end
        return f"{first_day.isoformat()} - {last_day.isoformat()}"
    return TIME_FRAME_LABELS[frame.kind]
