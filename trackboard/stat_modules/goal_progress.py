from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from ..numeric_utils import as_float
from .activity_totals import METRIC_UNITS, METRICS, ActivityTotals
from .time_frames import DEFAULT_WEEK_START, TimeFrame, resolve_interval


SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class Pace:
    elapsed_fraction: float
    projected: float
    expected: float
    behind_plan: float
    days_elapsed: int
    days_remaining: int
    total_days: int
    daily_pace: float


@dataclass(frozen=True)
class Progress:
    metric: str
    current: float
    target: float
    ratio: float
    percentage: float
    remainder: float
    unit: str
    pace: Pace | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _goal_target(goal: dict[str, Any] | None, metric: str | None) -> tuple[str, float] | None:
    if not goal:
        return None
    if metric is not None:
        if metric not in METRICS:
            raise ValueError(f"Unknown metric '{metric}'. Expected one of: {', '.join(METRICS)}.")
        target = as_float(goal.get(metric))
        return (metric, target) if target is not None else None

    populated = [(name, as_float(goal.get(name))) for name in METRICS]
    populated = [(name, value) for name, value in populated if value is not None]
    if not populated:
        return None
    if len(populated) > 1:
        raise ValueError("Goal sets more than one metric; pass metric= to choose one.")
    name, value = populated[0]
    assert value is not None
    return (name, value)


def _pace(
    current: float,
    target: float,
    remainder: float,
    interval: tuple[datetime, datetime],
    now: datetime,
) -> Pace:
    start, end = interval
    total_seconds = max((end - start).total_seconds(), 0.0)
    elapsed_seconds = min(max((now - start).total_seconds(), 0.0), total_seconds)
    remaining_seconds = total_seconds - elapsed_seconds

    fraction = elapsed_seconds / total_seconds if total_seconds > 0 else 1.0
    projected = current / fraction if fraction > 0 else current
    expected = target * fraction

    total_days = int(math.ceil(total_seconds / SECONDS_PER_DAY))
    days_elapsed = int(math.ceil(elapsed_seconds / SECONDS_PER_DAY))
    days_remaining = int(math.ceil(remaining_seconds / SECONDS_PER_DAY))

    if current >= target:
        daily_pace = 0.0
    elif days_remaining <= 0:
        daily_pace = remainder
    else:
        daily_pace = remainder / days_remaining

    return Pace(
        elapsed_fraction=fraction,
        projected=projected,
        expected=expected,
        behind_plan=current - expected,
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        total_days=total_days,
        daily_pace=daily_pace,
    )


def calculate_progress(
    totals: ActivityTotals,
    goal: dict[str, Any] | None,
    frame: TimeFrame | str,
    *,
    metric: str | None = None,
    now_utc: datetime | None = None,
    timezone_name: str = "UTC",
    week_start: str = DEFAULT_WEEK_START,
) -> Progress | None:
    """Compare ``totals`` against the single goal field for ``metric``.

    Returns None when no goal is configured for the metric, which callers
    must keep distinct from zero progress. The ratio is not clamped so
    over-achievement shows as a value above 1. Pace is only projected for
    named calendar frames; ``all`` and ``custom`` leave it unset.
    """
    selected = _goal_target(goal, metric)
    if selected is None:
        return None
    metric_name, target = selected
    frame = TimeFrame.parse(frame)

    current = totals.metric_value(metric_name)
    ratio = current / target if target > 0 else 0.0
    remainder = max(0.0, target - current)

    pace = None
    if frame.kind not in {"all", "custom"}:
        now = now_utc or datetime.now(timezone.utc)
        interval = resolve_interval(frame, now_utc=now, timezone_name=timezone_name, week_start=week_start)
        if interval is not None:
            pace = _pace(current, target, remainder, interval, now)

    return Progress(
        metric=metric_name,
        current=current,
        target=target,
        ratio=ratio,
        percentage=min(ratio * 100.0, 100.0),
        remainder=remainder,
        unit=METRIC_UNITS[metric_name],
        pace=pace,
    )


def calculate_activity_progress(
    totals: ActivityTotals,
    goal: dict[str, Any] | None,
    frame: TimeFrame | str,
    *,
    now_utc: datetime | None = None,
    timezone_name: str = "UTC",
    week_start: str = DEFAULT_WEEK_START,
) -> dict[str, Progress]:
    progress: dict[str, Progress] = {}
    for metric in METRICS:
        result = calculate_progress(
            totals,
            goal,
            frame,
            metric=metric,
            now_utc=now_utc,
            timezone_name=timezone_name,
            week_start=week_start,
        )
        if result is not None:
            progress[metric] = result
    return progress
