from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable, Sequence

from ..activity_records import ActivityRecord


METRICS = ("distance", "count", "elevation", "time")

METRIC_UNITS = {
    "distance": "m",
    "count": "activities",
    "elevation": "m",
    "time": "s",
}


@dataclass(frozen=True)
class ActivityTotals:
    count: int = 0
    distance: float = 0.0
    moving_time: float = 0.0
    elapsed_time: float = 0.0
    elevation_gain: float = 0.0

    def add(self, record: ActivityRecord) -> "ActivityTotals":
        return ActivityTotals(
            count=self.count + 1,
            distance=self.distance + record.distance,
            moving_time=self.moving_time + record.moving_time,
            elapsed_time=self.elapsed_time + record.elapsed_time,
            elevation_gain=self.elevation_gain + record.total_elevation_gain,
        )

    def metric_value(self, metric: str) -> float:
        if metric == "distance":
            return self.distance
        if metric == "count":
            return float(self.count)
        if metric == "elevation":
            return self.elevation_gain
        if metric == "time":
            return self.moving_time
        raise ValueError(f"Unknown metric '{metric}'. Expected one of: {', '.join(METRICS)}.")

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


ZERO_TOTALS = ActivityTotals()


def aggregate(activities: Iterable[ActivityRecord] | None, match_types: Iterable[str]) -> ActivityTotals:
    """Sum the metrics of every record whose type is in ``match_types``."""
    wanted = set(match_types)
    totals = ZERO_TOTALS
    if not wanted or not activities:
        return totals

    for activity in activities:
        if activity.type in wanted:
            totals = totals.add(activity)
    return totals


def aggregate_by_types(
    activities: Sequence[ActivityRecord] | None,
    types: Iterable[str],
) -> dict[str, ActivityTotals]:
    # Each label is aggregated on its own; overlapping callers get overlapping sums.
    result: dict[str, ActivityTotals] = {}
    for activity_type in types:
        if activity_type in result:
            continue
        result[activity_type] = aggregate(activities, {activity_type})
    return result
