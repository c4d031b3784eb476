from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class ActivityConfig:
    id: str
    strava_type: str
    display_name: str
    metrics: tuple[str, ...]
    primary_metric: str


ALL_METRICS = ("distance", "count", "elevation", "time")
NO_ELEVATION = ("distance", "count", "time")
COUNT_AND_TIME = ("count", "time")

ACTIVITY_CONFIGS: dict[str, ActivityConfig] = {
    config.id: config
    for config in (
        ActivityConfig("running", "Run", "Running", ALL_METRICS, "distance"),
        ActivityConfig("cycling", "Ride", "Cycling", ALL_METRICS, "distance"),
        ActivityConfig("swimming", "Swim", "Swimming", NO_ELEVATION, "distance"),
        ActivityConfig("hiking", "Hike", "Hiking", ALL_METRICS, "elevation"),
        ActivityConfig("kayaking", "Kayaking", "Kayaking", NO_ELEVATION, "distance"),
        ActivityConfig("xcskiing", "NordicSki", "Cross Country Skiing", ALL_METRICS, "distance"),
        ActivityConfig("snowboarding", "Snowboard", "Snowboarding", ALL_METRICS, "count"),
        ActivityConfig("workouts", "Workout", "Workouts", COUNT_AND_TIME, "count"),
        ActivityConfig("surfing", "Surfing", "Surfing", COUNT_AND_TIME, "count"),
        ActivityConfig("alpineskiing", "AlpineSki", "Alpine Skiing", ALL_METRICS, "count"),
    )
}

# Fixed categories of the first goals format.
LEGACY_ACTIVITY_IDS = {
    "rides": "cycling",
    "runs": "running",
    "swims": "swimming",
}


def get_activity_config(activity_id: str) -> ActivityConfig | None:
    return ACTIVITY_CONFIGS.get(activity_id)


def get_activity_config_by_strava_type(strava_type: str) -> ActivityConfig | None:
    for config in ACTIVITY_CONFIGS.values():
        if config.strava_type == strava_type:
            return config
    return None


def get_visible_activity_configs(visibility: dict[str, bool]) -> list[ActivityConfig]:
    return [config for config in ACTIVITY_CONFIGS.values() if visibility.get(config.id)]


def strava_types_for(activity_ids: Iterable[str]) -> set[str]:
    types: set[str] = set()
    for activity_id in activity_ids:
        config = ACTIVITY_CONFIGS.get(activity_id)
        if config is not None:
            types.add(config.strava_type)
    return types
