from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence

from .activity_catalog import ACTIVITY_CONFIGS, get_activity_config, strava_types_for
from .activity_records import ActivityRecord
from .dashboard_config import DashboardConfigStore
from .numeric_utils import as_float, format_metric
from .stat_modules.activity_totals import aggregate
from .stat_modules.goal_progress import calculate_activity_progress, calculate_progress
from .stat_modules.time_frames import DEFAULT_WEEK_START, TimeFrame, describe, filter_by_time_frame


logger = logging.getLogger(__name__)


def summarize_card(
    card: dict[str, Any],
    activities: Sequence[ActivityRecord] | None,
    *,
    now_utc: datetime | None = None,
    timezone_name: str = "UTC",
    week_start: str = DEFAULT_WEEK_START,
) -> dict[str, Any]:
    now = now_utc or datetime.now(timezone.utc)
    frame = TimeFrame.parse(card.get("timeFrame", "week"))
    metric = str(card.get("metric") or "distance")
    activity_types = list(card.get("activityTypes") or [])

    in_frame = filter_by_time_frame(
        activities,
        frame,
        now_utc=now,
        timezone_name=timezone_name,
        week_start=week_start,
    )
    totals = aggregate(in_frame, activity_types)
    value = totals.metric_value(metric)

    progress = None
    goal_value = as_float(card.get("goal"))
    if goal_value is not None:
        progress = calculate_progress(
            totals,
            {metric: goal_value},
            frame,
            metric=metric,
            now_utc=now,
            timezone_name=timezone_name,
            week_start=week_start,
        )

    return {
        "id": card.get("id"),
        "title": card.get("title", ""),
        "metric": metric,
        "timeFrame": frame.to_json(),
        "timeFrameLabel": describe(frame),
        "activityTypes": activity_types,
        "totals": totals.as_dict(),
        "value": value,
        "formattedValue": format_metric(metric, value),
        "progress": progress.as_dict() if progress is not None else None,
    }


def build_dashboard_summary(
    store: DashboardConfigStore,
    activities: Sequence[ActivityRecord] | None,
    *,
    now_utc: datetime | None = None,
    timezone_name: str = "UTC",
    week_start: str = DEFAULT_WEEK_START,
) -> list[dict[str, Any]]:
    summaries: list[dict[str, Any]] = []
    for card in store.list_visible_cards():
        try:
            summaries.append(
                summarize_card(
                    card,
                    activities,
                    now_utc=now_utc,
                    timezone_name=timezone_name,
                    week_start=week_start,
                )
            )
        except ValueError as exc:
            logger.warning("Skipping card %s: %s", card.get("id"), exc)
    return summaries


def _progress_payload(
    totals_types: set[str],
    goal: dict[str, Any],
    year_activities: Sequence[ActivityRecord],
    *,
    now_utc: datetime,
    timezone_name: str,
) -> dict[str, Any]:
    totals = aggregate(year_activities, totals_types)
    progress = calculate_activity_progress(
        totals,
        goal,
        "year",
        now_utc=now_utc,
        timezone_name=timezone_name,
    )
    return {
        "totals": totals.as_dict(),
        "progress": {metric: item.as_dict() for metric, item in progress.items()},
    }


def build_goals_summary(
    goals: dict[str, Any],
    activities: Sequence[ActivityRecord] | None,
    *,
    now_utc: datetime | None = None,
    timezone_name: str = "UTC",
) -> dict[str, Any]:
    """Year-to-date progress for every activity and combined goal."""
    now = now_utc or datetime.now(timezone.utc)
    year_activities = filter_by_time_frame(activities, "year", now_utc=now, timezone_name=timezone_name)
    visibility = goals.get("visibility") or {}

    activity_summaries: dict[str, Any] = {}
    for activity_id, goal in (goals.get("activities") or {}).items():
        config = get_activity_config(activity_id)
        if config is None or not isinstance(goal, dict):
            logger.debug("No catalog entry for goal activity '%s'.", activity_id)
            continue
        activity_summaries[activity_id] = {
            "displayName": config.display_name,
            "visible": bool(visibility.get(activity_id, False)),
            **_progress_payload(
                {config.strava_type},
                goal,
                year_activities,
                now_utc=now,
                timezone_name=timezone_name,
            ),
        }

    combined_summaries: dict[str, Any] = {}
    for goal_id, combined in (goals.get("combined") or {}).items():
        if not isinstance(combined, dict):
            continue
        member_ids = [activity_id for activity_id in combined.get("activityIds") or [] if activity_id in ACTIVITY_CONFIGS]
        combined_summaries[goal_id] = {
            "name": combined.get("name", goal_id),
            "activityIds": member_ids,
            **_progress_payload(
                strava_types_for(member_ids),
                combined.get("goal") or {},
                year_activities,
                now_utc=now,
                timezone_name=timezone_name,
            ),
        }

    return {"activities": activity_summaries, "combined": combined_summaries}
