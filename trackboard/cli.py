from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from .activity_records import ActivityRecord, load_activities_file
from .config import Settings
from .dashboard_config import DashboardConfigStore, NotFoundError
from .dashboard_summary import build_dashboard_summary, build_goals_summary
from .goals_config import GoalsConfigStore
from .stat_modules.activity_totals import METRICS
from .stat_modules.time_frames import TimeFrame
from .storage import open_key_value_store
from .strava_client import fetch_activity_records


logger = logging.getLogger(__name__)


def _load_activities(args: argparse.Namespace, settings: Settings) -> list[ActivityRecord]:
    activities_file = args.activities_file or settings.activities_file
    if activities_file is not None:
        return load_activities_file(Path(activities_file))
    return fetch_activity_records(settings)


def _parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise argparse.ArgumentTypeError(f"expected true/false, got {value!r}")


def _goal_from_args(args: argparse.Namespace) -> dict[str, float]:
    return {metric: getattr(args, metric) for metric in METRICS if getattr(args, metric) is not None}


def _time_frame_from_args(args: argparse.Namespace) -> Any:
    if args.start is None and args.end is None:
        return args.time_frame
    if args.start is None or args.end is None:
        raise ValueError("A custom time frame needs both --start and --end.")
    if args.time_frame is not None:
        raise ValueError("Use either --time-frame or --start/--end, not both.")
    return TimeFrame.custom(args.start, args.end).to_json()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trackboard", description="Activity dashboard cards and yearly goals.")
    parser.add_argument("--activities-file", type=Path, help="JSON list of activities instead of fetching from Strava.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("cards", help="Summarize every visible dashboard card.")

    add_card = subparsers.add_parser("add-card", help="Add a dashboard card.")
    add_card.add_argument("--title", required=True)
    add_card.add_argument("--type", dest="card_type", default="activity")
    add_card.add_argument("--activity-type", dest="activity_types", action="append", required=True)
    add_card.add_argument("--time-frame")
    add_card.add_argument("--start", help="First day (or instant) of a custom time frame.")
    add_card.add_argument("--end", help="Last day (or end instant) of a custom time frame.")
    add_card.add_argument("--metric", choices=METRICS, default="distance")
    add_card.add_argument("--goal", type=float)
    add_card.add_argument("--hidden", action="store_true")

    update_card = subparsers.add_parser("update-card", help="Change fields of a dashboard card.")
    update_card.add_argument("card_id")
    update_card.add_argument("--title")
    update_card.add_argument("--activity-type", dest="activity_types", action="append")
    update_card.add_argument("--time-frame")
    update_card.add_argument("--start")
    update_card.add_argument("--end")
    update_card.add_argument("--metric", choices=METRICS)
    update_card.add_argument("--goal", type=float)
    update_card.add_argument("--visible", type=_parse_bool)
    update_card.add_argument("--position", type=int)

    delete_card = subparsers.add_parser("delete-card", help="Remove a dashboard card.")
    delete_card.add_argument("card_id")

    subparsers.add_parser("goals", help="Year-to-date progress against yearly goals.")

    set_goal = subparsers.add_parser("set-goal", help="Set the yearly goal for an activity.")
    set_goal.add_argument("activity_id")
    for metric in METRICS:
        set_goal.add_argument(f"--{metric}", type=float)
    set_goal.add_argument("--visible", type=_parse_bool)

    return parser


def run(args: argparse.Namespace, settings: Settings) -> Any:
    kv = open_key_value_store(settings)
    dashboard = DashboardConfigStore(kv)
    goals_store = GoalsConfigStore(kv)

    if args.command == "cards":
        return build_dashboard_summary(
            dashboard,
            _load_activities(args, settings),
            timezone_name=settings.timezone,
            week_start=settings.week_start,
        )

    if args.command == "add-card":
        card: dict[str, Any] = {
            "type": args.card_type,
            "title": args.title,
            "activityTypes": args.activity_types,
            "timeFrame": _time_frame_from_args(args) or "week",
            "metric": args.metric,
            "visible": not args.hidden,
        }
        if args.goal is not None:
            card["goal"] = args.goal
        return {"id": dashboard.add_card(card)}

    if args.command == "update-card":
        candidates = {
            "title": args.title,
            "activityTypes": args.activity_types,
            "timeFrame": _time_frame_from_args(args),
            "metric": args.metric,
            "goal": args.goal,
            "visible": args.visible,
            "position": args.position,
        }
        updates = {key: value for key, value in candidates.items() if value is not None}
        return dashboard.update_card(args.card_id, updates)

    if args.command == "delete-card":
        dashboard.delete_card(args.card_id)
        return {"deleted": args.card_id}

    if args.command == "goals":
        return build_goals_summary(
            goals_store.get(),
            _load_activities(args, settings),
            timezone_name=settings.timezone,
        )

    if args.command == "set-goal":
        goal = _goal_from_args(args)
        if not goal and args.visible is None:
            raise ValueError("set-goal needs at least one metric or --visible.")
        if goal:
            goals_store.set_activity_goal(args.activity_id, goal)
        if args.visible is not None:
            goals_store.set_visibility(args.activity_id, args.visible)
        return goals_store.get()

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    settings.ensure_state_paths()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        result = run(args, settings)
    except NotFoundError as exc:
        logger.error("%s", exc)
        return 1
    except ValueError as exc:
        logger.error("Invalid input: %s", exc)
        return 2

    json.dump(result, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
