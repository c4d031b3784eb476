from __future__ import annotations

import copy
import logging
import time
import uuid
from typing import Any, Callable, Iterable

from .activity_catalog import LEGACY_ACTIVITY_IDS
from .numeric_utils import as_float
from .stat_modules.activity_totals import METRICS
from .storage import YEARLY_GOALS_KEY, KeyValueStore, read_document, write_document


logger = logging.getLogger(__name__)

GOALS_SECTIONS = ("activities", "visibility", "combined")


def empty_goals() -> dict[str, Any]:
    return {"activities": {}, "visibility": {}, "combined": {}}


def is_legacy_goals(document: dict[str, Any]) -> bool:
    if any(key in document for key in LEGACY_ACTIVITY_IDS):
        return True
    visibility = document.get("visibility")
    return isinstance(visibility, dict) and any(key in visibility for key in LEGACY_ACTIVITY_IDS)


def migrate_goals(document: Any) -> dict[str, Any]:
    """Return ``document`` in the activity-keyed goals shape.

    Legacy ``rides``/``runs``/``swims`` entries move to ``cycling``,
    ``running`` and ``swimming``. Categories the legacy document did not set
    stay absent. Entries already present in the current shape win over
    their legacy counterparts. Unrecognised top-level keys are kept.
    """
    if not isinstance(document, dict):
        return empty_goals()

    migrated: dict[str, Any] = {
        key: copy.deepcopy(value)
        for key, value in document.items()
        if key not in LEGACY_ACTIVITY_IDS and key not in GOALS_SECTIONS
    }
    for section in GOALS_SECTIONS:
        value = document.get(section)
        migrated[section] = copy.deepcopy(value) if isinstance(value, dict) else {}

    activities = migrated["activities"]
    visibility = migrated["visibility"]
    for legacy_key, activity_id in LEGACY_ACTIVITY_IDS.items():
        legacy_goal = document.get(legacy_key)
        if isinstance(legacy_goal, dict):
            activities.setdefault(activity_id, copy.deepcopy(legacy_goal))
        if legacy_key in visibility:
            legacy_visible = visibility.pop(legacy_key)
            visibility.setdefault(activity_id, bool(legacy_visible))
    return migrated


def _clean_goal(goal: dict[str, Any]) -> dict[str, float]:
    cleaned: dict[str, float] = {}
    for metric in METRICS:
        value = as_float(goal.get(metric))
        if value is not None:
            cleaned[metric] = value
    return cleaned


class GoalsConfigStore:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = YEARLY_GOALS_KEY,
        clock: Callable[[], int] | None = None,
    ):
        self.store = store
        self.key = key
        self.clock = clock or (lambda: int(time.time() * 1000))

    def get(self) -> dict[str, Any]:
        document = read_document(self.store, self.key)
        if document is None:
            return empty_goals()

        if is_legacy_goals(document):
            goals = migrate_goals(document)
            self.save(goals)
            logger.info("Migrated legacy yearly goals to activity-keyed format.")
            return goals
        return migrate_goals(document)

    def save(self, goals: dict[str, Any]) -> None:
        write_document(self.store, self.key, goals)

    def clear(self) -> None:
        self.store.delete(self.key)

    def set_activity_goal(self, activity_id: str, goal: dict[str, Any] | None) -> dict[str, Any]:
        goals = self.get()
        cleaned = _clean_goal(goal or {})
        if cleaned:
            goals["activities"][activity_id] = cleaned
        else:
            goals["activities"].pop(activity_id, None)
        self.save(goals)
        return goals

    def set_visibility(self, activity_id: str, visible: bool) -> dict[str, Any]:
        goals = self.get()
        goals["visibility"][activity_id] = bool(visible)
        self.save(goals)
        return goals

    def save_combined_goal(
        self,
        name: str,
        activity_ids: Iterable[str],
        goal: dict[str, Any],
        *,
        goal_id: str | None = None,
    ) -> str:
        name = str(name or "").strip()
        member_ids = list(dict.fromkeys(str(activity_id) for activity_id in activity_ids))
        if not name or not member_ids:
            raise ValueError("Combined goals need a name and at least one activity.")

        goals = self.get()
        combined: dict[str, Any] = goals["combined"]
        if goal_id is None:
            goal_id = f"combined-{self.clock()}"
            if goal_id in combined:
                goal_id = f"{goal_id}-{uuid.uuid4().hex[:6]}"

        combined[goal_id] = {
            "id": goal_id,
            "name": name,
            "activityIds": member_ids,
            "goal": _clean_goal(goal),
        }
        self.save(goals)
        return goal_id

    def delete_combined_goal(self, goal_id: str) -> None:
        goals = self.get()
        if goals["combined"].pop(goal_id, None) is not None:
            self.save(goals)
