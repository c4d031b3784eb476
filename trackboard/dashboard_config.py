from __future__ import annotations

import copy
import logging
import time
import uuid
from typing import Any, Callable

from .stat_modules.activity_totals import METRICS
from .stat_modules.time_frames import TimeFrame
from .storage import DASHBOARD_CONFIG_KEY, KeyValueStore, read_document, write_document


logger = logging.getLogger(__name__)

DASHBOARD_CONFIG_VERSION = 1
DEFAULT_CARD_TYPE = "activity"
CARD_SIZES = ("small", "medium", "large")
PROTECTED_CARD_FIELDS = ("id", "createdAt")

DEFAULT_PREFERENCES = {
    "defaultCardSize": "medium",
    "defaultTimeFrame": "week",
}


class NotFoundError(LookupError):
    pass


class CardIdCollisionError(RuntimeError):
    pass


def default_dashboard_config() -> dict[str, Any]:
    return {
        "version": DASHBOARD_CONFIG_VERSION,
        "cards": {},
        "layout": "grid",
        "preferences": dict(DEFAULT_PREFERENCES),
    }


def _now_ms() -> int:
    return int(time.time() * 1000)


def _default_card_id(card_type: str, now_ms: int) -> str:
    return f"{card_type}-{now_ms}-{uuid.uuid4().hex[:9]}"


def _dedupe(values: Any) -> list[str]:
    if isinstance(values, str):
        values = [values]
    seen: list[str] = []
    for value in values or []:
        text = str(value).strip()
        if text and text not in seen:
            seen.append(text)
    return seen


def _validate_card_fields(card: dict[str, Any]) -> None:
    if "metric" in card and card["metric"] not in METRICS:
        raise ValueError(f"Unknown metric {card['metric']!r}. Expected one of: {', '.join(METRICS)}.")
    if "timeFrame" in card:
        TimeFrame.parse(card["timeFrame"])
    if card.get("size") is not None and card["size"] not in CARD_SIZES:
        raise ValueError(f"Unknown card size {card['size']!r}. Expected one of: {', '.join(CARD_SIZES)}.")


class DashboardConfigStore:
    """Card layout for one dashboard, kept as a single JSON document.

    Every mutation reads the whole document, edits it in memory and writes
    it back. Fields this code does not know about are carried through.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = DASHBOARD_CONFIG_KEY,
        clock: Callable[[], int] | None = None,
        id_factory: Callable[[str, int], str] | None = None,
    ):
        self.store = store
        self.key = key
        self.clock = clock or _now_ms
        self.id_factory = id_factory or _default_card_id

    def get(self) -> dict[str, Any]:
        config = read_document(self.store, self.key)
        if config is None:
            return default_dashboard_config()

        if not isinstance(config.get("preferences"), dict):
            config["preferences"] = dict(DEFAULT_PREFERENCES)
        if not isinstance(config.get("cards"), dict):
            config["cards"] = {}
        return config

    def save(self, config: dict[str, Any]) -> None:
        write_document(self.store, self.key, config)

    def _new_card_id(self, card_type: str, cards: dict[str, Any], now_ms: int) -> str:
        for _attempt in range(2):
            card_id = self.id_factory(card_type, now_ms)
            if card_id and card_id not in cards:
                return card_id
            logger.warning("Generated card id %r collides with an existing card.", card_id)
        raise CardIdCollisionError(f"Could not generate a unique card id for type '{card_type}'.")

    def add_card(self, card: dict[str, Any]) -> str:
        fields = {key: value for key, value in card.items() if key not in {"id", "position", "createdAt", "updatedAt"}}
        fields.setdefault("type", DEFAULT_CARD_TYPE)
        fields.setdefault("visible", True)
        fields["activityTypes"] = _dedupe(fields.get("activityTypes"))
        if isinstance(fields.get("timeFrame"), TimeFrame):
            fields["timeFrame"] = fields["timeFrame"].to_json()
        _validate_card_fields(fields)

        config = self.get()
        cards: dict[str, Any] = config["cards"]
        now_ms = self.clock()
        card_id = self._new_card_id(str(fields["type"]), cards, now_ms)

        positions = [
            existing.get("position")
            for existing in cards.values()
            if isinstance(existing, dict)
            and isinstance(existing.get("position"), (int, float))
            and not isinstance(existing.get("position"), bool)
        ]
        max_position = max([0, *positions])

        cards[card_id] = {
            **fields,
            "id": card_id,
            "position": int(max_position) + 1,
            "createdAt": now_ms,
            "updatedAt": now_ms,
        }
        self.save(config)
        logger.info("Added dashboard card %s at position %s.", card_id, cards[card_id]["position"])
        return card_id

    def update_card(self, card_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        config = self.get()
        cards: dict[str, Any] = config["cards"]
        existing = cards.get(card_id)
        if not isinstance(existing, dict):
            raise NotFoundError(f"Card {card_id} not found")

        changes = {key: value for key, value in updates.items() if key not in PROTECTED_CARD_FIELDS}
        if "activityTypes" in changes:
            changes["activityTypes"] = _dedupe(changes["activityTypes"])
        if isinstance(changes.get("timeFrame"), TimeFrame):
            changes["timeFrame"] = changes["timeFrame"].to_json()
        _validate_card_fields(changes)

        updated = {**existing, **changes, "updatedAt": self.clock()}
        cards[card_id] = updated
        self.save(config)
        return copy.deepcopy(updated)

    def delete_card(self, card_id: str) -> None:
        config = self.get()
        if card_id not in config["cards"]:
            logger.debug("Delete of unknown card %s ignored.", card_id)
            return
        del config["cards"][card_id]
        self.save(config)

    def list_visible_cards(self) -> list[dict[str, Any]]:
        cards = [
            card
            for card in self.get()["cards"].values()
            if isinstance(card, dict) and card.get("visible") is True
        ]

        def _position(card: dict[str, Any]) -> float:
            position = card.get("position")
            if isinstance(position, (int, float)) and not isinstance(position, bool):
                return float(position)
            return float("inf")

        return sorted(cards, key=_position)

    def clear(self) -> None:
        self.store.delete(self.key)
