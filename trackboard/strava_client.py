from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import requests

from .activity_records import ActivityRecord, records_from_payloads
from .config import Settings


logger = logging.getLogger(__name__)

BASE_URL = "https://www.strava.com"
API_URL = f"{BASE_URL}/api/v3"
TIMEOUT_SECONDS = 30
MAX_ACTIVITY_PAGES = 60


class StravaClient:
    """Read-only activity source. The access token is obtained elsewhere."""

    def __init__(self, settings: Settings):
        self.access_token = settings.strava_access_token
        self.session = requests.Session()

    def _request(self, method: str, path: str, *, params: dict[str, Any] | None = None) -> requests.Response:
        if not self.access_token:
            raise ValueError("Missing required environment variable: STRAVA_ACCESS_TOKEN (or ACCESS_TOKEN)")

        response = self.session.request(
            method,
            f"{API_URL}{path}",
            headers={"Authorization": f"Bearer {self.access_token}"},
            params=params,
            timeout=TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        return response

    def get_activities_after(self, after_dt: datetime, per_page: int = 200) -> list[dict[str, Any]]:
        activities: list[dict[str, Any]] = []
        page = 1
        while page <= MAX_ACTIVITY_PAGES:
            response = self._request(
                "GET",
                "/athlete/activities",
                params={
                    "per_page": per_page,
                    "page": page,
                    "after": int(after_dt.timestamp()),
                },
            )
            page_items = response.json()
            if not page_items:
                break
            activities.extend(page_items)
            if len(page_items) < per_page:
                break
            page += 1
        else:
            logger.warning(
                "Strava activities pagination hit cap (%s pages, per_page=%s). Results may be truncated.",
                MAX_ACTIVITY_PAGES,
                per_page,
            )
        return activities


def fetch_activity_records(settings: Settings) -> list[ActivityRecord]:
    client = StravaClient(settings)
    payloads = client.get_activities_after(settings.history_start)
    records = records_from_payloads(payloads)
    logger.info("Fetched %s Strava activities (%s usable).", len(payloads), len(records))
    return records
