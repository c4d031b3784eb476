from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from dotenv import load_dotenv


load_dotenv()

logger = logging.getLogger(__name__)

EnvGetter = Callable[[str], str | None]

STORAGE_BACKENDS = {"sqlite", "json"}
DEFAULT_HISTORY_START = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _str_env(*names: str, default: str = "", getenv: EnvGetter = os.getenv) -> str:
    for name in names:
        value = getenv(name)
        if value is not None:
            return value.strip()
    return default


def _optional_str_env(*names: str, getenv: EnvGetter = os.getenv) -> str | None:
    value = _str_env(*names, default="", getenv=getenv)
    return value or None


def _choice_env(name: str, choices: set[str], default: str, *, getenv: EnvGetter = os.getenv) -> str:
    value = _str_env(name, default=default, getenv=getenv).lower()
    if value in choices:
        return value
    logger.warning("Invalid %s '%s'; using '%s'.", name, value, default)
    return default


def _week_start_env(getenv: EnvGetter = os.getenv) -> str:
    normalized = _str_env("WEEK_START", default="monday", getenv=getenv).lower()
    if normalized in {"sunday", "sun"}:
        return "sunday"
    return "monday"


def _history_start_env(getenv: EnvGetter = os.getenv) -> datetime:
    raw = _str_env("HISTORY_START_DATE", getenv=getenv)
    if not raw:
        return DEFAULT_HISTORY_START
    try:
        return datetime.strptime(raw, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        logger.warning("Invalid HISTORY_START_DATE '%s'; expected YYYY-MM-DD.", raw)
        return DEFAULT_HISTORY_START


@dataclass(frozen=True)
class Settings:
    state_dir: Path
    storage_backend: str
    config_db_file: Path
    activities_file: Path | None

    strava_access_token: str | None
    history_start: datetime

    timezone: str
    week_start: str
    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        state_dir = Path(os.getenv("STATE_DIR", "state")).resolve()
        config_db_file = state_dir / _str_env("CONFIG_DB_FILE", default="trackboard.db")
        activities_raw = _optional_str_env("ACTIVITIES_FILE")

        return cls(
            state_dir=state_dir,
            storage_backend=_choice_env("STORAGE_BACKEND", STORAGE_BACKENDS, "sqlite"),
            config_db_file=config_db_file,
            activities_file=Path(activities_raw).resolve() if activities_raw else None,
            strava_access_token=_optional_str_env("STRAVA_ACCESS_TOKEN", "ACCESS_TOKEN"),
            history_start=_history_start_env(),
            timezone=_str_env("TIMEZONE", "TZ", default="UTC") or "UTC",
            week_start=_week_start_env(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def ensure_state_paths(self) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
