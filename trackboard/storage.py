from __future__ import annotations

import json
import logging
import re
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol


logger = logging.getLogger(__name__)

DASHBOARD_CONFIG_KEY = "dashboard_config"
YEARLY_GOALS_KEY = "yearly_goals"

_SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class MemoryKeyValueStore:
    def __init__(self, initial: dict[str, str] | None = None):
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class JsonFileKeyValueStore:
    """One ``<key>.json`` file per key under ``directory``."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to read '%s' from %s: %s", key, path, exc)
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class SqliteKeyValueStore:
    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS config_kv (
                key TEXT PRIMARY KEY,
                value_json TEXT NOT NULL,
                updated_at_utc TEXT NOT NULL
            )
            """
        )
        return conn

    def get(self, key: str) -> str | None:
        try:
            conn = self._connect()
            try:
                row = conn.execute(
                    "SELECT value_json FROM config_kv WHERE key = ? LIMIT 1",
                    (key,),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            logger.warning("Failed to read '%s' from %s: %s", key, self.db_path, exc)
            return None
        if row is None:
            return None
        return str(row[0])

    def set(self, key: str, value: str) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO config_kv (key, value_json, updated_at_utc)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value_json = excluded.value_json,
                        updated_at_utc = excluded.updated_at_utc
                    """,
                    (key, value, _utc_now_iso()),
                )
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM config_kv WHERE key = ?", (key,))
        finally:
            conn.close()


def read_document(store: KeyValueStore, key: str) -> dict[str, Any] | None:
    """Decode the JSON object stored under ``key``.

    Absent, malformed and non-object documents all read as None.
    """
    raw = store.get(key)
    if raw is None:
        return None
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, TypeError, ValueError) as exc:
        logger.warning("Ignoring malformed '%s' document: %s", key, exc)
        return None
    if not isinstance(payload, dict):
        logger.warning("Ignoring '%s' document that is not a JSON object.", key)
        return None
    return payload


def write_document(store: KeyValueStore, key: str, payload: dict[str, Any]) -> None:
    store.set(key, json.dumps(payload))


def open_key_value_store(settings: Any) -> KeyValueStore:
    backend = str(getattr(settings, "storage_backend", "sqlite") or "sqlite").strip().lower()
    if backend == "json":
        return JsonFileKeyValueStore(settings.state_dir)
    return SqliteKeyValueStore(settings.config_db_file)
