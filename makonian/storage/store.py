from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from makonian.config import DB_PATH, PREFERENCES_KEY, PROGRESS_KEY
from makonian.progress.models import Preferences, UserProgress

logger = logging.getLogger(__name__)


class KeyValueStore:
    """SQLite-backed replacement for the browser's key-value storage."""

    def __init__(self, db_path: Path = DB_PATH) -> None:
        self.db_path = db_path

    @contextmanager
    def connect(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def initialize(self) -> None:
        schema_path = Path(__file__).with_name("schema.sql")
        with self.connect() as conn:
            conn.executescript(schema_path.read_text(encoding="utf-8"))

    def get_text(self, key: str) -> str | None:
        with self.connect() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return None if row is None else str(row["value"])

    def set_text(self, key: str, value: str) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value),
            )

    def load_progress(self) -> UserProgress:
        raw = self.get_text(PROGRESS_KEY)
        if raw is None:
            return UserProgress()
        try:
            return UserProgress.from_dict(json.loads(raw))
        except (json.JSONDecodeError, ValueError, TypeError, AttributeError) as exc:
            logger.warning("Stored progress is malformed, falling back to defaults: %s", exc)
            return UserProgress()

    def save_progress(self, progress: UserProgress) -> None:
        self.set_text(PROGRESS_KEY, _json_dumps(progress.to_dict()))

    def load_preferences(self) -> Preferences:
        raw = self.get_text(PREFERENCES_KEY)
        if raw is None:
            return Preferences()
        try:
            return Preferences.from_dict(json.loads(raw))
        except (json.JSONDecodeError, ValueError, TypeError) as exc:
            logger.warning("Stored preferences are malformed, falling back to defaults: %s", exc)
            return Preferences()

    def save_preferences(self, preferences: Preferences) -> None:
        self.set_text(PREFERENCES_KEY, _json_dumps(preferences.to_dict()))


def _json_dumps(value: object) -> str:
    return json.dumps(value, ensure_ascii=False)
