from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timedelta, timezone

from makonian.content.catalog import Catalog
from makonian.progress.models import (
    DEFAULT_STATUS,
    UnitProgress,
    UserProgress,
    normalize_status,
    parse_word_key,
    percent,
    word_key,
)
from makonian.storage.store import KeyValueStore

UTC = timezone.utc
logger = logging.getLogger(__name__)


class ProgressTracker:
    """Single source of truth for mastery state.

    Every mutation rewrites the whole record to the store. Unit aggregates are
    always recomputed from ``word_progress``.
    """

    def __init__(self, catalog: Catalog, store: KeyValueStore, progress: UserProgress | None = None) -> None:
        self.catalog = catalog
        self.store = store
        self._progress = progress if progress is not None else store.load_progress()
        self._lock = threading.Lock()
        self._recompute_units()

    @property
    def progress(self) -> UserProgress:
        return self._progress

    def reload(self) -> None:
        with self._lock:
            self._progress = self.store.load_progress()
            self._recompute_units()

    def status_of(self, unit: int, index: int) -> str:
        return self._progress.word_progress.get(word_key(unit, index), DEFAULT_STATUS)

    def set_word_status(self, unit: int, index: int, status: str) -> UnitProgress | None:
        normalized = normalize_status(status)
        words = self.catalog.get_unit(unit)
        if words is None or self.catalog.get_word(unit, index) is None:
            return None

        with self._lock:
            self._progress.word_progress[word_key(unit, index)] = normalized
            summary = self._recompute_unit(unit, len(words))
            self._save()
        return summary

    def toggle_favorite(self, key: str) -> bool | None:
        parsed = parse_word_key(key)
        if parsed is None or self.catalog.get_word(*parsed) is None:
            return None

        normalized_key = word_key(*parsed)
        with self._lock:
            favorites = self._progress.favorites
            if normalized_key in favorites:
                favorites.remove(normalized_key)
                is_favorite = False
            else:
                favorites.append(normalized_key)
                is_favorite = True
            self._save()
        return is_favorite

    def is_favorite(self, unit: int, index: int) -> bool:
        return word_key(unit, index) in self._progress.favorites

    def open_unit(self, unit: int) -> None:
        if self.catalog.get_unit(unit) is None:
            return
        with self._lock:
            if self._progress.last_unit != unit:
                self._progress.last_unit = unit
                self._save()

    def record_quiz_result(self, percentage: int, *, answered: int = 0, today: date | None = None) -> UserProgress:
        today = today or datetime.now(UTC).date()
        day = today.isoformat()

        with self._lock:
            progress = self._progress
            progress.quiz_attempts += 1
            attempts = progress.quiz_attempts
            progress.average_score = (progress.average_score * (attempts - 1) + percentage) / attempts

            if progress.last_study_date != day:
                progress.streak += 1
                progress.last_study_date = day

            if answered:
                progress.daily_activity[day] = progress.daily_activity.get(day, 0) + answered
            self._save()
        return progress

    def unit_percentage(self, unit: int) -> int:
        words = self.catalog.get_unit(unit)
        if not words:
            return 0
        summary = self._progress.unit_progress.get(unit)
        mastered = summary.mastered if summary else 0
        return percent(mastered, len(words))

    def overall(self) -> dict:
        total = self.catalog.total_words
        mastered = sum(
            1
            for unit, index, _ in self.catalog.iter_words()
            if self.status_of(unit, index) == "mastered"
        )
        return {
            "total_words": total,
            "mastered_words": mastered,
            "percentage": percent(mastered, total),
        }

    def difficult_words(self) -> list[dict]:
        return [
            {"key": word_key(unit, index), "unit": unit, "index": index, "word": entry.word}
            for unit, index, entry in self.catalog.iter_words()
            if self.status_of(unit, index) == "difficult"
        ]

    def stats(self) -> dict:
        progress = self._progress
        return {
            "completed_units": sum(1 for item in progress.unit_progress.values() if item.completed),
            "streak": progress.streak,
            "average_score": percent(progress.average_score or 0, 100),
            "quiz_attempts": progress.quiz_attempts,
            "favorites": len(progress.favorites),
        }

    def activity_week(self, today: date | None = None) -> list[dict]:
        today = today or datetime.now(UTC).date()
        days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
        return [
            {
                "date": day.isoformat(),
                "label": day.strftime("%a"),
                "count": self._progress.daily_activity.get(day.isoformat(), 0),
            }
            for day in days
        ]

    def _recompute_unit(self, unit: int, total_words: int) -> UnitProgress:
        prefix = f"{unit}-"
        mastered = sum(
            1
            for key, status in self._progress.word_progress.items()
            if key.startswith(prefix) and status == "mastered"
        )
        summary = UnitProgress(mastered=mastered, completed=mastered == total_words)
        self._progress.unit_progress[unit] = summary
        return summary

    def _recompute_units(self) -> None:
        # Stored aggregates are a cache; empty units are left out.
        self._progress.unit_progress = {}
        for unit in self.catalog.unit_numbers():
            words = self.catalog.get_unit(unit)
            if words:
                self._recompute_unit(unit, len(words))

    def _save(self) -> None:
        self.store.save_progress(self._progress)
