from __future__ import annotations

import math
from dataclasses import dataclass, field

WORD_STATUSES = ("new", "difficult", "mastered")
DEFAULT_STATUS = "new"
UNIT_VIEWS = ("grid", "list")
THEMES = ("light", "dark")


def word_key(unit: int, index: int) -> str:
    return f"{unit}-{index}"


def parse_word_key(key: str) -> tuple[int, int] | None:
    unit_part, sep, index_part = str(key or "").strip().partition("-")
    if not sep or not unit_part.isdigit() or not index_part.isdigit():
        return None
    return int(unit_part), int(index_part)


def normalize_status(value: object) -> str:
    status = str(value or "").strip().lower()
    if status not in WORD_STATUSES:
        raise ValueError(f"invalid status: {value!r}")
    return status


@dataclass
class UnitProgress:
    mastered: int = 0
    completed: bool = False


@dataclass
class UserProgress:
    word_progress: dict[str, str] = field(default_factory=dict)
    unit_progress: dict[int, UnitProgress] = field(default_factory=dict)
    favorites: list[str] = field(default_factory=list)
    quiz_attempts: int = 0
    average_score: float = 0.0
    streak: int = 0
    last_study_date: str | None = None
    daily_activity: dict[str, int] = field(default_factory=dict)
    last_unit: int = 1

    def to_dict(self) -> dict:
        return {
            "word_progress": dict(self.word_progress),
            "unit_progress": {
                str(unit): {"mastered": item.mastered, "completed": item.completed}
                for unit, item in self.unit_progress.items()
            },
            "favorites": list(self.favorites),
            "quiz_attempts": self.quiz_attempts,
            "average_score": self.average_score,
            "streak": self.streak,
            "last_study_date": self.last_study_date,
            "daily_activity": dict(self.daily_activity),
            "last_unit": self.last_unit,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserProgress":
        if not isinstance(data, dict):
            raise ValueError("progress payload must be an object")

        word_progress = {
            str(key): normalize_status(status)
            for key, status in (data.get("word_progress") or {}).items()
        }
        unit_progress = {
            int(unit): UnitProgress(
                mastered=int(item.get("mastered", 0)),
                completed=bool(item.get("completed", False)),
            )
            for unit, item in (data.get("unit_progress") or {}).items()
        }
        favorites: list[str] = []
        for key in data.get("favorites") or []:
            if str(key) not in favorites:
                favorites.append(str(key))

        last_study_date = data.get("last_study_date")
        return cls(
            word_progress=word_progress,
            unit_progress=unit_progress,
            favorites=favorites,
            quiz_attempts=max(0, int(data.get("quiz_attempts", 0))),
            average_score=float(data.get("average_score", 0.0)),
            streak=max(0, int(data.get("streak", 0))),
            last_study_date=str(last_study_date) if last_study_date else None,
            daily_activity={str(day): int(count) for day, count in (data.get("daily_activity") or {}).items()},
            last_unit=max(1, int(data.get("last_unit", 1))),
        )


@dataclass
class Preferences:
    unit_view: str = "grid"
    theme: str = "light"

    def to_dict(self) -> dict:
        return {"unit_view": self.unit_view, "theme": self.theme}

    @classmethod
    def from_dict(cls, data: dict) -> "Preferences":
        if not isinstance(data, dict):
            raise ValueError("preferences payload must be an object")
        return cls(
            unit_view=normalize_unit_view(data.get("unit_view", "grid")),
            theme=normalize_theme(data.get("theme", "light")),
        )


def normalize_unit_view(value: object) -> str:
    view = str(value or "").strip().lower()
    if view not in UNIT_VIEWS:
        raise ValueError(f"invalid unit view: {value!r}")
    return view


def normalize_theme(value: object) -> str:
    theme = str(value or "").strip().lower()
    if theme not in THEMES:
        raise ValueError(f"invalid theme: {value!r}")
    return theme


def percent(part: int, whole: int) -> int:
    """Whole-number percentage, halves rounded up."""
    if whole <= 0:
        return 0
    return math.floor(part * 100 / whole + 0.5)
