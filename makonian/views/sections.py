from __future__ import annotations

from datetime import date
from typing import Callable

from makonian.content.catalog import Catalog, UnitMetadata
from makonian.progress.models import Preferences, word_key
from makonian.progress.tracker import ProgressTracker
from makonian.quiz.engine import NAMED_SCOPES, QUESTION_TYPES

PREVIEW_WORDS = 5
DEFINITION_EXCERPT = 80
SYNONYM_PREVIEW = 3


def build_section(
    name: str,
    *,
    catalog: Catalog,
    tracker: ProgressTracker,
    preferences: Preferences,
    today: date | None = None,
) -> dict:
    key = str(name or "").strip().lower()
    renderer = SECTION_RENDERERS.get(key)
    if renderer is None:
        raise KeyError(f"unknown section: {name}")
    payload = renderer(catalog, tracker, preferences, today)
    return {"section": key, "theme": preferences.theme, **payload}


def _home(catalog: Catalog, tracker: ProgressTracker, preferences: Preferences, today: date | None) -> dict:
    last_unit = tracker.progress.last_unit
    if catalog.get_unit(last_unit) is None:
        last_unit = 1
    return {
        "stats": tracker.stats(),
        "quick_actions": {
            "continue_unit": last_unit if catalog.unit_count else None,
            "quick_quiz": {"scope": "random", "question_type": "definition"},
            "difficult_words": len(tracker.difficult_words()),
        },
        "unit_count": catalog.unit_count,
        "total_words": catalog.total_words,
    }


def _units(catalog: Catalog, tracker: ProgressTracker, preferences: Preferences, today: date | None) -> dict:
    return {
        "view": preferences.unit_view,
        "units": [_unit_card(catalog, tracker, meta) for meta in catalog.metadata],
    }


def _quiz(catalog: Catalog, tracker: ProgressTracker, preferences: Preferences, today: date | None) -> dict:
    scopes = [{"value": scope, "label": _scope_label(scope)} for scope in NAMED_SCOPES]
    scopes.extend(
        {"value": str(meta.number), "label": f"Unit {meta.number}: {meta.title}"}
        for meta in catalog.metadata
    )
    return {
        "scopes": scopes,
        "question_types": list(QUESTION_TYPES),
        "difficult_available": len(tracker.difficult_words()),
    }


def _progress(catalog: Catalog, tracker: ProgressTracker, preferences: Preferences, today: date | None) -> dict:
    return {
        "overall": tracker.overall(),
        "stats": tracker.stats(),
        "activity": tracker.activity_week(today),
        "difficult_words": tracker.difficult_words(),
        "units": [
            {"number": meta.number, "title": meta.title, "percentage": tracker.unit_percentage(meta.number)}
            for meta in catalog.metadata
        ],
    }


SECTION_RENDERERS: dict[str, Callable[[Catalog, ProgressTracker, Preferences, date | None], dict]] = {
    "home": _home,
    "units": _units,
    "quiz": _quiz,
    "progress": _progress,
}


def unit_detail(unit: int, *, catalog: Catalog, tracker: ProgressTracker) -> dict | None:
    meta = catalog.get_metadata(unit)
    words = catalog.get_unit(unit)
    if meta is None or words is None:
        return None

    rows = []
    for index, entry in enumerate(words):
        definition = entry.definition
        if len(definition) > DEFINITION_EXCERPT:
            definition = definition[:DEFINITION_EXCERPT] + "..."
        rows.append(
            {
                "key": word_key(unit, index),
                "index": index,
                "word": entry.word,
                "status": tracker.status_of(unit, index),
                "definition_excerpt": definition,
                "synonyms": list(entry.synonyms[:SYNONYM_PREVIEW]),
            }
        )
    return {
        "unit": meta.to_dict(),
        "title": f"Unit {meta.number}: {meta.title}",
        "percentage": tracker.unit_percentage(unit),
        "words": rows,
    }


def word_detail(unit: int, index: int, *, catalog: Catalog, tracker: ProgressTracker) -> dict | None:
    entry = catalog.get_word(unit, index)
    if entry is None:
        return None
    count = len(catalog.get_unit(unit) or ())
    return {
        "key": word_key(unit, index),
        "unit": unit,
        "index": index,
        **entry.to_dict(),
        "status": tracker.status_of(unit, index),
        "favorite": tracker.is_favorite(unit, index),
        "position": {"current": index + 1, "total": count},
        "previous_index": index - 1 if index > 0 else None,
        "next_index": index + 1 if index + 1 < count else None,
    }


def _unit_card(catalog: Catalog, tracker: ProgressTracker, meta: UnitMetadata) -> dict:
    words = catalog.get_unit(meta.number) or ()
    return {
        **meta.to_dict(),
        "percentage": tracker.unit_percentage(meta.number),
        "word_count": len(words),
        "preview": [entry.word for entry in words[:PREVIEW_WORDS]],
    }


def _scope_label(scope: str) -> str:
    return {
        "random": "Random Words",
        "all": "All Words",
        "difficult": "Difficult Words",
    }[scope]
