from __future__ import annotations

from makonian.config import PREFERENCES_KEY, PROGRESS_KEY
from makonian.progress.models import Preferences, UnitProgress, UserProgress


def test_missing_keys_give_defaults(temp_store):
    assert temp_store.load_progress() == UserProgress()
    assert temp_store.load_preferences() == Preferences()


def test_progress_survives_store_round_trip(temp_store):
    progress = UserProgress(
        word_progress={"1-2": "mastered"},
        unit_progress={1: UnitProgress(mastered=1, completed=False)},
        favorites=["1-2", "2-0"],
        quiz_attempts=2,
        average_score=70.0,
        streak=1,
        last_study_date="2026-02-12",
        daily_activity={"2026-02-12": 30},
        last_unit=1,
    )

    temp_store.save_progress(progress)

    assert temp_store.load_progress() == progress


def test_last_write_wins(temp_store):
    temp_store.save_progress(UserProgress(quiz_attempts=1))
    temp_store.save_progress(UserProgress(quiz_attempts=4))

    assert temp_store.load_progress().quiz_attempts == 4


def test_malformed_progress_falls_back_to_defaults(temp_store):
    temp_store.set_text(PROGRESS_KEY, "{not json")
    assert temp_store.load_progress() == UserProgress()

    temp_store.set_text(PROGRESS_KEY, '["a", "list"]')
    assert temp_store.load_progress() == UserProgress()

    temp_store.set_text(PROGRESS_KEY, '{"unit_progress": {"1": 5}}')
    assert temp_store.load_progress() == UserProgress()


def test_preferences_round_trip_and_fallback(temp_store):
    temp_store.save_preferences(Preferences(unit_view="list", theme="dark"))
    assert temp_store.load_preferences() == Preferences(unit_view="list", theme="dark")

    temp_store.set_text(PREFERENCES_KEY, '{"unit_view": "carousel"}')
    assert temp_store.load_preferences() == Preferences()
