from __future__ import annotations

from datetime import date

import pytest

from makonian.progress.models import UnitProgress, UserProgress
from makonian.progress.tracker import ProgressTracker


def test_set_status_twice_keeps_mastered_count(tracker):
    first = tracker.set_word_status(1, 0, "mastered")
    second = tracker.set_word_status(1, 0, "mastered")

    assert first.mastered == 1
    assert second.mastered == 1
    assert tracker.progress.unit_progress[1] == UnitProgress(mastered=1, completed=False)


def test_unit_completion_follows_mastered_count(tracker):
    for index in range(10):
        tracker.set_word_status(1, index, "mastered")

    assert tracker.progress.unit_progress[1] == UnitProgress(mastered=10, completed=True)
    assert tracker.unit_percentage(1) == 100

    summary = tracker.set_word_status(1, 4, "difficult")

    assert summary.mastered == 9
    assert summary.completed is False
    assert tracker.unit_percentage(1) == 90
    assert tracker.stats()["completed_units"] == 0


def test_status_changes_in_other_units_do_not_leak(tracker):
    tracker.set_word_status(1, 1, "mastered")
    tracker.set_word_status(2, 1, "mastered")

    assert tracker.progress.unit_progress[1].mastered == 1
    assert tracker.progress.unit_progress[2].mastered == 1


def test_missing_targets_are_ignored(tracker):
    assert tracker.set_word_status(9, 0, "mastered") is None
    assert tracker.set_word_status(1, 40, "mastered") is None
    assert tracker.set_word_status(3, 0, "mastered") is None
    assert tracker.progress.word_progress == {}


def test_invalid_status_is_rejected(tracker):
    with pytest.raises(ValueError):
        tracker.set_word_status(1, 0, "forgotten")


def test_running_average_and_attempts(tracker):
    tracker.record_quiz_result(80, today=date(2026, 3, 1))
    tracker.record_quiz_result(60, today=date(2026, 3, 1))

    assert tracker.progress.average_score == 70
    assert tracker.progress.quiz_attempts == 2


def test_streak_counts_distinct_days(tracker):
    tracker.record_quiz_result(100, today=date(2026, 3, 1))
    tracker.record_quiz_result(50, today=date(2026, 3, 1))
    tracker.record_quiz_result(90, today=date(2026, 3, 3))

    assert tracker.progress.streak == 2
    assert tracker.progress.last_study_date == "2026-03-03"


def test_toggle_favorite_is_symmetric(tracker):
    assert tracker.toggle_favorite("2-1") is True
    assert tracker.is_favorite(2, 1)
    assert tracker.toggle_favorite("2-1") is False
    assert tracker.progress.favorites == []


def test_toggle_favorite_ignores_unknown_keys(tracker):
    assert tracker.toggle_favorite("7-0") is None
    assert tracker.toggle_favorite("garbage") is None
    assert tracker.progress.favorites == []


def test_mutations_are_persisted(small_catalog, temp_store, tracker):
    tracker.set_word_status(2, 3, "difficult")
    tracker.toggle_favorite("1-0")
    tracker.open_unit(2)

    restored = ProgressTracker(small_catalog, temp_store)

    assert restored.status_of(2, 3) == "difficult"
    assert restored.is_favorite(1, 0)
    assert restored.progress.last_unit == 2


def test_overall_and_difficult_words(tracker):
    tracker.set_word_status(1, 0, "mastered")
    tracker.set_word_status(2, 0, "difficult")

    overall = tracker.overall()
    assert overall == {"total_words": 14, "mastered_words": 1, "percentage": 7}
    assert tracker.difficult_words() == [{"key": "2-0", "unit": 2, "index": 0, "word": "swift"}]


def test_activity_week_is_oldest_first(tracker):
    tracker.record_quiz_result(100, answered=5, today=date(2026, 3, 7))

    week = tracker.activity_week(today=date(2026, 3, 7))

    assert [day["date"] for day in week] == [f"2026-03-0{d}" for d in range(1, 8)]
    assert week[-1]["count"] == 5
    assert sum(day["count"] for day in week) == 5


def test_progress_dict_round_trip():
    progress = UserProgress(
        word_progress={"1-0": "mastered", "2-3": "difficult"},
        unit_progress={1: UnitProgress(mastered=1, completed=False), 2: UnitProgress(mastered=0, completed=False)},
        favorites=["1-0"],
        quiz_attempts=3,
        average_score=71.5,
        streak=2,
        last_study_date="2026-03-01",
        daily_activity={"2026-03-01": 15},
        last_unit=2,
    )

    assert UserProgress.from_dict(progress.to_dict()) == progress


def test_progress_from_dict_rejects_bad_status():
    with pytest.raises(ValueError):
        UserProgress.from_dict({"word_progress": {"1-0": "legendary"}})


def test_stale_unit_progress_is_recomputed_on_load(small_catalog, temp_store):
    stale = UserProgress(
        word_progress={"1-0": "mastered", "1-1": "mastered", "2-0": "difficult"},
        unit_progress={
            1: UnitProgress(mastered=10, completed=True),
            2: UnitProgress(mastered=4, completed=True),
            9: UnitProgress(mastered=3, completed=True),
        },
    )
    temp_store.save_progress(stale)

    tracker = ProgressTracker(small_catalog, temp_store)

    assert tracker.progress.unit_progress == {
        1: UnitProgress(mastered=2, completed=False),
        2: UnitProgress(mastered=0, completed=False),
    }
    assert tracker.stats()["completed_units"] == 0
    assert tracker.unit_percentage(1) == 20


def test_reload_recomputes_unit_progress(small_catalog, temp_store, tracker):
    stored = UserProgress(
        word_progress={f"2-{i}": "mastered" for i in range(4)},
        unit_progress={2: UnitProgress(mastered=1, completed=False)},
    )
    temp_store.save_progress(stored)

    tracker.reload()

    assert tracker.progress.unit_progress[2] == UnitProgress(mastered=4, completed=True)
    assert tracker.stats()["completed_units"] == 1


def test_empty_units_are_not_counted_as_completed(tracker):
    assert 3 not in tracker.progress.unit_progress
    assert tracker.unit_percentage(3) == 0
    assert tracker.stats()["completed_units"] == 0
