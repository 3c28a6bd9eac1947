from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import makonian.app as app_module
from makonian.config import QuizSettings
from makonian.content.catalog import Catalog, UnitMetadata, WordEntry
from makonian.progress.tracker import ProgressTracker
from makonian.quiz.engine import QuizEngine
from makonian.storage.store import KeyValueStore


def _entry(word: str, synonyms: tuple[str, ...] = ()) -> WordEntry:
    return WordEntry(
        word=word,
        definition=f"definition of {word}",
        synonyms=synonyms or (f"{word}-syn-a", f"{word}-syn-b"),
        example=f"An example with {word}.",
    )


@pytest.fixture()
def small_catalog():
    units = [
        [_entry(w) for w in ("alpha", "bravo", "charlie", "delta", "echo", "foxtrot", "golf", "hotel", "india", "juliet")],
        [_entry("swift", ("quick", "fast", "rapid")), _entry("vivid"), _entry("timid"), _entry("placid")],
        [],
    ]
    metadata = [
        UnitMetadata(number=1, title="Phonetics", description="Ten words", difficulty="easy"),
        UnitMetadata(number=2, title="Adjectives", description="Four words", difficulty="medium"),
        UnitMetadata(number=3, title="Empty", description="No words yet", difficulty="hard"),
    ]
    return Catalog(units, metadata)


@pytest.fixture()
def temp_store(tmp_path):
    store = KeyValueStore(tmp_path / "makonian_test.db")
    store.initialize()
    return store


@pytest.fixture()
def tracker(small_catalog, temp_store):
    return ProgressTracker(small_catalog, temp_store)


@pytest.fixture()
def rng():
    return random.Random(20260212)


@pytest.fixture()
def engine(small_catalog, tracker, rng):
    return QuizEngine(small_catalog, tracker, settings=QuizSettings(session_length=15, advance_delay_ms=1500), rng=rng)


@pytest.fixture()
def client(small_catalog, temp_store, tracker, engine, monkeypatch):
    monkeypatch.setattr(app_module, "catalog", small_catalog)
    monkeypatch.setattr(app_module, "store", temp_store)
    monkeypatch.setattr(app_module, "tracker", tracker)
    monkeypatch.setattr(app_module, "quiz_engine", engine)
    with TestClient(app_module.app) as c:
        yield c
