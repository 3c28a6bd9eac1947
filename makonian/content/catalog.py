from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from makonian.config import CATALOG_PATH

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")


@dataclass(frozen=True)
class WordEntry:
    word: str
    definition: str
    synonyms: tuple[str, ...] = ()
    example: str = ""

    def to_dict(self) -> dict:
        return {
            "word": self.word,
            "definition": self.definition,
            "synonyms": list(self.synonyms),
            "example": self.example,
        }


@dataclass(frozen=True)
class UnitMetadata:
    number: int
    title: str
    description: str
    difficulty: str

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "title": self.title,
            "description": self.description,
            "difficulty": self.difficulty,
        }


@dataclass(frozen=True)
class SearchHit:
    unit: int
    index: int
    entry: WordEntry


class Catalog:
    """Read-only vocabulary units with their parallel metadata.

    Unit numbers are 1-based; ``units[n - 1]`` holds the words of unit ``n``.
    """

    def __init__(self, units: Sequence[Sequence[WordEntry]], metadata: Sequence[UnitMetadata]) -> None:
        if len(units) != len(metadata):
            raise ValueError("units and metadata must be parallel")
        for position, meta in enumerate(metadata, start=1):
            if meta.number != position:
                raise ValueError(f"unit metadata out of order: expected {position}, got {meta.number}")
            if meta.difficulty not in DIFFICULTIES:
                raise ValueError(f"invalid difficulty for unit {meta.number}: {meta.difficulty}")
        self._units: tuple[tuple[WordEntry, ...], ...] = tuple(tuple(words) for words in units)
        self._metadata: tuple[UnitMetadata, ...] = tuple(metadata)

    @property
    def units(self) -> tuple[tuple[WordEntry, ...], ...]:
        return self._units

    @property
    def metadata(self) -> tuple[UnitMetadata, ...]:
        return self._metadata

    @property
    def unit_count(self) -> int:
        return len(self._units)

    @property
    def total_words(self) -> int:
        return sum(len(words) for words in self._units)

    def unit_numbers(self) -> list[int]:
        return [meta.number for meta in self._metadata]

    def get_unit(self, unit: int) -> tuple[WordEntry, ...] | None:
        if not isinstance(unit, int) or unit < 1 or unit > len(self._units):
            return None
        return self._units[unit - 1]

    def get_metadata(self, unit: int) -> UnitMetadata | None:
        if not isinstance(unit, int) or unit < 1 or unit > len(self._metadata):
            return None
        return self._metadata[unit - 1]

    def get_word(self, unit: int, index: int) -> WordEntry | None:
        words = self.get_unit(unit)
        if words is None or index < 0 or index >= len(words):
            return None
        return words[index]

    def iter_words(self) -> Iterator[tuple[int, int, WordEntry]]:
        for unit, words in enumerate(self._units, start=1):
            for index, entry in enumerate(words):
                yield unit, index, entry

    def all_words(self) -> list[WordEntry]:
        return [entry for _, _, entry in self.iter_words()]

    def search(self, query: str) -> list[SearchHit]:
        needle = (query or "").strip().lower()
        if not needle:
            return []
        hits: list[SearchHit] = []
        for unit, index, entry in self.iter_words():
            if (
                needle in entry.word.lower()
                or needle in entry.definition.lower()
                or any(needle in synonym.lower() for synonym in entry.synonyms)
            ):
                hits.append(SearchHit(unit=unit, index=index, entry=entry))
        return hits


def catalog_from_payload(payload: dict) -> Catalog:
    raw_units = payload.get("units")
    if not isinstance(raw_units, list):
        raise ValueError("catalog payload requires a 'units' list")

    units: list[list[WordEntry]] = []
    metadata: list[UnitMetadata] = []
    for raw in raw_units:
        metadata.append(
            UnitMetadata(
                number=int(raw["number"]),
                title=str(raw.get("title", "")).strip(),
                description=str(raw.get("description", "")).strip(),
                difficulty=str(raw.get("difficulty", "medium")).strip().lower(),
            )
        )
        units.append([_word_from_dict(item) for item in raw.get("words") or []])
    return Catalog(units, metadata)


def load_catalog(path: Path = CATALOG_PATH) -> Catalog:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    catalog = catalog_from_payload(payload)
    logger.info("Loaded catalog from %s: %d units, %d words", path, catalog.unit_count, catalog.total_words)
    return catalog


def _word_from_dict(item: dict) -> WordEntry:
    synonyms = tuple(str(s).strip() for s in (item.get("synonyms") or []) if str(s).strip())
    return WordEntry(
        word=str(item["word"]).strip(),
        definition=str(item.get("definition", "")).strip(),
        synonyms=synonyms,
        example=str(item.get("example", "")).strip(),
    )
