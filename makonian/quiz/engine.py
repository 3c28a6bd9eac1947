from __future__ import annotations

import logging
import random
import secrets
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Sequence, TypeVar

from makonian.config import QuizSettings
from makonian.content.catalog import Catalog, WordEntry
from makonian.progress.models import percent, word_key
from makonian.progress.tracker import ProgressTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUESTION_TYPES = ("definition", "synonym", "spelling")
NAMED_SCOPES = ("random", "all", "difficult")
DISTRACTOR_COUNT = 3
NO_SYNONYM = "No synonym"
NO_QUESTIONS_MESSAGE = "No words available for the selected quiz settings. Try a different unit or 'All Words'."

NOT_STARTED = "NOT_STARTED"
IN_PROGRESS = "IN_PROGRESS"
COMPLETE = "COMPLETE"

VOWELS = "aeiou"


class QuizError(Exception):
    pass


@dataclass(frozen=True)
class PoolWord:
    unit: int
    index: int
    entry: WordEntry

    @property
    def key(self) -> str:
        return word_key(self.unit, self.index)


@dataclass(frozen=True)
class Question:
    word: str
    question_type: str
    correct_answer: str
    options: tuple[str, ...]
    entry: WordEntry
    key: str = ""

    def to_dict(self) -> dict:
        return {
            "word": self.word,
            "type": self.question_type,
            "prompt": prompt_text(self),
            "options": list(self.options),
            "key": self.key,
        }


@dataclass(frozen=True)
class AnswerRecord:
    index: int
    selected: str
    correct: bool


@dataclass(frozen=True)
class AnswerOutcome:
    index: int
    correct: bool
    correct_options: tuple[str, ...]
    score: int
    answered: int
    next_index: int | None
    complete: bool
    percentage: int | None = None
    repeated: bool = False


def shuffle_array(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    rng = rng or random.Random()
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def normalize_question_type(value: object) -> str:
    question_type = str(value or "").strip().lower()
    if question_type not in QUESTION_TYPES:
        raise ValueError(f"unsupported question type: {value}")
    return question_type


def select_pool(
    catalog: Catalog,
    tracker: ProgressTracker,
    scope: str | int,
    *,
    rng: random.Random | None = None,
    limit: int | None = None,
) -> list[PoolWord]:
    every_word = [PoolWord(unit, index, entry) for unit, index, entry in catalog.iter_words()]
    normalized = str(scope).strip().lower()

    if normalized in ("random", "all"):
        pool = every_word
    elif normalized == "difficult":
        pool = [item for item in every_word if tracker.status_of(item.unit, item.index) == "difficult"]
        if not pool:
            pool = every_word
    elif normalized.isdigit():
        unit = int(normalized)
        pool = [item for item in every_word if item.unit == unit]
    else:
        pool = []

    pool = shuffle_array(pool, rng)
    if limit is not None:
        pool = pool[:limit]
    return pool


def build_question(
    word: PoolWord | WordEntry,
    question_type: str,
    *,
    catalog: Catalog,
    rng: random.Random | None = None,
) -> Question:
    rng = rng or random.Random()
    question_type = normalize_question_type(question_type)
    if isinstance(word, PoolWord):
        entry, key = word.entry, word.key
    else:
        entry, key = word, ""

    if question_type == "definition":
        correct = entry.definition
        options = [correct] + _draw_distractors(
            entry,
            catalog=catalog,
            rng=rng,
            pick=lambda other: other.definition,
            taken={correct},
        )
    elif question_type == "synonym":
        correct = entry.synonyms[0] if entry.synonyms else NO_SYNONYM
        options = [correct] + _draw_distractors(
            entry,
            catalog=catalog,
            rng=rng,
            pick=lambda other: other.synonyms[0] if other.synonyms else NO_SYNONYM,
            taken={correct, *entry.synonyms},
        )
    else:
        correct = entry.word
        options = [correct] + spelling_variations(entry.word, rng=rng)

    return Question(
        word=entry.word,
        question_type=question_type,
        correct_answer=correct,
        options=tuple(shuffle_array(options, rng)),
        entry=entry,
        key=key,
    )


def check_answer(question: Question, selected: str) -> bool:
    if question.question_type == "synonym":
        if not question.entry.synonyms:
            return selected == question.correct_answer
        return selected in question.entry.synonyms
    return selected == question.correct_answer


def correct_options(question: Question) -> tuple[str, ...]:
    return tuple(option for option in question.options if check_answer(question, option))


def prompt_text(question: Question) -> str:
    if question.question_type == "definition":
        return f'What is the definition of "{question.word}"?'
    if question.question_type == "synonym":
        return f'What is a synonym for "{question.word}"?'
    return f'Choose the correct spelling for the word defined as: "{question.entry.definition}"'


def spelling_variations(word: str, *, rng: random.Random | None = None, count: int = DISTRACTOR_COUNT) -> list[str]:
    """Plausible wrong spellings, distinct from ``word`` and from each other."""
    rng = rng or random.Random()
    lowered = word.lower()
    candidates: list[str] = []

    vowel_positions = [i for i, ch in enumerate(lowered) if ch in VOWELS]
    for pos in vowel_positions:
        replacement = rng.choice([v for v in VOWELS if v != lowered[pos]])
        candidates.append(word[:pos] + replacement + word[pos + 1 :])
    for pos in range(len(word) - 1):
        if word[pos] != word[pos + 1]:
            candidates.append(word[:pos] + word[pos + 1] + word[pos] + word[pos + 2 :])
    for pos in range(1, len(word)):
        if lowered[pos] not in VOWELS and lowered[pos] != lowered[pos - 1]:
            candidates.append(word[: pos + 1] + word[pos] + word[pos + 1 :])
    if len(word) > 3:
        candidates.append(word[:-1])
    candidates = shuffle_array(candidates, rng)
    candidates.extend(word + suffix for suffix in ("e", "s", "es", "ed", "ly"))
    candidates.append("un" + word)

    variations: list[str] = []
    seen = {lowered}
    for candidate in candidates:
        if not candidate or candidate.lower() in seen:
            continue
        seen.add(candidate.lower())
        variations.append(candidate)
        if len(variations) >= count:
            break
    return variations


def _draw_distractors(entry: WordEntry, *, catalog: Catalog, rng: random.Random, pick, taken: set[str]) -> list[str]:
    others = [other for other in catalog.all_words() if other.word != entry.word]
    distractors: list[str] = []
    seen = set(taken)
    for other in shuffle_array(others, rng):
        option = pick(other)
        if option in seen:
            continue
        seen.add(option)
        distractors.append(option)
        if len(distractors) >= DISTRACTOR_COUNT:
            break
    return distractors


@dataclass
class QuizSession:
    scope: str
    question_type: str
    questions: list[Question]
    session_id: str = field(default_factory=lambda: secrets.token_hex(8))
    state: str = NOT_STARTED
    current_index: int = 0
    score: int = 0
    answers: list[AnswerRecord] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def percentage(self) -> int:
        return percent(self.score, len(self.questions))

    @property
    def current_question(self) -> Question | None:
        if self.state != IN_PROGRESS:
            return None
        return self.questions[self.current_index]

    def start(self) -> bool:
        if self.state != NOT_STARTED or not self.questions:
            return False
        self.state = IN_PROGRESS
        self.current_index = 0
        return True

    def answer(self, index: int, selected: str) -> AnswerOutcome:
        if 0 <= index < len(self.answers):
            return self._outcome(self.answers[index], repeated=True)
        if self.state != IN_PROGRESS:
            raise QuizError(f"session is {self.state.lower()}")
        if index != self.current_index:
            raise QuizError(f"expected answer for question {self.current_index}, got {index}")

        question = self.questions[index]
        record = AnswerRecord(index=index, selected=selected, correct=check_answer(question, selected))
        self.answers.append(record)
        if record.correct:
            self.score += 1

        if index + 1 < len(self.questions):
            self.current_index = index + 1
        else:
            self.state = COMPLETE
        return self._outcome(record)

    def _outcome(self, record: AnswerRecord, *, repeated: bool = False) -> AnswerOutcome:
        complete = self.state == COMPLETE
        return AnswerOutcome(
            index=record.index,
            correct=record.correct,
            correct_options=correct_options(self.questions[record.index]),
            score=self.score,
            answered=len(self.answers),
            next_index=None if complete else self.current_index,
            complete=complete,
            percentage=self.percentage if complete else None,
            repeated=repeated,
        )

    def to_dict(self) -> dict:
        current = self.current_question
        return {
            "session_id": self.session_id,
            "scope": self.scope,
            "question_type": self.question_type,
            "state": self.state,
            "total": self.total,
            "index": self.current_index,
            "score": self.score,
            "answered": len(self.answers),
            "question": current.to_dict() if current else None,
            "percentage": self.percentage if self.state == COMPLETE else None,
        }


class QuizEngine:
    def __init__(
        self,
        catalog: Catalog,
        tracker: ProgressTracker,
        *,
        settings: QuizSettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.catalog = catalog
        self.tracker = tracker
        self.settings = settings or QuizSettings()
        self.rng = rng or random.Random()
        self._sessions: dict[str, QuizSession] = {}
        self._lock = threading.Lock()

    def start_session(self, scope: str | int, question_type: str) -> QuizSession | None:
        question_type = normalize_question_type(question_type)
        pool = select_pool(
            self.catalog,
            self.tracker,
            scope,
            rng=self.rng,
            limit=self.settings.session_length,
        )
        questions = [build_question(item, question_type, catalog=self.catalog, rng=self.rng) for item in pool]
        session = QuizSession(scope=str(scope).strip().lower(), question_type=question_type, questions=questions)
        if not session.start():
            logger.info("Refused quiz for scope=%s type=%s: empty pool", scope, question_type)
            return None

        with self._lock:
            self._sessions[session.session_id] = session
            self._evict()
        logger.info(
            "Started quiz %s: scope=%s type=%s questions=%d",
            session.session_id,
            session.scope,
            question_type,
            session.total,
        )
        return session

    def _evict(self) -> None:
        # Finished sessions go first, then the oldest in-progress ones.
        overflow = len(self._sessions) - self.settings.max_sessions
        if overflow <= 0:
            return
        finished = [sid for sid, item in self._sessions.items() if item.state == COMPLETE]
        others = [sid for sid, item in self._sessions.items() if item.state != COMPLETE]
        for session_id in (finished + others)[:overflow]:
            del self._sessions[session_id]
            logger.info("Evicted quiz %s", session_id)

    def get_session(self, session_id: str) -> QuizSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise QuizError(f"unknown quiz session: {session_id}")
        return session

    def submit_answer(self, session_id: str, index: int, selected: str, *, today: date | None = None) -> AnswerOutcome:
        session = self.get_session(session_id)
        with self._lock:
            outcome = session.answer(index, selected)
            if outcome.complete and not outcome.repeated:
                self.tracker.record_quiz_result(session.percentage, answered=session.total, today=today)
                logger.info(
                    "Completed quiz %s: %d%% (%d/%d)", session_id, session.percentage, session.score, session.total
                )
        return outcome
