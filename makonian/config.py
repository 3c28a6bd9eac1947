from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"
EXPORTS_DIR = ARTIFACTS_DIR / "exports"
TEMPLATES_DIR = PROJECT_ROOT / "templates"
DB_PATH = PROJECT_ROOT / "makonian.db"
CATALOG_PATH = Path(os.getenv("MAKONIAN_CATALOG_PATH", str(Path(__file__).parent / "content" / "data" / "vocabulary.json")))

PROGRESS_KEY = "userProgress"
PREFERENCES_KEY = "preferences"


def _env_int(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer, using %d", name, raw, default)
        return default
    return max(minimum, value)


@dataclass(frozen=True)
class QuizSettings:
    session_length: int = field(default_factory=lambda: _env_int("MAKONIAN_QUIZ_LENGTH", 15, 1))
    advance_delay_ms: int = field(default_factory=lambda: _env_int("MAKONIAN_ADVANCE_DELAY_MS", 1500, 0))
    max_sessions: int = field(default_factory=lambda: _env_int("MAKONIAN_QUIZ_MAX_SESSIONS", 200, 1))


@dataclass(frozen=True)
class LoggingSettings:
    level: str = field(default_factory=lambda: os.getenv("MAKONIAN_LOG_LEVEL", "INFO").strip().upper() or "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def ensure_dirs() -> None:
    for path in [
        ARTIFACTS_DIR,
        EXPORTS_DIR,
    ]:
        path.mkdir(parents=True, exist_ok=True)
