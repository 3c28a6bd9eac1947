from __future__ import annotations

import csv
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from makonian.config import EXPORTS_DIR
from makonian.content.catalog import Catalog
from makonian.progress.models import word_key
from makonian.progress.tracker import ProgressTracker

UTC = timezone.utc
EXPORT_FORMATS = ("json", "csv")
logger = logging.getLogger(__name__)


def build_export_payload(tracker: ProgressTracker, *, now: datetime | None = None) -> dict:
    now = now or datetime.now(UTC)
    overall = tracker.overall()
    return {
        "progress": tracker.progress.to_dict(),
        "export_date": now.isoformat(),
        "total_words": overall["total_words"],
        "mastered_words": overall["mastered_words"],
    }


def export_progress(
    tracker: ProgressTracker,
    catalog: Catalog,
    *,
    fmt: str = "json",
    now: datetime | None = None,
    out_dir: Path = EXPORTS_DIR,
) -> Path:
    fmt = fmt.strip().lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"unsupported export format: {fmt}")

    now = now or datetime.now(UTC)
    out_dir.mkdir(parents=True, exist_ok=True)
    out = out_dir / f"makonian-progress-{now.strftime('%Y-%m-%d')}.{fmt}"

    if fmt == "json":
        payload = build_export_payload(tracker, now=now)
        out.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    else:
        favorites = set(tracker.progress.favorites)
        with out.open("w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["key", "unit", "word", "status", "favorite", "definition", "synonyms"])
            for unit, index, entry in catalog.iter_words():
                key = word_key(unit, index)
                writer.writerow(
                    [
                        key,
                        unit,
                        entry.word,
                        tracker.status_of(unit, index),
                        "yes" if key in favorites else "",
                        entry.definition,
                        "|".join(entry.synonyms),
                    ]
                )

    logger.info("Exported progress to %s", out)
    return out
