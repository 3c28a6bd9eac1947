from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from makonian.api.schemas import (
    FavoriteToggleRequest,
    PreferencesUpdateRequest,
    QuizAnswerRequest,
    QuizStartRequest,
    WordStatusUpdateRequest,
)
from makonian.config import ARTIFACTS_DIR, TEMPLATES_DIR, QuizSettings, ensure_dirs
from makonian.content.catalog import load_catalog
from makonian.logging_config import setup_logging
from makonian.progress.models import UserProgress, normalize_theme, normalize_unit_view, word_key
from makonian.progress.tracker import ProgressTracker
from makonian.quiz.engine import NO_QUESTIONS_MESSAGE, QuizEngine, QuizError
from makonian.services.export import export_progress
from makonian.storage.store import KeyValueStore
from makonian.views.sections import build_section, unit_detail, word_detail

logger = logging.getLogger(__name__)

ensure_dirs()

quiz_settings = QuizSettings()
store = KeyValueStore()
catalog = load_catalog()
tracker = ProgressTracker(catalog, store, progress=UserProgress())
quiz_engine = QuizEngine(catalog, tracker, settings=quiz_settings)
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging()
    ensure_dirs()
    store.initialize()
    tracker.reload()
    logger.info("Serving %d units, %d words", catalog.unit_count, catalog.total_words)
    yield


app = FastAPI(title="Makonian Vocabulary", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/artifacts", StaticFiles(directory=str(ARTIFACTS_DIR)), name="artifacts")


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/", response_class=HTMLResponse)
def home(request: Request) -> HTMLResponse:
    preferences = store.load_preferences()
    section = build_section("home", catalog=catalog, tracker=tracker, preferences=preferences)
    return templates.TemplateResponse(request, "index.html", {"home": section, "units": catalog.metadata})


@app.get("/favicon.ico", include_in_schema=False)
def favicon() -> Response:
    svg = (
        "<svg xmlns='http://www.w3.org/2000/svg' viewBox='0 0 64 64'>"
        "<rect width='64' height='64' rx='14' fill='#8b5cf6'/>"
        "<text x='32' y='42' text-anchor='middle' font-size='34' fill='white' font-family='Arial'>M</text>"
        "</svg>"
    )
    return Response(content=svg, media_type="image/svg+xml")


@app.get("/api/sections/{section}")
def section(section: str) -> dict:
    try:
        payload = build_section(
            section,
            catalog=catalog,
            tracker=tracker,
            preferences=store.load_preferences(),
        )
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"unknown section: {section}") from exc
    return {"ok": True, **payload}


@app.get("/api/units/{unit}")
def unit(unit: int) -> dict:
    detail = unit_detail(unit, catalog=catalog, tracker=tracker)
    if detail is None:
        raise HTTPException(status_code=404, detail="unit not found")
    tracker.open_unit(unit)
    return {"ok": True, **detail}


@app.get("/api/units/{unit}/words/{index}")
def word(unit: int, index: int) -> dict:
    detail = word_detail(unit, index, catalog=catalog, tracker=tracker)
    if detail is None:
        raise HTTPException(status_code=404, detail="word not found")
    return {"ok": True, "word": detail}


@app.post("/api/units/{unit}/words/{index}/status")
def update_word_status(unit: int, index: int, req: WordStatusUpdateRequest) -> dict:
    try:
        summary = tracker.set_word_status(unit, index, req.status)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if summary is None:
        return {"ok": True, "changed": False}
    return {
        "ok": True,
        "changed": True,
        "key": word_key(unit, index),
        "status": tracker.status_of(unit, index),
        "unit_progress": {"mastered": summary.mastered, "completed": summary.completed},
        "percentage": tracker.unit_percentage(unit),
        "stats": tracker.stats(),
    }


@app.post("/api/favorites/toggle")
def toggle_favorite(req: FavoriteToggleRequest) -> dict:
    is_favorite = tracker.toggle_favorite(req.word_key)
    if is_favorite is None:
        return {"ok": True, "changed": False}
    return {"ok": True, "changed": True, "word_key": req.word_key, "favorite": is_favorite}


@app.get("/api/search")
def search(q: str = Query(default="")) -> dict:
    hits = catalog.search(q)
    return {
        "ok": True,
        "query": q,
        "items": [
            {
                "key": word_key(hit.unit, hit.index),
                "unit": hit.unit,
                "index": hit.index,
                "status": tracker.status_of(hit.unit, hit.index),
                **hit.entry.to_dict(),
            }
            for hit in hits
        ],
    }


@app.post("/api/quiz/start")
def quiz_start(req: QuizStartRequest) -> dict:
    try:
        session = quiz_engine.start_session(req.scope, req.question_type)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if session is None:
        return {"ok": False, "reason": "no_questions", "message": NO_QUESTIONS_MESSAGE}
    return {"ok": True, "advance_delay_ms": quiz_engine.settings.advance_delay_ms, **session.to_dict()}


@app.get("/api/quiz/{session_id}")
def quiz_state(session_id: str) -> dict:
    try:
        session = quiz_engine.get_session(session_id)
    except QuizError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"ok": True, **session.to_dict()}


@app.post("/api/quiz/{session_id}/answer")
def quiz_answer(session_id: str, req: QuizAnswerRequest) -> dict:
    try:
        session = quiz_engine.get_session(session_id)
    except QuizError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    try:
        outcome = quiz_engine.submit_answer(session_id, req.index, req.selected)
    except QuizError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    payload = {
        "ok": True,
        "correct": outcome.correct,
        "correct_options": list(outcome.correct_options),
        "score": outcome.score,
        "answered": outcome.answered,
        "total": session.total,
        "complete": outcome.complete,
        "repeated": outcome.repeated,
        "advance_delay_ms": quiz_engine.settings.advance_delay_ms,
    }
    if outcome.complete:
        payload["percentage"] = outcome.percentage
        payload["stats"] = tracker.stats()
    else:
        payload["next_question"] = session.questions[outcome.next_index].to_dict()
        payload["next_index"] = outcome.next_index
    return payload


@app.get("/api/progress")
def progress() -> dict:
    return {
        "ok": True,
        "progress": tracker.progress.to_dict(),
        "overall": tracker.overall(),
        "stats": tracker.stats(),
    }


@app.get("/api/progress/export")
def progress_export(fmt: str = Query(default="json")) -> dict:
    try:
        out = export_progress(tracker, catalog, fmt=fmt)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "ok": True,
        "url": "/artifacts/" + str(out.relative_to(ARTIFACTS_DIR)).replace("\\", "/"),
        "format": fmt.lower(),
    }


@app.get("/api/preferences")
def preferences() -> dict:
    return {"ok": True, "preferences": store.load_preferences().to_dict()}


@app.put("/api/preferences")
def update_preferences(req: PreferencesUpdateRequest) -> dict:
    current = store.load_preferences()
    try:
        if req.unit_view is not None:
            current.unit_view = normalize_unit_view(req.unit_view)
        if req.theme is not None:
            current.theme = normalize_theme(req.theme)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    store.save_preferences(current)
    return {"ok": True, "preferences": current.to_dict()}
