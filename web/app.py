"""FastAPI backend for the Big Five quiz web interface."""

from __future__ import annotations

import logging
import os
import time
import uuid
from typing import Annotated, Any

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Path, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from bigfive.logging_config import setup_logging
from bigfive.models.catalog import SCALE_LABELS, TRAIT_NAMES, Trait, all_questions
from bigfive.scoring.scorer import InvalidAnswerError
from bigfive.session.quiz_session import QuizSession
from bigfive.session.store import SessionNotFoundError, SessionStore
from bigfive.settings import SCALE_MAX, SCALE_MIN
from bigfive.workflow import build_pipeline

load_dotenv()
setup_logging()

# Hosting dashboards sometimes store env values with trailing whitespace.
for key in ("OPENAI_API_KEY", "OPENAI_CHAT_MODEL"):
    value = os.environ.get(key)
    if value:
        os.environ[key] = value.strip()

logger = logging.getLogger(__name__)

app = FastAPI(title="AI Big Five Personality Quiz", version="0.1.0")
store = SessionStore(pipeline=build_pipeline())

SessionId = Annotated[str, Path(min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_-]+$")]


# ── Request logging middleware ────────────────────────────────────────────

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with method, path, and response time."""
    request_id = uuid.uuid4().hex[:8]
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s -> %s (%.0fms) [rid=%s]",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
        request_id,
    )
    response.headers["X-Request-ID"] = request_id
    return response


# ── Health check ──────────────────────────────────────────────────────────

@app.get("/health")
def health_check() -> JSONResponse:
    """Lightweight health check for deployment platforms."""
    return JSONResponse({"status": "ok"})


# ── Schemas ───────────────────────────────────────────────────────────────

class QuestionOut(BaseModel):
    id: int
    text: str
    trait: str


class CatalogResponse(BaseModel):
    questions: list[QuestionOut]
    traits: dict[str, str]
    scale_min: int
    scale_max: int
    scale_labels: list[str]


class AnswerRequest(BaseModel):
    value: int = Field(..., ge=SCALE_MIN, le=SCALE_MAX, strict=True)


class SessionResponse(BaseModel):
    session_id: str
    status: str
    answered: int
    total: int
    answers: dict[str, int]
    scores: dict[str, float] | None = None
    levels: dict[str, str] | None = None
    chart: list[dict[str, Any]] | None = None
    result: dict[str, str] | None = None
    error: str | None = None


def _get_session(session_id: str) -> QuizSession:
    try:
        return store.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=404,
            detail="Session not found. Start a new session and try again.",
        ) from None


# ── Routes ────────────────────────────────────────────────────────────────
# Session routes are ``async def`` so every session mutation runs on the event loop.

@app.get("/api/questions", response_model=CatalogResponse)
def list_questions() -> CatalogResponse:
    """Return the quiz questions in display order."""
    return CatalogResponse(
        # Polarity is a scoring detail and is not exposed to clients.
        questions=[QuestionOut(id=q.id, text=q.text, trait=q.trait.value) for q in all_questions()],
        traits={t.value: TRAIT_NAMES[t] for t in Trait},
        scale_min=SCALE_MIN,
        scale_max=SCALE_MAX,
        scale_labels=list(SCALE_LABELS),
    )


@app.post("/api/sessions", response_model=SessionResponse, status_code=201)
async def create_session() -> SessionResponse:
    """Start a new, empty quiz session."""
    return SessionResponse(**store.create().snapshot())


@app.get("/api/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: SessionId) -> SessionResponse:
    return SessionResponse(**_get_session(session_id).snapshot())


@app.put("/api/sessions/{session_id}/answers/{question_id}", response_model=SessionResponse)
async def submit_answer(
    req: AnswerRequest,
    question_id: int,
    session_id: SessionId,
) -> SessionResponse:
    """Record or overwrite one answer."""
    session = _get_session(session_id)
    try:
        session.submit_answer(question_id, req.value)
    except InvalidAnswerError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return SessionResponse(**session.snapshot())


@app.post("/api/sessions/{session_id}/analysis", response_model=SessionResponse)
async def request_analysis(session_id: SessionId) -> SessionResponse:
    """Run the AI analysis for a completed session.

    A duplicate request while one is in flight returns the current
    (``analyzing``) state without starting a second call.
    """
    session = _get_session(session_id)
    if session.scores is None:
        raise HTTPException(
            status_code=409,
            detail="Answer every question before requesting an analysis.",
        )
    if session.result is not None:
        raise HTTPException(
            status_code=409,
            detail="An analysis is already displayed. Reset the session to start over.",
        )
    await session.request_analysis()
    return SessionResponse(**session.snapshot())


@app.post("/api/sessions/{session_id}/reset", response_model=SessionResponse)
async def reset_session(session_id: SessionId) -> SessionResponse:
    """Clear all answers and results for the session."""
    session = _get_session(session_id)
    session.reset()
    return SessionResponse(**session.snapshot())


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8080"))
    print(f"Starting web interface on http://localhost:{port}")
    uvicorn.run(app, host="0.0.0.0", port=port)
