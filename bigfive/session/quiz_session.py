"""Quiz session — the per-user state machine.

States (derived, never stored directly):

    collecting ──(10th distinct answer)──▶ ready ──request_analysis()──▶ analyzing
        ▲                                    ▲                              │
        │                                    └────────── failure ───────────┤
        └──────────────── reset() ◀──────── displaying ◀──── success ───────┘

Only one analysis may be in flight per session.  ``reset()`` bumps a
generation counter so a response that lands after the reset is dropped.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from bigfive.analysis.client import AnalysisError
from bigfive.models.catalog import TRAIT_NAMES, TRAIT_SHORT_NAMES, Trait, all_questions
from bigfive.models.state import (
    AnalysisPipelineState,
    AnalysisResult,
    Answers,
    Scores,
    SessionStatus,
)
from bigfive.scoring.scorer import score, validate_answer
from bigfive.settings import SCALE_MAX, classify_trait

logger = logging.getLogger(__name__)


class AnalysisPipeline(Protocol):
    async def ainvoke(self, state: AnalysisPipelineState) -> AnalysisPipelineState: ...


class QuizSession:
    """Owns one user's answers, derived scores and analysis outcome."""

    def __init__(self, session_id: str, pipeline: AnalysisPipeline):
        self.session_id = session_id
        self._pipeline = pipeline
        self._answers: Answers = {}
        self._scores: Scores | None = None
        self._result: AnalysisResult | None = None
        self._error: str | None = None
        self._analyzing = False
        self._generation = 0

    # ── Read-only views ───────────────────────────────────────────────────

    @property
    def answers(self) -> Answers:
        return dict(self._answers)

    @property
    def scores(self) -> Scores | None:
        return dict(self._scores) if self._scores is not None else None

    @property
    def result(self) -> AnalysisResult | None:
        return self._result

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_analyzing(self) -> bool:
        return self._analyzing

    @property
    def status(self) -> SessionStatus:
        if self._analyzing:
            return SessionStatus.ANALYZING
        if self._result is not None:
            return SessionStatus.DISPLAYING
        if self._scores is not None:
            return SessionStatus.READY
        return SessionStatus.COLLECTING

    # ── Transitions ───────────────────────────────────────────────────────

    def submit_answer(self, question_id: int, value: int) -> None:
        """Record (or overwrite) the answer for one question.

        Accepted in every state.  While an analysis is in flight the new
        answer only affects the stored scores, never the pending request.
        """
        validate_answer(question_id, value)
        self._answers[question_id] = value
        self._scores = score(self._answers)

    async def request_analysis(self) -> SessionStatus:
        """Run the analysis pipeline once for the current scores.

        No-op while another analysis is in flight, once a result is being
        displayed, or before every question has been answered.  Returns the
        resulting status.
        """
        if self._analyzing:
            logger.info("Session %s: analysis already in flight, ignoring", self.session_id)
            return self.status
        if self._result is not None:
            logger.info("Session %s: result already displayed, reset first", self.session_id)
            return self.status
        if self._scores is None:
            logger.warning(
                "Session %s: analysis requested with %d/%d answers",
                self.session_id,
                len(self._answers),
                len(all_questions()),
            )
            return self.status

        generation = self._generation
        snapshot = dict(self._scores)
        self._analyzing = True
        self._error = None

        try:
            output = await self._pipeline.ainvoke({"scores": snapshot})
        except AnalysisError as e:
            if generation == self._generation:
                self._error = e.message
                self._analyzing = False
            return self.status
        except Exception:
            if generation == self._generation:
                self._analyzing = False
            raise

        if generation != self._generation:
            logger.info("Session %s: discarding analysis that finished after reset", self.session_id)
            return self.status

        self._analyzing = False
        self._result = output.get("result")
        return self.status

    def reset(self) -> None:
        """Return to the initial empty state, orphaning any in-flight analysis."""
        self._generation += 1
        self._answers = {}
        self._scores = None
        self._result = None
        self._error = None
        self._analyzing = False

    # ── Serialization ─────────────────────────────────────────────────────

    def snapshot(self) -> dict[str, Any]:
        """JSON-ready view of the session for the web layer."""
        scores = self._scores
        return {
            "session_id": self.session_id,
            "status": self.status.value,
            "answered": len(self._answers),
            "total": len(all_questions()),
            "answers": {str(qid): value for qid, value in sorted(self._answers.items())},
            "scores": {t.value: v for t, v in scores.items()} if scores else None,
            "levels": {t.value: classify_trait(v) for t, v in scores.items()} if scores else None,
            "chart": _chart_rows(scores) if scores else None,
            "result": self._result.model_dump() if self._result else None,
            "error": self._error,
        }


def _chart_rows(scores: Scores) -> list[dict[str, Any]]:
    """Radar-chart rows: one axis per trait on a 0–4 scale."""
    return [
        {
            "trait": trait.value,
            "subject": TRAIT_SHORT_NAMES[trait],
            "name": TRAIT_NAMES[trait],
            "value": scores[trait],
            "display": f"{scores[trait]:.1f}",
            "full_mark": SCALE_MAX,
        }
        for trait in Trait
    ]
