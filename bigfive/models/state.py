"""Shared types for the quiz session and the analysis pipeline.

``AnalysisResult`` is a pydantic model because it is the parse target for
the LLM's JSON payload; everything else is a plain dataclass or TypedDict.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, TypedDict

from pydantic import BaseModel, ConfigDict

from bigfive.models.catalog import Trait

Answers = Dict[int, int]
Scores = Dict[Trait, float]


class SessionStatus(str, Enum):
    COLLECTING = "collecting"
    READY = "ready"
    ANALYZING = "analyzing"
    DISPLAYING = "displaying"


class AnalysisResult(BaseModel):
    """Narrative interpretation returned by the LLM.

    Each field may contain inline Markdown emphasis (``**bold**``).
    """

    model_config = ConfigDict(frozen=True, strict=True)

    nickname: str
    traits: str
    jobs: str
    partner: str


@dataclass(frozen=True)
class AnalysisRequest:
    """Prompt text plus the JSON Schema the response must satisfy."""

    prompt: str
    schema: dict[str, Any] = field(default_factory=dict)


class AnalysisPipelineState(TypedDict, total=False):
    """State carried through the LangGraph analysis pipeline."""

    scores: Scores | None  # snapshot taken when the analysis was requested
    request: AnalysisRequest
    result: AnalysisResult
    skipped: bool  # True when the router found no scores to analyze
