"""LLM adapter — sends an ``AnalysisRequest`` and parses the JSON reply.

Any failure (network, provider error, malformed or incomplete JSON) is
logged and re-raised as ``AnalysisError`` carrying a generic message that
is safe to show to the user.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from langchain_core.messages import HumanMessage
from pydantic import ValidationError

from bigfive.analysis.request_builder import SCHEMA_NAME
from bigfive.llm import get_chat_llm
from bigfive.models.state import AnalysisRequest, AnalysisResult

logger = logging.getLogger(__name__)

ANALYSIS_ERROR_MESSAGE = "分析中にエラーが発生しました。もう一度お試しください。"


class AnalysisError(Exception):
    """The analysis call failed; ``str(err)`` is the user-facing message."""

    def __init__(self, message: str = ANALYSIS_ERROR_MESSAGE):
        super().__init__(message)
        self.message = message


def _parse_json(raw: str) -> dict[str, Any]:
    """Parse JSON from model output, stripping markdown fences if needed."""
    text = raw.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1].rsplit("```", 1)[0]
    return json.loads(text)


def _response_text(content: Any) -> str:
    """Normalize LangChain message content into a text string."""
    if isinstance(content, str):
        return content
    # Content blocks: [{"type": "text", "text": "..."}]
    if isinstance(content, list):
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    return json.dumps(content)


def parse_result(raw: str) -> AnalysisResult:
    """Parse the model's text payload into an ``AnalysisResult``.

    Raises ``json.JSONDecodeError`` or ``pydantic.ValidationError`` on
    malformed input; ``analyze`` converts both into ``AnalysisError``.
    """
    return AnalysisResult.model_validate(_parse_json(raw))


def _response_format(schema: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {"name": SCHEMA_NAME, "schema": schema, "strict": True},
    }


async def analyze(request: AnalysisRequest) -> AnalysisResult:
    """Run one analysis call.  No retry; timeouts are left to the transport."""
    try:
        llm = get_chat_llm().bind(response_format=_response_format(request.schema))
        response = await llm.ainvoke([HumanMessage(content=request.prompt)])
        result = parse_result(_response_text(response.content))
    except (json.JSONDecodeError, ValidationError, TypeError, IndexError) as e:
        logger.exception("Analysis response could not be parsed")
        raise AnalysisError() from e
    except Exception as e:
        logger.exception("Analysis call failed")
        raise AnalysisError() from e

    logger.info("Analysis complete: nickname=%r", result.nickname)
    return result
