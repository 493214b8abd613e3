"""Tests for the QuizSession state machine.

The analysis pipeline is replaced by a small stub so that in-flight
behaviour (single-flight, late responses after reset) can be driven
deterministically on one event loop.  ``TestWithPipeline`` runs the
compiled LangGraph pipeline with only the LLM factory mocked.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage

from bigfive.analysis.client import ANALYSIS_ERROR_MESSAGE, AnalysisError
from bigfive.models.catalog import Trait
from bigfive.models.state import AnalysisResult, SessionStatus
from bigfive.scoring.scorer import InvalidAnswerError
from bigfive.session.quiz_session import QuizSession
from bigfive.workflow import build_pipeline

RESULT = AnalysisResult(
    nickname="社交界の太陽",
    traits="**明るい**",
    jobs="**営業**",
    partner="**聞き上手**",
)


@dataclass
class FakePipeline:
    """Pipeline stub; optionally blocks until ``release`` is set."""

    fail: bool = False
    block: bool = False
    calls: list[dict[str, Any]] = field(default_factory=list)
    release: asyncio.Event | None = None

    async def ainvoke(self, state: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(state)
        if self.block:
            self.release = self.release or asyncio.Event()
            await self.release.wait()
        if self.fail:
            raise AnalysisError()
        return {**state, "result": RESULT, "skipped": False}


def _complete(session: QuizSession, value: int = 2) -> None:
    for qid in range(1, 11):
        session.submit_answer(qid, value)


@pytest.fixture
def pipeline():
    return FakePipeline()


@pytest.fixture
def session(pipeline):
    return QuizSession(session_id="s-1", pipeline=pipeline)


class TestCollecting:
    def test_initial_state(self, session):
        assert session.status is SessionStatus.COLLECTING
        assert session.answers == {}
        assert session.scores is None
        assert session.result is None
        assert session.error is None

    def test_scores_absent_until_tenth_answer(self, session):
        for qid in range(1, 10):
            session.submit_answer(qid, 2)
            assert session.scores is None
        session.submit_answer(10, 2)
        assert session.scores == {trait: 2.0 for trait in Trait}
        assert session.status is SessionStatus.READY

    def test_repeating_an_id_does_not_complete(self, session):
        for qid in range(1, 10):
            session.submit_answer(qid, 2)
        session.submit_answer(9, 3)
        assert session.scores is None
        assert len(session.answers) == 9

    def test_last_write_wins(self, session):
        _complete(session)
        session.submit_answer(1, 4)
        assert session.answers[1] == 4
        assert session.scores[Trait.E] == 3.0

    def test_same_answer_twice_is_idempotent(self, pipeline):
        once = QuizSession("a", pipeline)
        twice = QuizSession("b", pipeline)
        _complete(once, 3)
        _complete(twice, 3)
        twice.submit_answer(4, 3)
        assert once.scores == twice.scores
        assert once.answers == twice.answers

    def test_invalid_answer_rejected_without_mutation(self, session):
        with pytest.raises(InvalidAnswerError):
            session.submit_answer(1, 7)
        with pytest.raises(InvalidAnswerError):
            session.submit_answer(11, 2)
        assert session.answers == {}

    def test_answers_view_is_a_copy(self, session):
        session.answers[1] = 4
        assert session.answers == {}


class TestRequestAnalysis:
    def test_noop_when_incomplete(self, session, pipeline):
        session.submit_answer(1, 2)
        status = asyncio.run(session.request_analysis())
        assert status is SessionStatus.COLLECTING
        assert pipeline.calls == []

    def test_success_moves_to_displaying(self, session, pipeline):
        _complete(session)
        status = asyncio.run(session.request_analysis())
        assert status is SessionStatus.DISPLAYING
        assert session.result == RESULT
        assert session.error is None
        assert pipeline.calls == [{"scores": {trait: 2.0 for trait in Trait}}]

    def test_failure_is_retryable(self, session, pipeline):
        _complete(session)
        pipeline.fail = True
        status = asyncio.run(session.request_analysis())

        assert status is SessionStatus.READY
        assert session.error == ANALYSIS_ERROR_MESSAGE
        assert session.result is None
        assert session.is_analyzing is False

        pipeline.fail = False
        status = asyncio.run(session.request_analysis())
        assert status is SessionStatus.DISPLAYING
        assert session.error is None
        assert len(pipeline.calls) == 2

    def test_unexpected_error_clears_flight_and_propagates(self):
        class Broken:
            async def ainvoke(self, state):
                raise RuntimeError("graph bug")

        broken = QuizSession("s-2", Broken())
        _complete(broken)
        with pytest.raises(RuntimeError):
            asyncio.run(broken.request_analysis())
        assert broken.is_analyzing is False

    def test_single_flight(self, session, pipeline):
        _complete(session)
        pipeline.block = True

        async def scenario():
            first = asyncio.create_task(session.request_analysis())
            await asyncio.sleep(0)
            assert session.status is SessionStatus.ANALYZING
            second = await session.request_analysis()
            assert second is SessionStatus.ANALYZING
            pipeline.release.set()
            return await first

        assert asyncio.run(scenario()) is SessionStatus.DISPLAYING
        assert len(pipeline.calls) == 1

    def test_answers_during_flight_do_not_change_request(self, session, pipeline):
        _complete(session)
        pipeline.block = True

        async def scenario():
            task = asyncio.create_task(session.request_analysis())
            await asyncio.sleep(0)
            session.submit_answer(1, 4)
            pipeline.release.set()
            await task

        asyncio.run(scenario())
        assert pipeline.calls[0]["scores"][Trait.E] == 2.0
        assert session.scores[Trait.E] == 3.0
        assert session.status is SessionStatus.DISPLAYING


class TestReset:
    def test_reset_clears_everything(self, session):
        _complete(session)
        asyncio.run(session.request_analysis())
        session.reset()

        assert session.status is SessionStatus.COLLECTING
        assert session.answers == {}
        assert session.scores is None
        assert session.result is None
        assert session.error is None

    def test_reset_clears_error(self, session, pipeline):
        _complete(session)
        pipeline.fail = True
        asyncio.run(session.request_analysis())
        session.reset()
        assert session.error is None

    def test_late_response_after_reset_is_discarded(self, session, pipeline):
        _complete(session)
        pipeline.block = True

        async def scenario():
            task = asyncio.create_task(session.request_analysis())
            await asyncio.sleep(0)
            session.reset()
            pipeline.release.set()
            return await task

        assert asyncio.run(scenario()) is SessionStatus.COLLECTING
        assert session.result is None
        assert session.is_analyzing is False

    def test_late_failure_after_reset_is_discarded(self, session, pipeline):
        _complete(session)
        pipeline.block = True
        pipeline.fail = True

        async def scenario():
            task = asyncio.create_task(session.request_analysis())
            await asyncio.sleep(0)
            session.reset()
            pipeline.release.set()
            await task

        asyncio.run(scenario())
        assert session.error is None

    def test_new_analysis_allowed_after_reset_during_flight(self, session, pipeline):
        _complete(session)
        pipeline.block = True

        async def scenario():
            stale = asyncio.create_task(session.request_analysis())
            await asyncio.sleep(0)
            session.reset()
            _complete(session, 4)
            pipeline.block = False
            fresh = await session.request_analysis()
            pipeline.release.set()
            await stale
            return fresh

        assert asyncio.run(scenario()) is SessionStatus.DISPLAYING
        assert session.result == RESULT
        assert len(pipeline.calls) == 2


class TestSnapshot:
    def test_collecting_snapshot(self, session):
        session.submit_answer(3, 1)
        snap = session.snapshot()
        assert snap["status"] == "collecting"
        assert snap["answered"] == 1
        assert snap["total"] == 10
        assert snap["answers"] == {"3": 1}
        assert snap["scores"] is None
        assert snap["chart"] is None

    def test_displaying_snapshot(self, session):
        _complete(session, 4)
        asyncio.run(session.request_analysis())
        snap = session.snapshot()

        assert snap["status"] == "displaying"
        assert snap["scores"] == {"E": 2.0, "A": 2.0, "C": 2.0, "N": 2.0, "O": 2.0}
        assert snap["levels"]["E"] == "Medium"
        assert [row["trait"] for row in snap["chart"]] == ["E", "A", "C", "N", "O"]
        assert snap["chart"][0]["full_mark"] == 4
        assert snap["chart"][0]["display"] == "2.0"
        assert snap["result"]["nickname"] == "社交界の太陽"


class TestDisplaying:
    def test_second_request_is_noop_once_displayed(self, session, pipeline):
        _complete(session)
        asyncio.run(session.request_analysis())

        pipeline.fail = True
        status = asyncio.run(session.request_analysis())

        assert status is SessionStatus.DISPLAYING
        assert len(pipeline.calls) == 1
        assert session.result == RESULT
        assert session.error is None

    def test_reset_allows_a_new_analysis(self, session, pipeline):
        _complete(session)
        asyncio.run(session.request_analysis())
        session.reset()
        _complete(session, 3)

        assert asyncio.run(session.request_analysis()) is SessionStatus.DISPLAYING
        assert len(pipeline.calls) == 2


# ── Real pipeline, mocked LLM ─────────────────────────────────────────────

FULL_PAYLOAD = {
    "nickname": "静かなる情熱の探求者",
    "traits": "**内省的**",
    "jobs": "**研究職**",
    "partner": "**誠実な**人",
}


def _mock_llm(payload: dict) -> MagicMock:
    mock_llm = MagicMock()
    mock_llm.bind.return_value.ainvoke = AsyncMock(
        return_value=AIMessage(content=json.dumps(payload, ensure_ascii=False))
    )
    return mock_llm


class TestWithPipeline:
    def test_missing_jobs_field_leaves_session_retryable(self):
        session = QuizSession("e2e", build_pipeline())
        _complete(session)
        partial = {k: v for k, v in FULL_PAYLOAD.items() if k != "jobs"}

        with patch("bigfive.analysis.client.get_chat_llm", return_value=_mock_llm(partial)):
            status = asyncio.run(session.request_analysis())

        assert status is SessionStatus.READY
        assert session.result is None
        assert session.error == ANALYSIS_ERROR_MESSAGE
        assert session.is_analyzing is False

        with patch("bigfive.analysis.client.get_chat_llm", return_value=_mock_llm(FULL_PAYLOAD)):
            status = asyncio.run(session.request_analysis())

        assert status is SessionStatus.DISPLAYING
        assert session.result == AnalysisResult(**FULL_PAYLOAD)
        assert session.error is None
