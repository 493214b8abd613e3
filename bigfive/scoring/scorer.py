"""Trait scorer — turns raw 0–4 answers into five 0–4 trait scores.

For each trait the reverse-keyed answer is reflected across the scale
midpoint (``4 - n``) and averaged with the directly keyed answer:

    score = (p + (4 - n)) / 2

No rounding is applied; half points such as ``2.5`` are meaningful.
"""

from __future__ import annotations

from typing import Mapping

from bigfive.models.catalog import Trait, question_ids, questions_for
from bigfive.models.state import Scores
from bigfive.settings import SCALE_MAX, SCALE_MIN


class InvalidAnswerError(ValueError):
    """Raised for an unknown question id or an out-of-range answer value."""


def validate_answer(question_id: int, value: int) -> None:
    if question_id not in question_ids():
        raise InvalidAnswerError(f"Unknown question id: {question_id!r}")
    # bool is an int subclass; True/False are not Likert responses
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAnswerError(f"Answer must be an integer, got {value!r}")
    if not SCALE_MIN <= value <= SCALE_MAX:
        raise InvalidAnswerError(
            f"Answer must be between {SCALE_MIN} and {SCALE_MAX}, got {value}"
        )


def is_complete(answers: Mapping[int, int]) -> bool:
    """True once every catalog question has a recorded answer."""
    return question_ids() <= answers.keys()


def reflect(value: float) -> float:
    """Mirror a reverse-keyed answer onto the direct scale."""
    return SCALE_MAX - value


def score_trait(positive: int, negative: int) -> float:
    return (positive + reflect(negative)) / 2


def score(answers: Mapping[int, int]) -> Scores | None:
    """Compute all five trait scores, or ``None`` if answers are incomplete."""
    if not is_complete(answers):
        return None

    scores: Scores = {}
    for trait in Trait:
        items = questions_for(trait)
        scores[trait] = score_trait(answers[items.positive.id], answers[items.negative.id])
    return scores
