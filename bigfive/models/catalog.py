"""Question catalog for the ten-item Big Five quiz.

Each of the five traits is measured by exactly two items: one keyed
directly (``is_positive=True``) and one keyed in reverse.  The catalog is
validated once at import time; a broken pairing is a programming error
and should never reach a request.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, NamedTuple


class CatalogError(RuntimeError):
    """Raised when the question catalog violates the trait-pairing invariant."""


class Trait(str, Enum):
    E = "E"
    A = "A"
    C = "C"
    N = "N"
    O = "O"


@dataclass(frozen=True)
class Question:
    id: int
    text: str
    trait: Trait
    is_positive: bool


class TraitItems(NamedTuple):
    positive: Question
    negative: Question


TRAIT_NAMES: dict[Trait, str] = {
    Trait.E: "外向性 (Extraversion)",
    Trait.A: "協調性 (Agreeableness)",
    Trait.C: "誠実性 (Conscientiousness)",
    Trait.N: "神経症的傾向 (Neuroticism)",
    Trait.O: "開放性 (Openness)",
}

# Axis labels for the score chart.
TRAIT_SHORT_NAMES: dict[Trait, str] = {
    Trait.E: "外向性",
    Trait.A: "協調性",
    Trait.C: "誠実性",
    Trait.N: "神経症",
    Trait.O: "開放性",
}

SCALE_LABELS: tuple[str, str] = ("まったくあてはまらない", "完全にあてはまる")

QUESTIONS: tuple[Question, ...] = (
    Question(1, "私は、初めての人に会うのが好きで、会話をするのが好きで、人と会うのを楽しめる人間だ。", Trait.E, True),
    Question(2, "私は、人に対して思いやりがあり、その思いやりを行動に移し、他人を差別しない人間だ。", Trait.A, True),
    Question(3, "私は、きっちりと物事をこなし、手際よく行動し、適切に物事を行おうとする人間だ。", Trait.C, True),
    Question(4, "私は、いつも心配事が多く、不安になりやすく、気分の浮き沈みが多い人間だ。", Trait.N, True),
    Question(5, "私は、知的な活動が得意で、創造性が高くて好奇心があり、新たなことを探求する人間だ。", Trait.O, True),
    Question(6, "私は、恥ずかしがり屋で、物静かで、人が多いパーティなどは苦手な人間だ。", Trait.E, False),
    Question(7, "私は、すぐ思ったことを口にし、冷淡な面があり、他人に同情を感じることはめったにない人間だ。", Trait.A, False),
    Question(8, "私は、あまり考えずに行動し、さほどきっちりは行動せず、ギリギリまで物事に手を付けない人間だ。", Trait.C, False),
    Question(9, "私は、たいていリラックスしており、落ち着きがあり、めったに問題について悩まない人間だ。", Trait.N, False),
    Question(10, "私は、物事を現実的に考え、伝統的な考え方を好み、めったに空想などで時間を浪費しない人間だ。", Trait.O, False),
)


def _pair_for(trait: Trait, questions: Iterable[Question]) -> TraitItems:
    items = [q for q in questions if q.trait == trait]
    positive = [q for q in items if q.is_positive]
    negative = [q for q in items if not q.is_positive]
    if len(positive) != 1 or len(negative) != 1:
        raise CatalogError(
            f"Trait {trait.value} needs exactly one positive and one negative "
            f"question, found {len(positive)} positive / {len(negative)} negative"
        )
    return TraitItems(positive=positive[0], negative=negative[0])


def validate_catalog(questions: tuple[Question, ...]) -> dict[Trait, TraitItems]:
    """Check ids and trait pairing; return the per-trait item pairs.

    Raises
    ------
    CatalogError
        On duplicate or out-of-range ids, or a trait without exactly one
        item of each polarity.
    """
    ids = [q.id for q in questions]
    if len(set(ids)) != len(ids):
        raise CatalogError(f"Duplicate question ids in catalog: {sorted(ids)}")
    expected = set(range(1, len(questions) + 1))
    if set(ids) != expected:
        raise CatalogError(f"Question ids must be 1..{len(questions)}, got {sorted(ids)}")
    return {trait: _pair_for(trait, questions) for trait in Trait}


_PAIRS: dict[Trait, TraitItems] = validate_catalog(QUESTIONS)


def all_questions() -> tuple[Question, ...]:
    """Return every question in display order."""
    return QUESTIONS


def question_ids() -> frozenset[int]:
    return frozenset(q.id for q in QUESTIONS)


def questions_for(trait: Trait | str) -> TraitItems:
    """Return the positive / negative question pair measuring ``trait``."""
    return _PAIRS[Trait(trait)]
