"""Builds the LLM request that turns five trait scores into a narrative.

The prompt is guidance only; ``ANALYSIS_SCHEMA`` is the contract the
response is parsed against.
"""

from __future__ import annotations

import copy
from typing import Any

from bigfive.models.catalog import Trait
from bigfive.models.state import AnalysisRequest, Scores

SCHEMA_NAME = "personality_analysis"

ANALYSIS_PROMPT = """\
以下のビッグファイブ性格診断のスコア（0〜4の範囲）に基づいて、詳細な分析を行ってください。

スコア:
{score_lines}

以下の4つのセクションで回答してください。
1. 性格特性に合わせた「二つ名」（例：『静かなる情熱の探求者』『社交界の太陽』など、キャッチーでかっこいいもの）
2. 性格特性の詳細な特徴（あなたと似た性格特性を持つ著名人の例も挙げてください）
3. 仕事に対する適性（向いている職種や環境）
4. パートナー選びの適性（相性の良いタイプや注意点、また相性の良い著名人の例も挙げてください）

**重要事項:**
- 回答は日本語で、親しみやすくも専門的な洞察を含んだトーンでお願いします。
- **重要なキーワードや文章は、Markdownの太字（**テキスト**）を使用して強調してください。**
- 箇条書きや改行を適切に使い、読みやすいレイアウトにしてください。
"""

# Labels used inside the prompt (N is spelled out in full here).
_PROMPT_LABELS: dict[Trait, str] = {
    Trait.E: "外向性",
    Trait.A: "協調性",
    Trait.C: "誠実性",
    Trait.N: "神経症的傾向",
    Trait.O: "開放性",
}

ANALYSIS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "nickname": {"type": "string", "description": "性格特性に合わせた二つ名"},
        "traits": {"type": "string", "description": "性格特性の分析"},
        "jobs": {"type": "string", "description": "仕事の適性分析"},
        "partner": {"type": "string", "description": "パートナー選びの分析"},
    },
    "required": ["nickname", "traits", "jobs", "partner"],
    "additionalProperties": False,
}


def _format_scores(scores: Scores) -> str:
    return "\n".join(
        f"- {_PROMPT_LABELS[trait]}: {scores[trait]:.1f}" for trait in Trait
    )


def build_request(scores: Scores) -> AnalysisRequest:
    """Return the prompt and output schema for one set of trait scores."""
    prompt = ANALYSIS_PROMPT.format(score_lines=_format_scores(scores))
    return AnalysisRequest(prompt=prompt, schema=copy.deepcopy(ANALYSIS_SCHEMA))
