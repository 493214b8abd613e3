"""Shared LLM client factory.

Every module that needs an OpenAI chat model should import from here
instead of constructing its own client, ensuring consistent model
selection and temperature.
"""

from __future__ import annotations

from langchain_openai import ChatOpenAI

from bigfive import settings


def get_chat_llm(
    *,
    temperature: float | None = None,
    request_timeout: float | None = None,
) -> ChatOpenAI:
    """Return a configured ChatOpenAI instance.

    ``request_timeout=None`` leaves the transport's own default in place.
    """
    return ChatOpenAI(
        model=settings.LLM_MODEL_NAME,
        temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
        request_timeout=request_timeout,
    )
