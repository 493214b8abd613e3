"""Project-wide settings and shared scoring constants.

All environment-dependent values are read **lazily** on first access
(not at import time) and cached via ``functools.lru_cache``.  Call
``reset()`` in tests to clear the cache after changing env vars.
"""

from __future__ import annotations

import functools
import os
from typing import TYPE_CHECKING, Final


def _float_env(name: str, default: float) -> float:
    """Parse float environment values with a safe fallback."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    """Parse positive int environment values with a safe fallback."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


# ── Constants (never change at runtime) ──────────────────────────────────
SCALE_MIN: Final[int] = 0
SCALE_MAX: Final[int] = 4


# ── Lazy settings cache ──────────────────────────────────────────────────

@functools.lru_cache(maxsize=1)
def _load_settings() -> dict[str, object]:
    """Read env-dependent settings once and cache the result."""
    return {
        "LOW_TRAIT_THRESHOLD": _float_env("LOW_TRAIT_THRESHOLD", 1.5),
        "HIGH_TRAIT_THRESHOLD": _float_env("HIGH_TRAIT_THRESHOLD", 2.5),
        "LLM_MODEL_NAME": os.getenv("OPENAI_CHAT_MODEL", "gpt-5.2"),
        "LLM_TEMPERATURE": _float_env("OPENAI_TEMPERATURE", 0.7),
        "MAX_SESSIONS": _int_env("MAX_SESSIONS", 10_000),
    }


def reset() -> None:
    """Clear the cached settings — call from tests after monkeypatching env vars."""
    _load_settings.cache_clear()


# Type declarations for static analysis (not set at runtime so
# ``__getattr__`` is invoked on attribute access).
if TYPE_CHECKING:
    LOW_TRAIT_THRESHOLD: float
    HIGH_TRAIT_THRESHOLD: float
    LLM_MODEL_NAME: str
    LLM_TEMPERATURE: float
    MAX_SESSIONS: int


def __getattr__(name: str) -> object:
    """PEP 562 module-level ``__getattr__`` — provides lazy env reads."""
    settings = _load_settings()
    if name in settings:
        return settings[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


# ── Public helpers ────────────────────────────────────────────────────────


def classify_trait(score: float) -> str:
    """Map a 0–4 trait score to Low / Medium / High."""
    s = _load_settings()
    if score <= s["LOW_TRAIT_THRESHOLD"]:  # type: ignore[operator]
        return "Low"
    if score <= s["HIGH_TRAIT_THRESHOLD"]:  # type: ignore[operator]
        return "Medium"
    return "High"
