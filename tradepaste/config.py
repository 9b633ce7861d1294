"""Runtime settings read from the environment.

    ANTHROPIC_API_KEY            – key for the AI fallback (optional; without it
                                   the fallback raises AIExtractionError)
    TRADEPASTE_AI_MODEL          – Claude model used for extraction
    TRADEPASTE_AI_MAX_TOKENS     – response token cap for extraction
    TRADEPASTE_DEFAULT_COIN      – symbol assumed when a layout shows none
    TRADEPASTE_DEFAULT_LEVERAGE  – leverage assumed when a layout shows none
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .models import DEFAULT_COIN, DEFAULT_LEVERAGE

logger = logging.getLogger(__name__)

DEFAULT_AI_MODEL = "claude-haiku-4-5-20251001"
DEFAULT_AI_MAX_TOKENS = 1024


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    anthropic_api_key: Optional[str] = None
    ai_model: str = DEFAULT_AI_MODEL
    ai_max_tokens: int = DEFAULT_AI_MAX_TOKENS
    default_coin: str = DEFAULT_COIN
    default_leverage: int = DEFAULT_LEVERAGE

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY") or None,
            ai_model=os.environ.get("TRADEPASTE_AI_MODEL") or DEFAULT_AI_MODEL,
            ai_max_tokens=_int_env("TRADEPASTE_AI_MAX_TOKENS", DEFAULT_AI_MAX_TOKENS),
            default_coin=(os.environ.get("TRADEPASTE_DEFAULT_COIN") or DEFAULT_COIN).upper(),
            default_leverage=_int_env("TRADEPASTE_DEFAULT_LEVERAGE", DEFAULT_LEVERAGE),
        )
