"""Structured trace events emitted by the trade text parser.

The parser never prints which layout matched. It hands a ``ParseEvent``
to an injected sink instead; ``log_event`` is the default sink and
writes through the standard logging module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Event kinds
LAYOUT_ACCEPTED = "layout_accepted"
LAYOUT_REJECTED = "layout_rejected"
AI_FALLBACK = "ai_fallback"


@dataclass(frozen=True)
class ParseEvent:
    kind: str
    cascade_version: int
    layout: Optional[str] = None
    fields_found: tuple[str, ...] = field(default_factory=tuple)
    reason: str = ""


EventSink = Callable[[ParseEvent], None]


def log_event(event: ParseEvent) -> None:
    """Default sink: accepted layouts and AI fallbacks at INFO, rejections at DEBUG."""
    if event.kind == LAYOUT_REJECTED:
        logger.debug(
            "[TRADE_PARSER] v%d layout '%s' rejected (%s); fields=%s",
            event.cascade_version, event.layout, event.reason, list(event.fields_found),
        )
    elif event.kind == LAYOUT_ACCEPTED:
        logger.info(
            "[TRADE_PARSER] v%d detected layout '%s' (%d fields)",
            event.cascade_version, event.layout, len(event.fields_found),
        )
    else:
        logger.info(
            "[TRADE_PARSER] v%d %s: %s",
            event.cascade_version, event.kind, event.reason or "no layout matched",
        )
