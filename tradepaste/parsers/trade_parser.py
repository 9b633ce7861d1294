"""Smart trade text parser: layout cascade first, AI extraction last.

    text -> classify_layouts -> extract each candidate in priority order
         -> first result passing the gate, merged over the default template
         -> otherwise the untouched text goes to the AI extractor

The heuristic path is synchronous and pure.  The only await is the AI
extractor call; its failures propagate to the caller unchanged.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from ..config import Settings
from ..events import (
    AI_FALLBACK,
    LAYOUT_ACCEPTED,
    LAYOUT_REJECTED,
    EventSink,
    ParseEvent,
    log_event,
)
from ..extraction.ai_extractor import ClaudeTradeExtractor, TradeExtractor
from ..models import TradeRecord, default_template
from .layouts import DEFAULT_LAYOUTS, LayoutSet, PartialRecord, classify_layouts

logger = logging.getLogger(__name__)

# Bumped whenever layouts or the gate change behaviour
CASCADE_VERSION = 2


def passes_gate(partial: Optional[PartialRecord]) -> bool:
    """A detection is usable only with an open price and a quantity or symbol."""
    if not partial:
        return False
    if not partial.get("open_price"):
        return False
    return bool(partial.get("quantity") or partial.get("coin"))


def merge_with_defaults(
    partial: PartialRecord,
    *,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> TradeRecord:
    """Fill every field the detection left out from the default template."""
    settings = settings or Settings()
    merged: dict[str, Any] = default_template(
        now=now, coin=settings.default_coin, leverage=settings.default_leverage,
    )
    merged.update({k: v for k, v in partial.items() if v is not None})
    return TradeRecord(**merged)


class TradeTextParser:
    """Turn pasted trade-detail text into a TradeRecord.

    Usage:
        parser = TradeTextParser()
        trade = await parser.parse(clipboard_text)
    """

    def __init__(
        self,
        extractor: Optional[TradeExtractor] = None,
        *,
        layouts: LayoutSet = DEFAULT_LAYOUTS,
        on_event: Optional[EventSink] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self._extractor = extractor
        self.layouts = layouts
        self._by_name = {layout.name: layout for layout in layouts}
        self.on_event = on_event or log_event
        self.clock = clock or datetime.now

    @property
    def extractor(self) -> TradeExtractor:
        # Built lazily so the heuristic path never needs the AI client
        if self._extractor is None:
            self._extractor = ClaudeTradeExtractor(settings=self.settings, clock=self.clock)
        return self._extractor

    def _emit(self, kind: str, **kwargs: Any) -> None:
        self.on_event(ParseEvent(kind=kind, cascade_version=CASCADE_VERSION, **kwargs))

    def detect_partial(self, text: str) -> tuple[Optional[str], Optional[PartialRecord]]:
        """Run the cascade; return (layout name, partial record) of the first accepted layout."""
        for name in classify_layouts(text, self.layouts):
            partial = self._by_name[name].extract(text)
            found = tuple(sorted(partial or {}))
            if passes_gate(partial):
                self._emit(LAYOUT_ACCEPTED, layout=name, fields_found=found)
                return name, partial
            self._emit(
                LAYOUT_REJECTED, layout=name, fields_found=found,
                reason="missing open price" if not (partial or {}).get("open_price")
                else "missing quantity and symbol",
            )
        return None, None

    def detect(self, text: str) -> Optional[TradeRecord]:
        """Heuristic path only: a total record, or None when no layout is accepted."""
        _, partial = self.detect_partial(text)
        if partial is None:
            return None
        return merge_with_defaults(partial, now=self.clock(), settings=self.settings)

    async def parse(self, text: str) -> TradeRecord:
        trade = self.detect(text)
        if trade is not None:
            return trade

        self._emit(AI_FALLBACK, reason="no standard format detected, falling back to AI extraction")
        # The collaborator returns its own total record; no default merge here
        return await self.extractor.extract(text)


async def parse_trade_text(
    text: str,
    extractor: Optional[TradeExtractor] = None,
    *,
    on_event: Optional[EventSink] = None,
) -> TradeRecord:
    """Convenience wrapper around ``TradeTextParser(...).parse(text)``."""
    parser = TradeTextParser(extractor, on_event=on_event)
    return await parser.parse(text)
