"""Last-resort trade extraction from free-form text using Claude.

Called only when no known layout accepts the pasted text.  The whole
untouched text is sent; Claude answers with a single JSON object that
becomes a TradeRecord.  Any failure is raised as AIExtractionError.
No timeout or retry is applied here; callers wrap the await if needed.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Callable, Optional, Protocol

import anthropic

from ..config import Settings
from ..exceptions import AIExtractionError
from ..models import TradeRecord, now_canonical

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """\
You are extracting a single crypto futures position from text a trader copied
out of an exchange app or spreadsheet. The text may be in English or
Vietnamese and may use either 1,234.56 or 1.234,56 number formatting.

Return ONLY valid JSON in this exact format, no other text:
{
    "coin": "ETH",
    "open_price": 2954.58,
    "close_price": 2944.40,
    "open_time": "2025-12-17T10:16:52",
    "close_time": "2025-12-17T10:38:23",
    "quantity": 40.01,
    "fee": 118.01,
    "pnl": -407.30,
    "leverage": 100
}

Rules:
- Numbers are plain JSON numbers: no currency symbols, no thousands separators
- Times use YYYY-MM-DDTHH:MM:SS; "SA" means AM and "CH" means PM
- fee is always positive; pnl keeps its sign
- Use null for close_price / close_time if the position is still open
- Do NOT guess values that are not in the text; use null instead
"""


class TradeExtractor(Protocol):
    async def extract(self, raw_text: str) -> TradeRecord:
        ...


def _strip_fences(text: str) -> str:
    """Strip markdown code fences if present."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        start = 1 if lines[0].startswith("```") else 0
        end = -1 if lines[-1].strip() == "```" else len(lines)
        cleaned = "\n".join(lines[start:end]).strip()
    return cleaned


def parse_extraction_response(response_text: str) -> dict[str, Any]:
    """Decode Claude's reply into a dict, tolerating fences and chatter around the JSON."""
    cleaned = _strip_fences(response_text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        # Fall back to the outermost {...} span
        start = cleaned.find("{")
        end = cleaned.rfind("}") + 1
        if start < 0 or end <= start:
            raise AIExtractionError(f"AI response was not JSON: {cleaned[:200]}")
        try:
            parsed = json.loads(cleaned[start:end])
        except json.JSONDecodeError as e:
            raise AIExtractionError(f"AI response was not JSON: {cleaned[:200]}") from e

    if not isinstance(parsed, dict):
        raise AIExtractionError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


class ClaudeTradeExtractor:
    """Trade extractor backed by the Anthropic Messages API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        api_key: Optional[str] = None,
        client: Optional[anthropic.AsyncAnthropic] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.api_key = api_key or self.settings.anthropic_api_key
        self._client = client
        self.clock = clock or datetime.now

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            if not self.api_key:
                raise AIExtractionError("ANTHROPIC_API_KEY environment variable is not set")
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key, max_retries=0)
        return self._client

    async def _call_claude(self, raw_text: str) -> str:
        client = self._get_client()
        message = await client.messages.create(
            model=self.settings.ai_model,
            max_tokens=self.settings.ai_max_tokens,
            system=EXTRACTION_PROMPT,
            messages=[{"role": "user", "content": raw_text}],
        )
        if not message.content or not hasattr(message.content[0], "text"):
            raise AIExtractionError("Claude returned no text content")
        return message.content[0].text

    async def extract(self, raw_text: str) -> TradeRecord:
        try:
            response_text = await self._call_claude(raw_text)
        except anthropic.APIError as e:
            logger.error("[AI_EXTRACTOR] Claude API call failed: %s", e, exc_info=True)
            raise AIExtractionError(f"AI extraction failed: {e}") from e

        parsed = parse_extraction_response(response_text)
        if not parsed.get("open_time") and not parsed.get("openTime"):
            parsed["open_time"] = now_canonical(self.clock())

        try:
            trade = TradeRecord.from_dict(parsed)
        except (TypeError, ValueError) as e:
            logger.warning("[AI_EXTRACTOR] Unusable AI response: %s", str(parsed)[:200])
            raise AIExtractionError(f"AI response had invalid field values: {e}") from e

        logger.info(
            "[AI_EXTRACTOR] Extracted %s trade (open=%s, qty=%s)",
            trade.coin, trade.open_price, trade.quantity,
        )
        return trade
