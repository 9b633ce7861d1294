"""FastAPI service for the smart trade paste box.

    POST /parse      { text }   -> TradeRecord JSON
    POST /clipboard  TradeRecord JSON -> { row } (tab-separated spreadsheet row)
    GET  /health

Run with:  uvicorn tradepaste.api:app
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .clipboard import format_trade_to_clipboard
from .config import Settings
from .exceptions import AIExtractionError
from .models import TradeRecord
from .parsers.trade_parser import CASCADE_VERSION, TradeTextParser

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)

logger.info(
    "[STARTUP] Env check: ANTHROPIC_API_KEY=%s",
    "set" if os.environ.get("ANTHROPIC_API_KEY") else "missing",
)

app = FastAPI(
    title="Trade Paste",
    description="Parse trade-detail text copied from exchange apps",
    version=__version__,
)

_parser: Optional[TradeTextParser] = None


def _get_parser() -> TradeTextParser:
    global _parser
    if _parser is None:
        _parser = TradeTextParser(settings=Settings.from_env())
    return _parser


# ─── Request models ──────────────────────────────────────────────────────────


class ParseRequest(BaseModel):
    text: str


# ─── Endpoints ───────────────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, Any]:
    return {
        "status": "ok",
        "version": __version__,
        "cascade_version": CASCADE_VERSION,
        "ai_configured": bool(os.environ.get("ANTHROPIC_API_KEY")),
    }


@app.post("/parse")
async def parse(req: ParseRequest) -> JSONResponse:
    if not req.text.strip():
        return JSONResponse(
            {"error": "Please paste the trade information first."}, status_code=400,
        )

    try:
        trade = await _get_parser().parse(req.text)
    except AIExtractionError as e:
        logger.error("[API] AI extraction failed: %s", e)
        return JSONResponse({"error": str(e)}, status_code=502)

    return JSONResponse(trade.to_dict())


@app.post("/clipboard")
def clipboard(trade: TradeRecord) -> dict[str, str]:
    # FastAPI validates the dataclass fields; __post_init__ normalizes fee and coin
    return {"row": format_trade_to_clipboard(trade)}
