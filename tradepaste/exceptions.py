"""Errors surfaced to callers of the trade text parser."""

from __future__ import annotations


class TradeParseError(Exception):
    """Base class for tradepaste errors."""


class AIExtractionError(TradeParseError):
    """The AI fallback could not produce a trade record.

    Raised for a missing API key, a failed API call, or a response that
    is not the expected JSON object. This is the only failure the
    parsing pipeline lets reach the caller.
    """
