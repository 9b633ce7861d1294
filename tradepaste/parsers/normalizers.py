"""
Locale-ambiguous number and date normalization.

Pasted trade screens mix conventions freely:
- Prices come as 1,234.56 (US), 1.234,56 (EU/VN) or 2930,63 (no grouping)
- Amounts carry currency symbols and signs in odd places: -$501,75, $-5
- Vietnamese screens print D/M/YYYY H:MM:SS with SA (morning) / CH (afternoon)
- English screens print YYYY-MM-DD HH:MM:SS

Nothing here raises on bad input: numbers fall back to 0.0 and dates to None.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Number parsing
# ---------------------------------------------------------------------------

# A date fragment must never be read as a price (2025-12-17 -> 20251217)
_DATE_SHAPE_PATTERNS = [
    re.compile(r"^\d{4}-\d{2}-\d{2}"),
    re.compile(r"^\d{1,2}/\d{1,2}/\d{4}"),
]

_NON_NUMERIC_RE = re.compile(r"[^\d.,\-]")
_NUMERIC_PREFIX_RE = re.compile(r"^\d*(?:\.\d*)?")


def looks_like_date(value: str) -> bool:
    text = value.strip()
    return any(pat.match(text) for pat in _DATE_SHAPE_PATTERNS)


def _resolve_separators(cleaned: str) -> str:
    """Rewrite grouping/decimal separators so only a single '.' decimal remains."""
    last_comma = cleaned.rfind(",")
    last_dot = cleaned.rfind(".")

    if last_comma > -1 and last_dot > -1:
        if last_comma > last_dot:
            # 1.234,56 -> 1234.56
            return cleaned.replace(".", "").replace(",", ".")
        # 1,234.56 -> 1234.56
        return cleaned.replace(",", "")

    if last_comma > -1:
        tail = cleaned[last_comma + 1:]
        if len(tail) == 3:
            # 1,234 / 1,234,567 -> thousands grouping
            return cleaned.replace(",", "")
        # 2930,63 / 0,5 -> decimal comma; any earlier commas are grouping
        head = cleaned[:last_comma].replace(",", "")
        return f"{head}.{tail}"

    if cleaned.count(".") > 1:
        # 1.234.567 -> thousands grouping
        return cleaned.replace(".", "")

    return cleaned


def parse_number(value: Optional[str]) -> float:
    """Parse a locale-ambiguous numeric token into a signed float.

    Examples:
        "1.234,56"  -> 1234.56
        "1,234.56"  -> 1234.56
        "2930,63"   -> 2930.63
        "1,234"     -> 1234.0
        "-$501,75"  -> -501.75
        "2025-12-17" -> 0.0   (date guard)
    """
    if not value or not value.strip():
        return 0.0

    if looks_like_date(value):
        return 0.0

    cleaned = _NON_NUMERIC_RE.sub("", value.replace("\u2212", "-"))

    negative = cleaned.startswith("-")
    cleaned = cleaned.replace("-", "")

    cleaned = _resolve_separators(cleaned)

    # Longest numeric prefix, so stray residue never produces NaN
    prefix = _NUMERIC_PREFIX_RE.match(cleaned).group(0)
    if not prefix.strip("."):
        return 0.0

    result = float(prefix)
    return -result if negative else result


def parse_fee(value: Optional[str]) -> float:
    """Fees are stored as magnitudes regardless of how the screen signs them."""
    return abs(parse_number(value))


def parse_optional_number(value: Optional[str]) -> Optional[float]:
    """Like parse_number, but blank cells mean 'absent' instead of zero."""
    if not value or not value.strip():
        return None
    return parse_number(value)


def parse_leverage(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    digits = re.sub(r"\D", "", value)
    return int(digits) if digits else None


def parse_symbol(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    symbol = value.strip().upper()
    return symbol or None


# ---------------------------------------------------------------------------
# Date parsing
# ---------------------------------------------------------------------------

# D/M/YYYY H:MM:SS with optional Vietnamese meridiem: SA = morning, CH = afternoon
_LOCALIZED_DATE_RE = re.compile(
    r"(?P<day>\d{1,2})/(?P<month>\d{1,2})/(?P<year>\d{4})\s+"
    r"(?P<hour>\d{1,2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\s*(?P<meridiem>SA|CH)\b)?",
    re.IGNORECASE,
)

_ISO_DATETIME_RE = re.compile(
    r"(?P<date>\d{4}-\d{2}-\d{2})[ T](?P<time>\d{2}:\d{2}:\d{2})"
)


def _is_real_date(year: int, month: int, day: int, hour: int, minute: int, second: int) -> bool:
    try:
        datetime(year, month, day, hour, minute, second)
    except ValueError:
        return False
    return True


def parse_localized_date(value: Optional[str]) -> Optional[str]:
    """Convert 'D/M/YYYY H:MM:SS [SA|CH]' into 'YYYY-MM-DDTHH:MM:SS'.

    Returns None when the text has no such stamp or the stamp is not a
    real calendar date.
    """
    if not value:
        return None

    m = _LOCALIZED_DATE_RE.search(value)
    if not m:
        return None

    day = int(m.group("day"))
    month = int(m.group("month"))
    year = int(m.group("year"))
    hour = int(m.group("hour"))
    minute = m.group("minute")
    second = m.group("second")

    meridiem = (m.group("meridiem") or "").upper()
    if meridiem == "CH" and hour < 12:
        hour += 12
    elif meridiem == "SA" and hour == 12:
        hour = 0

    if not _is_real_date(year, month, day, hour, int(minute), int(second)):
        logger.debug("Discarding impossible date stamp: %r", m.group(0))
        return None

    return f"{year}-{month:02d}-{day:02d}T{hour:02d}:{minute}:{second}"


def parse_iso_datetime(value: Optional[str]) -> Optional[str]:
    """Convert 'YYYY-MM-DD HH:MM:SS' into 'YYYY-MM-DDTHH:MM:SS'."""
    if not value:
        return None
    m = _ISO_DATETIME_RE.search(value)
    if not m:
        return None
    return f"{m.group('date')}T{m.group('time')}"
