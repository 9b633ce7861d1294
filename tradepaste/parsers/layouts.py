"""
Declarative layouts for pasted trade-detail screens.

Layout priority (highest first):
1. tabular    - one 8-column tab-separated spreadsheet row
2. vietnamese - Aivora VN screen ("Giá Mở" / "Giá Đóng" captions)
3. grid       - Aivora English screen, stacked or sequential captions
4. mobile     - mobile position detail ("Time Opened" caption)
5. legacy     - Bitunix-style English screen ("Entry Price" caption)

Each layout is data: an anchor guard plus an ordered tuple of FieldRules.
A rule only fills fields that are still empty, so fallbacks are just later
rules.  Adding an exchange means adding a Layout, not editing one.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .normalizers import (
    parse_fee,
    parse_iso_datetime,
    parse_leverage,
    parse_localized_date,
    parse_number,
    parse_optional_number,
    parse_symbol,
)

Transform = Callable[[str], Any]
PartialRecord = dict[str, Any]


# ---------------------------------------------------------------------------
# Value patterns
# ---------------------------------------------------------------------------

# Keep date stamps out of numeric captures ("2025-12-17" is not a price)
_NOT_DATE = r"(?!\d{4}-\d{2}-\d{2})(?!\d{1,2}/\d{1,2}/\d{4})"

PRICE = _NOT_DATE + r"\d[\d.,]*"
AMOUNT = r"[+\-\u2212]?[ ]?[$€]?[ ]?[+\-\u2212]?" + _NOT_DATE + r"\d[\d.,]*"
SYMBOL = r"[A-Z]{2,10}"
ISO_STAMP = r"\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2}"
LOCAL_STAMP = r"\d{1,2}/\d{1,2}/\d{4}\s+\d{1,2}:\d{2}:\d{2}(?:\s*(?i:SA|CH))?"


def caption(label: str, value: str = PRICE) -> str:
    """Caption on its own line, value on the next line."""
    return rf"^[ \t]*(?i:{label})[ \t]*\n\s*({value})"


def stacked(captions: tuple[str, ...], values: tuple[str, ...]) -> str:
    """A row of captions followed by a row of values (newline or tab separated).

    ``values`` entries must each contain the capture groups they need.
    """
    head = r"\s+".join(f"(?i:{c})" for c in captions)
    return r"^[ \t]*" + head + r"\s+" + r"\s+".join(values)


def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.MULTILINE)


# ---------------------------------------------------------------------------
# Rules and layouts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldRule:
    """Fill one or more record fields from the first pattern that matches.

    ``targets`` pairs each capture group (in order) with a field name and
    the transform applied to the captured text.  A transform returning
    None leaves that field empty.  ``occurrence`` picks which match of the
    pattern to use (negative counts from the end); ``min_matches`` is the
    number of matches required before the rule fires at all.
    """

    targets: tuple[tuple[str, Transform], ...]
    patterns: tuple[re.Pattern, ...]
    occurrence: int = 0
    min_matches: int = 1

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.targets)

    def _pick(self, pattern: re.Pattern, text: str) -> Optional[re.Match]:
        if self.occurrence == 0 and self.min_matches <= 1:
            return pattern.search(text)
        matches = list(pattern.finditer(text))
        if len(matches) < self.min_matches:
            return None
        try:
            return matches[self.occurrence]
        except IndexError:
            return None

    def apply(self, text: str, record: PartialRecord) -> None:
        if all(name in record for name in self.field_names):
            return

        for pattern in self.patterns:
            m = self._pick(pattern, text)
            if m is None:
                continue
            filled = False
            for group, (name, transform) in enumerate(self.targets, start=1):
                if name in record:
                    continue
                value = transform(m.group(group))
                if value is not None:
                    record[name] = value
                    filled = True
            if filled:
                return


def rule(
    name: str,
    *patterns: str,
    transform: Transform = parse_number,
    occurrence: int = 0,
    min_matches: int = 1,
) -> FieldRule:
    return FieldRule(
        targets=((name, transform),),
        patterns=tuple(_compile(p) for p in patterns),
        occurrence=occurrence,
        min_matches=min_matches,
    )


def composite(targets: tuple[tuple[str, Transform], ...], *patterns: str) -> FieldRule:
    return FieldRule(targets=targets, patterns=tuple(_compile(p) for p in patterns))


@dataclass(frozen=True)
class Layout:
    """A caption-driven screen layout guarded by anchor keywords."""

    name: str
    anchors_any: tuple[str, ...]
    rules: tuple[FieldRule, ...]
    anchors_none: tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        if not any(anchor in text for anchor in self.anchors_any):
            return False
        return not any(anchor in text for anchor in self.anchors_none)

    def extract(self, text: str) -> Optional[PartialRecord]:
        if not self.matches(text):
            return None
        record: PartialRecord = {}
        for field_rule in self.rules:
            field_rule.apply(text, record)
        return record


@dataclass(frozen=True)
class TabularLayout:
    """A single spreadsheet row whose cells map positionally to fields."""

    name: str
    columns: tuple[tuple[str, Transform], ...]
    separator: str = "\t"
    first_cell: re.Pattern = field(default_factory=lambda: re.compile(r"^\d"))

    def _cells(self, text: str) -> list[str]:
        return text.strip("\r\n").split(self.separator)

    def matches(self, text: str) -> bool:
        cells = self._cells(text)
        if len(cells) != len(self.columns):
            return False
        return bool(self.first_cell.match(cells[0].strip()))

    def extract(self, text: str) -> Optional[PartialRecord]:
        if not self.matches(text):
            return None
        record: PartialRecord = {}
        for cell, (name, transform) in zip(self._cells(text), self.columns):
            value = transform(cell)
            if value is not None:
                record[name] = value
        return record


AnyLayout = Layout | TabularLayout
LayoutSet = tuple[AnyLayout, ...]


# ---------------------------------------------------------------------------
# Shared fallbacks
# ---------------------------------------------------------------------------

_SYMBOL_FROM_PAIR = rule("coin", rf"^\s*({SYMBOL})USDT", transform=parse_symbol)
# Also matches a suffix glued to the pair name (ETHUSDT100X)
_LEVERAGE_SUFFIX = rule("leverage", r"(?<![\d.,])(\d{1,3})[ ]?[xX]\b", transform=parse_leverage)


# ---------------------------------------------------------------------------
# 1. Tabular spreadsheet row
#    2.860,90  2.827,45  1/12/2025 10:19:16  1/12/2025 10:39:12  15,00  ETH  $42,66  -$501,75
# ---------------------------------------------------------------------------

TABULAR = TabularLayout(
    name="tabular",
    columns=(
        ("open_price", parse_number),
        ("close_price", parse_optional_number),
        ("open_time", parse_localized_date),
        ("close_time", parse_localized_date),
        ("quantity", parse_number),
        ("coin", parse_symbol),
        ("fee", parse_fee),
        ("pnl", parse_number),
    ),
)


# ---------------------------------------------------------------------------
# 2. Vietnamese captions (Aivora VN)
# ---------------------------------------------------------------------------

VIETNAMESE = Layout(
    name="vietnamese",
    anchors_any=("Giá Mở", "Giá Đóng"),
    rules=(
        rule("coin", caption("Coin", SYMBOL), transform=parse_symbol),
        rule("quantity", caption("SL")),
        rule("open_price", caption("Giá Mở")),
        rule("close_price", caption("Giá Đóng")),
        # "Ngày" appears once per side: first = opened, second = closed
        rule("open_time", caption("Ngày", LOCAL_STAMP), transform=parse_localized_date),
        rule("close_time", caption("Ngày", LOCAL_STAMP), transform=parse_localized_date,
             occurrence=1, min_matches=2),
        rule("fee", caption("Phí", AMOUNT), transform=parse_fee),
        rule("pnl", caption("PnL", AMOUNT)),
        rule("leverage", caption("Đòn Bẩy", r"\d+"), transform=parse_leverage),
    ),
)


# ---------------------------------------------------------------------------
# 3. Grid / stacked English (Aivora EN)
# ---------------------------------------------------------------------------

_QTY_WITH_SYMBOL = rf"({PRICE})\s*({SYMBOL})\b"

GRID = Layout(
    name="grid",
    anchors_any=("Open Time", "Opening Average Price"),
    anchors_none=("Entry Price", "Time Opened"),
    rules=(
        # Stacked: captions in a row, then their values in a row
        composite(
            (("open_time", parse_iso_datetime), ("open_price", parse_number),
             ("quantity", parse_number), ("coin", parse_symbol)),
            stacked(("Open Time", "Opening Average Price", "Position Size"),
                    (f"({ISO_STAMP})", f"({PRICE})", _QTY_WITH_SYMBOL)),
        ),
        composite(
            (("close_time", parse_iso_datetime), ("close_price", parse_number)),
            stacked(("Close Time", "Closing Average Price", "Funding Fee"),
                    (f"({ISO_STAMP})", f"({PRICE})", f"{AMOUNT}")),
        ),
        composite(
            (("open_time", parse_iso_datetime), ("open_price", parse_number)),
            stacked(("Open Time", "Opening Average Price"), (f"({ISO_STAMP})", f"({PRICE})")),
        ),
        composite(
            (("close_time", parse_iso_datetime), ("close_price", parse_number)),
            stacked(("Close Time", "Closing Average Price"), (f"({ISO_STAMP})", f"({PRICE})")),
        ),
        composite(
            (("quantity", parse_number), ("coin", parse_symbol)),
            stacked(("Position Size", "Funding Fee"), (_QTY_WITH_SYMBOL,)),
        ),
        composite(
            (("fee", parse_fee), ("pnl", parse_number)),
            stacked(("Fees", "Position PnL"), (rf"({AMOUNT})(?:[ \t]*{SYMBOL})?", f"({AMOUNT})")),
        ),
        # Sequential: each caption directly followed by its value
        rule("open_price", caption("Opening Average Price")),
        rule("close_price", caption("Closing Average Price")),
        rule("open_time", caption("Open Time", ISO_STAMP), transform=parse_iso_datetime),
        rule("close_time", caption("Close Time", ISO_STAMP), transform=parse_iso_datetime),
        composite(
            (("quantity", parse_number), ("coin", parse_symbol)),
            rf"^[ \t]*(?i:Volume|Position Size)[ \t]*\n?\s*{_QTY_WITH_SYMBOL}",
        ),
        rule("fee", caption("Fees", AMOUNT), caption("Fee", AMOUNT), transform=parse_fee),
        rule("pnl", caption("Position PnL", AMOUNT)),
        # Positional timestamps: first seen = open, last seen = close
        rule("open_time", f"({ISO_STAMP})", transform=parse_iso_datetime),
        rule("close_time", f"({ISO_STAMP})", transform=parse_iso_datetime,
             occurrence=-1, min_matches=2),
        _SYMBOL_FROM_PAIR,
        _LEVERAGE_SUFFIX,
    ),
)


# ---------------------------------------------------------------------------
# 4. Mobile / vertical position detail
# ---------------------------------------------------------------------------

MOBILE = Layout(
    name="mobile",
    anchors_any=("Time Opened",),
    rules=(
        rule("open_time", caption("Time Opened", ISO_STAMP), transform=parse_iso_datetime),
        rule("close_time", caption("Time Closed", ISO_STAMP), transform=parse_iso_datetime),
        rule("open_price", caption("Entry Price")),
        rule("close_price", caption("Close Price")),
        composite(
            (("quantity", parse_number), ("coin", parse_symbol)),
            rf"^[ \t]*(?i:Closed Qty\.?|Max Held)[ \t]*\n\s*({PRICE})(?:\s*\n\s*|[ \t]+)({SYMBOL})\b",
        ),
        rule("quantity", caption(r"Closed Qty\.?"), caption("Max Held")),
        rule("fee", caption("Fees", AMOUNT), transform=parse_fee),
        # Closing PnL is realized; Position PnL may be unrealized
        rule("pnl", caption("Closing PnL", AMOUNT), caption("Position PnL", AMOUNT)),
        _SYMBOL_FROM_PAIR,
        _LEVERAGE_SUFFIX,
    ),
)


# ---------------------------------------------------------------------------
# 5. Legacy English fallback (Bitunix)
# ---------------------------------------------------------------------------

LEGACY = Layout(
    name="legacy",
    anchors_any=("Entry Price",),
    anchors_none=("Time Opened",),
    rules=(
        rule("open_price", caption("Entry Price")),
        rule("close_price", caption("Exit Price")),
        rule("open_time", caption("Open Time", ISO_STAMP), transform=parse_iso_datetime),
        rule("close_time", caption("Close Time", ISO_STAMP), transform=parse_iso_datetime),
        composite(
            (("quantity", parse_number), ("coin", parse_symbol)),
            rf"^[ \t]*(?i:Quantity)[ \t]*\n\s*{_QTY_WITH_SYMBOL}",
        ),
        rule("quantity", caption("Quantity")),
        rule("fee", caption("Trading Fee", AMOUNT), caption("Fees", AMOUNT), transform=parse_fee),
        rule("pnl", caption("Position PnL", AMOUNT)),
        _SYMBOL_FROM_PAIR,
        _LEVERAGE_SUFFIX,
    ),
)


DEFAULT_LAYOUTS: LayoutSet = (TABULAR, VIETNAMESE, GRID, MOBILE, LEGACY)


def extend_layouts(
    layouts: LayoutSet, layout: AnyLayout, *, before: Optional[str] = None,
) -> LayoutSet:
    """Return a new layout tuple with ``layout`` added.

    Appended last (lowest priority) unless ``before`` names an existing layout.
    """
    names = [existing.name for existing in layouts]
    if layout.name in names:
        raise ValueError(f"Layout '{layout.name}' is already registered")
    if before is None:
        return (*layouts, layout)
    if before not in names:
        raise ValueError(f"Unknown layout '{before}'")
    idx = names.index(before)
    return (*layouts[:idx], layout, *layouts[idx:])


def classify_layouts(text: str, layouts: LayoutSet = DEFAULT_LAYOUTS) -> list[str]:
    """Names of every layout whose guard accepts ``text``, in priority order."""
    return [layout.name for layout in layouts if layout.matches(text)]
