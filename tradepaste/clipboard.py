"""Format a TradeRecord as the 8-column spreadsheet row the tabular layout reads.

Format: OpenPrice [tab] ClosePrice [tab] OpenTime [tab] CloseTime [tab] Qty [tab] Coin [tab] Fee [tab] PnL
Example: 2.954,58	2.944,40	17/12/2025 10:16:52	17/12/2025 10:38:23	40,01	ETH	118,01	-407,30
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from .models import TradeRecord


def format_number_european(value: float, precision: int = 2) -> str:
    """1234.56 -> '1.234,56'"""
    us = f"{value:,.{precision}f}"
    return us.replace(",", "_").replace(".", ",").replace("_", ".")


def format_date_custom(iso_str: Optional[str]) -> str:
    """'2025-12-01T10:19:16' -> '1/12/2025 10:19:16'; blank for missing or bad input."""
    if not iso_str:
        return ""
    try:
        d = datetime.fromisoformat(iso_str.replace("Z", "+00:00"))
    except ValueError:
        return ""
    return f"{d.day}/{d.month}/{d.year} {d.hour:02d}:{d.minute:02d}:{d.second:02d}"


def format_trade_to_clipboard(trade: TradeRecord) -> str:
    close_price = format_number_european(trade.close_price) if trade.close_price else ""
    cells = [
        format_number_european(trade.open_price),
        close_price,
        format_date_custom(trade.open_time),
        format_date_custom(trade.close_time),
        format_number_european(trade.quantity),
        trade.coin,
        format_number_european(abs(trade.fee)),
        format_number_european(trade.pnl),
    ]
    return "\t".join(cells)
