"""Normalized trade record shared by every parsing path."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import Any, Optional

CANONICAL_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

DEFAULT_COIN = "ETH"
DEFAULT_LEVERAGE = 100

# camelCase keys sent by the web UI and by some AI responses
_CAMEL_TO_FIELD = {
    "openPrice": "open_price",
    "closePrice": "close_price",
    "openTime": "open_time",
    "closeTime": "close_time",
    "symbol": "coin",
}


def _to_float(value: Any) -> float:
    """JSON numbers pass through; numeric strings may use either locale."""
    if not isinstance(value, str):
        return float(value)
    if not any(ch.isdigit() for ch in value):
        raise ValueError(f"not a number: {value!r}")
    from .parsers.normalizers import parse_number
    return parse_number(value)


@dataclass
class TradeRecord:
    """A single trading position extracted from pasted text."""

    uid: str = ""
    coin: str = DEFAULT_COIN
    open_price: float = 0.0
    close_price: Optional[float] = None  # None = position still open
    open_time: str = ""  # YYYY-MM-DDTHH:MM:SS
    close_time: Optional[str] = None
    quantity: float = 0.0
    fee: float = 0.0  # always stored as a magnitude
    pnl: float = 0.0
    leverage: int = DEFAULT_LEVERAGE

    def __post_init__(self) -> None:
        self.fee = abs(float(self.fee or 0.0))
        self.coin = str(self.coin or "").strip().upper()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TradeRecord":
        """Build a record from a JSON-style dict.

        Accepts snake_case attribute names and the camelCase keys of the
        web UI. Unknown keys are ignored; missing ones keep the
        dataclass defaults.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_TO_FIELD.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value

        for name in ("open_price", "close_price", "quantity", "fee", "pnl"):
            if name in kwargs:
                kwargs[name] = _to_float(kwargs[name])
        if "leverage" in kwargs:
            kwargs["leverage"] = int(kwargs["leverage"])
        return cls(**kwargs)


def now_canonical(now: Optional[datetime] = None) -> str:
    """Current (or given) time as a canonical ``YYYY-MM-DDTHH:MM:SS`` string."""
    return (now or datetime.now()).strftime(CANONICAL_TIME_FORMAT)


def default_template(
    now: Optional[datetime] = None,
    coin: str = DEFAULT_COIN,
    leverage: int = DEFAULT_LEVERAGE,
) -> dict[str, Any]:
    """Total default record used to fill gaps in a partial detection."""
    return {
        "uid": "",
        "coin": coin,
        "open_price": 0.0,
        "open_time": now_canonical(now),
        "quantity": 0.0,
        "fee": 0.0,
        "pnl": 0.0,
        "leverage": leverage,
    }
