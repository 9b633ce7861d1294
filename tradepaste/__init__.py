"""Turn pasted trade-detail text from exchange apps into normalized trade records."""

from .exceptions import AIExtractionError, TradeParseError
from .models import TradeRecord
from .parsers.trade_parser import TradeTextParser, parse_trade_text

__version__ = "0.2.0"
