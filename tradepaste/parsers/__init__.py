from .normalizers import parse_number, parse_localized_date, parse_iso_datetime
from .layouts import DEFAULT_LAYOUTS, Layout, TabularLayout, FieldRule, classify_layouts, extend_layouts
from .trade_parser import TradeTextParser, parse_trade_text, passes_gate, merge_with_defaults, CASCADE_VERSION
