from .ai_extractor import ClaudeTradeExtractor, TradeExtractor, parse_extraction_response
