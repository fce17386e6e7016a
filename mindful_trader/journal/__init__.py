"""Trade journal models and import pipeline."""

from mindful_trader.journal.models import PostTradeJournal, PreTradeJournal, Trade, TradeDirection
from mindful_trader.journal.ingest import load_trades

__all__ = [
    "Trade",
    "TradeDirection",
    "PreTradeJournal",
    "PostTradeJournal",
    "load_trades",
]
