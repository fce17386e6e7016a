"""Tests for input validation schemas."""

import pytest
from pydantic import ValidationError

from mindful_trader.journal.schemas import (
    PostTradeJournalInput,
    PreTradeJournalInput,
    TradeDirection,
    TradeInput,
)

VALID_TRADE = {
    "ticker": " aapl ",
    "direction": "LONG",
    "entry_date": "2024-01-16T15:00:00Z",
    "entry_price": 100.0,
    "quantity": 10,
}


class TestTradeInput:
    def test_normalizes_ticker_and_direction(self):
        trade = TradeInput.model_validate(VALID_TRADE)
        assert trade.ticker == "AAPL"
        assert trade.direction == TradeDirection.LONG.value
        assert trade.commissions == 0.0

    @pytest.mark.parametrize(
        "field,value",
        [
            ("entry_price", 0),
            ("entry_price", float("inf")),
            ("quantity", -1),
            ("quantity", 1.5),
            ("commissions", -1.0),
            ("commissions", float("nan")),
            ("ticker", ""),
            ("direction", "sideways"),
        ],
    )
    def test_rejects_invalid(self, field, value):
        with pytest.raises(ValidationError):
            TradeInput.model_validate({**VALID_TRADE, field: value})

    def test_exit_price_requires_exit_date(self):
        with pytest.raises(ValidationError, match="Exit date required"):
            TradeInput.model_validate({**VALID_TRADE, "exit_price": 110.0})

    def test_exit_date_requires_exit_price(self):
        with pytest.raises(ValidationError, match="Exit price required"):
            TradeInput.model_validate({**VALID_TRADE, "exit_date": "2024-01-16T16:00:00Z"})


class TestJournalInputs:
    def test_pre_trade_ranges(self):
        PreTradeJournalInput(emotional_score=10, setup_quality=5, spy_trend="choppy")
        with pytest.raises(ValidationError):
            PreTradeJournalInput(emotional_score=11)
        with pytest.raises(ValidationError):
            PreTradeJournalInput(setup_quality=0)

    def test_pre_trade_enum_values(self):
        journal = PreTradeJournalInput(spy_trend="DOWNTREND", market_bias="Bullish")
        assert journal.spy_trend == "downtrend"
        assert journal.market_bias == "bullish"
        with pytest.raises(ValidationError):
            PreTradeJournalInput(spy_trend="crash")

    def test_post_trade_defaults(self):
        journal = PostTradeJournalInput()
        assert journal.followed_plan is None
        assert journal.rule_violations == []

    @pytest.mark.parametrize("value", ["yes", 1, "true"])
    def test_followed_plan_is_strict(self, value):
        with pytest.raises(ValidationError):
            PostTradeJournalInput(followed_plan=value)
