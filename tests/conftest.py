"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timedelta, timezone

import pytest


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Pin environment overrides so tests do not depend on the local .env."""
    os.environ.pop("TIMEZONE", None)
    os.environ.pop("LOG_LEVEL", None)
    yield


@pytest.fixture
def make_trade():
    """
    Factory for closed trades with an explicit net P&L.

    Keyword arguments override Trade fields; `pre` and `post` take dicts
    that become journals.
    """
    from mindful_trader.journal.models import (
        PostTradeJournal,
        PreTradeJournal,
        Trade,
        TradeDirection,
    )

    def _make(net_pnl=100.0, pre=None, post=None, **kwargs):
        entry_date = kwargs.pop("entry_date", datetime(2024, 1, 16, 15, 0, tzinfo=timezone.utc))
        exit_date = kwargs.pop("exit_date", entry_date + timedelta(hours=1))
        quantity = kwargs.pop("quantity", 10)
        entry_price = kwargs.pop("entry_price", 100.0)

        fields = dict(
            ticker="SPY",
            direction=TradeDirection.LONG,
            entry_date=entry_date,
            entry_price=entry_price,
            quantity=quantity,
            exit_date=exit_date,
            exit_price=None if net_pnl is None else entry_price + net_pnl / quantity,
            net_pnl=net_pnl,
            gross_pnl=net_pnl,
            day_of_week=2,
            hour_of_day=10,
            pre_journal=PreTradeJournal(**pre) if pre is not None else None,
            post_journal=PostTradeJournal(**post) if post is not None else None,
        )
        fields.update(kwargs)
        return Trade(**fields)

    return _make


@pytest.fixture
def journaled(make_trade):
    """Factory for trades carrying both journals."""

    def _make(
        net_pnl=100.0,
        followed_plan=True,
        emotions=None,
        emotional_score=5,
        setup_quality=4,
        post_emotions=None,
        **kwargs,
    ):
        pre = {
            "emotional_state": emotions or [],
            "emotional_score": emotional_score,
            "setup_quality": setup_quality,
        }
        pre.update(kwargs.pop("pre_extra", {}))
        post = {"followed_plan": followed_plan, "emotional_state": post_emotions or []}
        return make_trade(net_pnl=net_pnl, pre=pre, post=post, **kwargs)

    return _make


@pytest.fixture
def trade_rows():
    """Database-shaped rows as exported from the trades table."""
    return [
        {
            "id": "t1",
            "ticker": "aapl",
            "direction": "long",
            "entry_date": "2024-01-16T15:00:00Z",
            "exit_date": "2024-01-16T16:30:00Z",
            "entry_price": 100.0,
            "exit_price": 110.0,
            "quantity": 10,
            "commissions": 5.0,
            "initial_stop_loss": 95.0,
            "strategy_id": "s1",
            "strategies": {"name": "Opening Range Breakout"},
            "pre_trade_journals": [
                {
                    "emotional_state": ["confident"],
                    "emotional_score": 7,
                    "setup_quality": 4,
                    "spy_trend": "uptrend",
                    "sector_context": "Tech sector showing strength",
                }
            ],
            "post_trade_journals": [
                {"followed_plan": True, "emotional_state": ["satisfied"]}
            ],
        },
        {
            "id": "t2",
            "ticker": "TSLA",
            "direction": "short",
            "entry_date": "2024-01-17T14:45:00Z",
            "exit_date": "2024-01-17T15:00:00Z",
            "entry_price": 200.0,
            "exit_price": 204.0,
            "quantity": 5,
            "commissions": 0,
            "net_pnl": -20.0,
            "day_of_week": 3,
            "hour_of_day": 9,
            "pre_trade_journals": {
                "emotional_state": ["FOMO"],
                "emotional_score": 3,
                "setup_quality": 2,
                "spy_trend": "choppy",
                "sector_context": None,
            },
            "post_trade_journals": None,
        },
        {
            "id": "t3",
            "ticker": "MSFT",
            "direction": "long",
            "entry_date": "2024-01-18T15:30:00Z",
            "exit_date": None,
            "entry_price": 400.0,
            "exit_price": None,
            "quantity": 2,
            "pre_trade_journals": [],
            "post_trade_journals": [],
        },
    ]
