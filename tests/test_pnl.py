"""Tests for per-trade P&L, return and risk:reward calculations."""

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from mindful_trader.analytics.pnl import (
    calculate_gross_pnl,
    calculate_hold_duration_minutes,
    calculate_pnl,
    calculate_return_percent,
    calculate_risk_reward,
)

prices = st.floats(min_value=0.01, max_value=10_000, allow_nan=False, allow_infinity=False)
quantities = st.integers(min_value=1, max_value=100_000)


class TestPnL:
    """Tests for net P&L."""

    def test_long_winner_with_commissions(self):
        """Long 100 -> 110 x 10 with $5 commissions nets $95."""
        assert calculate_pnl("long", 100.0, 110.0, 10, 5.0) == pytest.approx(95.0)

    def test_short_winner(self):
        assert calculate_pnl("short", 50.0, 45.0, 20) == pytest.approx(100.0)

    def test_short_loser(self):
        assert calculate_pnl("short", 50.0, 52.0, 10, 1.0) == pytest.approx(-21.0)

    def test_commissions_default_to_zero(self):
        assert calculate_pnl("long", 10.0, 11.0, 1) == pytest.approx(1.0)

    def test_accepts_enum_direction(self):
        from mindful_trader.journal.models import TradeDirection

        assert calculate_pnl(TradeDirection.SHORT, 10.0, 9.0, 1) == pytest.approx(1.0)

    def test_gross_excludes_commissions(self):
        assert calculate_gross_pnl("long", 100.0, 110.0, 10) == pytest.approx(100.0)

    @given(entry=prices, exit_=prices, qty=quantities)
    def test_long_short_antisymmetry(self, entry, exit_, qty):
        """A long from e to x earns what a short from x to e earns."""
        assert calculate_pnl("long", entry, exit_, qty) == pytest.approx(
            calculate_pnl("short", exit_, entry, qty)
        )

    @given(entry=prices, exit_=prices, qty=quantities)
    def test_direction_flip_negates(self, entry, exit_, qty):
        assert calculate_pnl("long", entry, exit_, qty) == pytest.approx(
            -calculate_pnl("short", entry, exit_, qty)
        )


class TestReturnPercent:
    def test_return_on_cost_basis(self):
        assert calculate_return_percent(95.0, 100.0, 10) == pytest.approx(9.5)

    def test_zero_cost_basis_returns_zero(self):
        assert calculate_return_percent(50.0, 0.0, 10) == 0.0


class TestRiskReward:
    """Tests for risk:reward ratio."""

    def test_long_setup(self):
        # Risk $2, reward $6
        assert calculate_risk_reward(100.0, 98.0, 106.0, "long") == pytest.approx(3.0)

    def test_short_setup(self):
        assert calculate_risk_reward(100.0, 102.0, 96.0, "short") == pytest.approx(2.0)

    def test_zero_risk_returns_zero(self):
        assert calculate_risk_reward(100.0, 100.0, 110.0, "long") == 0.0


class TestHoldDuration:
    def test_whole_minutes(self):
        entry = datetime(2024, 1, 16, 15, 0, tzinfo=timezone.utc)
        exit_ = entry + timedelta(minutes=90, seconds=59)
        assert calculate_hold_duration_minutes(entry, exit_) == 90

    def test_open_trade_has_no_duration(self):
        entry = datetime(2024, 1, 16, 15, 0, tzinfo=timezone.utc)
        assert calculate_hold_duration_minutes(entry, None) is None
