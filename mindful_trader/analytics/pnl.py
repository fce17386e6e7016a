"""
Per-trade P&L, return and risk:reward calculations.

Degenerate input (zero cost basis, zero risk distance) is normalized to 0
instead of raising.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional


def _is_long(direction) -> bool:
    return str(getattr(direction, "value", direction)).lower() == "long"


def calculate_gross_pnl(
    direction,
    entry_price: float,
    exit_price: float,
    quantity: float,
) -> float:
    """
    Gross profit/loss before costs.

    (exit - entry) x quantity for longs, (entry - exit) x quantity for shorts.
    """
    if _is_long(direction):
        return (exit_price - entry_price) * quantity
    return (entry_price - exit_price) * quantity


def calculate_pnl(
    direction,
    entry_price: float,
    exit_price: float,
    quantity: float,
    commissions: float = 0.0,
) -> float:
    """
    Calculate net profit/loss for a trade.

    Commissions are always deducted.

    Args:
        direction: "long" / "short" (or TradeDirection)
        entry_price: Entry price
        exit_price: Exit price
        quantity: Number of shares
        commissions: Total commissions paid

    Returns:
        Net P&L in dollars
    """
    return calculate_gross_pnl(direction, entry_price, exit_price, quantity) - commissions


def calculate_return_percent(pnl: float, entry_price: float, quantity: float) -> float:
    """Return on cost basis in percent; 0 when the cost basis is 0."""
    cost_basis = entry_price * quantity
    if cost_basis == 0:
        return 0.0
    return (pnl / cost_basis) * 100


def calculate_risk_reward(
    entry_price: float,
    stop_loss: float,
    target: float,
    direction,
) -> float:
    """
    Calculate risk:reward ratio for a trade setup.

    Example: long at $100, stop $98, target $106 -> 3.0

    Returns:
        Reward distance / risk distance, or 0 when risk distance is 0
    """
    if _is_long(direction):
        risk = entry_price - stop_loss
        reward = target - entry_price
    else:
        risk = stop_loss - entry_price
        reward = entry_price - target

    if risk == 0:
        return 0.0
    return reward / risk


def calculate_hold_duration_minutes(
    entry_date: datetime, exit_date: Optional[datetime]
) -> Optional[int]:
    """Whole minutes between entry and exit, None while the trade is open."""
    if entry_date is None or exit_date is None:
        return None
    return math.floor((exit_date - entry_date).total_seconds() / 60)
