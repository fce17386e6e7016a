"""
Portfolio-level trade analytics.

Computes:
- Win rate, profit factor, expectancy
- Average / largest win and loss
- Current and longest win/loss streaks
- Equity curve, max drawdown, Sharpe ratio
- Per-strategy performance
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence
import logging

import numpy as np

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class PortfolioMetrics:
    """Overall performance across a set of closed trades."""

    # Basic counts
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    breakeven_trades: int = 0
    win_rate: float = 0.0

    # P&L metrics
    total_pnl: float = 0.0
    expectancy: float = 0.0
    profit_factor: float = 0.0
    avg_rr: float = 0.0

    # Winner/Loser analysis
    avg_win: float = 0.0
    avg_loss: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0

    # Streak analysis
    current_streak: int = 0  # Positive for wins, negative for losses
    max_win_streak: int = 0
    max_loss_streak: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class EquityPoint:
    """Cumulative P&L after a closed trade."""

    date: datetime
    pnl: float
    cumulative_pnl: float

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "pnl": self.pnl,
            "cumulative_pnl": self.cumulative_pnl,
        }


@dataclass
class StrategyStats:
    """Statistics for a single strategy."""

    strategy_id: str
    strategy_name: str
    trade_count: int
    win_count: int
    loss_count: int
    win_rate: float
    total_pnl: float
    avg_rr: float
    journaled_trades: int
    discipline_score: int
    most_common_emotion: Optional[str]

    def to_dict(self) -> dict:
        return asdict(self)


def calculate_win_rate(wins: int, total_trades: int) -> float:
    """Win rate in percent; 0 when there are no trades."""
    if total_trades == 0:
        return 0.0
    return wins / total_trades * 100


def calculate_profit_factor(pnls: Iterable[float]) -> float:
    """
    Compute profit factor.

    Profit Factor = Gross Profit / |Gross Loss|

    Returns:
        inf when there are no losses but some profit, 0 when there is
        neither profit nor loss
    """
    values = list(pnls)
    gross_profit = sum(p for p in values if p > 0)
    gross_loss = abs(sum(p for p in values if p < 0))

    if gross_loss == 0:
        return float("inf") if gross_profit > 0 else 0.0

    return abs(gross_profit / gross_loss)


def calculate_expectancy(trades: Sequence) -> float:
    """
    Average net P&L per trade.

    Trades without a net P&L (open trades) are ignored.
    """
    pnls = [t.net_pnl for t in trades if t.net_pnl is not None]
    if not pnls:
        return 0.0
    return float(np.mean(pnls))


def calculate_average_pnl(values: Sequence[float]) -> float:
    """Plain mean; 0 on empty input."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def _exit_key(trade) -> datetime:
    return getattr(trade, "exit_date", None) or getattr(trade, "entry_date", None) or _EPOCH


def calculate_current_streak(trades: Sequence) -> int:
    """
    Current win/loss streak, counted from the most recent exit.

    The most recent trade decides the class: a win (net P&L > 0) or not
    (breakeven counts as a loss here). Consecutive trades of the same class
    are counted. Winning streaks are positive, losing streaks negative.
    """
    if not trades:
        return 0

    ordered = sorted(trades, key=_exit_key, reverse=True)
    winning = (ordered[0].net_pnl or 0) > 0

    streak = 0
    for trade in ordered:
        is_win = (trade.net_pnl or 0) > 0
        if is_win != winning:
            break
        streak += 1

    return streak if winning else -streak


def _longest_streaks(trades: Sequence) -> tuple[int, int]:
    """Longest winning and losing runs in exit order."""
    max_win = max_loss = 0
    win_run = loss_run = 0
    for trade in sorted(trades, key=_exit_key):
        if (trade.net_pnl or 0) > 0:
            win_run += 1
            loss_run = 0
            max_win = max(max_win, win_run)
        else:
            loss_run += 1
            win_run = 0
            max_loss = max(max_loss, loss_run)
    return max_win, max_loss


def calculate_portfolio_metrics(trades: Sequence) -> PortfolioMetrics:
    """
    Calculate overall portfolio statistics.

    Only closed trades (non-null net P&L) contribute. An empty set yields an
    all-zero PortfolioMetrics.
    """
    closed = [t for t in trades if t.net_pnl is not None]
    if not closed:
        return PortfolioMetrics()

    pnls = [t.net_pnl for t in closed]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]

    rr_values = [t.actual_rr for t in closed if getattr(t, "actual_rr", None) and t.actual_rr > 0]
    max_win_streak, max_loss_streak = _longest_streaks(closed)

    metrics = PortfolioMetrics(
        total_trades=len(closed),
        winning_trades=len(wins),
        losing_trades=len(losses),
        breakeven_trades=len(closed) - len(wins) - len(losses),
        win_rate=calculate_win_rate(len(wins), len(closed)),
        total_pnl=float(sum(pnls)),
        expectancy=calculate_expectancy(closed),
        profit_factor=calculate_profit_factor(pnls),
        avg_rr=calculate_average_pnl(rr_values),
        avg_win=float(np.mean(wins)) if wins else 0.0,
        avg_loss=float(np.mean([abs(p) for p in losses])) if losses else 0.0,
        largest_win=float(max(wins)) if wins else 0.0,
        largest_loss=float(min(losses)) if losses else 0.0,
        current_streak=calculate_current_streak(closed),
        max_win_streak=max_win_streak,
        max_loss_streak=max_loss_streak,
    )
    logger.debug(
        "Portfolio metrics over %d trades: win_rate=%.2f pf=%s",
        metrics.total_trades,
        metrics.win_rate,
        metrics.profit_factor,
    )
    return metrics


def build_equity_curve(trades: Sequence) -> list[EquityPoint]:
    """Cumulative net P&L of closed trades in exit order."""
    closed = [
        t for t in trades if getattr(t, "exit_date", None) is not None and t.net_pnl is not None
    ]
    closed.sort(key=lambda t: t.exit_date)

    curve = []
    cumulative = 0.0
    for trade in closed:
        cumulative += trade.net_pnl
        curve.append(EquityPoint(date=trade.exit_date, pnl=trade.net_pnl, cumulative_pnl=cumulative))
    return curve


def calculate_max_drawdown(equity_curve: Sequence[float]) -> float:
    """
    Maximum peak-to-trough decline, in percent of the running peak.

    Points where the running peak is not positive are skipped.
    """
    if len(equity_curve) == 0:
        return 0.0

    max_drawdown = 0.0
    peak = equity_curve[0]
    for value in equity_curve:
        if value > peak:
            peak = value
        if peak <= 0:
            continue
        drawdown = (peak - value) / peak * 100
        if drawdown > max_drawdown:
            max_drawdown = drawdown
    return max_drawdown


def calculate_sharpe_ratio(returns: Sequence[float], risk_free_rate: float = 0.0) -> float:
    """Simplified Sharpe ratio: excess mean return over population std dev."""
    if len(returns) == 0:
        return 0.0

    std_dev = float(np.std(returns))
    if std_dev == 0:
        return 0.0
    return (float(np.mean(returns)) - risk_free_rate) / std_dev


def most_common_tag(tags: Iterable[str]) -> Optional[str]:
    """Most frequent tag; ties go to the tag seen first."""
    counts = Counter(tags)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def calculate_strategy_breakdown(trades: Sequence) -> list[StrategyStats]:
    """
    Per-strategy performance, sorted by total P&L descending.

    Trades without a strategy or without a net P&L are skipped. The strategy
    discipline score blends plan adherence and setup quality 50/50.
    """
    by_strategy = defaultdict(list)
    for t in trades:
        if t.strategy_id is None or t.net_pnl is None:
            continue
        by_strategy[t.strategy_id].append(t)

    breakdown = []
    for strategy_id, strat_trades in by_strategy.items():
        win_count = len([t for t in strat_trades if t.net_pnl > 0])
        loss_count = len([t for t in strat_trades if t.net_pnl < 0])
        rr_values = [t.actual_rr for t in strat_trades if t.actual_rr]

        journaled = [t for t in strat_trades if t.is_journaled]
        discipline_score = 0
        if journaled:
            followed = len([t for t in journaled if t.post_journal.followed_plan is True])
            adherence = followed / len(journaled) * 100
            qualities = [
                t.pre_journal.setup_quality
                for t in journaled
                if t.pre_journal.setup_quality is not None
            ]
            setup_score = float(np.mean(qualities)) * 20 if qualities else 50.0
            discipline_score = round(adherence * 0.5 + setup_score * 0.5)

        name = next((t.strategy_name for t in strat_trades if t.strategy_name), None)
        breakdown.append(
            StrategyStats(
                strategy_id=strategy_id,
                strategy_name=name or "Unknown Strategy",
                trade_count=len(strat_trades),
                win_count=win_count,
                loss_count=loss_count,
                win_rate=calculate_win_rate(win_count, len(strat_trades)),
                total_pnl=float(sum(t.net_pnl for t in strat_trades)),
                avg_rr=calculate_average_pnl(rr_values),
                journaled_trades=len(journaled),
                discipline_score=discipline_score,
                most_common_emotion=most_common_tag(
                    tag for t in journaled for tag in t.pre_journal.emotional_state
                ),
            )
        )

    return sorted(breakdown, key=lambda s: s.total_pnl, reverse=True)
