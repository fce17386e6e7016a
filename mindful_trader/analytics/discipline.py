"""
Trading psychology and discipline analytics.

The discipline score (0-100) blends three components over journaled trades:

    rule adherence     40%  share of trades where the plan was followed
    emotional control  30%  100 when pre-trade emotional scores are steady
    setup quality      30%  average setup quality (1-5) scaled to 100

Psychology metrics and the weekly report reuse the same calculation over a
time window ending at an explicit reference time.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence
import logging

import numpy as np
import pandas as pd

from mindful_trader.analytics.portfolio import calculate_win_rate, most_common_tag

logger = logging.getLogger(__name__)

RULE_ADHERENCE_WEIGHT = 0.4
EMOTIONAL_CONTROL_WEIGHT = 0.3
SETUP_QUALITY_WEIGHT = 0.3

# Volatility below this is treated as full emotional control.
STEADY_VOLATILITY = 2.0
DEFAULT_SETUP_SCORE = 50.0

FOMO_TAG = "FOMO"
REVENGE_TAG = "revenge"

PERIODS = ("week", "month", "all")
ALL_TIME_START = datetime(2020, 1, 1, tzinfo=timezone.utc)


@dataclass
class DisciplineMetrics:
    """Behavioural summary over the journaled subset of a set of trades."""

    total_trades: int = 0
    trades_with_journals: int = 0
    discipline_score: int = 0
    rule_adherence_rate: float = 0.0
    emotional_control_score: float = 0.0
    setup_quality_score: float = 0.0
    emotional_volatility: float = 0.0
    fomo_trade_count: int = 0
    revenge_trade_count: int = 0
    has_data: bool = False  # False when no trade is journaled

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class PsychologyMetrics:
    period: str
    period_start: datetime
    period_end: datetime
    discipline: DisciplineMetrics
    most_common_pre_trade_emotion: Optional[str] = None
    most_common_post_trade_emotion: Optional[str] = None
    disciplined_trade_win_rate: float = 0.0
    fomo_trade_win_rate: float = 0.0

    @property
    def total_trades(self) -> int:
        return self.discipline.total_trades

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "period_start": self.period_start.date().isoformat(),
            "period_end": self.period_end.date().isoformat(),
            **self.discipline.to_dict(),
            "most_common_pre_trade_emotion": self.most_common_pre_trade_emotion,
            "most_common_post_trade_emotion": self.most_common_post_trade_emotion,
            "disciplined_trade_win_rate": self.disciplined_trade_win_rate,
            "fomo_trade_win_rate": self.fomo_trade_win_rate,
        }


@dataclass
class WeekMetrics:
    start: datetime
    end: datetime
    total_trades: int = 0
    trades_with_journals: int = 0
    discipline_score: int = 0
    rule_adherence_rate: float = 0.0
    fomo_trade_count: int = 0
    emotional_volatility: float = 0.0
    win_rate: float = 0.0
    total_pnl: float = 0.0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["start"] = self.start.date().isoformat()
        data["end"] = self.end.date().isoformat()
        return data


@dataclass
class WeeklyReport:
    report_date: datetime
    current_week: WeekMetrics
    previous_week: WeekMetrics
    insights: list[str] = field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> dict:
        return {
            "report_date": self.report_date.date().isoformat(),
            "current_week": self.current_week.to_dict(),
            "previous_week": self.previous_week.to_dict(),
            "insights": list(self.insights),
            "summary": self.summary,
        }


def _journaled(trades: Sequence) -> list:
    return [t for t in trades if t.pre_journal is not None and t.post_journal is not None]


def _has_tag(trade, tag: str) -> bool:
    return tag in (trade.pre_journal.emotional_state or [])


def calculate_emotional_volatility(scores: Sequence[float]) -> float:
    """Population standard deviation of emotional scores; 0 when empty."""
    if len(scores) == 0:
        return 0.0
    return float(np.std(scores))


def calculate_emotional_control(volatility: float) -> float:
    if volatility < STEADY_VOLATILITY:
        return 100.0
    return max(0.0, 100 - volatility * 15)


def calculate_discipline_metrics(trades: Sequence) -> DisciplineMetrics:
    """
    Discipline score and behaviour counts over journaled trades.

    With no journaled trade the score is 0 and has_data is False, so callers
    can tell "no data" apart from a genuinely poor score.
    """
    journaled = _journaled(trades)
    if not journaled:
        return DisciplineMetrics(total_trades=len(trades))

    followed = len([t for t in journaled if t.post_journal.followed_plan is True])
    adherence = followed / len(journaled) * 100

    scores = [
        t.pre_journal.emotional_score
        for t in journaled
        if t.pre_journal.emotional_score is not None
    ]
    volatility = calculate_emotional_volatility(scores)
    control = calculate_emotional_control(volatility)

    qualities = [
        t.pre_journal.setup_quality
        for t in journaled
        if t.pre_journal.setup_quality is not None
    ]
    setup_score = float(np.mean(qualities)) * 20 if qualities else DEFAULT_SETUP_SCORE

    score = round(
        adherence * RULE_ADHERENCE_WEIGHT
        + control * EMOTIONAL_CONTROL_WEIGHT
        + setup_score * SETUP_QUALITY_WEIGHT
    )

    return DisciplineMetrics(
        total_trades=len(trades),
        trades_with_journals=len(journaled),
        discipline_score=score,
        rule_adherence_rate=round(adherence, 2),
        emotional_control_score=round(control, 2),
        setup_quality_score=round(setup_score, 2),
        emotional_volatility=round(volatility, 2),
        fomo_trade_count=len([t for t in journaled if _has_tag(t, FOMO_TAG)]),
        revenge_trade_count=len([t for t in journaled if _has_tag(t, REVENGE_TAG)]),
        has_data=True,
    )


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def period_start(period: str, now: datetime) -> datetime:
    """
    Start of a reporting period ending at now.

    Raises:
        ValueError: If period is not 'week', 'month' or 'all'
    """
    if period not in PERIODS:
        raise ValueError(f"Invalid period: {period!r} (expected one of {', '.join(PERIODS)})")

    now = _aware(now)
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return (pd.Timestamp(now) - pd.DateOffset(months=1)).to_pydatetime()
    return ALL_TIME_START


def filter_closed_between(trades: Sequence, start: datetime, end: datetime) -> list:
    """Closed trades whose entry falls in [start, end]."""
    start, end = _aware(start), _aware(end)
    return [
        t
        for t in trades
        if t.exit_date is not None and start <= _aware(t.entry_date) <= end
    ]


def calculate_psychology_metrics(
    trades: Sequence, period: str = "week", now: Optional[datetime] = None
) -> PsychologyMetrics:
    """
    Behavioural metrics for closed trades entered within a period.

    Args:
        trades: All trades
        period: 'week', 'month' or 'all'
        now: End of the period (defaults to the current UTC time)
    """
    end = _aware(now) if now is not None else datetime.now(timezone.utc)
    start = period_start(period, end)
    in_period = filter_closed_between(trades, start, end)

    discipline = calculate_discipline_metrics(in_period)
    journaled = _journaled(in_period)

    disciplined = [t for t in journaled if t.post_journal.followed_plan is True]
    fomo = [t for t in journaled if _has_tag(t, FOMO_TAG)]

    def _win_rate(subset: list) -> float:
        wins = len([t for t in subset if (t.net_pnl or 0) > 0])
        return round(calculate_win_rate(wins, len(subset)), 2)

    logger.info(
        "Psychology metrics for %s: %d trades, %d journaled",
        period,
        len(in_period),
        len(journaled),
    )

    return PsychologyMetrics(
        period=period,
        period_start=start,
        period_end=end,
        discipline=discipline,
        most_common_pre_trade_emotion=most_common_tag(
            tag for t in journaled for tag in t.pre_journal.emotional_state
        ),
        most_common_post_trade_emotion=most_common_tag(
            tag for t in journaled for tag in t.post_journal.emotional_state
        ),
        disciplined_trade_win_rate=_win_rate(disciplined),
        fomo_trade_win_rate=_win_rate(fomo),
    )


def _week_metrics(trades: Sequence, start: datetime, end: datetime) -> WeekMetrics:
    week_trades = filter_closed_between(trades, start, end)
    if not week_trades:
        return WeekMetrics(start=start, end=end)

    discipline = calculate_discipline_metrics(week_trades)
    wins = len([t for t in week_trades if (t.net_pnl or 0) > 0])
    total_pnl = sum(t.net_pnl or 0 for t in week_trades)

    return WeekMetrics(
        start=start,
        end=end,
        total_trades=len(week_trades),
        trades_with_journals=discipline.trades_with_journals,
        discipline_score=discipline.discipline_score,
        rule_adherence_rate=discipline.rule_adherence_rate,
        fomo_trade_count=discipline.fomo_trade_count,
        emotional_volatility=discipline.emotional_volatility,
        win_rate=round(calculate_win_rate(wins, len(week_trades)), 2),
        total_pnl=round(total_pnl, 2),
    )


def generate_weekly_insights(current: WeekMetrics, previous: WeekMetrics) -> list[str]:
    """Rule-based sentences comparing this week to the previous one."""
    insights = []

    # Activity
    if current.total_trades > previous.total_trades:
        insights.append(
            f"You increased your trading activity by "
            f"{current.total_trades - previous.total_trades} trades this week."
        )
    elif current.total_trades < previous.total_trades:
        insights.append(
            f"You traded {previous.total_trades - current.total_trades} fewer times this week."
        )

    # Discipline
    discipline_change = current.discipline_score - previous.discipline_score
    if discipline_change > 10:
        insights.append(
            f"Great improvement! Your discipline score increased by {discipline_change} points."
        )
    elif discipline_change < -10:
        insights.append(
            f"Your discipline score decreased by {abs(discipline_change)} points. "
            "Review your trading plan adherence."
        )
    elif current.discipline_score >= 80:
        insights.append(
            f"Excellent discipline! You maintained a high score of {current.discipline_score}."
        )

    # FOMO
    if current.fomo_trade_count == 0 and previous.fomo_trade_count > 0:
        insights.append(
            f"Perfect! No FOMO trades this week, down from {previous.fomo_trade_count} last week."
        )
    elif current.fomo_trade_count > previous.fomo_trade_count:
        insights.append(
            f"FOMO trades increased to {current.fomo_trade_count}. "
            "Take a step back and focus on your strategy."
        )

    # Journaling
    journaling_rate = (
        current.trades_with_journals / current.total_trades * 100 if current.total_trades else 0
    )
    if journaling_rate == 100 and current.total_trades > 0:
        insights.append("Outstanding! You journaled 100% of your trades this week.")
    elif journaling_rate < 50:
        insights.append(
            f"Try to journal more consistently. You only journaled {round(journaling_rate)}% of trades."
        )

    # P&L
    pnl_change = current.total_pnl - previous.total_pnl
    if current.total_pnl > 0 and current.total_pnl > previous.total_pnl:
        insights.append(f"Profitable week! Your P&L improved by ${abs(pnl_change):.2f}.")
    elif current.total_pnl < 0 and current.total_pnl < previous.total_pnl:
        insights.append(
            f"Focus on discipline. Your P&L declined by ${abs(pnl_change):.2f} this week."
        )

    # Emotional control
    if current.emotional_volatility < previous.emotional_volatility:
        insights.append("Improved emotional control! Your emotional volatility decreased.")
    elif current.emotional_volatility > 2.5:
        insights.append(
            "High emotional volatility detected. Consider meditation or breaks between trades."
        )

    return insights


def build_weekly_report(trades: Sequence, as_of: Optional[datetime] = None) -> WeeklyReport:
    """
    Compare the seven days ending at as_of with the seven days before.

    Both windows are inclusive at their ends, matching the period filter.
    """
    end = _aware(as_of) if as_of is not None else datetime.now(timezone.utc)
    current_start = end - timedelta(days=7)
    previous_start = current_start - timedelta(days=7)

    current = _week_metrics(trades, current_start, end)
    previous = _week_metrics(trades, previous_start, current_start)
    insights = generate_weekly_insights(current, previous)

    if insights:
        summary = (
            f"This week you made {current.total_trades} trades with a discipline score of "
            f"{current.discipline_score}/100."
        )
    else:
        summary = "Complete more trades with journals to generate meaningful insights."

    return WeeklyReport(
        report_date=end,
        current_week=current,
        previous_week=previous,
        insights=insights,
        summary=summary,
    )
