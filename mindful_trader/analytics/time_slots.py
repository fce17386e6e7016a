"""
Time-of-day / day-of-week performance analysis.

Trades are bucketed by entry weekday (0=Sunday .. 6=Saturday) and optionally
by entry hour. Each bucket reports count, win rate and P&L; buckets with a
large enough sample and a poor win rate are flagged as times to avoid.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence
from zoneinfo import ZoneInfo
import logging

logger = logging.getLogger(__name__)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

GRANULARITIES = ("day", "hour")

DEFAULT_AVOID_MIN_TRADES = 10
DEFAULT_AVOID_MAX_WIN_RATE = 40.0
DEFAULT_RANKING_MIN_TRADES = 5
DEFAULT_RANKING_LIMIT = 5


@dataclass
class TimeSlotMetrics:
    """Aggregated results for one weekday (and optionally hour) bucket."""

    day_of_week: int
    hour_of_day: Optional[int]
    trade_count: int
    win_count: int
    win_rate: float
    total_pnl: float
    avg_pnl: float

    @property
    def label(self) -> str:
        return generate_time_label(self.day_of_week, self.hour_of_day)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["label"] = self.label
        return data


@dataclass
class AvoidPattern:
    """A time slot where the trader historically underperforms."""

    day_of_week: int
    hour_of_day: Optional[int]
    win_rate: float
    trade_count: int
    avg_pnl: float
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TimeSlotRanking:
    """Best and worst time slots by win rate."""

    best_times: list[TimeSlotMetrics]
    worst_times: list[TimeSlotMetrics]

    def to_dict(self) -> dict:
        return {
            "best_times": [m.to_dict() for m in self.best_times],
            "worst_times": [m.to_dict() for m in self.worst_times],
        }


def derive_time_slot(entry: datetime, tz: str = "UTC") -> tuple[int, int]:
    """
    Weekday and hour of an entry timestamp in the given timezone.

    Naive timestamps are taken as UTC.

    Returns:
        (day_of_week, hour_of_day) with 0=Sunday
    """
    if entry.tzinfo is None:
        entry = entry.replace(tzinfo=timezone.utc)
    local = entry.astimezone(ZoneInfo(tz))
    return (local.weekday() + 1) % 7, local.hour


def get_day_name(day: int) -> str:
    if 0 <= day <= 6:
        return DAY_NAMES[day]
    return "Unknown"


def format_hour(hour: int) -> str:
    """12-hour clock label: 0 -> 12am, 12 -> 12pm, 14 -> 2pm."""
    if hour < 0 or hour > 23:
        return "Invalid"
    if hour == 0:
        return "12am"
    if hour == 12:
        return "12pm"
    if hour < 12:
        return f"{hour}am"
    return f"{hour - 12}pm"


def generate_time_label(day: Optional[int], hour: Optional[int]) -> str:
    """Human label such as 'Tuesday 10am', 'Tuesday' or '2pm'."""
    if day is not None and hour is not None:
        return f"{get_day_name(day)} {format_hour(hour)}"
    if day is not None:
        return get_day_name(day)
    if hour is not None:
        return format_hour(hour)
    return "Unknown"


def generate_avoid_message(
    day: Optional[int], hour: Optional[int], win_rate: float, avg_pnl: float
) -> str:
    if day is not None and hour is not None:
        day_name = get_day_name(day)
        time = format_hour(hour)
        if avg_pnl < 0:
            return f"You lose money trading {day_name}s after {time}"
        return f"Low win rate ({win_rate:.1f}%) on {day_name}s at {time}"

    slot = generate_time_label(day, hour)
    if avg_pnl < 0:
        return f"You lose money trading on {slot}"
    return f"Low win rate ({win_rate:.1f}%) on {slot}"


def _check_granularity(granularity: str) -> None:
    if granularity not in GRANULARITIES:
        raise ValueError(
            f"Invalid granularity: {granularity!r} (expected one of {', '.join(GRANULARITIES)})"
        )


def aggregate_time_slots(trades: Sequence, granularity: str = "hour") -> list[TimeSlotMetrics]:
    """
    Bucket trades by weekday or by (weekday, hour).

    Trades without a weekday or hour are skipped; a missing net P&L counts
    as 0. Buckets come back ordered by (day, hour).

    Raises:
        ValueError: If granularity is not 'day' or 'hour'
    """
    _check_granularity(granularity)

    buckets = defaultdict(lambda: {"count": 0, "wins": 0, "pnl": 0.0})
    skipped = 0
    for t in trades:
        if t.day_of_week is None or t.hour_of_day is None:
            skipped += 1
            continue
        hour = t.hour_of_day if granularity == "hour" else None
        pnl = t.net_pnl or 0
        bucket = buckets[(t.day_of_week, hour)]
        bucket["count"] += 1
        bucket["pnl"] += pnl
        if pnl > 0:
            bucket["wins"] += 1

    if skipped:
        logger.debug("Skipped %d trades without a time slot", skipped)

    metrics = []
    for (day, hour), b in sorted(buckets.items(), key=lambda kv: (kv[0][0], kv[0][1] or 0)):
        metrics.append(
            TimeSlotMetrics(
                day_of_week=day,
                hour_of_day=hour,
                trade_count=b["count"],
                win_count=b["wins"],
                win_rate=round(b["wins"] / b["count"] * 100, 2),
                total_pnl=round(b["pnl"], 2),
                avg_pnl=round(b["pnl"] / b["count"], 2),
            )
        )
    return metrics


def build_time_heatmap(trades: Sequence, granularity: str = "hour") -> list[TimeSlotMetrics]:
    """Heatmap cells ordered by (day, hour)."""
    return aggregate_time_slots(trades, granularity)


def detect_avoid_patterns(
    trades: Sequence,
    granularity: str = "hour",
    min_trades: int = DEFAULT_AVOID_MIN_TRADES,
    max_win_rate: float = DEFAULT_AVOID_MAX_WIN_RATE,
) -> list[AvoidPattern]:
    """
    Flag time slots with enough trades and a win rate below max_win_rate.

    Ordered worst win rate first; ties go to the slot with more trades.
    """
    patterns = [
        AvoidPattern(
            day_of_week=m.day_of_week,
            hour_of_day=m.hour_of_day,
            win_rate=m.win_rate,
            trade_count=m.trade_count,
            avg_pnl=m.avg_pnl,
            message=generate_avoid_message(m.day_of_week, m.hour_of_day, m.win_rate, m.avg_pnl),
        )
        for m in aggregate_time_slots(trades, granularity)
        if m.trade_count >= min_trades and m.win_rate < max_win_rate
    ]
    return sorted(patterns, key=lambda p: (p.win_rate, -p.trade_count))


def rank_best_worst_times(
    trades: Sequence,
    granularity: str = "hour",
    min_trades: int = DEFAULT_RANKING_MIN_TRADES,
    limit: int = DEFAULT_RANKING_LIMIT,
) -> TimeSlotRanking:
    """
    Best and worst time slots by win rate among slots with enough trades.

    Raises:
        ValueError: If limit < 1 or granularity is unknown
    """
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")

    eligible = [m for m in aggregate_time_slots(trades, granularity) if m.trade_count >= min_trades]

    best = sorted(eligible, key=lambda m: (-m.win_rate, -m.trade_count))[:limit]
    worst = sorted(eligible, key=lambda m: (m.win_rate, -m.trade_count))[:limit]
    return TimeSlotRanking(best_times=best, worst_times=worst)
