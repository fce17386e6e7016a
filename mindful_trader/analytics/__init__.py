"""Performance and psychology analytics over journaled trades."""

from mindful_trader.analytics.discipline import (
    DisciplineMetrics,
    PsychologyMetrics,
    WeeklyReport,
    build_weekly_report,
    calculate_discipline_metrics,
    calculate_psychology_metrics,
)
from mindful_trader.analytics.market import (
    DEFAULT_SECTOR_KEYWORDS,
    MarketConditionMetrics,
    MarketCorrelation,
    calculate_market_correlation,
    parse_sector_from_context,
)
from mindful_trader.analytics.pnl import calculate_pnl, calculate_return_percent, calculate_risk_reward
from mindful_trader.analytics.portfolio import (
    PortfolioMetrics,
    calculate_portfolio_metrics,
    calculate_profit_factor,
    calculate_strategy_breakdown,
    calculate_win_rate,
)
from mindful_trader.analytics.time_slots import (
    AvoidPattern,
    TimeSlotMetrics,
    TimeSlotRanking,
    build_time_heatmap,
    detect_avoid_patterns,
    rank_best_worst_times,
)

__all__ = [
    "DisciplineMetrics",
    "PsychologyMetrics",
    "WeeklyReport",
    "build_weekly_report",
    "calculate_discipline_metrics",
    "calculate_psychology_metrics",
    "DEFAULT_SECTOR_KEYWORDS",
    "MarketConditionMetrics",
    "MarketCorrelation",
    "calculate_market_correlation",
    "parse_sector_from_context",
    "calculate_pnl",
    "calculate_return_percent",
    "calculate_risk_reward",
    "PortfolioMetrics",
    "calculate_portfolio_metrics",
    "calculate_profit_factor",
    "calculate_strategy_breakdown",
    "calculate_win_rate",
    "AvoidPattern",
    "TimeSlotMetrics",
    "TimeSlotRanking",
    "build_time_heatmap",
    "detect_avoid_patterns",
    "rank_best_worst_times",
]
