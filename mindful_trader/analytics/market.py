"""
Market-condition correlation.

Groups closed trades by the broad-market trend (SPY) and by the sector noted
in the pre-trade journal, then scores each group so the best and worst
conditions can be reported.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from typing import Mapping, Optional, Sequence
import logging

logger = logging.getLogger(__name__)

# Ordered: the first sector with a matching keyword wins.
DEFAULT_SECTOR_KEYWORDS: dict[str, list[str]] = {
    "technology": ["tech", "technology", "software", "semiconductor"],
    "healthcare": ["healthcare", "health", "biotech", "pharma", "pharmaceutical"],
    "financial": ["financial", "finance", "bank", "insurance"],
    "energy": ["energy", "oil", "gas"],
    "consumer": ["consumer", "retail", "discretionary", "staples"],
    "industrial": ["industrial", "manufacturing"],
    "materials": ["materials", "commodity", "commodities"],
    "utilities": ["utilities", "utility"],
    "real estate": ["real estate", "reit"],
    "communication": ["communication", "telecom", "media"],
}

BASE_SPY_CONDITIONS = ("uptrend", "downtrend", "sideways")
GROUP_BY_OPTIONS = ("spy_trend", "sector", "both")

# Reported when a condition has profits but no losses.
PERFECT_PROFIT_FACTOR = 999.99


@dataclass
class MarketConditionMetrics:
    """Performance of trades taken under one market condition."""

    win_rate: float = 0.0
    profit_factor: float = 0.0
    avg_pnl: float = 0.0
    trade_count: int = 0
    total_pnl: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SectorMetrics(MarketConditionMetrics):
    sector: str = ""


@dataclass
class MarketCorrelation:
    spy_trending: dict[str, MarketConditionMetrics] = field(default_factory=dict)
    sectors: list[SectorMetrics] = field(default_factory=list)
    best_spy_condition: str = "N/A"
    worst_spy_condition: str = "N/A"
    best_sector: str = "N/A"
    worst_sector: str = "N/A"

    def to_dict(self) -> dict:
        return {
            "spy_trending": {k: v.to_dict() for k, v in self.spy_trending.items()},
            "sectors": [s.to_dict() for s in self.sectors],
            "summary": {
                "best_spy_condition": self.best_spy_condition,
                "worst_spy_condition": self.worst_spy_condition,
                "best_sector": self.best_sector,
                "worst_sector": self.worst_sector,
            },
        }


def parse_sector_from_context(
    sector_context: Optional[str],
    vocabulary: Optional[Mapping[str, Sequence[str]]] = None,
) -> Optional[str]:
    """
    Extract a sector name from free-text context.

    Examples:
        "Tech sector showing strength" -> "technology"
        "Healthcare looking bullish" -> "healthcare"
        "Shipping names weak" -> "shipping" (first-word fallback)
    """
    if not sector_context or not sector_context.strip():
        return None

    if vocabulary is None:
        vocabulary = DEFAULT_SECTOR_KEYWORDS

    lower_context = sector_context.lower()
    for sector, keywords in vocabulary.items():
        if any(keyword in lower_context for keyword in keywords):
            return sector

    first_word = sector_context.split()[0].lower()
    return first_word if len(first_word) > 2 else None


def calculate_condition_profit_factor(pnls: Sequence[float]) -> float:
    gross_profit = sum(p for p in pnls if p > 0)
    gross_loss = abs(sum(p for p in pnls if p < 0))
    if gross_loss == 0:
        return PERFECT_PROFIT_FACTOR if gross_profit > 0 else 0.0
    return gross_profit / gross_loss


def calculate_condition_metrics(pnls: Sequence[float]) -> MarketConditionMetrics:
    """Win rate, profit factor, average and total P&L, rounded to cents."""
    if not pnls:
        return MarketConditionMetrics()

    wins = len([p for p in pnls if p > 0])
    total = sum(pnls)
    return MarketConditionMetrics(
        win_rate=round(wins / len(pnls) * 100, 2),
        profit_factor=round(calculate_condition_profit_factor(pnls), 2),
        avg_pnl=round(total / len(pnls), 2),
        trade_count=len(pnls),
        total_pnl=round(total, 2),
    )


def calculate_condition_score(metrics: MarketConditionMetrics) -> float:
    """50% win rate, 50% profit factor (x10, capped at 100)."""
    if metrics.trade_count == 0:
        return 0.0
    return metrics.win_rate * 0.5 + min(metrics.profit_factor * 10, 100) * 0.5


def determine_best_worst_conditions(
    spy_trending: Mapping[str, MarketConditionMetrics],
    sectors: Sequence[SectorMetrics],
) -> dict[str, str]:
    """Highest and lowest scoring SPY condition and sector, 'N/A' when none traded."""
    summary = {
        "best_spy_condition": "N/A",
        "worst_spy_condition": "N/A",
        "best_sector": "N/A",
        "worst_sector": "N/A",
    }

    traded = [(name, m) for name, m in spy_trending.items() if m.trade_count > 0]
    if traded:
        ranked = sorted(traded, key=lambda c: calculate_condition_score(c[1]), reverse=True)
        summary["best_spy_condition"] = ranked[0][0]
        summary["worst_spy_condition"] = ranked[-1][0]

    if sectors:
        ranked_sectors = sorted(sectors, key=calculate_condition_score, reverse=True)
        summary["best_sector"] = ranked_sectors[0].sector
        summary["worst_sector"] = ranked_sectors[-1].sector

    return summary


def calculate_market_correlation(
    trades: Sequence,
    group_by: str = "both",
    vocabulary: Optional[Mapping[str, Sequence[str]]] = None,
) -> MarketCorrelation:
    """
    Correlate closed-trade P&L with the journaled market context.

    Args:
        trades: Trades with an optional pre_journal
        group_by: 'spy_trend', 'sector' or 'both'
        vocabulary: Ordered sector -> keywords mapping

    Raises:
        ValueError: If group_by is not a known option
    """
    if group_by not in GROUP_BY_OPTIONS:
        raise ValueError(
            f"Invalid group_by: {group_by!r} (expected one of {', '.join(GROUP_BY_OPTIONS)})"
        )

    by_spy = defaultdict(list)
    by_sector = defaultdict(list)

    for t in trades:
        if getattr(t, "exit_date", None) is None:
            continue
        journal = t.pre_journal
        spy_trend = journal.spy_trend if journal else None
        sector_context = journal.sector_context if journal else None
        if not spy_trend and not sector_context:
            continue

        pnl = t.net_pnl or 0
        if spy_trend and group_by in ("spy_trend", "both"):
            by_spy[spy_trend].append(pnl)
        if sector_context and group_by in ("sector", "both"):
            sector = parse_sector_from_context(sector_context, vocabulary)
            if sector:
                by_sector[sector].append(pnl)

    spy_trending = {name: calculate_condition_metrics(by_spy.get(name, [])) for name in BASE_SPY_CONDITIONS}
    if "choppy" in by_spy:
        spy_trending["choppy"] = calculate_condition_metrics(by_spy["choppy"])

    sectors = []
    for sector, pnls in by_sector.items():
        m = calculate_condition_metrics(pnls)
        sectors.append(SectorMetrics(sector=sector, **asdict(m)))
    sectors.sort(key=lambda s: s.win_rate, reverse=True)

    summary = determine_best_worst_conditions(spy_trending, sectors)
    logger.debug("Market correlation: %d SPY groups, %d sectors", len(by_spy), len(sectors))

    return MarketCorrelation(spy_trending=spy_trending, sectors=sectors, **summary)
