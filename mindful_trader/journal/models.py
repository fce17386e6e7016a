"""
Data model for the trade journal.

Models:
- Trade: Individual trade records (closed or open)
- PreTradeJournal: Emotional state and market context captured before entry
- PostTradeJournal: Plan adherence and reflection captured after exit

Rows arriving from the database are normalized here, once, so the analytics
functions always see a single optional journal per trade.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import pandas as pd
from pydantic import ValidationError

from mindful_trader.analytics.pnl import (
    calculate_gross_pnl,
    calculate_hold_duration_minutes,
    calculate_return_percent,
    calculate_risk_reward,
)
from mindful_trader.analytics.time_slots import derive_time_slot
from mindful_trader.journal.schemas import (
    PostTradeJournalInput,
    PreTradeJournalInput,
    TradeDirection,
)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 string (or datetime) into a tz-aware datetime.

    Naive values are interpreted as UTC. Empty values return None.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = pd.Timestamp(value).to_pydatetime()
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid timestamp: {value!r}") from e
        if pd.isna(parsed):
            raise ValueError(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _first_journal(value: Any) -> Optional[dict]:
    """Resolve an array-or-object journal join to a single optional dict."""
    if value is None:
        return None
    if isinstance(value, dict):
        return value
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    raise ValueError(f"Unexpected journal value: {type(value).__name__}")


@dataclass
class PreTradeJournal:
    """Journal entry written before (or at) trade entry."""

    emotional_state: list[str] = field(default_factory=list)
    emotional_score: Optional[int] = None  # 1-10
    setup_quality: Optional[int] = None  # 1-5
    spy_trend: Optional[str] = None
    sector_context: Optional[str] = None
    market_bias: Optional[str] = None
    thesis: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "PreTradeJournal":
        """
        Build from a journal row.

        Raises:
            ValueError: If a score or enum value is out of range
        """
        try:
            data = PreTradeJournalInput.model_validate(row)
        except ValidationError as e:
            raise ValueError(f"Invalid pre-trade journal: {e}") from e
        return cls(
            emotional_state=data.emotional_state,
            emotional_score=data.emotional_score,
            setup_quality=data.setup_quality,
            spy_trend=data.spy_trend,
            sector_context=data.sector_context or None,
            market_bias=data.market_bias,
            thesis=data.thesis or None,
        )


@dataclass
class PostTradeJournal:
    """Journal entry written after the trade is closed."""

    followed_plan: Optional[bool] = None  # None = not recorded
    rule_violations: list[str] = field(default_factory=list)
    emotional_state: list[str] = field(default_factory=list)
    emotional_score: Optional[int] = None
    what_went_well: Optional[str] = None
    what_went_wrong: Optional[str] = None
    lessons_learned: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "PostTradeJournal":
        try:
            data = PostTradeJournalInput.model_validate(row)
        except ValidationError as e:
            raise ValueError(f"Invalid post-trade journal: {e}") from e
        return cls(
            followed_plan=data.followed_plan,
            rule_violations=data.rule_violations,
            emotional_state=data.emotional_state,
            emotional_score=data.emotional_score,
            what_went_well=data.what_went_well or None,
            what_went_wrong=data.what_went_wrong or None,
            lessons_learned=data.lessons_learned or None,
        )


@dataclass
class Trade:
    """Individual trade record."""

    ticker: str
    direction: TradeDirection
    entry_date: datetime
    entry_price: float
    quantity: int

    # Exit details (both present or both absent)
    exit_date: Optional[datetime] = None
    exit_price: Optional[float] = None

    # Costs
    commissions: float = 0.0

    # Computed metrics (populated by compute_metrics)
    gross_pnl: Optional[float] = None
    net_pnl: Optional[float] = None
    return_percent: Optional[float] = None
    hold_duration_minutes: Optional[int] = None
    day_of_week: Optional[int] = None  # 0=Sunday .. 6=Saturday
    hour_of_day: Optional[int] = None

    # Risk management
    initial_stop_loss: Optional[float] = None
    actual_rr: Optional[float] = None

    # Strategy
    strategy_id: Optional[str] = None
    strategy_name: Optional[str] = None

    id: Optional[str] = None
    notes: Optional[str] = None
    imported_from_csv: bool = False

    pre_journal: Optional[PreTradeJournal] = None
    post_journal: Optional[PostTradeJournal] = None

    def __repr__(self):
        return f"<Trade(ticker='{self.ticker}', entry='{self.entry_date}', direction='{self.direction.value}')>"

    @property
    def is_closed(self) -> bool:
        """Trade has both an exit price and an exit date."""
        return self.exit_price is not None and self.exit_date is not None

    @property
    def is_journaled(self) -> bool:
        """Trade has both a pre-trade and a post-trade journal."""
        return self.pre_journal is not None and self.post_journal is not None

    @property
    def is_winner(self) -> bool:
        """Check if trade was profitable."""
        return self.net_pnl is not None and self.net_pnl > 0

    def compute_metrics(self, tz: str = "UTC") -> None:
        """Compute derived metrics from trade data."""
        # PnL
        if self.exit_price is not None:
            self.gross_pnl = calculate_gross_pnl(
                self.direction, self.entry_price, self.exit_price, self.quantity
            )
            self.net_pnl = self.gross_pnl - (self.commissions or 0)
            self.return_percent = calculate_return_percent(
                self.net_pnl, self.entry_price, self.quantity
            )
        else:
            self.gross_pnl = None
            self.net_pnl = None
            self.return_percent = None

        # Hold time
        self.hold_duration_minutes = calculate_hold_duration_minutes(
            self.entry_date, self.exit_date
        )

        # Time slot of entry
        self.day_of_week, self.hour_of_day = derive_time_slot(self.entry_date, tz)

        # Realized R:R against the initial stop
        if self.actual_rr is None and self.initial_stop_loss and self.exit_price is not None:
            self.actual_rr = calculate_risk_reward(
                self.entry_price, self.initial_stop_loss, self.exit_price, self.direction
            )

    @classmethod
    def from_row(cls, row: dict, tz: str = "UTC") -> "Trade":
        """
        Build a Trade from a database-shaped row.

        Journal joins may arrive as a list, a single object or None; the first
        element of a list is used. Derived fields missing from the row are
        computed when the row carries enough data.

        Raises:
            ValueError: If required fields are missing or inconsistent
        """
        try:
            direction = TradeDirection(str(row.get("direction", "")).lower())
        except ValueError as e:
            raise ValueError(f"Invalid direction: {row.get('direction')!r}") from e

        entry_date = parse_timestamp(row.get("entry_date"))
        if entry_date is None:
            raise ValueError("entry_date is required")
        entry_price = _optional_float(row.get("entry_price"))
        if entry_price is None:
            raise ValueError("entry_price is required")
        quantity = _optional_int(row.get("quantity"))
        if quantity is None:
            raise ValueError("quantity is required")

        exit_date = parse_timestamp(row.get("exit_date"))
        exit_price = _optional_float(row.get("exit_price"))
        if (exit_date is None) != (exit_price is None):
            raise ValueError("exit_price and exit_date must both be present or both absent")

        pre_row = _first_journal(row.get("pre_trade_journals", row.get("pre_trade_journal")))
        post_row = _first_journal(row.get("post_trade_journals", row.get("post_trade_journal")))
        strategy_row = _first_journal(row.get("strategies"))

        strategy_id = row.get("strategy_id")
        trade = cls(
            ticker=str(row.get("ticker", "")).upper(),
            direction=direction,
            entry_date=entry_date,
            entry_price=entry_price,
            quantity=quantity,
            exit_date=exit_date,
            exit_price=exit_price,
            commissions=_optional_float(row.get("commissions")) or 0.0,
            gross_pnl=_optional_float(row.get("gross_pnl")),
            net_pnl=_optional_float(row.get("net_pnl")),
            return_percent=_optional_float(row.get("return_percent")),
            hold_duration_minutes=_optional_int(row.get("hold_duration_minutes")),
            day_of_week=_optional_int(row.get("day_of_week")),
            hour_of_day=_optional_int(row.get("hour_of_day")),
            initial_stop_loss=_optional_float(row.get("initial_stop_loss")),
            actual_rr=_optional_float(row.get("actual_rr")),
            strategy_id=str(strategy_id) if strategy_id is not None else None,
            strategy_name=strategy_row.get("name") if strategy_row else None,
            id=str(row["id"]) if row.get("id") is not None else None,
            notes=row.get("notes") or None,
            imported_from_csv=bool(row.get("imported_from_csv", False)),
            pre_journal=PreTradeJournal.from_row(pre_row) if pre_row else None,
            post_journal=PostTradeJournal.from_row(post_row) if post_row else None,
        )

        # Fill in derived fields the row did not carry
        if trade.is_closed and trade.net_pnl is None:
            trade.compute_metrics(tz)
        elif trade.day_of_week is None or trade.hour_of_day is None:
            trade.day_of_week, trade.hour_of_day = derive_time_slot(trade.entry_date, tz)

        return trade

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a database-shaped dict."""
        return {
            "id": self.id,
            "ticker": self.ticker,
            "direction": self.direction.value,
            "entry_date": self.entry_date.isoformat(),
            "exit_date": self.exit_date.isoformat() if self.exit_date else None,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "quantity": self.quantity,
            "commissions": self.commissions,
            "gross_pnl": self.gross_pnl,
            "net_pnl": self.net_pnl,
            "return_percent": self.return_percent,
            "hold_duration_minutes": self.hold_duration_minutes,
            "day_of_week": self.day_of_week,
            "hour_of_day": self.hour_of_day,
            "initial_stop_loss": self.initial_stop_loss,
            "actual_rr": self.actual_rr,
            "strategy_id": self.strategy_id,
            "notes": self.notes,
            "imported_from_csv": self.imported_from_csv,
        }
