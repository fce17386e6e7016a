"""
Pydantic schemas for validating trade and journal input.

Used by the CSV import pipeline before rows become Trade objects, and by
Trade.from_row for the journal joins of exported rows.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TradeDirection(str, Enum):
    """Trade direction enum."""

    LONG = "long"
    SHORT = "short"


class SpyTrend(str, Enum):
    """Broad-market direction journaled at trade time."""

    UPTREND = "uptrend"
    DOWNTREND = "downtrend"
    SIDEWAYS = "sideways"
    CHOPPY = "choppy"


class MarketBias(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"
    CHOPPY = "choppy"


def _as_tags(v):
    if v is None:
        return []
    if isinstance(v, str):
        return [v]
    return v


def _lower(v):
    return v.strip().lower() if isinstance(v, str) else v


# ==================== TRADE MODELS ====================


class TradeInput(BaseModel):
    """Model for creating a trade."""

    model_config = ConfigDict(use_enum_values=True)

    ticker: str = Field(..., min_length=1, max_length=10)
    direction: TradeDirection
    entry_date: datetime
    exit_date: Optional[datetime] = None
    entry_price: float = Field(..., gt=0, allow_inf_nan=False)
    exit_price: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    quantity: int = Field(..., gt=0)
    commissions: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    initial_stop_loss: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    strategy_id: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("ticker")
    @classmethod
    def upper_ticker(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("direction", mode="before")
    @classmethod
    def lower_direction(cls, v):
        return _lower(v)

    @model_validator(mode="after")
    def exit_fields_together(self) -> "TradeInput":
        if self.exit_date is not None and self.exit_price is None:
            raise ValueError("Exit price required when exit date is provided")
        if self.exit_price is not None and self.exit_date is None:
            raise ValueError("Exit date required when exit price is provided")
        return self


# ==================== JOURNAL MODELS ====================


class PreTradeJournalInput(BaseModel):
    """Model for a pre-trade journal entry."""

    model_config = ConfigDict(use_enum_values=True)

    emotional_state: List[str] = Field(default_factory=list)
    emotional_score: Optional[int] = Field(None, ge=1, le=10)
    setup_quality: Optional[int] = Field(None, ge=1, le=5)
    market_bias: Optional[MarketBias] = None
    spy_trend: Optional[SpyTrend] = None
    sector_context: Optional[str] = None
    thesis: Optional[str] = Field(None, max_length=2000)

    @field_validator("emotional_state", mode="before")
    @classmethod
    def tag_list(cls, v):
        return _as_tags(v)

    @field_validator("market_bias", "spy_trend", mode="before")
    @classmethod
    def lower_enum(cls, v):
        v = _lower(v)
        return v or None


class PostTradeJournalInput(BaseModel):
    """Model for a post-trade journal entry."""

    emotional_state: List[str] = Field(default_factory=list)
    emotional_score: Optional[int] = Field(None, ge=1, le=10)
    # None means adherence was not recorded
    followed_plan: Optional[bool] = Field(None, strict=True)
    rule_violations: List[str] = Field(default_factory=list)
    what_went_well: Optional[str] = Field(None, max_length=2000)
    what_went_wrong: Optional[str] = Field(None, max_length=2000)
    lessons_learned: Optional[str] = Field(None, max_length=2000)

    @field_validator("emotional_state", "rule_violations", mode="before")
    @classmethod
    def tag_list(cls, v):
        return _as_tags(v)
