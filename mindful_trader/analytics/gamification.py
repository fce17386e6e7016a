"""
Journaling streaks, levels, milestones and badges.

State is passed in and a new state is returned; nothing here touches storage.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Optional
import logging

logger = logging.getLogger(__name__)

TRADES_PER_LEVEL = 10

BADGE_NAMES = {
    "10_trades": "10 Trades",
    "50_trades": "50 Trades",
    "100_trades": "100 Trades",
    "500_trades": "500 Trades",
    "7_day_streak": "7 Day Streak",
    "30_day_streak": "30 Day Streak",
    "100_day_streak": "100 Day Streak",
}

BADGE_DESCRIPTIONS = {
    "10_trades": "Logged 10 trades",
    "50_trades": "Logged 50 trades",
    "100_trades": "Logged 100 trades",
    "500_trades": "Logged 500 trades",
    "7_day_streak": "Maintained a 7-day journaling streak",
    "30_day_streak": "Maintained a 30-day journaling streak",
    "100_day_streak": "Maintained a 100-day journaling streak",
}

BADGE_ICONS = {
    "10_trades": "🎯",
    "50_trades": "🏆",
    "100_trades": "💎",
    "500_trades": "👑",
    "7_day_streak": "🔥",
    "30_day_streak": "⚡",
    "100_day_streak": "✨",
}

TRADE_BADGES = ((10, "10_trades"), (50, "50_trades"), (100, "100_trades"), (500, "500_trades"))
STREAK_BADGES = ((7, "7_day_streak"), (30, "30_day_streak"), (100, "100_day_streak"))

MILESTONES = (
    ("first_trade", "First Trade", "Log your first trade", 1),
    ("10_trades", "10 Trades", "Log 10 trades", 10),
    ("50_trades", "50 Trades", "Log 50 trades", 50),
    ("100_trades", "100 Trades", "Log 100 trades", 100),
)


@dataclass
class EarnedBadge:
    badge: str
    earned_at: datetime


@dataclass
class GamificationState:
    """Stored journaling progress for one trader."""

    current_journaling_streak: int = 0
    longest_journaling_streak: int = 0
    last_journal_date: Optional[date] = None
    total_trades_logged: int = 0
    total_days_journaled: int = 0
    badges: list[EarnedBadge] = field(default_factory=list)

    @property
    def badge_types(self) -> set[str]:
        return {b.badge for b in self.badges}


@dataclass
class Milestone:
    id: str
    name: str
    description: str
    target_value: int
    current_value: int
    completed: bool


@dataclass
class BadgeView:
    id: str
    name: str
    description: str
    icon: str
    earned_at: datetime


@dataclass
class GamificationProgress:
    current_streak: int
    longest_streak: int
    total_trades: int
    total_journal_entries: int
    badges: list[BadgeView]
    milestones: list[Milestone]
    level: int
    xp: int
    xp_to_next_level: int = TRADES_PER_LEVEL

    def to_dict(self) -> dict:
        data = asdict(self)
        for badge in data["badges"]:
            badge["earned_at"] = badge["earned_at"].isoformat()
        return data


def get_badge_name(badge: str) -> str:
    return BADGE_NAMES.get(badge, badge)


def get_badge_description(badge: str) -> str:
    return BADGE_DESCRIPTIONS.get(badge, "Achievement unlocked")


def get_badge_icon(badge: str) -> str:
    return BADGE_ICONS.get(badge, "🏅")


def build_milestones(trade_count: int) -> list[Milestone]:
    return [
        Milestone(
            id=milestone_id,
            name=name,
            description=description,
            target_value=target,
            current_value=min(trade_count, target),
            completed=trade_count >= target,
        )
        for milestone_id, name, description, target in MILESTONES
    ]


def build_progress(
    trade_count: int, state: Optional[GamificationState] = None
) -> GamificationProgress:
    """Level, XP, milestones and rendered badges for a trade count."""
    state = state or GamificationState()
    trade_count = max(trade_count, 0)

    return GamificationProgress(
        current_streak=state.current_journaling_streak,
        longest_streak=state.longest_journaling_streak,
        total_trades=trade_count,
        total_journal_entries=state.total_days_journaled,
        badges=[
            BadgeView(
                id=b.badge,
                name=get_badge_name(b.badge),
                description=get_badge_description(b.badge),
                icon=get_badge_icon(b.badge),
                earned_at=b.earned_at,
            )
            for b in state.badges
        ],
        milestones=build_milestones(trade_count),
        level=trade_count // TRADES_PER_LEVEL + 1,
        xp=trade_count % TRADES_PER_LEVEL,
    )


def update_streak(current_streak: int, last_journal_date: Optional[date], today: date) -> int:
    """
    Next journaling streak.

    Same day leaves the streak as is, the following day extends it, a gap
    (or the first ever entry) starts over at 1.
    """
    if last_journal_date is None:
        return 1

    diff_days = (today - last_journal_date).days
    if diff_days == 0:
        return current_streak
    if diff_days == 1:
        return current_streak + 1
    return 1


def record_journal_activity(
    state: GamificationState,
    today: date,
    trade_count: int,
    now: Optional[datetime] = None,
) -> tuple[GamificationState, list[EarnedBadge]]:
    """
    Record a journaling day.

    Returns:
        (updated state, badges earned by this update)
    """
    now = now or datetime.now(timezone.utc)

    streak = update_streak(state.current_journaling_streak, state.last_journal_date, today)
    longest = max(state.longest_journaling_streak, streak)

    owned = state.badge_types
    new_badges = []
    for threshold, badge in TRADE_BADGES:
        if trade_count >= threshold and badge not in owned:
            new_badges.append(EarnedBadge(badge=badge, earned_at=now))
    for threshold, badge in STREAK_BADGES:
        if streak >= threshold and badge not in owned:
            new_badges.append(EarnedBadge(badge=badge, earned_at=now))

    if new_badges:
        logger.info("Earned badges: %s", ", ".join(b.badge for b in new_badges))

    updated = replace(
        state,
        current_journaling_streak=streak,
        longest_journaling_streak=longest,
        last_journal_date=today,
        total_trades_logged=trade_count,
        total_days_journaled=state.total_days_journaled
        + (1 if state.last_journal_date != today else 0),
        badges=list(state.badges) + new_badges,
    )
    return updated, new_badges
