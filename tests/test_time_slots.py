"""Tests for time-of-day / day-of-week analysis."""

from datetime import datetime, timezone

import pytest

from mindful_trader.analytics.time_slots import (
    aggregate_time_slots,
    build_time_heatmap,
    derive_time_slot,
    detect_avoid_patterns,
    format_hour,
    generate_avoid_message,
    generate_time_label,
    get_day_name,
    rank_best_worst_times,
)


def _bucket(make_trade, day, hour, wins, losses, win_pnl=100.0, loss_pnl=-50.0):
    return [make_trade(net_pnl=win_pnl, day_of_week=day, hour_of_day=hour) for _ in range(wins)] + [
        make_trade(net_pnl=loss_pnl, day_of_week=day, hour_of_day=hour) for _ in range(losses)
    ]


class TestLabels:
    """Tests for human-readable time labels."""

    @pytest.mark.parametrize(
        "hour,expected",
        [(0, "12am"), (9, "9am"), (12, "12pm"), (14, "2pm"), (23, "11pm"), (24, "Invalid"), (-1, "Invalid")],
    )
    def test_format_hour(self, hour, expected):
        assert format_hour(hour) == expected

    def test_day_names_start_on_sunday(self):
        assert get_day_name(0) == "Sunday"
        assert get_day_name(6) == "Saturday"
        assert get_day_name(7) == "Unknown"

    def test_labels(self):
        assert generate_time_label(2, 10) == "Tuesday 10am"
        assert generate_time_label(2, None) == "Tuesday"
        assert generate_time_label(None, 14) == "2pm"
        assert generate_time_label(None, None) == "Unknown"

    def test_avoid_messages(self):
        assert generate_avoid_message(2, 10, 35.0, -12.5) == "You lose money trading Tuesdays after 10am"
        assert generate_avoid_message(2, 10, 35.0, 4.0) == "Low win rate (35.0%) on Tuesdays at 10am"
        assert generate_avoid_message(2, None, 35.0, -1.0) == "You lose money trading on Tuesday"
        assert generate_avoid_message(2, None, 35.0, 1.0) == "Low win rate (35.0%) on Tuesday"


class TestDeriveTimeSlot:
    def test_converts_to_timezone(self):
        # 2024-01-16 15:00 UTC is Tuesday 10am in New York
        entry = datetime(2024, 1, 16, 15, 0, tzinfo=timezone.utc)
        assert derive_time_slot(entry, "America/New_York") == (2, 10)

    def test_timezone_can_change_the_day(self):
        entry = datetime(2024, 1, 16, 2, 0, tzinfo=timezone.utc)
        assert derive_time_slot(entry, "America/New_York") == (1, 21)

    def test_sunday_is_zero(self):
        entry = datetime(2024, 1, 14, 12, 0, tzinfo=timezone.utc)
        assert derive_time_slot(entry, "UTC") == (0, 12)


class TestAggregation:
    def test_hour_buckets_sorted(self, make_trade):
        trades = _bucket(make_trade, 3, 14, 1, 0) + _bucket(make_trade, 1, 9, 1, 1)
        cells = build_time_heatmap(trades, "hour")
        assert [(c.day_of_week, c.hour_of_day) for c in cells] == [(1, 9), (3, 14)]
        assert cells[0].win_rate == 50.0
        assert cells[0].total_pnl == 50.0
        assert cells[0].avg_pnl == 25.0

    def test_day_buckets_merge_hours(self, make_trade):
        trades = _bucket(make_trade, 1, 9, 1, 0) + _bucket(make_trade, 1, 15, 0, 2)
        cells = aggregate_time_slots(trades, "day")
        assert len(cells) == 1
        assert cells[0].hour_of_day is None
        assert cells[0].trade_count == 3
        assert cells[0].win_rate == pytest.approx(33.33)

    def test_skips_trades_without_time_slot(self, make_trade):
        trades = [make_trade(day_of_week=None), make_trade(hour_of_day=None), make_trade()]
        assert sum(c.trade_count for c in aggregate_time_slots(trades)) == 1

    def test_unknown_granularity_raises(self, make_trade):
        with pytest.raises(ValueError):
            aggregate_time_slots([make_trade()], "minute")


class TestAvoidPatterns:
    """Tests for avoid-pattern detection."""

    def test_flags_large_losing_bucket(self, make_trade):
        # 12 trades at a 33.33% win rate, net negative
        trades = _bucket(make_trade, 2, 10, 4, 8, loss_pnl=-60.0)
        patterns = detect_avoid_patterns(trades)
        assert len(patterns) == 1
        assert patterns[0].trade_count == 12
        assert patterns[0].message == "You lose money trading Tuesdays after 10am"

    def test_small_bucket_not_flagged(self, make_trade):
        # 8 trades at 12.5% win rate is below the sample threshold
        trades = _bucket(make_trade, 2, 10, 1, 7)
        assert detect_avoid_patterns(trades) == []

    def test_win_rate_at_threshold_not_flagged(self, make_trade):
        trades = _bucket(make_trade, 2, 10, 4, 6)
        assert detect_avoid_patterns(trades) == []

    def test_low_win_rate_but_profitable_message(self, make_trade):
        trades = _bucket(make_trade, 4, 11, 3, 7, win_pnl=500.0)
        patterns = detect_avoid_patterns(trades)
        assert patterns[0].message == "Low win rate (30.0%) on Thursdays at 11am"

    def test_ordered_by_win_rate_then_count(self, make_trade):
        trades = (
            _bucket(make_trade, 1, 9, 3, 7)
            + _bucket(make_trade, 2, 9, 0, 10)
            + _bucket(make_trade, 3, 9, 6, 14)
        )
        patterns = detect_avoid_patterns(trades)
        assert [(p.day_of_week, p.win_rate) for p in patterns] == [(2, 0.0), (3, 30.0), (1, 30.0)]


class TestBestWorstTimes:
    def test_rankings(self, make_trade):
        trades = (
            _bucket(make_trade, 1, 9, 5, 0)
            + _bucket(make_trade, 2, 10, 1, 4)
            + _bucket(make_trade, 3, 11, 3, 2)
            + _bucket(make_trade, 4, 12, 2, 1)
        )
        ranking = rank_best_worst_times(trades)
        assert [m.day_of_week for m in ranking.best_times] == [1, 3, 2]
        assert [m.day_of_week for m in ranking.worst_times] == [2, 3, 1]

    def test_limit_caps_lists(self, make_trade):
        trades = []
        for day in range(7):
            trades += _bucket(make_trade, day, 10, day % 3, 5)
        ranking = rank_best_worst_times(trades, limit=2)
        assert len(ranking.best_times) == 2
        assert len(ranking.worst_times) == 2

    def test_invalid_limit_raises(self, make_trade):
        with pytest.raises(ValueError):
            rank_best_worst_times([make_trade()], limit=0)

    def test_to_dict_includes_labels(self, make_trade):
        ranking = rank_best_worst_times(_bucket(make_trade, 1, 9, 5, 0))
        assert ranking.to_dict()["best_times"][0]["label"] == "Monday 9am"

    def test_equal_win_rates_rank_larger_bucket_first(self, make_trade):
        trades = (
            _bucket(make_trade, 1, 9, 3, 3)
            + _bucket(make_trade, 2, 10, 5, 5)
            + _bucket(make_trade, 3, 11, 4, 1)
            + _bucket(make_trade, 4, 12, 2, 3)
        )
        ranking = rank_best_worst_times(trades)
        assert [m.day_of_week for m in ranking.best_times] == [3, 2, 1, 4]
        assert [m.day_of_week for m in ranking.worst_times] == [4, 2, 1, 3]
