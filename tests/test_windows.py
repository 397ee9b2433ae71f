"""Tests for rolling window selection."""

from datetime import date, timedelta

import pytest

from campaign_pulse.analytics.windows import (
    available_period_lengths,
    period_over_period,
    select_windows,
)


class TestSelectWindows:
    """Tests for select_windows()."""

    def test_twenty_days_seven_day_windows(self, daily_series) -> None:
        """20 days at length 7 should give exactly 2 complete windows."""
        df = daily_series([100.0] * 20)
        windows = select_windows(df, 7)
        assert len(windows) == 2
        assert windows[0].end == date(2024, 1, 20)
        assert windows[0].start == date(2024, 1, 14)
        assert windows[1].end == date(2024, 1, 13)
        assert windows[1].start == date(2024, 1, 7)

    def test_oldest_partial_days_excluded(self, daily_series) -> None:
        """Only 14 of the 20 days should be counted."""
        df = daily_series([100.0] * 20)
        windows = select_windows(df, 7)
        assert sum(w.sums.impressions for w in windows) == 1400.0

    @pytest.mark.parametrize("days, length", [(20, 7), (45, 14), (95, 30), (7, 7), (64, 30)])
    def test_window_shape(self, daily_series, days: int, length: int) -> None:
        """Full width, contiguous, non-overlapping and newest first."""
        windows = select_windows(daily_series([1.0] * days), length)
        assert len(windows) == days // length
        for window in windows:
            assert window.days == length
        for newer, older in zip(windows, windows[1:]):
            assert older.end == newer.start - timedelta(days=1)
            assert older.start < newer.start

    def test_gap_days_still_count_on_calendar(self, make_df) -> None:
        """Windows follow the calendar even when days are missing."""
        df = make_df(
            [
                {"date": date(2024, 1, 1), "impressions": 10},
                {"date": date(2024, 1, 14), "impressions": 20},
            ]
        )
        windows = select_windows(df, 7)
        assert len(windows) == 2
        assert windows[0].sums.impressions == 20
        assert windows[1].sums.impressions == 10
        assert windows[1].row_count == 1
        assert windows[1].start == date(2024, 1, 1)

    def test_multiple_rows_per_day(self, make_df) -> None:
        df = make_df(
            [
                {"date": date(2024, 1, 1), "campaign_name": "A", "impressions": 10},
                {"date": date(2024, 1, 1), "campaign_name": "B", "impressions": 5},
            ]
        )
        windows = select_windows(df, 1)
        assert windows[0].row_count == 2
        assert windows[0].sums.impressions == 15

    def test_empty(self, make_df) -> None:
        assert select_windows(make_df([]), 7) == []

    @pytest.mark.parametrize("length", [0, -7])
    def test_invalid_length(self, daily_series, length: int) -> None:
        with pytest.raises(ValueError):
            select_windows(daily_series([1.0]), length)


class TestAvailablePeriodLengths:
    """Tests for available_period_lengths()."""

    @pytest.mark.parametrize(
        "days, expected",
        [(13, []), (14, [7]), (27, [7]), (28, [7, 14]), (59, [7, 14]), (60, [7, 14, 30])],
    )
    def test_requires_two_windows(self, daily_series, days: int, expected: list[int]) -> None:
        assert available_period_lengths(daily_series([1.0] * days)) == expected

    def test_matches_window_count(self, daily_series) -> None:
        """Offered lengths should always produce at least two windows."""
        df = daily_series([1.0] * 40)
        for length in available_period_lengths(df):
            assert len(select_windows(df, length)) >= 2

    def test_empty(self, make_df) -> None:
        assert available_period_lengths(make_df([])) == []


class TestPeriodOverPeriod:
    """Tests for period_over_period()."""

    def test_changes_between_windows(self, daily_series) -> None:
        """Second week doubles impressions over the first."""
        df = daily_series([100.0] * 7 + [200.0] * 7, clicks=1.0)
        comparisons = period_over_period(df, 7)
        assert len(comparisons) == 1
        changes = comparisons[0].pct_changes
        assert changes["impressions"] == pytest.approx(100.0)
        assert changes["clicks"] == pytest.approx(0.0)
        assert changes["ctr"] == pytest.approx(-50.0)

    def test_not_enough_windows(self, daily_series) -> None:
        assert period_over_period(daily_series([1.0] * 10), 7) == []
