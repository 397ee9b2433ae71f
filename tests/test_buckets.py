"""Tests for date and day-of-week bucketing."""

from datetime import date

import polars as pl
import pytest

from campaign_pulse.analytics.buckets import bucket_by_date, bucket_by_day_of_week
from campaign_pulse.analytics.metrics import sum_metrics
from campaign_pulse.analytics.models import MetricSums


@pytest.fixture
def gappy_df(make_df) -> pl.DataFrame:
    """Two campaigns, with no data on 2024-01-03."""
    return make_df(
        [
            {"date": date(2024, 1, 1), "campaign_name": "A", "impressions": 100, "clicks": 1, "spend": 2},
            {"date": date(2024, 1, 1), "campaign_name": "B", "impressions": 50, "revenue": 5},
            {"date": date(2024, 1, 2), "campaign_name": "A", "impressions": 200, "transactions": 1},
            {"date": date(2024, 1, 4), "campaign_name": "A", "impressions": 400, "clicks": 4},
        ]
    )


class TestBucketByDate:
    """Tests for bucket_by_date()."""

    def test_one_bucket_per_day(self, gappy_df: pl.DataFrame) -> None:
        buckets = bucket_by_date(gappy_df)
        assert [b.key for b in buckets] == ["2024-01-01", "2024-01-02", "2024-01-04"]
        assert buckets[0].sums.impressions == 150
        assert buckets[0].row_count == 2

    def test_fill_gaps(self, gappy_df: pl.DataFrame) -> None:
        """Should add a zero bucket for the missing day when asked."""
        buckets = bucket_by_date(gappy_df, fill_gaps=True)
        assert [b.key for b in buckets] == [
            "2024-01-01",
            "2024-01-02",
            "2024-01-03",
            "2024-01-04",
        ]
        assert buckets[2].sums == MetricSums.zero()
        assert buckets[2].row_count == 0

    def test_conservation(self, gappy_df: pl.DataFrame) -> None:
        """Re-summing all buckets should equal the row totals."""
        for fill in (False, True):
            total = MetricSums.zero()
            for bucket in bucket_by_date(gappy_df, fill_gaps=fill):
                total = total + bucket.sums
            assert total == sum_metrics(gappy_df)

    def test_empty(self, make_df) -> None:
        assert bucket_by_date(make_df([])) == []


class TestBucketByDayOfWeek:
    """Tests for bucket_by_day_of_week()."""

    def test_seven_buckets_sunday_first(self, gappy_df: pl.DataFrame) -> None:
        buckets = bucket_by_day_of_week(gappy_df)
        assert [b.key for b in buckets] == [
            "Sunday",
            "Monday",
            "Tuesday",
            "Wednesday",
            "Thursday",
            "Friday",
            "Saturday",
        ]
        assert [b.day_index for b in buckets] == list(range(7))

    def test_sums_by_weekday(self, gappy_df: pl.DataFrame) -> None:
        """2024-01-01 is a Monday; Thursday 2024-01-04 is the last day."""
        buckets = {b.key: b for b in bucket_by_day_of_week(gappy_df)}
        assert buckets["Monday"].sums.impressions == 150
        assert buckets["Tuesday"].sums.impressions == 200
        assert buckets["Wednesday"].row_count == 0
        assert buckets["Thursday"].sums.clicks == 4

    def test_empty_still_seven(self, make_df) -> None:
        buckets = bucket_by_day_of_week(make_df([]))
        assert len(buckets) == 7
        assert all(b.sums == MetricSums.zero() for b in buckets)
