"""Rolling comparison windows, most recent first."""

import logging
from datetime import date, timedelta
from typing import Iterable

import polars as pl

from .expressions import bucket_aggregates_expr
from .metrics import percent_change, summarize
from .models import METRIC_NAMES, MetricSums, Window, WindowComparison

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_LENGTHS = (7, 14, 30)
COMPARED_KPIS = ("ctr", "roas", "aov")


def _date_span(df: pl.DataFrame) -> tuple[date, date] | None:
    if len(df) == 0:
        return None
    return df["date"].min(), df["date"].max()


def select_windows(df: pl.DataFrame, period_length: int) -> list[Window]:
    """Split the data into complete ``period_length``-day windows.

    Window 0 ends on the latest date; each following window ends the day
    before the previous one starts. Walking stops before a window would begin
    earlier than the first date, so rows older than the last complete window
    are left out.

    Raises:
        ValueError: If period_length is not positive.
    """
    if period_length <= 0:
        raise ValueError(f"period_length must be positive, got {period_length}")

    span = _date_span(df)
    if span is None:
        return []
    first, latest = span

    daily = df.group_by("date").agg(bucket_aggregates_expr()).to_dicts()

    windows: list[Window] = []
    end = latest
    while True:
        start = end - timedelta(days=period_length - 1)
        if start < first:
            break
        members = [row for row in daily if start <= row["date"] <= end]
        sums = MetricSums.zero()
        for row in members:
            sums = sums + MetricSums.from_mapping(row)
        windows.append(
            Window(
                start=start,
                end=end,
                sums=sums,
                row_count=sum(int(row["row_count"]) for row in members),
            )
        )
        end = start - timedelta(days=1)

    return windows


def available_period_lengths(
    df: pl.DataFrame,
    candidates: Iterable[int] = DEFAULT_PERIOD_LENGTHS,
) -> list[int]:
    """Period lengths with room for at least two complete windows."""
    span = _date_span(df)
    if span is None:
        return []
    total_days = (span[1] - span[0]).days + 1
    return [length for length in candidates if 0 < length and total_days >= 2 * length]


def period_over_period(
    df: pl.DataFrame,
    period_length: int,
    assumed_cpm: float | None = None,
) -> list[WindowComparison]:
    """Compare each window with the one before it.

    Returns an empty list when fewer than two complete windows exist.
    """
    windows = select_windows(df, period_length)
    if len(windows) < 2:
        logger.debug(
            "Not enough data for %d-day comparison (%d windows)",
            period_length,
            len(windows),
        )
        return []

    comparisons: list[WindowComparison] = []
    for current, previous in zip(windows, windows[1:]):
        pct_changes = {
            name: percent_change(current.sums.get(name), previous.sums.get(name))
            for name in METRIC_NAMES
        }
        current_kpis = summarize(current.sums, assumed_cpm)
        previous_kpis = summarize(previous.sums, assumed_cpm)
        if assumed_cpm is not None:
            pct_changes["spend"] = percent_change(current_kpis.spend, previous_kpis.spend)
        for kpi in COMPARED_KPIS:
            pct_changes[kpi] = percent_change(
                getattr(current_kpis, kpi), getattr(previous_kpis, kpi)
            )
        comparisons.append(
            WindowComparison(current=current, previous=previous, pct_changes=pct_changes)
        )
    return comparisons
