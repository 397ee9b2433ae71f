"""Date and day-of-week bucketing of canonical delivery rows."""

import polars as pl

from ..ingestion.enricher import DAY_NAMES, sunday_index_expr
from .expressions import bucket_aggregates_expr
from .models import METRIC_NAMES, DailyBucket, DayOfWeekBucket, MetricSums


def bucket_by_date(df: pl.DataFrame, fill_gaps: bool = False) -> list[DailyBucket]:
    """Sum metrics per calendar day, oldest first.

    Args:
        df: Canonical frame (sentinel rows already removed by ingestion)
        fill_gaps: Add zero buckets for days missing between the first and
            last observed date

    Returns:
        One bucket per day with data, or per day in range when filling gaps.
    """
    if len(df) == 0:
        return []

    daily = df.group_by("date").agg(bucket_aggregates_expr()).sort("date")

    if fill_gaps:
        all_days = pl.date_range(
            daily["date"].min(), daily["date"].max(), interval="1d", eager=True
        ).alias("date")
        daily = (
            all_days.to_frame()
            .join(daily, on="date", how="left")
            .with_columns(pl.col([*METRIC_NAMES, "row_count"]).fill_null(0))
            .sort("date")
        )

    return [
        DailyBucket(
            key=row["date"].isoformat(),
            date=row["date"],
            sums=MetricSums.from_mapping(row),
            row_count=int(row["row_count"]),
        )
        for row in daily.to_dicts()
    ]


def bucket_by_day_of_week(df: pl.DataFrame) -> list[DayOfWeekBucket]:
    """Sum metrics per weekday: always seven buckets, Sunday first.

    Weekdays with no rows get zero sums; nothing is interpolated.
    """
    by_index: dict[int, dict] = {}
    if len(df) > 0:
        grouped = df.group_by(sunday_index_expr("date").alias("day_index")).agg(
            bucket_aggregates_expr()
        )
        by_index = {row["day_index"]: row for row in grouped.to_dicts()}

    buckets: list[DayOfWeekBucket] = []
    for index, name in enumerate(DAY_NAMES):
        row = by_index.get(index)
        buckets.append(
            DayOfWeekBucket(
                key=name,
                day_index=index,
                sums=MetricSums.from_mapping(row) if row else MetricSums.zero(),
                row_count=int(row["row_count"]) if row else 0,
            )
        )
    return buckets
