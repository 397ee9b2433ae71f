"""Derived metric functions: CTR, ROAS, AOV, CPM and percent change.

Every ratio goes through ``safe_divide`` so a zero or non-finite denominator
yields 0 instead of NaN or infinity.
"""

import math

import polars as pl

from .expressions import estimated_spend_expr, kpi_exprs, metric_sums_expr
from .models import KPISummary, MetricSums


def safe_divide(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """numerator / denominator * scale, or 0 when undefined."""
    if not denominator or not math.isfinite(denominator):
        return 0.0
    result = numerator / denominator * scale
    return result if math.isfinite(result) else 0.0


def calculate_ctr(clicks: float, impressions: float) -> float:
    """Click-through rate as a percentage."""
    return safe_divide(clicks, impressions, 100.0)


def calculate_roas(revenue: float, spend: float) -> float:
    return safe_divide(revenue, spend)


def calculate_aov(revenue: float, transactions: float) -> float:
    return safe_divide(revenue, transactions)


def calculate_cpm(spend: float, impressions: float) -> float:
    return safe_divide(spend, impressions, 1000.0)


def estimate_spend(impressions: float, cpm: float) -> float:
    """Spend implied by an assumed CPM."""
    return impressions / 1000 * cpm


def percent_change(current: float, previous: float) -> float:
    """Percent change on a 0-100 scale.

    A zero previous value gives 100 when current is positive, else 0.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return safe_divide(current - previous, previous, 100.0)


def summarize(sums: MetricSums, assumed_cpm: float | None = None) -> KPISummary:
    """Derive KPIs from summed metrics.

    When ``assumed_cpm`` is given, spend is estimated from impressions and
    replaces the summed spend.
    """
    spend = sums.spend
    if assumed_cpm is not None:
        spend = estimate_spend(sums.impressions, assumed_cpm)

    return KPISummary(
        impressions=sums.impressions,
        clicks=sums.clicks,
        transactions=sums.transactions,
        revenue=sums.revenue,
        spend=spend,
        ctr=calculate_ctr(sums.clicks, sums.impressions),
        roas=calculate_roas(sums.revenue, spend),
        aov=calculate_aov(sums.revenue, sums.transactions),
        cpm=calculate_cpm(spend, sums.impressions),
        spend_estimated=assumed_cpm is not None,
    )


def sum_metrics(df: pl.DataFrame) -> MetricSums:
    """Total every metric column of a canonical frame."""
    if len(df) == 0:
        return MetricSums.zero()
    return MetricSums.from_mapping(df.select(metric_sums_expr()).to_dicts()[0])


def summarize_frame(df: pl.DataFrame, assumed_cpm: float | None = None) -> KPISummary:
    """KPIs over every row of a canonical frame."""
    return summarize(sum_metrics(df), assumed_cpm)


def kpi_table(
    df: pl.DataFrame,
    by: str | list[str],
    assumed_cpm: float | None = None,
) -> pl.DataFrame:
    """Metric sums and KPIs per group, e.g. per campaign."""
    if assumed_cpm is not None:
        df = df.with_columns(estimated_spend_expr(assumed_cpm))
    return (
        df.group_by(by)
        .agg(metric_sums_expr())
        .with_columns(kpi_exprs())
        .sort(by)
    )
