"""Reusable Polars expressions for analytics calculations."""

import polars as pl

from .models import METRIC_NAMES


# =============================================================================
# AGGREGATIONS
# =============================================================================


def metric_sums_expr() -> list[pl.Expr]:
    """Sum every delivery metric, keeping the canonical column names."""
    return [pl.col(name).sum().alias(name) for name in METRIC_NAMES]


def row_count_expr() -> pl.Expr:
    return pl.len().alias("row_count")


def bucket_aggregates_expr() -> list[pl.Expr]:
    """Metric sums plus the number of contributing rows."""
    return [*metric_sums_expr(), row_count_expr()]


# =============================================================================
# DERIVED METRICS
# =============================================================================


def safe_ratio_expr(numerator: str, denominator: str, scale: float = 1.0) -> pl.Expr:
    """numerator / denominator * scale, or 0 when the denominator is not positive."""
    return (
        pl.when(pl.col(denominator) > 0)
        .then(pl.col(numerator) / pl.col(denominator) * scale)
        .otherwise(0.0)
    )


def kpi_exprs() -> list[pl.Expr]:
    """CTR (percent), ROAS, AOV and CPM over already-summed columns."""
    return [
        safe_ratio_expr("clicks", "impressions", 100.0).alias("ctr"),
        safe_ratio_expr("revenue", "spend").alias("roas"),
        safe_ratio_expr("revenue", "transactions").alias("aov"),
        safe_ratio_expr("spend", "impressions", 1000.0).alias("cpm"),
    ]


def estimated_spend_expr(cpm: float) -> pl.Expr:
    """Spend estimated as impressions / 1000 * cpm."""
    return (pl.col("impressions") / 1000 * cpm).alias("spend")

