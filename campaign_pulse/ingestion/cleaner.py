"""Data cleaning functions using Polars expressions."""

import logging
from datetime import date
from typing import Callable

import polars as pl

from .dates import DateParser, parse_date, try_parse_date

logger = logging.getLogger(__name__)

CampaignPredicate = Callable[[str], bool]

TEST_CAMPAIGN_MARKERS = ("test", "demo", "draft")


def clean_numeric_column(col_name: str) -> pl.Expr:
    """Strip commas, currency symbols and whitespace, then convert to float.

    Unparseable, NaN, infinite and negative values all become 0.
    """
    value = (
        pl.col(col_name)
        .cast(pl.Utf8)
        .str.replace_all(r"[,$€£₹\s]", "")
        .cast(pl.Float64, strict=False)
    )
    return (
        pl.when(value.is_finite())
        .then(value)
        .otherwise(0.0)
        .clip(lower_bound=0.0)
        .alias(col_name)
    )


def clean_date_column(col_name: str, dtype: pl.DataType) -> pl.Expr:
    """Keep pre-parsed dates as dates; everything else goes through as text.

    Handles:
    - Already parsed Date/Datetime (e.g. from Excel or a typed frame)
    - Anything else, cast to string for the date parser
    """
    col = pl.col(col_name)

    if dtype == pl.Date:
        return col.alias(col_name)
    elif dtype.base_type() == pl.Datetime:
        return col.dt.date().alias(col_name)
    else:
        return col.cast(pl.Utf8).alias(col_name)


def clean_string_column(col_name: str) -> pl.Expr:
    """Strip whitespace and normalize empty strings to null."""
    return (
        pl.col(col_name)
        .cast(pl.Utf8)
        .str.strip_chars()
        .replace("", None)
        .alias(col_name)
    )


def is_totals_expr(col_name: str, sentinel: str = "Totals") -> pl.Expr:
    """Match the summary row some exports append (DATE == "Totals")."""
    return (
        pl.col(col_name).cast(pl.Utf8).str.strip_chars().str.to_lowercase()
        == sentinel.lower()
    )


def exclude_totals(
    df: pl.DataFrame, col_name: str = "date", sentinel: str = "Totals"
) -> pl.DataFrame:
    """Drop sentinel summary rows."""
    return df.filter(~is_totals_expr(col_name, sentinel).fill_null(False))


def normalize_dates(
    df: pl.DataFrame,
    col_name: str = "date",
    parser: DateParser = parse_date,
) -> pl.DataFrame:
    """Replace a raw date column with parsed dates, dropping failures.

    Each distinct raw value is parsed once. Rows whose date fails to parse
    are removed and logged as skipped. A column that is already ``pl.Date``
    is kept as is.
    """
    if df.schema[col_name] == pl.Date:
        return df.filter(pl.col(col_name).is_not_null())

    raw_values = df[col_name].to_list()
    cache: dict[object, date | None] = {}
    for raw in raw_values:
        if raw not in cache:
            cache[raw] = try_parse_date(raw, parser)

    parsed = pl.Series(col_name, [cache[raw] for raw in raw_values], dtype=pl.Date)
    result = df.with_columns(parsed)

    skipped = result[col_name].null_count()
    if skipped:
        bad = sorted(str(raw) for raw, value in cache.items() if value is None)
        logger.warning(
            "Skipped %d rows with unparseable dates (%d distinct values)",
            skipped,
            len(bad),
        )
        logger.debug("Unparseable date values: %s", bad)
        result = result.filter(pl.col(col_name).is_not_null())

    return result


def is_test_campaign(campaign_name: str) -> bool:
    """True for test, demo and draft campaigns."""
    lowered = (campaign_name or "").lower()
    return any(marker in lowered for marker in TEST_CAMPAIGN_MARKERS)


def exclude_test_campaigns(campaign_name: str) -> bool:
    """Campaign filter predicate keeping everything except test campaigns."""
    return not is_test_campaign(campaign_name)


def filter_campaigns(
    df: pl.DataFrame,
    predicate: CampaignPredicate,
    col_name: str = "campaign_name",
) -> pl.DataFrame:
    """Keep rows whose campaign name satisfies ``predicate``."""
    names = df[col_name].unique().to_list()
    keep = [name for name in names if predicate(name)]
    dropped = len(names) - len(keep)
    if dropped:
        logger.info("Campaign filter excluded %d of %d campaigns", dropped, len(names))
    return df.filter(pl.col(col_name).is_in(keep))


def apply_cleaning(
    df: pl.DataFrame,
    numeric_cols: list[str],
    string_cols: list[str],
) -> pl.DataFrame:
    """Apply numeric and string cleaning transformations.

    Only cleans columns that exist in the DataFrame.
    """
    existing_cols = set(df.columns)
    exprs: list[pl.Expr] = []

    for col in numeric_cols:
        if col in existing_cols:
            exprs.append(clean_numeric_column(col))

    for col in string_cols:
        if col in existing_cols:
            exprs.append(clean_string_column(col))

    if exprs:
        return df.with_columns(exprs)
    return df
