"""Data enrichment functions - add derived columns."""

import polars as pl

DAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)


def sunday_index_expr(date_col: str = "date") -> pl.Expr:
    """Day index with Sunday = 0 ... Saturday = 6.

    Polars weekday() is ISO (Monday = 1 ... Sunday = 7).
    """
    return pl.col(date_col).dt.weekday() % 7


def add_week_start(df: pl.DataFrame, date_col: str = "date") -> pl.DataFrame:
    """Add week_start column (Sunday of that week)."""
    return df.with_columns(
        (pl.col(date_col) - pl.duration(days=sunday_index_expr(date_col)))
        .cast(pl.Date)
        .alias("week_start")
    )


def add_day_of_week(df: pl.DataFrame, date_col: str = "date") -> pl.DataFrame:
    """Add day_of_week name (Sunday..Saturday)."""
    return df.with_columns(
        sunday_index_expr(date_col)
        .replace_strict(list(range(7)), list(DAY_NAMES), return_dtype=pl.Utf8)
        .alias("day_of_week")
    )


def enrich(df: pl.DataFrame, date_col: str = "date") -> pl.DataFrame:
    """Apply all enrichment transformations."""
    df = add_week_start(df, date_col)
    df = add_day_of_week(df, date_col)
    return df
