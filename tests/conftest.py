"""Shared fixtures for the test suite."""

from datetime import date, timedelta
from typing import Any, Callable

import polars as pl
import pytest

from campaign_pulse.ingestion.enricher import enrich

CANONICAL_SCHEMA = {
    "date": pl.Date,
    "campaign_name": pl.Utf8,
    "impressions": pl.Float64,
    "clicks": pl.Float64,
    "transactions": pl.Float64,
    "revenue": pl.Float64,
    "spend": pl.Float64,
}

FrameFactory = Callable[[list[dict[str, Any]]], pl.DataFrame]


@pytest.fixture
def make_df() -> FrameFactory:
    """Build an enriched canonical frame; omitted metrics default to 0."""

    def _make(rows: list[dict[str, Any]]) -> pl.DataFrame:
        full = [
            {
                "date": row["date"],
                "campaign_name": row.get("campaign_name", "A"),
                **{
                    name: float(row.get(name, 0.0))
                    for name in CANONICAL_SCHEMA
                    if name not in ("date", "campaign_name")
                },
            }
            for row in rows
        ]
        return enrich(pl.DataFrame(full, schema=CANONICAL_SCHEMA))

    return _make


@pytest.fixture
def daily_series(make_df: FrameFactory) -> Callable[..., pl.DataFrame]:
    """Frame with one row per consecutive day starting at ``start``."""

    def _series(
        values: list[float],
        start: date = date(2024, 1, 1),
        campaign: str = "A",
        metric: str = "impressions",
        **constant: float,
    ) -> pl.DataFrame:
        return make_df(
            [
                {
                    "date": start + timedelta(days=i),
                    "campaign_name": campaign,
                    metric: value,
                    **constant,
                }
                for i, value in enumerate(values)
            ]
        )

    return _series


@pytest.fixture
def raw_records() -> list[dict[str, Any]]:
    """Raw delivery records as an upstream export would supply them."""
    return [
        {
            "DATE": "2024-01-01",
            "CAMPAIGN ORDER NAME": "Brand A",
            "IMPRESSIONS": "1,000",
            "CLICKS": "10",
            "TRANSACTIONS": "2",
            "REVENUE": "$150.00",
            "SPEND": "$15.00",
        },
        {
            "DATE": "1/2/2024",
            "CAMPAIGN ORDER NAME": "Brand A",
            "IMPRESSIONS": 1200,
            "CLICKS": 12,
            "TRANSACTIONS": 3,
            "REVENUE": 200.5,
            "SPEND": 18,
        },
        {
            "DATE": "2024-01-02",
            "CAMPAIGN ORDER NAME": "Brand B",
            "IMPRESSIONS": "abc",
            "CLICKS": "-5",
            "TRANSACTIONS": "",
            "REVENUE": "40",
            "SPEND": "4",
        },
        {
            "DATE": "not a date",
            "CAMPAIGN ORDER NAME": "Brand B",
            "IMPRESSIONS": "500",
            "CLICKS": "5",
            "TRANSACTIONS": "1",
            "REVENUE": "10",
            "SPEND": "1",
        },
        {
            "DATE": "2024-01-02",
            "CAMPAIGN ORDER NAME": "Test Campaign",
            "IMPRESSIONS": "999",
            "CLICKS": "9",
            "TRANSACTIONS": "0",
            "REVENUE": "0",
            "SPEND": "0",
        },
        {
            "DATE": "Totals",
            "CAMPAIGN ORDER NAME": "",
            "IMPRESSIONS": "3,699",
            "CLICKS": "36",
            "TRANSACTIONS": "6",
            "REVENUE": "400.5",
            "SPEND": "38",
        },
    ]
