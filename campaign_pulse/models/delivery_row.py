"""Pydantic model for canonical delivery row validation."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


class DeliveryRow(BaseModel):
    """Single delivery row after cleaning and enrichment.

    Numeric fields are floats clamped to >= 0 by the cleaner.
    """

    model_config = ConfigDict(strict=True)

    date: dt.date
    campaign_name: str = Field(min_length=1)

    # Performance metrics
    impressions: float = Field(ge=0)
    clicks: float = Field(ge=0)
    transactions: float = Field(ge=0)
    revenue: float = Field(ge=0)
    spend: float = Field(ge=0)

    # Enriched fields (added by pipeline)
    week_start: dt.date
    day_of_week: str
