"""Pydantic model for campaign contract terms."""

import math
import re
from datetime import date
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from ..ingestion.dates import parse_date

_NUMBER_NOISE = re.compile(r"[,$€£₹\s]")


def _to_number(value: Any) -> Any:
    if isinstance(value, str):
        cleaned = _NUMBER_NOISE.sub("", value)
        if not cleaned:
            raise ValueError("empty numeric value")
        return float(cleaned)
    return value


class ContractTerms(BaseModel):
    """Contracted flight for a campaign.

    Accepts canonical field names or the dashboard's upload headers
    ("Name", "Start Date", "End Date", "Budget", "CPM", "Impressions Goal"),
    with currency symbols and thousands separators in numeric fields.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    campaign_name: str = Field(
        min_length=1,
        validation_alias=AliasChoices("campaign_name", "Name", "CAMPAIGN ORDER NAME"),
    )
    start_date: date = Field(validation_alias=AliasChoices("start_date", "Start Date"))
    end_date: date = Field(validation_alias=AliasChoices("end_date", "End Date"))
    budget: float = Field(ge=0, validation_alias=AliasChoices("budget", "Budget"))
    cpm: float = Field(ge=0, validation_alias=AliasChoices("cpm", "CPM"))
    impressions_goal: float = Field(
        gt=0,
        validation_alias=AliasChoices("impressions_goal", "Impressions Goal"),
    )

    @field_validator("campaign_name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> date:
        return parse_date(value)

    @field_validator("budget", "cpm", "impressions_goal", mode="before")
    @classmethod
    def _parse_numbers(cls, value: Any) -> Any:
        return _to_number(value)

    @field_validator("budget", "cpm", "impressions_goal")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("must be a finite number")
        return value

    @model_validator(mode="after")
    def _check_flight(self) -> "ContractTerms":
        if self.end_date < self.start_date:
            raise ValueError(
                f"end_date {self.end_date} is before start_date {self.start_date}"
            )
        return self

    @property
    def total_days(self) -> int:
        """Flight length, inclusive of both start and end dates."""
        return (self.end_date - self.start_date).days + 1
