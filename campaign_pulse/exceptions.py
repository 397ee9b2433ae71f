"""Custom exceptions for the delivery analytics engine."""

from typing import Any


class CampaignPulseError(Exception):
    """Base exception for all engine errors."""

    pass


class IngestionError(CampaignPulseError):
    """Base exception for ingestion errors."""

    pass


class SchemaLoadError(IngestionError):
    """Failed to load schema or settings configuration."""

    pass


class DataValidationError(IngestionError):
    """Data validation failed against Pydantic model."""

    def __init__(self, errors: list[dict[str, Any]], row_count: int):
        self.errors = errors
        self.row_count = row_count
        super().__init__(
            f"Validation failed for {len(errors)} of {row_count} rows. "
            f"First error: {errors[0] if errors else 'N/A'}"
        )


class ColumnMappingError(IngestionError):
    """Required column not found in source data."""

    def __init__(self, missing_columns: list[str], available_columns: list[str]):
        self.missing_columns = missing_columns
        self.available_columns = available_columns
        super().__init__(
            f"Missing required columns: {missing_columns}. "
            f"Available: {available_columns[:10]}..."
        )


class InvalidDateError(CampaignPulseError, ValueError):
    """A date string could not be parsed into a calendar date."""

    def __init__(self, raw: Any):
        self.raw = raw
        super().__init__(f"Unparseable date: {raw!r}")


class ContractTermsError(CampaignPulseError):
    """Contract terms are missing or unusable for pacing."""

    def __init__(self, campaign_name: str, reason: str):
        self.campaign_name = campaign_name
        self.reason = reason
        super().__init__(f"Invalid contract terms for {campaign_name!r}: {reason}")
