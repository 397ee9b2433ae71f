"""Validation utilities for the ingestion pipeline."""

from typing import Any

import polars as pl
from pydantic import ValidationError

from ..exceptions import DataValidationError
from ..models.delivery_row import DeliveryRow


def validate_dataframe(df: pl.DataFrame) -> None:
    """Validate each row against Pydantic model.

    Collects all errors before raising, for better debugging.

    Args:
        df: Cleaned and enriched DataFrame

    Raises:
        DataValidationError: If any rows fail validation
    """
    errors: list[dict[str, Any]] = []
    rows = df.to_dicts()

    for i, row in enumerate(rows):
        try:
            DeliveryRow.model_validate(row)
        except ValidationError as e:
            errors.append({"row": i, "errors": e.errors()})

    if errors:
        raise DataValidationError(errors, len(rows))
