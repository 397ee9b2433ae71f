"""Main data ingestion pipeline."""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Mapping

import polars as pl
import yaml

from ..exceptions import ColumnMappingError, SchemaLoadError
from .cleaner import (
    CampaignPredicate,
    apply_cleaning,
    clean_date_column,
    exclude_totals,
    filter_campaigns,
    normalize_dates,
)
from .dates import DateParser, parse_date
from .enricher import enrich
from .validator import validate_dataframe

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_PATH = Path(__file__).parent.parent / "config" / "schema_registry.yaml"

Records = Iterable[Mapping[str, Any]] | pl.DataFrame


def _raw_text(value: Any) -> str | None:
    """Render a raw record value as text; date values become ISO dates."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class DataIngestionPipeline:
    """Pipeline for turning raw delivery records into a canonical frame.

    The canonical frame has one row per record with columns ``date``,
    ``campaign_name``, ``impressions``, ``clicks``, ``transactions``,
    ``revenue``, ``spend``, ``week_start`` and ``day_of_week``.

    Usage:
        pipeline = DataIngestionPipeline(campaign_filter=exclude_test_campaigns)
        df = pipeline.ingest(records)
    """

    def __init__(
        self,
        schema_path: Path | None = None,
        date_parser: DateParser = parse_date,
        campaign_filter: CampaignPredicate | None = None,
    ):
        self.schema = self._load_schema(schema_path or DEFAULT_SCHEMA_PATH)
        self.date_parser = date_parser
        self.campaign_filter = campaign_filter

    def _load_schema(self, path: Path) -> dict[str, Any]:
        """Load schema configuration from YAML."""
        try:
            with open(path) as f:
                return yaml.safe_load(f)
        except Exception as e:
            raise SchemaLoadError(f"Failed to load schema from {path}: {e}") from e

    def ingest(
        self,
        records: Records,
        schema_name: str = "delivery_rows",
        validate: bool = False,
    ) -> pl.DataFrame:
        """Full pipeline: Load -> Rename -> Drop totals -> Parse dates -> Clean
        -> Filter campaigns -> Enrich -> Validate.

        Args:
            records: Mappings keyed by raw column names, or a DataFrame
            schema_name: Key in schema registry (default: delivery_rows)
            validate: Whether to run Pydantic validation (default: False)

        Returns:
            Cleaned and enriched Polars DataFrame
        """
        if schema_name not in self.schema:
            raise SchemaLoadError(f"Unknown schema: {schema_name}")
        schema = self.schema[schema_name]
        column_map: dict[str, str] = schema["column_map"]
        date_col = schema.get("date_column", "date")
        campaign_col = schema.get("campaign_column", "campaign_name")

        df = self._load(records, column_map, column_map.get(date_col, date_col))
        df = self._rename_columns(df, column_map, schema.get("required_columns", []))

        df = exclude_totals(df, date_col, schema.get("totals_sentinel", "Totals"))
        df = normalize_dates(df, date_col, self.date_parser)
        df = self._clean(df, schema)

        missing_name = df[campaign_col].null_count()
        if missing_name:
            logger.warning("Skipped %d rows without a campaign name", missing_name)
            df = df.filter(pl.col(campaign_col).is_not_null())

        if self.campaign_filter is not None:
            df = filter_campaigns(df, self.campaign_filter, campaign_col)

        df = enrich(df, date_col)
        df = df.select(list(column_map.keys()) + ["week_start", "day_of_week"])

        if validate:
            validate_dataframe(df)

        logger.debug("Ingested %d rows", len(df))
        return df

    def _load(
        self, records: Records, column_map: dict[str, str], raw_date_col: str
    ) -> pl.DataFrame:
        """Load records as strings so cleaning sees raw values.

        Dates that arrive already typed stay dates instead of being rendered
        to text and parsed again.
        """
        if isinstance(records, pl.DataFrame):
            return records.with_columns(
                [
                    clean_date_column(name, dtype)
                    if name == raw_date_col
                    else pl.col(name).cast(pl.Utf8)
                    for name, dtype in records.schema.items()
                ]
            )

        rows = [
            {key: _raw_text(value) for key, value in row.items()}
            for row in records
        ]
        columns: list[str] = []
        for row in rows:
            for key in row:
                if key not in columns:
                    columns.append(key)
        if not rows:
            columns = list(column_map.values())

        return pl.DataFrame(rows, schema={col: pl.Utf8 for col in columns})

    def _rename_columns(
        self,
        df: pl.DataFrame,
        column_map: dict[str, str],
        required: list[str],
    ) -> pl.DataFrame:
        """Rename raw columns to internal names, adding absent optional ones.

        column_map: {internal_name: raw_column_name}
        """
        available = set(df.columns)
        missing = [
            column_map[internal]
            for internal in required
            if column_map[internal] not in available
        ]
        if missing:
            raise ColumnMappingError(missing, sorted(available))

        rename_dict = {
            raw: internal
            for internal, raw in column_map.items()
            if raw in available
        }
        df = df.rename(rename_dict)

        # Optional columns (e.g. TRANSACTIONS, SPEND) default to zero
        absent = [internal for internal in column_map if internal not in df.columns]
        if absent:
            logger.debug("Optional columns absent, filling with 0: %s", absent)
            df = df.with_columns([pl.lit("0").alias(col) for col in absent])

        return df

    def _clean(self, df: pl.DataFrame, schema: dict[str, Any]) -> pl.DataFrame:
        """Apply cleaning transformations based on schema."""
        return apply_cleaning(
            df,
            numeric_cols=schema.get("numeric_columns", []),
            string_cols=[schema.get("campaign_column", "campaign_name")],
        )
