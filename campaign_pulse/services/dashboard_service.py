"""Dashboard service - orchestrates data ingestion and analytics."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import polars as pl

from ..analytics import (
    AnalyticalEngine,
    AnomalyReport,
    CampaignAlert,
    CampaignHealth,
    KPISummary,
    PacingSummary,
)
from ..analytics.pacing import ContractInput, coerce_contract
from ..exceptions import ContractTermsError
from ..ingestion import DataIngestionPipeline
from ..ingestion.cleaner import CampaignPredicate, exclude_test_campaigns
from ..ingestion.dates import DateParser, parse_date
from ..ingestion.loader import Records
from ..models.report import EngineReport
from ..settings import EngineSettings

logger = logging.getLogger(__name__)


@dataclass
class DashboardOutput:
    """Consolidated output from report generation."""

    campaigns: list[str]
    kpis: KPISummary
    daily_anomalies: AnomalyReport
    weekly_anomalies: AnomalyReport
    pacing: PacingSummary
    alerts: list[CampaignAlert] = field(default_factory=list)
    health: list[CampaignHealth] = field(default_factory=list)
    report: EngineReport | None = None


class DashboardService:
    """Service for generating delivery dashboards from raw records.

    Orchestrates:
    1. Ingestion of delivery records
    2. Narrowing to the selected campaigns, keeping the full data for pacing
    3. Running all analytics
    4. Returning consolidated output

    Usage:
        service = DashboardService()
        output = service.generate_report(
            records,
            contract_terms=[{"Name": "Brand A", "Start Date": "1/1/2024", ...}],
            campaigns=["Brand A"],  # optional
        )
    """

    def __init__(
        self,
        schema_path: Path | None = None,
        settings: EngineSettings | None = None,
        date_parser: DateParser = parse_date,
        campaign_filter: CampaignPredicate | None = exclude_test_campaigns,
    ):
        """Initialize service with schema configuration.

        Args:
            schema_path: Path to schema_registry.yaml. Defaults to bundled config.
            settings: Engine settings. Defaults to EngineSettings().
            date_parser: Parser applied to every raw DATE value
            campaign_filter: Predicate on campaign names; test, demo and draft
                campaigns are excluded by default. Pass None to keep all.
        """
        self.settings = settings or EngineSettings()
        self.pipeline = DataIngestionPipeline(
            schema_path,
            date_parser=date_parser,
            campaign_filter=campaign_filter,
        )

    def generate_report(
        self,
        records: Records,
        contract_terms: Iterable[ContractInput] | None = None,
        campaigns: list[str] | None = None,
        validate: bool = False,
        fill_gaps: bool = False,
        synthesize_missing: bool = False,
    ) -> DashboardOutput:
        """Generate the full dashboard analysis.

        Args:
            records: Raw delivery records or a DataFrame with raw column names
            contract_terms: Contract terms for pacing (optional)
            campaigns: Campaign names to analyse (default: all)
            validate: Whether to run Pydantic validation (default False for speed)
            fill_gaps: Zero-fill missing days in the daily series
            synthesize_missing: Pace campaigns without contracts from delivery

        Returns:
            DashboardOutput with all analytics

        Raises:
            ValueError: If none of the requested campaigns are in the data
        """
        unfiltered = self.pipeline.ingest(records, validate=validate)
        view = self._select_campaigns(unfiltered, campaigns)
        logger.info(
            "Analysing %d rows across %d campaigns",
            len(view),
            view["campaign_name"].n_unique(),
        )

        engine = AnalyticalEngine(
            df=view,
            settings=self.settings,
            contracts=self._select_contracts(contract_terms or [], campaigns),
            unfiltered=unfiltered,
        )

        report = engine.get_report(fill_gaps=fill_gaps, synthesize_missing=synthesize_missing)
        pacing = engine.get_pacing(synthesize_missing=synthesize_missing)

        return DashboardOutput(
            campaigns=report.campaigns,
            kpis=engine.get_kpis(),
            daily_anomalies=engine.detect_anomalies("daily"),
            weekly_anomalies=engine.detect_anomalies("weekly"),
            pacing=pacing,
            alerts=engine.get_alerts(),
            health=engine.get_health(pacing),
            report=report,
        )

    def get_available_campaigns(self, records: Records) -> list[str]:
        """Get list of campaign names that survive ingestion and filtering."""
        df = self.pipeline.ingest(records, validate=False)
        return sorted(df["campaign_name"].unique().to_list())

    def generate_summary_dict(self, output: DashboardOutput) -> dict[str, Any]:
        """Convert DashboardOutput to JSON-serializable dictionary.

        Args:
            output: DashboardOutput from generate_report()

        Returns:
            Dictionary suitable for JSON serialization
        """
        return {
            "campaigns": output.campaigns,
            "kpis": output.kpis.to_dict(),
            "anomalies": {
                "daily": [a.to_dict() for a in output.daily_anomalies.anomalies],
                "weekly": [a.to_dict() for a in output.weekly_anomalies.anomalies],
                "weekly_skipped": output.weekly_anomalies.campaigns_skipped,
            },
            "pacing": [m.to_dict() for m in output.pacing.campaigns],
            "pacing_skipped": output.pacing.skipped,
            "missing_contracts": [m.to_dict() for m in output.pacing.missing_contracts],
            "alerts": [a.to_dict() for a in output.alerts],
            "health": [h.to_dict() for h in output.health],
            "summary": output.report.get_executive_summary() if output.report else None,
        }

    @staticmethod
    def _select_campaigns(df: pl.DataFrame, campaigns: list[str] | None) -> pl.DataFrame:
        if not campaigns:
            return df
        view = df.filter(pl.col("campaign_name").is_in(campaigns))
        if len(view) == 0:
            available = sorted(df["campaign_name"].unique().to_list())
            raise ValueError(f"Campaigns {campaigns} not found. Available: {available}")
        return view

    @staticmethod
    def _select_contracts(
        contracts: Iterable[ContractInput], campaigns: list[str] | None
    ) -> list[ContractInput]:
        """Contracts for the selected campaigns.

        Unusable contracts pass through so pacing reports them as skipped.
        """
        contracts = list(contracts)
        if not campaigns:
            return contracts
        selected: list[ContractInput] = []
        for contract in contracts:
            try:
                terms = coerce_contract(contract)
            except ContractTermsError:
                selected.append(contract)
                continue
            if terms.campaign_name in campaigns:
                selected.append(terms)
        return selected
