"""Analytical Engine - main calculator class for campaign delivery analysis."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

import polars as pl

from ..models.report import EngineReport
from ..settings import EngineSettings
from .alerts import AlertEngine, AlertThresholds, CampaignAlert
from .anomalies import AnomalyDetector, AnomalyMode
from .buckets import bucket_by_date, bucket_by_day_of_week
from .health import CampaignHealth, HealthScorer, HealthWeights
from .metrics import kpi_table, summarize_frame
from .models import (
    AnomalyReport,
    DailyBucket,
    DayOfWeekBucket,
    KPISummary,
    PacingSummary,
    Window,
    WindowComparison,
)
from .pacing import ContractInput, PacingCalculator
from .stats import detect_trend
from .windows import available_period_lengths, period_over_period, select_windows

REQUIRED_COLUMNS = {
    "date",
    "campaign_name",
    "impressions",
    "clicks",
    "transactions",
    "revenue",
    "spend",
}


@dataclass
class AnalyticalEngine:
    """Main analytics calculator for campaign delivery data.

    All methods are pure functions - they do not mutate the input DataFrame.

    Attributes:
        df: Canonical frame from the ingestion pipeline (the current view)
        settings: Thresholds and constants for every calculation
        contracts: Contract terms used for pacing (optional)
        unfiltered: Full frame before view filters, for actual-to-date pacing
        alert_thresholds: Thresholds for day-over-day alerts
        health_weights: Weights for the campaign health score
    """

    df: pl.DataFrame
    settings: EngineSettings = field(default_factory=EngineSettings)
    contracts: list[ContractInput] = field(default_factory=list)
    unfiltered: pl.DataFrame | None = None
    alert_thresholds: AlertThresholds = field(default_factory=AlertThresholds)
    health_weights: HealthWeights = field(default_factory=HealthWeights)

    def __post_init__(self) -> None:
        """Validate input DataFrame has required columns."""
        missing = REQUIRED_COLUMNS - set(self.df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {sorted(missing)}")

    # =========================================================================
    # KPIs
    # =========================================================================

    def get_kpis(self) -> KPISummary:
        """Totals and derived ratios across the whole frame."""
        return summarize_frame(self.df, self.settings.assumed_cpm)

    def get_campaign_kpis(self) -> pl.DataFrame:
        """Totals and derived ratios per campaign."""
        return kpi_table(self.df, "campaign_name", self.settings.assumed_cpm)

    # =========================================================================
    # BUCKETS AND WINDOWS
    # =========================================================================

    def get_daily_buckets(self, fill_gaps: bool = False) -> list[DailyBucket]:
        return bucket_by_date(self.df, fill_gaps=fill_gaps)

    def get_day_of_week_buckets(self) -> list[DayOfWeekBucket]:
        return bucket_by_day_of_week(self.df)

    def get_windows(self, period_length: int) -> list[Window]:
        return select_windows(self.df, period_length)

    def get_available_period_lengths(self) -> list[int]:
        return available_period_lengths(self.df, self.settings.period_lengths)

    def get_period_comparison(self, period_length: int) -> list[WindowComparison]:
        return period_over_period(self.df, period_length, self.settings.assumed_cpm)

    # =========================================================================
    # ANOMALIES, PACING, ALERTS, HEALTH
    # =========================================================================

    def detect_anomalies(
        self,
        mode: AnomalyMode = "daily",
        metrics: Iterable[str] | None = None,
    ) -> AnomalyReport:
        return AnomalyDetector(self.settings).detect(self.df, mode=mode, metrics=metrics)

    def get_pacing(self, synthesize_missing: bool = False) -> PacingSummary:
        """Pacing for every contract, plus campaigns delivering without one."""
        return PacingCalculator(self.settings).process_campaigns(
            self.contracts,
            self.df,
            unfiltered=self.unfiltered,
            synthesize_missing=synthesize_missing,
        )

    def get_alerts(self) -> list[CampaignAlert]:
        return AlertEngine(self.df, self.alert_thresholds).generate_all_alerts()

    def get_health(self, pacing: PacingSummary | None = None) -> list[CampaignHealth]:
        pacing = pacing or self.get_pacing()
        by_campaign = {m.campaign_name: m for m in pacing.campaigns}
        return HealthScorer(
            self.df, self.health_weights, by_campaign, self.settings
        ).score_all()

    # =========================================================================
    # REPORT
    # =========================================================================

    def get_report(
        self,
        fill_gaps: bool = False,
        synthesize_missing: bool = False,
        generated_at: datetime | None = None,
    ) -> EngineReport:
        """Run every analysis and package the results.

        Args:
            fill_gaps: Zero-fill missing days in the daily series
            synthesize_missing: Pace campaigns without contracts from their
                own delivery history
            generated_at: Report timestamp (default: now); pass one for
                reproducible output

        Returns:
            EngineReport with all outputs as plain data.
        """
        daily = self.get_daily_buckets(fill_gaps=fill_gaps)
        lengths = self.get_available_period_lengths()
        pacing = self.get_pacing(synthesize_missing=synthesize_missing)
        anomalies = {
            mode: [a.to_dict() for a in self.detect_anomalies(mode).anomalies]
            for mode in ("daily", "weekly")
        }

        date_range = None
        if len(self.df) > 0:
            date_range = (self.df["date"].min(), self.df["date"].max())

        return EngineReport(
            generated_at=generated_at or datetime.now(),
            date_range=date_range,
            total_rows=len(self.df),
            campaigns=sorted(self.df["campaign_name"].unique().to_list()),
            kpis=self.get_kpis().to_dict(),
            campaign_kpis=self.get_campaign_kpis().to_dicts(),
            delivery_trend=detect_trend([b.sums.impressions for b in daily]),
            daily=[b.to_dict() for b in daily],
            day_of_week=[b.to_dict() for b in self.get_day_of_week_buckets()],
            available_period_lengths=lengths,
            period_comparisons={
                length: [c.to_dict() for c in self.get_period_comparison(length)]
                for length in lengths
            },
            anomalies=anomalies,
            pacing=[m.to_dict() for m in pacing.campaigns],
            pacing_skipped=pacing.skipped,
            missing_contracts=[m.to_dict() for m in pacing.missing_contracts],
            alerts=[a.to_dict() for a in self.get_alerts()],
            health=[h.to_dict() for h in self.get_health(pacing)],
        )
