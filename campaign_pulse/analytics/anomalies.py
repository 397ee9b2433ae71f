"""Daily and weekly anomaly detection per campaign."""

import logging
from datetime import timedelta
from typing import Any, Iterable, Literal

import polars as pl

from ..ingestion.enricher import add_week_start
from ..settings import EngineSettings
from .expressions import metric_sums_expr
from .models import METRIC_NAMES, Anomaly, AnomalyReport
from .stats import mean_and_std

logger = logging.getLogger(__name__)

AnomalyMode = Literal["daily", "weekly"]


def _sort_key(anomaly: Anomaly) -> tuple:
    return (
        -abs(anomaly.deviation_percent),
        anomaly.campaign_name,
        anomaly.metric,
        anomaly.period_start,
    )


def _week_label(week: dict[str, Any]) -> str:
    start = week["week_start"]
    return f"{start.isoformat()} - {(start + timedelta(days=6)).isoformat()}"


class AnomalyDetector:
    """Flags unusual daily or weekly metric values within each campaign.

    Daily mode compares each day with the campaign's mean across all of its
    days. Weekly mode groups days into Sunday-start weeks and runs a
    week-over-week check followed by a week-vs-average check.

    Usage:
        detector = AnomalyDetector(EngineSettings())
        report = detector.detect(df, mode="weekly")
    """

    def __init__(self, settings: EngineSettings | None = None):
        self.settings = settings or EngineSettings()

    def detect(
        self,
        df: pl.DataFrame,
        mode: AnomalyMode = "daily",
        metrics: Iterable[str] | None = None,
    ) -> AnomalyReport:
        """Run anomaly detection over a canonical frame.

        Args:
            df: Canonical frame, possibly holding several campaigns
            mode: "daily" or "weekly"
            metrics: Metrics to examine (default: settings.anomaly_metrics)

        Returns:
            AnomalyReport with anomalies ordered by descending absolute
            deviation.

        Raises:
            ValueError: For an unknown mode or metric.
        """
        if mode not in ("daily", "weekly"):
            raise ValueError(f"Unknown anomaly mode: {mode!r}")
        metrics = tuple(metrics or self.settings.anomaly_metrics)
        unknown = [m for m in metrics if m not in METRIC_NAMES]
        if unknown:
            raise ValueError(f"Unknown metrics: {unknown}")

        if len(df) == 0:
            return AnomalyReport(mode=mode, anomalies=[], campaigns_analyzed=0)

        # One value per campaign and day, however many source rows there were
        daily = (
            df.group_by(["campaign_name", "date"])
            .agg(metric_sums_expr())
            .sort(["campaign_name", "date"])
        )

        anomalies: list[Anomaly] = []
        skipped: list[str] = []
        campaigns = daily.partition_by("campaign_name", maintain_order=True)

        for campaign_df in campaigns:
            campaign = campaign_df["campaign_name"][0]
            if mode == "daily":
                anomalies.extend(self._detect_daily(campaign, campaign_df, metrics))
            else:
                found = self._detect_weekly(campaign, campaign_df, metrics)
                if found is None:
                    skipped.append(campaign)
                else:
                    anomalies.extend(found)

        if skipped:
            logger.info(
                "Weekly anomaly detection skipped %d campaigns with fewer than %d weeks",
                len(skipped),
                self.settings.weekly_min_weeks,
            )

        return AnomalyReport(
            mode=mode,
            anomalies=sorted(anomalies, key=_sort_key),
            campaigns_analyzed=len(campaigns) - len(skipped),
            campaigns_skipped=skipped,
        )

    # =========================================================================
    # DAILY
    # =========================================================================

    def _detect_daily(
        self,
        campaign: str,
        days: pl.DataFrame,
        metrics: tuple[str, ...],
    ) -> list[Anomaly]:
        s = self.settings
        rows = days.to_dicts()
        anomalies: list[Anomaly] = []

        for metric in metrics:
            mean, std = mean_and_std([row[metric] for row in rows])
            if mean == 0:
                continue

            for row in rows:
                value = row[metric]
                deviation = (value - mean) / mean * 100
                if (
                    abs(value - mean) > s.daily_std_multiplier * std
                    and abs(deviation) > s.daily_min_deviation_pct
                ):
                    anomalies.append(
                        Anomaly(
                            campaign_name=campaign,
                            period_label=row["date"].isoformat(),
                            metric=metric,
                            baseline_mean=mean,
                            actual_value=value,
                            deviation_percent=deviation,
                            period_type="daily",
                            period_start=row["date"],
                            period_end=row["date"],
                            std_dev=std,
                            compared_to="campaign average",
                        )
                    )

        return anomalies

    # =========================================================================
    # WEEKLY
    # =========================================================================

    def _detect_weekly(
        self,
        campaign: str,
        days: pl.DataFrame,
        metrics: tuple[str, ...],
    ) -> list[Anomaly] | None:
        """Weekly checks for one campaign; None when it has too few weeks."""
        s = self.settings
        weeks = (
            add_week_start(days)
            .group_by("week_start")
            .agg([*metric_sums_expr(), pl.len().alias("days_with_data")])
            .sort("week_start")
            .to_dicts()
        )
        if len(weeks) < s.weekly_min_weeks:
            return None

        eligible = [w for w in weeks if w["days_with_data"] >= s.weekly_min_days]
        anomalies: list[Anomaly] = []

        for metric in metrics:
            flagged = set()

            # (a) each week against the week before it
            for previous, current in zip(weeks, weeks[1:]):
                if (
                    previous["days_with_data"] < s.weekly_min_days
                    or current["days_with_data"] < s.weekly_min_days
                ):
                    continue
                baseline = previous[metric]
                if baseline == 0:
                    continue
                value = current[metric]
                change = (value - baseline) / baseline * 100
                if abs(change) > s.weekly_change_pct:
                    flagged.add(current["week_start"])
                    anomalies.append(
                        self._weekly_anomaly(
                            campaign, current, metric, baseline, change, 0.0, "previous week"
                        )
                    )

            # (b) each eligible week against the mean of all eligible weeks
            if len(eligible) < s.weekly_min_weeks_for_average:
                continue
            mean, std = mean_and_std([w[metric] for w in eligible])
            if mean == 0:
                continue
            for week in eligible:
                if week["week_start"] in flagged:
                    continue
                value = week[metric]
                deviation = (value - mean) / mean * 100
                if (
                    abs(deviation) > s.weekly_change_pct
                    and abs(value - mean) > s.weekly_std_multiplier * std
                ):
                    anomalies.append(
                        self._weekly_anomaly(
                            campaign, week, metric, mean, deviation, std, "overall average"
                        )
                    )

        return anomalies

    @staticmethod
    def _weekly_anomaly(
        campaign: str,
        week: dict[str, Any],
        metric: str,
        baseline: float,
        deviation: float,
        std: float,
        compared_to: str,
    ) -> Anomaly:
        return Anomaly(
            campaign_name=campaign,
            period_label=_week_label(week),
            metric=metric,
            baseline_mean=baseline,
            actual_value=week[metric],
            deviation_percent=deviation,
            period_type="weekly",
            period_start=week["week_start"],
            period_end=week["week_start"] + timedelta(days=6),
            std_dev=std,
            compared_to=compared_to,
        )
