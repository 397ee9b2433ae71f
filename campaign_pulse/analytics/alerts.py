"""Rule-based campaign alerts from day-over-day delivery changes."""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

import polars as pl

from .metrics import percent_change

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Alert severity levels."""

    HIGH = "high"  # Action required
    MEDIUM = "medium"  # Needs attention
    LOW = "low"  # Worth a look


class AlertType(str, Enum):
    IMPRESSION_CHANGE = "impression_change"
    TRANSACTION_DROP = "transaction_drop"
    TRANSACTION_ZERO = "transaction_zero"


@dataclass(frozen=True)
class CampaignAlert:
    """Single alert for one campaign on one day."""

    campaign_name: str
    alert_type: AlertType
    date_detected: date
    severity: Severity
    previous_value: float | None = None
    current_value: float | None = None
    pct_change: float | None = None  # 0-100 scale
    consecutive_days: int | None = None

    @property
    def description(self) -> str:
        if self.alert_type == AlertType.TRANSACTION_ZERO:
            days = self.consecutive_days or 0
            return f"Zero transactions for {days} consecutive day{'s' if days > 1 else ''}"
        change = self.pct_change or 0.0
        direction = "increased" if change > 0 else "decreased"
        metric = "Impressions" if self.alert_type == AlertType.IMPRESSION_CHANGE else "Transactions"
        return f"{metric} {direction} by {abs(change):.1f}%"

    def to_dict(self) -> dict[str, Any]:
        return {
            "campaign_name": self.campaign_name,
            "type": self.alert_type.value,
            "date_detected": self.date_detected.isoformat(),
            "severity": self.severity.value,
            "description": self.description,
            "previous_value": self.previous_value,
            "current_value": self.current_value,
            "pct_change": round(self.pct_change, 2) if self.pct_change is not None else None,
            "consecutive_days": self.consecutive_days,
        }


@dataclass
class AlertThresholds:
    """Configurable thresholds for alert rules.

    Percentages are on a 0-100 scale.
    """

    # Impression change: |day-over-day change| >= X%
    impression_change_pct: float = 20.0
    impression_high_pct: float = 50.0
    impression_medium_pct: float = 35.0

    # Transaction drop: decline >= X% (always high)
    transaction_drop_pct: float = 90.0

    # Zero transactions: at least X consecutive days
    zero_streak_days: int = 2
    zero_streak_high_days: int = 7
    zero_streak_medium_days: int = 4


class AlertEngine:
    """Rule-based alert generator.

    The most recent date in the data is left out because that day is usually
    still incomplete.

    Usage:
        engine = AlertEngine(df, thresholds=AlertThresholds())
        alerts = engine.generate_all_alerts()
    """

    def __init__(
        self,
        df: pl.DataFrame,
        thresholds: AlertThresholds | None = None,
    ):
        self.df = df
        self.thresholds = thresholds or AlertThresholds()

    def generate_all_alerts(self) -> list[CampaignAlert]:
        """Run all alert rules; most recent first."""
        alerts: list[CampaignAlert] = []
        for campaign, days in self._campaign_days():
            alerts.extend(self._check_impression_change(campaign, days))
            alerts.extend(self._check_transaction_drop(campaign, days))
            alerts.extend(self._check_zero_transactions(campaign, days))

        alerts.sort(key=lambda a: (a.campaign_name, a.alert_type.value))
        alerts.sort(key=lambda a: a.date_detected, reverse=True)
        return alerts

    def _campaign_days(self) -> list[tuple[str, list[dict[str, Any]]]]:
        """Daily impressions and transactions per campaign, oldest first."""
        if len(self.df) == 0:
            return []
        latest = self.df["date"].max()
        daily = (
            self.df.filter(pl.col("date") != latest)
            .group_by(["campaign_name", "date"])
            .agg(pl.col("impressions").sum(), pl.col("transactions").sum())
            .sort(["campaign_name", "date"])
        )
        return [
            (group["campaign_name"][0], group.to_dicts())
            for group in daily.partition_by("campaign_name", maintain_order=True)
        ]

    def _check_impression_change(
        self, campaign: str, days: list[dict[str, Any]]
    ) -> list[CampaignAlert]:
        """Day-over-day impression swings >= 20%."""
        t = self.thresholds
        alerts: list[CampaignAlert] = []

        for previous, current in zip(days, days[1:]):
            if previous["impressions"] == 0:
                continue
            change = percent_change(current["impressions"], previous["impressions"])
            magnitude = abs(change)
            if magnitude < t.impression_change_pct:
                continue

            if magnitude >= t.impression_high_pct:
                severity = Severity.HIGH
            elif magnitude >= t.impression_medium_pct:
                severity = Severity.MEDIUM
            else:
                severity = Severity.LOW

            alerts.append(
                CampaignAlert(
                    campaign_name=campaign,
                    alert_type=AlertType.IMPRESSION_CHANGE,
                    date_detected=current["date"],
                    severity=severity,
                    previous_value=previous["impressions"],
                    current_value=current["impressions"],
                    pct_change=change,
                )
            )

        return alerts

    def _check_transaction_drop(
        self, campaign: str, days: list[dict[str, Any]]
    ) -> list[CampaignAlert]:
        """Transactions falling by 90% or more from one day to the next."""
        alerts: list[CampaignAlert] = []

        for previous, current in zip(days, days[1:]):
            if previous["transactions"] == 0:
                continue
            change = percent_change(current["transactions"], previous["transactions"])
            if change < 0 and abs(change) >= self.thresholds.transaction_drop_pct:
                alerts.append(
                    CampaignAlert(
                        campaign_name=campaign,
                        alert_type=AlertType.TRANSACTION_DROP,
                        date_detected=current["date"],
                        severity=Severity.HIGH,
                        previous_value=previous["transactions"],
                        current_value=current["transactions"],
                        pct_change=change,
                    )
                )

        return alerts

    def _check_zero_transactions(
        self, campaign: str, days: list[dict[str, Any]]
    ) -> list[CampaignAlert]:
        """Streaks of zero-transaction days, reported on the streak's last day."""
        t = self.thresholds
        alerts: list[CampaignAlert] = []
        streak = 0

        for i, day in enumerate(days):
            if day["transactions"] != 0:
                streak = 0
                continue
            streak += 1

            streak_ends = i == len(days) - 1 or days[i + 1]["transactions"] != 0
            if not streak_ends or streak < t.zero_streak_days:
                continue

            if streak >= t.zero_streak_high_days:
                severity = Severity.HIGH
            elif streak >= t.zero_streak_medium_days:
                severity = Severity.MEDIUM
            else:
                severity = Severity.LOW

            alerts.append(
                CampaignAlert(
                    campaign_name=campaign,
                    alert_type=AlertType.TRANSACTION_ZERO,
                    date_detected=day["date"],
                    severity=severity,
                    current_value=0.0,
                    consecutive_days=streak,
                )
            )

        return alerts
