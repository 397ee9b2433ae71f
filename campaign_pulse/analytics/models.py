"""Output models for analytics calculations."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Literal, Mapping

METRIC_NAMES = ("impressions", "clicks", "transactions", "revenue", "spend")


@dataclass(frozen=True)
class MetricSums:
    """Summed delivery metrics for any grouping of rows."""

    impressions: float = 0.0
    clicks: float = 0.0
    transactions: float = 0.0
    revenue: float = 0.0
    spend: float = 0.0

    @classmethod
    def zero(cls) -> "MetricSums":
        return cls()

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "MetricSums":
        """Build from a row or aggregate dict; missing or null metrics count as 0."""
        return cls(**{name: float(row.get(name) or 0.0) for name in METRIC_NAMES})

    def __add__(self, other: "MetricSums") -> "MetricSums":
        return MetricSums(
            **{name: getattr(self, name) + getattr(other, name) for name in METRIC_NAMES}
        )

    def get(self, metric: str) -> float:
        return getattr(self, metric)

    def to_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in METRIC_NAMES}


@dataclass(frozen=True)
class DailyBucket:
    """Sums for one calendar day."""

    key: str  # YYYY-MM-DD
    date: date
    sums: MetricSums
    row_count: int

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.key, "row_count": self.row_count, **self.sums.to_dict()}


@dataclass(frozen=True)
class DayOfWeekBucket:
    """Sums for one weekday across the whole data set."""

    key: str  # Sunday..Saturday
    day_index: int  # Sunday = 0
    sums: MetricSums
    row_count: int

    def to_dict(self) -> dict[str, Any]:
        return {"day": self.key, "row_count": self.row_count, **self.sums.to_dict()}


@dataclass(frozen=True)
class Window:
    """A complete, fixed-length date range (both ends inclusive)."""

    start: date
    end: date
    sums: MetricSums
    row_count: int

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "row_count": self.row_count,
            **self.sums.to_dict(),
        }


@dataclass(frozen=True)
class WindowComparison:
    """Period-over-period delta between two consecutive windows."""

    current: Window
    previous: Window
    pct_changes: dict[str, float]  # metric -> percent change (0-100 scale)

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": self.current.to_dict(),
            "previous": self.previous.to_dict(),
            "pct_changes": {k: round(v, 2) for k, v in self.pct_changes.items()},
        }


@dataclass(frozen=True)
class Anomaly:
    """Single anomaly detection result."""

    campaign_name: str
    period_label: str
    metric: str
    baseline_mean: float
    actual_value: float
    deviation_percent: float  # signed, 0-100 scale
    period_type: Literal["daily", "weekly"]
    period_start: date
    period_end: date
    std_dev: float
    compared_to: str  # "campaign average", "previous week", "overall average"

    @property
    def direction(self) -> Literal["above", "below"]:
        return "above" if self.actual_value > self.baseline_mean else "below"

    def to_dict(self) -> dict[str, Any]:
        return {
            "campaign_name": self.campaign_name,
            "period": self.period_label,
            "period_type": self.period_type,
            "metric": self.metric,
            "baseline_mean": round(self.baseline_mean, 2),
            "actual_value": round(self.actual_value, 2),
            "deviation_pct": round(self.deviation_percent, 2),
            "std_dev": round(self.std_dev, 2),
            "compared_to": self.compared_to,
            "direction": self.direction,
        }


@dataclass(frozen=True)
class AnomalyReport:
    """Complete anomaly detection output."""

    mode: Literal["daily", "weekly"]
    anomalies: list[Anomaly]
    campaigns_analyzed: int
    campaigns_skipped: list[str] = field(default_factory=list)  # insufficient data


class PacingStatus(str, Enum):
    """Pacing bands on current_pacing * 100."""

    ON_TARGET = "on_target"
    MINOR_DEVIATION = "minor_deviation"
    MODERATE_DEVIATION = "moderate_deviation"
    MAJOR_DEVIATION = "major_deviation"


@dataclass(frozen=True)
class PacingMetrics:
    """Delivery pacing for one campaign as of its reference date."""

    campaign_name: str
    reference_date: date
    total_campaign_days: int
    days_into_campaign: int
    days_until_end: int
    actual_impressions: float
    expected_impressions: float
    impression_goal: float
    current_pacing: float  # actual / expected
    goal_completion: float  # actual / goal
    remaining_impressions: float
    remaining_average_needed: float
    yesterday_impressions: float
    yesterday_vs_needed: float
    budget: float
    cpm: float
    status: PacingStatus
    terms_synthesized: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "campaign_name": self.campaign_name,
            "reference_date": self.reference_date.isoformat(),
            "total_campaign_days": self.total_campaign_days,
            "days_into_campaign": self.days_into_campaign,
            "days_until_end": self.days_until_end,
            "actual_impressions": round(self.actual_impressions),
            "expected_impressions": round(self.expected_impressions),
            "impression_goal": round(self.impression_goal),
            "current_pacing_pct": round(self.current_pacing * 100, 2),
            "goal_completion_pct": round(self.goal_completion * 100, 2),
            "remaining_impressions": round(self.remaining_impressions),
            "remaining_average_needed": round(self.remaining_average_needed),
            "yesterday_impressions": round(self.yesterday_impressions),
            "yesterday_vs_needed_pct": round(self.yesterday_vs_needed * 100, 2),
            "budget": round(self.budget, 2),
            "cpm": round(self.cpm, 2),
            "status": self.status.value,
            "terms_synthesized": self.terms_synthesized,
        }


@dataclass(frozen=True)
class MissingContract:
    """Delivering campaign with no contract terms on file."""

    campaign_name: str
    first_date: date
    last_date: date
    total_impressions: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "campaign_name": self.campaign_name,
            "first_date": self.first_date.isoformat(),
            "last_date": self.last_date.isoformat(),
            "total_impressions": round(self.total_impressions),
        }


@dataclass(frozen=True)
class PacingSummary:
    """Batch pacing output."""

    campaigns: list[PacingMetrics]
    skipped: list[str]  # contracts with no delivery or unusable terms
    missing_contracts: list[MissingContract]


@dataclass(frozen=True)
class KPISummary:
    """Totals plus derived ratios."""

    impressions: float
    clicks: float
    transactions: float
    revenue: float
    spend: float
    ctr: float  # percent
    roas: float
    aov: float
    cpm: float
    spend_estimated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "impressions": round(self.impressions),
            "clicks": round(self.clicks),
            "transactions": round(self.transactions),
            "revenue": round(self.revenue, 2),
            "spend": round(self.spend, 2),
            "ctr_pct": round(self.ctr, 4),
            "roas": round(self.roas, 2),
            "aov": round(self.aov, 2),
            "cpm": round(self.cpm, 2),
            "spend_estimated": self.spend_estimated,
        }
