"""Analytics module for campaign delivery analysis."""

from .alerts import AlertEngine, AlertThresholds, AlertType, CampaignAlert, Severity
from .anomalies import AnomalyDetector
from .buckets import bucket_by_date, bucket_by_day_of_week
from .calculator import AnalyticalEngine
from .health import CampaignHealth, HealthScorer, HealthWeights
from .metrics import percent_change, safe_divide, summarize, summarize_frame
from .models import (
    Anomaly,
    AnomalyReport,
    DailyBucket,
    DayOfWeekBucket,
    KPISummary,
    MetricSums,
    MissingContract,
    PacingMetrics,
    PacingStatus,
    PacingSummary,
    Window,
    WindowComparison,
)
from .pacing import PacingCalculator, classify_pacing
from .windows import available_period_lengths, period_over_period, select_windows

__all__ = [
    "AlertEngine",
    "AlertThresholds",
    "AlertType",
    "AnalyticalEngine",
    "Anomaly",
    "AnomalyDetector",
    "AnomalyReport",
    "CampaignAlert",
    "CampaignHealth",
    "DailyBucket",
    "DayOfWeekBucket",
    "HealthScorer",
    "HealthWeights",
    "KPISummary",
    "MetricSums",
    "MissingContract",
    "PacingCalculator",
    "PacingMetrics",
    "PacingStatus",
    "PacingSummary",
    "Severity",
    "Window",
    "WindowComparison",
    "available_period_lengths",
    "bucket_by_date",
    "bucket_by_day_of_week",
    "classify_pacing",
    "percent_change",
    "period_over_period",
    "safe_divide",
    "select_windows",
    "summarize",
    "summarize_frame",
]
