"""EngineReport - consolidated analytics output."""

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any


@dataclass
class EngineReport:
    """Consolidated analytics output.

    All data is pre-computed and JSON-serializable.
    """

    # Metadata
    generated_at: datetime
    date_range: tuple[date, date] | None
    total_rows: int
    campaigns: list[str]

    # Top-line aggregates
    kpis: dict[str, Any]
    campaign_kpis: list[dict[str, Any]]
    delivery_trend: str

    # Bucketed series
    daily: list[dict[str, Any]]
    day_of_week: list[dict[str, Any]]

    # Period-over-period, keyed by period length in days
    available_period_lengths: list[int]
    period_comparisons: dict[int, list[dict[str, Any]]]

    # Anomalies, keyed by mode
    anomalies: dict[str, list[dict[str, Any]]]

    # Pacing
    pacing: list[dict[str, Any]] = field(default_factory=list)
    pacing_skipped: list[str] = field(default_factory=list)
    missing_contracts: list[dict[str, Any]] = field(default_factory=list)

    # Alerts and health
    alerts: list[dict[str, Any]] = field(default_factory=list)
    health: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "meta": {
                "generated_at": self.generated_at.isoformat(),
                "date_range": (
                    {
                        "start": self.date_range[0].isoformat(),
                        "end": self.date_range[1].isoformat(),
                    }
                    if self.date_range
                    else None
                ),
                "total_rows": self.total_rows,
                "campaigns": self.campaigns,
            },
            "aggregates": {
                "totals": self.kpis,
                "by_campaign": self.campaign_kpis,
                "delivery_trend": self.delivery_trend,
            },
            "temporal": {
                "daily": self.daily,
                "day_of_week": self.day_of_week,
                "available_period_lengths": self.available_period_lengths,
                "period_comparisons": {
                    str(length): comparisons
                    for length, comparisons in self.period_comparisons.items()
                },
            },
            "anomalies": self.anomalies,
            "pacing": {
                "campaigns": self.pacing,
                "skipped": self.pacing_skipped,
                "missing_contracts": self.missing_contracts,
            },
            "alerts": self.alerts,
            "health": self.health,
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def get_executive_summary(self) -> dict[str, Any]:
        """Condensed summary with key metrics only."""
        off_pace = [p for p in self.pacing if p.get("status") != "on_target"]
        return {
            "campaign_count": len(self.campaigns),
            "total_impressions": self.kpis.get("impressions"),
            "total_revenue": self.kpis.get("revenue"),
            "roas": self.kpis.get("roas"),
            "ctr_pct": self.kpis.get("ctr_pct"),
            "anomaly_count": sum(len(items) for items in self.anomalies.values()),
            "high_severity_alerts": sum(
                1 for a in self.alerts if a.get("severity") == "high"
            ),
            "campaigns_off_pace": len(off_pace),
            "missing_contracts": len(self.missing_contracts),
            "top_anomaly": next(
                (items[0] for items in self.anomalies.values() if items), None
            ),
        }
