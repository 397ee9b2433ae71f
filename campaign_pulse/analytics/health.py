"""Weighted campaign health scoring."""

from dataclasses import dataclass
from typing import Any, Literal, Mapping

import polars as pl

from ..settings import EngineSettings
from .metrics import calculate_ctr, calculate_roas, safe_divide
from .models import PacingMetrics
from .stats import detect_trend

BurnConfidence = Literal["7-day", "3-day", "1-day", "no-data"]


@dataclass
class HealthWeights:
    """Component weights and benchmarks for the health score.

    Component scores run 0-10 (overspend 0-5); weights sum to 1.
    """

    roas: float = 0.40
    pacing: float = 0.30
    burn_rate: float = 0.15
    ctr: float = 0.10
    overspend: float = 0.05

    ctr_benchmark_pct: float = 0.5
    burn_days: int = 7


@dataclass(frozen=True)
class BurnRate:
    """Recent average daily impressions."""

    one_day: float
    three_day: float
    seven_day: float
    confidence: BurnConfidence

    @property
    def current(self) -> float:
        return {
            "7-day": self.seven_day,
            "3-day": self.three_day,
            "1-day": self.one_day,
        }.get(self.confidence, 0.0)


@dataclass(frozen=True)
class CampaignHealth:
    """Component scores and the weighted health score for one campaign."""

    campaign_name: str
    impressions: float
    clicks: float
    revenue: float
    spend: float
    ctr: float
    roas: float
    expected_impressions: float
    pace: float  # actual / expected, percent
    roas_score: float
    pacing_score: float
    burn_rate_score: float
    ctr_score: float
    overspend_score: float
    health_score: float
    burn_rate: BurnRate
    completion_pct: float
    delivery_trend: Literal["increasing", "decreasing", "stable"]
    budget: float | None = None
    days_left: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "campaign_name": self.campaign_name,
            "health_score": self.health_score,
            "scores": {
                "roas": self.roas_score,
                "pacing": self.pacing_score,
                "burn_rate": self.burn_rate_score,
                "ctr": self.ctr_score,
                "overspend": self.overspend_score,
            },
            "roas": round(self.roas, 2),
            "ctr_pct": round(self.ctr, 4),
            "pace_pct": round(self.pace, 2),
            "burn_rate_confidence": self.burn_rate.confidence,
            "completion_pct": self.completion_pct,
            "delivery_trend": self.delivery_trend,
        }


# =============================================================================
# COMPONENT SCORES
# =============================================================================


def roas_score(roas: float) -> float:
    if roas >= 4.0:
        return 10.0
    if roas >= 3.0:
        return 7.5
    if roas >= 2.0:
        return 5.0
    if roas >= 1.0:
        return 2.5
    if roas > 0:
        return 1.0
    return 0.0


def pacing_score(actual: float, expected: float) -> float:
    """Score actual vs expected delivery; 0 without an expectation."""
    if expected <= 0:
        return 0.0
    pct = actual / expected * 100
    if 95 <= pct <= 105:
        return 10.0
    if 90 <= pct <= 110:
        return 8.0
    if 80 <= pct <= 120:
        return 6.0
    return 3.0


def burn_rate(daily_impressions: list[float], days: int = 7) -> BurnRate:
    """1/3/7-day average daily impressions over the most recent days."""
    recent = daily_impressions[-days:]
    if not recent:
        return BurnRate(0.0, 0.0, 0.0, "no-data")

    one_day = recent[-1]
    three_day = sum(recent[-3:]) / 3 if len(recent) >= 3 else 0.0
    seven_day = sum(recent) / 7 if len(recent) >= 7 else 0.0

    if len(recent) >= 7:
        confidence = "7-day"
    elif len(recent) >= 3:
        confidence = "3-day"
    else:
        confidence = "1-day"
    return BurnRate(one_day, three_day, seven_day, confidence)


def burn_rate_score(rate: BurnRate, required_daily: float) -> float:
    if required_daily <= 0 or rate.confidence == "no-data":
        return 0.0
    ratio = rate.current / required_daily
    if 0.95 <= ratio <= 1.05:
        return 10.0
    if 0.85 <= ratio <= 1.15:
        return 8.0
    return 5.0


def ctr_score(ctr: float, benchmark: float = 0.5) -> float:
    """Score CTR (percent) against a benchmark CTR (percent)."""
    if ctr == 0 or benchmark == 0:
        return 0.0
    deviation = (ctr - benchmark) / benchmark
    if deviation > 0.1:
        return 10.0
    if deviation >= -0.1:
        return 8.0
    return 5.0


def overspend_score(
    spend: float, budget: float | None, daily_spend: float, days_left: int
) -> float:
    """5 when projected spend stays within budget (or there is no budget)."""
    if not budget:
        return 5.0
    projected = spend + daily_spend * max(days_left, 0)
    return 5.0 if projected <= budget else 0.0


# =============================================================================
# SCORER
# =============================================================================


class HealthScorer:
    """Combines component scores into a weighted health score per campaign.

    When pacing metrics exist for a campaign they supply expected
    impressions, budget, days left and the required daily run rate.
    Otherwise expected impressions add the settings' ``goal_headroom`` on
    top of what was delivered.

    Usage:
        scorer = HealthScorer(df, pacing={m.campaign_name: m for m in metrics})
        health = scorer.score_all()
    """

    def __init__(
        self,
        df: pl.DataFrame,
        weights: HealthWeights | None = None,
        pacing: Mapping[str, PacingMetrics] | None = None,
        settings: EngineSettings | None = None,
    ):
        self.df = df
        self.weights = weights or HealthWeights()
        self.pacing = dict(pacing or {})
        self.settings = settings or EngineSettings()

    def score_all(self) -> list[CampaignHealth]:
        """Health for every campaign in the frame, sorted by name."""
        if len(self.df) == 0:
            return []
        names = sorted(self.df["campaign_name"].unique().to_list())
        return [self.score_campaign(name) for name in names]

    def score_campaign(self, campaign_name: str) -> CampaignHealth:
        w = self.weights
        daily = (
            self.df.filter(pl.col("campaign_name") == campaign_name)
            .group_by("date")
            .agg(
                pl.col("impressions").sum(),
                pl.col("clicks").sum(),
                pl.col("revenue").sum(),
                pl.col("spend").sum(),
            )
            .sort("date")
        )
        daily_impressions = daily["impressions"].to_list()
        days_with_data = len(daily)

        impressions = float(daily["impressions"].sum())
        clicks = float(daily["clicks"].sum())
        revenue = float(daily["revenue"].sum())
        spend = float(daily["spend"].sum())
        roas = calculate_roas(revenue, spend)
        ctr = calculate_ctr(clicks, impressions)

        pacing = self.pacing.get(campaign_name)
        if pacing is not None:
            actual = pacing.actual_impressions
            expected = pacing.expected_impressions
            required_daily = pacing.remaining_average_needed
            budget: float | None = pacing.budget
            days_left = pacing.days_until_end
            completion = safe_divide(
                pacing.days_into_campaign,
                pacing.days_into_campaign + pacing.days_until_end,
                100.0,
            )
        else:
            actual = impressions
            expected = impressions * self.settings.goal_headroom
            required_daily = safe_divide(impressions, days_with_data)
            budget = None
            days_left = 0
            completion = 0.0

        rate = burn_rate(daily_impressions, w.burn_days)
        scores = {
            "roas": roas_score(roas),
            "pacing": pacing_score(actual, expected),
            "burn_rate": burn_rate_score(rate, required_daily),
            "ctr": ctr_score(ctr, w.ctr_benchmark_pct),
            "overspend": overspend_score(
                spend, budget, safe_divide(spend, days_with_data), days_left
            ),
        }
        health = (
            scores["roas"] * w.roas
            + scores["pacing"] * w.pacing
            + scores["burn_rate"] * w.burn_rate
            + scores["ctr"] * w.ctr
            + scores["overspend"] * w.overspend
        )

        return CampaignHealth(
            campaign_name=campaign_name,
            impressions=impressions,
            clicks=clicks,
            revenue=revenue,
            spend=spend,
            ctr=ctr,
            roas=roas,
            expected_impressions=expected,
            pace=safe_divide(actual, expected, 100.0),
            roas_score=scores["roas"],
            pacing_score=scores["pacing"],
            burn_rate_score=scores["burn_rate"],
            ctr_score=scores["ctr"],
            overspend_score=scores["overspend"],
            health_score=round(health, 1),
            burn_rate=rate,
            completion_pct=round(completion, 1),
            delivery_trend=detect_trend(daily_impressions),
            budget=budget,
            days_left=days_left if pacing is not None else None,
        )
