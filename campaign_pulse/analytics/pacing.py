"""Delivery pacing against contracted impression goals."""

import logging
import math
from datetime import date
from typing import Any, Iterable, Mapping

import polars as pl
from pydantic import ValidationError

from ..exceptions import ContractTermsError
from ..models.contract_terms import ContractTerms
from ..settings import EngineSettings
from .metrics import calculate_cpm, safe_divide
from .models import MissingContract, PacingMetrics, PacingStatus, PacingSummary

logger = logging.getLogger(__name__)

ContractInput = ContractTerms | Mapping[str, Any]


def classify_pacing(
    current_pacing: float, settings: EngineSettings | None = None
) -> PacingStatus:
    """Map a pacing ratio to its band, checking the tightest band first.

    Bands on current_pacing * 100 (defaults):
        on target  [95, 105]
        minor      [85, 95) or (105, 115]
        moderate   [70, 85) or (115, 130]
        major      everything else
    """
    s = settings or EngineSettings()
    if not math.isfinite(current_pacing) or current_pacing < 0:
        return PacingStatus.MAJOR_DEVIATION

    # 1.06 * 100 is 106.00000000000001 in floating point
    pct = round(current_pacing * 100, 6)

    if s.on_target_low <= pct <= s.on_target_high:
        return PacingStatus.ON_TARGET
    if s.minor_low <= pct < s.on_target_low or s.on_target_high < pct <= s.minor_high:
        return PacingStatus.MINOR_DEVIATION
    if s.moderate_low <= pct < s.minor_low or s.minor_high < pct <= s.moderate_high:
        return PacingStatus.MODERATE_DEVIATION
    return PacingStatus.MAJOR_DEVIATION


def coerce_contract(contract: ContractInput) -> ContractTerms:
    """Validate raw contract fields into ContractTerms.

    Raises:
        ContractTermsError: If the fields do not form usable terms.
    """
    if isinstance(contract, ContractTerms):
        return contract
    try:
        return ContractTerms.model_validate(dict(contract))
    except ValidationError as e:
        name = str(contract.get("campaign_name") or contract.get("Name") or "<unnamed>")
        raise ContractTermsError(name, f"{e.error_count()} invalid fields") from e


def reference_date(dates: Iterable[date]) -> date | None:
    """Second most recent delivery date, or the only one.

    The latest day in a report is usually still accumulating.
    """
    ordered = sorted(set(dates), reverse=True)
    if not ordered:
        return None
    return ordered[1] if len(ordered) > 1 else ordered[0]


class PacingCalculator:
    """Computes pacing metrics per campaign.

    Usage:
        calculator = PacingCalculator(EngineSettings())
        metrics = calculator.compute_pacing("Brand A", df, contract_terms=terms)
        summary = calculator.process_campaigns(contracts, df)
    """

    def __init__(self, settings: EngineSettings | None = None):
        self.settings = settings or EngineSettings()

    def synthesize_terms(self, campaign_name: str, delivery: pl.DataFrame) -> ContractTerms | None:
        """Build terms from a campaign's own delivery history.

        The flight spans the observed dates, budget is the spend so far and
        the goal adds ``goal_headroom`` on top of delivered impressions.
        Returns None when there is nothing delivered to derive a goal from.
        """
        rows = delivery.filter(pl.col("campaign_name") == campaign_name)
        if len(rows) == 0:
            return None
        impressions = float(rows["impressions"].sum())
        spend = float(rows["spend"].sum())
        if impressions <= 0:
            logger.info("Cannot synthesize terms for %r: no impressions", campaign_name)
            return None
        return ContractTerms(
            campaign_name=campaign_name,
            start_date=rows["date"].min(),
            end_date=rows["date"].max(),
            budget=spend,
            cpm=calculate_cpm(spend, impressions),
            impressions_goal=impressions * self.settings.goal_headroom,
        )

    def compute_pacing(
        self,
        campaign_name: str,
        delivery: pl.DataFrame,
        contract_terms: ContractInput | None = None,
        unfiltered: pl.DataFrame | None = None,
    ) -> PacingMetrics | None:
        """Pacing for one campaign as of its reference date.

        Args:
            campaign_name: Campaign to evaluate
            delivery: Canonical frame, the current (possibly filtered) view
            contract_terms: Contract for the campaign; synthesized when None
            unfiltered: Full delivery frame used for actual-to-date totals

        Returns:
            PacingMetrics, or None when the campaign has no delivery rows.

        Raises:
            ContractTermsError: If supplied contract fields are invalid.
        """
        rows = delivery.filter(pl.col("campaign_name") == campaign_name)
        if len(rows) == 0:
            logger.info("No delivery data for campaign %r", campaign_name)
            return None

        synthesized = contract_terms is None
        if synthesized:
            terms = self.synthesize_terms(campaign_name, delivery)
            if terms is None:
                return None
        else:
            terms = coerce_contract(contract_terms)

        ref = reference_date(rows["date"].to_list())
        total_days = terms.total_days
        days_into = min(max((ref - terms.start_date).days + 1, 0), total_days)
        days_until_end = max(0, (terms.end_date - ref).days)

        goal = terms.impressions_goal
        expected = goal / total_days * days_into

        source = unfiltered if unfiltered is not None else delivery
        campaign_source = source.filter(pl.col("campaign_name") == campaign_name)
        actual = float(
            campaign_source.filter(pl.col("date") <= ref)["impressions"].sum()
        )
        yesterday = float(
            campaign_source.filter(pl.col("date") == ref)["impressions"].sum()
        )

        current_pacing = safe_divide(actual, expected)
        remaining = max(0.0, goal - actual)
        # At or past the end date the run rate falls back to actual-to-date
        needed = remaining / days_until_end if days_until_end > 0 else actual

        return PacingMetrics(
            campaign_name=campaign_name,
            reference_date=ref,
            total_campaign_days=total_days,
            days_into_campaign=days_into,
            days_until_end=days_until_end,
            actual_impressions=actual,
            expected_impressions=expected,
            impression_goal=goal,
            current_pacing=current_pacing,
            goal_completion=safe_divide(actual, goal),
            remaining_impressions=remaining,
            remaining_average_needed=needed,
            yesterday_impressions=yesterday,
            yesterday_vs_needed=safe_divide(yesterday, needed),
            budget=terms.budget,
            cpm=terms.cpm,
            status=classify_pacing(current_pacing, self.settings),
            terms_synthesized=synthesized,
        )

    def process_campaigns(
        self,
        contracts: Iterable[ContractInput],
        delivery: pl.DataFrame,
        unfiltered: pl.DataFrame | None = None,
        synthesize_missing: bool = False,
    ) -> PacingSummary:
        """Pacing for every contract, plus delivering campaigns lacking one.

        A bad contract never stops the batch: contracts without delivery or
        with unusable terms are logged and listed in ``skipped``.
        """
        campaigns: list[PacingMetrics] = []
        skipped: list[str] = []
        contracted: set[str] = set()

        for contract in contracts:
            try:
                terms = coerce_contract(contract)
            except ContractTermsError as e:
                logger.warning("Skipping contract: %s", e)
                skipped.append(e.campaign_name)
                continue

            contracted.add(terms.campaign_name)
            metrics = self.compute_pacing(terms.campaign_name, delivery, terms, unfiltered)
            if metrics is None:
                skipped.append(terms.campaign_name)
            else:
                campaigns.append(metrics)

        missing = self.find_missing_contracts(delivery, contracted)
        if synthesize_missing:
            for entry in missing:
                metrics = self.compute_pacing(entry.campaign_name, delivery, None, unfiltered)
                if metrics is not None:
                    campaigns.append(metrics)

        if skipped:
            logger.info("Pacing skipped %d contracts: %s", len(skipped), skipped)

        return PacingSummary(campaigns=campaigns, skipped=skipped, missing_contracts=missing)

    @staticmethod
    def find_missing_contracts(
        delivery: pl.DataFrame, contracted: Iterable[str]
    ) -> list[MissingContract]:
        """Delivering campaigns without contract terms, sorted by name.

        Campaigns whose most recent day delivered no impressions are treated
        as finished and left out.
        """
        if len(delivery) == 0:
            return []
        contracted = set(contracted)

        per_campaign = (
            delivery.filter(~pl.col("campaign_name").is_in(list(contracted)))
            .group_by(["campaign_name", "date"])
            .agg(pl.col("impressions").sum())
            .sort(["campaign_name", "date"])
            .group_by("campaign_name", maintain_order=True)
            .agg(
                pl.col("date").min().alias("first_date"),
                pl.col("date").max().alias("last_date"),
                pl.col("impressions").sum().alias("total_impressions"),
                pl.col("impressions").last().alias("latest_impressions"),
            )
            .filter(pl.col("latest_impressions") > 0)
            .sort("campaign_name")
        )

        return [
            MissingContract(
                campaign_name=row["campaign_name"],
                first_date=row["first_date"],
                last_date=row["last_date"],
                total_impressions=row["total_impressions"],
            )
            for row in per_campaign.to_dicts()
        ]
