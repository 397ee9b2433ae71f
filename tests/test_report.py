"""Tests for the analytical engine facade and the dashboard service."""

import json
from datetime import date, datetime, timedelta
from typing import Any

import polars as pl
import pytest

from campaign_pulse.analytics import AnalyticalEngine, PacingStatus
from campaign_pulse.models.report import EngineReport
from campaign_pulse.services import DashboardOutput, DashboardService
from campaign_pulse.settings import EngineSettings


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def records() -> list[dict[str, Any]]:
    """Three weeks of raw rows for two real campaigns and one test campaign."""
    start = date(2024, 1, 7)
    rows: list[dict[str, Any]] = []
    for i in range(21):
        day = start + timedelta(days=i)
        us_date = f"{day.month}/{day.day}/{day.year}"
        brand_a_imps = 6000 if i == 15 else 1000
        rows.append(
            {
                "DATE": us_date,
                "CAMPAIGN ORDER NAME": "Brand A",
                "IMPRESSIONS": f"{brand_a_imps:,}",
                "CLICKS": "10",
                "TRANSACTIONS": "2",
                "REVENUE": "$120.00",
                "SPEND": "$30.00",
            }
        )
        rows.append(
            {
                "DATE": day.isoformat(),
                "CAMPAIGN ORDER NAME": "Brand B",
                "IMPRESSIONS": "2,000",
                "CLICKS": "4",
                "TRANSACTIONS": "1",
                "REVENUE": "50",
                "SPEND": "20",
            }
        )
        rows.append(
            {
                "DATE": day.isoformat(),
                "CAMPAIGN ORDER NAME": "Demo Line",
                "IMPRESSIONS": "50",
                "CLICKS": "0",
                "TRANSACTIONS": "0",
                "REVENUE": "0",
                "SPEND": "0",
            }
        )
    rows.append(
        {
            "DATE": "Totals",
            "CAMPAIGN ORDER NAME": "",
            "IMPRESSIONS": "1",
            "CLICKS": "1",
            "TRANSACTIONS": "1",
            "REVENUE": "1",
            "SPEND": "1",
        }
    )
    return rows


@pytest.fixture
def contracts() -> list[dict[str, str]]:
    return [
        {
            "Name": "Brand A",
            "Start Date": "1/7/2024",
            "End Date": "2/5/2024",
            "Budget": "$1,500",
            "CPM": "30",
            "Impressions Goal": "30,000",
        }
    ]


@pytest.fixture
def service() -> DashboardService:
    return DashboardService()


@pytest.fixture
def output(
    service: DashboardService,
    records: list[dict[str, Any]],
    contracts: list[dict[str, str]],
) -> DashboardOutput:
    return service.generate_report(records, contract_terms=contracts)


# =============================================================================
# ENGINE
# =============================================================================


class TestAnalyticalEngine:
    """Tests for AnalyticalEngine."""

    def test_missing_columns(self) -> None:
        with pytest.raises(ValueError, match="Missing required columns"):
            AnalyticalEngine(df=pl.DataFrame({"date": [date(2024, 1, 1)]}))

    def test_report_is_json_serializable(self, daily_series) -> None:
        df = daily_series([1000.0] * 20, clicks=5.0, revenue=50.0, spend=10.0)
        report = AnalyticalEngine(df=df).get_report()
        assert isinstance(report, EngineReport)
        payload = json.loads(report.to_json())
        assert payload["meta"]["total_rows"] == 20
        assert payload["temporal"]["available_period_lengths"] == [7]
        assert len(payload["temporal"]["period_comparisons"]["7"]) == 1

    def test_same_input_same_report(self, daily_series) -> None:
        """With a fixed timestamp, repeated runs give identical output."""
        df = daily_series([1000.0, 1200.0, 900.0] * 5, clicks=5.0, revenue=50.0)
        engine = AnalyticalEngine(df=df)
        stamp = datetime(2024, 2, 1, 9, 0)
        first = engine.get_report(generated_at=stamp)
        second = engine.get_report(generated_at=stamp)
        assert first == second
        assert first.to_json() == second.to_json()
        assert first.to_dict()["meta"]["generated_at"] == "2024-02-01T09:00:00"

    def test_empty_frame(self, make_df) -> None:
        """No rows should give an empty report rather than an error."""
        report = AnalyticalEngine(df=make_df([])).get_report()
        assert report.total_rows == 0
        assert report.date_range is None
        assert report.anomalies == {"daily": [], "weekly": []}
        assert len(report.day_of_week) == 7

    def test_assumed_cpm(self, daily_series) -> None:
        df = daily_series([2000.0] * 3, revenue=60.0)
        engine = AnalyticalEngine(df=df, settings=EngineSettings(assumed_cpm=15.0))
        kpis = engine.get_kpis()
        assert kpis.spend == pytest.approx(90.0)
        assert kpis.roas == pytest.approx(2.0)


# =============================================================================
# SERVICE
# =============================================================================


class TestDashboardService:
    """Tests for DashboardService."""

    def test_test_campaigns_excluded(self, output: DashboardOutput) -> None:
        assert output.campaigns == ["Brand A", "Brand B"]

    def test_kpis(self, output: DashboardOutput) -> None:
        """Totals row is ignored; formatted numbers are parsed."""
        assert output.kpis.impressions == 20 * 1000 + 6000 + 21 * 2000
        assert output.kpis.revenue == pytest.approx(21 * 120 + 21 * 50)

    def test_daily_spike_found(self, output: DashboardOutput) -> None:
        spikes = [
            a for a in output.daily_anomalies.anomalies if a.campaign_name == "Brand A"
        ]
        assert [a.period_start for a in spikes] == [date(2024, 1, 22)]
        assert spikes[0].metric == "impressions"

    def test_weekly_spike_found(self, output: DashboardOutput) -> None:
        """Week of Jan 21 holds the spike and jumps over 15% on the prior week."""
        weekly = [
            a for a in output.weekly_anomalies.anomalies if a.campaign_name == "Brand A"
        ]
        assert weekly
        assert weekly[0].period_start == date(2024, 1, 21)
        assert weekly[0].compared_to == "previous week"

    def test_pacing(self, output: DashboardOutput) -> None:
        """Reference Jan 26: 20 of 30 days, goal 30000, 25000 delivered."""
        assert len(output.pacing.campaigns) == 1
        metrics = output.pacing.campaigns[0]
        assert metrics.campaign_name == "Brand A"
        assert metrics.reference_date == date(2024, 1, 26)
        assert metrics.days_into_campaign == 20
        assert metrics.actual_impressions == 25000.0
        assert metrics.expected_impressions == pytest.approx(20000.0)
        assert metrics.status == PacingStatus.MODERATE_DEVIATION
        assert [m.campaign_name for m in output.pacing.missing_contracts] == ["Brand B"]

    def test_campaign_selection_keeps_pacing_context(
        self,
        service: DashboardService,
        records: list[dict[str, Any]],
        contracts: list[dict[str, str]],
    ) -> None:
        output = service.generate_report(
            records, contract_terms=contracts, campaigns=["Brand A"]
        )
        assert output.campaigns == ["Brand A"]
        assert output.pacing.missing_contracts == []
        assert len(output.health) == 1

    def test_unknown_campaign(
        self, service: DashboardService, records: list[dict[str, Any]]
    ) -> None:
        with pytest.raises(ValueError, match="not found"):
            service.generate_report(records, campaigns=["Nope"])

    def test_keep_all_campaigns(self, records: list[dict[str, Any]]) -> None:
        service = DashboardService(campaign_filter=None)
        assert "Demo Line" in service.get_available_campaigns(records)

    def test_available_campaigns(
        self, service: DashboardService, records: list[dict[str, Any]]
    ) -> None:
        assert service.get_available_campaigns(records) == ["Brand A", "Brand B"]

    def test_summary_dict(self, service: DashboardService, output: DashboardOutput) -> None:
        summary = service.generate_summary_dict(output)
        json.dumps(summary)
        assert summary["campaigns"] == ["Brand A", "Brand B"]
        assert summary["pacing"][0]["status"] == "moderate_deviation"
        assert summary["summary"]["campaign_count"] == 2
        assert summary["summary"]["missing_contracts"] == 1
