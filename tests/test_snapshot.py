"""
Integration tests for merchant snapshots and the program report
(variance_model/core/snapshot.py)

Run with:
    pytest tests/test_snapshot.py -v
"""

from datetime import date, timedelta

import pytest

from core.config import Settings
from variance_model.models import Opportunity, SeasonalityPoint, WeeklyActual
from variance_model.core.seasonality import SeasonalityModel
from variance_model.core.tiers import PerformanceTier
from variance_model.core.snapshot import (
    build_merchant_snapshot,
    build_program_report,
    variance_contributors,
)

# ─── Helpers ─────────────────────────────────────────────────────────────────

def _make_opportunity(account_id, **overrides):
    fields = dict(
        account_id=account_id,
        merchant_name=f"Merchant {account_id}",
        vertical="Apparel",
        pricing_model="Rev Share",
        labels_paid_by="Merchant",
        annual_order_volume=10000,
        adoption_rate_expected_percent=50,
        initial_offset_fee=2,
        refund_handling_fee=1,
        domestic_return_rate_percent=10,
        loop_share_percent=80,
        expected_annual_revenue=9000,
        net_acv=10000,
        starting_acv=1000,
    )
    fields.update(overrides)
    return Opportunity(**fields)


def _make_weeks(account_id, accepted, weeks=(1, 2, 3, 4), orders=200, first_offer=date(2024, 1, 1)):
    return [
        WeeklyActual(
            account_id=account_id,
            merchant_name=f"Merchant {account_id}",
            iso_week=w,
            order_week_date=date(2024, 1, 1) + timedelta(weeks=w - 1),
            first_offer_date=first_offer,
            ecomm_orders=orders,
            offer_shown=150,
            accepted_offers=accepted,
        )
        for w in weeks
    ]


def _make_seasonality():
    return [SeasonalityPoint(vertical="Total ex. Swimwear", iso_week=w, order_percentage=2.0) for w in range(1, 9)]


def _make_program():
    """
    A: on plan. B: adoption 30% vs 50%. C: two weeks only (insufficient).
    D: Flat. E: checkout disabled. F: no weekly data.
    """
    opportunities = [
        _make_opportunity("A"),
        _make_opportunity("B"),
        _make_opportunity("C"),
        _make_opportunity("D", pricing_model="Flat"),
        _make_opportunity("E", checkout_enabled="No"),
        _make_opportunity("F"),
    ]
    actuals = (
        _make_weeks("A", accepted=100)
        + _make_weeks("B", accepted=60)
        + _make_weeks("C", accepted=120, weeks=(3, 4), first_offer=date(2024, 1, 15))
        + _make_weeks("D", accepted=100)
        + _make_weeks("E", accepted=100)
    )
    return opportunities, actuals


def _report(**kwargs):
    opportunities, actuals = _make_program()
    kwargs.setdefault("settings", Settings())
    return build_program_report(opportunities, actuals, _make_seasonality(), **kwargs)


# ─── Single merchant ─────────────────────────────────────────────────────────

class TestMerchantSnapshot:

    def test_on_plan_merchant(self):
        model = SeasonalityModel.from_points(_make_seasonality())
        s = build_merchant_snapshot(_make_opportunity("A"), _make_weeks("A", accepted=100), model)

        assert s.has_sufficient_data
        assert s.days_live == 27
        assert s.trailing_adoption_variance_bps == pytest.approx(0.0)
        assert s.tier == PerformanceTier.MEETING
        assert s.projected_annual_volume == pytest.approx(10000.0)
        assert s.expected_revenue == pytest.approx(8040.0)
        assert s.revenue_variance == pytest.approx(0.0)
        assert s.run_rate_annual_volume == pytest.approx(200.0 * 52)

    def test_default_adoption_when_contract_has_none(self):
        model = SeasonalityModel.from_points(_make_seasonality())
        opp = _make_opportunity("A", adoption_rate_expected_percent=None)
        s = build_merchant_snapshot(opp, _make_weeks("A", accepted=100), model)
        assert s.expected_adoption_pct == 50.0

    def test_eligibility_variance_against_program_benchmark(self):
        model = SeasonalityModel.from_points(_make_seasonality())
        s = build_merchant_snapshot(_make_opportunity("A"), _make_weeks("A", accepted=100), model)
        # 150 shown / 200 orders = 75% vs 70.7%
        assert s.current_eligibility_variance_bps == pytest.approx(430.0)
        assert s.trailing_eligibility_variance_bps == pytest.approx(430.0)


# ─── Program report ──────────────────────────────────────────────────────────

class TestProgramReport:

    def test_reportable_merchants_in_input_order(self):
        report = _report()
        assert [s.account_id for s in report.snapshots] == ["A", "B", "C"]
        assert report.through_iso_week == 4
        assert report.latest_week_start == date(2024, 1, 22)

    def test_under_adopting_merchant(self):
        b = _report().snapshot_for("B")

        assert b.tier == PerformanceTier.SIGNIFICANTLY_BELOW
        assert b.trailing_adoption_variance_bps == pytest.approx(-2000.0)
        assert b.adoption_variance_pp == pytest.approx(-20.0)
        assert b.projected_revenue == pytest.approx(5360.0)
        assert b.revenue_variance == pytest.approx(-2680.0)
        assert b.decomposition.volume_contribution == pytest.approx(0.0)
        assert b.decomposition.adoption_contribution == pytest.approx(-2680.0)
        assert b.revenue_variance_percent == pytest.approx(-2680.0 / 8040.0 * 100.0)

    def test_insufficient_data_uses_contract_baseline(self):
        c = _report().snapshot_for("C")

        assert not c.has_sufficient_data
        assert c.trailing_adoption_variance_bps is None
        assert c.days_live == 13
        assert c.revenue_variance == 0.0
        assert c.projected_annual_volume == 10000.0
        assert c.acv.projected_net_acv == 10000.0
        # tier follows the current week: 60% vs 50%
        assert c.tier == PerformanceTier.EXCEEDING

    def test_overview(self):
        overview = _report().overview

        assert overview["total_opportunities"] == 6
        assert overview["opportunities_with_actuals"] == 5
        assert overview["opportunities_without_actuals"] == 1
        assert overview["total_merchants"] == 3
        assert overview["active_merchants"] == 3
        assert overview["merchants_with_sufficient_data"] == 2
        assert overview["avg_adoption_rate"] == pytest.approx((50.0 + 30.0 + 60.0) / 3)
        assert overview["weighted_adoption_rate"] == pytest.approx(280.0 / 600.0 * 100.0)
        assert overview["trailing_weighted_adoption_rate"] == pytest.approx((400 + 240 + 240) / 2000.0 * 100.0)
        assert overview["tier_distribution"] == {
            "exceeding": 1,
            "meeting": 1,
            "slightly_below": 0,
            "significantly_below": 1,
        }

    def test_include_flat(self):
        report = _report(include_flat=True)
        assert [s.account_id for s in report.snapshots] == ["A", "B", "C", "D"]
        assert report.snapshot_for("D").revenue_variance == 0.0

    def test_excluded_accounts_are_dropped_everywhere(self):
        report = _report(exclude_accounts=["B", "F"])

        assert [s.account_id for s in report.snapshots] == ["A", "C"]
        assert report.overview["total_opportunities"] == 4
        assert report.overview["opportunities_without_actuals"] == 0
        assert set(report.weekly_trends["account_id"]) == {"A", "C"}

    @pytest.mark.parametrize("value,expected", [
        ("all", ["A", "B", "C"]),
        ("under30", ["A", "B", "C"]),
        ("30-60", []),
        (20, ["A", "B"]),
        ("not-a-filter", ["A", "B", "C"]),
    ])
    def test_days_live_filter(self, value, expected):
        report = _report(days_live_filter=value)
        assert [s.account_id for s in report.snapshots] == expected

    def test_parallel_matches_sequential(self):
        sequential = _report(max_workers=1)
        parallel = _report(max_workers=4)

        assert [s.to_dict() for s in parallel.snapshots] == [s.to_dict() for s in sequential.snapshots]
        assert parallel.overview == sequential.overview
        assert parallel.acv == sequential.acv

    def test_volume_and_acv_summaries(self):
        report = _report()

        assert report.volume["merchant_count"] == 3
        assert report.volume["forecast_merchant_count"] == 2
        assert report.volume["current_week_orders"] == pytest.approx(600.0)
        assert report.acv["tier_counts"]["meeting"] == 2
        assert report.acv["tier_counts"]["below"] == 1

    def test_window_override(self):
        report = _report(window_size=2)
        assert report.window_size == 2
        assert report.snapshot_for("C").has_sufficient_data

    def test_settings_drive_defaults(self):
        report = _report(settings=Settings(TRAILING_WINDOW_WEEKS=2, REPORT_THROUGH_ISO_WEEK=3))
        assert report.window_size == 2
        assert report.through_iso_week == 3

    def test_seasonality_model_instance_is_used_as_is(self):
        opportunities, actuals = _make_program()
        model = SeasonalityModel()
        report = build_program_report(opportunities, actuals, model, settings=Settings())
        # uniform 1.923% of 10000 is 192.3 expected orders a week
        a = report.snapshot_for("A")
        assert a.forecast.expected_avg_orders == pytest.approx(192.3)

    def test_merchant_failure_is_reraised(self, monkeypatch):
        import variance_model.core.snapshot as snapshot_module

        def _boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(snapshot_module, "decompose", _boom)
        with pytest.raises(RuntimeError, match="boom"):
            _report()

    def test_filter_by_tier(self):
        report = _report()

        assert [s.account_id for s in report.filter(tier="exceeding")] == ["C"]
        assert [s.account_id for s in report.filter(tier=PerformanceTier.MEETING)] == ["A"]
        assert [s.account_id for s in report.filter(tier="all")] == ["A", "B", "C"]
        assert [s.account_id for s in report.filter()] == ["A", "B", "C"]
        assert report.filter(tier="slightly_below") == []
        assert report.filter(tier="nonsense") == []

    def test_filter_by_exact_merchant_name(self):
        report = _report()

        assert [s.account_id for s in report.filter(merchant="Merchant B")] == ["B"]
        assert report.filter(merchant="merchant b") == []
        assert report.filter(tier="meeting", merchant="Merchant B") == []
        assert [s.account_id for s in report.filter(tier="significantly_below", merchant="Merchant B")] == ["B"]

    def test_empty_inputs(self):
        report = build_program_report([], [], None, settings=Settings())

        assert report.snapshots == []
        assert report.through_iso_week == 0
        assert report.overview["total_merchants"] == 0
        assert report.variance_contributors == {"positive": [], "negative": []}


# ─── Variance contributors ───────────────────────────────────────────────────

class TestVarianceContributors:

    def test_split_and_ranked_by_impact(self):
        snapshots = _report().snapshots
        contributors = variance_contributors(snapshots, min_days_live=7)

        assert [r["account_id"] for r in contributors["positive"]] == ["C"]
        assert [r["account_id"] for r in contributors["negative"]] == ["B"]
        assert contributors["positive"][0]["impact"] == pytest.approx(200 * 10.0)
        assert contributors["negative"][0]["impact"] == pytest.approx(200 * -20.0)

    def test_young_merchants_are_ignored(self):
        contributors = variance_contributors(_report().snapshots, min_days_live=30)
        assert contributors == {"positive": [], "negative": []}

    def test_top_n(self):
        contributors = variance_contributors(_report().snapshots, min_days_live=0, top_n=0)
        assert contributors == {"positive": [], "negative": []}
