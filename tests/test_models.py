"""
Unit tests for the input data model (variance_model/models.py)

Run with:
    pytest tests/test_models.py -v
"""

from datetime import date

import pandas as pd
import pytest
from pydantic import ValidationError

from variance_model.models import (
    LabelsPaidBy,
    Opportunity,
    PricingModel,
    SeasonalityPoint,
    WeeklyActual,
    actuals_frame,
    latest_opportunities,
)
from variance_model.constants import WEEKLY_COLUMNS


class TestEnums:

    @pytest.mark.parametrize("raw,expected", [
        ("Flat", PricingModel.FLAT),
        ("flat", PricingModel.FLAT),
        ("Rev Share", PricingModel.REV_SHARE),
        ("RevShare", PricingModel.REV_SHARE),
        ("rev_share", PricingModel.REV_SHARE),
        ("rev-share", PricingModel.REV_SHARE),
        ("Hybrid", PricingModel.OTHER),
        (None, PricingModel.OTHER),
    ])
    def test_pricing_model(self, raw, expected):
        assert PricingModel.parse(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        ("Loop", LabelsPaidBy.LOOP),
        (" loop ", LabelsPaidBy.LOOP),
        ("Merchant", LabelsPaidBy.MERCHANT),
        ("", LabelsPaidBy.MERCHANT),
        (None, LabelsPaidBy.MERCHANT),
    ])
    def test_labels_paid_by(self, raw, expected):
        assert LabelsPaidBy.parse(raw) == expected


class TestOpportunity:

    def test_numeric_coercion(self):
        opp = Opportunity(account_id="A1", annual_order_volume="12000", loop_share_percent=None,
                          initial_offset_fee="abc", net_acv=float("nan"))
        assert opp.annual_order_volume == 12000.0
        assert opp.loop_share_percent == 0.0
        assert opp.initial_offset_fee == 0.0
        assert opp.net_acv == 0.0

    @pytest.mark.parametrize("raw,expected", [
        ("Yes", True), ("no", False), ("TRUE", True), ("", False), (None, True), (False, False),
    ])
    def test_checkout_enabled(self, raw, expected):
        assert Opportunity(account_id="A1", checkout_enabled=raw).checkout_enabled is expected

    def test_close_date_keeps_calendar_day(self):
        opp = Opportunity(account_id="A1", close_date="2024-03-10T23:30:00-08:00")
        assert opp.close_date == date(2024, 3, 10)
        assert Opportunity(account_id="A1", close_date="soon").close_date is None

    def test_effective_expected_adoption(self):
        assert Opportunity(account_id="A1", adoption_rate_expected_percent=35).effective_expected_adoption_pct(50) == 35
        assert Opportunity(account_id="A1").effective_expected_adoption_pct(50) == 50

    def test_frozen(self):
        opp = Opportunity(account_id="A1")
        with pytest.raises(ValidationError):
            opp.net_acv = 5

    def test_latest_opportunities_keeps_latest_close_date(self):
        older = Opportunity(account_id="A1", opportunity_id="o1", close_date="2023-01-01")
        newer = Opportunity(account_id="A1", opportunity_id="o2", close_date="2024-01-01")
        undated = Opportunity(account_id="A1", opportunity_id="o3")
        other = Opportunity(account_id="B1", opportunity_id="o4")

        kept = latest_opportunities([older, newer, undated, other])
        assert [o.opportunity_id for o in kept] == ["o2", "o4"]


class TestWeeklyActual:

    def test_coercion(self):
        row = WeeklyActual(account_id="A1", iso_week="12", ecomm_orders="", accepted_offers="7",
                           order_week_date="2024-03-18")
        assert row.iso_week == 12
        assert row.ecomm_orders == 0.0
        assert row.accepted_offers == 7.0
        assert row.order_week_date == date(2024, 3, 18)

    def test_iso_week_range(self):
        with pytest.raises(ValidationError):
            WeeklyActual(account_id="A1", iso_week=54)

    def test_seasonality_point_range(self):
        with pytest.raises(ValidationError):
            SeasonalityPoint(vertical="Swimwear", iso_week=0)


class TestActualsFrame:

    def test_from_records(self):
        df = actuals_frame([WeeklyActual(account_id="A1", iso_week=3, ecomm_orders=10)])
        assert list(df.columns) == WEEKLY_COLUMNS
        assert df.loc[0, "ecomm_orders"] == 10.0

    def test_from_partial_frame(self):
        df = actuals_frame(pd.DataFrame({"account_id": [101], "iso_week": [2.0], "ecomm_orders": ["5"]}))
        assert list(df.columns) == WEEKLY_COLUMNS
        assert df.loc[0, "account_id"] == "101"
        assert df.loc[0, "iso_week"] == 2
        assert df.loc[0, "accepted_offers"] == 0.0

    def test_none(self):
        df = actuals_frame(None)
        assert df.empty
        assert list(df.columns) == WEEKLY_COLUMNS
