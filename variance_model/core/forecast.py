"""
Volume analysis: seasonal expected vs. actual weekly orders and annual forecasts
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from ..models import Opportunity, actuals_frame
from ..constants import *
from ..utils import safe_div
from .seasonality import SeasonalityModel
from .performance import window_weeks


@dataclass(frozen=True)
class VolumeForecast:
    """Seasonality-normalized annual volume projection for one merchant."""
    account_id: str
    trailing_avg_orders: float
    expected_avg_orders: float
    performance_ratio: float
    annual_order_volume: float
    projected_annual_volume: float

    @property
    def variance_orders(self) -> float:
        return self.projected_annual_volume - self.annual_order_volume

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["variance_orders"] = self.variance_orders
        return out


def weekly_volume_trends(opportunity: Opportunity, weekly_actuals, seasonality: SeasonalityModel) -> pd.DataFrame:
    """
    One row per reported week with seasonal expectation and variance.

    Columns: iso_week, actual_weekly_orders, expected_weekly_orders,
    variance_orders, variance_percentage (0 when nothing was expected).
    """
    df = actuals_frame(weekly_actuals)
    weekly = (df.groupby("iso_week", as_index=False)["ecomm_orders"].sum()
                .rename(columns={"ecomm_orders": "actual_weekly_orders"})
                .sort_values("iso_week"))

    weekly["expected_weekly_orders"] = [
        seasonality.expected_weekly_orders(opportunity.annual_order_volume, opportunity.vertical, w)
        for w in weekly["iso_week"]
    ]
    weekly["variance_orders"] = weekly["actual_weekly_orders"] - weekly["expected_weekly_orders"]
    weekly["variance_percentage"] = safe_div(weekly["variance_orders"], weekly["expected_weekly_orders"]) * 100.0
    weekly.insert(0, "account_id", opportunity.account_id)
    return weekly.reset_index(drop=True)


def forecast_annual_volume(
    opportunity: Opportunity,
    weekly_actuals,
    seasonality: SeasonalityModel,
    through_iso_week: int,
    window_size: int = TRAILING_WINDOW_WEEKS,
) -> VolumeForecast:
    """
    Scale the contracted annual volume by trailing actual / trailing expected orders.

    The expected side uses the seasonal curve over the same window, so a merchant
    tracking its curve exactly projects its contracted volume. A zero expectation
    gives a ratio of 1.
    """
    df = actuals_frame(weekly_actuals)
    weeks = list(window_weeks(through_iso_week, window_size))
    actual_total = float(df.loc[df["iso_week"].isin(weeks), "ecomm_orders"].sum())
    expected_total = seasonality.expected_window_orders(
        opportunity.annual_order_volume, opportunity.vertical, weeks)

    ratio = safe_div(actual_total, expected_total) if expected_total > 0 else 1.0
    return VolumeForecast(
        account_id=opportunity.account_id,
        trailing_avg_orders=safe_div(actual_total, window_size),
        expected_avg_orders=safe_div(expected_total, window_size),
        performance_ratio=ratio,
        annual_order_volume=opportunity.annual_order_volume,
        projected_annual_volume=opportunity.annual_order_volume * ratio,
    )


def volume_summary(
    trends: pd.DataFrame,
    forecasts: List[VolumeForecast],
    current_week: Optional[int] = None,
    window_size: int = TRAILING_WINDOW_WEEKS,
) -> Dict[str, Any]:
    """Program-level volume totals: current week, trailing window and forecast."""
    if trends is None or trends.empty:
        trends = pd.DataFrame(columns=["account_id", "iso_week", "actual_weekly_orders",
                                       "expected_weekly_orders", "variance_orders"])
    if current_week is None:
        current_week = int(trends["iso_week"].max()) if not trends.empty else 0

    current = trends[trends["iso_week"] == current_week]
    current_orders = float(current["actual_weekly_orders"].sum())
    expected_orders = float(current["expected_weekly_orders"].sum())

    recent = trends[trends["iso_week"].isin(window_weeks(current_week, window_size))]
    avg_trailing = safe_div(float(recent["actual_weekly_orders"].sum()), window_size)
    avg_expected_trailing = safe_div(float(recent["expected_weekly_orders"].sum()), window_size)

    total_forecast = sum(f.projected_annual_volume for f in forecasts)
    total_contracted = sum(f.annual_order_volume for f in forecasts)
    merchant_count = int(trends["account_id"].nunique())

    return {
        "current_week": current_week,
        "current_week_orders": current_orders,
        "expected_week_orders": expected_orders,
        "volume_variance_orders": current_orders - expected_orders,
        "volume_variance_percentage": safe_div(current_orders - expected_orders, expected_orders) * 100.0,
        "avg_trailing_orders": avg_trailing,
        "avg_expected_trailing_orders": avg_expected_trailing,
        "trailing_variance_orders": avg_trailing - avg_expected_trailing,
        "trailing_variance_percentage": safe_div(avg_trailing - avg_expected_trailing, avg_expected_trailing) * 100.0,
        "merchant_count": merchant_count,
        "forecast_merchant_count": len(forecasts),
        "merchants_excluded_from_forecast": merchant_count - len(forecasts),
        "total_forecast_annual_orders": total_forecast,
        "total_contracted_annual_orders": total_contracted,
        "forecast_variance_orders": total_forecast - total_contracted,
        "forecast_variance_percentage": safe_div(total_forecast - total_contracted, total_contracted) * 100.0,
    }
