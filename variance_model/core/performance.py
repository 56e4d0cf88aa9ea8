"""
Trailing-window performance aggregation and program maturity (days live)
"""
import logging
import math
from dataclasses import dataclass, asdict
from datetime import date, timedelta
from typing import Any, Dict, Optional, Union

from ..models import actuals_frame
from ..constants import *
from ..utils import nz_num, safe_div, parse_calendar_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrailingAggregate:
    """Sums and ratios over the trailing window of one merchant."""
    orders: float = 0.0
    accepted_offers: float = 0.0
    offer_shown: float = 0.0
    adoption_rate: float = 0.0        # accepted / orders (decimal)
    eligibility_rate: float = 0.0     # shown / orders (decimal)
    attach_rate: float = 0.0          # accepted / shown (decimal)
    weeks_with_orders: int = 0
    window_size: int = TRAILING_WINDOW_WEEKS
    through_iso_week: int = 0
    has_sufficient_data: bool = False

    @property
    def avg_weekly_orders(self) -> float:
        return safe_div(self.orders, self.window_size)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class WeekMetrics:
    """Raw counts and rates of a single reporting week."""
    iso_week: int = 0
    orders: float = 0.0
    accepted_offers: float = 0.0
    offer_shown: float = 0.0
    adoption_rate: float = 0.0
    eligibility_rate: float = 0.0
    attach_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def window_weeks(through_iso_week: int, window_size: int = TRAILING_WINDOW_WEEKS) -> range:
    """ISO weeks in (through - window, through]."""
    return range(int(through_iso_week) - int(window_size) + 1, int(through_iso_week) + 1)


def aggregate_trailing(weekly_actuals, through_iso_week: int, window_size: int = TRAILING_WINDOW_WEEKS) -> TrailingAggregate:
    """
    Reduce a merchant's weekly rows to trailing-window sums and ratios.

    Rows with through - window < iso_week <= through are kept. The window is
    "sufficient" when at least `window_size` distinct weeks in it have orders and
    at least one week does; callers fall back to contract baselines otherwise.
    """
    df = actuals_frame(weekly_actuals)
    through = int(through_iso_week)
    in_window = df[(df["iso_week"] <= through) & (df["iso_week"] > through - window_size)]

    orders = float(in_window["ecomm_orders"].sum())
    accepted = float(in_window["accepted_offers"].sum())
    shown = float(in_window["offer_shown"].sum())
    weeks_with_orders = int(in_window.loc[in_window["ecomm_orders"] > 0, "iso_week"].nunique())

    return TrailingAggregate(
        orders=orders,
        accepted_offers=accepted,
        offer_shown=shown,
        adoption_rate=safe_div(accepted, orders) if orders > 0 else 0.0,
        eligibility_rate=safe_div(shown, orders) if orders > 0 else 0.0,
        attach_rate=safe_div(accepted, shown) if shown > 0 else 0.0,
        weeks_with_orders=weeks_with_orders,
        window_size=int(window_size),
        through_iso_week=through,
        has_sufficient_data=weeks_with_orders > 0 and weeks_with_orders >= window_size,
    )


def current_week_metrics(weekly_actuals) -> WeekMetrics:
    """Counts and rates of the merchant's most recent week that has orders."""
    df = actuals_frame(weekly_actuals)
    with_orders = df[df["ecomm_orders"] > 0]
    if with_orders.empty:
        return WeekMetrics(iso_week=latest_iso_week(df))

    week = int(with_orders["iso_week"].max())
    rows = with_orders[with_orders["iso_week"] == week]
    orders = float(rows["ecomm_orders"].sum())
    accepted = float(rows["accepted_offers"].sum())
    shown = float(rows["offer_shown"].sum())
    return WeekMetrics(
        iso_week=week,
        orders=orders,
        accepted_offers=accepted,
        offer_shown=shown,
        adoption_rate=safe_div(accepted, orders),
        eligibility_rate=safe_div(shown, orders),
        attach_rate=safe_div(accepted, shown),
    )


def latest_iso_week(weekly_actuals) -> int:
    """Highest ISO week present, 0 for no rows."""
    df = actuals_frame(weekly_actuals)
    return 0 if df.empty else int(df["iso_week"].max())


def latest_order_week(weekly_actuals) -> Optional[date]:
    """Most recent week-start date present, None when no row has one."""
    df = actuals_frame(weekly_actuals)
    dates = [d for d in (parse_calendar_date(v) for v in df["order_week_date"]) if d is not None]
    return max(dates) if dates else None


def first_offer_date(weekly_actuals) -> Optional[date]:
    """First-offer date of the merchant (first parseable value)."""
    df = actuals_frame(weekly_actuals)
    for value in df["first_offer_date"]:
        parsed = parse_calendar_date(value)
        if parsed is not None:
            return parsed
    return None


def days_live(first_offer: Union[date, str, None], latest_data_week_start: Union[date, str, None]) -> int:
    """
    Days between the first offer and the end of the latest data week.

    Both dates are read as calendar days (no timezone conversion). The week
    ends six days after its start. Missing or unparseable input means 0.
    """
    start = parse_calendar_date(first_offer)
    week_start = parse_calendar_date(latest_data_week_start)
    if start is None or week_start is None:
        return 0

    week_end = week_start + timedelta(days=6)
    return int(math.ceil(abs((week_end - start).days)))


class DaysLiveFilter:
    """
    Program-maturity filter: 'all', 'under30', '30-60' or an integer lower bound.

    Unparseable values degrade to 'all'.
    """

    def __init__(self, lower: Optional[int] = None, upper: Optional[int] = None, label: str = "all"):
        self.lower = lower
        self.upper = upper
        self.label = label

    @classmethod
    def parse(cls, value: Union[str, int, None, "DaysLiveFilter"]) -> "DaysLiveFilter":
        if isinstance(value, cls):
            return value
        if value is None:
            return cls()
        text = str(value).strip().lower()
        if text in ("", "all"):
            return cls()
        if text in DAYS_LIVE_BUCKETS:
            lower, upper = DAYS_LIVE_BUCKETS[text]
            return cls(lower, upper, text)
        try:
            threshold = int(float(text))
        except (ValueError, OverflowError):
            logger.warning(f"Unrecognised days-live filter '{value}', reporting all merchants")
            return cls()
        return cls(threshold, None, str(threshold))

    def matches(self, days: float) -> bool:
        days = nz_num(days)
        if self.lower is not None and days < self.lower:
            return False
        if self.upper is not None and days >= self.upper:
            return False
        return True

    def __repr__(self) -> str:
        return f"DaysLiveFilter({self.label!r})"
