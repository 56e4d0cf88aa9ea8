"""
Monetization Program Data Models
Contract terms, weekly telemetry and seasonality curves as supplied by ingestion
"""

from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import WEEKLY_COLUMNS, WEEKLY_NUMERIC_COLUMNS
from .utils import nz_num, parse_calendar_date, _ensure_columns


class PricingModel(str, Enum):
    """How the platform is paid under a contract."""
    FLAT = "Flat"
    REV_SHARE = "Rev Share"
    OTHER = "Other"

    @classmethod
    def parse(cls, value) -> "PricingModel":
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower().replace("_", " ").replace("-", " ")
        if key == "flat":
            return cls.FLAT
        if key in ("rev share", "revshare"):
            return cls.REV_SHARE
        return cls.OTHER


class LabelsPaidBy(str, Enum):
    """Who bears the return label cost."""
    LOOP = "Loop"
    MERCHANT = "Merchant"

    @classmethod
    def parse(cls, value) -> "LabelsPaidBy":
        if isinstance(value, cls):
            return value
        return cls.LOOP if str(value or "").strip().lower() == "loop" else cls.MERCHANT


_OPPORTUNITY_NUMERIC_FIELDS = (
    "loop_share_percent", "initial_offset_fee", "refund_handling_fee",
    "domestic_return_rate_percent", "blended_avg_cost_per_return", "annual_order_volume",
    "adoption_rate_expected_percent", "expected_annual_revenue",
    "net_acv", "starting_acv", "ending_acv",
)


class Opportunity(BaseModel):
    """Latest contract record for one merchant."""
    model_config = ConfigDict(frozen=True)

    # Identity
    account_id: str
    opportunity_id: str = ""
    merchant_name: str = ""
    vertical: str = ""

    # Contract terms
    pricing_model: PricingModel = PricingModel.OTHER
    labels_paid_by: LabelsPaidBy = LabelsPaidBy.MERCHANT
    loop_share_percent: float = 0.0
    initial_offset_fee: float = 0.0
    refund_handling_fee: float = 0.0
    domestic_return_rate_percent: float = 0.0
    blended_avg_cost_per_return: float = 0.0
    annual_order_volume: float = 0.0
    adoption_rate_expected_percent: float = 0.0
    expected_annual_revenue: float = 0.0
    net_acv: float = 0.0
    starting_acv: float = 0.0
    ending_acv: float = 0.0

    # Program status
    checkout_enabled: bool = True
    implementation_status: str = ""
    close_date: Optional[date] = None

    @field_validator(*_OPPORTUNITY_NUMERIC_FIELDS, mode="before")
    @classmethod
    def _coerce_numeric(cls, v):
        return nz_num(v)

    @field_validator("pricing_model", mode="before")
    @classmethod
    def _coerce_pricing_model(cls, v):
        return PricingModel.parse(v)

    @field_validator("labels_paid_by", mode="before")
    @classmethod
    def _coerce_labels_paid_by(cls, v):
        return LabelsPaidBy.parse(v)

    @field_validator("checkout_enabled", mode="before")
    @classmethod
    def _coerce_checkout_enabled(cls, v):
        if isinstance(v, str):
            return v.strip().lower() in ("yes", "true", "y", "1")
        return True if v is None else bool(v)

    @field_validator("close_date", mode="before")
    @classmethod
    def _coerce_close_date(cls, v):
        return parse_calendar_date(v)

    def effective_expected_adoption_pct(self, default: float) -> float:
        """Contract adoption rate, or the program default when the contract has none."""
        return self.adoption_rate_expected_percent or default


class WeeklyActual(BaseModel):
    """One ISO week of checkout telemetry for one merchant."""
    model_config = ConfigDict(frozen=True)

    account_id: str
    merchant_name: str = ""
    iso_week: int = Field(default=0, ge=0, le=53)
    order_week_date: Optional[date] = None
    first_offer_date: Optional[date] = None
    ecomm_orders: float = 0.0
    offer_shown: float = 0.0
    offer_not_shown: float = 0.0
    accepted_offers: float = 0.0
    attach_rate_percent: float = 0.0

    @field_validator(*WEEKLY_NUMERIC_COLUMNS, mode="before")
    @classmethod
    def _coerce_numeric(cls, v):
        return nz_num(v)

    @field_validator("iso_week", mode="before")
    @classmethod
    def _coerce_iso_week(cls, v):
        return int(nz_num(v))

    @field_validator("order_week_date", "first_offer_date", mode="before")
    @classmethod
    def _coerce_dates(cls, v):
        return parse_calendar_date(v)


class SeasonalityPoint(BaseModel):
    """Share of annual volume expected in one ISO week for one curve."""
    model_config = ConfigDict(frozen=True)

    vertical: str
    iso_week: int = Field(ge=1, le=53)
    order_percentage: float = 0.0

    @field_validator("order_percentage", mode="before")
    @classmethod
    def _coerce_numeric(cls, v):
        return nz_num(v)


def latest_opportunities(opportunities: Iterable[Opportunity]) -> List[Opportunity]:
    """Keep one contract per account: the one with the latest close date."""
    latest: Dict[str, Opportunity] = {}
    for opp in opportunities:
        existing = latest.get(opp.account_id)
        if existing is None or (opp.close_date or date.min) > (existing.close_date or date.min):
            latest[opp.account_id] = opp
    return list(latest.values())


def actuals_frame(rows: Union[pd.DataFrame, Iterable[WeeklyActual], None]) -> pd.DataFrame:
    """
    Canonical weekly actuals frame used by the engine.

    Accepts WeeklyActual records or an already-built frame; numeric columns are
    coerced with missing values as 0 and iso_week as int.
    """
    if rows is None:
        df = pd.DataFrame(columns=WEEKLY_COLUMNS)
    elif isinstance(rows, pd.DataFrame):
        df = _ensure_columns(rows.copy(), WEEKLY_COLUMNS)
    else:
        df = pd.DataFrame([r.model_dump() for r in rows], columns=WEEKLY_COLUMNS)

    for col in WEEKLY_NUMERIC_COLUMNS:
        df[col] = nz_num(df[col]).astype(float)
    df["iso_week"] = nz_num(df["iso_week"]).astype(int)
    df["account_id"] = df["account_id"].astype(str)
    return df[WEEKLY_COLUMNS].reset_index(drop=True)
