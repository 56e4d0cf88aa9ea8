"""
Merchant performance snapshots and the program-level report built from them

Snapshots are recomputed from the current contract and weekly rows on every
call; nothing here caches or mutates its inputs.
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from core.config import Settings, get_settings
from core.shared import log_step, PerformanceTimer

from ..models import Opportunity, PricingModel, SeasonalityPoint, actuals_frame, latest_opportunities
from ..constants import *
from ..utils import safe_div
from .acv import AcvImpact, project_acv, summarize_acv
from .forecast import VolumeForecast, forecast_annual_volume, weekly_volume_trends, volume_summary
from .performance import (
    DaysLiveFilter,
    TrailingAggregate,
    WeekMetrics,
    aggregate_trailing,
    current_week_metrics,
    days_live,
    first_offer_date,
    latest_iso_week,
    latest_order_week,
)
from .revenue import VarianceDecomposition, decompose
from .seasonality import SeasonalityModel
from .tiers import PerformanceTier, classify, tier_distribution, variance_bps


@dataclass(frozen=True)
class MerchantPerformanceSnapshot:
    """Per-merchant performance, volume and revenue variance as of the report week."""
    account_id: str
    merchant_name: str
    vertical: str
    pricing_model: str
    labels_paid_by: str
    days_live: int

    current: WeekMetrics
    trailing: TrailingAggregate

    expected_adoption_pct: float
    expected_eligibility_pct: float
    current_adoption_variance_bps: float
    current_eligibility_variance_bps: float
    trailing_adoption_variance_bps: Optional[float]     # None without sufficient data
    trailing_eligibility_variance_bps: Optional[float]
    tier: PerformanceTier

    expected_annual_volume: float
    projected_annual_volume: float
    run_rate_annual_volume: float
    volume_variance_percent: float
    actual_adoption_pct: float
    adoption_variance_pp: float

    decomposition: VarianceDecomposition
    forecast: VolumeForecast
    acv: AcvImpact

    @property
    def has_sufficient_data(self) -> bool:
        return self.trailing.has_sufficient_data

    @property
    def expected_revenue(self) -> float:
        return self.decomposition.expected_revenue

    @property
    def projected_revenue(self) -> float:
        return self.decomposition.actual_revenue

    @property
    def revenue_variance(self) -> float:
        return self.decomposition.total_variance

    @property
    def revenue_variance_percent(self) -> float:
        return self.decomposition.variance_percent

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "merchant_name": self.merchant_name,
            "vertical": self.vertical,
            "pricing_model": self.pricing_model,
            "labels_paid_by": self.labels_paid_by,
            "days_live": self.days_live,
            "has_sufficient_data": self.has_sufficient_data,
            "current": self.current.to_dict(),
            "trailing": self.trailing.to_dict(),
            "expected_adoption_pct": self.expected_adoption_pct,
            "expected_eligibility_pct": self.expected_eligibility_pct,
            "current_adoption_variance_bps": self.current_adoption_variance_bps,
            "current_eligibility_variance_bps": self.current_eligibility_variance_bps,
            "trailing_adoption_variance_bps": self.trailing_adoption_variance_bps,
            "trailing_eligibility_variance_bps": self.trailing_eligibility_variance_bps,
            "tier": self.tier.value,
            "expected_annual_volume": self.expected_annual_volume,
            "projected_annual_volume": self.projected_annual_volume,
            "run_rate_annual_volume": self.run_rate_annual_volume,
            "volume_variance_percent": self.volume_variance_percent,
            "actual_adoption_pct": self.actual_adoption_pct,
            "adoption_variance_pp": self.adoption_variance_pp,
            "revenue_variance": self.revenue_variance,
            "revenue_variance_percent": self.revenue_variance_percent,
            "decomposition": self.decomposition.to_dict(),
            "forecast": self.forecast.to_dict(),
            "acv": self.acv.to_dict(),
        }


def build_merchant_snapshot(
    opportunity: Opportunity,
    weekly_actuals,
    seasonality: SeasonalityModel,
    through_iso_week: Optional[int] = None,
    latest_week_start: Optional[date] = None,
    window_size: int = TRAILING_WINDOW_WEEKS,
    weeks_per_year: int = WEEKS_PER_YEAR,
    default_expected_adoption_pct: float = DEFAULT_EXPECTED_ADOPTION_PCT,
    expected_eligibility_pct: float = EXPECTED_ELIGIBILITY_RATE_PCT,
) -> MerchantPerformanceSnapshot:
    """
    Compute one merchant's snapshot from its contract and weekly rows.

    `through_iso_week` and `latest_week_start` default to the merchant's own
    latest data; program reports pass the batch-wide values instead. Without
    sufficient trailing data the contract baseline stands in for the actuals:
    revenue variance is 0 and the tier follows the current-week variance.
    """
    df = actuals_frame(weekly_actuals)
    through = latest_iso_week(df) if through_iso_week is None else int(through_iso_week)
    week_start = latest_order_week(df) if latest_week_start is None else latest_week_start

    current = current_week_metrics(df)
    trailing = aggregate_trailing(df, through, window_size)
    sufficient = trailing.has_sufficient_data
    live = days_live(first_offer_date(df), week_start)

    expected_adoption = opportunity.effective_expected_adoption_pct(default_expected_adoption_pct)
    current_adoption_bps = variance_bps(current.adoption_rate, expected_adoption) if current.orders > 0 else 0.0
    current_eligibility_bps = variance_bps(current.eligibility_rate, expected_eligibility_pct) if current.orders > 0 else 0.0
    trailing_adoption_bps = variance_bps(trailing.adoption_rate, expected_adoption) if sufficient else None
    trailing_eligibility_bps = variance_bps(trailing.eligibility_rate, expected_eligibility_pct) if sufficient else None
    tier = classify(trailing_adoption_bps if sufficient else current_adoption_bps)

    forecast = forecast_annual_volume(opportunity, df, seasonality, through, window_size)
    expected_volume = opportunity.annual_order_volume
    if sufficient:
        actual_volume = forecast.projected_annual_volume
        actual_adoption = trailing.adoption_rate * 100.0
    else:
        actual_volume = expected_volume
        actual_adoption = expected_adoption

    decomposition = decompose(opportunity, expected_volume, actual_volume, expected_adoption, actual_adoption)

    return MerchantPerformanceSnapshot(
        account_id=opportunity.account_id,
        merchant_name=opportunity.merchant_name,
        vertical=opportunity.vertical,
        pricing_model=opportunity.pricing_model.value,
        labels_paid_by=opportunity.labels_paid_by.value,
        days_live=live,
        current=current,
        trailing=trailing,
        expected_adoption_pct=expected_adoption,
        expected_eligibility_pct=expected_eligibility_pct,
        current_adoption_variance_bps=current_adoption_bps,
        current_eligibility_variance_bps=current_eligibility_bps,
        trailing_adoption_variance_bps=trailing_adoption_bps,
        trailing_eligibility_variance_bps=trailing_eligibility_bps,
        tier=tier,
        expected_annual_volume=expected_volume,
        projected_annual_volume=actual_volume,
        run_rate_annual_volume=trailing.avg_weekly_orders * weeks_per_year,
        volume_variance_percent=safe_div(actual_volume - expected_volume, expected_volume) * 100.0,
        actual_adoption_pct=actual_adoption,
        adoption_variance_pp=actual_adoption - expected_adoption,
        decomposition=decomposition,
        forecast=forecast,
        acv=project_acv(opportunity, decomposition, sufficient, live),
    )


@dataclass
class ProgramReport:
    """Snapshots plus program-wide aggregates for one reporting week."""
    through_iso_week: int
    latest_week_start: Optional[date]
    window_size: int
    days_live_filter: str
    snapshots: List[MerchantPerformanceSnapshot] = field(default_factory=list)
    overview: Dict[str, Any] = field(default_factory=dict)
    variance_contributors: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    volume: Dict[str, Any] = field(default_factory=dict)
    weekly_trends: pd.DataFrame = field(default_factory=pd.DataFrame)
    acv: Dict[str, Any] = field(default_factory=dict)

    def snapshot_for(self, account_id: str) -> Optional[MerchantPerformanceSnapshot]:
        return next((s for s in self.snapshots if s.account_id == account_id), None)

    def filter(
        self,
        tier: Union[PerformanceTier, str, None] = None,
        merchant: Optional[str] = None,
    ) -> List[MerchantPerformanceSnapshot]:
        """
        Snapshots matching a tier and/or an exact merchant name, in report order.

        `tier` of None or "all" keeps every tier; an unknown tier value matches
        nothing. Paging the result is left to the caller.
        """
        selected = self.snapshots
        wanted = str(getattr(tier, "value", tier)).strip().lower() if tier is not None else "all"
        if wanted != "all":
            selected = [s for s in selected if s.tier.value == wanted]
        if merchant is not None:
            selected = [s for s in selected if s.merchant_name == merchant]
        return list(selected)


def _as_seasonality_model(seasonality, config: Dict[str, Any]) -> SeasonalityModel:
    if isinstance(seasonality, SeasonalityModel):
        return seasonality
    kwargs = dict(
        seasonal_vertical=config["seasonal_vertical"],
        default_curve=config["default_curve"],
        default_pct=config["default_pct"],
        warn_on_fallback=config["warn_on_fallback"],
    )
    if seasonality is None:
        return SeasonalityModel(**kwargs)
    if isinstance(seasonality, pd.DataFrame):
        return SeasonalityModel.from_frame(seasonality, **kwargs)
    return SeasonalityModel.from_points(seasonality, **kwargs)


def _is_reportable(opp: Opportunity, has_actuals: bool, include_flat: bool) -> bool:
    if not (opp.checkout_enabled and opp.annual_order_volume > 0 and has_actuals):
        return False
    return include_flat or opp.pricing_model != PricingModel.FLAT


def _rate_pct(numerator: float, denominator: float) -> float:
    return safe_div(numerator, denominator) * 100.0


def program_overview(
    snapshots: List[MerchantPerformanceSnapshot],
    total_opportunities: int,
    opportunities_with_actuals: int,
    active_min_days: int = ACTIVE_MERCHANT_MIN_DAYS,
) -> Dict[str, Any]:
    """
    Counts plus simple and volume-weighted adoption, eligibility and attach rates.

    Simple averages are over merchants with orders in the respective period;
    weighted rates divide program-wide sums. All rates are in percent.
    """
    with_current = [s for s in snapshots if s.current.orders > 0]
    with_trailing = [s for s in snapshots if s.trailing.orders > 0]

    def _mean(values: List[float]) -> float:
        return safe_div(sum(values), len(values)) * 100.0

    current_orders = sum(s.current.orders for s in snapshots)
    current_accepted = sum(s.current.accepted_offers for s in snapshots)
    current_shown = sum(s.current.offer_shown for s in snapshots)
    trailing_orders = sum(s.trailing.orders for s in snapshots)
    trailing_accepted = sum(s.trailing.accepted_offers for s in snapshots)
    trailing_shown = sum(s.trailing.offer_shown for s in snapshots)

    return {
        "total_opportunities": total_opportunities,
        "opportunities_with_actuals": opportunities_with_actuals,
        "opportunities_without_actuals": total_opportunities - opportunities_with_actuals,
        "total_merchants": len(snapshots),
        "active_merchants": sum(1 for s in snapshots if s.days_live >= active_min_days),
        "merchants_with_sufficient_data": sum(1 for s in snapshots if s.has_sufficient_data),

        "avg_adoption_rate": _mean([s.current.adoption_rate for s in with_current]),
        "avg_eligibility_rate": _mean([s.current.eligibility_rate for s in with_current]),
        "avg_attach_rate": _mean([s.current.attach_rate for s in with_current]),
        "weighted_adoption_rate": _rate_pct(current_accepted, current_orders),
        "weighted_eligibility_rate": _rate_pct(current_shown, current_orders),
        "weighted_attach_rate": _rate_pct(current_accepted, current_shown),

        "trailing_avg_adoption_rate": _mean([s.trailing.adoption_rate for s in with_trailing]),
        "trailing_avg_eligibility_rate": _mean([s.trailing.eligibility_rate for s in with_trailing]),
        "trailing_avg_attach_rate": _mean([s.trailing.attach_rate for s in with_trailing]),
        "trailing_weighted_adoption_rate": _rate_pct(trailing_accepted, trailing_orders),
        "trailing_weighted_eligibility_rate": _rate_pct(trailing_shown, trailing_orders),
        "trailing_weighted_attach_rate": _rate_pct(trailing_accepted, trailing_shown),

        "total_current_orders": current_orders,
        "total_trailing_orders": trailing_orders,
        "tier_distribution": tier_distribution(s.tier for s in snapshots),
    }


def variance_contributors(
    snapshots: List[MerchantPerformanceSnapshot],
    min_days_live: int = CONTRIBUTOR_MIN_DAYS_LIVE,
    top_n: int = TOP_CONTRIBUTORS,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Merchants moving the program adoption rate the most, in each direction.

    Impact is current-week orders times the gap between actual and expected
    adoption (percentage points); only merchants live for `min_days_live` count.
    """
    rows = []
    for s in snapshots:
        if s.days_live < min_days_live or s.current.orders <= 0:
            continue
        actual_pct = s.current.adoption_rate * 100.0
        rows.append({
            "account_id": s.account_id,
            "merchant_name": s.merchant_name,
            "orders": s.current.orders,
            "actual_adoption_pct": actual_pct,
            "expected_adoption_pct": s.expected_adoption_pct,
            "impact": s.current.orders * (actual_pct - s.expected_adoption_pct),
        })

    positive = sorted((r for r in rows if r["impact"] > 0), key=lambda r: r["impact"], reverse=True)
    negative = sorted((r for r in rows if r["impact"] < 0), key=lambda r: r["impact"])
    return {"positive": positive[:top_n], "negative": negative[:top_n]}


def build_program_report(
    opportunities: Iterable[Opportunity],
    weekly_actuals,
    seasonality: Union[SeasonalityModel, pd.DataFrame, Iterable[SeasonalityPoint], None] = None,
    days_live_filter: Union[str, int, DaysLiveFilter, None] = "all",
    window_size: Optional[int] = None,
    exclude_accounts: Optional[Iterable[str]] = None,
    include_flat: bool = False,
    max_workers: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> ProgramReport:
    """
    Build every reportable merchant's snapshot and the program aggregates.

    The trailing window ends at the batch's latest ISO week (or the configured
    override) and days live is measured against the batch's latest order week.
    Excluded accounts are dropped before anything is aggregated. With
    `max_workers` > 1 merchants are computed on a thread pool; output order
    follows the input order either way.
    """
    config = (settings or get_settings()).engine_config
    window = int(window_size or config["window_size"])
    workers = int(max_workers or config["max_workers"])
    live_filter = DaysLiveFilter.parse(days_live_filter)
    model = _as_seasonality_model(seasonality, config)
    excluded = {str(a) for a in (exclude_accounts or [])}

    with PerformanceTimer("program variance report"):
        opps = [o for o in latest_opportunities(opportunities) if o.account_id not in excluded]
        df = actuals_frame(weekly_actuals)
        if excluded:
            df = df[~df["account_id"].isin(excluded)].reset_index(drop=True)
            log_step("Exclusions", f"Dropped {len(excluded)} excluded account(s)")

        through = config["through_iso_week"] or latest_iso_week(df)
        week_start = latest_order_week(df)
        by_account = {str(acct): rows for acct, rows in df.groupby("account_id", sort=False)}

        with_actuals = sum(1 for o in opps if o.account_id in by_account)
        reportable = [o for o in opps if _is_reportable(o, o.account_id in by_account, include_flat)]
        log_step("Scope", f"{len(reportable)} of {len(opps)} opportunities reportable "
                          f"through ISO week {through} (window {window})")

        def _snapshot(opp: Opportunity) -> MerchantPerformanceSnapshot:
            try:
                return build_merchant_snapshot(
                    opp,
                    by_account[opp.account_id],
                    model,
                    through_iso_week=through,
                    latest_week_start=week_start,
                    window_size=window,
                    weeks_per_year=config["weeks_per_year"],
                    default_expected_adoption_pct=config["default_expected_adoption_pct"],
                    expected_eligibility_pct=config["expected_eligibility_pct"],
                )
            except Exception as e:
                log_step("Snapshot", f"Failed for account {opp.account_id}: {e}", is_error=True)
                raise

        if workers > 1 and len(reportable) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                snapshots = list(pool.map(_snapshot, reportable))
        else:
            snapshots = [_snapshot(o) for o in reportable]

        snapshots = [s for s in snapshots if live_filter.matches(s.days_live)]
        log_step("Filter", f"{len(snapshots)} merchants match days-live filter '{live_filter.label}'")

        reported = {s.account_id for s in snapshots}
        trends = [weekly_volume_trends(o, by_account[o.account_id], model) for o in reportable
                  if o.account_id in reported]
        trends_df = pd.concat(trends, ignore_index=True) if trends else pd.DataFrame()
        forecasts = [s.forecast for s in snapshots if s.has_sufficient_data]

        report = ProgramReport(
            through_iso_week=int(through),
            latest_week_start=week_start,
            window_size=window,
            days_live_filter=live_filter.label,
            snapshots=snapshots,
            overview=program_overview(snapshots, len(opps), with_actuals, config["active_min_days"]),
            variance_contributors=variance_contributors(snapshots, config["contributor_min_days"]),
            volume=volume_summary(trends_df, forecasts, int(through), window),
            weekly_trends=trends_df,
            acv=summarize_acv(s.acv for s in snapshots),
        )

    return report
