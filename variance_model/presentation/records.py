"""
Flat, rounded export rows for reports and spreadsheets
"""
from typing import Dict, Any, List, Optional

from core.shared import format_pricing_info
from ..core.snapshot import MerchantPerformanceSnapshot, ProgramReport


def _r1(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(float(value), 1)


def _r0(value: float) -> int:
    return int(round(float(value)))


def snapshot_record(snapshot: MerchantPerformanceSnapshot) -> Dict[str, Any]:
    """
    One camelCase row per merchant.

    Currency and order counts are whole numbers; rates, variances and percents
    keep one decimal. Rates are expressed in percent.
    """
    s = snapshot
    d = s.decomposition
    return {
        "accountId": s.account_id,
        "merchantName": s.merchant_name,
        "vertical": s.vertical,
        "pricingModel": s.pricing_model,
        "labelsPaidBy": s.labels_paid_by,
        "pricingInfo": format_pricing_info(s.pricing_model, s.labels_paid_by),
        "daysLive": s.days_live,
        "hasSufficientData": s.has_sufficient_data,
        "tier": s.tier.value,

        "currentWeek": s.current.iso_week,
        "currentOrders": _r0(s.current.orders),
        "currentAdoptionRate": _r1(s.current.adoption_rate * 100.0),
        "currentEligibilityRate": _r1(s.current.eligibility_rate * 100.0),
        "currentAttachRate": _r1(s.current.attach_rate * 100.0),
        "currentAdoptionVarianceBps": _r0(s.current_adoption_variance_bps),

        "trailingOrders": _r0(s.trailing.orders),
        "trailingAdoptionRate": _r1(s.trailing.adoption_rate * 100.0),
        "trailingEligibilityRate": _r1(s.trailing.eligibility_rate * 100.0),
        "trailingAdoptionVarianceBps": (None if s.trailing_adoption_variance_bps is None
                                        else _r0(s.trailing_adoption_variance_bps)),

        "adoptionRateExpected": _r1(s.expected_adoption_pct),
        "adoptionRateActual": _r1(s.actual_adoption_pct),
        "adoptionVariance": _r1(s.adoption_variance_pp),

        "volumeExpected": _r0(s.expected_annual_volume),
        "volumeActual": _r0(s.projected_annual_volume),
        "volumeRunRate": _r0(s.run_rate_annual_volume),
        "volumeVariance": _r1(s.volume_variance_percent),

        "expectedAnnualRevenue": _r0(d.expected_revenue),
        "actualAnnualRevenue": _r0(d.actual_revenue),
        "revenueVariance": _r0(d.total_variance),
        "revenueVariancePercent": _r1(d.variance_percent),
        "volumeContribution": _r0(d.volume_contribution),
        "adoptionContribution": _r0(d.adoption_contribution),
        "interactionContribution": _r0(d.interaction_contribution),

        "originalNetAcv": _r0(s.acv.original_net_acv),
        "projectedNetAcv": _r0(s.acv.projected_net_acv),
        "acvVariance": _r0(s.acv.acv_variance),
        "acvVariancePercent": _r1(s.acv.acv_variance_percent),
        "acvTier": s.acv.acv_tier.value,
    }


def report_records(report: ProgramReport) -> List[Dict[str, Any]]:
    """Export rows for every snapshot in the report, in report order."""
    return [snapshot_record(s) for s in report.snapshots]
