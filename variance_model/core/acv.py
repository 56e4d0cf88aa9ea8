"""
ACV impacts: contract ACV re-projected from revenue performance
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List

from ..models import Opportunity
from ..utils import safe_div
from .revenue import VarianceDecomposition
from .tiers import AcvTier, classify_acv


@dataclass(frozen=True)
class AcvImpact:
    account_id: str
    merchant_name: str
    pricing_model: str
    labels_paid_by: str
    original_net_acv: float
    starting_acv: float
    original_ending_acv: float
    projected_net_acv: float
    projected_ending_acv: float
    acv_variance: float
    acv_variance_percent: float    # projected as percent of original (100 = on plan)
    acv_tier: AcvTier
    days_live: int
    has_sufficient_data: bool

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["acv_tier"] = self.acv_tier.value
        return out


def project_acv(
    opportunity: Opportunity,
    decomposition: VarianceDecomposition,
    has_sufficient_data: bool,
    days_live: int = 0,
) -> AcvImpact:
    """
    Scale net ACV by the signed relative revenue variance.

    The variance is taken against |expected|, so a merchant falling further
    below a negative (label-cost heavy) expectation scales down, not up. For
    positive expected revenue this equals net ACV * actual / expected.
    Without sufficient data, or with no expected revenue, the original net ACV
    is kept, so the variance is 0 and the merchant reads as on plan.
    """
    original_net = opportunity.net_acv
    expected = decomposition.expected_revenue
    if has_sufficient_data and expected != 0:
        relative_variance = (decomposition.actual_revenue - expected) / abs(expected)
        projected_net = original_net * (1.0 + relative_variance)
    else:
        projected_net = original_net

    percent_of_original = safe_div(projected_net, original_net) * 100.0 if original_net != 0 else 100.0

    return AcvImpact(
        account_id=opportunity.account_id,
        merchant_name=opportunity.merchant_name,
        pricing_model=opportunity.pricing_model.value,
        labels_paid_by=opportunity.labels_paid_by.value,
        original_net_acv=original_net,
        starting_acv=opportunity.starting_acv,
        original_ending_acv=opportunity.ending_acv,
        projected_net_acv=projected_net,
        projected_ending_acv=opportunity.starting_acv + projected_net,
        acv_variance=projected_net - original_net,
        acv_variance_percent=percent_of_original,
        acv_tier=classify_acv(percent_of_original),
        days_live=days_live,
        has_sufficient_data=has_sufficient_data,
    )


def _totals(items: List[AcvImpact]) -> Dict[str, Any]:
    original = sum(i.original_net_acv for i in items)
    projected = sum(i.projected_net_acv for i in items)
    return {
        "merchant_count": len(items),
        "total_original_net_acv": original,
        "total_projected_net_acv": projected,
        "total_acv_variance": projected - original,
        "avg_acv_variance": safe_div(projected - original, len(items)),
        "variance_percent": safe_div(projected, original) * 100.0,
    }


def summarize_acv(impacts: Iterable[AcvImpact]) -> Dict[str, Any]:
    """
    Totals overall, by data sufficiency, and per (labels paid by, pricing model) group.

    Groups list sufficient-data groups first, then by total variance descending.
    """
    impacts = list(impacts)
    sufficient = [i for i in impacts if i.has_sufficient_data]
    insufficient = [i for i in impacts if not i.has_sufficient_data]

    groups = []
    for data_type, items in (("sufficient", sufficient), ("insufficient", insufficient)):
        keyed: Dict[tuple, List[AcvImpact]] = {}
        for item in items:
            keyed.setdefault((item.labels_paid_by, item.pricing_model), []).append(item)
        for (labels_paid_by, pricing_model), members in keyed.items():
            groups.append({
                "labels_paid_by": labels_paid_by,
                "pricing_model": pricing_model,
                "data_type": data_type,
                **_totals(members),
            })
    groups.sort(key=lambda g: (g["data_type"] != "sufficient", -g["total_acv_variance"]))

    tier_counts = {tier.value: 0 for tier in AcvTier}
    for item in impacts:
        tier_counts[item.acv_tier.value] += 1

    return {
        **_totals(impacts),
        "sufficient": _totals(sufficient),
        "insufficient": _totals(insufficient),
        "groups": groups,
        "tier_counts": tier_counts,
    }
