"""
Annual revenue projection and revenue variance decomposition
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict

from ..models import Opportunity, PricingModel, LabelsPaidBy
from ..utils import nz_num, safe_div


def project_annual_revenue(contract: Opportunity, volume: float, adoption_rate_percent: float) -> float:
    """
    Annual revenue of `contract` at the given order volume and adoption rate.

    Flat (and unrecognised) pricing returns the contract-stated revenue. Rev share
    earns the offset fee on adopted orders and the refund-handling fee on returned
    non-adopted orders, both at the platform's share; when the platform pays
    labels, label cost on all returns is deducted. The result is not clamped.
    """
    if contract.pricing_model != PricingModel.REV_SHARE:
        return nz_num(contract.expected_annual_revenue)

    volume = nz_num(volume)
    adoption = nz_num(adoption_rate_percent) / 100.0
    return_rate = nz_num(contract.domestic_return_rate_percent) / 100.0
    loop_share = nz_num(contract.loop_share_percent) / 100.0

    fee_revenue = (
        volume * adoption * nz_num(contract.initial_offset_fee)
        + volume * (1.0 - adoption) * return_rate * nz_num(contract.refund_handling_fee)
    ) * loop_share

    if contract.labels_paid_by == LabelsPaidBy.LOOP:
        label_costs = volume * return_rate * nz_num(contract.blended_avg_cost_per_return)
        return fee_revenue - label_costs

    return fee_revenue


@dataclass(frozen=True)
class VarianceDecomposition:
    """Expected vs. actual revenue split into volume, adoption and interaction effects."""
    expected_revenue: float
    actual_revenue: float
    volume_contribution: float
    adoption_contribution: float
    interaction_contribution: float

    @property
    def total_variance(self) -> float:
        return self.actual_revenue - self.expected_revenue

    @property
    def variance_percent(self) -> float:
        # 0 when nothing was expected
        return safe_div(self.total_variance, self.expected_revenue) * 100.0 if self.expected_revenue > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["total_variance"] = self.total_variance
        out["variance_percent"] = self.variance_percent
        return out


def decompose(
    contract: Opportunity,
    expected_volume: float,
    actual_volume: float,
    expected_adoption_pct: float,
    actual_adoption_pct: float,
) -> VarianceDecomposition:
    """
    Attribute actual - expected revenue to volume, adoption and their interaction.

    Each single effect moves one input to its actual value while holding the other
    at its expected value; the interaction term is the remainder, so the three
    contributions always sum to the total variance.
    """
    expected = project_annual_revenue(contract, expected_volume, expected_adoption_pct)
    actual = project_annual_revenue(contract, actual_volume, actual_adoption_pct)
    actual_volume_only = project_annual_revenue(contract, actual_volume, expected_adoption_pct)
    actual_adoption_only = project_annual_revenue(contract, expected_volume, actual_adoption_pct)

    return VarianceDecomposition(
        expected_revenue=expected,
        actual_revenue=actual,
        volume_contribution=actual_volume_only - expected,
        adoption_contribution=actual_adoption_only - expected,
        interaction_contribution=actual - actual_volume_only - actual_adoption_only + expected,
    )
