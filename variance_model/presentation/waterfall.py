"""
Revenue variance waterfall visualization logic
"""
from typing import Dict, Any, List, Optional, Union

from ..core.revenue import VarianceDecomposition


_DRIVERS = [
    ("volume_contribution", "Volume", "Order volume vs. contracted annual volume."),
    ("adoption_contribution", "Adoption", "Offer adoption vs. contracted adoption rate."),
    ("interaction_contribution", "Volume × Adoption", "Combined effect of both moving together."),
]


def build_revenue_waterfall(
    decomposition: Union[VarianceDecomposition, Dict[str, Any], None],
) -> Optional[Dict[str, Any]]:
    """
    Turn a revenue decomposition into ordered waterfall bars.

    Bars run expected -> volume -> adoption -> interaction -> actual, in whole
    dollars. Each driver bar starts where the previous one ended, and any
    rounding residual is folded into the last non-zero driver so the running
    total lands exactly on the actual revenue bar.
    """
    if decomposition is None:
        return None
    d = decomposition.to_dict() if isinstance(decomposition, VarianceDecomposition) else dict(decomposition)

    expected = int(round(float(d.get("expected_revenue", 0))))
    actual = int(round(float(d.get("actual_revenue", 0))))

    drivers: List[Dict[str, Any]] = []
    for key, label, why in _DRIVERS:
        amount = int(round(float(d.get(key, 0))))
        drivers.append({
            "key": key,
            "label": label,
            "amount": amount,
            "why": why,
        })

    # Rounding reconciliation only (no extra bars)
    residual = actual - (expected + sum(dr["amount"] for dr in drivers))
    if residual:
        target = next((dr for dr in reversed(drivers) if dr["amount"] != 0), drivers[-1])
        target["amount"] += residual

    bars: List[Dict[str, Any]] = [{"label": "Expected", "kind": "total", "start": 0, "end": expected, "amount": expected}]
    running = expected
    for dr in drivers:
        bars.append({
            "label": dr["label"],
            "kind": "positive" if dr["amount"] > 0 else ("negative" if dr["amount"] < 0 else "neutral"),
            "start": running,
            "end": running + dr["amount"],
            "amount": dr["amount"],
            "why": dr["why"],
        })
        running += dr["amount"]
    bars.append({"label": "Actual", "kind": "total", "start": 0, "end": actual, "amount": actual})

    return {
        "expected_revenue": expected,
        "actual_revenue": actual,
        "total_variance": actual - expected,
        "bars": bars,
        "reconciled": running == actual,
    }
