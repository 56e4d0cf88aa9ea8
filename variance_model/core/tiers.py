"""
Performance tier classification

Two independent classifiers: adoption variance in basis points, and ACV /
revenue expressed as a percent of the original figure. They use different
bands on purpose and are not interchangeable.
"""
from collections import Counter
from enum import Enum
from typing import Dict, Iterable

import pandas as pd

from ..constants import *
from ..utils import nz_num


class PerformanceTier(str, Enum):
    EXCEEDING = "exceeding"
    MEETING = "meeting"
    SLIGHTLY_BELOW = "slightly_below"
    SIGNIFICANTLY_BELOW = "significantly_below"


class AcvTier(str, Enum):
    EXCEEDING = "exceeding"
    MEETING = "meeting"
    BELOW = "below"
    SIGNIFICANTLY_BELOW = "significantly_below"
    SEVERELY_BELOW = "severely_below"


def variance_bps(rate: float, expected_pct: float) -> float:
    """Decimal rate vs. expected percent, in basis points (0.45 vs 50 -> -500)."""
    return (nz_num(rate) * 100.0 - nz_num(expected_pct)) * 100.0


def _ladder_value(value) -> float:
    # NaN and unparseable count as 0; infinities stay and land on the end bands
    num = pd.to_numeric(value, errors="coerce")
    return 0.0 if pd.isna(num) else float(num)


def classify(variance_basis_points: float) -> PerformanceTier:
    """Tier for a signed bps variance; total over all reals."""
    bps = _ladder_value(variance_basis_points)
    if bps > BPS_EXCEEDING_ABOVE:
        return PerformanceTier.EXCEEDING
    if bps >= BPS_MEETING_FLOOR:
        return PerformanceTier.MEETING
    if bps >= BPS_SLIGHTLY_BELOW_FLOOR:
        return PerformanceTier.SLIGHTLY_BELOW
    return PerformanceTier.SIGNIFICANTLY_BELOW


def classify_acv(percent_of_original: float) -> AcvTier:
    """Tier for a projected figure expressed as percent of the original (100 = on plan)."""
    pct = _ladder_value(percent_of_original)
    if pct > ACV_EXCEEDING_ABOVE:
        return AcvTier.EXCEEDING
    if pct >= ACV_MEETING_FLOOR:
        return AcvTier.MEETING
    if pct >= ACV_BELOW_FLOOR:
        return AcvTier.BELOW
    if pct >= ACV_SIGNIFICANTLY_BELOW_FLOOR:
        return AcvTier.SIGNIFICANTLY_BELOW
    return AcvTier.SEVERELY_BELOW


def tier_distribution(tiers: Iterable[PerformanceTier]) -> Dict[str, int]:
    """Count per bps tier, every tier present (zeros included)."""
    counts = Counter(tiers)
    return {tier.value: counts.get(tier, 0) for tier in PerformanceTier}
