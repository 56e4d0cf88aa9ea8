"""
Seasonality curves: expected share of annual order volume per ISO week
"""
import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

import pandas as pd

from ..models import SeasonalityPoint
from ..constants import *
from ..utils import nz_num

logger = logging.getLogger(__name__)


class SeasonalityModel:
    """
    Week -> percentage-of-annual-volume curves keyed by curve name.

    Only two curves matter: the seasonal vertical's own curve and the catch-all
    curve used by every other vertical. Weeks missing from a curve fall back to
    a uniform share (DEFAULT_SEASONALITY_PCT).

    The curves are read-only after construction. The only mutable state is the
    set of (curve, week) fallbacks already logged; it is not locked, so when one
    model is shared across report workers a fallback message may be logged more
    than once. Expected orders never depend on it.
    """

    def __init__(
        self,
        curves: Optional[Dict[str, Dict[int, float]]] = None,
        seasonal_vertical: str = SEASONAL_VERTICAL,
        default_curve: str = DEFAULT_SEASONALITY_CURVE,
        default_pct: float = DEFAULT_SEASONALITY_PCT,
        warn_on_fallback: bool = False,
    ):
        self._curves = {name: dict(weeks) for name, weeks in (curves or {}).items()}
        self.seasonal_vertical = seasonal_vertical
        self.default_curve = default_curve
        self.default_pct = default_pct
        self.warn_on_fallback = warn_on_fallback
        self._warned: Set[Tuple[str, int]] = set()

    @classmethod
    def from_points(cls, points: Iterable[SeasonalityPoint], **kwargs) -> "SeasonalityModel":
        curves: Dict[str, Dict[int, float]] = {}
        for p in points:
            curves.setdefault(p.vertical, {})[int(p.iso_week)] = float(p.order_percentage)
        return cls(curves, **kwargs)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, **kwargs) -> "SeasonalityModel":
        """Build from a (vertical, iso_week, order_percentage) frame."""
        curves: Dict[str, Dict[int, float]] = {}
        if df is not None and not df.empty:
            pct = nz_num(df["order_percentage"])
            weeks = nz_num(df["iso_week"]).astype(int)
            for vertical, week, value in zip(df["vertical"].astype(str), weeks, pct):
                curves.setdefault(vertical, {})[int(week)] = float(value)
        return cls(curves, **kwargs)

    @property
    def curve_names(self) -> List[str]:
        return sorted(self._curves)

    def curve_for_vertical(self, vertical: Optional[str]) -> str:
        return self.seasonal_vertical if vertical == self.seasonal_vertical else self.default_curve

    def has_entry(self, curve: str, iso_week: int) -> bool:
        return int(iso_week) in self._curves.get(curve, {})

    def fallback_weeks(self, curve: str, weeks: Iterable[int] = range(1, WEEKS_PER_YEAR + 1)) -> List[int]:
        """Weeks of `curve` that would use the uniform fallback."""
        return [w for w in weeks if not self.has_entry(curve, w)]

    def order_percentage(self, vertical: Optional[str], iso_week: int) -> float:
        curve = self.curve_for_vertical(vertical)
        week = int(iso_week)
        pct = self._curves.get(curve, {}).get(week)
        if pct is None:
            self._note_fallback(curve, week)
            return self.default_pct
        return pct

    def expected_weekly_orders(self, annual_volume: float, vertical: Optional[str], iso_week: int) -> float:
        """Expected orders in `iso_week` for a merchant with `annual_volume` orders a year."""
        return nz_num(annual_volume) * self.order_percentage(vertical, iso_week) / 100.0

    def expected_window_orders(self, annual_volume: float, vertical: Optional[str], weeks: Iterable[int]) -> float:
        return sum(self.expected_weekly_orders(annual_volume, vertical, w) for w in weeks)

    def _note_fallback(self, curve: str, week: int) -> None:
        key = (curve, week)
        if key in self._warned:
            return
        self._warned.add(key)
        if self.warn_on_fallback:
            logger.warning(f"No seasonality entry for curve '{curve}' week {week}; "
                           f"using uniform {self.default_pct}%")
        else:
            logger.debug(f"Seasonality fallback for curve '{curve}' week {week}")


def expected_weekly_orders(
    annual_volume: float,
    vertical: Optional[str],
    iso_week: int,
    model: Optional[SeasonalityModel] = None,
) -> float:
    """Module-level convenience; an empty model gives the uniform fallback."""
    model = model if model is not None else SeasonalityModel()
    return model.expected_weekly_orders(annual_volume, vertical, iso_week)
