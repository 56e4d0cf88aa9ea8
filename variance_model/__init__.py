"""
Variance Model Package

Performance and revenue variance analytics for the checkout monetization program.
"""

# Core constants and utilities - always available
from .constants import *
from .utils import nz_num, safe_div, parse_calendar_date, _ensure_columns

# Input data model
from .models import (
    PricingModel,
    LabelsPaidBy,
    Opportunity,
    WeeklyActual,
    SeasonalityPoint,
    latest_opportunities,
    actuals_frame
)

# Core logic
from .core.seasonality import SeasonalityModel, expected_weekly_orders
from .core.performance import (
    TrailingAggregate,
    WeekMetrics,
    DaysLiveFilter,
    aggregate_trailing,
    current_week_metrics,
    days_live,
    window_weeks
)
from .core.revenue import VarianceDecomposition, project_annual_revenue, decompose
from .core.tiers import (
    PerformanceTier,
    AcvTier,
    variance_bps,
    classify,
    classify_acv,
    tier_distribution
)
from .core.forecast import (
    VolumeForecast,
    weekly_volume_trends,
    forecast_annual_volume,
    volume_summary
)
from .core.acv import AcvImpact, project_acv, summarize_acv
from .core.snapshot import (
    MerchantPerformanceSnapshot,
    ProgramReport,
    build_merchant_snapshot,
    build_program_report,
    program_overview,
    variance_contributors
)

# Presentation layer
from .presentation.waterfall import build_revenue_waterfall
from .presentation.records import snapshot_record, report_records

# Version info
__version__ = "1.0.0"
__status__ = "Development"

# Public API
__all__ = [
    # Constants
    'TRAILING_WINDOW_WEEKS', 'WEEKS_PER_YEAR', 'DEFAULT_SEASONALITY_PCT',
    'DEFAULT_EXPECTED_ADOPTION_PCT', 'EXPECTED_ELIGIBILITY_RATE_PCT',

    # Utilities
    'nz_num', 'safe_div', 'parse_calendar_date', '_ensure_columns',

    # Data model
    'PricingModel', 'LabelsPaidBy', 'Opportunity', 'WeeklyActual', 'SeasonalityPoint',
    'latest_opportunities', 'actuals_frame',

    # Seasonality, performance and revenue
    'SeasonalityModel', 'expected_weekly_orders',
    'TrailingAggregate', 'WeekMetrics', 'DaysLiveFilter', 'aggregate_trailing',
    'current_week_metrics', 'days_live', 'window_weeks',
    'VarianceDecomposition', 'project_annual_revenue', 'decompose',

    # Tiers
    'PerformanceTier', 'AcvTier', 'variance_bps', 'classify', 'classify_acv', 'tier_distribution',

    # Volume, ACV and reports
    'VolumeForecast', 'weekly_volume_trends', 'forecast_annual_volume', 'volume_summary',
    'AcvImpact', 'project_acv', 'summarize_acv',
    'MerchantPerformanceSnapshot', 'ProgramReport', 'build_merchant_snapshot',
    'build_program_report', 'program_overview', 'variance_contributors',

    # Presentation
    'build_revenue_waterfall', 'snapshot_record', 'report_records',
]
