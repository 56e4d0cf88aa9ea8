"""
Core module for the monetization variance reports
Provides configuration and shared utilities
"""

from .config import settings, get_settings, Settings
from .shared import (
    setup_logging,
    get_logger,
    log_step,
    format_currency,
    format_percentage,
    format_volume,
    format_pricing_info,
    PerformanceTimer
)

__all__ = [
    # Configuration
    "settings",
    "get_settings",
    "Settings",

    # Shared utilities
    "setup_logging",
    "get_logger",
    "log_step",
    "format_currency",
    "format_percentage",
    "format_volume",
    "format_pricing_info",
    "PerformanceTimer"
]
