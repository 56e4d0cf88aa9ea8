"""
Shared Utilities and Common Functions
Logging setup, timing and display formatting used across the variance reports
"""

import logging
import logging.config
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime

from .config import settings


def setup_logging() -> None:
    """Configure application logging."""

    # Ensure logs directory exists
    for log_file in (settings.LOG_FILE, settings.ENGINE_LOG_FILE):
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": "[{asctime}] [{levelname}] [{name}] {message}",
                "style": "{",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "simple": {
                "format": "[{levelname}] {message}",
                "style": "{"
            }
        },
        "handlers": {
            "console": {
                "level": "INFO",
                "class": "logging.StreamHandler",
                "formatter": "simple",
                "stream": sys.stdout
            },
            "file": {
                "level": settings.LOG_LEVEL,
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "detailed",
                "filename": settings.LOG_FILE,
                "maxBytes": 10 * 1024 * 1024,  # 10MB
                "backupCount": 5
            },
            "engine_file": {
                "level": settings.LOG_LEVEL,
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "detailed",
                "filename": settings.ENGINE_LOG_FILE,
                "maxBytes": 10 * 1024 * 1024,  # 10MB
                "backupCount": 5
            }
        },
        "loggers": {
            "": {  # Root logger
                "level": settings.LOG_LEVEL,
                "handlers": ["console", "file"]
            },
            "engine": {
                "level": settings.LOG_LEVEL,
                "handlers": ["console", "engine_file"],
                "propagate": False
            },
            "variance_model": {
                "level": settings.LOG_LEVEL,
                "handlers": ["engine_file"],
                "propagate": False
            }
        }
    }

    logging.config.dictConfig(logging_config)


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger instance."""
    return logging.getLogger(name)


def log_step(step_name: str, message: str, is_error: bool = False, logger_name: str = "engine") -> None:
    """Log report-building steps with consistent formatting."""
    logger = get_logger(logger_name)

    if is_error:
        logger.error(f"{step_name}: {message}")
    else:
        logger.info(f"{step_name}: {message}")


def format_currency(amount: Optional[float], compact: bool = False) -> str:
    """Format dollars; negatives shown in parentheses, optional K/M notation."""
    if amount is None:
        return "—"

    abs_value = abs(amount)
    if compact:
        if abs_value >= 1_000_000:
            formatted = f"${abs_value / 1_000_000:.1f}M"
        elif abs_value >= 1_000:
            formatted = f"${abs_value / 1_000:.0f}K"
        else:
            formatted = f"${abs_value:.0f}"
    else:
        formatted = f"${abs_value:,.0f}"

    return f"({formatted})" if amount < 0 else formatted


def format_percentage(value: Optional[float], show_sign: bool = True, decimals: int = 1) -> str:
    """Format a value already expressed in percent (15.5 -> '+15.5%')."""
    if value is None:
        return "—"

    sign = "+" if show_sign and value >= 0 else ""
    return f"{sign}{value:.{decimals}f}%"


def format_volume(value: Optional[float], compact: bool = True) -> str:
    """Format order counts with K/M notation or thousand separators."""
    if value is None:
        return "—"

    abs_value = abs(value)
    if not compact:
        return f"{round(abs_value):,}"
    if abs_value >= 1_000_000:
        return f"{abs_value / 1_000_000:.1f}M"
    if abs_value >= 1_000:
        return f"{abs_value / 1_000:.0f}K"
    return f"{abs_value:.0f}"


def format_pricing_info(pricing_model: str, labels_paid_by: Optional[str]) -> str:
    """'Rev Share' + 'Loop' -> 'Rev Share • LPL'; 'Merchant' -> 'MPL'."""
    abbreviation = {"Loop": "LPL", "Merchant": "MPL"}.get(labels_paid_by or "", "")
    return f"{pricing_model} • {abbreviation}" if abbreviation else pricing_model


class PerformanceTimer:
    """Context manager for timing operations."""

    def __init__(self, operation_name: str, logger_name: str = "engine"):
        self.operation_name = operation_name
        self.logger = get_logger(logger_name)
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.info(f"Starting {self.operation_name}...")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = datetime.now() - self.start_time
        if exc_type is None:
            self.logger.info(f"Completed {self.operation_name} in {duration.total_seconds():.2f} seconds")
        else:
            self.logger.error(f"Failed {self.operation_name} after {duration.total_seconds():.2f} seconds")


# Export commonly used items
__all__ = [
    "setup_logging",
    "get_logger",
    "log_step",
    "format_currency",
    "format_percentage",
    "format_volume",
    "format_pricing_info",
    "PerformanceTimer"
]
