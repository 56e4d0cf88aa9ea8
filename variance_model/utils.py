"""
Utility functions for variance model calculations
"""
from datetime import date, datetime
from typing import Optional

import pandas as pd
import numpy as np


# ===== PANDAS HELPERS =====
# Vectorized helpers shared by scalar and frame code paths
def nz_num(s, fill=0.0):
    """Convert to numeric with fillna, handling both Series and scalar inputs"""
    if s is None:
        return fill
    result = pd.to_numeric(s, errors="coerce")
    if hasattr(result, 'fillna'):
        return result.replace([np.inf, -np.inf], np.nan).fillna(fill)
    # Handle scalar case
    if pd.isna(result) or np.isinf(result):
        return fill
    return float(result)


def safe_div(a, b, fill=0.0):
    """Elementwise division with zero/inf/NaN handling"""
    a_num = pd.to_numeric(a, errors='coerce')
    b_num = pd.to_numeric(b, errors='coerce')

    if hasattr(a_num, 'replace') or hasattr(b_num, 'replace'):
        with np.errstate(divide='ignore', invalid='ignore'):
            result = a_num / b_num
        return result.replace([np.inf, -np.inf], fill).fillna(fill)

    # Handle scalar case
    if pd.isna(a_num) or pd.isna(b_num) or b_num == 0:
        return fill
    result = float(a_num) / float(b_num)
    return fill if np.isinf(result) else result


def parse_calendar_date(value) -> Optional[date]:
    """
    Parse a date from its year/month/day components only.

    Timestamps keep their wall-clock calendar day (no timezone conversion), so
    '2024-03-10T23:30:00-08:00' is March 10. Anything unparseable returns None.
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, float) and np.isnan(value):
        return None
    if isinstance(value, datetime):
        return date(value.year, value.month, value.day)
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text or text.lower() in ("nan", "nat", "none", "null"):
        return None
    try:
        year, month, day = (int(part) for part in text[:10].split("-"))
        return date(year, month, day)
    except ValueError:
        pass

    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        return None
    return date(parsed.year, parsed.month, parsed.day)


def _ensure_columns(df: pd.DataFrame, required_cols: list) -> pd.DataFrame:
    """Ensure required columns exist with default values"""
    for col in required_cols:
        if col not in df.columns:
            if col in ('account_id', 'merchant_name'):
                df[col] = ''
            elif 'date' in col:
                df[col] = None
            else:
                df[col] = 0
    return df
