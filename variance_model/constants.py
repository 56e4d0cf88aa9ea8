"""
Constants for the performance & revenue variance model
"""

# ===== CALENDAR =====
WEEKS_PER_YEAR = 52
TRAILING_WINDOW_WEEKS = 4   # trailing window used by every report

# ===== SEASONALITY =====
SEASONAL_VERTICAL = "Swimwear"
DEFAULT_SEASONALITY_CURVE = "Total ex. Swimwear"   # catch-all for every other vertical
DEFAULT_SEASONALITY_PCT = 1.923                    # uniform 100/52 when a week is missing

# ===== CONTRACT BASELINES =====
DEFAULT_EXPECTED_ADOPTION_PCT = 50.0   # used when the contract carries no adoption rate
EXPECTED_ELIGIBILITY_RATE_PCT = 70.7   # program-wide eligibility benchmark

# ===== BPS TIERS (adoption variance) =====
BPS_EXCEEDING_ABOVE = 500        # > +500 bps
BPS_MEETING_FLOOR = -500         # [-500, +500]
BPS_SLIGHTLY_BELOW_FLOOR = -1000  # [-1000, -500)

# ===== ACV TIERS (percent of original net ACV) =====
ACV_EXCEEDING_ABOVE = 100.0
ACV_MEETING_FLOOR = 80.0
ACV_BELOW_FLOOR = 50.0
ACV_SIGNIFICANTLY_BELOW_FLOOR = 30.0

# ===== REPORTING GATES =====
ACTIVE_MERCHANT_MIN_DAYS = 7
CONTRIBUTOR_MIN_DAYS_LIVE = 30
TOP_CONTRIBUTORS = 5

# Days-live buckets understood by DaysLiveFilter
DAYS_LIVE_BUCKETS = {
    "under30": (None, 30),
    "30-60": (30, 60),
}

# Canonical weekly actuals columns (engine frame)
WEEKLY_COLUMNS = [
    "account_id", "merchant_name", "iso_week", "order_week_date", "first_offer_date",
    "ecomm_orders", "offer_shown", "offer_not_shown", "accepted_offers", "attach_rate_percent",
]
WEEKLY_NUMERIC_COLUMNS = [
    "ecomm_orders", "offer_shown", "offer_not_shown", "accepted_offers", "attach_rate_percent",
]
