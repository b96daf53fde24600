"""
Standard type definitions for database models.

Provides consistent types for monetary, rate and JSON fields across all models.
"""

from sqlalchemy import DECIMAL, JSON
from sqlalchemy.dialects.postgresql import JSONB

# Standard money type for amounts, balances, rewards
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Fractional rate type (e.g., 0.0030 daily core rate, 0.05 synergy rate)
# Precision: 10 digits total, 6 after decimal point
RateType = DECIMAL(10, 6)

# Percentage type for limits and overrides (e.g., 500.00%, 70.00%)
# Precision: 5 digits total, 2 after decimal point
# Range: 0.00 to 999.99
PercentType = DECIMAL(5, 2)

# JSON payloads: JSONB on PostgreSQL, generic JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")
