"""
Standard type definitions for database models.

Provides consistent types for monetary and percentage fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for amounts, balances, payouts
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Percentage type for payout rates
# Precision: 7 digits total, 4 after decimal point (e.g. 0.5000%, 10.0000%)
PercentType = DECIMAL(7, 4)
