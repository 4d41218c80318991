"""
Deposit cycle arithmetic.

Pure functions; the driver passes "now" in.
"""

from datetime import datetime
from decimal import Decimal

from income_engine.utils.datetime_utils import ensure_utc
from income_engine.utils.formatters import round2


def completed_cycles(
    anchor: datetime, now: datetime, cycle_length_days: int = 30
) -> int:
    """
    Number of whole cycles elapsed since anchor.

    Args:
        anchor: Deposit creation time
        now: Current time
        cycle_length_days: Days per cycle

    Returns:
        floor(whole days elapsed / cycle length), never negative

    Example:
        29 days -> 0, 30 days -> 1, 65 days -> 2
    """
    days = (ensure_utc(now) - ensure_utc(anchor)).days
    if days <= 0:
        return 0
    return days // cycle_length_days


def cycle_profit(
    amount: Decimal,
    monthly_percent: Decimal,
    cycle_length_days: int = 30,
) -> Decimal:
    """
    Profit credited for one cycle of a deposit.

    The daily rate is the monthly percent spread over the cycle, summed over
    the cycle's days, so one cycle is worth exactly the monthly percent.

    Args:
        amount: Deposit principal
        monthly_percent: Monthly return (10 = 10%)
        cycle_length_days: Days per cycle

    Returns:
        Cycle profit rounded to cents
    """
    daily = amount * monthly_percent / Decimal("100") / Decimal(cycle_length_days)
    return round2(daily * cycle_length_days)


def level_payout(profit: Decimal, percent: Decimal) -> Decimal:
    """Payout for one level: profit x percent / 100, rounded to cents."""
    return round2(profit * percent / Decimal("100"))
