"""
Datetime utilities.

Provides timezone-aware datetime functions and the clock type injected into
services.
"""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """
    Attach UTC to naive datetimes read back from the database.

    Args:
        value: Datetime, naive values are assumed to be UTC

    Returns:
        Timezone-aware datetime in UTC
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def period_key(moment: datetime) -> str:
    """Calendar month key (YYYY-MM) used for monthly payouts."""
    return ensure_utc(moment).strftime("%Y-%m")

