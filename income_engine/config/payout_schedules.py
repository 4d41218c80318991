"""
Single source of truth for payout schedules.

Every percentage or threshold that determines a payout amount is defined here
exactly once, as a named and versioned object. Services import the schedule
they need by name; changing a rate means editing one definition below.
"""

from decimal import Decimal
from typing import NamedTuple


class PayoutSchedule(NamedTuple):
    """Level-indexed percentage schedule (index 0 = level 1)."""

    name: str
    version: int
    percentages: tuple[Decimal, ...]

    @property
    def depth(self) -> int:
        """Number of levels that pay anything."""
        return len(self.percentages)

    def percentage_for(self, level: int) -> Decimal:
        """
        Get payout percentage for a level.

        Args:
            level: Sponsor level (1 = direct sponsor)

        Returns:
            Percentage (e.g. Decimal("10") = 10%), zero outside the schedule
        """
        if 1 <= level <= len(self.percentages):
            return self.percentages[level - 1]
        return Decimal("0")


class SalaryRank(NamedTuple):
    """Rank reached at a downline volume threshold."""

    rank: int
    threshold: Decimal
    salary: Decimal


class RankTable(NamedTuple):
    """Threshold-banded rank and salary table."""

    name: str
    version: int
    ranks: tuple[SalaryRank, ...]

    def rank_for_volume(self, volume: Decimal) -> SalaryRank | None:
        """
        Find the highest rank whose threshold is met.

        Thresholds are inclusive: volume equal to a threshold qualifies.

        Args:
            volume: Total downline investment volume

        Returns:
            Highest qualifying rank or None
        """
        for rank in sorted(self.ranks, key=lambda r: r.threshold, reverse=True):
            if volume >= rank.threshold:
                return rank
        return None


class FastTrackTier(NamedTuple):
    """Seed definition of a fast-track reward tier."""

    name: str
    rank_required: int
    bonus_amount: Decimal
    timeframe_days: int


def _pct(*values: str) -> tuple[Decimal, ...]:
    return tuple(Decimal(v) for v in values)


# Referral income from a deposit's cycle profit, paid up 10 levels.
# v1 (10/5/3/2/1) was replaced by v2 when levels 3-5 were lowered.
REFERRAL_INCOME_V2 = PayoutSchedule(
    name="referral_income",
    version=2,
    percentages=_pct("10", "5", "2", "1", "0.5", "0.5", "0.5", "0.5", "0.5", "0.5"),
)

# Referral income from monthly trading bonuses, paid up 20 levels.
TRADING_BONUS_REFERRAL_V1 = PayoutSchedule(
    name="trading_bonus_referral",
    version=1,
    percentages=_pct("10", "5", "3", "2", "1") + _pct(*(["0.5"] * 15)),
)

# One-time commission to the direct sponsor on a user's first deposit.
DIRECT_INCOME_V1 = PayoutSchedule(
    name="direct_income",
    version=1,
    percentages=_pct("10"),
)

SALARY_RANKS_V1 = RankTable(
    name="salary_ranks",
    version=1,
    ranks=(
        SalaryRank(rank=1, threshold=Decimal("5000"), salary=Decimal("100")),
        SalaryRank(rank=2, threshold=Decimal("15000"), salary=Decimal("250")),
        SalaryRank(rank=3, threshold=Decimal("50000"), salary=Decimal("500")),
        SalaryRank(rank=4, threshold=Decimal("80000"), salary=Decimal("750")),
        SalaryRank(rank=5, threshold=Decimal("100000"), salary=Decimal("1000")),
    ),
)

FAST_TRACK_TIERS_V1: tuple[FastTrackTier, ...] = (
    FastTrackTier("Fast Track Rank 1", 1, Decimal("50"), 30),
    FastTrackTier("Fast Track Rank 2", 2, Decimal("150"), 60),
    FastTrackTier("Fast Track Rank 3", 3, Decimal("500"), 90),
    FastTrackTier("Fast Track Rank 4", 4, Decimal("1000"), 120),
    FastTrackTier("Fast Track Rank 5", 5, Decimal("2000"), 180),
)
