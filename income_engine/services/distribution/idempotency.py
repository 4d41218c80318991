"""
Distribution idempotency guard.

Payouts are identified by structured correlation keys; whole units by
distribution markers. Both are backed by unique constraints, so a
concurrent duplicate fails at commit even if it passed these checks.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.models.enums import SourceType
from income_engine.repositories.distribution_marker_repository import (
    DistributionMarkerRepository,
)
from income_engine.repositories.transaction_repository import TransactionRepository


def referral_income_key(deposit_id: int, cycle_number: int, level: int) -> str:
    """Key of one level's payout from one deposit cycle."""
    return f"referral_income:deposit:{deposit_id}:cycle:{cycle_number}:level:{level}"


def trading_bonus_referral_key(bonus_transaction_id: int, level: int) -> str:
    """Key of one level's payout from one trading bonus."""
    return f"referral_income:trading_bonus:{bonus_transaction_id}:level:{level}"


def trading_bonus_key(deposit_id: int, period: str) -> str:
    """Key of a deposit's trading bonus for a calendar month."""
    return f"trading_bonus:deposit:{deposit_id}:period:{period}"


def deposit_credit_key(deposit_id: int) -> str:
    """Key of the principal credit made when a deposit is approved."""
    return f"deposit:{deposit_id}"


def direct_income_key(user_id: int, level: int = 1) -> str:
    """Key of the one-time direct income paid for user's first deposit."""
    if level == 1:
        return f"direct_income:user:{user_id}"
    return f"direct_income:user:{user_id}:level:{level}"


def salary_key(user_id: int, period: str) -> str:
    """Key of a user's salary for a calendar month."""
    return f"salary_income:user:{user_id}:period:{period}"


def fast_track_key(user_id: int, tier_id: int) -> str:
    """Key of a user's fast-track bonus for one tier."""
    return f"fast_track_reward:user:{user_id}:tier:{tier_id}"


class DistributionGuard:
    """Answers whether a payout or a unit was already committed."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize guard on the unit's session."""
        self.session = session
        self.transaction_repo = TransactionRepository(session)
        self.marker_repo = DistributionMarkerRepository(session)

    async def already_paid(
        self, deposit_id: int, cycle_number: int, level: int
    ) -> bool:
        """
        Check whether a deposit cycle's level was paid.

        Args:
            deposit_id: Principal deposit
            cycle_number: Cycle index (1-based)
            level: Upline level

        Returns:
            True if a payout row with this key exists
        """
        return await self.transaction_repo.exists_by_correlation_key(
            referral_income_key(deposit_id, cycle_number, level)
        )

    async def key_used(self, correlation_key: str) -> bool:
        """Check whether any ledger entry carries correlation_key."""
        return await self.transaction_repo.exists_by_correlation_key(correlation_key)

    async def cycle_distributed(
        self, source_type: SourceType, source_id: int, cycle_number: int
    ) -> bool:
        """Check whether the whole unit was committed."""
        return await self.marker_repo.is_marked(source_type, source_id, cycle_number)

    async def distributed_cycles(
        self, source_type: SourceType, source_id: int
    ) -> set[int]:
        """Get committed cycle numbers of one source."""
        return await self.marker_repo.get_marked_cycles(source_type, source_id)
