"""
Reward repositories.

Data access layer for RewardTier and UserReward models.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.config.payout_schedules import FastTrackTier
from income_engine.models.reward import RewardTier, UserReward
from income_engine.repositories.base import BaseRepository


class RewardTierRepository(BaseRepository[RewardTier]):
    """Reward tier repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize reward tier repository."""
        super().__init__(RewardTier, session)

    async def get_all_ordered(self) -> list[RewardTier]:
        """Get all tiers by required rank."""
        stmt = select(RewardTier).order_by(RewardTier.rank_required, RewardTier.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def seed(self, tiers: tuple[FastTrackTier, ...]) -> int:
        """
        Insert tier definitions when the table is empty.

        Args:
            tiers: Tier definitions

        Returns:
            Number of tiers created (0 if tiers already existed)
        """
        if await self.count() > 0:
            return 0
        for tier in tiers:
            await self.create(
                name=tier.name,
                rank_required=tier.rank_required,
                bonus_amount=tier.bonus_amount,
                timeframe_days=tier.timeframe_days,
            )
        return len(tiers)


class UserRewardRepository(BaseRepository[UserReward]):
    """User reward repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user reward repository."""
        super().__init__(UserReward, session)

    async def get_for_user(self, user_id: int) -> dict[int, UserReward]:
        """
        Get a user's reward rows keyed by tier id.

        Args:
            user_id: User ID

        Returns:
            Mapping tier_id -> UserReward
        """
        stmt = select(UserReward).where(UserReward.user_id == user_id)
        result = await self.session.execute(stmt)
        return {row.tier_id: row for row in result.scalars().all()}
