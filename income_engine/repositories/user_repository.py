"""
User repository.

Data access layer for User model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.models.user import User
from income_engine.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with sponsor-tree queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_referral_code(self, referral_code: str) -> User | None:
        """
        Get user by referral code.

        Args:
            referral_code: Unique referral code

        Returns:
            User or None
        """
        return await self.get_by(referral_code=referral_code)

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email."""
        return await self.get_by(email=email)

    async def get_sponsor_ids(
        self, user_ids: list[int]
    ) -> dict[int, int | None]:
        """
        Get sponsor id for each of the given users in one query.

        Args:
            user_ids: User IDs

        Returns:
            Mapping user_id -> sponsor_id; missing users are absent
        """
        if not user_ids:
            return {}
        stmt = select(User.id, User.sponsor_id).where(User.id.in_(user_ids))
        result = await self.session.execute(stmt)
        return {row.id: row.sponsor_id for row in result.all()}

    async def get_child_ids(self, sponsor_ids: list[int]) -> list[int]:
        """
        Get ids of users directly sponsored by any of sponsor_ids.

        Args:
            sponsor_ids: Sponsor user IDs

        Returns:
            Direct referral user IDs
        """
        if not sponsor_ids:
            return []
        stmt = (
            select(User.id)
            .where(User.sponsor_id.in_(sponsor_ids))
            .order_by(User.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_all_ids(self) -> list[int]:
        """Get ids of all users, oldest first."""
        stmt = select(User.id).order_by(User.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
