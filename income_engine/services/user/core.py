"""
Core user lookups.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.models.user import User
from income_engine.repositories.user_repository import UserRepository
from income_engine.services.sponsor import ChainLink, SponsorChainResolver
from income_engine.utils.exceptions import UserNotFoundError


class UserServiceCore:
    """Core user retrieval and sponsor tree views."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user service core."""
        self.session = session
        self.user_repo = UserRepository(session)

    async def get_by_id(self, user_id: int) -> User | None:
        """Get user by ID."""
        return await self.user_repo.get_by_id(user_id)

    async def get_by_referral_code(self, referral_code: str) -> User:
        """
        Get user by referral code.

        Args:
            referral_code: Referral code

        Returns:
            User

        Raises:
            UserNotFoundError: If no user has this code
        """
        user = await self.user_repo.get_by_referral_code(referral_code)
        if user is None:
            raise UserNotFoundError(f"No user with referral code {referral_code}")
        return user

    async def get_direct_referrals(self, user_id: int) -> list[User]:
        """Users sponsored directly by user_id, oldest first."""
        return await self.user_repo.find_by(sponsor_id=user_id)

    async def get_upline(self, user_id: int, max_depth: int) -> list[ChainLink]:
        """Sponsor chain of user_id up to max_depth levels."""
        return await SponsorChainResolver(self.session).resolve_chain(user_id, max_depth)

    async def get_team_size(self, user_id: int) -> int:
        """Number of users in the whole downline."""
        downline = await SponsorChainResolver(self.session).get_downline_ids(user_id)
        return len(downline)
