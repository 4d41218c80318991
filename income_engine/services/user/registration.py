"""
User registration functionality.

Handles new user registration with sponsor (referral code) support.
"""

import secrets

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.models.user import User
from income_engine.repositories.user_repository import UserRepository
from income_engine.repositories.wallet_repository import WalletRepository
from income_engine.utils.db_decorators import with_auto_commit
from income_engine.utils.exceptions import UserAlreadyExistsError, UserNotFoundError

REFERRAL_CODE_PREFIX = "RSG"


def generate_referral_code() -> str:
    """Random referral code: RSG followed by six digits."""
    return f"{REFERRAL_CODE_PREFIX}{secrets.randbelow(1_000_000):06d}"


class UserRegistrationMixin:
    """
    Mixin for user registration functionality.

    Handles new user registration with sponsor support.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user registration mixin."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.wallet_repo = WalletRepository(session)

    @with_auto_commit
    async def register_user(
        self,
        email: str,
        full_name: str | None = None,
        sponsor_referral_code: str | None = None,
    ) -> User:
        """
        Register new user under an optional sponsor.

        Args:
            email: Unique email (identity is verified upstream)
            full_name: Display name
            sponsor_referral_code: Referral code of the sponsor

        Returns:
            Created user with a zero wallet

        Raises:
            UserAlreadyExistsError: If the email is taken
            UserNotFoundError: If the sponsor code does not exist
        """
        existing = await self.user_repo.get_by_email(email)
        if existing:
            raise UserAlreadyExistsError(f"User {email} already registered")

        # Sponsor must already exist, so the tree stays acyclic
        sponsor_id = None
        if sponsor_referral_code:
            sponsor = await self.user_repo.get_by_referral_code(sponsor_referral_code)
            if sponsor is None:
                raise UserNotFoundError(
                    f"Sponsor with referral code {sponsor_referral_code} not found"
                )
            sponsor_id = sponsor.id

        while True:
            referral_code = generate_referral_code()
            exists = await self.user_repo.get_by_referral_code(referral_code)
            if not exists:
                break

        user = await self.user_repo.create(
            email=email,
            full_name=full_name,
            referral_code=referral_code,
            sponsor_id=sponsor_id,
        )
        await self.wallet_repo.ensure_wallet(user.id)

        logger.info(
            "User registered",
            extra={
                "user_id": user.id,
                "referral_code": referral_code,
                "has_sponsor": sponsor_id is not None,
            },
        )

        return user
