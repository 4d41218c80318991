"""
User service module.

Structure:
- core.py: User retrieval and sponsor tree views
- registration.py: User registration with sponsor support
- statistics.py: Balance and income views

Usage:
    from income_engine.services.user import UserService

    user_service = UserService(session)
    user = await user_service.register_user(email, full_name, "RSG123456")
    summary = await user_service.get_balance_summary(user.id)
"""

from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.services.user.core import UserServiceCore
from income_engine.services.user.registration import (
    UserRegistrationMixin,
    generate_referral_code,
)
from income_engine.services.user.statistics import UserStatisticsMixin


class UserService(
    UserServiceCore,
    UserRegistrationMixin,
    UserStatisticsMixin,
):
    """
    Combined user service.

    Inherits from all user service mixins to provide complete functionality.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize user service with all mixins.

        Args:
            session: Database session
        """
        UserServiceCore.__init__(self, session)
        UserRegistrationMixin.__init__(self, session)
        UserStatisticsMixin.__init__(self, session)


__all__ = ["UserService", "generate_referral_code"]
