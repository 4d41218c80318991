"""
Integration tests for user registration and sponsor tree views.
"""

import re
from decimal import Decimal

import pytest

from income_engine.services.user import UserService
from income_engine.utils.exceptions import UserAlreadyExistsError, UserNotFoundError


class TestRegistration:
    """New users under optional sponsors."""

    @pytest.mark.asyncio
    async def test_root_registration(self, ledger, session_maker):
        """Users without sponsor become roots with a zero wallet."""
        async with session_maker() as session:
            user = await UserService(session).register_user("root@example.com", "Root")

        assert re.fullmatch(r"RSG\d{6}", user.referral_code)
        assert user.sponsor_id is None
        assert await ledger.balance(user) == Decimal("0")
        assert await ledger.package_balance(user) == Decimal("0")

    @pytest.mark.asyncio
    async def test_sponsor_by_referral_code(self, factory, session_maker):
        """Sponsor code links the new user under the sponsor."""
        sponsor = await factory.user()

        async with session_maker() as session:
            service = UserService(session)
            user = await service.register_user(
                "member@example.com", sponsor_referral_code=sponsor.referral_code
            )
            referrals = await service.get_direct_referrals(sponsor.id)
            upline = await service.get_upline(user.id, 10)

        assert user.sponsor_id == sponsor.id
        assert [r.id for r in referrals] == [user.id]
        assert [link.ancestor_id for link in upline] == [sponsor.id]

    @pytest.mark.asyncio
    async def test_unknown_sponsor(self, session_maker):
        """Unknown sponsor codes are rejected."""
        async with session_maker() as session:
            with pytest.raises(UserNotFoundError):
                await UserService(session).register_user(
                    "member@example.com", sponsor_referral_code="RSG999999"
                )

    @pytest.mark.asyncio
    async def test_duplicate_email(self, factory, session_maker):
        """Emails are unique."""
        existing = await factory.user()

        async with session_maker() as session:
            with pytest.raises(UserAlreadyExistsError):
                await UserService(session).register_user(existing.email)


class TestTreeViews:
    """Lookups over the sponsor tree."""

    @pytest.mark.asyncio
    async def test_lookup_and_team_size(self, factory, session_maker):
        """Referral code lookup and downline size."""
        a, b, c = await factory.chain(3)

        async with session_maker() as session:
            service = UserService(session)
            found = await service.get_by_referral_code(b.referral_code)
            team = await service.get_team_size(a.id)
            with pytest.raises(UserNotFoundError):
                await service.get_by_referral_code("RSG999999")

        assert found.id == b.id
        assert team == 2
