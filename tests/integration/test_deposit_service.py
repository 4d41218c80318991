"""
Integration tests for the deposit lifecycle and direct income.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from income_engine.models import Deposit, DepositStatus, IncomeSource
from income_engine.services.deposit import DepositService
from income_engine.utils.datetime_utils import ensure_utc
from income_engine.utils.exceptions import (
    DepositStateError,
    InvalidAmountError,
    UserNotFoundError,
)


async def _create_and_approve(session_maker, clock, user, amount=Decimal("1000")):
    async with session_maker() as session:
        service = DepositService(session, clock)
        deposit = await service.create_deposit(user.id, amount, network="BEP20")
        return await service.approve_deposit(deposit.id)


class TestCreateDeposit:
    """Pending deposit creation."""

    @pytest.mark.asyncio
    async def test_creates_pending(self, factory, ledger, session_maker, clock):
        """New deposits wait for approval and move no money."""
        user = await factory.user()

        async with session_maker() as session:
            deposit = await DepositService(session, clock).create_deposit(
                user.id, Decimal("500")
            )

        assert deposit.status == DepositStatus.PENDING.value
        assert deposit.unlock_date is None
        assert await ledger.balance(user) == Decimal("0")

    @pytest.mark.asyncio
    async def test_below_minimum(self, factory, session_maker, clock):
        """Amounts under the minimum are rejected."""
        user = await factory.user()

        async with session_maker() as session:
            with pytest.raises(InvalidAmountError):
                await DepositService(session, clock).create_deposit(user.id, Decimal("50"))

    @pytest.mark.asyncio
    async def test_unknown_user(self, session_maker, clock):
        """Deposits need an existing user."""
        async with session_maker() as session:
            with pytest.raises(UserNotFoundError):
                await DepositService(session, clock).create_deposit(999, Decimal("500"))


class TestApproveDeposit:
    """Approval, lock period and principal credit."""

    @pytest.mark.asyncio
    async def test_approval_locks_and_credits(self, factory, ledger, session_maker, clock):
        """Approved deposit is completed, locked for 180 days and credited."""
        user = await factory.user()

        deposit = await _create_and_approve(session_maker, clock, user)

        assert deposit.status == DepositStatus.COMPLETED.value
        assert ensure_utc(deposit.unlock_date) == clock() + timedelta(days=180)
        assert await ledger.balance(user) == Decimal("1000")
        rows = await ledger.transactions(IncomeSource.DEPOSIT, user=user)
        assert len(rows) == 1
        assert rows[0].correlation_key == f"deposit:{deposit.id}"

    @pytest.mark.asyncio
    async def test_approve_twice(self, factory, ledger, session_maker, clock):
        """Only pending deposits can be approved."""
        user = await factory.user()
        deposit = await _create_and_approve(session_maker, clock, user)

        async with session_maker() as session:
            with pytest.raises(DepositStateError):
                await DepositService(session, clock).approve_deposit(deposit.id)

        assert await ledger.balance(user) == Decimal("1000")

    @pytest.mark.asyncio
    async def test_reject(self, factory, ledger, session_maker, clock):
        """Rejected deposits move no money and cannot be approved later."""
        user = await factory.user()

        async with session_maker() as session:
            service = DepositService(session, clock)
            deposit = await service.create_deposit(user.id, Decimal("500"))
            deposit_id = deposit.id
            rejected = await service.reject_deposit(deposit_id)
            assert rejected.status == DepositStatus.REJECTED.value
            with pytest.raises(DepositStateError):
                await service.approve_deposit(deposit_id)

        async with session_maker() as session:
            stored = await session.get(Deposit, deposit_id)
            assert stored.status == DepositStatus.REJECTED.value
        assert await ledger.balance(user) == Decimal("0")

    @pytest.mark.asyncio
    async def test_user_deposits_listed(self, factory, session_maker, clock):
        """All of a user's deposits are returned."""
        user = await factory.user()
        await _create_and_approve(session_maker, clock, user)

        async with session_maker() as session:
            service = DepositService(session, clock)
            await service.create_deposit(user.id, Decimal("200"))
            deposits = await service.get_user_deposits(user.id)

        assert sorted(d.status for d in deposits) == ["completed", "pending"]


class TestDirectIncome:
    """One-time commission on a user's first deposit."""

    @pytest.mark.asyncio
    async def test_paid_once(self, factory, ledger, session_maker, clock):
        """Sponsor earns 10% of the first deposit and nothing for the second."""
        sponsor = await factory.user()
        user = await factory.user(sponsor=sponsor)

        await _create_and_approve(session_maker, clock, user, Decimal("1000"))
        await _create_and_approve(session_maker, clock, user, Decimal("2000"))

        assert await ledger.balance(sponsor) == Decimal("100.00")
        rows = await ledger.transactions(IncomeSource.DIRECT_INCOME)
        assert len(rows) == 1
        assert rows[0].user_id == sponsor.id
        assert rows[0].source_user_id == user.id
        assert rows[0].referral_level == 1
        assert rows[0].correlation_key == f"direct_income:user:{user.id}"

    @pytest.mark.asyncio
    async def test_only_direct_sponsor(self, factory, ledger, session_maker, clock):
        """Level 2 earns no direct income."""
        a, b, c = await factory.chain(3)

        await _create_and_approve(session_maker, clock, c)

        assert await ledger.balance(b) == Decimal("100.00")
        assert await ledger.balance(a) == Decimal("0")

    @pytest.mark.asyncio
    async def test_root_user(self, factory, ledger, session_maker, clock):
        """Deposits of root users pay no direct income."""
        root = await factory.user()

        await _create_and_approve(session_maker, clock, root)

        assert await ledger.transactions(IncomeSource.DIRECT_INCOME) == []
