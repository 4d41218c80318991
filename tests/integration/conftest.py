"""
Fixtures for integration tests.

Every test gets a fresh SQLite database file with the full schema.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import select

from income_engine.config.database import create_engine, create_session_maker
from income_engine.models import (
    BalanceField,
    Base,
    Deposit,
    DepositStatus,
    DistributionMarker,
    IncomeSource,
    Transaction,
    User,
    Wallet,
)
from income_engine.repositories.wallet_repository import WalletRepository


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Async engine on a temporary SQLite file."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'income.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session factory bound to the test database."""
    return create_session_maker(engine)


class Factory:
    """Creates rows directly, bypassing business flows."""

    def __init__(self, session_maker, clock) -> None:
        self.session_maker = session_maker
        self.clock = clock
        self._seq = 0

    async def user(
        self,
        sponsor: User | None = None,
        created_at: datetime | None = None,
        name: str | None = None,
    ) -> User:
        self._seq += 1
        async with self.session_maker() as session:
            async with session.begin():
                user = User(
                    email=f"user{self._seq}@example.com",
                    full_name=name or f"User {self._seq}",
                    referral_code=f"RSG{self._seq:06d}",
                    sponsor_id=sponsor.id if sponsor else None,
                    created_at=created_at or self.clock(),
                )
                session.add(user)
                await session.flush()
                await WalletRepository(session).ensure_wallet(user.id)
        return user

    async def chain(self, length: int) -> list[User]:
        """Linear tree: chain[0] is the root, chain[-1] the deepest user."""
        users: list[User] = []
        sponsor = None
        for _ in range(length):
            sponsor = await self.user(sponsor=sponsor)
            users.append(sponsor)
        return users

    async def deposit(
        self,
        user: User,
        amount: Decimal = Decimal("1000"),
        created_at: datetime | None = None,
        lock_days: int = 180,
        status: DepositStatus = DepositStatus.COMPLETED,
    ) -> Deposit:
        created_at = created_at or self.clock()
        async with self.session_maker() as session:
            async with session.begin():
                deposit = Deposit(
                    user_id=user.id,
                    amount=amount,
                    status=status.value,
                    created_at=created_at,
                    approved_at=created_at if status == DepositStatus.COMPLETED else None,
                    unlock_date=(
                        created_at + timedelta(days=lock_days)
                        if status == DepositStatus.COMPLETED
                        else None
                    ),
                )
                session.add(deposit)
        return deposit

    async def fund(
        self,
        user: User,
        balance: Decimal = Decimal("0"),
        package_balance: Decimal = Decimal("0"),
    ) -> None:
        async with self.session_maker() as session:
            async with session.begin():
                wallet_repo = WalletRepository(session)
                if balance:
                    await wallet_repo.increment(user.id, balance)
                if package_balance:
                    await wallet_repo.increment(
                        user.id, package_balance, BalanceField.PACKAGE_BALANCE
                    )


class Ledger:
    """Read helpers for assertions."""

    def __init__(self, session_maker) -> None:
        self.session_maker = session_maker

    async def wallet(self, user: User) -> Wallet:
        async with self.session_maker() as session:
            result = await session.execute(select(Wallet).where(Wallet.user_id == user.id))
            return result.scalar_one()

    async def balance(self, user: User) -> Decimal:
        wallet = await self.wallet(user)
        return Decimal(wallet.balance)

    async def package_balance(self, user: User) -> Decimal:
        wallet = await self.wallet(user)
        return Decimal(wallet.package_balance)

    async def transactions(
        self,
        income_source: IncomeSource | None = None,
        user: User | None = None,
    ) -> list[Transaction]:
        stmt = select(Transaction).order_by(Transaction.id)
        if income_source is not None:
            stmt = stmt.where(Transaction.income_source == income_source.value)
        if user is not None:
            stmt = stmt.where(Transaction.user_id == user.id)
        async with self.session_maker() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def markers(self) -> list[DistributionMarker]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(DistributionMarker).order_by(DistributionMarker.id)
            )
            return list(result.scalars().all())


@pytest.fixture
def factory(session_maker, clock):
    """Row factory."""
    return Factory(session_maker, clock)


@pytest.fixture
def ledger(session_maker):
    """Assertion helpers."""
    return Ledger(session_maker)
