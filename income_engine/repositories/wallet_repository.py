"""
Wallet repository.

Data access layer for Wallet model. Balance changes are single-statement
increments/decrements; balances are never read, modified and written back.
"""

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.models.enums import BalanceField
from income_engine.models.wallet import Wallet
from income_engine.repositories.base import BaseRepository


class WalletRepository(BaseRepository[Wallet]):
    """Wallet repository with atomic balance updates."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize wallet repository."""
        super().__init__(Wallet, session)

    async def get_by_user(self, user_id: int) -> Wallet | None:
        """Get wallet by owner."""
        return await self.get_by(user_id=user_id)

    async def lock_by_user(self, user_id: int) -> Wallet | None:
        """
        Get wallet by owner with a row lock (SELECT ... FOR UPDATE).

        Withdrawal checks hold this lock so two requests for the same
        wallet are validated one after the other.
        """
        result = await self.session.execute(
            select(Wallet).where(Wallet.user_id == user_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def get_balances(self, user_id: int) -> tuple[Decimal, Decimal] | None:
        """
        Read both balances straight from the database.

        Args:
            user_id: Wallet owner

        Returns:
            (balance, package_balance) or None if the wallet does not exist
        """
        stmt = select(Wallet.balance, Wallet.package_balance).where(
            Wallet.user_id == user_id
        )
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return row.balance, row.package_balance

    async def ensure_wallet(self, user_id: int) -> None:
        """
        Create a zero wallet if the user has none.

        Args:
            user_id: Wallet owner
        """
        exists = await self.exists(user_id=user_id)
        if not exists:
            await self.create(
                user_id=user_id,
                balance=Decimal("0"),
                package_balance=Decimal("0"),
            )

    async def increment(
        self,
        user_id: int,
        amount: Decimal,
        field: BalanceField = BalanceField.BALANCE,
    ) -> bool:
        """
        Atomically add amount to a balance.

        Args:
            user_id: Wallet owner
            amount: Positive amount
            field: Balance to change

        Returns:
            True if a wallet row was updated
        """
        column = getattr(Wallet, field.value)
        stmt = (
            update(Wallet)
            .where(Wallet.user_id == user_id)
            .values({column: column + amount})
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def decrement_if_sufficient(
        self,
        user_id: int,
        amount: Decimal,
        field: BalanceField = BalanceField.BALANCE,
    ) -> bool:
        """
        Atomically subtract amount when the balance covers it.

        The sufficiency check and the decrement are one UPDATE statement,
        so concurrent debits cannot overdraw the wallet.

        Args:
            user_id: Wallet owner
            amount: Positive amount
            field: Balance to change

        Returns:
            True if the balance was decremented
        """
        column = getattr(Wallet, field.value)
        stmt = (
            update(Wallet)
            .where(Wallet.user_id == user_id, column >= amount)
            .values({column: column - amount})
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
