"""
Deposit repository.

Data access layer for Deposit model.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.models.deposit import Deposit
from income_engine.models.enums import DepositStatus
from income_engine.repositories.base import BaseRepository


class DepositRepository(BaseRepository[Deposit]):
    """Deposit repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize deposit repository."""
        super().__init__(Deposit, session)

    async def get_by_user(
        self, user_id: int, status: str | None = None
    ) -> list[Deposit]:
        """
        Get deposits by user.

        Args:
            user_id: User ID
            status: Optional status filter

        Returns:
            List of deposits
        """
        filters: dict[str, int | str] = {"user_id": user_id}
        if status:
            filters["status"] = status

        return await self.find_by(**filters)

    async def get_distributable(
        self, now: datetime, cycle_length_days: int
    ) -> list[Deposit]:
        """
        Get completed deposits that are still locked and at least one
        cycle old.

        Args:
            now: Current time
            cycle_length_days: Cycle length in days

        Returns:
            Deposits ordered oldest first
        """
        cutoff = now - timedelta(days=cycle_length_days)
        stmt = (
            select(Deposit)
            .where(Deposit.status == DepositStatus.COMPLETED.value)
            .where(Deposit.unlock_date.is_not(None))
            .where(Deposit.unlock_date > now)
            .where(Deposit.created_at <= cutoff)
            .order_by(Deposit.created_at, Deposit.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_active(self, now: datetime) -> list[Deposit]:
        """Get completed deposits that have not reached their unlock date."""
        stmt = (
            select(Deposit)
            .where(Deposit.status == DepositStatus.COMPLETED.value)
            .where(Deposit.unlock_date > now)
            .order_by(Deposit.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_completed(
        self, user_id: int, exclude_id: int | None = None
    ) -> int:
        """
        Count a user's completed deposits.

        Args:
            user_id: User ID
            exclude_id: Deposit to leave out of the count

        Returns:
            Number of completed deposits
        """
        stmt = (
            select(func.count(Deposit.id))
            .where(Deposit.user_id == user_id)
            .where(Deposit.status == DepositStatus.COMPLETED.value)
        )
        if exclude_id is not None:
            stmt = stmt.where(Deposit.id != exclude_id)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def sum_locked_principal(self, user_id: int, now: datetime) -> Decimal:
        """
        Sum completed deposits of a user that are still locked.

        Args:
            user_id: User ID
            now: Current time

        Returns:
            Locked principal
        """
        stmt = (
            select(func.coalesce(func.sum(Deposit.amount), 0))
            .where(Deposit.user_id == user_id)
            .where(Deposit.status == DepositStatus.COMPLETED.value)
            .where(Deposit.unlock_date > now)
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def sum_completed_for_users(self, user_ids: list[int]) -> Decimal:
        """
        Sum completed deposit principal over a set of users.

        Args:
            user_ids: User IDs (e.g. a downline)

        Returns:
            Total investment volume
        """
        if not user_ids:
            return Decimal("0")
        stmt = (
            select(func.coalesce(func.sum(Deposit.amount), 0))
            .where(Deposit.user_id.in_(user_ids))
            .where(Deposit.status == DepositStatus.COMPLETED.value)
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))
