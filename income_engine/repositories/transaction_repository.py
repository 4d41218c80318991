"""
Transaction repository.

Data access layer for Transaction model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.models.distribution_marker import DistributionMarker
from income_engine.models.enums import IncomeSource, SourceType, TransactionStatus
from income_engine.models.transaction import Transaction
from income_engine.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Transaction repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    async def exists_by_correlation_key(self, correlation_key: str) -> bool:
        """
        Check whether a ledger entry with this correlation key exists.

        Args:
            correlation_key: Structured idempotency key

        Returns:
            True if already recorded
        """
        stmt = select(Transaction.id).where(
            Transaction.correlation_key == correlation_key
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def get_by_user(
        self,
        user_id: int,
        income_source: IncomeSource | None = None,
        limit: int | None = None,
    ) -> list[Transaction]:
        """
        Get a user's transaction history, newest first.

        Args:
            user_id: User ID
            income_source: Optional source filter
            limit: Max rows

        Returns:
            List of transactions
        """
        stmt = select(Transaction).where(Transaction.user_id == user_id)
        if income_source is not None:
            stmt = stmt.where(Transaction.income_source == income_source.value)
        stmt = stmt.order_by(Transaction.created_at.desc(), Transaction.id.desc())
        if limit:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_pending_withdrawals(self, user_id: int) -> Decimal:
        """
        Sum pending withdrawal requests of a user (positive number).

        Args:
            user_id: User ID

        Returns:
            Total requested but not yet settled
        """
        stmt = (
            select(func.coalesce(func.sum(Transaction.amount), 0))
            .where(Transaction.user_id == user_id)
            .where(Transaction.income_source == IncomeSource.WITHDRAWAL.value)
            .where(Transaction.status == TransactionStatus.PENDING.value)
        )
        result = await self.session.execute(stmt)
        return -Decimal(str(result.scalar() or 0))

    async def get_undistributed_by_source(
        self,
        income_source: IncomeSource,
        source_type: SourceType,
        cycle_number: int,
    ) -> list[Transaction]:
        """
        Get completed transactions of one source without a distribution marker.

        Bonuses whose distribution failed stay here until a later run marks
        them, however old they are.

        Args:
            income_source: Source tag of the transactions to distribute
            source_type: Marker source type recorded for them
            cycle_number: Marker cycle recorded for them

        Returns:
            Transactions ordered oldest first
        """
        marked = (
            select(DistributionMarker.id)
            .where(DistributionMarker.source_type == source_type.value)
            .where(DistributionMarker.source_id == Transaction.id)
            .where(DistributionMarker.cycle_number == cycle_number)
        )
        stmt = (
            select(Transaction)
            .where(Transaction.income_source == income_source.value)
            .where(Transaction.status == TransactionStatus.COMPLETED.value)
            .where(~marked.exists())
            .order_by(Transaction.created_at, Transaction.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_completed_by_source(self, user_id: int) -> dict[str, Decimal]:
        """
        Total completed amounts of a user grouped by income source.

        Args:
            user_id: User ID

        Returns:
            Mapping income_source -> signed total
        """
        stmt = (
            select(Transaction.income_source, func.sum(Transaction.amount))
            .where(Transaction.user_id == user_id)
            .where(Transaction.status == TransactionStatus.COMPLETED.value)
            .group_by(Transaction.income_source)
        )
        result = await self.session.execute(stmt)
        return {source: Decimal(str(total or 0)) for source, total in result.all()}
