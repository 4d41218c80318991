"""
User balance and income statistics.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.repositories.deposit_repository import DepositRepository
from income_engine.repositories.transaction_repository import TransactionRepository
from income_engine.repositories.wallet_repository import WalletRepository
from income_engine.utils.datetime_utils import utc_now


class UserStatisticsMixin:
    """Balance views derived from wallets, deposits and the ledger."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user statistics mixin."""
        self.session = session
        self.wallet_repo = WalletRepository(session)
        self.deposit_repo = DepositRepository(session)
        self.transaction_repo = TransactionRepository(session)

    async def get_withdrawable_balance(
        self, user_id: int, now: datetime | None = None
    ) -> Decimal:
        """
        Balance minus locked principal minus pending withdrawals.

        Never negative.
        """
        summary = await self.get_balance_summary(user_id, now)
        return summary["withdrawable"]

    async def get_balance_summary(
        self, user_id: int, now: datetime | None = None
    ) -> dict[str, Any]:
        """
        Get wallet balances with locked and pending amounts.

        Args:
            user_id: User ID
            now: Time used for the lock check

        Returns:
            Dict with balance, package_balance, locked_principal,
            pending_withdrawals and withdrawable
        """
        now = now or utc_now()
        balances = await self.wallet_repo.get_balances(user_id)
        balance, package_balance = balances or (Decimal("0"), Decimal("0"))

        locked = await self.deposit_repo.sum_locked_principal(user_id, now)
        pending = await self.transaction_repo.sum_pending_withdrawals(user_id)
        withdrawable = max(Decimal(balance) - locked - pending, Decimal("0"))

        return {
            "balance": Decimal(balance),
            "package_balance": Decimal(package_balance),
            "locked_principal": locked,
            "pending_withdrawals": pending,
            "withdrawable": withdrawable,
        }

    async def get_income_breakdown(self, user_id: int) -> dict[str, Decimal]:
        """Completed totals per income source (debits negative)."""
        return await self.transaction_repo.sum_completed_by_source(user_id)
