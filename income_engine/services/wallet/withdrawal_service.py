"""
Withdrawal service.

Requests are recorded as pending debits; money leaves the wallet only when
an admin approves the request.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.config.settings import settings
from income_engine.models.enums import IncomeSource, TransactionStatus
from income_engine.models.transaction import Transaction
from income_engine.repositories.user_repository import UserRepository
from income_engine.repositories.wallet_repository import WalletRepository
from income_engine.services.ledger import LedgerService
from income_engine.services.user import UserService
from income_engine.utils.datetime_utils import Clock, utc_now
from income_engine.utils.db_decorators import with_auto_commit
from income_engine.utils.exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    TransactionStateError,
    UserNotFoundError,
)


def validate_withdrawal_amount(amount: Decimal) -> None:
    """
    Check withdrawal amount rules.

    Raises:
        InvalidAmountError: If below the minimum or not a multiple of the step
    """
    if amount < settings.minimum_withdrawal_amount:
        raise InvalidAmountError(
            f"Minimum withdrawal is {settings.minimum_withdrawal_amount}, got {amount}"
        )
    if amount % settings.withdrawal_step != 0:
        raise InvalidAmountError(
            f"Withdrawal must be a multiple of {settings.withdrawal_step}, got {amount}"
        )


class WithdrawalService:
    """Withdrawal request lifecycle."""

    def __init__(self, session: AsyncSession, clock: Clock = utc_now) -> None:
        """Initialize withdrawal service."""
        self.session = session
        self.clock = clock
        self.user_repo = UserRepository(session)
        self.ledger = LedgerService(session, clock)
        self.wallet_repo = WalletRepository(session)
        self.users = UserService(session)

    @with_auto_commit
    async def request_withdrawal(self, user_id: int, amount: Decimal) -> Transaction:
        """
        Create pending withdrawal.

        Args:
            user_id: Wallet owner
            amount: Requested amount

        Returns:
            Pending withdrawal transaction

        Raises:
            InvalidAmountError: If amount breaks the amount rules
            UserNotFoundError: If user does not exist
            InsufficientBalanceError: If amount exceeds withdrawable balance
        """
        validate_withdrawal_amount(amount)
        if not await self.user_repo.exists(id=user_id):
            raise UserNotFoundError(f"User {user_id} not found")

        await self.wallet_repo.lock_by_user(user_id)
        withdrawable = await self.users.get_withdrawable_balance(
            user_id, self.clock()
        )
        if amount > withdrawable:
            raise InsufficientBalanceError(
                user_id=user_id, requested=amount, available=withdrawable
            )

        transaction = await self.ledger.record_pending_debit(
            user_id,
            amount,
            IncomeSource.WITHDRAWAL,
            description=f"Withdrawal request {amount}",
        )

        logger.info(
            "Withdrawal requested",
            extra={
                "transaction_id": transaction.id,
                "user_id": user_id,
                "amount": str(amount),
            },
        )
        return transaction

    @with_auto_commit
    async def approve_withdrawal(self, transaction_id: int) -> Transaction:
        """
        Settle a pending withdrawal.

        Locked principal is checked again under the wallet lock, so requests
        that were validated concurrently cannot pay out locked deposits.

        Raises:
            TransactionStateError: If not a pending withdrawal
            InsufficientBalanceError: If the free balance no longer covers it
        """
        transaction = await self._check_withdrawal(transaction_id)
        user_id = transaction.user_id
        amount = -Decimal(transaction.amount)

        await self.wallet_repo.lock_by_user(user_id)
        summary = await self.users.get_balance_summary(user_id, self.clock())
        free = summary["balance"] - summary["locked_principal"]
        if amount > free:
            raise InsufficientBalanceError(
                user_id=user_id, requested=amount, available=max(free, Decimal("0"))
            )
        return await self.ledger.settle_pending_debit(transaction_id)

    @with_auto_commit
    async def reject_withdrawal(self, transaction_id: int) -> Transaction:
        """
        Reject a pending withdrawal. No balance changes.

        Raises:
            TransactionStateError: If not a pending withdrawal
        """
        await self._check_withdrawal(transaction_id)
        return await self.ledger.fail_pending(transaction_id)

    async def _check_withdrawal(self, transaction_id: int) -> Transaction:
        transaction = await self.ledger.transaction_repo.get_by_id(transaction_id)
        if transaction is None or transaction.income_source != IncomeSource.WITHDRAWAL.value:
            raise TransactionStateError(
                f"Transaction {transaction_id} is not a withdrawal"
            )
        if transaction.status != TransactionStatus.PENDING.value:
            raise TransactionStateError(
                f"Withdrawal {transaction_id} is {transaction.status}, expected pending"
            )
        return transaction
