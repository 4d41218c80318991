"""
Ledger mutation.

Pairs every balance change with its audit row. Methods run inside the
caller's transaction and never commit; the caller's unit of work decides
whether both effects persist.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.models.enums import (
    BalanceField,
    IncomeSource,
    SourceType,
    TransactionDirection,
    TransactionStatus,
)
from income_engine.models.transaction import Transaction
from income_engine.repositories.transaction_repository import TransactionRepository
from income_engine.repositories.wallet_repository import WalletRepository
from income_engine.utils.datetime_utils import Clock, utc_now
from income_engine.utils.exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    TransactionStateError,
)


class LedgerService:
    """Atomic wallet mutations coupled to transaction records."""

    def __init__(self, session: AsyncSession, clock: Clock = utc_now) -> None:
        """
        Initialize ledger service.

        Args:
            session: Database session (transaction owned by the caller)
            clock: Time oracle for created_at
        """
        self.session = session
        self.clock = clock
        self.wallet_repo = WalletRepository(session)
        self.transaction_repo = TransactionRepository(session)

    async def apply_credit(
        self,
        user_id: int,
        amount: Decimal,
        income_source: IncomeSource,
        *,
        description: str | None = None,
        balance_field: BalanceField = BalanceField.BALANCE,
        correlation_key: str | None = None,
        referral_level: int | None = None,
        source_user_id: int | None = None,
        source_type: SourceType | None = None,
        source_id: int | None = None,
        cycle_number: int | None = None,
    ) -> Transaction:
        """
        Credit a wallet and record the entry.

        Args:
            user_id: Recipient
            amount: Positive amount
            income_source: Source tag
            description: Human readable note
            balance_field: Balance to credit
            correlation_key: Unique idempotency key
            referral_level: Upline level for referral payouts
            source_user_id: User whose event produced the payout
            source_type: Kind of originating event
            source_id: Id of originating event
            cycle_number: Cycle index of originating event

        Returns:
            Created COMPLETED transaction

        Raises:
            InvalidAmountError: If amount is not positive
        """
        if amount <= 0:
            raise InvalidAmountError(f"Credit amount must be positive, got {amount}")

        await self.wallet_repo.ensure_wallet(user_id)
        await self.wallet_repo.increment(user_id, amount, balance_field)

        transaction = await self.transaction_repo.create(
            user_id=user_id,
            amount=amount,
            direction=TransactionDirection.CREDIT.value,
            income_source=income_source.value,
            balance_field=balance_field.value,
            status=TransactionStatus.COMPLETED.value,
            description=description,
            correlation_key=correlation_key,
            referral_level=referral_level,
            source_user_id=source_user_id,
            source_type=source_type.value if source_type else None,
            source_id=source_id,
            cycle_number=cycle_number,
            created_at=self.clock(),
        )

        logger.debug(
            "Ledger credit applied",
            extra={
                "user_id": user_id,
                "amount": str(amount),
                "income_source": income_source.value,
                "correlation_key": correlation_key,
            },
        )
        return transaction

    async def apply_debit(
        self,
        user_id: int,
        amount: Decimal,
        income_source: IncomeSource,
        *,
        description: str | None = None,
        balance_field: BalanceField = BalanceField.BALANCE,
        source_user_id: int | None = None,
        source_type: SourceType | None = None,
        source_id: int | None = None,
    ) -> Transaction:
        """
        Debit a wallet and record the entry.

        Args:
            user_id: Wallet owner
            amount: Positive amount to take
            income_source: Source tag
            description: Human readable note
            balance_field: Balance to debit
            source_user_id: Counterparty
            source_type: Kind of originating event
            source_id: Id of originating event

        Returns:
            Created COMPLETED transaction (negative amount)

        Raises:
            InvalidAmountError: If amount is not positive
            InsufficientBalanceError: If the balance does not cover amount
        """
        if amount <= 0:
            raise InvalidAmountError(f"Debit amount must be positive, got {amount}")

        await self._decrement_or_raise(user_id, amount, balance_field)

        transaction = await self.transaction_repo.create(
            user_id=user_id,
            amount=-amount,
            direction=TransactionDirection.DEBIT.value,
            income_source=income_source.value,
            balance_field=balance_field.value,
            status=TransactionStatus.COMPLETED.value,
            description=description,
            source_user_id=source_user_id,
            source_type=source_type.value if source_type else None,
            source_id=source_id,
            created_at=self.clock(),
        )

        logger.debug(
            "Ledger debit applied",
            extra={
                "user_id": user_id,
                "amount": str(amount),
                "income_source": income_source.value,
            },
        )
        return transaction

    async def record_pending_debit(
        self,
        user_id: int,
        amount: Decimal,
        income_source: IncomeSource,
        *,
        description: str | None = None,
        balance_field: BalanceField = BalanceField.BALANCE,
    ) -> Transaction:
        """
        Record a debit request without moving money.

        Returns:
            Created PENDING transaction (negative amount)
        """
        if amount <= 0:
            raise InvalidAmountError(f"Debit amount must be positive, got {amount}")

        return await self.transaction_repo.create(
            user_id=user_id,
            amount=-amount,
            direction=TransactionDirection.DEBIT.value,
            income_source=income_source.value,
            balance_field=balance_field.value,
            status=TransactionStatus.PENDING.value,
            description=description,
            created_at=self.clock(),
        )

    async def settle_pending_debit(self, transaction_id: int) -> Transaction:
        """
        Take the money for a pending debit and mark it completed.

        Args:
            transaction_id: Pending debit transaction

        Returns:
            Completed transaction

        Raises:
            TransactionStateError: If the row is missing or not a pending debit
            InsufficientBalanceError: If the balance no longer covers it
        """
        transaction = await self._get_pending(transaction_id)
        if transaction.direction != TransactionDirection.DEBIT.value:
            raise TransactionStateError(f"Transaction {transaction_id} is not a debit")

        amount = -transaction.amount
        await self._decrement_or_raise(
            transaction.user_id, amount, BalanceField(transaction.balance_field)
        )
        transaction.status = TransactionStatus.COMPLETED.value
        await self.session.flush()

        logger.info(
            "Pending debit settled",
            extra={
                "transaction_id": transaction_id,
                "user_id": transaction.user_id,
                "amount": str(amount),
            },
        )
        return transaction

    async def fail_pending(self, transaction_id: int) -> Transaction:
        """Mark a pending transaction failed. No balance changes."""
        transaction = await self._get_pending(transaction_id)
        transaction.status = TransactionStatus.FAILED.value
        await self.session.flush()

        logger.info(
            "Pending transaction failed",
            extra={"transaction_id": transaction_id, "user_id": transaction.user_id},
        )
        return transaction

    async def _get_pending(self, transaction_id: int) -> Transaction:
        transaction = await self.transaction_repo.get_for_update(transaction_id)
        if transaction is None:
            raise TransactionStateError(f"Transaction {transaction_id} not found")
        if transaction.status != TransactionStatus.PENDING.value:
            raise TransactionStateError(
                f"Transaction {transaction_id} is {transaction.status}, expected pending"
            )
        return transaction

    async def _decrement_or_raise(
        self, user_id: int, amount: Decimal, balance_field: BalanceField
    ) -> None:
        decremented = await self.wallet_repo.decrement_if_sufficient(
            user_id, amount, balance_field
        )
        if decremented:
            return

        balances = await self.wallet_repo.get_balances(user_id)
        available = None
        if balances is not None:
            available = balances[0] if balance_field == BalanceField.BALANCE else balances[1]
        logger.warning(
            "Debit rejected: insufficient balance",
            extra={
                "user_id": user_id,
                "requested": str(amount),
                "available": str(available),
                "balance_field": balance_field.value,
            },
        )
        raise InsufficientBalanceError(
            user_id=user_id,
            requested=amount,
            available=available,
            balance_field=balance_field.value,
        )
