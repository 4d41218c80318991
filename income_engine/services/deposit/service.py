"""
Deposit service.

Creation, admin approval and rejection of deposits. Settlement is manual:
an admin checks the on-chain payment before approving.
"""

from datetime import timedelta
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.config.settings import settings
from income_engine.models.deposit import Deposit
from income_engine.models.enums import DepositStatus, IncomeSource, SourceType
from income_engine.repositories.deposit_repository import DepositRepository
from income_engine.repositories.user_repository import UserRepository
from income_engine.services.deposit.direct_income import DirectIncomePayer
from income_engine.services.distribution.idempotency import deposit_credit_key
from income_engine.services.ledger import LedgerService
from income_engine.utils.datetime_utils import Clock, utc_now
from income_engine.utils.db_decorators import with_auto_commit
from income_engine.utils.exceptions import (
    DepositStateError,
    InvalidAmountError,
    UserNotFoundError,
)


class DepositService:
    """Deposit lifecycle: pending -> completed | rejected."""

    def __init__(self, session: AsyncSession, clock: Clock = utc_now) -> None:
        """Initialize deposit service."""
        self.session = session
        self.clock = clock
        self.deposit_repo = DepositRepository(session)
        self.user_repo = UserRepository(session)
        self.ledger = LedgerService(session, clock)
        self.direct_income = DirectIncomePayer(session, clock)

    @with_auto_commit
    async def create_deposit(
        self,
        user_id: int,
        amount: Decimal,
        network: str | None = None,
    ) -> Deposit:
        """
        Create pending deposit.

        Args:
            user_id: Depositor
            amount: Principal
            network: Chain the payment was sent on (BEP20, TRC20, ...)

        Returns:
            Pending deposit

        Raises:
            UserNotFoundError: If user does not exist
            InvalidAmountError: If amount is below the minimum
        """
        if amount < settings.minimum_deposit_amount:
            raise InvalidAmountError(
                f"Minimum deposit is {settings.minimum_deposit_amount}, got {amount}"
            )
        if not await self.user_repo.exists(id=user_id):
            raise UserNotFoundError(f"User {user_id} not found")

        deposit = await self.deposit_repo.create(
            user_id=user_id,
            amount=amount,
            network=network,
            status=DepositStatus.PENDING.value,
            created_at=self.clock(),
        )

        logger.info(
            "Deposit created",
            extra={"deposit_id": deposit.id, "user_id": user_id, "amount": str(amount)},
        )
        return deposit

    @with_auto_commit
    async def approve_deposit(self, deposit_id: int) -> Deposit:
        """
        Approve pending deposit.

        Completes the deposit, starts its lock period, credits the principal
        to the owner's balance and, for the owner's first completed deposit,
        pays direct income to the sponsor.

        Args:
            deposit_id: Deposit ID

        Returns:
            Completed deposit

        Raises:
            DepositStateError: If deposit is missing or not pending
        """
        deposit = await self._get_pending(deposit_id)
        now = self.clock()

        deposit.status = DepositStatus.COMPLETED.value
        deposit.approved_at = now
        deposit.unlock_date = now + timedelta(days=settings.deposit_lock_days)
        await self.session.flush()

        await self.ledger.apply_credit(
            deposit.user_id,
            deposit.amount,
            IncomeSource.DEPOSIT,
            description=f"Deposit #{deposit.id} approved",
            correlation_key=deposit_credit_key(deposit.id),
            source_type=SourceType.DEPOSIT,
            source_id=deposit.id,
        )

        previous = await self.deposit_repo.count_completed(
            deposit.user_id, exclude_id=deposit.id
        )
        direct_income = Decimal("0")
        if previous == 0:
            direct_income = await self.direct_income.pay_for_first_deposit(deposit)

        logger.info(
            "Deposit approved",
            extra={
                "deposit_id": deposit.id,
                "user_id": deposit.user_id,
                "amount": str(deposit.amount),
                "first_deposit": previous == 0,
                "direct_income": str(direct_income),
            },
        )
        return deposit

    @with_auto_commit
    async def reject_deposit(self, deposit_id: int) -> Deposit:
        """
        Reject pending deposit. No balance changes.

        Raises:
            DepositStateError: If deposit is missing or not pending
        """
        deposit = await self._get_pending(deposit_id)
        deposit.status = DepositStatus.REJECTED.value
        await self.session.flush()

        logger.info(
            "Deposit rejected",
            extra={"deposit_id": deposit.id, "user_id": deposit.user_id},
        )
        return deposit

    async def get_user_deposits(self, user_id: int) -> list[Deposit]:
        """Get all deposits of a user."""
        return await self.deposit_repo.get_by_user(user_id)

    async def _get_pending(self, deposit_id: int) -> Deposit:
        deposit = await self.deposit_repo.get_for_update(deposit_id)
        if deposit is None:
            raise DepositStateError(f"Deposit {deposit_id} not found")
        if deposit.status != DepositStatus.PENDING.value:
            raise DepositStateError(
                f"Deposit {deposit_id} is {deposit.status}, expected pending"
            )
        return deposit
