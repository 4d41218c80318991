"""
P2P transfer service.

Moves package balance between users. The sender pays the amount plus the
platform fee; the recipient receives the amount.
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.config.settings import settings
from income_engine.models.enums import BalanceField, IncomeSource, SourceType
from income_engine.repositories.user_repository import UserRepository
from income_engine.services.ledger import LedgerService
from income_engine.utils.datetime_utils import Clock, utc_now
from income_engine.utils.db_decorators import with_auto_commit
from income_engine.utils.exceptions import (
    InvalidAmountError,
    SelfTransferError,
    UserNotFoundError,
)
from income_engine.utils.formatters import format_percent, round2


@dataclass
class TransferResult:
    """Ledger rows written by one transfer."""

    sender_id: int
    recipient_id: int
    amount: Decimal
    fee: Decimal
    sent_transaction_id: int
    received_transaction_id: int


class TransferService:
    """Peer-to-peer package balance transfers."""

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock = utc_now,
        fee_percent: Decimal | None = None,
    ) -> None:
        """
        Initialize transfer service.

        Args:
            session: Database session
            clock: Time oracle
            fee_percent: Platform fee (settings.p2p_fee_percent)
        """
        self.session = session
        self.user_repo = UserRepository(session)
        self.ledger = LedgerService(session, clock)
        self.fee_percent = (
            settings.p2p_fee_percent if fee_percent is None else fee_percent
        )

    def calculate_fee(self, amount: Decimal) -> Decimal:
        """Platform fee for amount, rounded to cents."""
        return round2(amount * self.fee_percent / Decimal("100"))

    @with_auto_commit
    async def transfer(
        self,
        sender_id: int,
        recipient_referral_code: str,
        amount: Decimal,
    ) -> TransferResult:
        """
        Transfer package balance to another user.

        Args:
            sender_id: Paying user
            recipient_referral_code: Referral code of the receiver
            amount: Amount the receiver gets

        Returns:
            Transfer result

        Raises:
            InvalidAmountError: If amount is not positive
            UserNotFoundError: If sender or recipient does not exist
            SelfTransferError: If sender and recipient are the same user
            InsufficientBalanceError: If package balance cannot cover amount + fee
        """
        if amount <= 0:
            raise InvalidAmountError(f"Transfer amount must be positive, got {amount}")

        sender = await self.user_repo.get_by_id(sender_id)
        if sender is None:
            raise UserNotFoundError(f"User {sender_id} not found")
        recipient = await self.user_repo.get_by_referral_code(recipient_referral_code)
        if recipient is None:
            raise UserNotFoundError(
                f"No user with referral code {recipient_referral_code}"
            )
        if recipient.id == sender.id:
            raise SelfTransferError("Cannot transfer to yourself")

        fee = self.calculate_fee(amount)

        sent = await self.ledger.apply_debit(
            sender.id,
            amount,
            IncomeSource.P2P_TRANSFER_SENT,
            description=f"Transfer to {recipient.referral_code}",
            balance_field=BalanceField.PACKAGE_BALANCE,
            source_user_id=recipient.id,
            source_type=SourceType.TRANSFER,
        )
        if fee > 0:
            await self.ledger.apply_debit(
                sender.id,
                fee,
                IncomeSource.PLATFORM_FEE,
                description=f"P2P transfer fee ({format_percent(self.fee_percent)})",
                balance_field=BalanceField.PACKAGE_BALANCE,
                source_type=SourceType.TRANSFER,
                source_id=sent.id,
            )
        received = await self.ledger.apply_credit(
            recipient.id,
            amount,
            IncomeSource.P2P_TRANSFER_RECEIVED,
            description=f"Transfer from {sender.referral_code}",
            balance_field=BalanceField.PACKAGE_BALANCE,
            source_user_id=sender.id,
            source_type=SourceType.TRANSFER,
            source_id=sent.id,
        )

        logger.info(
            "P2P transfer completed",
            extra={
                "sender_id": sender.id,
                "recipient_id": recipient.id,
                "amount": str(amount),
                "fee": str(fee),
            },
        )
        return TransferResult(
            sender_id=sender.id,
            recipient_id=recipient.id,
            amount=amount,
            fee=fee,
            sent_transaction_id=sent.id,
            received_transaction_id=received.id,
        )
