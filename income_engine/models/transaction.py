"""
Transaction model.

Append-only ledger entry / audit record.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from income_engine.models.base import Base
from income_engine.models.enums import BalanceField, TransactionStatus
from income_engine.models.types import MoneyType


class Transaction(Base):
    """
    Transaction entity.

    Rows are never edited except for a status transition out of pending.
    Correctness checks use ``correlation_key`` (unique), never the
    human-readable ``description``.

    Attributes:
        id: Primary key
        user_id: Owner of the entry
        amount: Signed amount (credits positive, debits negative)
        direction: credit / debit
        income_source: Categorical source tag (IncomeSource)
        balance_field: Wallet balance the entry applies to
        description: Audit prose
        status: pending / completed / failed
        referral_level: Upline level for referral payouts
        source_user_id: User whose event produced the payout
        source_type: Kind of originating event (SourceType)
        source_id: Id of the originating event
        cycle_number: Accrual cycle of the originating deposit
        correlation_key: Structured idempotency key
        created_at: Creation time
    """

    __tablename__ = "transactions"
    __table_args__ = (
        Index('idx_transaction_user_source', 'user_id', 'income_source'),
        Index('idx_transaction_source_event', 'source_type', 'source_id'),
        Index('idx_transaction_source_created', 'income_source', 'created_at'),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    direction: Mapped[str] = mapped_column(String(10), nullable=False)
    income_source: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True
    )
    balance_field: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BalanceField.BALANCE.value
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TransactionStatus.COMPLETED.value,
        index=True,
    )

    # Referral annotations
    referral_level: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    source_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Structured origin
    source_type: Mapped[str | None] = mapped_column(
        String(30), nullable=True
    )
    source_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cycle_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    correlation_key: Mapped[str | None] = mapped_column(
        String(120), nullable=True, unique=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(id={self.id}, user_id={self.user_id}, "
            f"amount={self.amount}, source={self.income_source}, "
            f"status={self.status})>"
        )
