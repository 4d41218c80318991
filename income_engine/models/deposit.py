"""
Deposit model.

Represents user deposits into the platform (principal events).
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from income_engine.models.base import Base
from income_engine.models.enums import DepositStatus
from income_engine.models.types import MoneyType


class Deposit(Base):
    """Deposit model - user deposits.

    Created pending; approval sets status completed, approved_at and
    unlock_date. Cycles are counted from created_at.
    """

    __tablename__ = "deposits"
    __table_args__ = (
        CheckConstraint(
            'amount > 0', name='check_deposit_amount_positive'
        ),
        Index('idx_deposit_status_unlock', 'status', 'unlock_date'),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # User reference
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Deposit details
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    network: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )  # BEP20, TRC20, ...

    # Status
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=DepositStatus.PENDING.value,
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    unlock_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def is_completed(self) -> bool:
        """Check if deposit was approved."""
        return self.status == DepositStatus.COMPLETED.value

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Deposit(id={self.id}, user_id={self.user_id}, "
            f"amount={self.amount}, status={self.status})>"
        )
