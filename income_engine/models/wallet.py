"""
Wallet model.

One wallet per user with a withdrawable balance and a package balance.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from income_engine.models.base import Base
from income_engine.models.types import MoneyType

if TYPE_CHECKING:
    from income_engine.models.user import User


class Wallet(Base):
    """
    Wallet entity.

    Balances are changed only through LedgerService, which issues atomic
    increments/decrements paired with a Transaction row.

    Attributes:
        id: Primary key
        user_id: Owner (unique)
        balance: General, withdrawable balance
        package_balance: Restricted balance used for P2P transfers
        updated_at: Last mutation time
    """

    __tablename__ = "wallets"
    __table_args__ = (
        CheckConstraint(
            'balance >= 0', name='check_wallet_balance_non_negative'
        ),
        CheckConstraint(
            'package_balance >= 0',
            name='check_wallet_package_balance_non_negative'
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        index=True,
        nullable=False,
    )

    balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    package_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    user: Mapped["User"] = relationship(
        "User", back_populates="wallet", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Wallet(user_id={self.user_id}, balance={self.balance}, "
            f"package_balance={self.package_balance})>"
        )
