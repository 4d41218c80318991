"""
User model.

Represents a registered platform user and their place in the sponsor tree.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from income_engine.models.base import Base

if TYPE_CHECKING:
    from income_engine.models.wallet import Wallet


class User(Base):
    """User model - platform members."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            'sponsor_id IS NULL OR sponsor_id <> id',
            name='check_user_not_own_sponsor'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Identity (authentication is handled by the identity provider)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    full_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    referral_code: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )

    # Sponsor (set once at creation, never updated)
    sponsor_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Status flags
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    # Relationships
    sponsor: Mapped[Optional["User"]] = relationship(
        "User",
        remote_side=[id],
        foreign_keys=[sponsor_id],
        lazy="raise",
    )
    wallet: Mapped[Optional["Wallet"]] = relationship(
        "Wallet",
        back_populates="user",
        uselist=False,
        lazy="raise",
    )

    @property
    def display_name(self) -> str:
        """Name shown in payout descriptions."""
        return self.full_name or self.email

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, referral_code={self.referral_code}, "
            f"sponsor_id={self.sponsor_id})>"
        )
