"""
Fast-track reward models.

RewardTier defines a milestone; UserReward tracks each user's progress.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from income_engine.models.base import Base
from income_engine.models.enums import UserRewardStatus
from income_engine.models.types import MoneyType


class RewardTier(Base):
    """Milestone bonus for reaching a rank within a time box after joining."""

    __tablename__ = "reward_tiers"
    __table_args__ = (
        CheckConstraint(
            'bonus_amount > 0', name='check_reward_tier_bonus_positive'
        ),
        CheckConstraint(
            'timeframe_days > 0', name='check_reward_tier_timeframe_positive'
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    rank_required: Mapped[int] = mapped_column(Integer, nullable=False)
    bonus_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    timeframe_days: Mapped[int] = mapped_column(Integer, nullable=False)


class UserReward(Base):
    """Per-user, per-tier status. Written only by the rank evaluator."""

    __tablename__ = "user_rewards"
    __table_args__ = (
        UniqueConstraint('user_id', 'tier_id', name='uq_user_reward_tier'),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tier_id: Mapped[int] = mapped_column(
        ForeignKey("reward_tiers.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRewardStatus.IN_PROGRESS.value,
    )
    achieved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )
