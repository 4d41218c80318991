"""
DistributionMarker model.

Records that one distribution unit (a deposit cycle or a trading bonus)
was committed.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from income_engine.models.base import Base
from income_engine.models.types import MoneyType


class DistributionMarker(Base):
    """
    Marker written in the same transaction as the unit's payouts.

    Its presence means every level of the unit was committed, including
    units that paid nothing (owner without a sponsor).

    Attributes:
        source_type: SourceType of the principal event
        source_id: Deposit id or trading bonus transaction id
        cycle_number: Cycle index (1 for one-shot events)
        principal: Amount the payouts were computed from
        total_distributed: Sum of payouts written
        payouts_count: Number of payout rows written
        schedule_version: Version of the payout schedule used
    """

    __tablename__ = "distribution_markers"
    __table_args__ = (
        UniqueConstraint(
            'source_type', 'source_id', 'cycle_number',
            name='uq_distribution_marker_unit'
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    source_type: Mapped[str] = mapped_column(String(30), nullable=False)
    source_id: Mapped[int] = mapped_column(Integer, nullable=False)
    cycle_number: Mapped[int] = mapped_column(Integer, nullable=False)

    principal: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    total_distributed: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    payouts_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    schedule_version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
