"""
Upline payer.

Pays one principal amount up a sponsor chain according to a payout schedule
and records the unit marker. Runs inside the caller's transaction; the
caller commits or rolls back the whole unit.
"""

from collections.abc import Callable
from decimal import Decimal
from typing import NamedTuple

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.config.payout_schedules import PayoutSchedule
from income_engine.models.enums import IncomeSource, SourceType
from income_engine.repositories.distribution_marker_repository import (
    DistributionMarkerRepository,
)
from income_engine.services.distribution.deposit_cycles import level_payout
from income_engine.services.distribution.idempotency import DistributionGuard
from income_engine.services.ledger import LedgerService
from income_engine.services.sponsor import SponsorChainResolver
from income_engine.utils.datetime_utils import Clock
from income_engine.utils.formatters import format_percent


class UplineUnit(NamedTuple):
    """One distributable event."""

    source_type: SourceType
    source_id: int
    user_id: int
    cycle_number: int
    principal: Decimal


class UplinePayout(NamedTuple):
    """Totals written for one unit."""

    payouts_count: int
    total_distributed: Decimal


class UplinePayer:
    """Walks the chain, applies per-level credits and marks the unit."""

    def __init__(
        self,
        session: AsyncSession,
        schedule: PayoutSchedule,
        max_depth: int,
        key_for_level: Callable[[UplineUnit, int], str],
        clock: Clock,
    ) -> None:
        self.session = session
        self.schedule = schedule
        self.max_depth = max_depth
        self.key_for_level = key_for_level
        self.guard = DistributionGuard(session)
        self.resolver = SponsorChainResolver(session)
        self.ledger = LedgerService(session, clock)
        self.marker_repo = DistributionMarkerRepository(session)

    async def pay(self, unit: UplineUnit, description: str) -> UplinePayout:
        """
        Distribute unit.principal up the owner's chain.

        Levels with a zero payout and levels already paid are skipped. The
        marker is written even when nothing is paid (root owner).

        Args:
            unit: Event to distribute
            description: Prefix for transaction descriptions

        Returns:
            Count and sum of payouts written
        """
        chain = await self.resolver.resolve_chain(unit.user_id, self.max_depth)

        count = 0
        total = Decimal("0")
        for link in chain:
            percent = self.schedule.percentage_for(link.level)
            payout = level_payout(unit.principal, percent)
            if payout <= 0:
                continue

            correlation_key = self.key_for_level(unit, link.level)
            if await self._level_paid(unit, link.level, correlation_key):
                logger.debug(
                    "Level already paid, skipping",
                    extra={"correlation_key": correlation_key},
                )
                continue

            await self.ledger.apply_credit(
                link.ancestor_id,
                payout,
                IncomeSource.REFERRAL_INCOME,
                description=(
                    f"{description} (level {link.level}, {format_percent(percent)})"
                ),
                correlation_key=correlation_key,
                referral_level=link.level,
                source_user_id=unit.user_id,
                source_type=unit.source_type,
                source_id=unit.source_id,
                cycle_number=unit.cycle_number,
            )
            count += 1
            total += payout

        await self.marker_repo.create(
            source_type=unit.source_type.value,
            source_id=unit.source_id,
            cycle_number=unit.cycle_number,
            principal=unit.principal,
            total_distributed=total,
            payouts_count=count,
            schedule_version=self.schedule.version,
        )

        if not chain:
            logger.info(
                "Owner has no sponsor, unit marked with zero payouts",
                extra={
                    "source_type": unit.source_type.value,
                    "source_id": unit.source_id,
                    "cycle_number": unit.cycle_number,
                    "user_id": unit.user_id,
                },
            )

        return UplinePayout(payouts_count=count, total_distributed=total)

    async def _level_paid(
        self, unit: UplineUnit, level: int, correlation_key: str
    ) -> bool:
        if unit.source_type is SourceType.DEPOSIT:
            return await self.guard.already_paid(
                unit.source_id, unit.cycle_number, level
            )
        return await self.guard.key_used(correlation_key)
