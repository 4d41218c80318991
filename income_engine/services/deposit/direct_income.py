"""
Direct income.

One-time commission to the direct sponsor when a user's first deposit is
approved.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.config.payout_schedules import DIRECT_INCOME_V1, PayoutSchedule
from income_engine.models.deposit import Deposit
from income_engine.models.enums import IncomeSource, SourceType
from income_engine.services.distribution.deposit_cycles import level_payout
from income_engine.services.distribution.idempotency import (
    DistributionGuard,
    direct_income_key,
)
from income_engine.services.ledger import LedgerService
from income_engine.services.sponsor import SponsorChainResolver
from income_engine.utils.datetime_utils import Clock, utc_now


class DirectIncomePayer:
    """Pays the direct sponsor a share of the first deposit."""

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock = utc_now,
        schedule: PayoutSchedule = DIRECT_INCOME_V1,
    ) -> None:
        self.session = session
        self.schedule = schedule
        self.ledger = LedgerService(session, clock)
        self.guard = DistributionGuard(session)
        self.resolver = SponsorChainResolver(session)

    async def pay_for_first_deposit(self, deposit: Deposit) -> Decimal:
        """
        Credit the schedule's levels for the depositor's first deposit.

        Caller decides that deposit is the first one; the correlation key
        keeps the payment once per depositor regardless.

        Args:
            deposit: Approved deposit

        Returns:
            Total paid (zero for a root user or if already paid)
        """
        chain = await self.resolver.resolve_chain(deposit.user_id, self.schedule.depth)
        if not chain:
            return Decimal("0")

        total = Decimal("0")
        for link in chain:
            payout = level_payout(deposit.amount, self.schedule.percentage_for(link.level))
            if payout <= 0:
                continue

            key = direct_income_key(deposit.user_id, link.level)
            if await self.guard.key_used(key):
                continue

            await self.ledger.apply_credit(
                link.ancestor_id,
                payout,
                IncomeSource.DIRECT_INCOME,
                description=f"Direct income from first deposit of user #{deposit.user_id}",
                correlation_key=key,
                referral_level=link.level,
                source_user_id=deposit.user_id,
                source_type=SourceType.DEPOSIT,
                source_id=deposit.id,
            )
            total += payout

        if total > 0:
            logger.info(
                "Direct income paid",
                extra={
                    "deposit_id": deposit.id,
                    "user_id": deposit.user_id,
                    "amount": str(total),
                },
            )
        return total
