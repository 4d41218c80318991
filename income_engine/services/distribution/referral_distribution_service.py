"""
Referral income distribution.

Daily driver for deposit cycles. Each completed cycle of a locked deposit
produces a flat profit that is paid up the owner's sponsor chain. Every
(deposit, cycle) is one database transaction: all levels and the marker
commit together or not at all, and a failed unit does not stop the run.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from income_engine.config.payout_schedules import REFERRAL_INCOME_V2, PayoutSchedule
from income_engine.config.settings import settings
from income_engine.models.enums import SourceType
from income_engine.repositories.deposit_repository import DepositRepository
from income_engine.services.distribution.deposit_cycles import (
    completed_cycles,
    cycle_profit,
)
from income_engine.services.distribution.idempotency import (
    DistributionGuard,
    referral_income_key,
)
from income_engine.services.distribution.summary import (
    CycleResult,
    DistributionSummary,
)
from income_engine.services.distribution.upline_payer import UplinePayer, UplineUnit
from income_engine.utils.datetime_utils import Clock, utc_now


def _deposit_level_key(unit: UplineUnit, level: int) -> str:
    return referral_income_key(unit.source_id, unit.cycle_number, level)


class ReferralIncomeDistributor:
    """Distributes deposit cycle profit to uplines."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        clock: Clock = utc_now,
        schedule: PayoutSchedule = REFERRAL_INCOME_V2,
        max_depth: int | None = None,
        monthly_percent: Decimal | None = None,
        cycle_length_days: int | None = None,
    ) -> None:
        """
        Initialize distributor.

        Args:
            session_maker: Factory for one session per unit
            clock: Time oracle
            schedule: Level percentages
            max_depth: Chain depth cap (settings.referral_max_depth)
            monthly_percent: Cycle rate (settings.monthly_profit_percent)
            cycle_length_days: Days per cycle (settings.cycle_length_days)
        """
        self.session_maker = session_maker
        self.clock = clock
        self.schedule = schedule
        self.max_depth = settings.referral_max_depth if max_depth is None else max_depth
        self.monthly_percent = (
            settings.monthly_profit_percent if monthly_percent is None else monthly_percent
        )
        self.cycle_length_days = (
            settings.cycle_length_days if cycle_length_days is None else cycle_length_days
        )

    async def run(self) -> DistributionSummary:
        """
        Distribute every pending deposit cycle.

        Returns:
            Run summary; a second run on unchanged state finds no units
        """
        now = self.clock()
        summary = DistributionSummary(name="referral_income")

        units = await self.discover(summary)
        summary.units_discovered = len(units)

        logger.info(
            "Referral income run started",
            extra={
                "now": now.isoformat(),
                "deposits": summary.sources_scanned,
                "pending_cycles": len(units),
            },
        )

        for unit in units:
            summary.add(await self.distribute_cycle(unit))

        logger.info(
            "Referral income run finished",
            extra={
                "processed": summary.units_processed,
                "skipped": summary.units_skipped,
                "failed": summary.units_failed,
                "payouts": summary.payouts_count,
                "total_distributed": str(summary.total_distributed),
            },
        )
        return summary

    async def discover(
        self, summary: DistributionSummary | None = None
    ) -> list[UplineUnit]:
        """
        Find deposit cycles that are complete but not yet distributed.

        Returns:
            Units ordered by deposit age, then cycle number
        """
        now = self.clock()
        units: list[UplineUnit] = []

        async with self.session_maker() as session:
            deposits = await DepositRepository(session).get_distributable(
                now, self.cycle_length_days
            )
            guard = DistributionGuard(session)

            for deposit in deposits:
                cycles = completed_cycles(
                    deposit.created_at, now, self.cycle_length_days
                )
                if cycles == 0:
                    continue
                done = await guard.distributed_cycles(SourceType.DEPOSIT, deposit.id)
                profit = cycle_profit(
                    deposit.amount, self.monthly_percent, self.cycle_length_days
                )
                for cycle_number in range(1, cycles + 1):
                    if cycle_number in done:
                        continue
                    units.append(
                        UplineUnit(
                            source_type=SourceType.DEPOSIT,
                            source_id=deposit.id,
                            user_id=deposit.user_id,
                            cycle_number=cycle_number,
                            principal=profit,
                        )
                    )

        if summary is not None:
            summary.sources_scanned = len(deposits)
        return units

    async def distribute_cycle(self, unit: UplineUnit) -> CycleResult:
        """
        Distribute one deposit cycle in its own transaction.

        Args:
            unit: Deposit cycle

        Returns:
            Unit result; failures are logged and reported, never raised
        """
        result = CycleResult(
            source_type=unit.source_type.value,
            source_id=unit.source_id,
            user_id=unit.user_id,
            cycle_number=unit.cycle_number,
            principal=unit.principal,
        )

        try:
            async with self.session_maker() as session:
                async with session.begin():
                    guard = DistributionGuard(session)
                    if await guard.cycle_distributed(
                        unit.source_type, unit.source_id, unit.cycle_number
                    ):
                        result.status = "skipped"
                        return result

                    payer = UplinePayer(
                        session,
                        schedule=self.schedule,
                        max_depth=self.max_depth,
                        key_for_level=_deposit_level_key,
                        clock=self.clock,
                    )
                    payout = await payer.pay(
                        unit,
                        description=(
                            f"Referral income from deposit #{unit.source_id} "
                            f"cycle {unit.cycle_number}"
                        ),
                    )
        except Exception as e:
            logger.exception(
                "Deposit cycle distribution failed, unit rolled back",
                extra={
                    "deposit_id": unit.source_id,
                    "cycle_number": unit.cycle_number,
                    "user_id": unit.user_id,
                },
            )
            result.status = "failed"
            result.error = f"{type(e).__name__}: {e}"
            return result

        result.payouts_count = payout.payouts_count
        result.total_distributed = payout.total_distributed

        logger.info(
            "Deposit cycle distributed",
            extra={
                "deposit_id": unit.source_id,
                "cycle_number": unit.cycle_number,
                "profit": str(unit.principal),
                "payouts": payout.payouts_count,
                "total_distributed": str(payout.total_distributed),
            },
        )
        return result
