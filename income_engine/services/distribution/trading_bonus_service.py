"""
Trading bonus service.

Monthly, opt-in. Credits each active deposit owner a trading bonus for the
calendar month, then pays each undistributed bonus up the owner's chain with
the 20-level trading bonus schedule.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from income_engine.config.payout_schedules import (
    TRADING_BONUS_REFERRAL_V1,
    PayoutSchedule,
)
from income_engine.config.settings import settings
from income_engine.models.enums import IncomeSource, SourceType
from income_engine.repositories.deposit_repository import DepositRepository
from income_engine.repositories.transaction_repository import TransactionRepository
from income_engine.services.distribution.idempotency import (
    DistributionGuard,
    trading_bonus_key,
    trading_bonus_referral_key,
)
from income_engine.services.distribution.summary import (
    CycleResult,
    DistributionSummary,
)
from income_engine.services.distribution.upline_payer import UplinePayer, UplineUnit
from income_engine.services.ledger import LedgerService
from income_engine.utils.datetime_utils import Clock, period_key, utc_now
from income_engine.utils.formatters import round2

BONUS_CYCLE = 1


def _bonus_level_key(unit: UplineUnit, level: int) -> str:
    return trading_bonus_referral_key(unit.source_id, level)


class TradingBonusService:
    """Monthly trading bonus crediting and upline distribution."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        clock: Clock = utc_now,
        schedule: PayoutSchedule = TRADING_BONUS_REFERRAL_V1,
        max_depth: int | None = None,
        monthly_percent: Decimal | None = None,
    ) -> None:
        self.session_maker = session_maker
        self.clock = clock
        self.schedule = schedule
        self.max_depth = (
            settings.trading_bonus_max_depth if max_depth is None else max_depth
        )
        self.monthly_percent = (
            settings.monthly_profit_percent if monthly_percent is None else monthly_percent
        )

    async def credit_monthly_trading_bonuses(self) -> DistributionSummary:
        """
        Credit this month's trading bonus for every active deposit.

        One transaction per deposit; a deposit already credited this month
        is skipped.

        Returns:
            Summary where each unit is one deposit
        """
        now = self.clock()
        period = period_key(now)
        summary = DistributionSummary(name="trading_bonus")

        async with self.session_maker() as session:
            deposits = await DepositRepository(session).get_active(now)
            pending = [
                (deposit.id, deposit.user_id, deposit.amount) for deposit in deposits
            ]

        summary.sources_scanned = len(pending)
        summary.units_discovered = len(pending)

        for deposit_id, user_id, amount in pending:
            bonus = round2(amount * self.monthly_percent / Decimal("100"))
            result = CycleResult(
                source_type=SourceType.DEPOSIT.value,
                source_id=deposit_id,
                user_id=user_id,
                cycle_number=BONUS_CYCLE,
                principal=bonus,
            )
            key = trading_bonus_key(deposit_id, period)

            try:
                async with self.session_maker() as session:
                    async with session.begin():
                        if await DistributionGuard(session).key_used(key):
                            result.status = "skipped"
                        elif bonus > 0:
                            await LedgerService(session, self.clock).apply_credit(
                                user_id,
                                bonus,
                                IncomeSource.TRADING_BONUS,
                                description=(
                                    f"Trading bonus {period} for deposit #{deposit_id}"
                                ),
                                correlation_key=key,
                                source_type=SourceType.DEPOSIT,
                                source_id=deposit_id,
                            )
                            result.payouts_count = 1
                            result.total_distributed = bonus
            except Exception as e:
                logger.exception(
                    "Trading bonus credit failed",
                    extra={"deposit_id": deposit_id, "period": period},
                )
                result.status = "failed"
                result.error = f"{type(e).__name__}: {e}"

            summary.add(result)

        logger.info(
            "Trading bonuses credited",
            extra={
                "period": period,
                "credited": summary.payouts_count,
                "skipped": summary.units_skipped,
                "failed": summary.units_failed,
                "total": str(summary.total_distributed),
            },
        )
        return summary

    async def distribute_trading_bonus_referrals(self) -> DistributionSummary:
        """
        Pay every undistributed trading bonus up its owner's chain.

        A bonus whose unit failed in an earlier month is picked up again.

        Returns:
            Summary where each unit is one bonus transaction
        """
        summary = DistributionSummary(name="trading_bonus_referral")

        async with self.session_maker() as session:
            bonuses = await TransactionRepository(session).get_undistributed_by_source(
                IncomeSource.TRADING_BONUS, SourceType.TRADING_BONUS, BONUS_CYCLE
            )
            units = [
                UplineUnit(
                    source_type=SourceType.TRADING_BONUS,
                    source_id=bonus.id,
                    user_id=bonus.user_id,
                    cycle_number=BONUS_CYCLE,
                    principal=bonus.amount,
                )
                for bonus in bonuses
            ]

        summary.sources_scanned = len(bonuses)
        summary.units_discovered = len(units)

        for unit in units:
            summary.add(await self._distribute_bonus(unit))

        logger.info(
            "Trading bonus referrals distributed",
            extra={
                "bonuses": summary.units_processed,
                "payouts": summary.payouts_count,
                "failed": summary.units_failed,
                "total_distributed": str(summary.total_distributed),
            },
        )
        return summary

    async def _distribute_bonus(self, unit: UplineUnit) -> CycleResult:
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
                    if await DistributionGuard(session).cycle_distributed(
                        unit.source_type, unit.source_id, unit.cycle_number
                    ):
                        result.status = "skipped"
                        return result
                    payer = UplinePayer(
                        session,
                        schedule=self.schedule,
                        max_depth=self.max_depth,
                        key_for_level=_bonus_level_key,
                        clock=self.clock,
                    )
                    payout = await payer.pay(
                        unit,
                        description=f"Referral income from trading bonus #{unit.source_id}",
                    )
        except Exception as e:
            logger.exception(
                "Trading bonus distribution failed, unit rolled back",
                extra={"bonus_transaction_id": unit.source_id, "user_id": unit.user_id},
            )
            result.status = "failed"
            result.error = f"{type(e).__name__}: {e}"
            return result

        result.payouts_count = payout.payouts_count
        result.total_distributed = payout.total_distributed
        return result
