"""
Rank and salary evaluator.

Monthly run. For every user: total the completed deposit principal of the
whole downline, map it to a salary rank, credit the monthly salary once per
calendar month, and settle fast-track tiers the rank unlocks. Each user is
evaluated in its own transaction.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from income_engine.config.payout_schedules import (
    FAST_TRACK_TIERS_V1,
    SALARY_RANKS_V1,
    FastTrackTier,
    RankTable,
    SalaryRank,
)
from income_engine.models.enums import IncomeSource, SourceType, UserRewardStatus
from income_engine.models.reward import RewardTier
from income_engine.repositories.deposit_repository import DepositRepository
from income_engine.repositories.reward_repository import (
    RewardTierRepository,
    UserRewardRepository,
)
from income_engine.repositories.user_repository import UserRepository
from income_engine.services.distribution.idempotency import (
    DistributionGuard,
    fast_track_key,
    salary_key,
)
from income_engine.services.ledger import LedgerService
from income_engine.services.sponsor import SponsorChainResolver
from income_engine.utils.datetime_utils import Clock, ensure_utc, period_key, utc_now


@dataclass
class SalarySummary:
    """Aggregate of one monthly rank run."""

    period: str
    users_evaluated: int = 0
    ranked_users: int = 0
    salaries_paid: int = 0
    salary_total: Decimal = Decimal("0")
    fast_track_achieved: int = 0
    fast_track_expired: int = 0
    fast_track_total: Decimal = Decimal("0")
    users_failed: int = 0

    @property
    def success(self) -> bool:
        """True when every user was evaluated."""
        return self.users_failed == 0

    def as_dict(self) -> dict[str, Any]:
        """Serializable form for job logs."""
        return {
            "period": self.period,
            "success": self.success,
            "users_evaluated": self.users_evaluated,
            "ranked_users": self.ranked_users,
            "salaries_paid": self.salaries_paid,
            "salary_total": str(self.salary_total),
            "fast_track_achieved": self.fast_track_achieved,
            "fast_track_expired": self.fast_track_expired,
            "fast_track_total": str(self.fast_track_total),
            "users_failed": self.users_failed,
        }


@dataclass
class _UserOutcome:
    rank: SalaryRank | None = None
    salary: Decimal = Decimal("0")
    achieved: int = 0
    expired: int = 0
    fast_track_total: Decimal = Decimal("0")


class RankSalaryEvaluator:
    """Evaluates ranks, pays salaries and fast-track bonuses."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        clock: Clock = utc_now,
        rank_table: RankTable = SALARY_RANKS_V1,
        tier_seed: tuple[FastTrackTier, ...] = FAST_TRACK_TIERS_V1,
    ) -> None:
        self.session_maker = session_maker
        self.clock = clock
        self.rank_table = rank_table
        self.tier_seed = tier_seed

    async def run(self) -> SalarySummary:
        """
        Evaluate every user for the current month.

        Returns:
            Run summary; a second run in the same month pays nothing
        """
        now = self.clock()
        summary = SalarySummary(period=period_key(now))

        async with self.session_maker() as session:
            async with session.begin():
                tier_repo = RewardTierRepository(session)
                seeded = await tier_repo.seed(self.tier_seed)
                if seeded:
                    logger.info(f"Seeded {seeded} fast-track reward tiers")
                tiers = await tier_repo.get_all_ordered()
            user_ids = await UserRepository(session).get_all_ids()

        logger.info(
            "Rank evaluation started",
            extra={"period": summary.period, "users": len(user_ids)},
        )

        for user_id in user_ids:
            try:
                async with self.session_maker() as session:
                    async with session.begin():
                        outcome = await self.evaluate_user(session, user_id, tiers, now)
            except Exception:
                logger.exception(
                    "Rank evaluation failed, user rolled back",
                    extra={"user_id": user_id, "period": summary.period},
                )
                summary.users_failed += 1
                continue

            summary.users_evaluated += 1
            if outcome.rank is not None:
                summary.ranked_users += 1
            if outcome.salary > 0:
                summary.salaries_paid += 1
                summary.salary_total += outcome.salary
            summary.fast_track_achieved += outcome.achieved
            summary.fast_track_expired += outcome.expired
            summary.fast_track_total += outcome.fast_track_total

        logger.info("Rank evaluation finished", extra=summary.as_dict())
        return summary

    async def downline_volume(self, session: AsyncSession, user_id: int) -> Decimal:
        """Sum of completed deposit principal across user's whole downline."""
        downline = await SponsorChainResolver(session).get_downline_ids(user_id)
        return await DepositRepository(session).sum_completed_for_users(downline)

    async def evaluate_user(
        self,
        session: AsyncSession,
        user_id: int,
        tiers: list[RewardTier],
        now: datetime,
    ) -> _UserOutcome:
        """
        Evaluate one user inside the caller's transaction.

        Args:
            session: Session with an open transaction
            user_id: User to evaluate
            tiers: Fast-track tiers
            now: Evaluation time

        Returns:
            What was paid and settled for the user
        """
        outcome = _UserOutcome()
        user = await UserRepository(session).get_by_id(user_id)
        if user is None:
            return outcome

        volume = await self.downline_volume(session, user_id)
        rank = self.rank_table.rank_for_volume(volume)
        if rank is None:
            return outcome
        outcome.rank = rank

        guard = DistributionGuard(session)
        ledger = LedgerService(session, self.clock)
        period = period_key(now)

        key = salary_key(user_id, period)
        if not await guard.key_used(key):
            await ledger.apply_credit(
                user_id,
                rank.salary,
                IncomeSource.SALARY_INCOME,
                description=f"Monthly salary {period}, rank {rank.rank}",
                correlation_key=key,
                source_type=SourceType.SALARY_PERIOD,
            )
            outcome.salary = rank.salary
            logger.info(
                "Salary credited",
                extra={
                    "user_id": user_id,
                    "rank": rank.rank,
                    "volume": str(volume),
                    "salary": str(rank.salary),
                    "period": period,
                },
            )

        reward_repo = UserRewardRepository(session)
        rewards = await reward_repo.get_for_user(user_id)
        joined = ensure_utc(user.created_at)

        for tier in tiers:
            if tier.rank_required > rank.rank:
                continue
            reward = rewards.get(tier.id)
            if reward is not None and reward.status != UserRewardStatus.IN_PROGRESS.value:
                continue
            if reward is None:
                reward = await reward_repo.create(user_id=user_id, tier_id=tier.id)

            deadline = joined + timedelta(days=tier.timeframe_days)
            if ensure_utc(now) <= deadline:
                await ledger.apply_credit(
                    user_id,
                    tier.bonus_amount,
                    IncomeSource.FAST_TRACK_REWARD,
                    description=f"{tier.name} reward",
                    correlation_key=fast_track_key(user_id, tier.id),
                    source_type=SourceType.REWARD_TIER,
                    source_id=tier.id,
                )
                reward.status = UserRewardStatus.ACHIEVED.value
                reward.achieved_at = now
                outcome.achieved += 1
                outcome.fast_track_total += tier.bonus_amount
                logger.info(
                    "Fast-track reward achieved",
                    extra={"user_id": user_id, "tier": tier.name},
                )
            else:
                reward.status = UserRewardStatus.EXPIRED.value
                outcome.expired += 1
                logger.info(
                    "Fast-track reward expired",
                    extra={"user_id": user_id, "tier": tier.name},
                )

        await session.flush()
        return outcome
