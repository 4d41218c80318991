"""
Scheduled entry points.

Coroutines used by the job actors, callable without arguments. Each returns
a plain dict summary for logging.
"""

from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from income_engine.config.settings import settings
from income_engine.services.distribution.referral_distribution_service import (
    ReferralIncomeDistributor,
)
from income_engine.services.distribution.trading_bonus_service import (
    TradingBonusService,
)
from income_engine.services.rank.rank_evaluator import RankSalaryEvaluator


def _default_session_maker() -> async_sessionmaker[AsyncSession]:
    from income_engine.config.database import async_session_maker

    return async_session_maker


async def run_daily_distribution(
    session_maker: async_sessionmaker[AsyncSession] | None = None,
) -> dict[str, Any]:
    """Distribute every pending deposit cycle."""
    session_maker = session_maker or _default_session_maker()
    summary = await ReferralIncomeDistributor(session_maker).run()
    return summary.as_dict()


async def run_monthly_distribution(
    session_maker: async_sessionmaker[AsyncSession] | None = None,
) -> dict[str, Any]:
    """
    Monthly run: salaries and fast-track rewards, then trading bonuses when
    enabled.
    """
    session_maker = session_maker or _default_session_maker()
    result: dict[str, Any] = {}

    salary = await RankSalaryEvaluator(session_maker).run()
    result["salary"] = salary.as_dict()

    if settings.trading_bonus_enabled:
        service = TradingBonusService(session_maker)
        credited = await service.credit_monthly_trading_bonuses()
        distributed = await service.distribute_trading_bonus_referrals()
        result["trading_bonus"] = credited.as_dict()
        result["trading_bonus_referral"] = distributed.as_dict()
    else:
        logger.debug("Trading bonus disabled, skipping")

    return result
