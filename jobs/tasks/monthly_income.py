"""
Monthly income task.

Pays rank salaries and fast-track rewards, then trading bonuses when they
are enabled. Runs on the first day of each month.
"""

from decimal import Decimal

import dramatiq
from loguru import logger

import jobs.broker  # noqa: F401
from income_engine.services.distribution.cycle_runner import run_monthly_distribution
from income_engine.utils.distributed_lock import LockNotAcquiredError, run_with_lock
from income_engine.utils.formatters import format_usd
from jobs.async_runner import run_async
from jobs.utils.database import task_session_maker

LOCK_KEY = "monthly_income_distribution"
LOCK_TIMEOUT = 3600


@dramatiq.actor(max_retries=3, time_limit=3_600_000)
def process_monthly_income() -> None:
    """Run salary, fast-track and trading bonus payouts for the month."""
    logger.info("Starting monthly income processing...")

    try:
        result = run_async(
            run_with_lock(
                LOCK_KEY,
                LOCK_TIMEOUT,
                lambda: run_monthly_distribution(task_session_maker),
            )
        )
    except LockNotAcquiredError:
        logger.warning("Monthly income processing already running, skipped")
        return

    salary = result["salary"]
    logger.info(
        f"Monthly salaries for {salary['period']}: "
        f"{salary['salaries_paid']} paid, "
        f"total {format_usd(Decimal(salary['salary_total']))}; "
        f"fast-track {salary['fast_track_achieved']} achieved, "
        f"{salary['fast_track_expired']} expired"
    )
    if not salary["success"]:
        logger.error(f"Rank evaluation failed for {salary['users_failed']} users")

    bonus = result.get("trading_bonus_referral")
    if bonus is not None:
        logger.info(
            f"Trading bonus referrals: {bonus['payouts_count']} payouts, "
            f"total {format_usd(Decimal(bonus['total_distributed']))}"
        )
