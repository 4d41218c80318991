"""
Referral income task.

Distributes completed deposit cycles up the sponsor tree.
Runs once per day.
"""

from decimal import Decimal

import dramatiq
from loguru import logger

import jobs.broker  # noqa: F401
from income_engine.services.distribution.cycle_runner import run_daily_distribution
from income_engine.utils.distributed_lock import LockNotAcquiredError, run_with_lock
from income_engine.utils.formatters import format_usd
from jobs.async_runner import run_async
from jobs.utils.database import task_session_maker

LOCK_KEY = "referral_income_distribution"
LOCK_TIMEOUT = 3600


@dramatiq.actor(max_retries=3, time_limit=3_600_000)  # 1 hour, same as lock
def distribute_referral_income() -> None:
    """
    Distribute every pending deposit cycle.

    Unit failures are rolled back and counted in the summary; they do not
    fail the actor.
    """
    logger.info("Starting referral income distribution...")

    try:
        result = run_async(
            run_with_lock(
                LOCK_KEY,
                LOCK_TIMEOUT,
                lambda: run_daily_distribution(task_session_maker),
            )
        )
    except LockNotAcquiredError:
        logger.warning("Referral income distribution already running, skipped")
        return

    if result["success"]:
        logger.info(
            f"Referral income distribution complete: "
            f"{result['units_processed']} cycles, "
            f"{result['payouts_count']} payouts, "
            f"total: {format_usd(Decimal(result['total_distributed']))}"
        )
    else:
        logger.error(
            f"Referral income distribution finished with "
            f"{result['units_failed']} failed cycles"
        )
