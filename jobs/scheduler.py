"""
Distribution scheduler.

Enqueues the distribution actors on cron schedules (UTC) and serves the
health endpoints. Workers are started separately:

    dramatiq jobs.tasks.referral_income jobs.tasks.monthly_income
    python -m jobs.scheduler
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from income_engine.config.logging import setup_logging
from income_engine.config.settings import settings
from jobs.health import (
    record_enqueue,
    set_scheduler,
    start_health_server,
    stop_health_server,
)
from jobs.tasks.monthly_income import process_monthly_income
from jobs.tasks.referral_income import distribute_referral_income

REFERRAL_JOB_ID = "referral_income_daily"
MONTHLY_JOB_ID = "monthly_income"


def enqueue_referral_income() -> None:
    """Send the daily distribution to the queue."""
    distribute_referral_income.send()
    record_enqueue(REFERRAL_JOB_ID)
    logger.info("Referral income distribution enqueued")


def enqueue_monthly_income() -> None:
    """Send the monthly salary run to the queue."""
    process_monthly_income.send()
    record_enqueue(MONTHLY_JOB_ID)
    logger.info("Monthly income processing enqueued")


def create_scheduler() -> AsyncIOScheduler:
    """
    Build scheduler with the daily and monthly jobs.

    Returns:
        Configured, not yet started scheduler
    """
    scheduler = AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        enqueue_referral_income,
        CronTrigger(hour=settings.daily_distribution_hour, minute=0, timezone="UTC"),
        id=REFERRAL_JOB_ID,
        name="Daily referral income distribution",
        replace_existing=True,
        misfire_grace_time=3600,
        coalesce=True,
    )
    scheduler.add_job(
        enqueue_monthly_income,
        CronTrigger(
            day=settings.monthly_salary_day,
            hour=settings.monthly_salary_hour,
            minute=0,
            timezone="UTC",
        ),
        id=MONTHLY_JOB_ID,
        name="Monthly salary, fast-track and trading bonus",
        replace_existing=True,
        misfire_grace_time=3600,
        coalesce=True,
    )
    return scheduler


async def main() -> None:
    """Run scheduler until SIGINT/SIGTERM."""
    setup_logging("scheduler")

    scheduler = create_scheduler()
    scheduler.start()
    set_scheduler(scheduler)

    runner = await start_health_server(port=settings.health_check_port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    logger.info("Scheduler started")
    await stop_event.wait()

    logger.info("Shutting down scheduler...")
    scheduler.shutdown(wait=False)
    await stop_health_server(runner)


if __name__ == "__main__":
    asyncio.run(main())
