"""
Health endpoints for the distribution scheduler.

/health reports each cron job with its next run and the last time it was
enqueued; /liveness only answers that the process is up.
"""

import asyncio
from datetime import datetime
from typing import Any

from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from income_engine.utils.datetime_utils import utc_now

_scheduler: AsyncIOScheduler | None = None
_last_enqueued: dict[str, datetime] = {}


def set_scheduler(scheduler: AsyncIOScheduler | None) -> None:
    """Register the scheduler that /health reports on."""
    global _scheduler
    _scheduler = scheduler
    logger.info("Scheduler registered for health checks")


def record_enqueue(job_id: str) -> None:
    """Remember when a distribution job was last sent to the queue."""
    _last_enqueued[job_id] = utc_now()


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _job_status(job: Any) -> dict[str, Any]:
    return {
        "id": job.id,
        "name": job.name,
        "next_run_time": _isoformat(job.next_run_time),
        "last_enqueued_at": _isoformat(_last_enqueued.get(job.id)),
    }


async def health_handler(request: web.Request) -> web.Response:
    """
    Scheduler status.

    503 until a running scheduler is registered, so orchestrators restart
    a scheduler that silently stopped firing distributions.
    """
    if _scheduler is None:
        return web.json_response(
            {"status": "unhealthy", "error": "Scheduler not initialized"},
            status=503,
        )

    running = _scheduler.running
    jobs = [_job_status(job) for job in _scheduler.get_jobs()]
    return web.json_response(
        {
            "status": "healthy" if running else "stopped",
            "scheduler_running": running,
            "jobs_count": len(jobs),
            "jobs": jobs,
        },
        status=200 if running else 503,
    )


async def liveness_handler(request: web.Request) -> web.Response:
    return web.json_response({"status": "alive", "alive": True})


def create_health_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/health", health_handler)
    app.router.add_get("/liveness", liveness_handler)
    return app


async def start_health_server(host: str = "0.0.0.0", port: int = 8080) -> web.AppRunner:
    """
    Serve the health app in the running loop.

    Returns:
        Runner to pass to stop_health_server
    """
    runner = web.AppRunner(create_health_app())
    await runner.setup()
    await web.TCPSite(runner, host, port).start()
    logger.info(f"Health endpoints on http://{host}:{port}/health")
    return runner


async def stop_health_server(runner: web.AppRunner, timeout: int = 5) -> None:
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
    except TimeoutError:
        logger.warning(f"Health server cleanup timed out after {timeout}s")
    else:
        logger.info("Health server stopped")
