"""
Logging setup.

Configures loguru sinks for the scheduler and worker processes.
Sets up log rotation and retention policies.
"""

import sys
from pathlib import Path

from loguru import logger

from income_engine.config.settings import settings


def setup_logging(component: str) -> None:
    """
    Configure logger with stderr output and file rotation.

    Args:
        component: Process name used for the log file (e.g. "scheduler")
    """
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    Path(settings.log_dir).mkdir(parents=True, exist_ok=True)
    logger.add(
        f"{settings.log_dir}/{component}.log",
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
    )

    logger.info(f"Starting income engine {component}...")
