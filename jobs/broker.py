"""
Dramatiq broker configuration.

Redis-based message broker for the distribution actors. Importing this
module installs the broker globally; actor modules import it first.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from income_engine.config.settings import Settings, settings

# Retries only covers crashes; business failures are reported in run summaries
RETRY_MIN_BACKOFF_MS = 5_000
RETRY_MAX_BACKOFF_MS = 300_000


def create_broker(config: Settings = settings) -> RedisBroker:
    """
    Build the Redis broker with shutdown, message and retry middleware.

    Args:
        config: Settings providing the Redis connection

    Returns:
        Configured broker (not yet installed)
    """
    redis_broker = RedisBroker(
        host=config.redis_host,
        port=config.redis_port,
        password=config.redis_password or None,
        db=config.redis_db,
    )
    redis_broker.add_middleware(ShutdownNotifications())
    redis_broker.add_middleware(CurrentMessage())
    redis_broker.add_middleware(
        Retries(
            max_retries=3,
            min_backoff=RETRY_MIN_BACKOFF_MS,
            max_backoff=RETRY_MAX_BACKOFF_MS,
        )
    )
    return redis_broker


broker = create_broker()
dramatiq.set_broker(broker)

logger.info(f"Dramatiq broker initialized: {settings.redis_url_masked}")
