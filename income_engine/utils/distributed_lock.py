"""
Redis-based distributed lock.

Prevents overlapping scheduled runs (e.g. a manual re-run racing the cron
run). Falls back to a no-op lock when Redis is unavailable; payout
uniqueness is still enforced by database constraints in that case.
"""

import secrets
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

import redis.asyncio as redis
from loguru import logger
from redis.exceptions import RedisError

from income_engine.config.settings import settings

T = TypeVar("T")

LOCK_PREFIX = "income_engine:lock:"

# Delete the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class LockNotAcquiredError(RuntimeError):
    """Raised when another holder owns the lock."""


class DistributedLock:
    """Redis SET NX EX lock with token-checked release."""

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        """
        Initialize lock.

        Args:
            redis_client: redis.asyncio client, or None to disable locking
        """
        self.redis_client = redis_client

    @asynccontextmanager
    async def lock(self, key: str, timeout: int = 60) -> AsyncIterator[None]:
        """
        Hold the lock for the duration of the block.

        Args:
            key: Lock name
            timeout: Expiry in seconds, so a crashed holder cannot block forever

        Raises:
            LockNotAcquiredError: If the lock is held by someone else
        """
        if self.redis_client is None:
            logger.warning(f"Redis unavailable, running '{key}' without lock")
            yield
            return

        full_key = f"{LOCK_PREFIX}{key}"
        token = secrets.token_hex(16)
        redis_down = False
        try:
            acquired = await self.redis_client.set(full_key, token, nx=True, ex=timeout)
        except (OSError, RedisError) as e:
            logger.warning(f"Redis lock unavailable, running '{key}' without lock: {e}")
            redis_down = True

        if redis_down:
            yield
            return
        if not acquired:
            raise LockNotAcquiredError(f"Lock '{key}' is already held")

        logger.debug(f"Lock acquired: {key}")
        try:
            yield
        finally:
            try:
                await self.redis_client.eval(_RELEASE_SCRIPT, 1, full_key, token)
                logger.debug(f"Lock released: {key}")
            except Exception as e:
                logger.warning(f"Failed to release lock '{key}': {e}")


def create_lock_client() -> redis.Redis:
    """Redis client for locks, configured from settings."""
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=True,
    )


async def run_with_lock(
    key: str,
    timeout: int,
    func: Callable[[], Awaitable[T]],
    client_factory: Callable[[], redis.Redis] = create_lock_client,
) -> T:
    """
    Await func() while holding the lock named key.

    The client is created per call and closed afterwards, so each worker
    thread's event loop gets its own connection.

    Raises:
        LockNotAcquiredError: If another run holds the lock
    """
    redis_client = None
    try:
        redis_client = client_factory()
    except Exception as e:
        logger.warning(f"Failed to create Redis client for lock: {e}")

    try:
        async with DistributedLock(redis_client=redis_client).lock(key, timeout=timeout):
            return await func()
    finally:
        if redis_client is not None:
            await redis_client.aclose()
