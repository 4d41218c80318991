"""
Transaction decorators for service methods.

Provides decorators for async service methods that own an SQLAlchemy
session (either passed as ``session`` or held as ``self.session``).
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")


def _find_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncSession | None:
    session = kwargs.get("session")
    if session is not None:
        return session
    if args:
        first = args[0]
        if isinstance(first, AsyncSession):
            return first
        owned = getattr(first, "session", None)
        if isinstance(owned, AsyncSession):
            return owned
    return None


def with_auto_commit(func: Callable[..., T]) -> Callable[..., T]:
    """
    Commit the session after a successful call, roll back and re-raise on
    error.

    Wallet and deposit operations use it so the balance change and its
    ledger row land in one commit.
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)

        if session is None:
            logger.warning(f"{func.__name__}: no session to commit")
            return await func(*args, **kwargs)

        try:
            result = await func(*args, **kwargs)
            await session.commit()
            return result
        except Exception as e:
            await session.rollback()
            logger.debug(f"{func.__name__} rolled back: {type(e).__name__}: {e}")
            raise

    return wrapper
