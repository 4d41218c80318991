"""
Database configuration.

Creates the async engine and session factory used by services and jobs.
"""

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from income_engine.config.settings import settings


def create_engine(database_url: str | None = None, **kwargs: Any) -> AsyncEngine:
    """
    Create async engine.

    Pool sizing only applies to pooled PostgreSQL engines; SQLite uses the
    dialect default.

    Args:
        database_url: Override for settings.database_url
        **kwargs: Extra engine options

    Returns:
        Configured AsyncEngine
    """
    url = database_url or settings.database_url
    options: dict[str, Any] = {"echo": settings.database_echo}
    if url.startswith("postgresql") and "poolclass" not in kwargs:
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )
    options.update(kwargs)
    return create_async_engine(url, **options)


def create_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create session maker bound to engine."""
    return async_sessionmaker(
        bind=engine or create_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = create_engine()
async_session_maker = create_session_maker(engine)
