"""Database setup for tasks."""
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from income_engine.config.database import create_engine, create_session_maker


def create_task_engine() -> AsyncEngine:
    """Engine without pooling; worker threads each run their own loop."""
    return create_engine(poolclass=NullPool)


def create_task_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Session maker for tasks."""
    return create_session_maker(engine or create_task_engine())


task_engine = create_task_engine()
task_session_maker = create_task_session_maker(task_engine)
