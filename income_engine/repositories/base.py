"""
Base repository.

Shared lookups and inserts for the engine's models. Ledger rows are
append-only, so there is no update or delete here; balance changes go
through LedgerService on locked rows.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Repository bound to one model and one session.

    Subclasses pass their model to __init__ and add domain queries:

        class WalletRepository(BaseRepository[Wallet]):
            def __init__(self, session: AsyncSession) -> None:
                super().__init__(Wallet, session)
    """

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    def _select(self, **filters: Any) -> Select[tuple[ModelType]]:
        return select(self.model).filter_by(**filters)

    async def get_by_id(self, id: int) -> ModelType | None:
        """Entity by primary key, from the identity map when loaded."""
        return await self.session.get(self.model, id)

    async def get_for_update(self, id: int) -> ModelType | None:
        """
        Entity by primary key with a row lock.

        Concurrent writers touching the same row serialize on this lock
        until the surrounding transaction ends.
        """
        result = await self.session.execute(
            select(self.model).where(self.model.id == id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def get_by(self, **filters: Any) -> ModelType | None:
        """Single entity matching column filters, or None."""
        result = await self.session.execute(self._select(**filters))
        return result.scalar_one_or_none()

    async def find_by(self, **filters: Any) -> list[ModelType]:
        """All entities matching column filters, oldest first."""
        result = await self.session.execute(
            self._select(**filters).order_by(self.model.id)
        )
        return list(result.scalars().all())

    async def create(self, **data: Any) -> ModelType:
        """
        Insert an entity and flush it.

        The flush surfaces unique constraint violations (IntegrityError)
        at the call site, inside the caller's transaction.

        Returns:
            Created entity with database defaults loaded
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def count(self, **filters: Any) -> int:
        """Number of entities matching column filters."""
        stmt = select(func.count()).select_from(self.model).filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def exists(self, **filters: Any) -> bool:
        """Whether any entity matches column filters."""
        return await self.count(**filters) > 0
