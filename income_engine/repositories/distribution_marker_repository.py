"""
Distribution marker repository.

Data access layer for DistributionMarker model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.models.distribution_marker import DistributionMarker
from income_engine.models.enums import SourceType
from income_engine.repositories.base import BaseRepository


class DistributionMarkerRepository(BaseRepository[DistributionMarker]):
    """Distribution marker repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize distribution marker repository."""
        super().__init__(DistributionMarker, session)

    async def is_marked(
        self, source_type: SourceType, source_id: int, cycle_number: int
    ) -> bool:
        """Check whether the unit was committed."""
        stmt = select(DistributionMarker.id).where(
            DistributionMarker.source_type == source_type.value,
            DistributionMarker.source_id == source_id,
            DistributionMarker.cycle_number == cycle_number,
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def get_marked_cycles(
        self, source_type: SourceType, source_id: int
    ) -> set[int]:
        """
        Get cycle numbers already committed for one source.

        Args:
            source_type: Source kind
            source_id: Source id

        Returns:
            Set of committed cycle numbers
        """
        stmt = select(DistributionMarker.cycle_number).where(
            DistributionMarker.source_type == source_type.value,
            DistributionMarker.source_id == source_id,
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())
