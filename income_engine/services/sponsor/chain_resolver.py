"""
Sponsor chain resolution.

Walks the sponsor graph upward (bounded chain) and downward (unbounded
breadth-first downline). Both walks are iterative with a visited set.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from income_engine.models.user import User
from income_engine.repositories.user_repository import UserRepository


@dataclass(frozen=True)
class ChainLink:
    """One ancestor in a sponsor chain."""

    ancestor_id: int
    level: int
    display_name: str


class SponsorChainResolver:
    """Resolves upline chains and downlines."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize chain resolver."""
        self.session = session
        self.user_repo = UserRepository(session)

    async def resolve_chain(self, user_id: int, max_depth: int) -> list[ChainLink]:
        """
        Get the sponsor chain of a user.

        Level 1 is the direct sponsor. The walk stops when a node has no
        sponsor, when a sponsor row is missing, or after max_depth levels.

        Args:
            user_id: User whose uplines are wanted
            max_depth: Maximum number of levels

        Returns:
            Ancestors ordered by level (empty for a root user)
        """
        chain: list[ChainLink] = []
        visited = {user_id}

        current = await self._get_node(user_id)
        if current is None:
            logger.debug(
                "Chain start user not found",
                extra={"user_id": user_id},
            )
            return chain

        level = 1
        while current.sponsor_id is not None and level <= max_depth:
            sponsor_id = current.sponsor_id
            if sponsor_id in visited:
                logger.error(
                    "Sponsor loop detected, stopping chain walk",
                    extra={"user_id": user_id, "sponsor_id": sponsor_id},
                )
                break

            sponsor = await self._get_node(sponsor_id)
            if sponsor is None:
                logger.warning(
                    "Sponsor record missing, chain ends early",
                    extra={"user_id": user_id, "sponsor_id": sponsor_id, "level": level},
                )
                break

            visited.add(sponsor_id)
            chain.append(
                ChainLink(
                    ancestor_id=sponsor.id,
                    level=level,
                    display_name=sponsor.full_name or sponsor.email,
                )
            )
            current = sponsor
            level += 1

        logger.debug(
            "Sponsor chain resolved",
            extra={"user_id": user_id, "max_depth": max_depth, "chain_length": len(chain)},
        )
        return chain

    async def get_downline_ids(self, user_id: int) -> list[int]:
        """
        Get every user transitively sponsored by user_id.

        Breadth-first, one query per tree level.

        Args:
            user_id: Root of the downline

        Returns:
            Downline user ids (root excluded)
        """
        visited = {user_id}
        downline: list[int] = []
        frontier = [user_id]

        while frontier:
            children = await self.user_repo.get_child_ids(frontier)
            frontier = []
            for child_id in children:
                if child_id in visited:
                    continue
                visited.add(child_id)
                downline.append(child_id)
                frontier.append(child_id)

        return downline

    async def _get_node(self, user_id: int):
        stmt = select(
            User.id, User.sponsor_id, User.full_name, User.email
        ).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.one_or_none()
