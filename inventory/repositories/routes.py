"""Route and route segment repositories."""

from collections.abc import Sequence

from sqlalchemy import delete as sql_delete
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from inventory.models.pathway import Pathway
from inventory.models.route import Route, RouteSegment
from inventory.repositories.base import BaseRepository, RecordNotFoundError


class RouteRepository(BaseRepository[Route]):
    """Route queries used by the composition engine."""

    def __init__(self) -> None:
        super().__init__(Route)

    async def find_simple_routes_by_ids(self, db: AsyncSession, route_ids: Sequence[int]) -> list[Route]:
        """
        Fetch the simple routes among ``route_ids``.

        Ids that do not exist or belong to compound routes are not returned;
        the caller compares the result against its input to find them.

        Args:
            db: Session
            route_ids: Candidate chain ids

        Returns:
            Matching simple routes, unordered
        """
        if not route_ids:
            return []
        result = await db.execute(
            select(Route).where(
                Route.id.in_(route_ids),
                Route.is_compound.is_(False),
            )
        )
        return list(result.scalars().all())

    async def find_compound_route(self, db: AsyncSession, route_id: int) -> Route:
        """
        Fetch a compound route with its segments ordered by sequence.

        Raises:
            RecordNotFoundError: If the id is absent or names a simple route
        """
        result = await db.execute(
            select(Route)
            .where(Route.id == route_id, Route.is_compound.is_(True))
            .options(selectinload(Route.segments))
        )
        if not (route := result.scalar_one_or_none()):
            raise RecordNotFoundError("Compound route", route_id)
        return route

    async def find_one_with_full_details(self, db: AsyncSession, route_id: int) -> Route:
        """
        Fetch a route with cities, terminals, pathway and ordered segments.

        Existing identity-map entries are overwritten so a read made right
        after a commit reflects the committed segment set.

        Raises:
            RecordNotFoundError: If no route has this id
        """
        result = await db.execute(
            select(Route)
            .where(Route.id == route_id)
            .options(
                selectinload(Route.origin_city),
                selectinload(Route.destination_city),
                selectinload(Route.origin_terminal),
                selectinload(Route.destination_terminal),
                selectinload(Route.pathway).load_only(
                    Pathway.id,
                    Pathway.name,
                    Pathway.distance,
                    Pathway.typical_time,
                    Pathway.toll_road,
                    Pathway.active,
                    Pathway.created_at,
                    Pathway.updated_at,
                ),
                selectinload(Route.segments),
            )
            .execution_options(populate_existing=True)
        )
        if not (route := result.scalar_one_or_none()):
            raise RecordNotFoundError("Route", route_id)
        return route

    async def find_parent_ids_for_segment(self, db: AsyncSession, route_id: int) -> list[int]:
        """Ids of compound routes whose chains include ``route_id``."""
        result = await db.execute(
            select(RouteSegment.parent_route_id)
            .where(RouteSegment.segment_route_id == route_id)
            .order_by(RouteSegment.parent_route_id)
        )
        return list(result.scalars().all())

    async def find_compound_routes_with_segments(self, db: AsyncSession) -> list[Route]:
        """Every compound route with segments and each segment's child route loaded."""
        result = await db.execute(
            select(Route)
            .where(Route.is_compound.is_(True))
            .options(selectinload(Route.segments).selectinload(RouteSegment.segment_route))
            .order_by(Route.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())


class RouteSegmentRepository(BaseRepository[RouteSegment]):
    """Segment rows; always written as a complete set per parent."""

    def __init__(self) -> None:
        super().__init__(RouteSegment)

    async def delete_by_parent(self, db: AsyncSession, parent_route_id: int) -> int:
        """
        Delete every segment of one compound route.

        Returns:
            Number of rows deleted
        """
        result = await db.execute(
            sql_delete(RouteSegment).where(RouteSegment.parent_route_id == parent_route_id)
        )
        return result.rowcount

    async def find_by_parent(self, db: AsyncSession, parent_route_id: int) -> list[RouteSegment]:
        """Segments of one compound route ordered by sequence."""
        result = await db.execute(
            select(RouteSegment)
            .where(RouteSegment.parent_route_id == parent_route_id)
            .order_by(RouteSegment.sequence)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
