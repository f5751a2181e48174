"""Route composition service: simple routes, compound routes and their segment chains."""

from collections.abc import Mapping, Sequence
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from inventory.core.database import transaction
from inventory.core.telemetry import service_span
from inventory.helpers.route_composition import (
    CompoundRouteMinimumError,
    CompoundRouteNotFoundError,
    InvalidConnectionError,
    RepeatedSegmentsError,
    RouteAuditIssue,
    RouteInUseError,
    RoutesNotFoundError,
    SameOriginDestinationError,
    SegmentCreationFailedError,
    SegmentReplacementFailedError,
    calculate_route_totals,
    find_broken_connection,
    find_missing_route_ids,
    find_repeated_route_ids,
    find_route_drift,
    order_routes,
)
from inventory.models.route import Route
from inventory.repositories.base import OrderBy, Page, RecordNotFoundError
from inventory.repositories.pathways import PathwayRepository
from inventory.repositories.routes import RouteRepository, RouteSegmentRepository
from inventory.schemas.routes import (
    CreateCompoundRouteRequest,
    CreateSimpleRouteRequest,
    UpdateCompoundRouteSegmentsRequest,
)

logger = structlog.get_logger(__name__)

# peer.service attribute on every composition span
SERVICE_NAME = "route-composition"

MIN_COMPOUND_ROUTE_SEGMENTS = 2


class RouteCompositionService:
    """
    Builds simple routes from pathways and compound routes from simple routes.

    Validation reads run on the request session before any write. Every
    multi-row write runs inside exactly one ``transaction(self.db)`` block,
    and the transaction handle is passed explicitly to each repository call.
    Validation reads are not locked, so a route deleted between validation
    and commit surfaces as an integrity failure.
    """

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize the route composition service.

        Args:
            db: Database session
        """
        self.db = db
        self.routes = RouteRepository()
        self.segments = RouteSegmentRepository()
        self.pathways = PathwayRepository()

    # ==================== Reads ====================

    async def get_route(self, route_id: int) -> Route:
        """
        Get a route row by id.

        Raises:
            RecordNotFoundError: 404 if no route has this id
        """
        return await self.routes.find_one(self.db, route_id)

    async def get_route_with_full_details(self, route_id: int) -> Route:
        """
        Get a route with its cities, terminals, pathway and ordered segments.

        Raises:
            RecordNotFoundError: 404 if no route has this id
        """
        return await self.routes.find_one_with_full_details(self.db, route_id)

    async def list_routes(
        self,
        filters: Mapping[str, Any] | None = None,
        order_by: OrderBy | None = None,
    ) -> list[Route]:
        """List routes matching equality filters."""
        return await self.routes.find_all(self.db, filters=filters, order_by=order_by)

    async def list_routes_paginated(
        self,
        page: int,
        page_size: int,
        filters: Mapping[str, Any] | None = None,
        order_by: OrderBy | None = None,
    ) -> Page[Route]:
        """List one page of routes matching equality filters."""
        return await self.routes.find_all_paginated(
            self.db, page=page, page_size=page_size, filters=filters, order_by=order_by
        )

    async def search_routes(self, term: str) -> list[Route]:
        """Routes whose name or description contains ``term`` (case-insensitive)."""
        return await self.routes.search(self.db, term)

    async def search_routes_paginated(
        self,
        term: str,
        page: int,
        page_size: int,
        filters: Mapping[str, Any] | None = None,
        order_by: OrderBy | None = None,
    ) -> Page[Route]:
        """One page of ``search_routes`` results."""
        return await self.routes.search_paginated(
            self.db, term, page=page, page_size=page_size, filters=filters, order_by=order_by
        )

    # ==================== Simple routes ====================

    async def create_simple_route(self, request: CreateSimpleRouteRequest) -> Route:
        """
        Create a pathway and the simple route backed by it, atomically.

        Args:
            request: Route and pathway fields

        Returns:
            The created route row (relations not loaded)

        Raises:
            SameOriginDestinationError: 400 if both ends are in the same city
        """
        with service_span(
            "routes.create_simple_route",
            SERVICE_NAME,
            **{
                "routes.origin_city_id": request.origin_city_id,
                "routes.destination_city_id": request.destination_city_id,
            },
        ) as span:
            # Checked on city, not terminal: routes are keyed by city pair
            if request.origin_city_id == request.destination_city_id:
                raise SameOriginDestinationError

            async with transaction(self.db) as tx:
                pathway = await self.pathways.create(
                    tx,
                    {
                        "name": request.pathway_name or request.name,
                        "distance": request.distance,
                        "typical_time": request.typical_time,
                        "toll_road": request.toll_road,
                        "meta": request.meta,
                        "active": request.active,
                    },
                )
                route = await self.routes.create(
                    tx,
                    {
                        "name": request.name,
                        "description": request.description,
                        "origin_city_id": request.origin_city_id,
                        "destination_city_id": request.destination_city_id,
                        "origin_terminal_id": request.origin_terminal_id,
                        "destination_terminal_id": request.destination_terminal_id,
                        "pathway_id": pathway.id,
                        "distance": request.distance,
                        "base_time": request.base_time,
                        "is_compound": False,
                        "connection_count": 0,
                        "total_distance": request.distance,
                        "total_travel_time": request.typical_time,
                        "active": request.active,
                    },
                )

            span.set_attribute("routes.route_id", route.id)
            logger.info("simple_route_created", route_id=route.id, pathway_id=pathway.id)
            return route

    # ==================== Compound routes ====================

    async def _validate_chain(self, route_ids: Sequence[int]) -> list[Route]:
        """
        Run the chain validation pipeline; each step short-circuits.

        Returns:
            The simple routes in caller order

        Raises:
            RepeatedSegmentsError: An id occurs more than once
            RoutesNotFoundError: Ids that are missing or compound
            CompoundRouteMinimumError: Fewer than two routes
            InvalidConnectionError: First adjacent pair whose cities do not meet
        """
        if repeated := find_repeated_route_ids(route_ids):
            raise RepeatedSegmentsError(repeated)

        fetched = await self.routes.find_simple_routes_by_ids(self.db, route_ids)
        if missing := find_missing_route_ids(route_ids, fetched):
            raise RoutesNotFoundError(missing)

        ordered = order_routes(route_ids, fetched)
        if len(ordered) < MIN_COMPOUND_ROUTE_SEGMENTS:
            raise CompoundRouteMinimumError

        if broken := find_broken_connection(ordered):
            raise InvalidConnectionError(*broken)

        return ordered

    async def _write_segments(self, tx: AsyncSession, parent_route_id: int, ordered: Sequence[Route]) -> None:
        """Insert one segment per child, numbered 1..N in chain order."""
        for sequence, child in enumerate(ordered, start=1):
            await self.segments.create(
                tx,
                {
                    "parent_route_id": parent_route_id,
                    "segment_route_id": child.id,
                    "sequence": sequence,
                },
            )

    async def create_compound_route(self, request: CreateCompoundRouteRequest) -> Route:
        """
        Assemble a compound route from existing simple routes.

        The parent row and all segment rows are written in one transaction. The
        returned route is re-read after commit with full details.

        Args:
            request: Name, description and ordered child route ids

        Returns:
            The compound route with cities, terminals and ordered segments loaded

        Raises:
            RouteValidationError: 400 if the chain is invalid (nothing written)
            SegmentCreationFailedError: 500 if the write failed (rolled back)
        """
        with service_span(
            "routes.create_compound_route",
            SERVICE_NAME,
            **{"routes.segment_count": len(request.route_ids)},
        ) as span:
            ordered = await self._validate_chain(request.route_ids)
            totals = calculate_route_totals(ordered)

            try:
                async with transaction(self.db) as tx:
                    compound = await self.routes.create(
                        tx,
                        {
                            "name": request.name,
                            "description": request.description,
                            "pathway_id": None,
                            "is_compound": True,
                            **totals.as_route_values(),
                        },
                    )
                    compound_route_id = compound.id
                    await self._write_segments(tx, compound_route_id, ordered)
            except Exception as e:
                logger.error(
                    "segment_creation_failed",
                    route_ids=list(request.route_ids),
                    error=str(e),
                    exc_info=e,
                )
                raise SegmentCreationFailedError from e

            span.set_attribute("routes.route_id", compound_route_id)
            logger.info(
                "compound_route_created",
                route_id=compound_route_id,
                segment_count=len(ordered),
                total_distance=totals.total_distance,
            )
            return await self.routes.find_one_with_full_details(self.db, compound_route_id)

    async def _get_compound_route(self, route_id: int) -> Route:
        try:
            return await self.routes.find_compound_route(self.db, route_id)
        except RecordNotFoundError:
            raise CompoundRouteNotFoundError(route_id) from None

    async def update_compound_route_segments(
        self,
        compound_route_id: int,
        request: UpdateCompoundRouteSegmentsRequest,
    ) -> Route:
        """
        Replace the whole segment chain of a compound route.

        Old segments are deleted, the new set inserted as 1..N and the parent's
        endpoints and aggregates updated, all in one transaction. On failure the
        previous chain and aggregates are left untouched.

        Args:
            compound_route_id: Id of an existing compound route
            request: New ordered child route ids

        Returns:
            The compound route with full details, read after commit

        Raises:
            CompoundRouteNotFoundError: 404 if the id is not a compound route
            RouteValidationError: 400 if the new chain is invalid (nothing written)
            SegmentReplacementFailedError: 500 if the write failed (rolled back)
        """
        with service_span(
            "routes.update_compound_route_segments",
            SERVICE_NAME,
            **{
                "routes.route_id": compound_route_id,
                "routes.segment_count": len(request.route_ids),
            },
        ):
            await self._get_compound_route(compound_route_id)
            ordered = await self._validate_chain(request.route_ids)
            totals = calculate_route_totals(ordered)

            try:
                async with transaction(self.db) as tx:
                    removed = await self.segments.delete_by_parent(tx, compound_route_id)
                    await self._write_segments(tx, compound_route_id, ordered)
                    await self.routes.update(tx, compound_route_id, totals.as_route_values())
            except Exception as e:
                logger.error(
                    "segment_replacement_failed",
                    route_id=compound_route_id,
                    route_ids=list(request.route_ids),
                    error=str(e),
                    exc_info=e,
                )
                raise SegmentReplacementFailedError from e

            logger.info(
                "compound_route_segments_replaced",
                route_id=compound_route_id,
                removed_segments=removed,
                segment_count=len(ordered),
            )
            return await self.routes.find_one_with_full_details(self.db, compound_route_id)

    # ==================== Deletion and maintenance ====================

    async def delete_route(self, route_id: int) -> Route:
        """
        Delete a route with its own segments (compound) or pathway (simple).

        Args:
            route_id: Route id

        Returns:
            The deleted route row

        Raises:
            RecordNotFoundError: 404 if no route has this id
            RouteInUseError: 409 if compound routes still use it as a segment
        """
        with service_span("routes.delete_route", SERVICE_NAME, **{"routes.route_id": route_id}) as span:
            route = await self.routes.find_one(self.db, route_id)
            span.set_attribute("routes.is_compound", route.is_compound)

            if parent_ids := await self.routes.find_parent_ids_for_segment(self.db, route_id):
                raise RouteInUseError(route_id, parent_ids)

            is_compound = route.is_compound
            pathway_id = route.pathway_id
            async with transaction(self.db) as tx:
                removed = await self.segments.delete_by_parent(tx, route_id) if is_compound else 0
                deleted = await self.routes.delete(tx, route_id)
                if pathway_id is not None:
                    await self.pathways.delete(tx, pathway_id)

            logger.info(
                "route_deleted",
                route_id=route_id,
                is_compound=is_compound,
                pathway_id=pathway_id,
                removed_segments=removed,
            )
            return deleted

    async def recalculate_compound_route(self, route_id: int) -> Route:
        """
        Recompute a compound route's endpoints and aggregates from its segments.

        Segments are taken in sequence order; if their numbering has gaps it is
        rewritten as 1..N in the same transaction.

        Args:
            route_id: Id of an existing compound route

        Returns:
            The compound route with full details, read after commit

        Raises:
            CompoundRouteNotFoundError: 404 if the id is not a compound route
            CompoundRouteMinimumError: 400 if fewer than two segments remain
        """
        with service_span("routes.recalculate_compound_route", SERVICE_NAME, **{"routes.route_id": route_id}):
            await self._get_compound_route(route_id)
            segments = await self.segments.find_by_parent(self.db, route_id)
            child_ids = [segment.segment_route_id for segment in segments]
            ordered = order_routes(child_ids, await self.routes.find_by_ids(self.db, child_ids))
            if len(ordered) < MIN_COMPOUND_ROUTE_SEGMENTS:
                raise CompoundRouteMinimumError

            totals = calculate_route_totals(ordered)
            renumber = [segment.sequence for segment in segments] != list(range(1, len(segments) + 1))

            async with transaction(self.db) as tx:
                if renumber:
                    await self.segments.delete_by_parent(tx, route_id)
                    await self._write_segments(tx, route_id, ordered)
                await self.routes.update(tx, route_id, totals.as_route_values())

            logger.info(
                "compound_route_recalculated",
                route_id=route_id,
                segment_count=len(ordered),
                renumbered=renumber,
            )
            return await self.routes.find_one_with_full_details(self.db, route_id)

    async def audit_compound_routes(self) -> list[RouteAuditIssue]:
        """
        Report compound routes whose stored values disagree with their segments.

        Checks endpoints, aggregates, connection count and sequence numbering.

        Returns:
            One issue per drifted field, ordered by route id
        """
        issues: list[RouteAuditIssue] = []
        for route in await self.routes.find_compound_routes_with_segments(self.db):
            issues.extend(find_route_drift(route, route.segments))
        return issues
