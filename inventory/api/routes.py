"""Routes API endpoints for simple and compound route composition."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory.core.database import get_db
from inventory.models.route import Route
from inventory.schemas.common import ListQueryRequest, PaginatedListQueryRequest, PaginatedSearchRequest
from inventory.schemas.routes import (
    CreateCompoundRouteRequest,
    CreateSimpleRouteRequest,
    PaginatedRoutesResponse,
    RouteListResponse,
    RouteResponse,
    RouteWithFullDetailsResponse,
    UpdateCompoundRouteSegmentsRequest,
)
from inventory.services.route_composition_service import RouteCompositionService

router = APIRouter(prefix="/routes", tags=["routes"])


# ==================== Composition Endpoints ====================


@router.post("", response_model=RouteResponse, status_code=status.HTTP_201_CREATED)
async def create_route(
    request: CreateSimpleRouteRequest,
    db: AsyncSession = Depends(get_db),
) -> Route:
    """
    Create a simple route and the pathway backing it.

    Args:
        request: Route and pathway fields
        db: Database session

    Returns:
        Created route

    Raises:
        HTTPException: 400 if origin and destination cities are the same
    """
    service = RouteCompositionService(db)
    return await service.create_simple_route(request)


@router.post(
    "/compound",
    response_model=RouteWithFullDetailsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_compound_route(
    request: CreateCompoundRouteRequest,
    db: AsyncSession = Depends(get_db),
) -> Route:
    """
    Create a compound route from two or more connected simple routes.

    Args:
        request: Name, description and ordered simple route ids
        db: Database session

    Returns:
        Compound route with cities, terminals and ordered segments

    Raises:
        HTTPException: 400 if the chain is invalid, 500 if segments could not be written
    """
    service = RouteCompositionService(db)
    return await service.create_compound_route(request)


@router.put("/compound/{route_id}/segments", response_model=RouteWithFullDetailsResponse)
async def update_compound_route_segments(
    route_id: int,
    request: UpdateCompoundRouteSegmentsRequest,
    db: AsyncSession = Depends(get_db),
) -> Route:
    """
    Replace the segment chain of a compound route.

    Args:
        route_id: Compound route id
        request: New ordered simple route ids
        db: Database session

    Returns:
        Updated compound route with full details

    Raises:
        HTTPException: 404 if not a compound route, 400 if the chain is invalid,
            500 if segments could not be replaced
    """
    service = RouteCompositionService(db)
    return await service.update_compound_route_segments(route_id, request)


# ==================== Query Endpoints ====================
# Declared before /{route_id} so the literal paths win


@router.get("/search", response_model=RouteListResponse)
async def search_routes(
    term: str = Query(..., min_length=1, description="Case-insensitive substring of name or description"),
    db: AsyncSession = Depends(get_db),
) -> RouteListResponse:
    """Search routes by name or description."""
    service = RouteCompositionService(db)
    routes = await service.search_routes(term)
    return RouteListResponse(routes=[RouteResponse.model_validate(route) for route in routes])


@router.post("/search/paginated", response_model=PaginatedRoutesResponse)
async def search_routes_paginated(
    request: PaginatedSearchRequest,
    db: AsyncSession = Depends(get_db),
) -> PaginatedRoutesResponse:
    """Search routes by name or description, one page at a time."""
    service = RouteCompositionService(db)
    page = await service.search_routes_paginated(
        request.term,
        page=request.page,
        page_size=request.page_size,
        filters=request.filters,
        order_by=request.order_by_pairs(),
    )
    return PaginatedRoutesResponse.from_page(page)


@router.post("/list", response_model=RouteListResponse)
async def list_routes(
    request: ListQueryRequest,
    db: AsyncSession = Depends(get_db),
) -> RouteListResponse:
    """
    List routes with optional equality filters and ordering.

    Args:
        request: Filters (e.g. ``{"isCompound": true}``) and ``orderBy`` keys
        db: Database session

    Returns:
        Matching routes

    Raises:
        HTTPException: 400 if a filter or sort key is not a route column
    """
    service = RouteCompositionService(db)
    routes = await service.list_routes(filters=request.filters, order_by=request.order_by_pairs())
    return RouteListResponse(routes=[RouteResponse.model_validate(route) for route in routes])


@router.post("/list/paginated", response_model=PaginatedRoutesResponse)
async def list_routes_paginated(
    request: PaginatedListQueryRequest,
    db: AsyncSession = Depends(get_db),
) -> PaginatedRoutesResponse:
    """List routes one page at a time."""
    service = RouteCompositionService(db)
    page = await service.list_routes_paginated(
        page=request.page,
        page_size=request.page_size,
        filters=request.filters,
        order_by=request.order_by_pairs(),
    )
    return PaginatedRoutesResponse.from_page(page)


# ==================== Single Route Endpoints ====================


@router.get("/{route_id}", response_model=RouteResponse)
async def get_route(
    route_id: int,
    db: AsyncSession = Depends(get_db),
) -> Route:
    """
    Get a route by id.

    Raises:
        HTTPException: 404 if route not found
    """
    service = RouteCompositionService(db)
    return await service.get_route(route_id)


@router.get("/{route_id}/details", response_model=RouteWithFullDetailsResponse)
async def get_route_with_full_details(
    route_id: int,
    db: AsyncSession = Depends(get_db),
) -> Route:
    """
    Get a route with its cities, terminals, pathway and ordered segments.

    Raises:
        HTTPException: 404 if route not found
    """
    service = RouteCompositionService(db)
    return await service.get_route_with_full_details(route_id)


@router.delete("/{route_id}", response_model=RouteResponse)
async def delete_route(
    route_id: int,
    db: AsyncSession = Depends(get_db),
) -> Route:
    """
    Delete a route (its segments or pathway go with it).

    Raises:
        HTTPException: 404 if route not found, 409 if compound routes still use it
    """
    service = RouteCompositionService(db)
    return await service.delete_route(route_id)
