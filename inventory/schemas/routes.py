"""Pydantic schemas for route composition."""

from datetime import datetime
from typing import Any

from pydantic import Field

from inventory.repositories.base import Page
from inventory.schemas.common import CamelModel, PaginationMeta

# ==================== Request Schemas ====================


class CreateSimpleRouteRequest(CamelModel):
    """Request to create a simple route together with its pathway."""

    name: str = Field(..., min_length=1, max_length=255, description="Route name")
    description: str | None = Field(None, description="Optional route description")
    origin_city_id: int = Field(..., ge=1)
    destination_city_id: int = Field(..., ge=1)
    origin_terminal_id: int = Field(..., ge=1)
    destination_terminal_id: int = Field(..., ge=1)
    base_time: int = Field(..., ge=0, description="Base travel time in minutes")
    # Pathway fields
    distance: float = Field(..., ge=0, description="Distance in kilometres")
    typical_time: int = Field(..., ge=0, description="Typical travel time in minutes")
    toll_road: bool = False
    meta: dict[str, Any] = Field(default_factory=dict, description="Free-form pathway metadata")
    pathway_name: str | None = Field(
        None,
        min_length=1,
        max_length=255,
        description="Pathway name (defaults to the route name)",
    )
    active: bool = True


class CreateCompoundRouteRequest(CamelModel):
    """Request to assemble a compound route from existing simple routes."""

    name: str = Field(..., min_length=1, max_length=255, description="Route name")
    description: str | None = Field(None, description="Optional route description")
    route_ids: list[int] = Field(..., description="Simple route ids in travel order (at least two)")


class UpdateCompoundRouteSegmentsRequest(CamelModel):
    """Request to replace the whole segment chain of a compound route."""

    route_ids: list[int] = Field(..., description="Simple route ids in travel order (at least two)")


# ==================== Response Schemas ====================


class RouteResponse(CamelModel):
    """Route row."""

    id: int
    name: str
    description: str | None
    origin_city_id: int
    destination_city_id: int
    origin_terminal_id: int
    destination_terminal_id: int
    pathway_id: int | None
    distance: float
    base_time: int
    is_compound: bool
    connection_count: int
    total_travel_time: int
    total_distance: float
    active: bool
    created_at: datetime
    updated_at: datetime


class CityResponse(CamelModel):
    id: int
    state_id: int
    name: str
    slug: str
    active: bool


class TerminalResponse(CamelModel):
    id: int
    city_id: int
    name: str
    code: str
    active: bool


class PathwaySummaryResponse(CamelModel):
    """Pathway without its free-form metadata."""

    id: int
    name: str
    distance: float
    typical_time: int
    toll_road: bool
    active: bool


class RouteSegmentResponse(CamelModel):
    id: int
    parent_route_id: int
    segment_route_id: int
    sequence: int
    active: bool


class RouteWithFullDetailsResponse(RouteResponse):
    """Route joined with its endpoints, pathway and ordered segments."""

    origin_city: CityResponse
    destination_city: CityResponse
    origin_terminal: TerminalResponse
    destination_terminal: TerminalResponse
    pathway: PathwaySummaryResponse | None
    segments: list[RouteSegmentResponse] = Field(..., description="Segments ordered by sequence (empty for simple routes)")


class RouteListResponse(CamelModel):
    routes: list[RouteResponse]


class PaginatedRoutesResponse(CamelModel):
    """One page of routes."""

    data: list[RouteResponse]
    pagination: PaginationMeta

    @classmethod
    def from_page(cls, page: Page[Any]) -> "PaginatedRoutesResponse":
        """Build the response from a repository page."""
        return cls(
            data=[RouteResponse.model_validate(route) for route in page.items],
            pagination=PaginationMeta(
                current_page=page.page,
                page_size=page.page_size,
                total_count=page.total,
                total_pages=page.total_pages,
                has_next_page=page.has_next_page,
                has_previous_page=page.has_previous_page,
            ),
        )
