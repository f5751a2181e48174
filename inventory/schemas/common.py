"""Shared schema building blocks: camelCase models, list queries and pagination."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel, to_snake

from inventory.core.config import settings


class CamelModel(BaseModel):
    """Model exchanged as camelCase JSON; snake_case input is accepted too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ==================== Query Schemas ====================


class OrderByItem(CamelModel):
    """One sort key."""

    field: str = Field(..., min_length=1, description="Column name (camelCase or snake_case)")
    direction: Literal["asc", "desc"] = "asc"

    @field_validator("field")
    @classmethod
    def normalize_field(cls, field: str) -> str:
        """Map camelCase column names onto model attribute names."""
        return to_snake(field)


class ListQueryRequest(CamelModel):
    """Equality filters and ordering for list endpoints."""

    filters: dict[str, Any] | None = Field(None, description="Column equality filters, e.g. {'isCompound': true}")
    order_by: list[OrderByItem] | None = None

    @field_validator("filters")
    @classmethod
    def normalize_filters(cls, filters: dict[str, Any] | None) -> dict[str, Any] | None:
        """Map camelCase filter keys onto model attribute names."""
        if filters is None:
            return None
        return {to_snake(key): value for key, value in filters.items()}

    def order_by_pairs(self) -> list[tuple[str, Literal["asc", "desc"]]] | None:
        """Ordering in the ``(field, direction)`` form repositories take."""
        if not self.order_by:
            return None
        return [(item.field, item.direction) for item in self.order_by]


class PaginatedListQueryRequest(ListQueryRequest):
    """List query plus page selection."""

    page: int = Field(1, ge=1, description="1-based page number")
    page_size: int = Field(
        settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        description="Items per page",
    )


class PaginatedSearchRequest(PaginatedListQueryRequest):
    """Paginated search over a model's searchable columns."""

    term: str = Field(..., min_length=1, description="Case-insensitive substring to match")


# ==================== Response Schemas ====================


class PaginationMeta(CamelModel):
    """Pager metadata returned with every paginated response."""

    current_page: int
    page_size: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool
