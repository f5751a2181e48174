"""Generic async repository over one SQLAlchemy model.

Every method takes the session as its first argument. Inside a composition
operation that session is the handle yielded by
``inventory.core.database.transaction``; repositories only ``flush`` so the
caller's transaction decides whether the writes are kept.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar

from fastapi import HTTPException, status
from sqlalchemy import Select, func, or_, select
from sqlalchemy import delete as sql_delete
from sqlalchemy import update as sql_update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from inventory.core.config import settings
from inventory.models.base import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)
ItemT = TypeVar("ItemT")

SortDirection = Literal["asc", "desc"]
OrderBy = Sequence[tuple[str, SortDirection]]


class RecordNotFoundError(HTTPException):
    """Raised when a direct id lookup finds no row."""

    def __init__(self, model: str, record_id: int) -> None:
        self.model = model
        self.record_id = record_id
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{model} with id {record_id} not found",
        )


class InvalidQueryFieldError(HTTPException):
    """Raised when a filter or sort names a column the model does not have."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid query field: {field}",
        )


@dataclass(frozen=True)
class Page(Generic[ItemT]):
    """One page of results plus the totals needed to render a pager."""

    items: list[ItemT]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        """Number of pages at this page size (0 when there are no rows)."""
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1


class BaseRepository(Generic[ModelT]):
    """CRUD, filtering, search and pagination for a single model."""

    model: type[ModelT]

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    @property
    def model_name(self) -> str:
        return self.model.__name__

    def _column(self, field: str) -> InstrumentedAttribute[Any]:
        """Resolve a column attribute by name, rejecting anything else."""
        if field not in self.model.__table__.columns:
            raise InvalidQueryFieldError(field)
        return getattr(self.model, field)

    def _apply_filters(self, query: Select[Any], filters: Mapping[str, Any] | None) -> Select[Any]:
        for field, value in (filters or {}).items():
            query = query.where(self._column(field) == value)
        return query

    def _apply_order(self, query: Select[Any], order_by: OrderBy | None) -> Select[Any]:
        if not order_by:
            return query.order_by(self.model.id)
        for field, direction in order_by:
            column = self._column(field)
            query = query.order_by(column.desc() if direction == "desc" else column.asc())
        return query

    def _apply_search(self, query: Select[Any], term: str) -> Select[Any]:
        pattern = f"%{term}%"
        conditions = [getattr(self.model, field).ilike(pattern) for field in self.model.searchable_fields]
        if not conditions:
            return query
        return query.where(or_(*conditions))

    async def _paginate(self, db: AsyncSession, query: Select[Any], page: int, page_size: int | None) -> Page[ModelT]:
        size = min(page_size or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
        total = (await db.execute(select(func.count()).select_from(query.order_by(None).subquery()))).scalar_one()
        result = await db.execute(query.limit(size).offset((max(page, 1) - 1) * size))
        return Page(items=list(result.scalars().all()), total=total, page=max(page, 1), page_size=size)

    async def create(self, db: AsyncSession, values: Mapping[str, Any]) -> ModelT:
        """
        Insert one row and flush it so generated ids are available.

        Args:
            db: Session (usually a transaction handle)
            values: Column values

        Returns:
            The new row
        """
        instance = self.model(**values)
        db.add(instance)
        await db.flush()
        return instance

    async def find_one(self, db: AsyncSession, record_id: int) -> ModelT:
        """
        Fetch one row by primary key.

        Raises:
            RecordNotFoundError: If no row has this id
        """
        result = await db.execute(select(self.model).where(self.model.id == record_id))
        if not (instance := result.scalar_one_or_none()):
            raise RecordNotFoundError(self.model_name, record_id)
        return instance

    async def find_by_ids(self, db: AsyncSession, record_ids: Sequence[int]) -> list[ModelT]:
        """Fetch every row whose id is in ``record_ids`` (unordered, missing ids skipped)."""
        if not record_ids:
            return []
        result = await db.execute(select(self.model).where(self.model.id.in_(record_ids)))
        return list(result.scalars().all())

    async def update(self, db: AsyncSession, record_id: int, values: Mapping[str, Any]) -> ModelT:
        """
        Update columns of one row and return it refreshed.

        Raises:
            RecordNotFoundError: If no row has this id
            InvalidQueryFieldError: If ``values`` names an unknown column
        """
        for field in values:
            self._column(field)
        result = await db.execute(
            sql_update(self.model)
            .where(self.model.id == record_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise RecordNotFoundError(self.model_name, record_id)
        refreshed = await db.execute(
            select(self.model).where(self.model.id == record_id).execution_options(populate_existing=True)
        )
        return refreshed.scalar_one()

    async def delete(self, db: AsyncSession, record_id: int) -> ModelT:
        """
        Delete one row and return it as it was.

        Raises:
            RecordNotFoundError: If no row has this id
        """
        instance = await self.find_one(db, record_id)
        await db.execute(sql_delete(self.model).where(self.model.id == record_id))
        return instance

    async def find_all(
        self,
        db: AsyncSession,
        filters: Mapping[str, Any] | None = None,
        order_by: OrderBy | None = None,
    ) -> list[ModelT]:
        """
        List rows matching equality ``filters``.

        Args:
            db: Session
            filters: ``{column: value}`` equality matches
            order_by: ``[(column, "asc" | "desc"), ...]``; defaults to id ascending

        Raises:
            InvalidQueryFieldError: If a filter or sort names an unknown column
        """
        query = self._apply_order(self._apply_filters(select(self.model), filters), order_by)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def find_all_paginated(
        self,
        db: AsyncSession,
        page: int = 1,
        page_size: int | None = None,
        filters: Mapping[str, Any] | None = None,
        order_by: OrderBy | None = None,
    ) -> Page[ModelT]:
        """Paginated variant of ``find_all``; ``page_size`` is capped at MAX_PAGE_SIZE."""
        query = self._apply_order(self._apply_filters(select(self.model), filters), order_by)
        return await self._paginate(db, query, page, page_size)

    async def search(self, db: AsyncSession, term: str) -> list[ModelT]:
        """Case-insensitive substring match of ``term`` over the model's searchable fields."""
        query = self._apply_order(self._apply_search(select(self.model), term), None)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def search_paginated(
        self,
        db: AsyncSession,
        term: str,
        page: int = 1,
        page_size: int | None = None,
        filters: Mapping[str, Any] | None = None,
        order_by: OrderBy | None = None,
    ) -> Page[ModelT]:
        """Paginated ``search`` with optional filters and ordering."""
        query = self._apply_search(select(self.model), term)
        query = self._apply_order(self._apply_filters(query, filters), order_by)
        return await self._paginate(db, query, page, page_size)
