"""Tests for the repository layer."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from inventory.core.database import transaction
from inventory.models import Route
from inventory.repositories import (
    CityRepository,
    InvalidQueryFieldError,
    Page,
    PathwayRepository,
    RecordNotFoundError,
    RouteRepository,
    RouteSegmentRepository,
    TerminalRepository,
)
from tests.helpers.factories import RouteNetwork, create_compound_route_rows


@pytest.fixture
def routes() -> RouteRepository:
    return RouteRepository()


class TestPage:
    """Tests for Page pager properties."""

    def test_empty_page(self) -> None:
        page: Page[int] = Page(items=[], total=0, page=1, page_size=10)
        assert page.total_pages == 0
        assert page.has_next_page is False
        assert page.has_previous_page is False

    def test_middle_page(self) -> None:
        page = Page(items=[1, 2], total=7, page=2, page_size=2)
        assert page.total_pages == 4
        assert page.has_next_page is True
        assert page.has_previous_page is True


class TestBaseRepository:
    """CRUD and query behaviour shared by every repository."""

    @pytest.mark.asyncio
    async def test_find_one_not_found(self, db_session: AsyncSession, routes: RouteRepository) -> None:
        with pytest.raises(RecordNotFoundError) as exc_info:
            await routes.find_one(db_session, 42)

        assert exc_info.value.detail == "Route with id 42 not found"
        assert exc_info.value.model == "Route"

    @pytest.mark.asyncio
    async def test_find_by_ids_skips_missing(
        self,
        db_session: AsyncSession,
        routes: RouteRepository,
        route_network: RouteNetwork,
    ) -> None:
        r1 = route_network.routes["r1"]

        found = await routes.find_by_ids(db_session, [r1.id, 9999])

        assert [route.id for route in found] == [r1.id]
        assert await routes.find_by_ids(db_session, []) == []

    @pytest.mark.asyncio
    async def test_update_returns_refreshed_row(
        self,
        db_session: AsyncSession,
        routes: RouteRepository,
        route_network: RouteNetwork,
    ) -> None:
        r1_id = route_network.routes["r1"].id

        async with transaction(db_session) as tx:
            updated = await routes.update(tx, r1_id, {"name": "Renamed", "base_time": 5})

        assert updated.name == "Renamed"
        assert updated.base_time == 5
        assert (await routes.find_one(db_session, r1_id)).name == "Renamed"

    @pytest.mark.asyncio
    async def test_update_unknown_row(self, db_session: AsyncSession, routes: RouteRepository) -> None:
        with pytest.raises(RecordNotFoundError):
            await routes.update(db_session, 9999, {"name": "Ghost"})

    @pytest.mark.asyncio
    async def test_update_unknown_column(self, db_session: AsyncSession, routes: RouteRepository) -> None:
        with pytest.raises(InvalidQueryFieldError) as exc_info:
            await routes.update(db_session, 1, {"segments": []})

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_returns_row(self, db_session: AsyncSession, route_network: RouteNetwork) -> None:
        cities = CityRepository()
        city4_id = route_network.cities["city4"].id
        terminal4_id = route_network.terminals["city4"].id
        routes = RouteRepository()
        pathways = PathwayRepository()
        r4 = route_network.routes["r4"]
        r4_id, pathway_id = r4.id, r4.pathway_id

        async with transaction(db_session) as tx:
            await routes.delete(tx, r4_id)
            await pathways.delete(tx, pathway_id)
            await TerminalRepository().delete(tx, terminal4_id)
            deleted = await cities.delete(tx, city4_id)

        assert deleted.id == city4_id
        assert [city.id for city in await cities.find_all(db_session, filters={"id": city4_id})] == []

    @pytest.mark.asyncio
    async def test_find_all_rejects_unknown_sort_field(
        self,
        db_session: AsyncSession,
        routes: RouteRepository,
    ) -> None:
        with pytest.raises(InvalidQueryFieldError) as exc_info:
            await routes.find_all(db_session, order_by=[("popularity", "desc")])

        assert exc_info.value.detail == "Invalid query field: popularity"

    @pytest.mark.asyncio
    async def test_page_size_capped(
        self,
        db_session: AsyncSession,
        routes: RouteRepository,
        route_network: RouteNetwork,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        from inventory.core.config import settings  # noqa: PLC0415

        monkeypatch.setattr(settings, "MAX_PAGE_SIZE", 3)

        page = await routes.find_all_paginated(db_session, page=1, page_size=50)

        assert page.page_size == 3
        assert len(page.items) == 3
        assert page.total == 4

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(
        self,
        db_session: AsyncSession,
        route_network: RouteNetwork,
    ) -> None:
        cities = await CityRepository().search(db_session, "CITY2")

        assert [city.id for city in cities] == [route_network.cities["city2"].id]


class TestRouteRepository:
    """Route-specific queries."""

    @pytest.mark.asyncio
    async def test_find_simple_routes_excludes_compound(
        self,
        db_session: AsyncSession,
        routes: RouteRepository,
        route_network: RouteNetwork,
    ) -> None:
        r1, r2 = route_network.routes["r1"], route_network.routes["r2"]
        compound = await create_compound_route_rows(db_session, "Compound", [r1, r2])
        await db_session.commit()

        found = await routes.find_simple_routes_by_ids(db_session, [r1.id, compound.id])

        assert [route.id for route in found] == [r1.id]

    @pytest.mark.asyncio
    async def test_find_compound_route_rejects_simple(
        self,
        db_session: AsyncSession,
        routes: RouteRepository,
        route_network: RouteNetwork,
    ) -> None:
        with pytest.raises(RecordNotFoundError) as exc_info:
            await routes.find_compound_route(db_session, route_network.routes["r1"].id)

        assert exc_info.value.model == "Compound route"

    @pytest.mark.asyncio
    async def test_find_parent_ids_for_segment(
        self,
        db_session: AsyncSession,
        routes: RouteRepository,
        route_network: RouteNetwork,
    ) -> None:
        r1, r2, r3 = (route_network.routes[key] for key in ("r1", "r2", "r3"))
        first = await create_compound_route_rows(db_session, "First", [r1, r2])
        second = await create_compound_route_rows(db_session, "Second", [r2, r3])
        await db_session.commit()

        assert await routes.find_parent_ids_for_segment(db_session, r2.id) == [first.id, second.id]
        assert await routes.find_parent_ids_for_segment(db_session, r3.id) == [second.id]
        assert await routes.find_parent_ids_for_segment(db_session, route_network.routes["r4"].id) == []

    @pytest.mark.asyncio
    async def test_find_compound_routes_with_segments(
        self,
        db_session: AsyncSession,
        routes: RouteRepository,
        route_network: RouteNetwork,
    ) -> None:
        r1, r2 = route_network.routes["r1"], route_network.routes["r2"]
        compound = await create_compound_route_rows(db_session, "Loaded", [r1, r2])
        await db_session.commit()

        (loaded,) = await routes.find_compound_routes_with_segments(db_session)

        assert loaded.id == compound.id
        assert [segment.segment_route.id for segment in loaded.segments] == [r1.id, r2.id]


class TestRouteSegmentRepository:
    """Segment set operations."""

    @pytest.mark.asyncio
    async def test_delete_by_parent_and_find_by_parent(
        self,
        db_session: AsyncSession,
        route_network: RouteNetwork,
    ) -> None:
        segments = RouteSegmentRepository()
        r1, r2 = route_network.routes["r1"], route_network.routes["r2"]
        compound = await create_compound_route_rows(db_session, "Segments", [r1, r2])
        compound_id = compound.id
        await db_session.commit()

        assert [s.segment_route_id for s in await segments.find_by_parent(db_session, compound_id)] == [r1.id, r2.id]

        async with transaction(db_session) as tx:
            removed = await segments.delete_by_parent(tx, compound_id)

        assert removed == 2
        assert await segments.find_by_parent(db_session, compound_id) == []

    @pytest.mark.asyncio
    async def test_rolled_back_delete_keeps_segments(
        self,
        db_session: AsyncSession,
        route_network: RouteNetwork,
    ) -> None:
        segments = RouteSegmentRepository()
        r1, r2 = route_network.routes["r1"], route_network.routes["r2"]
        compound = await create_compound_route_rows(db_session, "Kept", [r1, r2])
        compound_id = compound.id
        await db_session.commit()

        with pytest.raises(RuntimeError, match="abort"):
            async with transaction(db_session) as tx:
                await segments.delete_by_parent(tx, compound_id)
                msg = "abort"
                raise RuntimeError(msg)

        assert len(await segments.find_by_parent(db_session, compound_id)) == 2


def test_route_repository_model() -> None:
    assert RouteRepository().model is Route
    assert RouteRepository().model_name == "Route"
