"""Tests for main API endpoints and application lifespan."""

from unittest.mock import AsyncMock, Mock, patch

import pytest
from httpx import AsyncClient

from inventory import __version__
from inventory.main import _check_alembic_migrations, lifespan


def mock_engine_with_revision(revision: str = "test_revision") -> Mock:
    """Build an engine mock whose begin() yields a connection reporting ``revision``."""
    mock_conn = AsyncMock()
    mock_conn.execute = AsyncMock()
    mock_conn.run_sync = AsyncMock(return_value=revision)

    mock_begin_ctx = AsyncMock()
    mock_begin_ctx.__aenter__.return_value = mock_conn
    mock_begin_ctx.__aexit__.return_value = None

    mock_engine = Mock()
    mock_engine.begin.return_value = mock_begin_ctx
    mock_engine.dispose = AsyncMock()
    return mock_engine


@pytest.mark.asyncio
async def test_root_endpoint(async_client: AsyncClient) -> None:
    """Test root endpoint returns project name and version."""
    response = await async_client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Route Inventory"
    assert data["version"] == __version__


@pytest.mark.asyncio
async def test_health_check(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_readiness_check_queries_database(async_client: AsyncClient) -> None:
    """Test readiness check answers once the database responds."""
    response = await async_client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


@pytest.mark.asyncio
async def test_request_id_exposed_to_browsers(async_client: AsyncClient) -> None:
    response = await async_client.get("/health", headers={"Origin": "http://localhost:3000"})

    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert "X-Request-ID" in response.headers["access-control-expose-headers"]


# Tests for _check_alembic_migrations


def test_check_alembic_migrations_no_ini_file() -> None:
    """Test migration check when alembic.ini doesn't exist."""
    mock_conn = Mock()
    mock_context = Mock()
    mock_context.get_current_revision.return_value = "abc123"

    with (
        patch("inventory.main.migration.MigrationContext.configure", return_value=mock_context),
        patch("inventory.main.Path") as mock_path,
        patch("inventory.main.settings") as mock_settings,
    ):
        mock_settings.ALEMBIC_INI_PATH = "alembic.ini"
        mock_path.return_value.exists.return_value = False

        result = _check_alembic_migrations(mock_conn)

        assert result == "abc123"
        mock_context.get_current_revision.assert_called_once()


def test_check_alembic_migrations_db_not_initialized() -> None:
    """Test migration check when database hasn't been initialized."""
    mock_conn = Mock()
    mock_context = Mock()
    mock_context.get_current_revision.return_value = None

    with (
        patch("inventory.main.migration.MigrationContext.configure", return_value=mock_context),
        patch("inventory.main.Path") as mock_path,
        patch("inventory.main.Config"),
        patch("inventory.main.script.ScriptDirectory.from_config"),
        patch("inventory.main.settings") as mock_settings,
    ):
        mock_settings.ALEMBIC_INI_PATH = "alembic.ini"
        mock_path.return_value.exists.return_value = True

        with pytest.raises(RuntimeError, match="Database has not been initialized"):
            _check_alembic_migrations(mock_conn)


def test_check_alembic_migrations_needs_migration() -> None:
    """Test migration check when migrations are needed."""
    mock_conn = Mock()
    mock_context = Mock()
    mock_context.get_current_revision.return_value = "old_revision"

    mock_script_dir = Mock()
    mock_script_dir.get_current_head.return_value = "new_revision"

    with (
        patch("inventory.main.migration.MigrationContext.configure", return_value=mock_context),
        patch("inventory.main.Path") as mock_path,
        patch("inventory.main.Config"),
        patch("inventory.main.script.ScriptDirectory.from_config", return_value=mock_script_dir),
        patch("inventory.main.settings") as mock_settings,
    ):
        mock_settings.ALEMBIC_INI_PATH = "alembic.ini"
        mock_path.return_value.exists.return_value = True

        with pytest.raises(RuntimeError, match="Database migration required"):
            _check_alembic_migrations(mock_conn)


def test_check_alembic_migrations_up_to_date() -> None:
    mock_conn = Mock()
    mock_context = Mock()
    mock_context.get_current_revision.return_value = "current_revision"

    mock_script_dir = Mock()
    mock_script_dir.get_current_head.return_value = "current_revision"

    with (
        patch("inventory.main.migration.MigrationContext.configure", return_value=mock_context),
        patch("inventory.main.Path") as mock_path,
        patch("inventory.main.Config"),
        patch("inventory.main.script.ScriptDirectory.from_config", return_value=mock_script_dir),
        patch("inventory.main.settings") as mock_settings,
    ):
        mock_settings.ALEMBIC_INI_PATH = "alembic.ini"
        mock_path.return_value.exists.return_value = True

        assert _check_alembic_migrations(mock_conn) == "current_revision"


# Tests for lifespan


@pytest.mark.asyncio
async def test_lifespan_debug_mode() -> None:
    """Test lifespan skips database validation in DEBUG mode."""
    mock_app = Mock()

    with (
        patch("inventory.main.settings") as mock_settings,
        patch("inventory.main.get_engine") as mock_get_engine,
    ):
        mock_settings.DEBUG = True
        mock_settings.OTEL_ENABLED = False

        async with lifespan(mock_app):
            pass

        mock_get_engine.assert_not_called()


@pytest.mark.asyncio
async def test_lifespan_production_success() -> None:
    """Test lifespan validates the database and disposes the engine on shutdown."""
    mock_app = Mock()
    mock_engine = mock_engine_with_revision()

    with (
        patch("inventory.main.settings") as mock_settings,
        patch("inventory.main.get_engine", return_value=mock_engine),
    ):
        mock_settings.DEBUG = False
        mock_settings.OTEL_ENABLED = False

        async with lifespan(mock_app):
            mock_engine.dispose.assert_not_awaited()

        mock_engine.begin.assert_called_once()
        mock_engine.dispose.assert_awaited_once()


@pytest.mark.asyncio
async def test_lifespan_production_runtime_error() -> None:
    """Test lifespan propagates RuntimeError from migration check."""
    mock_app = Mock()
    mock_engine = mock_engine_with_revision()
    mock_engine.begin.return_value.__aenter__.return_value.run_sync.side_effect = RuntimeError("Migration failed")

    with (
        patch("inventory.main.settings") as mock_settings,
        patch("inventory.main.get_engine", return_value=mock_engine),
    ):
        mock_settings.DEBUG = False
        mock_settings.OTEL_ENABLED = False

        with pytest.raises(RuntimeError, match="Migration failed"):
            async with lifespan(mock_app):
                pass


@pytest.mark.asyncio
async def test_lifespan_production_os_error() -> None:
    """Test lifespan propagates OSError during startup."""
    mock_app = Mock()
    mock_engine = mock_engine_with_revision()
    mock_engine.begin.return_value.__aenter__.return_value.run_sync.side_effect = OSError("File error")

    with (
        patch("inventory.main.settings") as mock_settings,
        patch("inventory.main.get_engine", return_value=mock_engine),
    ):
        mock_settings.DEBUG = False
        mock_settings.OTEL_ENABLED = False

        with pytest.raises(OSError, match="File error"):
            async with lifespan(mock_app):
                pass
