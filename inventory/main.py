"""Main FastAPI application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from alembic import script
from alembic.config import Config
from alembic.runtime import migration
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncSession

from inventory import __version__
from inventory.api import routes
from inventory.core.config import settings
from inventory.core.database import get_db, get_engine
from inventory.core.logging import configure_logging
from inventory.core.telemetry import (
    get_tracer_provider,
    set_logger_provider,
    shutdown_logger_provider,
    shutdown_tracer_provider,
)
from inventory.middleware import AccessLoggingMiddleware

# Configure logging at import so uvicorn startup logs go through structlog
configure_logging(log_level=settings.LOG_LEVEL)

logger = structlog.get_logger(__name__)


def _check_alembic_migrations(sync_conn: Connection) -> str | None:
    """
    Verify the database is at the Alembic head revision.

    Args:
        sync_conn: Synchronous SQLAlchemy connection

    Returns:
        Current revision id

    Raises:
        RuntimeError: If the database is uninitialised or behind head
    """
    current_rev = migration.MigrationContext.configure(sync_conn).get_current_revision()

    alembic_ini_path = Path(settings.ALEMBIC_INI_PATH)
    if not alembic_ini_path.exists():
        logger.warning("alembic_ini_not_found", path=settings.ALEMBIC_INI_PATH, action="skipping migration validation")
        return current_rev

    head_rev = script.ScriptDirectory.from_config(Config(str(alembic_ini_path))).get_current_head()

    if current_rev is None:
        msg = "Database has not been initialized! Please run: alembic upgrade head"
        raise RuntimeError(msg)
    if current_rev != head_rev:
        msg = (
            f"Database migration required!\n"
            f"  Current revision: {current_rev}\n"
            f"  Expected revision: {head_rev}\n"
            f"Please run: alembic upgrade head"
        )
        raise RuntimeError(msg)

    return current_rev


def _shutdown_telemetry() -> None:
    if settings.OTEL_ENABLED:
        shutdown_tracer_provider()
        shutdown_logger_provider()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Install OTEL providers and, outside DEBUG, validate the database before serving."""
    # Providers are created here (after fork) so each worker owns its exporters
    if settings.OTEL_ENABLED and (provider := get_tracer_provider()):
        trace.set_tracer_provider(provider)
        set_logger_provider()
        logger.info("otel_tracer_provider_initialized")

    if settings.DEBUG:
        logger.info("debug_mode_startup", message="skipping database validation")
        yield
        _shutdown_telemetry()
        logger.info("shutdown_complete")
        return

    logger.info("startup_initializing", message="validating database")
    try:
        async with get_engine().begin() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("database_connection_successful")

            current_rev = await conn.run_sync(_check_alembic_migrations)
            logger.info("database_migration_valid", revision=current_rev)
    except RuntimeError as e:
        logger.error("migration_validation_failed", error=str(e))
        raise
    except OSError as e:
        logger.error("startup_filesystem_error", error=str(e))
        raise

    logger.info("startup_complete")

    yield

    logger.info("shutdown_starting")
    _shutdown_telemetry()
    await get_engine().dispose()
    logger.info("shutdown_complete")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Route composition backend: simple routes, compound routes and their segment chains",
    version=__version__,
    lifespan=lifespan,
)

# Instrumentor wraps the ASGI app now; the TracerProvider is set later in lifespan
if settings.OTEL_ENABLED:
    FastAPIInstrumentor().instrument_app(
        app,
        excluded_urls=",".join(settings.OTEL_EXCLUDED_URLS),
    )
    logger.info("otel_fastapi_instrumented", excluded_urls=settings.OTEL_EXCLUDED_URLS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# Replaces uvicorn.access logs with structlog events
app.add_middleware(AccessLoggingMiddleware)

app.include_router(routes.router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": settings.PROJECT_NAME, "version": __version__}


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)) -> dict[str, str]:
    """Readiness check endpoint - verify the database answers."""
    await db.execute(text("SELECT 1"))
    return {"status": "ready"}
