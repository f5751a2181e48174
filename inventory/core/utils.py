"""Core utility functions."""

# Async driver -> sync driver used by alembic and other synchronous tooling
_SYNC_DRIVERS = {
    "+asyncpg": "+psycopg",
    "+aiosqlite": "",
}


def convert_async_db_url_to_sync(database_url: str) -> str:
    """
    Convert an async database URL to a sync database URL.

    Converts postgresql+asyncpg:// to postgresql+psycopg:// (psycopg3) and
    sqlite+aiosqlite:// to plain sqlite://. Other URLs are returned unchanged.

    Only the scheme is rewritten; the remainder of the URL (credentials,
    host, path, query) is preserved verbatim, which keeps empty-netloc SQLite
    URLs such as ``sqlite+aiosqlite:///./inventory.db`` intact.

    Args:
        database_url: The async database URL (e.g., postgresql+asyncpg://...)

    Returns:
        The sync database URL (e.g., postgresql+psycopg://...)
    """
    scheme, separator, remainder = database_url.partition("://")
    if not separator:
        return database_url

    for async_driver, sync_driver in _SYNC_DRIVERS.items():
        if async_driver in scheme:
            return f"{scheme.replace(async_driver, sync_driver)}://{remainder}"
    return database_url
