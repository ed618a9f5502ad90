from pathlib import Path

import structlog

from .base import AnalyticsStore
from .postgres import NetworkedStore
from .sqlite import EmbeddedStore

logger = structlog.get_logger(__name__)


def create_store(
    database_url: str | None,
    sqlite_path: str | Path,
    **pool_options,
) -> AnalyticsStore:
    """
    Picks the analytics backend for this process.

    A connection string selects PostgreSQL, its absence the embedded SQLite
    file. Call once at startup and inject the result; there is no fallback
    from one backend to the other afterwards.
    """
    if database_url and database_url.strip():
        logger.info("Using networked analytics store")
        return NetworkedStore(database_url.strip(), **pool_options)

    logger.info("Using embedded analytics store", path=str(sqlite_path))
    return EmbeddedStore(sqlite_path)
