import ipaddress
import re
import ssl
from typing import Any, Mapping
from urllib.parse import urlparse

import asyncpg
import structlog

from .base import AnalyticsStore
from .init_guard import InitGuard
from .schema import EVENTS, POSTGRES_TYPES, VISITS, build_row, insert_sql, schema_statements

logger = structlog.get_logger(__name__)

# Arbitrary constant shared by every process applying the analytics schema.
SCHEMA_LOCK_KEY = 0x6D617961

INSERT_VISIT_SQL = insert_sql(
    VISITS,
    [f"${i}" for i in range(1, len(VISITS.columns) + 1)],
    suffix="ON CONFLICT (id) DO NOTHING",
)
INSERT_EVENT_SQL = insert_sql(EVENTS, [f"${i}" for i in range(1, len(EVENTS.columns) + 1)])

_QMARK = re.compile(r"\?")


def numbered_placeholders(query: str) -> str:
    """Rewrites ``?`` placeholders as asyncpg's ``$1, $2, ...``."""
    counter = iter(range(1, query.count("?") + 1))
    return _QMARK.sub(lambda _: f"${next(counter)}", query)


def is_local_host(host: str | None) -> bool:
    if not host or host.startswith("/"):
        return True
    if host == "localhost":
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return address.is_loopback or address.is_private or address.is_link_local


def ssl_for_dsn(dsn: str) -> ssl.SSLContext | bool:
    """
    No TLS for local and private-network hosts (containers talking to each
    other); otherwise TLS without certificate verification, as managed
    PostgreSQL providers commonly serve self-signed certificates.
    """
    if is_local_host(urlparse(dsn).hostname):
        return False
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


class NetworkedStore(AnalyticsStore):
    """
    PostgreSQL store on top of an asyncpg connection pool.

    Neither the pool nor the schema exist until the first call. Both are set
    up behind an ``InitGuard``, so a database that is down at startup only
    fails the calls made while it is down.
    """

    backend = "postgres"

    def __init__(
        self,
        dsn: str,
        *,
        pool_max_size: int = 20,
        pool_idle_timeout: float = 30.0,
        connect_timeout: float = 10.0,
    ):
        self._dsn = dsn
        self._pool_max_size = pool_max_size
        self._pool_idle_timeout = pool_idle_timeout
        self._connect_timeout = connect_timeout
        self._ssl = ssl_for_dsn(dsn)
        self._pool: asyncpg.Pool | None = None
        self._guard = InitGuard(self._initialize, name="postgres_schema")

    @property
    def init_state(self):
        return self._guard.state

    async def _initialize(self) -> None:
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                self._dsn,
                min_size=1,
                max_size=self._pool_max_size,
                max_inactive_connection_lifetime=self._pool_idle_timeout,
                timeout=self._connect_timeout,
                ssl=self._ssl,
            )
            logger.info(
                "Created PostgreSQL pool",
                max_size=self._pool_max_size,
                ssl=bool(self._ssl),
            )

        async with self._pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute("SELECT pg_advisory_xact_lock($1)", SCHEMA_LOCK_KEY)
                for statement in schema_statements(POSTGRES_TYPES):
                    await conn.execute(statement)

    async def _ready_pool(self) -> asyncpg.Pool:
        await self._guard.ensure()
        return self._pool

    async def insert_visit(self, data: Mapping[str, Any]) -> None:
        pool = await self._ready_pool()
        await pool.execute(INSERT_VISIT_SQL, *build_row(VISITS, data))

    async def insert_event(self, data: Mapping[str, Any]) -> None:
        pool = await self._ready_pool()
        await pool.execute(INSERT_EVENT_SQL, *build_row(EVENTS, data))

    async def fetch_all(self, query: str, *params: Any) -> list[dict[str, Any]]:
        pool = await self._ready_pool()
        rows = await pool.fetch(numbered_placeholders(query), *params)
        return [dict(row) for row in rows]

    async def fetch_value(self, query: str, *params: Any) -> Any:
        pool = await self._ready_pool()
        return await pool.fetchval(numbered_placeholders(query), *params)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Closed PostgreSQL pool")
