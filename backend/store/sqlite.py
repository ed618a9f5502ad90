import sqlite3
from pathlib import Path
from typing import Any, Mapping

import structlog

from .base import AnalyticsStore
from .schema import EVENTS, SQLITE_TYPES, VISITS, build_row, insert_sql, schema_statements

logger = structlog.get_logger(__name__)

INSERT_VISIT_SQL = insert_sql(VISITS, ["?"] * len(VISITS.columns), verb="INSERT OR IGNORE")
INSERT_EVENT_SQL = insert_sql(EVENTS, ["?"] * len(EVENTS.columns))


class EmbeddedStore(AnalyticsStore):
    """
    Single-file SQLite store shared by the whole process.

    The methods are coroutines only to share the interface with the networked
    store; none of them awaits, so each call runs to completion on the caller's
    stack without yielding to the event loop.
    """

    backend = "sqlite"

    def __init__(self, path: str | Path):
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode = WAL")
        self._conn.execute("PRAGMA synchronous = NORMAL")
        self.ensure_schema()
        logger.info("Opened embedded analytics store", path=self.path)

    def ensure_schema(self) -> None:
        with self._conn:
            for statement in schema_statements(SQLITE_TYPES):
                self._conn.execute(statement)

    async def insert_visit(self, data: Mapping[str, Any]) -> None:
        self._conn.execute(INSERT_VISIT_SQL, build_row(VISITS, data))

    async def insert_event(self, data: Mapping[str, Any]) -> None:
        self._conn.execute(INSERT_EVENT_SQL, build_row(EVENTS, data))

    async def fetch_all(self, query: str, *params: Any) -> list[dict[str, Any]]:
        return [dict(row) for row in self._conn.execute(query, params).fetchall()]

    async def fetch_value(self, query: str, *params: Any) -> Any:
        row = self._conn.execute(query, params).fetchone()
        return row[0] if row is not None else None

    async def close(self) -> None:
        self._conn.close()
        logger.info("Closed embedded analytics store", path=self.path)
