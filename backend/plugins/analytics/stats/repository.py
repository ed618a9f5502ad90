from typing import Any

from structlog import get_logger

from backend.store import AnalyticsStore

logger = get_logger(__name__)

RECENT_LIMIT = 100

RECENT_VISIT_COLUMNS = (
    "ts",
    "page",
    "referrer",
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_content",
    "utm_term",
    "country",
    "region",
    "city",
    "isp",
    "device",
    "browser",
    "os",
    "screen_w",
    "screen_h",
    "lang",
)


def _with_int_counts(rows: list[dict[str, Any]], key: str = "n") -> list[dict[str, Any]]:
    # some drivers hand back COUNT(*) as a string or Decimal
    for row in rows:
        row[key] = int(row[key])
    return rows


class StatsRepository:
    """
    The fixed set of read queries behind the stats summary.

    Every windowed query takes the cutoff timestamp as its only parameter and
    keeps rows with ``ts >= cutoff``. The recent-activity queries take no
    window.
    """

    def __init__(self, store: AnalyticsStore):
        self.store = store

    async def _count(self, query: str, *params: Any) -> int:
        value = await self.store.fetch_value(query, *params)
        return int(value or 0)

    async def _grouped(
        self,
        columns: tuple[str, ...],
        since: str,
        non_empty: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        group = ", ".join(columns)
        where = "ts >= ?"
        if non_empty:
            where += f" AND {non_empty} IS NOT NULL AND {non_empty} != ''"
        query = (
            f"SELECT {group}, COUNT(*) AS n FROM visits WHERE {where} "
            f"GROUP BY {group} ORDER BY n DESC, {group}"
        )
        if limit:
            query += f" LIMIT {int(limit)}"
        return _with_int_counts(await self.store.fetch_all(query, since))

    async def count_visits(self, since: str) -> int:
        return await self._count("SELECT COUNT(*) FROM visits WHERE ts >= ?", since)

    async def count_downloads(self, since: str) -> int:
        return await self._count(
            "SELECT COUNT(*) FROM events WHERE type = 'download' AND ts >= ?", since
        )

    async def count_sessions(self, since: str) -> int:
        return await self._count(
            "SELECT COUNT(DISTINCT session_id) FROM visits WHERE ts >= ?", since
        )

    async def visits_by_page(self, since: str) -> list[dict[str, Any]]:
        return await self._grouped(("page",), since)

    async def visits_by_country(self, since: str, limit: int = 30) -> list[dict[str, Any]]:
        return await self._grouped(("country",), since, non_empty="country", limit=limit)

    async def visits_by_city(self, since: str, limit: int = 30) -> list[dict[str, Any]]:
        # country is part of the key, same-named cities exist in different countries
        return await self._grouped(("city", "country"), since, non_empty="city", limit=limit)

    async def visits_by_utm(self, since: str) -> list[dict[str, Any]]:
        return await self._grouped(
            ("utm_source", "utm_campaign", "utm_term"), since, non_empty="utm_source"
        )

    async def visits_by_device(self, since: str) -> list[dict[str, Any]]:
        return await self._grouped(("device",), since, non_empty="device")

    async def visits_by_browser(self, since: str) -> list[dict[str, Any]]:
        return await self._grouped(("browser",), since, non_empty="browser")

    async def visits_by_os(self, since: str) -> list[dict[str, Any]]:
        return await self._grouped(("os",), since, non_empty="os")

    async def visits_by_referrer(self, since: str, limit: int = 20) -> list[dict[str, Any]]:
        return await self._grouped(("referrer",), since, non_empty="referrer", limit=limit)

    async def top_downloads(self, since: str, limit: int = 20) -> list[dict[str, Any]]:
        rows = await self.store.fetch_all(
            "SELECT asset_id, asset_title, asset_category, COUNT(*) AS n FROM events "
            "WHERE type = 'download' AND ts >= ? "
            "GROUP BY asset_id, asset_title, asset_category "
            f"ORDER BY n DESC, asset_id, asset_title, asset_category LIMIT {int(limit)}",
            since,
        )
        return _with_int_counts(rows)

    async def recent_visits(self, limit: int = RECENT_LIMIT) -> list[dict[str, Any]]:
        return await self.store.fetch_all(
            f"SELECT {', '.join(RECENT_VISIT_COLUMNS)} FROM visits "
            f"ORDER BY ts DESC LIMIT {int(limit)}"
        )

    async def recent_downloads(self, limit: int = RECENT_LIMIT) -> list[dict[str, Any]]:
        return await self.store.fetch_all(
            "SELECT e.ts, e.asset_id, e.asset_title, e.asset_category, "
            "v.country, v.city, v.device, v.utm_source, v.utm_campaign, v.utm_term "
            "FROM events e LEFT JOIN visits v ON e.session_id = v.session_id "
            f"WHERE e.type = 'download' ORDER BY e.ts DESC LIMIT {int(limit)}"
        )
