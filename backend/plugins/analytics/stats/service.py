import asyncio
from datetime import datetime, timedelta, timezone
from typing import Annotated

import structlog
from fastapi import Depends

from backend.store import AnalyticsStore
from backend.store.schema import iso_timestamp
from backend.utils.dependencies import get_store
from backend.utils.exceptions import BadRequestError
from maya_core.tracing import get_tracer

from .models import StatsSummary
from .repository import StatsRepository

logger = structlog.get_logger(__name__)
tracer = get_tracer(__name__)


# Sorts before every stored timestamp; used when the window reaches past year 1.
EARLIEST_TIMESTAMP = "0000-01-01T00:00:00.000Z"


def window_start(days: float, now: datetime | None = None) -> str:
    """Cutoff for a trailing window of ``days``, formatted like stored timestamps."""
    now = now or datetime.now(timezone.utc)
    try:
        return iso_timestamp(now - timedelta(seconds=days * 86400))
    except OverflowError:
        return EARLIEST_TIMESTAMP


class StatsService:
    def __init__(self, repository: StatsRepository):
        self.repository = repository

    async def get_stats(self, days: float) -> StatsSummary:
        """
        Builds the summary for the trailing ``days``.

        All queries go out through one ``asyncio.gather``: on PostgreSQL they
        run concurrently, on SQLite each finishes before the next starts. They
        are independent reads, not one snapshot. If any of them fails the whole
        call fails.
        """
        # written this way round so NaN is rejected too
        if not days >= 0:
            raise BadRequestError("days must be a non-negative number")

        since = window_start(days)
        repo = self.repository

        with tracer.start_as_current_span("analytics.get_stats") as span:
            span.set_attribute("analytics.days", days)
            span.set_attribute("analytics.backend", repo.store.backend)

            tasks = {
                "visits": repo.count_visits(since),
                "downloads": repo.count_downloads(since),
                "unique_sessions": repo.count_sessions(since),
                "by_page": repo.visits_by_page(since),
                "by_country": repo.visits_by_country(since),
                "by_city": repo.visits_by_city(since),
                "by_utm": repo.visits_by_utm(since),
                "by_device": repo.visits_by_device(since),
                "by_browser": repo.visits_by_browser(since),
                "by_os": repo.visits_by_os(since),
                "top_downloads": repo.top_downloads(since),
                "by_referrer": repo.visits_by_referrer(since),
                "recent_visits": repo.recent_visits(),
                "recent_downloads": repo.recent_downloads(),
            }
            results = await asyncio.gather(*tasks.values())

        data = dict(zip(tasks.keys(), results))
        logger.debug(
            "Computed analytics summary",
            days=days,
            since=since,
            visits=data["visits"],
            downloads=data["downloads"],
        )
        return StatsSummary(**data)


def get_stats_repository(
    store: Annotated[AnalyticsStore, Depends(get_store)],
) -> StatsRepository:
    return StatsRepository(store)


def get_stats_service(
    repository: Annotated[StatsRepository, Depends(get_stats_repository)],
) -> StatsService:
    return StatsService(repository)
