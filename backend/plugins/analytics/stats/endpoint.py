from typing import Annotated

from fastapi import APIRouter, Depends, Query

from .models import StatsSummary
from .service import StatsService, get_stats_service

router = APIRouter()


@router.get(
    "/summary",
    response_model=StatsSummary,
    summary="Get the analytics summary for a trailing window",
)
async def get_summary_stats(
    service: Annotated[StatsService, Depends(get_stats_service)],
    days: Annotated[float, Query(ge=0, description="Trailing window in days.")] = 7,
) -> StatsSummary:
    """
    Counts and breakdowns over the last ``days`` days, plus the 100 most
    recent visits and downloads regardless of the window.
    Protected by the global API key.
    """
    return await service.get_stats(days)
