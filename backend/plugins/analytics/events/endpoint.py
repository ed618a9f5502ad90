from typing import Annotated

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Request

from .models import TrackAccepted, TrackBeacon
from .service import TrackingService, client_context, get_tracking_service

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.post("/track", status_code=202, response_model=TrackAccepted)
async def track(
    beacon: TrackBeacon,
    request: Request,
    background_tasks: BackgroundTasks,
    service: Annotated[TrackingService, Depends(get_tracking_service)],
) -> TrackAccepted:
    """
    Accepts a beacon from the tracker script and returns 202 right away.
    The rows are written after the response has been sent.
    """
    structlog.contextvars.bind_contextvars(session_id=beacon.sid, beacon_type=beacon.type)
    logger.info("Received tracking beacon")

    background_tasks.add_task(service.record, beacon, client_context(request))

    return TrackAccepted()
