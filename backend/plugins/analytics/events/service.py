from typing import Annotated, Any

import structlog
from fastapi import Depends, Request

from backend.store import AnalyticsStore
from backend.utils.dependencies import get_geo_resolver, get_store
from backend.utils.geoip import GeoResolver
from backend.utils.middleware import client_ip

from .models import ClientContext, TrackBeacon
from .user_agent import parse_user_agent

logger = structlog.get_logger(__name__)

PAGEVIEW = "pageview"


def client_context(request: Request) -> ClientContext:
    return ClientContext(ip=client_ip(request), user_agent=request.headers.get("user-agent"))


class TrackingService:
    """Turns tracker beacons into visit and event rows."""

    def __init__(self, store: AnalyticsStore, geo: GeoResolver | None = None):
        self.store = store
        self.geo = geo

    def build_visit(self, beacon: TrackBeacon, client: ClientContext) -> dict[str, Any]:
        visit = {
            "session_id": beacon.sid,
            "page": beacon.page,
            "referrer": beacon.referrer,
            "utm_source": beacon.utm.source,
            "utm_medium": beacon.utm.medium,
            "utm_campaign": beacon.utm.campaign,
            "utm_content": beacon.utm.content,
            "utm_term": beacon.utm.term,
            "ip": client.ip,
            "ua": client.user_agent,
            "screen_w": beacon.screen.w,
            "screen_h": beacon.screen.h,
            "lang": beacon.lang,
            "client_tz": beacon.tz,
        }
        visit.update(parse_user_agent(client.user_agent).as_dict())
        if self.geo is not None:
            visit.update(self.geo.lookup(client.ip).as_dict())
        return visit

    def build_event(self, beacon: TrackBeacon) -> dict[str, Any]:
        return {
            "session_id": beacon.sid,
            "type": beacon.type,
            "asset_id": beacon.asset_id,
            "asset_title": beacon.asset_title,
            "asset_category": beacon.asset_category,
            "page": beacon.page,
            "utm_source": beacon.utm.source,
            "utm_campaign": beacon.utm.campaign,
            "utm_term": beacon.utm.term,
        }

    async def record(self, beacon: TrackBeacon, client: ClientContext) -> None:
        """
        A pageview stores a visit plus a ``pageview`` event; any other beacon
        type stores just the event. Store failures propagate.
        """
        if beacon.type == PAGEVIEW:
            await self.store.insert_visit(self.build_visit(beacon, client))
        await self.store.insert_event(self.build_event(beacon))
        logger.debug("Recorded tracking beacon", type=beacon.type, session_id=beacon.sid)


def get_tracking_service(
    store: Annotated[AnalyticsStore, Depends(get_store)],
    geo: Annotated[GeoResolver, Depends(get_geo_resolver)],
) -> TrackingService:
    return TrackingService(store, geo)
