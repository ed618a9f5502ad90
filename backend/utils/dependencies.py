from fastapi import Request

from backend.store import AnalyticsStore


def get_store(request: Request) -> AnalyticsStore:
    """Dependency to get the process-wide analytics store from the application state."""
    return request.app.state.store


def get_geo_resolver(request: Request):
    """Dependency to get the shared GeoIP resolver from the application state."""
    return request.app.state.geo_resolver
