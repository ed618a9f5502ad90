import secrets
import time
import uuid

import structlog
import structlog.contextvars
from fastapi import Request
from fastapi.responses import JSONResponse

from backend.config import settings

logger = structlog.get_logger(__name__)

UNLOGGED_ENDPOINTS = {"/health", "/metrics", "/docs", "/redoc", "/openapi.json", "/favicon.ico"}
# Called by the tracker script on every page, so no API key and no info line.
BEACON_ENDPOINTS = {"/analytics/events/track"}


def client_ip(request: Request) -> str | None:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


async def structured_logging_middleware(request: Request, call_next):
    """
    Binds a correlation id and the request into the logging context and
    writes one line per request. Beacon hits log at debug level.
    """
    structlog.contextvars.clear_contextvars()
    path = request.url.path
    correlation_id = request.headers.get("x-correlation-id") or str(uuid.uuid4())
    structlog.contextvars.bind_contextvars(
        correlation_id=correlation_id,
        client_ip=client_ip(request),
        request_path=path,
        request_method=request.method,
    )
    started = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "Request failed with unhandled exception",
            processing_time_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        raise
    else:
        elapsed = time.perf_counter() - started
        if response.status_code >= 400:
            log_event = logger.warning
        elif path in BEACON_ENDPOINTS:
            log_event = logger.debug
        else:
            log_event = logger.info
        if path not in UNLOGGED_ENDPOINTS:
            log_event(
                "Request completed",
                status_code=response.status_code,
                processing_time_ms=round(elapsed * 1000, 2),
            )
        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = f"{elapsed:.4f}s"
        return response
    finally:
        structlog.contextvars.clear_contextvars()


async def api_key_middleware(request: Request, call_next):
    """Every route except health, docs and the tracking beacon needs ``X-API-Key``."""
    path = request.url.path
    if path in UNLOGGED_ENDPOINTS or path in BEACON_ENDPOINTS:
        return await call_next(request)

    api_key = request.headers.get("x-api-key") or ""
    if not secrets.compare_digest(api_key.encode(), settings.api_key.encode()):
        logger.warning("Rejected request without a valid API key", request_path=path)
        return JSONResponse(status_code=401, content={"detail": "Invalid or missing API key"})

    return await call_next(request)
