from contextlib import asynccontextmanager

import structlog
import structlog.contextvars
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_fastapi_instrumentator import Instrumentator

from backend.config import settings
from backend.plugins import init_plugins
from backend.store import create_store
from backend.utils.exceptions import ServiceError
from backend.utils.geoip import GeoResolver
from backend.utils.middleware import api_key_middleware, structured_logging_middleware
from maya_core.logging_config import setup_structlog
from maya_core.tracing import setup_tracing

EXCLUDED_PLUGINS = []

setup_structlog(json_logs=settings.json_logs, log_level=settings.log_level)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Opens the analytics store on startup and releases it on shutdown.

    The store backend is chosen here, once per process. The PostgreSQL store
    does not connect yet; it sets up its pool and schema on first use.
    """
    if settings.tracing_enabled:
        setup_tracing(service_name=settings.service_name)
    logger.info("Application starting up...", service=settings.service_name)

    instrumentator.expose(app, include_in_schema=False)

    app.state.store = create_store(
        settings.database_url,
        settings.sqlite_path,
        pool_max_size=settings.pg_pool_max_size,
        pool_idle_timeout=settings.pg_pool_idle_timeout,
        connect_timeout=settings.pg_connect_timeout,
    )
    logger.info("Analytics store initialized.", backend=app.state.store.backend)

    app.state.geo_resolver = GeoResolver(settings.geoip_db_path)
    if not app.state.geo_resolver.enabled:
        logger.info("No GeoIP database configured, geo fields will stay empty.")

    yield

    logger.info("Application shutting down...")
    await app.state.store.close()
    app.state.geo_resolver.close()
    logger.info("Analytics store closed.")


app = FastAPI(
    version="1.0.0",
    title="MAYA Analytics API",
    description="Visit and download tracking with a windowed statistics summary.",
    lifespan=lifespan,
)

FastAPIInstrumentor.instrument_app(app)

instrumentator = Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/metrics", "/health"],
)

instrumentator.instrument(app, metric_namespace="maya", metric_subsystem="analytics")


@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    logger.warning(
        "Service error occurred, returning HTTP response",
        detail=exc.detail,
        status_code=exc.status_code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "An unhandled exception occurred",
        error=str(exc),
    )
    context_vars = structlog.contextvars.get_contextvars()
    correlation_id = context_vars.get("correlation_id", "not-available")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An internal server error occurred.",
            "error_id": correlation_id,
        },
    )


app.middleware("http")(api_key_middleware)
app.middleware("http")(structured_logging_middleware)

init_plugins(app, excluded_plugins=EXCLUDED_PLUGINS)


@app.get("/health", tags=["Health Check"], include_in_schema=False)
def health_check():
    return {"status": "ok"}
