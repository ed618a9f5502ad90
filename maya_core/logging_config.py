import ipaddress
import logging
import logging.config
import os
import sys

import structlog
from opentelemetry import trace
from structlog.types import EventDict, Processor

# Keys under which a visitor's address can reach a log line.
CLIENT_IP_KEYS = ("remote_addr", "client_ip")

# Third-party loggers kept at WARNING whatever LOG_LEVEL says.
QUIET_LOGGERS = ("asyncpg", "opentelemetry")


def truncate_ip(raw_ip: str) -> str:
    """
    Cuts an address down to its network: /16 for IPv4, /32 for IPv6.

    The full address is stored with the visit; log lines only need to tell
    networks apart.
    """
    try:
        address = ipaddress.ip_address(raw_ip)
    except ValueError:
        return "invalid"
    prefix = 16 if address.version == 4 else 32
    return str(ipaddress.ip_network(f"{address}/{prefix}", strict=False).network_address)


def mask_client_ips(_, __, event_dict: EventDict) -> EventDict:
    for key in CLIENT_IP_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str):
            event_dict[key] = truncate_ip(value)
    return event_dict


def add_opentelemetry_ids(_, __, event_dict: EventDict) -> EventDict:
    """Adds trace_id and span_id while a span (e.g. a stats query) is active."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict["trace_id"] = trace.format_trace_id(span_context.trace_id)
        event_dict["span_id"] = trace.format_span_id(span_context.span_id)
    return event_dict


def add_service_info(_, __, event_dict: EventDict) -> EventDict:
    event_dict["service"] = os.getenv("SERVICE_NAME", "maya-analytics")
    event_dict["env"] = os.getenv("ENVIRONMENT", "development")
    return event_dict


def drop_color_message_key(_, __, event_dict: EventDict) -> EventDict:
    event_dict.pop("color_message", None)
    return event_dict


def _logger_levels(level: str) -> dict:
    loggers = {
        "": {"handlers": ["default"], "level": level, "propagate": True},
        "uvicorn": {"handlers": [], "level": level, "propagate": True},
        "uvicorn.error": {"handlers": [], "level": level, "propagate": True},
        # the request middleware writes its own line per request
        "uvicorn.access": {"handlers": [], "propagate": False},
    }
    for name in QUIET_LOGGERS:
        loggers[name] = {"handlers": [], "level": "WARNING", "propagate": True}
    return loggers


def _log_uncaught(exc_type, exc_value, exc_traceback):
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    structlog.get_logger("uncaught_exception").error(
        "Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback)
    )


def setup_structlog(json_logs: bool = False, log_level: str = "INFO"):
    """
    Routes structlog and stdlib loggers (uvicorn, asyncpg) through one handler
    and one processor chain. JSON in production, colored console otherwise.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_info,
        add_opentelemetry_ids,
        mask_client_ips,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        drop_color_message_key,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(colors=True)
    level = log_level.upper()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "()": "structlog.stdlib.ProcessorFormatter",
                    "processors": [structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
                    "foreign_pre_chain": shared_processors,
                },
            },
            "handlers": {
                "default": {"level": level, "class": "logging.StreamHandler", "formatter": "default"},
            },
            "loggers": _logger_levels(level),
        }
    )

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    sys.excepthook = _log_uncaught
