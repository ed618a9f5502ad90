"""Discovers plugin routers and mounts each under its directory path."""

import importlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fastapi import APIRouter, FastAPI
from structlog import get_logger

logger = get_logger(__name__)

PLUGINS_DIR = Path(__file__).parent


@dataclass
class Plugin:
    name: str
    router: APIRouter
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def version(self) -> str:
        return self.metadata.get("version", "1.0.0")


def discover_plugins(
    plugins_dir: Path = PLUGINS_DIR, excluded: list[str] | None = None
) -> dict[str, Plugin]:
    """
    Every directory below ``plugins_dir`` holding an ``endpoint.py`` with a
    module-level ``router`` is a plugin named by its relative path, e.g.
    ``analytics/stats``. ``PLUGIN_METADATA`` is read from its ``__init__.py``.
    """
    excluded_names = set(excluded or [])
    plugins: dict[str, Plugin] = {}

    for endpoint_file in sorted(plugins_dir.rglob("endpoint.py")):
        relative_path = endpoint_file.parent.relative_to(plugins_dir)
        if any(part.startswith("_") for part in relative_path.parts):
            continue

        name = relative_path.as_posix()
        if name in excluded_names:
            logger.info("Skipping excluded plugin", plugin=name)
            continue

        package = f"{__name__}.{'.'.join(relative_path.parts)}"
        router = getattr(importlib.import_module(f"{package}.endpoint"), "router", None)
        if not isinstance(router, APIRouter):
            logger.warning("No valid router found", plugin=name)
            continue

        metadata = getattr(importlib.import_module(package), "PLUGIN_METADATA", {})
        plugins[name] = Plugin(name=name, router=router, metadata=metadata)

    return plugins


def init_plugins(app: FastAPI, excluded_plugins: list[str] | None = None) -> dict[str, Plugin]:
    """Registers all discovered plugin routers with the app."""
    plugins = discover_plugins(excluded=excluded_plugins)
    for name, plugin in plugins.items():
        app.include_router(plugin.router, prefix=f"/{name}", tags=[name.title()])
        logger.info("Registered plugin routes", plugin=name, version=plugin.version)

    logger.info("Plugin system initialized", count=len(plugins))
    return plugins
