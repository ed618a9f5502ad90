"""Visit/event storage with an embedded (SQLite) and a networked (PostgreSQL) backend."""

from .base import AnalyticsStore
from .postgres import NetworkedStore
from .selector import create_store
from .sqlite import EmbeddedStore

__all__ = ["AnalyticsStore", "EmbeddedStore", "NetworkedStore", "create_store"]
