from abc import ABC, abstractmethod
from typing import Any, Mapping


class AnalyticsStore(ABC):
    """
    Storage for visits and events.

    Two implementations exist: ``EmbeddedStore`` (SQLite file, calls never
    suspend) and ``NetworkedStore`` (PostgreSQL pool, every call is a network
    round trip). Read queries are written once with ``?`` placeholders and
    each backend adapts them to its driver.
    """

    backend: str

    @abstractmethod
    async def insert_visit(self, data: Mapping[str, Any]) -> None:
        """Stores one visit; a visit whose id already exists is ignored."""

    @abstractmethod
    async def insert_event(self, data: Mapping[str, Any]) -> None:
        """Stores one event."""

    @abstractmethod
    async def fetch_all(self, query: str, *params: Any) -> list[dict[str, Any]]:
        """Runs a read query and returns its rows as plain dicts."""

    @abstractmethod
    async def fetch_value(self, query: str, *params: Any) -> Any:
        """Runs a read query and returns the first column of its first row."""

    @abstractmethod
    async def close(self) -> None:
        """Releases the file handle or connection pool."""
