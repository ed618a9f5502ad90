from dataclasses import asdict, dataclass
from pathlib import Path

import geoip2.database
import geoip2.errors
import structlog

logger = structlog.get_logger(__name__)


@dataclass
class GeoInfo:
    country: str | None = None
    region: str | None = None
    city: str | None = None
    lat: float | None = None
    lon: float | None = None
    geo_tz: str | None = None

    def as_dict(self) -> dict:
        return asdict(self)


class GeoResolver:
    """
    Looks up client IPs in a local MaxMind GeoLite2 City database.

    The reader is opened on first lookup. Without a configured database file
    every lookup returns an empty ``GeoInfo``.
    """

    def __init__(self, db_path: str | None):
        self.db_path = db_path
        self._reader: geoip2.database.Reader | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.db_path) and Path(self.db_path).exists()

    def _get_reader(self) -> geoip2.database.Reader | None:
        if self._reader is None and self.enabled:
            self._reader = geoip2.database.Reader(self.db_path)
            logger.info("Opened GeoIP database", path=self.db_path)
        return self._reader

    def lookup(self, ip: str | None) -> GeoInfo:
        reader = self._get_reader()
        if reader is None or not ip:
            return GeoInfo()
        try:
            response = reader.city(ip)
        except (geoip2.errors.AddressNotFoundError, ValueError):
            return GeoInfo()

        return GeoInfo(
            country=response.country.iso_code or response.registered_country.iso_code,
            region=response.subdivisions.most_specific.name,
            city=response.city.name,
            lat=response.location.latitude,
            lon=response.location.longitude,
            geo_tz=response.location.time_zone,
        )

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None
