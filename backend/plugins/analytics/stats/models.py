from typing import List

from pydantic import BaseModel, ConfigDict, Field

# Values come back as storage kept them: SQLite leaves "1920px" in an INTEGER
# column and a number in a TEXT one. Numeric fields accept any of them.
StoredNumber = int | float | str | None


class StoredRow(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)


class PageCount(StoredRow):
    page: str | None
    n: int


class CountryCount(StoredRow):
    country: str
    n: int


class CityCount(StoredRow):
    city: str
    country: str | None
    n: int


class UtmCount(StoredRow):
    utm_source: str
    utm_campaign: str | None
    utm_term: str | None
    n: int


class DeviceCount(StoredRow):
    device: str
    n: int


class BrowserCount(StoredRow):
    browser: str
    n: int


class OsCount(StoredRow):
    os: str
    n: int


class ReferrerCount(StoredRow):
    referrer: str
    n: int


class AssetDownloadCount(StoredRow):
    asset_id: str | None
    asset_title: str | None
    asset_category: str | None
    n: int


class RecentVisit(StoredRow):
    ts: str
    page: str | None = None
    referrer: str | None = None
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_content: str | None = None
    utm_term: str | None = None
    country: str | None = None
    region: str | None = None
    city: str | None = None
    isp: str | None = None
    device: str | None = None
    browser: str | None = None
    os: str | None = None
    screen_w: StoredNumber = None
    screen_h: StoredNumber = None
    lang: str | None = None


class RecentDownload(StoredRow):
    ts: str
    asset_id: str | None = None
    asset_title: str | None = None
    asset_category: str | None = None
    country: str | None = Field(None, description="From the visit sharing the event's session.")
    city: str | None = None
    device: str | None = None
    utm_source: str | None = None
    utm_campaign: str | None = None
    utm_term: str | None = None


class StatsSummary(BaseModel):
    visits: int = Field(..., description="Visits inside the window.")
    downloads: int = Field(..., description="Download events inside the window.")
    unique_sessions: int = Field(..., description="Distinct visit sessions inside the window.")
    by_page: List[PageCount]
    by_country: List[CountryCount]
    by_city: List[CityCount]
    by_utm: List[UtmCount]
    by_device: List[DeviceCount]
    by_browser: List[BrowserCount]
    by_os: List[OsCount]
    top_downloads: List[AssetDownloadCount]
    by_referrer: List[ReferrerCount]
    recent_visits: List[RecentVisit] = Field(
        ..., description="Latest visits regardless of the window."
    )
    recent_downloads: List[RecentDownload] = Field(
        ..., description="Latest downloads with visit context, regardless of the window."
    )
