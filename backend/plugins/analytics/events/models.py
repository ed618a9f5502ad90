from pydantic import BaseModel, ConfigDict, Field


class UtmParams(BaseModel):
    source: str | None = None
    medium: str | None = None
    campaign: str | None = None
    content: str | None = None
    term: str | None = None


class ScreenSize(BaseModel):
    w: int | None = None
    h: int | None = None


class TrackBeacon(BaseModel):
    """Payload posted by the site's tracker script via ``navigator.sendBeacon``."""

    model_config = ConfigDict(extra="ignore")

    type: str = Field(..., min_length=1, max_length=64)
    sid: str = Field(..., min_length=1, max_length=128, description="Browser session id.")
    page: str | None = None
    referrer: str | None = None
    utm: UtmParams = Field(default_factory=UtmParams)
    screen: ScreenSize = Field(default_factory=ScreenSize)
    lang: str | None = None
    tz: str | None = None
    asset_id: str | None = None
    asset_title: str | None = None
    asset_category: str | None = None


class ClientContext(BaseModel):
    """What the server itself knows about the sender of a beacon."""

    ip: str | None = None
    user_agent: str | None = None


class TrackAccepted(BaseModel):
    status: str = "accepted"
