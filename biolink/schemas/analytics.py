"""Pydantic schemas for click recording and analytics responses."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AnalyticsRange = Literal["7d", "30d", "all"]


class Referrer(BaseModel):
    """Classified HTTP Referer header."""

    source: str = Field(description="Display source, e.g. 'https://google.com' or 'Direct'")
    host: str | None = Field(default=None, description="Referrer host, used as bucket key")

    @property
    def key(self) -> str:
        """Bucket key for the referrer rollups."""
        return self.host or self.source


class ClickContext(BaseModel):
    """Request-derived data for a single recorded click."""

    fingerprint: str = Field(description="Daily-rotating visitor fingerprint")
    country_code: str = Field(default="unknown", description="ISO 3166-1 alpha-2 code or 'unknown'")
    referrer: Referrer | None = None
    user_agent: str = ""
    date: str | None = Field(
        default=None,
        description="UTC day (YYYY-MM-DD) the fingerprint was computed for; picks the day bucket",
    )

    model_config = {"json_schema_extra": {"example": {
        "fingerprint": "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08",
        "country_code": "US",
        "referrer": {"source": "https://google.com", "host": "google.com"},
        "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
        "date": "2024-01-01",
    }}}


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DailyPoint(CamelModel):
    """Clicks for a single day."""

    date: str = Field(description="UTC date, YYYY-MM-DD")
    total: int
    uniques: int


class CountryStats(CamelModel):
    """Clicks attributed to one country."""

    code: str = Field(description="ISO 3166-1 alpha-2 country code or 'unknown'")
    name: str
    total: int
    uniques: int


class ReferrerStats(CamelModel):
    """Clicks attributed to one referrer."""

    source: str = Field(description="Referrer key (host, or 'direct')")
    label: str
    total: int
    uniques: int


class LinkAnalytics(CamelModel):
    """Analytics for one link over the requested range."""

    total_clicks: int = 0
    daily: list[DailyPoint] = Field(default_factory=list)
    countries: list[CountryStats] = Field(default_factory=list)
    referrers: list[ReferrerStats] = Field(default_factory=list)


class NormalizeResponse(BaseModel):
    """Result of a stats normalization run."""

    links: int = Field(description="Number of link stats records normalized")
