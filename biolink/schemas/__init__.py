"""Pydantic schemas for the HTTP surface and click recording."""

from biolink.schemas.analytics import (
    AnalyticsRange,
    ClickContext,
    CountryStats,
    DailyPoint,
    LinkAnalytics,
    NormalizeResponse,
    Referrer,
    ReferrerStats,
)
from biolink.schemas.auth import AdminResponse, LoginRequest

__all__ = [
    "AnalyticsRange",
    "ClickContext",
    "CountryStats",
    "DailyPoint",
    "LinkAnalytics",
    "NormalizeResponse",
    "Referrer",
    "ReferrerStats",
    "AdminResponse",
    "LoginRequest",
]
