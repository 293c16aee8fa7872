"""Business logic services."""

from biolink.services.click_recorder import (
    STATS_KEY,
    ClickRecorder,
    build_click_context,
)
from biolink.services.fingerprint import fingerprint, utc_today
from biolink.services.geoip import GeoIPService, country_name
from biolink.services.referrer import direct_referrer, parse_referrer

__all__ = [
    # Click recording
    "STATS_KEY",
    "ClickRecorder",
    "build_click_context",
    # Visitor identity
    "fingerprint",
    "utc_today",
    # Geo / referrer
    "GeoIPService",
    "country_name",
    "direct_referrer",
    "parse_referrer",
]
