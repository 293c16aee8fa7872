"""GeoIP service for IP to country lookup."""

import ipaddress
from pathlib import Path

import geoip2.database
import geoip2.errors
import httpx
import pycountry
import structlog

logger = structlog.get_logger()

UNKNOWN_COUNTRY = "unknown"
UNKNOWN_COUNTRY_NAME = "Unknown"


class GeoIPService:
    """Service for resolving client IP addresses to country codes.

    Supports two backends:
    1. GeoIP2 database (MaxMind) - for production use
    2. IP-API.com - free API fallback for development

    Lookups never raise: anything that cannot be resolved maps to
    ``"unknown"``.

    Usage:
        service = GeoIPService()
        code = await service.lookup_country("8.8.8.8")
    """

    def __init__(
        self,
        geoip_database_path: str | None = None,
        api_enabled: bool = True,
        api_timeout: float = 2.0,
    ):
        """Initialize the GeoIP service.

        Args:
            geoip_database_path: Path to GeoIP2 database file.
                If not provided, falls back to IP-API.com.
            api_enabled: Whether the IP-API.com fallback may be used.
            api_timeout: Seconds to wait for IP-API.com.
        """
        self._geoip_reader: geoip2.database.Reader | None = None
        self._database_path = geoip_database_path or ""
        self._api_enabled = api_enabled
        self._api_timeout = api_timeout

        if self._database_path:
            self._init_geoip2()

    def _init_geoip2(self) -> None:
        """Initialize GeoIP2 database reader."""
        path = Path(self._database_path)
        if not path.exists():
            logger.warning("GeoIP2 database not found", path=str(path))
            return
        try:
            self._geoip_reader = geoip2.database.Reader(str(path))
            logger.info("GeoIP2 database loaded", path=str(path))
        except (OSError, ValueError) as e:
            logger.error("Failed to load GeoIP2 database", error=str(e))

    async def lookup_country(self, ip_address: str | None) -> str:
        """Look up the country code for an IP address.

        Returns:
            Uppercase ISO 3166-1 alpha-2 code, or ``"unknown"``.
        """
        if not ip_address or not self._is_public_ip(ip_address):
            return UNKNOWN_COUNTRY

        if self._geoip_reader:
            code = self._lookup_geoip2(ip_address)
        elif self._api_enabled:
            code = await self._lookup_ip_api(ip_address)
        else:
            code = None

        return code.upper() if code else UNKNOWN_COUNTRY

    @staticmethod
    def _is_public_ip(ip_address: str) -> bool:
        """Check that the address parses and is globally routable."""
        try:
            return ipaddress.ip_address(ip_address).is_global
        except ValueError:
            return False

    def _lookup_geoip2(self, ip_address: str) -> str | None:
        """Look up country using GeoIP2 database."""
        try:
            response = self._geoip_reader.country(ip_address)
            return response.country.iso_code
        except (geoip2.errors.GeoIP2Error, ValueError) as e:
            logger.debug("GeoIP2 lookup failed", ip=ip_address, error=str(e))
            return None

    async def _lookup_ip_api(self, ip_address: str) -> str | None:
        """Look up country using IP-API.com (free tier).

        Note: IP-API has rate limits (45 requests/minute for free tier).
        Use GeoIP2 database for production.
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    f"http://ip-api.com/json/{ip_address}",
                    params={"fields": "status,countryCode"},
                    timeout=self._api_timeout,
                )
                if response.status_code == 200:
                    data = response.json()
                    if data.get("status") == "success":
                        return data.get("countryCode")
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("IP-API lookup failed", ip=ip_address, error=str(e))

        return None

    def close(self) -> None:
        """Close the GeoIP2 database reader."""
        if self._geoip_reader:
            self._geoip_reader.close()
            self._geoip_reader = None


def country_name(code: str | None) -> str:
    """Display name for a country code; ``"Unknown"`` when unresolved."""
    if not code or code.lower() == UNKNOWN_COUNTRY or code.upper() == "ZZ":
        return UNKNOWN_COUNTRY_NAME
    country = pycountry.countries.get(alpha_2=code.upper())
    if country is None:
        return code
    return getattr(country, "common_name", None) or country.name
