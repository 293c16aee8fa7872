"""Per-client rate limits for the redirect and login endpoints (slowapi)."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from biolink.core.config import get_settings

RATE_LIMIT_REDIRECT = "120/minute"
RATE_LIMIT_AUTH = "20/minute"


def get_real_client_ip(request: Request) -> str:
    """Client IP as seen by the first proxy.

    Order: first ``X-Forwarded-For`` entry, ``X-Real-IP``, then the socket
    peer address.
    """
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    client_ip = forwarded_for.split(",")[0].strip()
    if client_ip:
        return client_ip
    return request.headers.get("X-Real-IP", "").strip() or get_remote_address(request)


# Single process, so counters live in memory
limiter = Limiter(
    key_func=get_real_client_ip,
    storage_uri="memory://",
    strategy="fixed-window",
    enabled=get_settings().rate_limit_enabled,
)
