"""Referer header classification."""

from urllib.parse import urlsplit

from biolink.schemas.analytics import Referrer

DIRECT_SOURCE = "Direct"
DIRECT_HOST = "direct"


def direct_referrer() -> Referrer:
    """Referrer used when the request carried no Referer header."""
    return Referrer(source=DIRECT_SOURCE, host=DIRECT_HOST)


def parse_referrer(header_value: str | None) -> Referrer:
    """Map a Referer header to a ``{source, host}`` pair.

    Absolute URLs yield their origin as source and lowercase host as key.
    Anything unparseable is used verbatim for both. Never raises.
    """
    if not header_value or not header_value.strip():
        return direct_referrer()

    value = header_value.strip()
    try:
        parts = urlsplit(value)
    except ValueError:
        return Referrer(source=value, host=value)

    if parts.scheme and parts.netloc:
        host = parts.netloc.rsplit("@", 1)[-1].lower()
        return Referrer(source=f"{parts.scheme.lower()}://{host}", host=host)

    return Referrer(source=value, host=value)
