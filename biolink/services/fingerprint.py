"""Daily-rotating visitor fingerprints."""

import hashlib
from datetime import datetime, timezone


def utc_today(now: datetime | None = None) -> str:
    """Return the UTC calendar day as ``YYYY-MM-DD``."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date().isoformat()


def fingerprint(ip: str | None, user_agent: str | None, date: str, salt: str) -> str:
    """Derive a pseudonymous visitor ID.

    SHA-256 hex digest of ``ip|user_agent|date|salt``. Including the date
    makes the value rotate every UTC day, so it only identifies a visitor
    within a single day. Missing components hash as empty strings.
    """
    value = f"{ip or ''}|{user_agent or ''}|{date}|{salt}"
    return hashlib.sha256(value.encode("utf-8")).hexdigest()
