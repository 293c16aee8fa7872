"""Click recording: the write path of link analytics."""

import time
from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from biolink.core.observability import record_click_failed, record_click_recorded
from biolink.core.storage import JsonStore
from biolink.models.stats import (
    DimensionStats,
    LinkStats,
    dump_stats_document,
    load_stats_document,
)
from biolink.schemas.analytics import ClickContext
from biolink.services.fingerprint import fingerprint, utc_today
from biolink.services.geoip import UNKNOWN_COUNTRY, GeoIPService
from biolink.services.referrer import direct_referrer, parse_referrer

logger = structlog.get_logger()

STATS_KEY = "stats"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _bump(buckets: dict[str, DimensionStats], key: str, fp: str, label: str | None = None) -> None:
    bucket = buckets.get(key)
    if bucket is None:
        bucket = DimensionStats(label=label)
        buckets[key] = bucket
    elif bucket.label is None and label is not None:
        bucket.label = label
    bucket.add(fp)


class ClickRecorder:
    """Records clicks into the ``stats`` document.

    Every click is one read-modify-write of the whole document through
    :meth:`JsonStore.update`, so clicks on any link are applied one at a
    time and a click is either fully counted or not at all.

    Usage:
        recorder = ClickRecorder(store)
        stats = await recorder.record_click(link_id, context)
    """

    def __init__(self, store: JsonStore, clock: Clock = utc_now):
        """Initialize the recorder.

        Args:
            store: JSON store holding the ``stats`` document.
            clock: Returns the current time; the UTC date of it picks the
                day bucket.
        """
        self._store = store
        self._clock = clock

    @property
    def store(self) -> JsonStore:
        return self._store

    def now(self) -> datetime:
        """Current time according to the recorder's clock."""
        return self._clock()

    async def record_click(self, link_id: str, context: ClickContext) -> LinkStats:
        """Count one click on ``link_id``.

        The day bucket is ``context.date`` when set, so the fingerprint and
        its bucket always refer to the same day; otherwise today by the
        recorder clock.

        Returns:
            The updated stats for the link.
        """
        start_time = time.perf_counter()
        today = context.date or utc_today(self._clock())
        updated: dict[str, LinkStats] = {}

        def apply(raw: dict | None) -> dict:
            document = load_stats_document(raw)
            link_stats = document.get(link_id)
            if link_stats is None:
                link_stats = LinkStats()
                document[link_id] = link_stats

            fp = context.fingerprint
            link_stats.total_clicks += 1

            day = link_stats.day(today)
            day.add(fp)

            country = context.country_code or UNKNOWN_COUNTRY
            _bump(day.countries, country, fp)
            _bump(link_stats.countries, country, fp)

            referrer = context.referrer or direct_referrer()
            _bump(day.referrers, referrer.key, fp, label=referrer.source)
            _bump(link_stats.referrers, referrer.key, fp, label=referrer.source)

            link_stats.last_user_agent = context.user_agent

            updated["stats"] = link_stats
            return dump_stats_document(document)

        try:
            await self._store.update(STATS_KEY, apply, {})
        except Exception as e:
            record_click_failed()
            logger.error("Failed to record click", link_id=link_id, error=str(e))
            raise

        duration = time.perf_counter() - start_time
        record_click_recorded(duration)
        logger.debug(
            "Click recorded",
            link_id=link_id,
            date=today,
            country=context.country_code,
            duration_ms=round(duration * 1000, 2),
        )
        return updated["stats"]

    async def normalize_stats(self) -> int:
        """Recompute every cached ``uniqueCount`` from its fingerprint list.

        Totals and fingerprint lists are left untouched; buckets without a
        fingerprint list keep their cached count. Idempotent.

        Returns:
            Number of link records processed.
        """
        processed = 0

        def apply(raw: dict | None) -> dict:
            nonlocal processed
            document = load_stats_document(raw)
            for link_stats in document.values():
                link_stats.normalize()
            processed = len(document)
            return dump_stats_document(document)

        await self._store.update(STATS_KEY, apply, {})
        logger.info("Stats normalized", links=processed)
        return processed

    async def get_link_stats(self, link_id: str) -> LinkStats | None:
        """Return the stats for ``link_id``, or None if it was never clicked."""
        raw = await self._store.read(STATS_KEY, {})
        return load_stats_document(raw).get(link_id)


async def build_click_context(
    *,
    ip_address: str | None,
    user_agent: str | None,
    referer: str | None,
    geoip: GeoIPService,
    salt: str,
    now: datetime | None = None,
) -> ClickContext:
    """Derive the click context from request data.

    Resolves the country, classifies the referrer and computes today's
    visitor fingerprint.
    """
    day = utc_today(now)
    country_code = await geoip.lookup_country(ip_address)
    return ClickContext(
        fingerprint=fingerprint(ip_address, user_agent, day, salt),
        date=day,
        country_code=country_code,
        referrer=parse_referrer(referer),
        user_agent=user_agent or "",
    )
