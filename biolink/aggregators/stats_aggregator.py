"""Range-based aggregation of link statistics for the analytics dashboard."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from biolink.models.stats import DayStats, DimensionStats, LinkStats
from biolink.schemas.analytics import (
    AnalyticsRange,
    CountryStats,
    DailyPoint,
    LinkAnalytics,
    ReferrerStats,
)
from biolink.services.geoip import country_name

# Days covered by each windowed range, today included
RANGE_DAYS: dict[str, int] = {
    "7d": 7,
    "30d": 30,
}


@dataclass
class _Bucket:
    """Accumulator for one dimension value across several days."""

    total: int = 0
    uniques: set[str] = field(default_factory=set)
    # Summed cached counts of days whose fingerprint list is missing
    fallback: int = 0
    label: str | None = None

    def merge(self, stats: DimensionStats) -> None:
        self.total += stats.total
        if stats.has_raw_uniques:
            self.uniques.update(stats.uniques)
        elif stats.unique_count is not None:
            self.fallback += stats.unique_count
        if self.label is None:
            self.label = stats.label

    @property
    def unique_visitors(self) -> int:
        return len(self.uniques) if self.uniques else self.fallback


def range_cutoff(range_: AnalyticsRange, now: datetime | None = None) -> str | None:
    """First date (``YYYY-MM-DD``) included in ``range_``; None for ``all``."""
    days = RANGE_DAYS.get(range_)
    if days is None:
        return None
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return (now.date() - timedelta(days=days - 1)).isoformat()


def select_days(
    link_stats: LinkStats,
    range_: AnalyticsRange,
    now: datetime | None = None,
) -> list[tuple[str, DayStats]]:
    """Day buckets inside ``range_``, oldest first."""
    days = sorted(link_stats.daily.items(), key=lambda item: item[0])
    cutoff = range_cutoff(range_, now)
    if cutoff is None:
        return days
    return [(date, day) for date, day in days if date >= cutoff]


def aggregate_days(
    days: list[tuple[str, DayStats]],
) -> tuple[dict[str, _Bucket], dict[str, _Bucket]]:
    """Combine per-day country and referrer buckets.

    Totals are summed. Unique visitors are the union of fingerprints across
    days, so a visitor seen twice under the same fingerprint counts once.
    """
    countries: dict[str, _Bucket] = {}
    referrers: dict[str, _Bucket] = {}
    for _, day in days:
        for code, stats in day.countries.items():
            countries.setdefault(code, _Bucket()).merge(stats)
        for key, stats in day.referrers.items():
            referrers.setdefault(key, _Bucket()).merge(stats)
    return countries, referrers


def _by_total(items: list) -> list:
    # sorted() is stable, ties keep their stored order
    return sorted(items, key=lambda item: item.total, reverse=True)


def query_link_stats(
    link_stats: LinkStats | None,
    range_: AnalyticsRange = "7d",
    now: datetime | None = None,
) -> LinkAnalytics:
    """Build the analytics response for one link.

    Args:
        link_stats: Stats for the link, or None if it was never clicked.
        range_: ``7d`` and ``30d`` keep days within that many days ending
            today (UTC, from ``now``); ``all`` keeps every day.
        now: Reference time, defaults to the current time.

    Returns:
        Total clicks, the per-day series and the countries and referrers
        sorted by clicks. For ``all`` the countries and referrers come from
        the all-time rollups; otherwise they are rebuilt from the selected
        days.
    """
    if link_stats is None:
        return LinkAnalytics()

    days = select_days(link_stats, range_, now)
    daily = [
        DailyPoint(date=date, total=day.total, uniques=day.unique_visitors)
        for date, day in days
    ]

    if range_ == "all":
        countries = [
            CountryStats(
                code=code,
                name=country_name(code),
                total=stats.total,
                uniques=stats.unique_visitors,
            )
            for code, stats in link_stats.countries.items()
        ]
        referrers = [
            ReferrerStats(
                source=key,
                label=stats.label or key,
                total=stats.total,
                uniques=stats.unique_visitors,
            )
            for key, stats in link_stats.referrers.items()
        ]
    else:
        country_buckets, referrer_buckets = aggregate_days(days)
        countries = [
            CountryStats(
                code=code,
                name=country_name(code),
                total=bucket.total,
                uniques=bucket.unique_visitors,
            )
            for code, bucket in country_buckets.items()
        ]
        referrers = [
            ReferrerStats(
                source=key,
                label=bucket.label or key,
                total=bucket.total,
                uniques=bucket.unique_visitors,
            )
            for key, bucket in referrer_buckets.items()
        ]

    return LinkAnalytics(
        total_clicks=link_stats.total_clicks,
        daily=daily,
        countries=_by_total(countries),
        referrers=_by_total(referrers),
    )
