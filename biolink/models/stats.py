"""Click statistics records persisted in the ``stats`` document.

The document maps link ID to :class:`LinkStats`. Field names are stored in
camelCase (``totalClicks``, ``uniqueCount``, ``lastUserAgent``) so existing
data files stay readable; unknown fields are preserved on rewrite.

Values written by older versions are read leniently: a ``null`` counter or
mapping reads as zero or empty, and a bare number in ``uniques`` reads as a
cached count without a fingerprint list.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic.alias_generators import to_camel


def split_numeric_uniques(data: Any) -> Any:
    """Move a bare number in ``uniques`` over to the cached count."""
    if not isinstance(data, dict):
        return data
    uniques = data.get("uniques")
    if isinstance(uniques, bool) or not isinstance(uniques, (int, float)):
        return data
    data = dict(data)
    data["uniques"] = None
    if data.get("uniqueCount") is None and data.get("unique_count") is None:
        data["uniqueCount"] = int(uniques)
    return data


def drop_null_entries(value: Any) -> Any:
    """``null`` mapping reads as empty; ``null`` entries are skipped."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return {key: entry for key, entry in value.items() if entry is not None}
    return value


class StatsRecord(BaseModel):
    """Base class for persisted stats records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_document(self) -> dict:
        """Serialize to the persisted (camelCase) JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UniqueCounter(StatsRecord):
    """Click total plus the set of fingerprints behind it."""

    total: int = 0
    # None only for legacy records that kept the cached count alone
    uniques: list[str] | None = None
    # Cached len(uniques)
    unique_count: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _legacy_uniques(cls, data: Any) -> Any:
        return split_numeric_uniques(data)

    @field_validator("total", mode="before")
    @classmethod
    def _null_total(cls, value: Any) -> Any:
        return 0 if value is None else value

    @property
    def has_raw_uniques(self) -> bool:
        """Whether the raw fingerprint list is available (not just the cache)."""
        return self.uniques is not None

    @property
    def unique_visitors(self) -> int:
        """Cached unique count, falling back to the raw list size."""
        if self.unique_count is not None:
            return self.unique_count
        return len(self.uniques or [])

    def add(self, fingerprint: str) -> None:
        """Count one click from ``fingerprint``."""
        self.total += 1
        if self.uniques is None:
            self.uniques = []
        if fingerprint not in self.uniques:
            self.uniques.append(fingerprint)
        self.unique_count = len(self.uniques)

    def normalize(self) -> None:
        if self.has_raw_uniques:
            self.unique_count = len(self.uniques)


class DimensionStats(UniqueCounter):
    """Total/unique bucket for one country code or referrer key."""

    # Referrers only; first value wins
    label: str | None = None


class DayStats(UniqueCounter):
    """Clicks for one link on one UTC calendar day."""

    countries: dict[str, DimensionStats] = Field(default_factory=dict)
    referrers: dict[str, DimensionStats] = Field(default_factory=dict)

    @field_validator("countries", "referrers", mode="before")
    @classmethod
    def _null_buckets(cls, value: Any) -> Any:
        return drop_null_entries(value)

    def normalize(self) -> None:
        super().normalize()
        for bucket in self.countries.values():
            bucket.normalize()
        for bucket in self.referrers.values():
            bucket.normalize()


class LinkStats(StatsRecord):
    """All recorded clicks for one link.

    ``countries`` and ``referrers`` are all-time rollups maintained on every
    click alongside the per-day buckets in ``daily``.
    """

    total_clicks: int = 0
    daily: dict[str, DayStats] = Field(default_factory=dict)
    countries: dict[str, DimensionStats] = Field(default_factory=dict)
    referrers: dict[str, DimensionStats] = Field(default_factory=dict)
    last_user_agent: str | None = None

    @field_validator("total_clicks", mode="before")
    @classmethod
    def _null_total_clicks(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("daily", "countries", "referrers", mode="before")
    @classmethod
    def _null_mappings(cls, value: Any) -> Any:
        return drop_null_entries(value)

    def day(self, date: str) -> DayStats:
        """Return the bucket for ``date``, creating it if needed."""
        if date not in self.daily:
            self.daily[date] = DayStats()
        return self.daily[date]

    def normalize(self) -> None:
        for day in self.daily.values():
            day.normalize()
        for bucket in self.countries.values():
            bucket.normalize()
        for bucket in self.referrers.values():
            bucket.normalize()


StatsDocument = dict[str, LinkStats]

stats_document_adapter: TypeAdapter[StatsDocument] = TypeAdapter(StatsDocument)


def load_stats_document(raw: dict | None) -> StatsDocument:
    """Parse the raw ``stats`` document into records.

    ``null`` link records are skipped.
    """
    return stats_document_adapter.validate_python(drop_null_entries(raw))


def dump_stats_document(document: StatsDocument) -> dict:
    """Serialize records back to the raw ``stats`` document."""
    return {link_id: stats.to_document() for link_id, stats in document.items()}
