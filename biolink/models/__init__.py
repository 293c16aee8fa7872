"""Persisted record types."""

from biolink.models.link import Category, Link
from biolink.models.stats import (
    DayStats,
    DimensionStats,
    LinkStats,
    StatsDocument,
    dump_stats_document,
    load_stats_document,
)

__all__ = [
    "Category",
    "Link",
    "DayStats",
    "DimensionStats",
    "LinkStats",
    "StatsDocument",
    "dump_stats_document",
    "load_stats_document",
]
