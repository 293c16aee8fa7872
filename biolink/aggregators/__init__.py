"""Read-side aggregation of click statistics."""

from biolink.aggregators.stats_aggregator import (
    RANGE_DAYS,
    aggregate_days,
    query_link_stats,
    range_cutoff,
    select_days,
)

__all__ = [
    "RANGE_DAYS",
    "aggregate_days",
    "query_link_stats",
    "range_cutoff",
    "select_days",
]
