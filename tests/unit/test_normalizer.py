"""
Unit tests for stats normalization (unique-count cache repair).
"""

from biolink.services.click_recorder import STATS_KEY

BROKEN = {
    "L1": {
        "totalClicks": 3,
        "daily": {
            "2024-01-01": {
                "total": 3,
                "uniques": ["a", "b"],
                "uniqueCount": 7,
                "countries": {"US": {"total": 3, "uniques": ["a", "b"], "uniqueCount": 0}},
                "referrers": {
                    "direct": {"total": 3, "uniques": ["a", "b"], "label": "Direct"},
                },
            },
            "2023-12-31": {"total": 4, "uniqueCount": 3},
        },
        "countries": {"US": {"total": 3, "uniques": ["a", "b"], "uniqueCount": 9}},
        "referrers": {"direct": {"total": 3, "uniques": ["a", "b"], "uniqueCount": 1, "label": "Direct"}},
    }
}


async def test_normalize_recomputes_unique_counts(store, recorder):
    await store.write(STATS_KEY, BROKEN)

    processed = await recorder.normalize_stats()

    assert processed == 1
    stats = await recorder.get_link_stats("L1")
    day = stats.daily["2024-01-01"]
    assert day.unique_count == 2
    assert day.countries["US"].unique_count == 2
    assert day.referrers["direct"].unique_count == 2
    assert stats.countries["US"].unique_count == 2
    assert stats.referrers["direct"].unique_count == 2


async def test_normalize_leaves_totals_and_uniques(store, recorder):
    await store.write(STATS_KEY, BROKEN)

    await recorder.normalize_stats()

    raw = await store.read(STATS_KEY)
    assert raw["L1"]["totalClicks"] == 3
    assert raw["L1"]["daily"]["2024-01-01"]["total"] == 3
    assert raw["L1"]["daily"]["2024-01-01"]["uniques"] == ["a", "b"]
    assert raw["L1"]["referrers"]["direct"]["label"] == "Direct"


async def test_normalize_keeps_cache_without_raw_list(store, recorder):
    await store.write(STATS_KEY, BROKEN)

    await recorder.normalize_stats()

    stats = await recorder.get_link_stats("L1")
    assert stats.daily["2023-12-31"].unique_count == 3


async def test_normalize_is_idempotent(store, recorder, data_dir):
    await store.write(STATS_KEY, BROKEN)

    await recorder.normalize_stats()
    once = (data_dir / "stats.json").read_text()
    await recorder.normalize_stats()
    twice = (data_dir / "stats.json").read_text()

    assert once == twice


async def test_normalize_empty_store(recorder):
    assert await recorder.normalize_stats() == 0
    assert await recorder.get_link_stats("L1") is None
