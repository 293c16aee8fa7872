"""
Integration tests for the HTTP surface.

Covers:
    - health check
    - redirect flow with click recording (background and inline)
    - redirect robustness when recording fails
    - admin authentication and analytics endpoints
    - public link and category listings
"""

import pytest

from biolink.core.storage import StoreError
from biolink.services.click_recorder import ClickRecorder

ADMIN_USER = "admin"
ADMIN_PASS = "s3cret"

VISITOR_HEADERS = {
    "X-Forwarded-For": "203.0.113.7, 10.0.0.1",
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64)",
    "Referer": "https://www.google.com/search?q=biolink",
}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "biolink"}


class TestRedirect:
    async def test_redirects_and_records_click(self, client, recorder):
        response = client.get("/go/blog", headers=VISITOR_HEADERS, follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "https://blog.example.com"

        stats = await recorder.get_link_stats("link-1")
        assert stats.total_clicks == 1
        assert list(stats.countries) == ["US"]
        assert list(stats.referrers) == ["www.google.com"]
        assert stats.referrers["www.google.com"].label == "https://www.google.com"
        assert stats.last_user_agent == VISITOR_HEADERS["User-Agent"]

    async def test_repeat_visitor_counted_once(self, client, recorder):
        for _ in range(3):
            client.get("/go/blog", headers=VISITOR_HEADERS, follow_redirects=False)

        stats = await recorder.get_link_stats("link-1")
        assert stats.total_clicks == 3
        assert stats.daily["2024-01-01"].unique_count == 1

    async def test_direct_visit_without_headers(self, client, recorder):
        response = client.get("/go/github", follow_redirects=False)

        assert response.status_code == 302
        stats = await recorder.get_link_stats("link-2")
        assert list(stats.referrers) == ["direct"]
        # testclient host is not a public address
        assert list(stats.countries) == ["unknown"]

    async def test_unknown_slug_returns_404(self, client, recorder):
        response = client.get("/go/missing", follow_redirects=False)

        assert response.status_code == 404
        assert response.json()["detail"] == "Link not found"
        assert await recorder.store.read("stats", {}) == {}

    def test_inactive_link_returns_404(self, client):
        response = client.get("/go/shop", follow_redirects=False)
        assert response.status_code == 404

    async def test_inline_recording(self, client, recorder):
        client.app.state.settings.record_clicks_in_background = False

        response = client.get("/go/blog", headers=VISITOR_HEADERS, follow_redirects=False)

        assert response.status_code == 302
        assert (await recorder.get_link_stats("link-1")).total_clicks == 1

    @pytest.mark.parametrize("background", [True, False])
    def test_failed_recording_still_redirects(self, client, monkeypatch, background):
        client.app.state.settings.record_clicks_in_background = background

        async def broken_record_click(self, link_id, context):
            raise StoreError("disk full")

        monkeypatch.setattr(ClickRecorder, "record_click", broken_record_click)

        response = client.get("/go/blog", headers=VISITOR_HEADERS, follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "https://blog.example.com"


class TestAdminAuth:
    def test_stats_require_login(self, client):
        response = client.get("/api/admin/stats/links/link-1")
        assert response.status_code == 401

    def test_invalid_token_rejected(self, client):
        response = client.get("/api/admin/me", headers={"Cookie": "biolink_token=not-a-jwt"})
        assert response.status_code == 401

    def test_bad_credentials_rejected(self, client):
        response = client.post(
            "/api/admin/login",
            json={"username": ADMIN_USER, "password": "wrong"},
        )
        assert response.status_code == 401
        assert "biolink_token" not in response.cookies

    def test_login_sets_cookie(self, client):
        response = client.post(
            "/api/admin/login",
            json={"username": ADMIN_USER, "password": ADMIN_PASS},
        )

        assert response.status_code == 200
        assert response.json() == {"username": ADMIN_USER}
        assert "biolink_token" in response.cookies
        assert client.get("/api/admin/me").json() == {"username": ADMIN_USER}

    def test_logout_clears_cookie(self, admin_client):
        admin_client.post("/api/admin/logout")
        assert admin_client.get("/api/admin/me").status_code == 401


class TestAdminStats:
    def test_never_clicked_link_returns_zero_values(self, admin_client):
        response = admin_client.get("/api/admin/stats/links/link-2")

        assert response.status_code == 200
        assert response.json() == {
            "totalClicks": 0,
            "daily": [],
            "countries": [],
            "referrers": [],
        }

    def test_stats_after_clicks(self, admin_client, clock):
        admin_client.get("/go/blog", headers=VISITOR_HEADERS, follow_redirects=False)
        clock.advance(days=1)
        admin_client.get(
            "/go/blog",
            headers={"X-Forwarded-For": "198.51.100.20", "User-Agent": "curl/8"},
            follow_redirects=False,
        )

        response = admin_client.get("/api/admin/stats/links/link-1")

        assert response.status_code == 200
        body = response.json()
        assert body["totalClicks"] == 2
        assert body["daily"] == [
            {"date": "2024-01-01", "total": 1, "uniques": 1},
            {"date": "2024-01-02", "total": 1, "uniques": 1},
        ]
        assert {c["code"]: c["name"] for c in body["countries"]} == {
            "US": "United States",
            "DE": "Germany",
        }
        assert {r["source"]: r["label"] for r in body["referrers"]} == {
            "www.google.com": "https://www.google.com",
            "direct": "Direct",
        }

    def test_range_all_and_windowed_ranges(self, admin_client, clock):
        admin_client.get("/go/blog", headers=VISITOR_HEADERS, follow_redirects=False)
        clock.advance(days=10)
        admin_client.get("/go/blog", headers=VISITOR_HEADERS, follow_redirects=False)

        week = admin_client.get("/api/admin/stats/links/link-1", params={"range": "7d"}).json()
        month = admin_client.get("/api/admin/stats/links/link-1", params={"range": "30d"}).json()
        everything = admin_client.get("/api/admin/stats/links/link-1", params={"range": "all"}).json()

        assert [p["date"] for p in week["daily"]] == ["2024-01-11"]
        assert week["countries"] == [
            {"code": "US", "name": "United States", "total": 1, "uniques": 1}
        ]
        assert len(month["daily"]) == 2
        assert len(everything["daily"]) == 2
        assert everything["countries"][0]["total"] == 2
        assert week["totalClicks"] == everything["totalClicks"] == 2

    def test_invalid_range_rejected(self, admin_client):
        response = admin_client.get("/api/admin/stats/links/link-1", params={"range": "1y"})
        assert response.status_code == 422

    async def test_normalize(self, admin_client, store):
        await store.write("stats", {
            "link-1": {
                "totalClicks": 2,
                "daily": {"2024-01-01": {"total": 2, "uniques": ["a", "b"], "uniqueCount": 7}},
            }
        })

        response = admin_client.post("/api/admin/stats/normalize")

        assert response.status_code == 200
        assert response.json() == {"links": 1}
        raw = await store.read("stats")
        assert raw["link-1"]["daily"]["2024-01-01"]["uniqueCount"] == 2

    def test_normalize_requires_login(self, client):
        assert client.post("/api/admin/stats/normalize").status_code == 401


class TestPublic:
    def test_links_are_active_and_ordered(self, client):
        response = client.get("/api/links")

        assert response.status_code == 200
        assert [link["slug"] for link in response.json()] == ["github", "blog"]

    def test_links_filtered_by_category(self, client):
        response = client.get("/api/links", params={"category": "writing"})
        assert [link["slug"] for link in response.json()] == ["blog"]

    def test_links_filtered_by_search(self, client):
        response = client.get("/api/links", params={"search": "CODE"})
        assert [link["slug"] for link in response.json()] == ["github"]

    def test_categories(self, client):
        response = client.get("/api/categories")

        assert response.status_code == 200
        assert [c["slug"] for c in response.json()] == ["writing", "code"]
