"""
Shared pytest fixtures for the Biolink test suite.

Responsibilities:
    - Provide a temporary data directory and a fresh JsonStore per test
    - Provide a controllable clock so day buckets are deterministic
    - Provide a ClickRecorder wired to the store and clock
    - Provide a TestClient built through the app factory, with seeded links
      and a GeoIP double that never touches the network
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from biolink.core.config import Settings
from biolink.core.rate_limit import limiter
from biolink.core.storage import JsonStore
from biolink.main import create_app
from biolink.services.click_recorder import ClickRecorder
from biolink.services.geoip import UNKNOWN_COUNTRY, GeoIPService

ADMIN_USER = "admin"
ADMIN_PASS = "s3cret"

SEED_LINKS = [
    {
        "id": "link-1",
        "title": "Blog",
        "url": "https://blog.example.com",
        "slug": "blog",
        "description": "Long-form writing",
        "categories": ["writing"],
        "active": True,
        "order": 1,
    },
    {
        "id": "link-2",
        "title": "GitHub",
        "url": "https://github.com/example",
        "slug": "github",
        "description": "Code",
        "categories": ["code"],
        "active": True,
        "order": 0,
    },
    {
        "id": "link-3",
        "title": "Old shop",
        "url": "https://shop.example.com",
        "slug": "shop",
        "categories": [],
        "active": False,
        "order": 2,
    },
]

SEED_CATEGORIES = [
    {"id": "cat-1", "name": "Writing", "slug": "writing"},
    {"id": "cat-2", "name": "Code", "slug": "code"},
]


class FakeClock:
    """Callable clock returning a settable UTC time."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set_date(self, value: str) -> None:
        """Move to noon UTC on ``value`` (YYYY-MM-DD)."""
        self.now = datetime.fromisoformat(value).replace(hour=12, tzinfo=timezone.utc)

    def advance(self, days: int = 1) -> None:
        self.now = self.now + timedelta(days=days)


class StubGeoIPService(GeoIPService):
    """GeoIP double resolving from a fixed table."""

    def __init__(self, table: dict[str, str] | None = None):
        super().__init__(api_enabled=False)
        self.table = table or {}

    async def lookup_country(self, ip_address: str | None) -> str:
        return self.table.get(ip_address or "", UNKNOWN_COUNTRY)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def store(data_dir: Path) -> JsonStore:
    """Fresh JSON store over an empty data directory."""
    return JsonStore(data_dir)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def recorder(store: JsonStore, clock: FakeClock) -> ClickRecorder:
    return ClickRecorder(store, clock=clock)


@pytest.fixture
def geoip() -> StubGeoIPService:
    return StubGeoIPService({"203.0.113.7": "US", "198.51.100.20": "DE"})


@pytest.fixture
def settings(data_dir: Path) -> Settings:
    return Settings(
        data_dir=str(data_dir),
        admin_user=ADMIN_USER,
        admin_pass=ADMIN_PASS,
        secret_key="test-secret",
        hash_salt="test-salt",
        geoip_api_enabled=False,
        # Plain-HTTP test client must receive the auth cookie
        debug=True,
    )


@pytest.fixture
def seeded_data_dir(data_dir: Path) -> Path:
    (data_dir / "links.json").write_text(json.dumps(SEED_LINKS), encoding="utf-8")
    (data_dir / "categories.json").write_text(json.dumps(SEED_CATEGORIES), encoding="utf-8")
    return data_dir


@pytest.fixture
def client(
    monkeypatch: pytest.MonkeyPatch,
    settings: Settings,
    recorder: ClickRecorder,
    geoip: StubGeoIPService,
    seeded_data_dir: Path,
) -> TestClient:
    """TestClient over a fresh app instance with seeded links."""
    monkeypatch.setattr(limiter, "enabled", False)
    app = create_app(settings=settings, recorder=recorder, geoip=geoip)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client: TestClient) -> TestClient:
    """TestClient holding a valid admin cookie."""
    response = client.post(
        "/api/admin/login",
        json={"username": ADMIN_USER, "password": ADMIN_PASS},
    )
    assert response.status_code == 200
    return client
