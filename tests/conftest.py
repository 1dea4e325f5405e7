"""
Shared fixtures: a throwaway SQLite cache database per test, a controllable
clock and the cache services wired on top of them.
"""
from datetime import datetime, timedelta

import pytest
import pytest_asyncio

from barcache.core.db import Database
from barcache.schemas.bar import BarPlace
from barcache.services.bar_cache import BarCache
from barcache.services.cache_store import CacheStore
from barcache.services.location_cache import LocationCache


class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)

    def set(self, value: datetime) -> None:
        self.now = value


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 19, 20, 0, 0))


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}"


@pytest_asyncio.fixture
async def database(database_url):
    db = Database(database_url)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def store(database):
    return CacheStore(database)


@pytest.fixture
def location_cache(store, clock):
    return LocationCache(store, clock=clock)


@pytest.fixture
def bar_cache(store, clock):
    return BarCache(store, clock=clock)


@pytest.fixture
def make_bar():
    """Factory for BarPlace test data"""
    def _make_bar(place_id: str, **overrides) -> BarPlace:
        fields = {
            "place_id": place_id,
            "name": f"Bar {place_id}",
            "latitude": 51.501,
            "longitude": -0.101,
            "is_open": True,
            "rating": 4.2,
            "vicinity": "1 High Street, London",
        }
        fields.update(overrides)
        return BarPlace(**fields)
    return _make_bar
