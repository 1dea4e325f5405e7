"""
Unit tests for the nearby bars fetch orchestrator
"""
import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from barcache.core.exceptions import (
    ErrorCode,
    LocationUnavailableError,
    LookupFailedError,
    StorageFailureError,
)
from barcache.schemas.bar import Coordinates
from barcache.schemas.fetch import FetchState, FetchStatus
from barcache.schemas.places import PlacesSearchResult
from barcache.services.bar_fetch_service import NO_DATA_MESSAGE, BarFetchService
from barcache.services.location_provider import StaticLocationProvider

FIX = (51.5, -0.1)


def places_returning(*bars):
    client = MagicMock()
    client.search_nearby_bars = AsyncMock(return_value=PlacesSearchResult(bars=list(bars), status="OK"))
    return client


def places_failing(error=None):
    client = MagicMock()
    client.search_nearby_bars = AsyncMock(side_effect=error or LookupFailedError("network unreachable"))
    return client


class BlockingPlaces:
    """Places client whose first lookup hangs until released"""

    def __init__(self, first_result, later_result):
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = []
        self.first_result = first_result
        self.later_result = later_result

    async def search_nearby_bars(self, latitude, longitude, radius_m=None):
        self.calls.append((latitude, longitude, radius_m))
        if len(self.calls) == 1:
            self.started.set()
            await self.release.wait()
            return self.first_result
        return self.later_result


async def wait_for_loading(updates, count=1):
    """Wait until a fetch is parked on its lookup"""
    for _ in range(1000):
        if sum(update.status == FetchStatus.LOADING for update in updates) >= count:
            return
        await asyncio.sleep(0.001)
    raise AssertionError("fetch never reached the lookup")


@pytest.fixture
def updates():
    return []


@pytest.fixture
def make_service(location_cache, bar_cache, updates):
    def _make_service(places_client, provider=None, **kwargs):
        return BarFetchService(
            location_provider=provider or StaticLocationProvider(*FIX),
            location_cache=kwargs.pop("location_cache", location_cache),
            bar_cache=kwargs.pop("bar_cache", bar_cache),
            places_client=places_client,
            on_update=updates.append,
            **kwargs,
        )
    return _make_service


@pytest.mark.asyncio
async def test_permission_denied_stops_before_fix(make_service, location_cache):
    provider = MagicMock()
    provider.last_known_location = AsyncMock()
    places = places_returning()
    service = make_service(places, provider=provider, has_permission=lambda: False)

    result = await service.fetch()

    assert result.status == FetchStatus.ERROR
    assert result.error_code == ErrorCode.PERMISSION_DENIED
    assert service.state == FetchState.PERMISSION_DENIED
    provider.last_known_location.assert_not_awaited()
    places.search_nearby_bars.assert_not_awaited()
    assert await location_cache.recent_or_none() is None


@pytest.mark.asyncio
@pytest.mark.parametrize("outcome", [
    None,
    LocationUnavailableError("GPS disabled"),
    RuntimeError("provider crashed"),
])
async def test_fix_failure_touches_nothing(make_service, location_cache, bar_cache, outcome):
    provider = MagicMock()
    if isinstance(outcome, Exception):
        provider.last_known_location = AsyncMock(side_effect=outcome)
    else:
        provider.last_known_location = AsyncMock(return_value=outcome)
    places = places_returning()
    service = make_service(places, provider=provider)

    result = await service.fetch()

    assert result.status == FetchStatus.ERROR
    assert result.error_code == ErrorCode.LOCATION_UNAVAILABLE
    assert service.state == FetchState.FIX_FAILED
    places.search_nearby_bars.assert_not_awaited()
    assert await location_cache.recent_or_none() is None
    assert await bar_cache.has_data() is False


@pytest.mark.asyncio
async def test_lookup_success_replaces_list_and_caches(make_service, location_cache, store, make_bar, updates):
    fresh = [make_bar("p1"), make_bar("p2")]
    places = places_returning(*fresh)
    service = make_service(places)

    result = await service.fetch()

    assert result.status == FetchStatus.FRESH
    assert result.bars == fresh
    assert result.is_offline is False
    assert service.bars == fresh
    assert service.state == FetchState.SETTLED
    places.search_nearby_bars.assert_awaited_once_with(51.5, -0.1, 2000)

    recent = await location_cache.recent_or_none()
    assert (recent.latitude, recent.longitude) == FIX
    cached = await store.all_bars(limit=50)
    assert {bar.place_id for bar in cached} == {"p1", "p2"}
    assert all((bar.observer_latitude, bar.observer_longitude) == FIX for bar in cached)

    assert [update.status for update in updates] == [FetchStatus.LOADING, FetchStatus.FRESH]
    assert updates[0].bars == []


@pytest.mark.asyncio
async def test_cached_bars_shown_while_lookup_runs(make_service, bar_cache, make_bar, updates):
    cached = [make_bar("old1"), make_bar("old2")]
    await bar_cache.cache_bars(cached, *FIX)
    service = make_service(places_returning(make_bar("new1")))

    result = await service.fetch()

    assert {bar.place_id for bar in updates[0].bars} == {"old1", "old2"}
    assert updates[0].status == FetchStatus.LOADING
    assert [bar.place_id for bar in result.bars] == ["new1"]


@pytest.mark.asyncio
async def test_lookup_failure_with_cache_goes_offline(make_service, bar_cache, store, make_bar):
    """A failed lookup keeps the cached list and flags offline"""
    await bar_cache.cache_bars([make_bar("p1"), make_bar("p2")], *FIX)
    service = make_service(places_failing())

    result = await service.fetch()

    assert result.status == FetchStatus.OFFLINE_CACHED
    assert result.is_offline is True
    assert result.error is None
    assert {bar.place_id for bar in result.bars} == {"p1", "p2"}
    assert service.is_offline is True
    assert service.state == FetchState.SETTLED
    assert await store.bar_count() == 2


@pytest.mark.asyncio
async def test_lookup_failure_without_cache_is_error(make_service, bar_cache):
    service = make_service(places_failing())

    result = await service.fetch()

    assert result.status == FetchStatus.ERROR
    assert result.error == NO_DATA_MESSAGE
    assert result.error_code == ErrorCode.LOOKUP_FAILED
    assert result.bars == []
    assert service.error == NO_DATA_MESSAGE
    assert service.bars == []
    assert await bar_cache.has_data() is False


@pytest.mark.asyncio
async def test_offline_uses_wide_fallback_tier(make_service, bar_cache, clock, make_bar):
    """Bars from elsewhere, fetched within 6h, still count as offline data"""
    now = clock.now
    clock.set(now - timedelta(hours=3))
    await bar_cache.cache_bars([make_bar("paris")], 48.85, 2.35)
    clock.set(now)
    service = make_service(places_failing())

    result = await service.fetch()

    assert result.status == FetchStatus.OFFLINE_CACHED
    assert [bar.place_id for bar in result.bars] == ["paris"]


@pytest.mark.asyncio
async def test_unexpected_lookup_error_is_treated_as_failure(make_service):
    service = make_service(places_failing(ValueError("bad state")))

    result = await service.fetch()

    assert result.status == FetchStatus.ERROR
    assert result.error_code == ErrorCode.LOOKUP_FAILED


@pytest.mark.asyncio
async def test_malformed_payload_is_empty_success(make_service, bar_cache, make_bar):
    await bar_cache.cache_bars([make_bar("p1")], *FIX)
    places = MagicMock()
    places.search_nearby_bars = AsyncMock(return_value=PlacesSearchResult(malformed=True))
    service = make_service(places)

    result = await service.fetch()

    assert result.status == FetchStatus.FRESH
    assert result.bars == []


@pytest.mark.asyncio
async def test_location_write_failure_does_not_abort(make_service, make_bar):
    location_cache = MagicMock()
    location_cache.cache_location = AsyncMock(side_effect=StorageFailureError("add_location"))
    service = make_service(places_returning(make_bar("p1")), location_cache=location_cache)

    result = await service.fetch()

    assert result.status == FetchStatus.FRESH
    assert [bar.place_id for bar in result.bars] == ["p1"]


@pytest.mark.asyncio
async def test_bar_cache_write_failure_keeps_fresh_result(make_service, make_bar):
    bar_cache = MagicMock()
    bar_cache.nearby_or_fallback = AsyncMock(return_value=[])
    bar_cache.cache_bars = AsyncMock(side_effect=StorageFailureError("upsert_bars"))
    service = make_service(places_returning(make_bar("p1")), bar_cache=bar_cache)

    result = await service.fetch()

    assert result.status == FetchStatus.FRESH
    assert service.state == FetchState.SETTLED
    bar_cache.cache_bars.assert_awaited_once()


@pytest.mark.asyncio
async def test_cache_read_failure_serves_empty_provisional(make_service, make_bar, updates):
    bar_cache = MagicMock()
    bar_cache.nearby_or_fallback = AsyncMock(side_effect=StorageFailureError("all_bars"))
    bar_cache.cache_bars = AsyncMock(return_value=0)
    service = make_service(places_failing(), bar_cache=bar_cache)

    result = await service.fetch()

    assert updates[0].bars == []
    assert result.status == FetchStatus.ERROR
    assert result.error == NO_DATA_MESSAGE


@pytest.mark.asyncio
async def test_new_fetch_supersedes_in_flight_one(make_service, store, make_bar, updates):
    """Only the latest fetch changes what is shown or cached"""
    places = BlockingPlaces(
        first_result=PlacesSearchResult(bars=[make_bar("stale")]),
        later_result=PlacesSearchResult(bars=[make_bar("current")]),
    )
    provider = MagicMock()
    provider.last_known_location = AsyncMock(side_effect=[
        Coordinates(latitude=51.5, longitude=-0.1),
        Coordinates(latitude=51.6, longitude=-0.2),
    ])
    service = make_service(places, provider=provider)

    first = asyncio.create_task(service.fetch())
    await places.started.wait()
    await wait_for_loading(updates)
    second = await service.fetch()
    places.release.set()
    first_result = await first

    assert first_result.status == FetchStatus.SUPERSEDED
    assert first_result.generation == 1
    assert second.status == FetchStatus.FRESH
    assert second.generation == 2
    assert [bar.place_id for bar in service.bars] == ["current"]
    assert [bar.place_id for bar in await store.all_bars(limit=50)] == ["current"]


@pytest.mark.asyncio
async def test_caller_cancellation_propagates(make_service, make_bar, updates):
    places = BlockingPlaces(
        first_result=PlacesSearchResult(bars=[make_bar("p1")]),
        later_result=PlacesSearchResult(),
    )
    service = make_service(places)

    task = asyncio.create_task(service.fetch())
    await places.started.wait()
    await wait_for_loading(updates)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    await asyncio.sleep(0)
    assert service._lookup_task.cancelled()


@pytest.mark.asyncio
async def test_refresh_runs_a_new_attempt(make_service, make_bar):
    places = MagicMock()
    places.search_nearby_bars = AsyncMock(side_effect=[
        LookupFailedError("offline"),
        PlacesSearchResult(bars=[make_bar("p1")]),
    ])
    service = make_service(places)

    first = await service.fetch()
    second = await service.refresh()

    assert first.status == FetchStatus.ERROR
    assert second.status == FetchStatus.FRESH
    assert service.error is None
    assert places.search_nearby_bars.await_count == 2


@pytest.mark.asyncio
async def test_older_fetch_finishing_late_leaves_newer_state_alone(make_service, make_bar):
    """A fetch whose cache write outlives a newer fetch must not settle the newer one"""
    writing = asyncio.Event()
    release_write = asyncio.Event()

    async def slow_cache_bars(bars, latitude, longitude):
        writing.set()
        await release_write.wait()
        return 0

    bar_cache = MagicMock()
    bar_cache.nearby_or_fallback = AsyncMock(return_value=[])
    bar_cache.cache_bars = AsyncMock(side_effect=slow_cache_bars)

    second_fix_requested = asyncio.Event()
    release_fix = asyncio.Event()
    fixes = []

    async def last_known_location():
        fixes.append(1)
        if len(fixes) == 2:
            second_fix_requested.set()
            await release_fix.wait()
        return Coordinates(latitude=51.5, longitude=-0.1)

    provider = MagicMock()
    provider.last_known_location = last_known_location
    service = make_service(places_returning(make_bar("p1")), provider=provider, bar_cache=bar_cache)

    first = asyncio.create_task(service.fetch())
    await writing.wait()
    second = asyncio.create_task(service.fetch())
    await second_fix_requested.wait()
    assert service.state == FetchState.AWAITING_FIX

    release_write.set()
    first_result = await first

    assert first_result.status == FetchStatus.FRESH
    assert service.state == FetchState.AWAITING_FIX

    release_fix.set()
    second_result = await second
    assert second_result.status == FetchStatus.FRESH
    assert service.state == FetchState.SETTLED


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_fetch(location_cache, bar_cache, make_bar):
    def broken_listener(result):
        raise RuntimeError("listener crashed")

    service = BarFetchService(
        location_provider=StaticLocationProvider(*FIX),
        location_cache=location_cache,
        bar_cache=bar_cache,
        places_client=places_returning(make_bar("p1")),
        on_update=broken_listener,
    )

    result = await service.fetch()

    assert result.status == FetchStatus.FRESH
    assert service.state == FetchState.SETTLED
    assert await bar_cache.has_data() is True
