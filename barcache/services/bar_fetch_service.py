"""
Bar Fetch Service - Resolves the nearby bars list from a device fix, the
local caches and the remote places lookup
"""
import asyncio
import logging
from typing import Callable, List, Optional

from barcache.core.exceptions import (
    BarCacheException,
    LocationUnavailableError,
    LookupFailedError,
    PermissionDeniedError,
    StorageFailureError,
)
from barcache.schemas.bar import BarPlace, Coordinates
from barcache.schemas.fetch import BarFetchResult, FetchState, FetchStatus
from barcache.services.bar_cache import BarCache
from barcache.services.location_cache import LocationCache
from barcache.services.location_provider import LocationProvider
from barcache.services.places_client import PlacesClient

logger = logging.getLogger(__name__)

SEARCH_RADIUS_M = 2000
NO_DATA_MESSAGE = "No connectivity and no cached bars available"


class BarFetchService:
    """
    Runs one fetch sequence per call to ``fetch``:

    1. check the permission gate
    2. get a device fix
    3. cache the fix and show cached bars for it while the lookup runs
    4. on lookup success show and cache the fresh bars; on failure keep the
       cached bars (offline) or report that there is nothing to show

    Every failure ends up as a BarFetchResult; the only exception that
    leaves ``fetch`` is the caller's own cancellation.

    A new fetch supersedes the previous one: its lookup is cancelled and
    it settles as SUPERSEDED without touching display state or caches.
    """

    def __init__(
        self,
        location_provider: LocationProvider,
        location_cache: LocationCache,
        bar_cache: BarCache,
        places_client: PlacesClient,
        has_permission: Optional[Callable[[], bool]] = None,
        on_update: Optional[Callable[[BarFetchResult], None]] = None,
        radius_m: int = SEARCH_RADIUS_M,
    ):
        self.location_provider = location_provider
        self.location_cache = location_cache
        self.bar_cache = bar_cache
        self.places_client = places_client
        self.has_permission = has_permission or (lambda: True)
        self.on_update = on_update
        self.radius_m = radius_m

        # Display state
        self.state = FetchState.IDLE
        self.bars: List[BarPlace] = []
        self.is_offline = False
        self.error: Optional[str] = None

        self._generation = 0
        self._lookup_task: Optional[asyncio.Task] = None

    async def fetch(self) -> BarFetchResult:
        """
        Run a full fetch sequence

        Returns:
            BarFetchResult with status FRESH, OFFLINE_CACHED, ERROR or
            SUPERSEDED
        """
        self._generation += 1
        generation = self._generation
        if self._lookup_task is not None and not self._lookup_task.done():
            logger.info("New fetch started, cancelling in-flight lookup")
            self._lookup_task.cancel()
        self.state = FetchState.IDLE

        if not self.has_permission():
            self.state = FetchState.PERMISSION_DENIED
            return self._fail(PermissionDeniedError(), generation)

        self.state = FetchState.AWAITING_FIX
        try:
            fix = await self.location_provider.last_known_location()
            if fix is None:
                raise LocationUnavailableError("No location fix available")
        except LocationUnavailableError as e:
            if self._is_superseded(generation):
                return self._superseded(None, generation)
            self.state = FetchState.FIX_FAILED
            return self._fail(e, generation)
        except Exception as e:
            logger.error(f"Location provider failed: {e}", exc_info=True)
            if self._is_superseded(generation):
                return self._superseded(None, generation)
            self.state = FetchState.FIX_FAILED
            return self._fail(LocationUnavailableError(details={"error": str(e)}), generation)

        if self._is_superseded(generation):
            return self._superseded(fix, generation)

        self.state = FetchState.FIX_OBTAINED
        try:
            await self.location_cache.cache_location(fix.latitude, fix.longitude)
        except StorageFailureError as e:
            logger.warning(f"Could not cache location fix: {e.message}", exc_info=True)

        lookup = asyncio.create_task(
            self.places_client.search_nearby_bars(fix.latitude, fix.longitude, self.radius_m)
        )
        self._lookup_task = lookup
        try:
            provisional = await self._cached_bars(fix)
            if self._is_superseded(generation):
                return self._superseded(fix, generation)

            self.state = FetchState.SERVING_CACHE_WHILE_FETCHING
            self.bars = provisional
            self.error = None
            self._emit(BarFetchResult(
                status=FetchStatus.LOADING,
                bars=provisional,
                is_offline=self.is_offline,
                location=fix,
                generation=generation,
            ))

            try:
                search = await lookup
            except asyncio.CancelledError:
                if self._is_superseded(generation):
                    return self._superseded(fix, generation)
                raise
            except LookupFailedError as e:
                if self._is_superseded(generation):
                    return self._superseded(fix, generation)
                return self._lookup_failed(e, provisional, fix, generation)
            except Exception as e:
                logger.error(f"Unexpected lookup error: {e}", exc_info=True)
                if self._is_superseded(generation):
                    return self._superseded(fix, generation)
                return self._lookup_failed(
                    LookupFailedError(details={"error": str(e)}), provisional, fix, generation
                )
        finally:
            if not lookup.done():
                lookup.cancel()

        if self._is_superseded(generation):
            return self._superseded(fix, generation)

        self.state = FetchState.LOOKUP_SUCCEEDED
        self.bars = list(search.bars)
        self.is_offline = False
        self.error = None
        result = BarFetchResult(
            status=FetchStatus.FRESH,
            bars=self.bars,
            location=fix,
            generation=generation,
        )
        self._emit(result)

        try:
            await self.bar_cache.cache_bars(search.bars, fix.latitude, fix.longitude)
        except StorageFailureError as e:
            logger.warning(f"Could not cache lookup result: {e.message}", exc_info=True)

        if not self._is_superseded(generation):
            self.state = FetchState.SETTLED
        return result

    async def refresh(self) -> BarFetchResult:
        """Manual refresh: one more full attempt, no backoff"""
        return await self.fetch()

    async def _cached_bars(self, fix: Coordinates) -> List[BarPlace]:
        try:
            return await self.bar_cache.nearby_or_fallback(fix.latitude, fix.longitude)
        except StorageFailureError as e:
            logger.warning(f"Could not read cached bars: {e.message}", exc_info=True)
            return []

    def _lookup_failed(
        self,
        error: LookupFailedError,
        provisional: List[BarPlace],
        fix: Coordinates,
        generation: int,
    ) -> BarFetchResult:
        self.state = FetchState.LOOKUP_FAILED
        logger.warning(f"Bars lookup failed: {error.message}")

        if provisional:
            self.bars = provisional
            self.is_offline = True
            self.error = None
            result = BarFetchResult(
                status=FetchStatus.OFFLINE_CACHED,
                bars=provisional,
                is_offline=True,
                location=fix,
                generation=generation,
            )
        else:
            self.bars = []
            self.is_offline = False
            self.error = NO_DATA_MESSAGE
            result = BarFetchResult(
                status=FetchStatus.ERROR,
                error=NO_DATA_MESSAGE,
                error_code=error.error_code,
                location=fix,
                generation=generation,
            )

        self.state = FetchState.SETTLED
        self._emit(result)
        return result

    def _fail(self, error: BarCacheException, generation: int) -> BarFetchResult:
        logger.warning(f"Fetch aborted: {error.message}")
        self.error = error.message
        result = BarFetchResult(
            status=FetchStatus.ERROR,
            error=error.message,
            error_code=error.error_code,
            generation=generation,
        )
        self._emit(result)
        return result

    def _superseded(self, fix: Optional[Coordinates], generation: int) -> BarFetchResult:
        logger.info(f"Fetch {generation} superseded by fetch {self._generation}")
        return BarFetchResult(status=FetchStatus.SUPERSEDED, location=fix, generation=generation)

    def _is_superseded(self, generation: int) -> bool:
        return generation != self._generation

    def _emit(self, result: BarFetchResult) -> None:
        if self.on_update is None:
            return
        try:
            self.on_update(result)
        except Exception as e:
            logger.error(f"Fetch update listener failed: {e}", exc_info=True)
