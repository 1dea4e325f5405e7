"""
Location Cache - Last known device location with a freshness gate
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from barcache.core.clock import utc_now
from barcache.models.cached_location import CachedLocation
from barcache.services.cache_store import CacheStore

logger = logging.getLogger(__name__)

FRESHNESS_WINDOW = timedelta(hours=1)
RETENTION_WINDOW = timedelta(hours=24)


class LocationCache:
    """Caches device fixes and serves the last one while it is fresh"""

    def __init__(self, store: CacheStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    async def cache_location(self, latitude: float, longitude: float) -> CachedLocation:
        """
        Store a new fix, then prune fixes older than 24 hours

        The two steps are separate transactions; stale rows left by an
        interrupted prune go away on the next call.

        Args:
            latitude: Fix latitude
            longitude: Fix longitude

        Returns:
            The stored location
        """
        now = self.clock()
        location = CachedLocation(latitude=latitude, longitude=longitude, observed_at=now)
        await self.store.add_location(location)

        pruned = await self.store.delete_locations_older_than(now - RETENTION_WINDOW)
        if pruned:
            logger.debug(f"Pruned {pruned} cached locations older than {RETENTION_WINDOW}")
        return location

    async def recent_or_none(self) -> Optional[CachedLocation]:
        """
        Get the last cached location if it is younger than one hour

        A location exactly one hour old is already stale. Stale rows are
        left in place; only cache_location prunes.
        """
        cached = await self.store.most_recent_location()
        if cached is None:
            return None
        if self.clock() - cached.observed_at < FRESHNESS_WINDOW:
            return cached
        return None

    async def clear(self) -> int:
        count = await self.store.clear_locations()
        logger.info(f"Cleared {count} cached locations")
        return count
