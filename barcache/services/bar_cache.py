"""
Bar Cache - Nearby bars cached per observer location, with tiered fallback
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, List

from barcache.core.clock import utc_now
from barcache.models.cached_bar import CachedBar
from barcache.schemas.bar import BarPlace
from barcache.services.cache_store import CacheStore

logger = logging.getLogger(__name__)

# Tier 1: fetched near here (~3 km box) within the last hour
NEARBY_RANGE_DEGREES = 0.03
NEARBY_MAX_AGE = timedelta(hours=1)

# Tier 2: fetched anywhere within the last six hours
FALLBACK_SCAN_LIMIT = 50
FALLBACK_MAX_AGE = timedelta(hours=6)
FALLBACK_RESULT_LIMIT = 20

RETENTION_WINDOW = timedelta(days=7)


class BarCache:
    """
    Stores lookup results tagged with the device location they were fetched
    at, and answers "what can we show here" from that data.
    """

    def __init__(self, store: CacheStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    async def cache_bars(
        self,
        bars: List[BarPlace],
        observer_latitude: float,
        observer_longitude: float,
    ) -> int:
        """
        Cache a lookup result, then prune bars older than 7 days

        Args:
            bars: Bars returned by the lookup
            observer_latitude: Device latitude the lookup was made from
            observer_longitude: Device longitude the lookup was made from

        Returns:
            Number of pruned rows
        """
        now = self.clock()
        cached = [
            CachedBar.from_bar_place(bar, observer_latitude, observer_longitude, now)
            for bar in bars
        ]
        await self.store.upsert_bars(cached)

        pruned = await self.store.delete_bars_older_than(now - RETENTION_WINDOW)
        logger.info(
            f"Cached {len(cached)} bars at ({observer_latitude:.4f}, {observer_longitude:.4f}), "
            f"pruned {pruned}"
        )
        return pruned

    async def nearby_or_fallback(
        self,
        observer_latitude: float,
        observer_longitude: float,
    ) -> List[BarPlace]:
        """
        Get cached bars usable at the given device location

        Tiers are tried in order and the first non-empty one wins:
        1. bars fetched within ~3 km of here in the last hour
        2. up to 20 of the newest bars fetched anywhere in the last 6 hours
        3. nothing; the caller decides what an empty map means
        """
        now = self.clock()

        nearby = await self.store.bars_within_box(
            observer_latitude,
            observer_longitude,
            NEARBY_RANGE_DEGREES,
            NEARBY_RANGE_DEGREES,
        )
        recent = [bar for bar in nearby if bar.fetched_at >= now - NEARBY_MAX_AGE]
        if recent:
            logger.debug(f"Serving {len(recent)} nearby cached bars")
            return [bar.to_bar_place() for bar in recent]

        newest = await self.store.all_bars(limit=FALLBACK_SCAN_LIMIT)
        usable = [bar for bar in newest if bar.fetched_at >= now - FALLBACK_MAX_AGE]
        if usable:
            logger.debug(f"No recent nearby cache, serving {min(len(usable), FALLBACK_RESULT_LIMIT)} fallback bars")
            return [bar.to_bar_place() for bar in usable[:FALLBACK_RESULT_LIMIT]]

        logger.debug("No usable cached bars")
        return []

    async def has_data(self) -> bool:
        return await self.store.bar_count() > 0

    async def clear(self) -> int:
        count = await self.store.clear_bars()
        logger.info(f"Cleared {count} cached bars")
        return count
