"""
Cache Store - Persistent storage for cached locations and cached bars
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, delete, func

from barcache.core.db import Database
from barcache.models.cached_location import CachedLocation
from barcache.models.cached_bar import CachedBar

logger = logging.getLogger(__name__)


class CacheStore:
    """
    Durable storage for the two cached record kinds.

    Each method runs in its own transaction, so a single call is atomic;
    nothing spans several calls. Storage failures surface as
    StorageFailureError from the session scope and are not retried here.
    """

    def __init__(self, db: Database):
        self.db = db

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    async def add_location(self, location: CachedLocation) -> None:
        """
        Append a location fix.

        Locations use an auto-increment id, so every call adds a row.
        """
        async with self.db.session("add_location") as session:
            session.add(location)

    async def most_recent_location(self) -> Optional[CachedLocation]:
        """
        Get the most recently observed location

        Returns:
            Latest CachedLocation or None if the table is empty
        """
        stmt = (
            select(CachedLocation)
            .order_by(CachedLocation.observed_at.desc(), CachedLocation.id.desc())
            .limit(1)
        )
        async with self.db.session("most_recent_location") as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def delete_locations_older_than(self, cutoff: datetime) -> int:
        stmt = delete(CachedLocation).where(CachedLocation.observed_at < cutoff)
        async with self.db.session("delete_locations_older_than") as session:
            result = await session.execute(stmt)
            return result.rowcount or 0

    async def clear_locations(self) -> int:
        async with self.db.session("clear_locations") as session:
            result = await session.execute(delete(CachedLocation))
            return result.rowcount or 0

    # ------------------------------------------------------------------
    # Bars
    # ------------------------------------------------------------------

    async def upsert_bars(self, bars: List[CachedBar]) -> None:
        """
        Insert or replace bars by place_id in one transaction.

        A later entry with the same place_id replaces an earlier one,
        including within the same batch.
        """
        if not bars:
            return
        # last occurrence wins within the batch
        latest = {bar.place_id: bar for bar in bars}
        async with self.db.session("upsert_bars") as session:
            for bar in latest.values():
                await session.merge(bar)
        logger.debug(f"Upserted {len(latest)} cached bars")

    async def bars_within_box(
        self,
        center_lat: float,
        center_lng: float,
        lat_range: float,
        lng_range: float,
    ) -> List[CachedBar]:
        """
        Get bars fetched while the device was inside the given box

        Matches on the observer coordinates recorded at fetch time, not on
        the bar's own coordinates.

        Args:
            center_lat: Box center latitude
            center_lng: Box center longitude
            lat_range: Half-height of the box in degrees
            lng_range: Half-width of the box in degrees

        Returns:
            Bars ordered newest fetch first
        """
        stmt = (
            select(CachedBar)
            .where(
                CachedBar.observer_latitude.between(center_lat - lat_range, center_lat + lat_range),
                CachedBar.observer_longitude.between(center_lng - lng_range, center_lng + lng_range),
            )
            .order_by(CachedBar.fetched_at.desc())
        )
        async with self.db.session("bars_within_box") as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def all_bars(self, limit: int) -> List[CachedBar]:
        """Newest-first bars regardless of location, capped at ``limit``"""
        stmt = select(CachedBar).order_by(CachedBar.fetched_at.desc()).limit(limit)
        async with self.db.session("all_bars") as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def delete_bars_older_than(self, cutoff: datetime) -> int:
        stmt = delete(CachedBar).where(CachedBar.fetched_at < cutoff)
        async with self.db.session("delete_bars_older_than") as session:
            result = await session.execute(stmt)
            return result.rowcount or 0

    async def clear_bars(self) -> int:
        async with self.db.session("clear_bars") as session:
            result = await session.execute(delete(CachedBar))
            return result.rowcount or 0

    async def bar_count(self) -> int:
        async with self.db.session("bar_count") as session:
            result = await session.execute(select(func.count()).select_from(CachedBar))
            return result.scalar() or 0
