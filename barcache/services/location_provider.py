"""
Device location providers
"""
from typing import Optional, Protocol

from barcache.schemas.bar import Coordinates


class LocationProvider(Protocol):
    """
    One-shot "last known position" source.

    Implementations return None when no fix is available and raise
    LocationUnavailableError on an explicit provider failure. No timeout is
    applied by callers in this package.
    """

    async def last_known_location(self) -> Optional[Coordinates]:
        ...


class StaticLocationProvider:
    """Serves a fix that was supplied up front, e.g. by an HTTP client"""

    def __init__(self, latitude: float, longitude: float):
        self.coordinates = Coordinates(latitude=latitude, longitude=longitude)

    async def last_known_location(self) -> Optional[Coordinates]:
        return self.coordinates
