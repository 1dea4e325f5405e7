# Cache layer services

from .cache_store import CacheStore
from .location_cache import LocationCache
from .bar_cache import BarCache
from .places_client import PlacesClient, parse_places_response
from .location_provider import LocationProvider, StaticLocationProvider
from .bar_fetch_service import BarFetchService

__all__ = [
    "CacheStore",
    "LocationCache",
    "BarCache",
    "PlacesClient",
    "parse_places_response",
    "LocationProvider",
    "StaticLocationProvider",
    "BarFetchService",
]
