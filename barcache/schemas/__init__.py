from .base import Envelope
from .bar import BarPlace, Coordinates, CachedLocationRead
from .places import PlaceResult, PlacesApiResponse, PlacesSearchResult
from .fetch import BarFetchResult, FetchState, FetchStatus

__all__ = [
    "Envelope",
    "BarPlace",
    "Coordinates",
    "CachedLocationRead",
    "PlaceResult",
    "PlacesApiResponse",
    "PlacesSearchResult",
    "BarFetchResult",
    "FetchState",
    "FetchStatus",
]
