"""Nearby bars endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from barcache.core.dependencies import get_bar_cache, get_location_cache, get_places_client
from barcache.schemas.bar import BarPlace, CachedLocationRead, Coordinates
from barcache.schemas.base import Envelope
from barcache.schemas.fetch import FetchStatus
from barcache.services import (
    BarCache,
    BarFetchService,
    LocationCache,
    PlacesClient,
    StaticLocationProvider,
)

router = APIRouter(prefix="/bars", tags=["bars"])


# ============================================================================
# Response Models
# ============================================================================

class NearbyBarsPayload(BaseModel):
    bars: List[BarPlace] = []
    is_offline: bool = False
    source: str
    location: Optional[Coordinates] = None


class CacheStatusPayload(BaseModel):
    has_data: bool
    last_location: Optional[CachedLocationRead] = None


class CacheClearedPayload(BaseModel):
    locations_deleted: int
    bars_deleted: int


_ENVELOPE_STATUS = {
    FetchStatus.FRESH: "ok",
    FetchStatus.OFFLINE_CACHED: "offline",
    FetchStatus.ERROR: "error",
}


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/nearby", response_model=Envelope[NearbyBarsPayload])
async def get_nearby_bars(
    request: Request,
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    location_cache: LocationCache = Depends(get_location_cache),
    bar_cache: BarCache = Depends(get_bar_cache),
    places_client: PlacesClient = Depends(get_places_client),
):
    """
    Resolve bars around the caller's fix.

    The fix is cached, the places lookup runs, and when it fails the cached
    bars for this location are returned with status "offline".
    """
    service = BarFetchService(
        location_provider=StaticLocationProvider(latitude, longitude),
        location_cache=location_cache,
        bar_cache=bar_cache,
        places_client=places_client,
    )
    result = await service.fetch()

    status = _ENVELOPE_STATUS.get(result.status, "error")
    if status == "error":
        return Envelope[NearbyBarsPayload](
            status="error",
            data=None,
            error=result.error,
            error_code=result.error_code.value if result.error_code else None,
            request_id=getattr(request.state, "request_id", None),
        )

    payload = NearbyBarsPayload(
        bars=result.bars,
        is_offline=result.is_offline,
        source="cache" if result.is_offline else "places",
        location=result.location,
    )
    return Envelope[NearbyBarsPayload](
        status=status,
        data=payload,
        error=None,
        request_id=getattr(request.state, "request_id", None),
    )


@router.get("/cache", response_model=Envelope[CacheStatusPayload])
async def get_cache_status(
    location_cache: LocationCache = Depends(get_location_cache),
    bar_cache: BarCache = Depends(get_bar_cache),
):
    last_location = await location_cache.recent_or_none()
    payload = CacheStatusPayload(
        has_data=await bar_cache.has_data(),
        last_location=CachedLocationRead.model_validate(last_location) if last_location else None,
    )
    return Envelope[CacheStatusPayload](status="ok", data=payload, error=None)


@router.delete("/cache", response_model=Envelope[CacheClearedPayload])
async def clear_cache(
    location_cache: LocationCache = Depends(get_location_cache),
    bar_cache: BarCache = Depends(get_bar_cache),
):
    """Drop every cached location and bar, e.g. on logout."""
    payload = CacheClearedPayload(
        locations_deleted=await location_cache.clear(),
        bars_deleted=await bar_cache.clear(),
    )
    return Envelope[CacheClearedPayload](status="ok", data=payload, error=None)
