"""
Google Places nearby search response models.

Only the fields the map needs are required; everything else is optional so
that one odd entry does not spoil a whole response.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from barcache.schemas.bar import BarPlace


class LatLng(BaseModel):
    lat: float
    lng: float


class Viewport(BaseModel):
    northeast: LatLng
    southwest: LatLng


class Geometry(BaseModel):
    location: LatLng
    viewport: Optional[Viewport] = None


class OpeningHours(BaseModel):
    open_now: Optional[bool] = None


class Photo(BaseModel):
    height: int = 0
    width: int = 0
    photo_reference: str = ""
    html_attributions: List[str] = Field(default_factory=list)


class PlaceResult(BaseModel):
    """Single entry of the ``results`` array"""

    place_id: str = Field(..., min_length=1)
    name: str = "Unknown"
    geometry: Geometry
    business_status: Optional[str] = None
    opening_hours: Optional[OpeningHours] = None
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    price_level: Optional[int] = None
    vicinity: Optional[str] = None
    international_phone_number: Optional[str] = None
    types: List[str] = Field(default_factory=list)
    icon: Optional[str] = None
    icon_background_color: Optional[str] = None
    photos: Optional[List[Photo]] = None
    permanently_closed: Optional[bool] = None

    def to_bar_place(self) -> BarPlace:
        return BarPlace(
            place_id=self.place_id,
            name=self.name,
            latitude=self.geometry.location.lat,
            longitude=self.geometry.location.lng,
            is_open=self.opening_hours.open_now if self.opening_hours else None,
            rating=self.rating,
            vicinity=self.vicinity,
        )


class PlacesApiResponse(BaseModel):
    """Top-level response envelope; ``results`` holds only entries that parsed"""

    html_attributions: List[str] = Field(default_factory=list)
    next_page_token: Optional[str] = None
    results: List[PlaceResult] = Field(default_factory=list)
    status: str = "UNKNOWN"


class PlacesSearchResult(BaseModel):
    """
    Outcome of a successful lookup.

    ``malformed`` is set when the payload could not be read at all, which
    keeps it apart from a genuine zero-results answer even though both carry
    an empty ``bars`` list.
    """

    bars: List[BarPlace] = Field(default_factory=list)
    status: str = "UNKNOWN"
    malformed: bool = False
    skipped: int = 0
    next_page_token: Optional[str] = None
