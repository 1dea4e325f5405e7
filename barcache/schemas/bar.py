from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinates(BaseModel):
    """Geographic coordinates of a device fix or a place."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class BarPlace(BaseModel):
    """A bar as shown on the map, without any cache bookkeeping."""

    model_config = ConfigDict(from_attributes=True)

    place_id: str = Field(..., min_length=1)
    name: str
    latitude: float
    longitude: float
    is_open: Optional[bool] = None
    rating: Optional[float] = None
    vicinity: Optional[str] = None


class CachedLocationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    latitude: float
    longitude: float
    observed_at: datetime
