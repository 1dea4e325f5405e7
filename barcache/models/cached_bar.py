"""
Cached bar, tagged with where the device was when it was fetched
"""
from datetime import datetime

from sqlalchemy import Column, String, Float, Boolean, DateTime, Text

from barcache.core.db import Base
from barcache.schemas.bar import BarPlace


class CachedBar(Base):
    """
    A bar from a successful lookup. ``place_id`` is the key: a later insert
    replaces the whole row.
    """
    __tablename__ = "cached_bars"

    place_id = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    is_open = Column(Boolean, nullable=True)
    rating = Column(Float, nullable=True)
    vicinity = Column(Text, nullable=True)
    # Device location at fetch time, not the bar's own location
    observer_latitude = Column(Float, nullable=False, index=True)
    observer_longitude = Column(Float, nullable=False, index=True)
    fetched_at = Column(DateTime, nullable=False, index=True)  # naive UTC

    @classmethod
    def from_bar_place(
        cls,
        bar: BarPlace,
        observer_latitude: float,
        observer_longitude: float,
        fetched_at: datetime,
    ) -> "CachedBar":
        return cls(
            place_id=bar.place_id,
            name=bar.name,
            latitude=bar.latitude,
            longitude=bar.longitude,
            is_open=bar.is_open,
            rating=bar.rating,
            vicinity=bar.vicinity,
            observer_latitude=observer_latitude,
            observer_longitude=observer_longitude,
            fetched_at=fetched_at,
        )

    def to_bar_place(self) -> BarPlace:
        return BarPlace.model_validate(self)
