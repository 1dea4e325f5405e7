"""
Cached device location
"""
from sqlalchemy import Column, Integer, Float, DateTime

from barcache.core.clock import utc_now
from barcache.core.db import Base


class CachedLocation(Base):
    """
    One device fix. Every fix appends a row; only the most recent one is read.
    """
    __tablename__ = "cached_locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    observed_at = Column(DateTime, nullable=False, default=utc_now, index=True)  # naive UTC
