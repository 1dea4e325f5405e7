"""
ORM models for the local cache database.
"""

from .cached_location import CachedLocation
from .cached_bar import CachedBar

__all__ = [
    "CachedLocation",
    "CachedBar",
]
