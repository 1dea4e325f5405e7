"""
Core building blocks for the bar cache service: database access, typed
errors, logging and the shared clock.
"""

from .exceptions import (
    ErrorCode,
    BarCacheException,
    PermissionDeniedError,
    LocationUnavailableError,
    LookupFailedError,
    StorageFailureError,
)
from .clock import utc_now

__all__ = [
    "ErrorCode",
    "BarCacheException",
    "PermissionDeniedError",
    "LocationUnavailableError",
    "LookupFailedError",
    "StorageFailureError",
    "utc_now",
]
