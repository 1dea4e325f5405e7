"""
Custom exceptions for the bar cache service.

Every failure the cache layer can produce is one of the typed errors below;
the fetch orchestrator converts them into user-facing outcomes and the HTTP
layer renders any that reach it as a JSON error envelope.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for the application."""

    # Fetch errors
    PERMISSION_DENIED = "PERMISSION_DENIED"
    LOCATION_UNAVAILABLE = "LOCATION_UNAVAILABLE"
    LOOKUP_FAILED = "LOOKUP_FAILED"

    # Local storage errors
    STORAGE_FAILURE = "STORAGE_FAILURE"

    # Generic errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class BarCacheException(Exception):
    """Base exception for the bar cache service."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code


class PermissionDeniedError(BarCacheException):
    """Raised when the location permission gate is closed."""

    def __init__(self, message: str = "Location permission not granted"):
        super().__init__(
            message=message,
            error_code=ErrorCode.PERMISSION_DENIED,
            status_code=403
        )


class LocationUnavailableError(BarCacheException):
    """Raised when the location provider returns no fix or fails explicitly."""

    def __init__(self, message: str = "Current location unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.LOCATION_UNAVAILABLE,
            details=details,
            status_code=503
        )


class LookupFailedError(BarCacheException):
    """Raised when the remote places lookup fails (transport, status or body)."""

    def __init__(self, message: str = "Nearby bars lookup failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.LOOKUP_FAILED,
            details=details,
            status_code=502
        )


class StorageFailureError(BarCacheException):
    """Raised when the local cache database fails. Never retried."""

    def __init__(self, operation: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Cache storage operation '{operation}' failed",
            error_code=ErrorCode.STORAGE_FAILURE,
            details={"operation": operation, **(details or {})},
            status_code=500
        )
        self.operation = operation
