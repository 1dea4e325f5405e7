"""
Error handlers for the FastAPI application.
Every error leaves the service as the standard envelope, never a stack trace.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging

from barcache.core.exceptions import BarCacheException, ErrorCode

logger = logging.getLogger(__name__)


def _error_response(status_code: int, error_code: str, message: str, request_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "data": None,
            "error": message,
            "error_code": error_code,
            "request_id": request_id,
        },
    )


def setup_error_handlers(app):
    """Register exception handlers on the application."""

    @app.exception_handler(BarCacheException)
    async def bar_cache_exception_handler(request: Request, exc: BarCacheException):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(
            f"BarCacheException in request {request_id}: {exc.message}",
            extra={
                'request_id': request_id,
                'error_code': exc.error_code.value,
                'details': exc.details,
                'request_path': request.url.path,
            }
        )
        return _error_response(exc.status_code, exc.error_code.value, exc.message, request_id)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        return _error_response(
            422, ErrorCode.VALIDATION_ERROR.value, f"Invalid request: {fields}", request_id
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(f"Unhandled error in request {request_id}: {exc}", exc_info=True)
        return _error_response(
            500, ErrorCode.INTERNAL_SERVER_ERROR.value, "Internal server error", request_id
        )
