# API endpoints and routers

from .bars_endpoints import router as bars_router

__all__ = [
    "bars_router",
]
