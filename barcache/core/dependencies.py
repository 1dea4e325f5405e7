"""
Dependency injection setup for FastAPI.
Composes the cache database, store, cache managers and places client once
per process and hands them to request handlers.
"""

from fastapi import Depends, Request, HTTPException
from typing import Optional
import logging
import asyncio

from barcache.config.settings import Settings, get_settings
from barcache.core.db import Database
from barcache.services import BarCache, CacheStore, LocationCache, PlacesClient


logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Container for the process-wide cache services.

    The Database is built here once and shared by both cache managers.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings
        self._database: Optional[Database] = None
        self._store: Optional[CacheStore] = None
        self._location_cache: Optional[LocationCache] = None
        self._bar_cache: Optional[BarCache] = None
        self._places_client: Optional[PlacesClient] = None
        self._initialized = False
        self._initialization_lock = asyncio.Lock()

    async def initialize_services(self) -> None:
        """Initialize all services in dependency order."""
        async with self._initialization_lock:
            if self._initialized:
                return

            logger.info("Initializing service container")
            settings = self._settings or get_settings()

            try:
                self._database = Database(settings.cache.database_url, echo=settings.cache.echo_sql)
                await self._database.create_all()

                self._store = CacheStore(self._database)
                self._location_cache = LocationCache(self._store)
                self._bar_cache = BarCache(self._store)
                self._places_client = PlacesClient(
                    api_key=settings.places.api_key,
                    api_url=settings.places.api_url,
                    place_type=settings.places.place_type,
                    default_radius_m=settings.places.search_radius_m,
                    timeout=settings.places.timeout_seconds,
                )

                self._initialized = True
                logger.info("Service container initialization completed")

            except Exception as e:
                logger.error(f"Service container initialization failed: {e}", exc_info=True)
                if self._database is not None:
                    await self._database.dispose()
                    self._database = None
                raise

    async def cleanup_services(self) -> None:
        """Dispose the database engine and drop service references."""
        logger.info("Cleaning up service container")

        try:
            if self._database is not None:
                await self._database.dispose()
        finally:
            self._places_client = None
            self._bar_cache = None
            self._location_cache = None
            self._store = None
            self._database = None
            self._initialized = False
            logger.info("Service container cleanup completed")

    def get_location_cache(self) -> LocationCache:
        if not self._initialized or self._location_cache is None:
            raise RuntimeError("Service container not initialized")
        return self._location_cache

    def get_bar_cache(self) -> BarCache:
        if not self._initialized or self._bar_cache is None:
            raise RuntimeError("Service container not initialized")
        return self._bar_cache

    def get_places_client(self) -> PlacesClient:
        if not self._initialized or self._places_client is None:
            raise RuntimeError("Service container not initialized")
        return self._places_client


def get_service_container(request: Request) -> ServiceContainer:
    """
    Get the service container from application state.

    Raises:
        HTTPException: If service container is not available
    """
    if not hasattr(request.app.state, 'service_container'):
        logger.error("Service container not initialized")
        raise HTTPException(
            status_code=500,
            detail="Service container not available"
        )

    return request.app.state.service_container


def get_location_cache(
    container: ServiceContainer = Depends(get_service_container)
) -> LocationCache:
    try:
        return container.get_location_cache()
    except RuntimeError as e:
        logger.error(f"Location cache not available: {e}")
        raise HTTPException(status_code=500, detail="Location cache not available")


def get_bar_cache(
    container: ServiceContainer = Depends(get_service_container)
) -> BarCache:
    try:
        return container.get_bar_cache()
    except RuntimeError as e:
        logger.error(f"Bar cache not available: {e}")
        raise HTTPException(status_code=500, detail="Bar cache not available")


def get_places_client(
    container: ServiceContainer = Depends(get_service_container)
) -> PlacesClient:
    try:
        return container.get_places_client()
    except RuntimeError as e:
        logger.error(f"Places client not available: {e}")
        raise HTTPException(status_code=500, detail="Places client not available")
