"""
Configuration package for the bar cache service.
"""

from .settings import (
    Settings,
    Environment,
    LogLevel,
    PlacesSettings,
    CacheSettings,
    settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "Environment",
    "LogLevel",
    "PlacesSettings",
    "CacheSettings",
    "settings",
    "get_settings",
    "reload_settings",
]
