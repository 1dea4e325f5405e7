"""
Configuration management using Pydantic Settings.
Values are read from the environment and an optional .env file.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from typing import Optional
from enum import Enum


class Environment(str, Enum):
    """Supported deployment environments"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Supported log levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class PlacesSettings(BaseSettings):
    """Google Places nearby search configuration"""

    api_key: Optional[str] = Field(
        default=None,
        description="Google Maps API key used for nearby search"
    )
    api_url: str = Field(
        default="https://maps.googleapis.com/maps/api/place/nearbysearch/json"
    )
    search_radius_m: int = Field(default=2000, ge=1, le=50000)
    place_type: str = Field(default="bar")
    timeout_seconds: int = Field(default=10, ge=1, le=60)

    model_config = {
        "env_prefix": "PLACES_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


class CacheSettings(BaseSettings):
    """Local cache database configuration"""

    database_url: str = Field(default="sqlite+aiosqlite:///./barcache.db")
    echo_sql: bool = Field(default=False)

    model_config = {"env_prefix": "CACHE_", "extra": "ignore"}


class Settings(BaseSettings):
    """Main application settings"""

    # Application Configuration
    app_name: str = Field(default="BeerReal Bar Cache")
    app_version: str = Field(default="1.0.0")
    environment: Environment = Field(default=Environment.DEVELOPMENT)
    debug: bool = Field(default=False)

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)

    # Logging Configuration
    log_level: LogLevel = Field(default=LogLevel.INFO)
    log_format: str = Field(default="json", description="json or text")

    # Nested Settings
    places: PlacesSettings = Field(default_factory=PlacesSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)

    @field_validator('environment', mode='before')
    @classmethod
    def validate_environment(cls, v):
        """Validate and normalize environment setting"""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def validate_log_level(cls, v):
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings instance"""
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment and files"""
    global settings
    settings = Settings()
    return settings
