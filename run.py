#!/usr/bin/env python3
"""
Application startup script.
"""

import argparse

from barcache.config import get_settings


def main():
    """Main startup function"""
    parser = argparse.ArgumentParser(description="BeerReal Bar Cache Server")
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (overrides config)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind to (overrides config)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level (overrides config)"
    )

    args = parser.parse_args()
    settings = get_settings()

    host = args.host or settings.host
    port = args.port or settings.port
    log_level = args.log_level or settings.log_level.value

    print(f"Starting {settings.app_name} v{settings.app_version}")
    print(f"   Environment: {settings.environment.value}")
    print(f"   Host: {host}")
    print(f"   Port: {port}")
    print(f"   Cache DB: {settings.cache.database_url}")
    print(f"   Log Level: {log_level}")

    import uvicorn

    uvicorn.run(
        "barcache.main:app",
        host=host,
        port=port,
        reload=args.reload,
        log_level=log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    main()
