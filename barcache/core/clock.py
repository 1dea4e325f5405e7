from datetime import datetime, timezone


def utc_now() -> datetime:
    """Naive UTC timestamp, the form stored in the cache tables."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
