"""
Fetch outcome models emitted by the nearby bars orchestrator.
"""
import enum
from typing import List, Optional

from pydantic import BaseModel, Field

from barcache.core.exceptions import ErrorCode
from barcache.schemas.bar import BarPlace, Coordinates


class FetchState(str, enum.Enum):
    """Orchestrator lifecycle"""
    IDLE = "idle"
    PERMISSION_DENIED = "permission_denied"
    AWAITING_FIX = "awaiting_fix"
    FIX_OBTAINED = "fix_obtained"
    FIX_FAILED = "fix_failed"
    SERVING_CACHE_WHILE_FETCHING = "serving_cache_while_fetching"
    LOOKUP_SUCCEEDED = "lookup_succeeded"
    LOOKUP_FAILED = "lookup_failed"
    SETTLED = "settled"


class FetchStatus(str, enum.Enum):
    """What the user gets to see"""
    LOADING = "loading"              # provisional cached list, lookup in flight
    FRESH = "fresh"                  # lookup succeeded
    OFFLINE_CACHED = "offline_cached"
    ERROR = "error"
    SUPERSEDED = "superseded"        # a newer fetch took over


class BarFetchResult(BaseModel):
    status: FetchStatus
    bars: List[BarPlace] = Field(default_factory=list)
    is_offline: bool = False
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    location: Optional[Coordinates] = None
    generation: int = 0

    @property
    def is_error(self) -> bool:
        return self.status == FetchStatus.ERROR
