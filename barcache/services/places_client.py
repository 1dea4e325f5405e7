"""
Places Client - Nearby bar search against the Google Places API
"""
import json
import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from barcache.config.settings import get_settings
from barcache.core.exceptions import LookupFailedError
from barcache.schemas.places import PlaceResult, PlacesApiResponse, PlacesSearchResult

logger = logging.getLogger(__name__)

# Places API statuses that mean the request itself was rejected
ERROR_STATUSES = {"REQUEST_DENIED", "INVALID_REQUEST", "OVER_QUERY_LIMIT", "UNKNOWN_ERROR"}


def parse_places_response(payload: Any) -> PlacesSearchResult:
    """
    Turn a decoded Places payload into bars.

    Entries that fail validation are skipped. A payload that is not a JSON
    object, or whose ``results`` is not a list, is reported as malformed
    with no bars.
    Top-level extras with the wrong type are ignored.
    """
    if not isinstance(payload, dict):
        return PlacesSearchResult(malformed=True)

    raw_results = payload.get("results", [])
    if not isinstance(raw_results, list):
        return PlacesSearchResult(status=str(payload.get("status", "UNKNOWN")), malformed=True)

    results = []
    skipped = 0
    for entry in raw_results:
        try:
            results.append(PlaceResult.model_validate(entry))
        except ValidationError as e:
            skipped += 1
            logger.debug(f"Skipping malformed place entry: {e.error_count()} errors")

    attributions = payload.get("html_attributions")
    if not isinstance(attributions, list) or not all(isinstance(a, str) for a in attributions):
        attributions = []
    next_page_token = payload.get("next_page_token")
    if not isinstance(next_page_token, str) or not next_page_token:
        next_page_token = None

    response = PlacesApiResponse(
        html_attributions=attributions,
        next_page_token=next_page_token,
        results=results,
        status=str(payload.get("status", "UNKNOWN")),
    )

    return PlacesSearchResult(
        bars=[result.to_bar_place() for result in response.results],
        status=response.status,
        skipped=skipped,
        next_page_token=response.next_page_token,
    )


class PlacesClient:
    """Fetches bars around a location from the Places nearby search endpoint"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        place_type: Optional[str] = None,
        default_radius_m: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        places = get_settings().places
        self.api_key = api_key if api_key is not None else places.api_key
        self.api_url = api_url or places.api_url
        self.place_type = place_type or places.place_type
        self.default_radius_m = default_radius_m or places.search_radius_m
        self.timeout = timeout or places.timeout_seconds
        self.transport = transport

        if not self.api_key:
            logger.warning(
                "Places API key not configured. "
                "Set PLACES_API_KEY in .env file."
            )

    async def search_nearby_bars(
        self,
        latitude: float,
        longitude: float,
        radius_m: Optional[int] = None,
    ) -> PlacesSearchResult:
        """
        Search bars around a location

        Args:
            latitude: Search center latitude
            longitude: Search center longitude
            radius_m: Search radius in meters (default 2000)

        Returns:
            PlacesSearchResult; ``malformed`` is set for unreadable payloads

        Raises:
            LookupFailedError: on transport errors, non-2xx responses, empty
                bodies, Places API error statuses or a missing API key
        """
        if not self.api_key:
            raise LookupFailedError("Places API key not configured")

        radius = radius_m or self.default_radius_m
        params = {
            "location": f"{latitude},{longitude}",
            "radius": radius,
            "type": self.place_type,
            "key": self.api_key,
        }

        logger.info(f"Searching {self.place_type} within {radius}m of ({latitude:.4f}, {longitude:.4f})")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.api_url, params=params)
        except httpx.TimeoutException as e:
            raise LookupFailedError("Places API request timed out", details={"error": str(e)}) from e
        except httpx.HTTPError as e:
            raise LookupFailedError("Places API request failed", details={"error": str(e)}) from e

        if not response.is_success:
            raise LookupFailedError(
                f"Places API request failed with code: {response.status_code}",
                details={"status_code": response.status_code},
            )

        if not response.content.strip():
            raise LookupFailedError("Empty response body")

        try:
            payload = json.loads(response.content)
        except ValueError:
            logger.warning("Places API returned unparseable JSON, treating as no results")
            return PlacesSearchResult(malformed=True)

        result = parse_places_response(payload)
        if result.status in ERROR_STATUSES:
            raise LookupFailedError(
                f"Places API returned status {result.status}",
                details={"status": result.status, "error_message": payload.get("error_message")},
            )

        if result.malformed:
            logger.warning("Places API returned a malformed payload, treating as no results")
        elif result.skipped:
            logger.info(f"Skipped {result.skipped} malformed place entries")

        logger.info(f"Found {len(result.bars)} bars (status={result.status})")
        return result
