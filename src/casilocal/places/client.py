"""Google Places client for discovering candidate cafés."""

import logging
import os
from typing import Any

import requests

from ..errors import ConfigurationError, UpstreamError
from ..models.places import PlaceCandidate, PlaceReview

logger = logging.getLogger(__name__)

FIELD_MASK = ",".join(
    [
        "places.displayName",
        "places.formattedAddress",
        "places.rating",
        "places.googleMapsUri",
        "places.reviews",
        "places.location",
        "places.priceLevel",
    ]
)

MAX_RESULT_COUNT = 20


class PlacesClient:
    """Client for the Places API (New) text search endpoint.

    One call per search_text(); no retries. Billing is per request.
    """

    SEARCH_TEXT_URL = "https://places.googleapis.com/v1/places:searchText"

    def __init__(
        self,
        api_key: str | None = None,
        language_code: str = "en",
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ):
        """Initialize Places client.

        Args:
            api_key: Places API key. If None, reads GOOGLE_PLACES_API_KEY.
            language_code: Language for names and reviews
            timeout_seconds: Per-request timeout
            session: Optional requests session (for connection reuse)

        Raises:
            ConfigurationError: If no API key is provided or found in environment
        """
        self.api_key = api_key or os.getenv("GOOGLE_PLACES_API_KEY")
        if not self.api_key:
            raise ConfigurationError(
                "GOOGLE_PLACES_API_KEY not set. Export it or add it to .env."
            )
        self.language_code = language_code
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def search_text(self, query: str, result_count: int = MAX_RESULT_COUNT) -> list[PlaceCandidate]:
        """Run a text search and return parsed candidates.

        Args:
            query: Free-text query, e.g. "quiet cafes with wifi Chamberí"
            result_count: Max results, capped at 20 by the API

        Raises:
            UpstreamError: On non-success status or transport failure
        """
        body = {
            "textQuery": query,
            "languageCode": self.language_code,
            "maxResultCount": max(1, min(result_count, MAX_RESULT_COUNT)),
        }
        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": FIELD_MASK,
        }

        try:
            response = self.session.post(
                self.SEARCH_TEXT_URL,
                json=body,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            raise UpstreamError("Google Places", None, str(e)) from e

        if not response.ok:
            raise UpstreamError("Google Places", response.status_code, response.text[:2000])

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                "Google Places", response.status_code, f"invalid JSON response: {response.text[:2000]}"
            ) from e
        places = (data.get("places") or []) if isinstance(data, dict) else []
        logger.debug(f"Places search '{query}' returned {len(places)} result(s)")
        return [self._parse_place(p) for p in places]

    def _parse_place(self, data: dict[str, Any]) -> PlaceCandidate:
        """Parse one place object from the API response."""
        display_name = data.get("displayName") or {}
        location = data.get("location") or {}

        reviews: list[PlaceReview] = []
        for review in data.get("reviews") or []:
            # Review text is nested: {"text": {"text": "...", "languageCode": "en"}}
            text_block = review.get("text") or review.get("originalText") or {}
            text = text_block.get("text", "") if isinstance(text_block, dict) else str(text_block)
            reviews.append(PlaceReview(text=text or "", rating=review.get("rating")))

        return PlaceCandidate(
            name=display_name.get("text") or "Unknown",
            uri=data.get("googleMapsUri") or "",
            address=data.get("formattedAddress") or "",
            rating=data.get("rating"),
            price_level=data.get("priceLevel"),
            lat=location.get("latitude"),
            long=location.get("longitude"),
            reviews=reviews,
        )
