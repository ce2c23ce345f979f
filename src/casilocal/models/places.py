"""Pydantic models for place-search results."""

from pydantic import BaseModel, Field


class PlaceReview(BaseModel):
    """A review excerpt attached to a place."""

    text: str = Field("", description="Review body text")
    rating: float | None = Field(None, description="Star rating given by the reviewer")


class PlaceCandidate(BaseModel):
    """A discovery candidate from Google Places text search.

    Transient: exists only for one pipeline run.
    """

    name: str = Field(..., description="Display name as listed on Google Maps")
    uri: str = Field("", description="Google Maps URI (dedup key)")
    address: str = Field("", description="Formatted address")
    rating: float | None = Field(None, description="Average rating (0-5)")
    price_level: str | None = Field(None, description="Price tier label, e.g. PRICE_LEVEL_MODERATE")
    lat: float | None = Field(None, description="Latitude")
    long: float | None = Field(None, description="Longitude")
    reviews: list[PlaceReview] = Field(default_factory=list, description="Review excerpts in API order")

    def review_texts(self, limit: int = 5) -> list[str]:
        """Non-empty review texts from the first `limit` reviews."""
        texts = [r.text.strip() for r in self.reviews[:limit]]
        return [t for t in texts if t]
