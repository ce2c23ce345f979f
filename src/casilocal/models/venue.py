"""Pydantic models for Venue Records (the spots content collection)."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

MADRID_CENTER = (40.416775, -3.70379)


class WifiSpeed(str, Enum):
    """Wifi quality tiers."""

    FLYNET = "flynet"
    RELIABLE = "reliable"
    SPOTTY = "spotty"
    DETOX = "detox"


class NoiseLevel(str, Enum):
    """Ambient noise tiers."""

    SILENCE = "silence"
    HUM = "hum"
    CHAOS = "chaos"


class Coordinates(BaseModel):
    lat: float
    long: float


class VenueMetrics(BaseModel):
    """Laptop-work metrics shown on the map and the spot page."""

    wifi_speed: WifiSpeed
    noise_level: NoiseLevel
    plug_access: bool
    coffee_price: float = Field(ge=0)
    casi_score: int = Field(ge=1, le=10)
    coordinates: Coordinates

    @property
    def rent_score(self) -> Literal["High", "Medium", "Low"]:
        """How much seat time a coffee buys: cheap coffee means high rent score."""
        if self.coffee_price < 2.00:
            return "High"
        if self.coffee_price > 3.50:
            return "Low"
        return "Medium"


class VenueRecord(BaseModel):
    """A single spot as persisted in src/content/spots/<slug>.mdx.

    `body` is the markdown review after the frontmatter block.
    """

    slug: str
    title: str
    author: str | None = None
    address: str | None = None
    neighborhood: str
    metrics: VenueMetrics
    body: str = ""

    def frontmatter(self) -> dict:
        """Header mapping in the canonical key order."""
        data: dict = {"title": self.title}
        if self.author:
            data["author"] = self.author
        if self.address:
            data["address"] = self.address
        data["neighborhood"] = self.neighborhood
        data["metrics"] = self.metrics.model_dump(mode="json")
        return data
