"""Pydantic models for the CasiLocal content bot."""

from .ledger import ProcessedSpot, RefinedSpot
from .places import PlaceCandidate, PlaceReview
from .results import IngestSummary, ItemResult, ItemStatus, RefineSummary
from .venue import (
    MADRID_CENTER,
    Coordinates,
    NoiseLevel,
    VenueMetrics,
    VenueRecord,
    WifiSpeed,
)

__all__ = [
    # Ledgers
    "ProcessedSpot",
    "RefinedSpot",
    # Place search
    "PlaceCandidate",
    "PlaceReview",
    # Pipeline results
    "IngestSummary",
    "ItemResult",
    "ItemStatus",
    "RefineSummary",
    # Venue records
    "MADRID_CENTER",
    "Coordinates",
    "NoiseLevel",
    "VenueMetrics",
    "VenueRecord",
    "WifiSpeed",
]
