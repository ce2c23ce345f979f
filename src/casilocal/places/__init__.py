"""Place discovery for the CasiLocal content bot."""

from .client import FIELD_MASK, PlacesClient

__all__ = ["PlacesClient", "FIELD_MASK"]
