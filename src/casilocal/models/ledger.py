"""Pydantic models for the ingestion and refinement ledgers."""

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, Field


class ProcessedSpot(BaseModel):
    """One source place that has been ingested into a Venue Record.

    Written to bot/processed-spots.json. Keyed by the Google Maps URI.
    Never mutate or delete; only append.
    """

    key_field: ClassVar[str] = "uri"

    uri: str = Field(description="External Google Maps URI (unique key)")
    name: str = Field(description="Raw display name from place search")
    neighborhood: str = Field(description="Inferred neighborhood")
    slug: str = Field(description="Slug of the written content file")
    processed_at: datetime = Field(alias="processedAt", description="Ingestion timestamp (UTC)")

    model_config = {"frozen": True, "populate_by_name": True}


class RefinedSpot(BaseModel):
    """One content file whose review has been rewritten.

    Written to bot/refined-spots.json. Keyed by content filename.
    """

    key_field: ClassVar[str] = "filename"

    filename: str = Field(description="Content filename, e.g. malasana-pastora.mdx (unique key)")
    spot_name: str = Field(alias="spotName", description="Venue title at refinement time")
    refined_at: datetime = Field(alias="refinedAt", description="Refinement timestamp (UTC)")

    model_config = {"frozen": True, "populate_by_name": True}
