"""Pydantic models for per-item and per-run pipeline outcomes."""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class ItemStatus(str, Enum):
    """What happened to one candidate or content file."""

    WRITTEN = "written"
    SKIPPED = "skipped"
    FAILED = "failed"
    PLANNED = "planned"  # dry run: would have been enriched


class ItemResult(BaseModel):
    """Outcome of processing one item in a pipeline run."""

    key: str = Field(..., description="Ledger key: source URI or content filename")
    name: str = Field(..., description="Display name or spot title")
    status: ItemStatus
    slug: Optional[str] = Field(None, description="Slug of the written file")
    path: Optional[Path] = Field(None, description="Content file written or rewritten")
    author: Optional[str] = Field(None, description="Author assigned by refinement")
    reason: Optional[str] = Field(None, description="Failure reason")

    @property
    def ok(self) -> bool:
        return self.status == ItemStatus.WRITTEN


class IngestSummary(BaseModel):
    """Totals for one ingestion run across all attempts."""

    new: int = 0
    skipped: int = 0
    failed: int = 0
    retries: int = 0
    queries: list[str] = Field(default_factory=list)
    written: list[Path] = Field(default_factory=list)
    items: list[ItemResult] = Field(default_factory=list)
    ledger_size: int = 0
    dry_run: bool = False


class RefineSummary(BaseModel):
    """Totals for one refinement run."""

    selected: int = 0
    refined: int = 0
    failed: int = 0
    already_done: int = 0
    items: list[ItemResult] = Field(default_factory=list)
