"""Ingestion ("seed") pipeline: discover cafés, enrich new ones, write spots.

One run is a bounded loop of discovery batches. Each batch is deduplicated
against the ingestion ledger, every new candidate is enriched and written
as one Venue Record, and the ledger is saved. A batch that is mostly
duplicates triggers one query suggestion and another batch, up to
SeedConfig.max_attempts batches in total.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from .config import SeedConfig
from .ledger import LedgerStore
from .llm.client import TextGenerator
from .mdx import render_venue_record
from .models.ledger import ProcessedSpot
from .models.places import PlaceCandidate
from .models.results import IngestSummary, ItemResult, ItemStatus
from .normalize import build_venue_record, clean_name, infer_neighborhood, suggest_query, synthesize
from .paths import SitePaths
from .places.client import PlacesClient

logger = logging.getLogger(__name__)


def unique_slug(base: str, spots_dir: Path, reserved: set[str]) -> str:
    """Return `base`, or `base-2`, `base-3`... if taken on disk or this run."""
    slug = base
    n = 2
    while slug in reserved or (spots_dir / f"{slug}.mdx").exists():
        slug = f"{base}-{n}"
        n += 1
    return slug


def _ingest_candidate(
    candidate: PlaceCandidate,
    *,
    generator: TextGenerator,
    ledger: LedgerStore[ProcessedSpot],
    paths: SitePaths,
    seed_config: SeedConfig,
    reserved_slugs: set[str],
) -> ItemResult:
    name = candidate.name
    neighborhood = infer_neighborhood(
        name, candidate.address, generator, default=seed_config.default_neighborhood
    )
    title = clean_name(name, generator)
    logger.debug(f"{name}: title '{title}', neighborhood '{neighborhood}'")
    synthesis = synthesize(title, candidate, generator)
    if synthesis.source == "fallback":
        logger.info(f"{name}: using fallback review ({synthesis.reason})")

    try:
        record = build_venue_record(
            candidate, synthesis, neighborhood, title, author=seed_config.default_author
        )
        slug = unique_slug(record.slug, paths.spots, reserved_slugs)
        if slug != record.slug:
            logger.warning(f"Slug {record.slug} already taken, writing {slug}")
            record = record.model_copy(update={"slug": slug})

        file_path = paths.spot_path(slug)
        paths.spots.mkdir(parents=True, exist_ok=True)
        file_path.write_text(render_venue_record(record), encoding="utf-8")
    except (OSError, ValueError) as e:
        logger.error(f"Failed to write spot for {name}: {e}")
        return ItemResult(key=candidate.uri, name=name, status=ItemStatus.FAILED, reason=str(e))

    reserved_slugs.add(slug)
    ledger.append(
        ProcessedSpot(
            uri=candidate.uri,
            name=name,
            neighborhood=neighborhood,
            slug=slug,
            processed_at=datetime.now(timezone.utc),
        )
    )
    return ItemResult(
        key=candidate.uri, name=name, status=ItemStatus.WRITTEN, slug=slug, path=file_path
    )


def run_ingestion(
    *,
    query: str,
    places_client: PlacesClient,
    generator: Optional[TextGenerator],
    ledger: LedgerStore[ProcessedSpot],
    paths: SitePaths,
    seed_config: Optional[SeedConfig] = None,
    dry_run: bool = False,
    on_item: Optional[Callable[[ItemResult], None]] = None,
) -> IngestSummary:
    """Run discovery batches until the results stop being mostly duplicates.

    Args:
        query: Initial discovery query
        places_client: Place search client
        generator: Text generator (unused in dry run)
        ledger: Loaded ingestion ledger; appended to and saved per batch
        paths: Site paths (spot files are written under paths.spots)
        seed_config: Retry thresholds and defaults
        dry_run: Discover and dedup only; no generation calls, no writes
        on_item: Called with each ItemResult as it is produced

    Raises:
        UpstreamError: If a discovery call fails
    """
    seed_config = seed_config or SeedConfig()
    if generator is None and not dry_run:
        raise ValueError("A text generator is required unless dry_run is set")

    summary = IngestSummary(dry_run=dry_run)
    known_names = [entry.name for entry in ledger]
    reserved_slugs: set[str] = set()
    current_query = query

    while True:
        summary.queries.append(current_query)
        logger.info(f"Searching places: '{current_query}'")
        candidates = places_client.search_text(current_query, result_count=seed_config.result_count)
        logger.info(f"Found {len(candidates)} place(s)")

        if not candidates:
            break

        batch_written = 0
        skipped_names: list[str] = []
        seen_uris: set[str] = set()

        for candidate in candidates:
            if ledger.contains(candidate.uri) or candidate.uri in seen_uris:
                logger.info(f"Skipping (already processed): {candidate.name}")
                skipped_names.append(candidate.name)
                result = ItemResult(key=candidate.uri, name=candidate.name, status=ItemStatus.SKIPPED)
            elif dry_run:
                result = ItemResult(key=candidate.uri, name=candidate.name, status=ItemStatus.PLANNED)
            else:
                logger.info(f"Processing: {candidate.name}")
                result = _ingest_candidate(
                    candidate,
                    generator=generator,
                    ledger=ledger,
                    paths=paths,
                    seed_config=seed_config,
                    reserved_slugs=reserved_slugs,
                )
            seen_uris.add(candidate.uri)

            summary.items.append(result)
            if result.status == ItemStatus.SKIPPED:
                summary.skipped += 1
            elif result.status == ItemStatus.FAILED:
                summary.failed += 1
            elif result.status == ItemStatus.WRITTEN:
                summary.new += 1
                batch_written += 1
                summary.written.append(result.path)
            if on_item:
                on_item(result)

        if dry_run:
            break

        ledger.save()

        duplicate_ratio = len(skipped_names) / len(candidates)
        if (
            duplicate_ratio > seed_config.duplicate_ratio_threshold
            and batch_written < seed_config.min_new_per_batch
            and len(summary.queries) < seed_config.max_attempts
        ):
            logger.info(f"Too many duplicates ({round(duplicate_ratio * 100)}%), asking for a new query")
            suggestion = suggest_query(
                current_query,
                known_names,
                generator,
                max_names=seed_config.known_names_in_prompt,
                skipped_names=skipped_names,
            )
            if suggestion and suggestion != current_query:
                logger.info(f"New query: '{suggestion}'")
                current_query = suggestion
                summary.retries += 1
                continue
            logger.info("No distinct query suggested, stopping")
        break

    summary.ledger_size = len(ledger)
    logger.info(
        f"Ingestion done: {summary.new} new, {summary.skipped} skipped, "
        f"{summary.failed} failed, {summary.retries} retries"
    )
    return summary
