"""Refinement pipeline: rewrite spot reviews in a local voice.

Files are processed one at a time with a fixed wait between them. Each
successful rewrite is recorded in the refinement ledger and the ledger is
saved immediately, so an interrupted run resumes where it stopped.
"""

from __future__ import annotations

import logging
import random
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from .authors import pick_author
from .config import RefineConfig
from .errors import FormatError, UpstreamError
from .ledger import LedgerStore
from .llm.client import TextGenerator
from .llm.prompts import rewrite_prompt
from .mdx import build_mdx, parse_mdx, read_mdx_text
from .models.ledger import RefinedSpot
from .models.results import ItemResult, ItemStatus, RefineSummary
from .paths import SitePaths

logger = logging.getLogger(__name__)

DEFAULT_NEIGHBORHOOD = "Madrid"
FALLBACK_HEADING = "## The Vibe"


def resolve_single_file(paths: SitePaths, filename: str) -> Path:
    """Locate an explicitly named spot file, adding `.mdx` when missing.

    Raises:
        FileNotFoundError: If the file is not in the spots directory
    """
    name = filename if filename.endswith(".mdx") else f"{filename}.mdx"
    file_path = paths.spots / name
    if not file_path.is_file():
        raise FileNotFoundError(f"File not found: {name} (looked in {paths.spots})")
    return file_path


def select_files(
    paths: SitePaths,
    ledger: LedgerStore[RefinedSpot],
    refine_config: Optional[RefineConfig] = None,
) -> tuple[list[Path], int]:
    """Spot files still needing a rewrite, sorted by name.

    Returns:
        (files to refine, number of files already in the ledger)
    """
    refine_config = refine_config or RefineConfig()
    excluded = set(refine_config.excluded_files)
    candidates = [p for p in paths.list_spot_files() if p.name not in excluded]
    pending = [p for p in candidates if not ledger.contains(p.name)]
    return pending, len(candidates) - len(pending)


def normalize_rewrite(text: str) -> str:
    """Ensure a rewrite opens with a heading.

    Raises:
        FormatError: If the completion is empty
    """
    body = (text or "").strip()
    if not body:
        raise FormatError("empty rewrite returned")
    if not body.startswith("##"):
        body = f"{FALLBACK_HEADING}\n\n{body}"
    return body


def refine_file(
    file_path: Path,
    generator: TextGenerator,
    rng: Optional[random.Random] = None,
) -> ItemResult:
    """Rewrite one spot file in place.

    Raises:
        FormatError: If the file is not UTF-8, has no frontmatter, or the rewrite is empty
        UpstreamError: If the generation call fails
        OSError: If the file cannot be read or written
    """
    doc = parse_mdx(read_mdx_text(file_path))

    title = doc.frontmatter.get("title")
    spot_name = str(title) if title else file_path.stem
    neighborhood_value = doc.frontmatter.get("neighborhood")
    neighborhood = str(neighborhood_value) if neighborhood_value else DEFAULT_NEIGHBORHOOD

    author = pick_author(rng)
    logger.info(f"{spot_name} in {neighborhood}, author {author}")

    completion = generator.complete(
        rewrite_prompt(spot_name, neighborhood, doc.body),
        temperature=0.85,
        max_tokens=1500,
    )
    body = normalize_rewrite(completion)

    file_path.write_text(build_mdx(doc.frontmatter, body, author=author), encoding="utf-8")
    return ItemResult(
        key=file_path.name,
        name=spot_name,
        status=ItemStatus.WRITTEN,
        slug=file_path.stem,
        path=file_path,
        author=author,
    )


def run_refinement(
    *,
    paths: SitePaths,
    generator: TextGenerator,
    ledger: LedgerStore[RefinedSpot],
    refine_config: Optional[RefineConfig] = None,
    filename: Optional[str] = None,
    limit: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
    rng: Optional[random.Random] = None,
    on_item: Optional[Callable[[ItemResult], None]] = None,
) -> RefineSummary:
    """Rewrite pending spot files, waiting between files.

    Args:
        paths: Site paths
        generator: Text generator
        ledger: Loaded refinement ledger (ignored in single-file mode)
        refine_config: Wait interval and excluded filenames
        filename: Single target file; bypasses the ledger entirely
        limit: Refine at most this many files
        sleep: Wait function, called with seconds between files
        rng: Random source for author selection
        on_item: Called with each ItemResult as it is produced

    Raises:
        FileNotFoundError: If `filename` does not exist
    """
    refine_config = refine_config or RefineConfig()
    summary = RefineSummary()
    single_file = filename is not None

    if single_file:
        files = [resolve_single_file(paths, filename)]
        logger.info(f"Single file mode: {files[0].name}")
    else:
        files, summary.already_done = select_files(paths, ledger, refine_config)
        logger.info(f"{len(files)} file(s) need refining, {summary.already_done} already done")

    if limit is not None:
        files = files[: max(limit, 0)]
    summary.selected = len(files)

    for index, file_path in enumerate(files):
        if index > 0 and refine_config.rate_limit_seconds > 0:
            logger.info(f"Waiting {refine_config.rate_limit_seconds:g}s before next file")
            sleep(refine_config.rate_limit_seconds)

        logger.info(f"[{index + 1}/{len(files)}] Refining {file_path.name}")
        try:
            result = refine_file(file_path, generator, rng=rng)
        except (FormatError, UpstreamError, OSError) as e:
            logger.error(f"Error processing {file_path.name}: {e}")
            result = ItemResult(
                key=file_path.name,
                name=file_path.stem,
                status=ItemStatus.FAILED,
                path=file_path,
                reason=str(e),
            )
            summary.failed += 1
        else:
            summary.refined += 1
            if not single_file:
                ledger.append(
                    RefinedSpot(
                        filename=file_path.name,
                        spot_name=result.name,
                        refined_at=datetime.now(timezone.utc),
                    )
                )
                ledger.save()

        summary.items.append(result)
        if on_item:
            on_item(result)

    logger.info(f"Refinement done: {summary.refined} refined, {summary.failed} failed")
    return summary
