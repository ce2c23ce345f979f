"""Turn raw place data and completions into Venue Records.

slugify, price_tier_to_amount, fallback_synthesis and build_venue_record are
pure. The generation helpers each make exactly one call and absorb every
failure into a documented default.
"""

from __future__ import annotations

import logging
import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Any

from .errors import ParseError, UpstreamError
from .llm.client import TextGenerator
from .llm.parsing import first_line, parse_json_object
from .llm.prompts import (
    clean_name_prompt,
    neighborhood_prompt,
    suggest_query_prompt,
    synthesis_prompt,
)
from .models.places import PlaceCandidate
from .models.venue import (
    MADRID_CENTER,
    Coordinates,
    NoiseLevel,
    VenueMetrics,
    VenueRecord,
    WifiSpeed,
)

logger = logging.getLogger(__name__)

DEFAULT_NEIGHBORHOOD = "Centro"
DEFAULT_PRICE = 2.5
DEFAULT_SCORE_RATING = 7

PRICE_TIER_AMOUNTS = {
    "PRICE_LEVEL_FREE": 0.0,
    "PRICE_LEVEL_INEXPENSIVE": 1.8,
    "PRICE_LEVEL_MODERATE": 2.5,
    "PRICE_LEVEL_EXPENSIVE": 3.5,
    "PRICE_LEVEL_VERY_EXPENSIVE": 4.5,
}

SYNTHESIS_FIELDS = ("wifi_speed", "noise_level", "plug_access", "casi_score", "review")


def slugify(text: str) -> str:
    """Filesystem-safe slug: lowercase ascii words joined by single hyphens."""
    text = unicodedata.normalize("NFD", (text or "").lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def venue_slug(neighborhood: str, title: str) -> str:
    parts = [slugify(neighborhood), slugify(title)]
    return "-".join(p for p in parts if p) or "spot"


def price_tier_to_amount(tier: str | None) -> float:
    """Representative coffee price in euros for a Places price tier.

    Accepts the API labels (PRICE_LEVEL_MODERATE) and short forms
    (moderate, very-expensive). Anything else maps to 2.5.
    """
    if not tier:
        return DEFAULT_PRICE
    key = tier.strip().upper().replace("-", "_").replace(" ", "_")
    if not key.startswith("PRICE_LEVEL_"):
        key = f"PRICE_LEVEL_{key}"
    return PRICE_TIER_AMOUNTS.get(key, DEFAULT_PRICE)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_score(value: int) -> int:
    return max(1, min(10, value))


@dataclass
class Synthesis:
    """Qualitative metrics and review text for one candidate."""

    wifi_speed: WifiSpeed
    noise_level: NoiseLevel
    plug_access: bool
    casi_score: int
    review: str
    source: str = "generated"  # generated | fallback
    reason: str | None = None


def fallback_synthesis(place_name: str, rating: float | None, reason: str | None = None) -> Synthesis:
    """Deterministic template used when generation is skipped or fails."""
    score = _clamp_score(_round_half_up(rating if rating else DEFAULT_SCORE_RATING))
    review = (
        "## The Vibe\n\n"
        f"{place_name} is a Madrid cafe that does the basics right. Expect decent coffee, "
        "reasonable seating, and the kind of atmosphere that won't distract you from your work.\n\n"
        "## The Verdict\n\n"
        "A solid choice for the discerning remote worker. Not flashy, but functional."
    )
    return Synthesis(
        wifi_speed=WifiSpeed.RELIABLE,
        noise_level=NoiseLevel.HUM,
        plug_access=True,
        casi_score=score,
        review=review,
        source="fallback",
        reason=reason,
    )


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ParseError(f"plug_access is not a boolean: {value!r}")


def _coerce_score(value: Any) -> int:
    if isinstance(value, bool):
        raise ParseError(f"casi_score is not a number: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ParseError(f"casi_score is not a number: {value!r}") from e
    if math.isnan(number):
        raise ParseError("casi_score is NaN")
    return _clamp_score(_round_half_up(number))


def parse_synthesis(raw_text: str) -> Synthesis:
    """Validate a synthesis completion.

    Raises:
        ParseError: If the completion is not a JSON object with the five
            fields in their allowed ranges
    """
    data = parse_json_object(raw_text)
    missing = [f for f in SYNTHESIS_FIELDS if f not in data]
    if missing:
        raise ParseError(f"missing field(s): {', '.join(missing)}")

    try:
        wifi = WifiSpeed(str(data["wifi_speed"]).strip().lower())
        noise = NoiseLevel(str(data["noise_level"]).strip().lower())
    except ValueError as e:
        raise ParseError(str(e)) from e

    review = data["review"]
    if not isinstance(review, str) or not review.strip():
        raise ParseError("review is empty")

    return Synthesis(
        wifi_speed=wifi,
        noise_level=noise,
        plug_access=_coerce_bool(data["plug_access"]),
        casi_score=_coerce_score(data["casi_score"]),
        review=review.strip(),
    )


def synthesize(place_name: str, candidate: PlaceCandidate, generator: TextGenerator) -> Synthesis:
    """Derive metrics and a short review from the candidate's review excerpts."""
    review_texts = candidate.review_texts(limit=5)
    if not review_texts:
        return fallback_synthesis(place_name, candidate.rating, reason="no_reviews")

    prompt = synthesis_prompt(place_name, candidate.rating, review_texts)
    try:
        raw = generator.complete(prompt, temperature=0.7, max_tokens=1024)
        return parse_synthesis(raw)
    except UpstreamError as e:
        logger.warning(f"Synthesis call failed for {place_name}, using defaults: {e}")
        return fallback_synthesis(place_name, candidate.rating, reason=f"upstream: {e}")
    except ParseError as e:
        logger.warning(f"Failed to parse synthesis for {place_name}, using defaults: {e}")
        return fallback_synthesis(place_name, candidate.rating, reason=f"parse: {e}")


def clean_name(raw_name: str, generator: TextGenerator) -> str:
    """Strip generic descriptors from a listing name; raw name on failure."""
    try:
        cleaned = first_line(generator.complete(clean_name_prompt(raw_name), temperature=0.2, max_tokens=50))
    except UpstreamError as e:
        logger.warning(f"Name cleanup failed for {raw_name}: {e}")
        return raw_name
    return cleaned or raw_name


def infer_neighborhood(
    place_name: str,
    address: str,
    generator: TextGenerator,
    default: str = DEFAULT_NEIGHBORHOOD,
) -> str:
    """Ask for the barrio of an address; `default` on failure."""
    try:
        raw = generator.complete(neighborhood_prompt(place_name, address), temperature=0.3, max_tokens=50)
    except UpstreamError as e:
        logger.warning(f"Neighborhood inference failed for {place_name}: {e}")
        return default
    return first_line(raw) or default


def suggest_query(
    current_query: str,
    known_names: list[str],
    generator: TextGenerator,
    max_names: int = 15,
    skipped_names: list[str] | None = None,
) -> str | None:
    """One alternative discovery query, or None if nothing usable came back.

    The first `max_names` known names are listed, followed by every name
    skipped in the current batch.
    """
    names = known_names[:max_names]
    names += [name for name in skipped_names or [] if name not in names]
    prompt = suggest_query_prompt(current_query, names)
    try:
        raw = generator.complete(prompt, temperature=0.8, max_tokens=50)
    except UpstreamError as e:
        logger.warning(f"Query suggestion failed: {e}")
        return None
    return first_line(raw) or None


def build_venue_record(
    candidate: PlaceCandidate,
    synthesis: Synthesis,
    neighborhood: str,
    title: str | None,
    author: str,
) -> VenueRecord:
    """Assemble the Venue Record for a candidate (slug, price, coordinates)."""
    title = title or candidate.name or "Unknown Cafe"
    lat = candidate.lat if candidate.lat is not None else MADRID_CENTER[0]
    long = candidate.long if candidate.long is not None else MADRID_CENTER[1]

    return VenueRecord(
        slug=venue_slug(neighborhood, title),
        title=title,
        author=author,
        neighborhood=neighborhood,
        metrics=VenueMetrics(
            wifi_speed=synthesis.wifi_speed,
            noise_level=synthesis.noise_level,
            plug_access=synthesis.plug_access,
            coffee_price=price_tier_to_amount(candidate.price_level),
            casi_score=synthesis.casi_score,
            coordinates=Coordinates(lat=lat, long=long),
        ),
        body=synthesis.review,
    )
