"""Pytest fixtures for CasiLocal bot tests."""

from pathlib import Path
from typing import Callable, Optional

import pytest

from casilocal.config import CasiConfig, RefineConfig, SeedConfig
from casilocal.errors import UpstreamError
from casilocal.llm.client import FakeTextGenerator
from casilocal.models.places import PlaceCandidate, PlaceReview
from casilocal.paths import SitePaths


@pytest.fixture
def temp_site(tmp_path):
    """Create a temporary site checkout with an empty spots directory.

    Args:
        tmp_path: pytest's built-in temporary directory fixture

    Returns:
        Path to temporary site root
    """
    site_root = tmp_path / "site"
    (site_root / "src" / "content" / "spots").mkdir(parents=True)
    (site_root / "bot").mkdir()
    (site_root / "astro.config.mjs").write_text("export default {};\n")
    return site_root


@pytest.fixture
def site_config(temp_site):
    """CasiConfig pointing at the temporary site, with no refine wait."""
    return CasiConfig(
        site_root=temp_site,
        seed=SeedConfig(),
        refine=RefineConfig(rate_limit_seconds=0),
    )


@pytest.fixture
def site_paths(site_config):
    return SitePaths.from_config(site_config)


class ScriptedGenerator(FakeTextGenerator):
    """FakeTextGenerator with per-prompt overrides.

    `responses` maps a prompt marker to either a string, an exception to
    raise, or a callable taking the prompt.
    """

    def __init__(self, responses: Optional[dict] = None):
        super().__init__()
        self.responses = responses or {}

    def complete(self, prompt: str, temperature: float, max_tokens: int) -> str:
        for marker, response in self.responses.items():
            if marker in prompt:
                self.calls.append(prompt)
                if isinstance(response, Exception):
                    raise response
                if callable(response):
                    return response(prompt)
                return response
        return super().complete(prompt, temperature, max_tokens)

    def calls_matching(self, marker: str) -> list[str]:
        return [c for c in self.calls if marker in c]


@pytest.fixture
def fake_generator():
    return ScriptedGenerator()


@pytest.fixture
def scripted_generator() -> Callable[..., ScriptedGenerator]:
    return ScriptedGenerator


@pytest.fixture
def upstream_error():
    return UpstreamError("Groq", 429, "rate limited")


def make_candidate(index: int, **overrides) -> PlaceCandidate:
    """A place candidate with one review and a unique URI."""
    data = dict(
        name=f"Cafe Number {index}",
        uri=f"https://maps.google.com/?cid={index}",
        address=f"Calle de Prueba {index}, Madrid",
        rating=4.4,
        price_level="PRICE_LEVEL_MODERATE",
        lat=40.42,
        long=-3.70,
        reviews=[PlaceReview(text=f"Great wifi and plugs at cafe {index}", rating=5)],
    )
    data.update(overrides)
    return PlaceCandidate(**data)


class FakePlacesClient:
    """Stand-in for PlacesClient returning scripted batches in order."""

    def __init__(self, batches: list[list[PlaceCandidate]]):
        self.batches = list(batches)
        self.queries: list[str] = []

    def search_text(self, query: str, result_count: int = 20) -> list[PlaceCandidate]:
        self.queries.append(query)
        if not self.batches:
            return []
        return self.batches.pop(0)


SAMPLE_SPOT = """---
title: "Pastora"
neighborhood: "Malasaña"
metrics:
  wifi_speed: "reliable"
  noise_level: "hum"
  plug_access: true
  coffee_price: 2.5
  casi_score: 7
  coordinates:
    lat: 40.4262
    long: -3.7035
---

## The Vibe

Generic first draft.
"""


def write_spot(paths: SitePaths, filename: str, content: str = SAMPLE_SPOT) -> Path:
    file_path = paths.spots / filename
    file_path.write_text(content, encoding="utf-8")
    return file_path
