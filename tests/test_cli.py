"""Tests for the casilocal CLI."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from casilocal import __version__
from casilocal.cli import app

from conftest import SAMPLE_SPOT, FakePlacesClient, make_candidate, write_spot

runner = CliRunner()


@pytest.fixture
def clean_env(monkeypatch):
    for key in [
        "GOOGLE_PLACES_API_KEY",
        "GROQ_API_KEY",
        "CASILOCAL_SITE",
        "CASILOCAL_MODEL",
        "CASILOCAL_REFINE_DELAY_SECONDS",
        "CASILOCAL_SEED_MAX_ATTEMPTS",
        "CASILOCAL_LANGUAGE_CODE",
        "CASILOCAL_DEFAULT_QUERY",
    ]:
        monkeypatch.delenv(key, raising=False)


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_seed_without_places_key_exits_1(temp_site, clean_env):
    result = runner.invoke(app, ["seed", "--site", str(temp_site), "--engine", "fake"])

    assert result.exit_code == 1
    assert "GOOGLE_PLACES_API_KEY" in result.output


def test_seed_without_groq_key_exits_1(temp_site, clean_env, monkeypatch):
    monkeypatch.setenv("GOOGLE_PLACES_API_KEY", "test-key")

    result = runner.invoke(app, ["seed", "--site", str(temp_site)])

    assert result.exit_code == 1
    assert "GROQ_API_KEY" in result.output


def test_seed_writes_spots(temp_site, clean_env):
    places = FakePlacesClient([[make_candidate(1), make_candidate(2)]])

    with patch("casilocal.cli.PlacesClient", lambda **kwargs: places):
        result = runner.invoke(app, ["seed", "quiet cafes", "--site", str(temp_site), "--engine", "fake"])

    assert result.exit_code == 0, result.output
    assert places.queries == ["quiet cafes"]
    assert len(list((temp_site / "src" / "content" / "spots").glob("*.mdx"))) == 2
    ledger = json.loads((temp_site / "bot" / "processed-spots.json").read_text(encoding="utf-8"))
    assert len(ledger) == 2
    assert "Added 2 new" in result.output


def test_seed_uses_default_query(temp_site, clean_env):
    places = FakePlacesClient([[]])

    with patch("casilocal.cli.PlacesClient", lambda **kwargs: places):
        result = runner.invoke(app, ["seed", "--site", str(temp_site), "--engine", "fake"])

    assert result.exit_code == 0, result.output
    assert places.queries == ["Laptop friendly specialty coffee madrid"]


def test_seed_dry_run_writes_nothing(temp_site, clean_env):
    places = FakePlacesClient([[make_candidate(1)]])

    with patch("casilocal.cli.PlacesClient", lambda **kwargs: places):
        result = runner.invoke(app, ["seed", "--site", str(temp_site), "--dry-run"])

    assert result.exit_code == 0, result.output
    assert not (temp_site / "bot" / "processed-spots.json").exists()
    assert "Would enrich 1" in result.output


def test_unknown_site_exits_1(tmp_path, clean_env):
    result = runner.invoke(app, ["check", "--site", str(tmp_path / "missing")])
    assert result.exit_code == 1


def test_refine_missing_file_exits_1(temp_site, clean_env):
    result = runner.invoke(app, ["refine", "nope", "--site", str(temp_site), "--engine", "fake"])

    assert result.exit_code == 1
    assert "nope.mdx" in result.output


def test_refine_batch(temp_site, clean_env):
    spots = temp_site / "src" / "content" / "spots"
    (spots / "a.mdx").write_text(SAMPLE_SPOT, encoding="utf-8")
    (spots / "b.mdx").write_text(SAMPLE_SPOT, encoding="utf-8")

    result = runner.invoke(
        app, ["refine", "--site", str(temp_site), "--engine", "fake", "--delay", "0"]
    )

    assert result.exit_code == 0, result.output
    refined = json.loads((temp_site / "bot" / "refined-spots.json").read_text(encoding="utf-8"))
    assert [entry["filename"] for entry in refined] == ["a.mdx", "b.mdx"]
    assert set(refined[0]) == {"filename", "spotName", "refinedAt"}

    again = runner.invoke(app, ["refine", "--site", str(temp_site), "--engine", "fake", "--delay", "0"])
    assert again.exit_code == 0
    assert "All files already refined" in again.output


def test_check_valid_and_invalid(temp_site, clean_env, site_paths):
    write_spot(site_paths, "malasana-pastora.mdx")

    ok = runner.invoke(app, ["check", "--site", str(temp_site)])
    assert ok.exit_code == 0, ok.output
    assert "valid" in ok.output

    write_spot(site_paths, "broken.mdx", SAMPLE_SPOT.replace("casi_score: 7", "casi_score: 42"))
    bad = runner.invoke(app, ["check", "--site", str(temp_site)])
    assert bad.exit_code == 1
    assert "broken.mdx" in bad.output


def test_ledger_show(temp_site, clean_env):
    (temp_site / "bot" / "refined-spots.json").write_text(
        json.dumps([{"filename": "a.mdx", "spotName": "Pastora", "refinedAt": "2025-11-02T09:30:00Z"}]),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["ledger", "show", "refined", "--site", str(temp_site)])
    assert result.exit_code == 0, result.output
    assert "a.mdx" in result.output

    empty = runner.invoke(app, ["ledger", "show", "processed", "--site", str(temp_site)])
    assert empty.exit_code == 0
    assert "No entries" in empty.output

    unknown = runner.invoke(app, ["ledger", "show", "everything", "--site", str(temp_site)])
    assert unknown.exit_code == 1


def test_ledger_show_limits_to_last_n(temp_site, clean_env):
    (temp_site / "bot" / "refined-spots.json").write_text(
        json.dumps(
            [
                {"filename": "first.mdx", "spotName": "Pastora", "refinedAt": "2025-11-02T09:30:00Z"},
                {"filename": "second.mdx", "spotName": "Hola", "refinedAt": "2025-11-03T09:30:00Z"},
            ]
        ),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["ledger", "show", "refined", "--n", "1", "--site", str(temp_site)])
    assert result.exit_code == 0, result.output
    assert "second.mdx" in result.output
    assert "first.mdx" not in result.output

    zero = runner.invoke(app, ["ledger", "show", "refined", "--n", "0", "--site", str(temp_site)])
    assert zero.exit_code == 2
    assert "first.mdx" not in zero.output


def test_check_reports_non_utf8_file(temp_site, clean_env, site_paths):
    write_spot(site_paths, "malasana-pastora.mdx")
    (site_paths.spots / "latin1.mdx").write_bytes('---\ntitle: "Caf\xe9"\n---\n\nBody.\n'.encode("latin-1"))

    result = runner.invoke(app, ["check", "--site", str(temp_site)])

    assert result.exit_code == 1
    assert "latin1.mdx" in result.output
