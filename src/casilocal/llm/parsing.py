"""Parsing helpers for untrusted completion text."""

import json
import re

from ..errors import ParseError

_QUOTE_CHARS = "\"“”`"


def strip_code_fences(text: str) -> str:
    """Remove ```json fences wrapping a completion."""
    text = text.strip()
    text = re.sub(r"^```(?:json)?\s*", "", text)
    text = re.sub(r"\s*```$", "", text)
    return text.strip()


def extract_json_object(text: str) -> str | None:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return text[start : end + 1]


def _normalize_json_like(text: str) -> str:
    normalized = text.replace("“", "\"").replace("”", "\"")
    normalized = re.sub(r",\s*([}\]])", r"\1", normalized)
    return normalized


def parse_json_object(raw_text: str) -> dict:
    """Parse a completion that should be a single JSON object.

    Tries the text as-is, without code fences, the outermost {...} span and
    a lightly normalized variant (smart quotes, trailing commas).

    Raises:
        ParseError: If no candidate parses to a JSON object
    """
    cleaned = (raw_text or "").strip().lstrip("﻿")
    if not cleaned:
        raise ParseError("empty completion")

    candidates = [cleaned, strip_code_fences(cleaned)]
    extracted = extract_json_object(candidates[-1])
    if extracted:
        candidates.append(extracted)
        candidates.append(_normalize_json_like(extracted))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    preview = cleaned.replace("\n", " ")[:200]
    raise ParseError(f"completion is not a JSON object: {preview}")


def first_line(raw_text: str) -> str:
    """Reduce a single-field completion to one clean line.

    Strips double quotes and everything after the first newline.
    """
    text = (raw_text or "").strip()
    for ch in _QUOTE_CHARS:
        text = text.replace(ch, "")
    return text.split("\n")[0].strip()
