"""Text-generation clients and prompt handling for the CasiLocal bot."""

from .client import (
    FakeTextGenerator,
    GroqTextGenerator,
    TextGenerator,
    get_text_generator,
)
from .parsing import first_line, parse_json_object, strip_code_fences

__all__ = [
    # Clients
    "TextGenerator",
    "GroqTextGenerator",
    "FakeTextGenerator",
    "get_text_generator",
    # Parsing
    "first_line",
    "parse_json_object",
    "strip_code_fences",
]
