"""Text-generation clients used for enrichment and review rewriting.

Every call is billed and rate-limited by the provider, so clients never
retry on their own. Callers decide what a failure means.
"""

import hashlib
import logging
import os
import re
from abc import ABC, abstractmethod

import groq

from ..config import DEFAULT_MODEL
from ..errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


class TextGenerator(ABC):
    """Abstract interface for single-prompt text completion."""

    @abstractmethod
    def complete(self, prompt: str, temperature: float, max_tokens: int) -> str:
        """Send one user-role prompt and return the completion text.

        Raises:
            UpstreamError: If the provider call fails
        """
        pass

    @property
    @abstractmethod
    def engine_name(self) -> str:
        """Return engine identifier (e.g., 'fake', 'groq')."""
        pass

    @property
    def provider_model(self) -> str | None:
        """Return provider/model string for real clients, None for fake."""
        return None


class GroqTextGenerator(TextGenerator):
    """Groq chat-completions client.

    Requires GROQ_API_KEY in the environment (or passed explicitly).
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        timeout_seconds: float = 60.0,
    ):
        self.api_key = api_key or os.environ.get("GROQ_API_KEY")
        if not self.api_key:
            raise ConfigurationError("GROQ_API_KEY not set. Export it or add it to .env.")
        self.model = model
        # max_retries=0: the SDK would otherwise retry 429/5xx silently
        self._client = groq.Groq(api_key=self.api_key, timeout=timeout_seconds, max_retries=0)

    @property
    def engine_name(self) -> str:
        return "groq"

    @property
    def provider_model(self) -> str:
        return f"groq/{self.model}"

    def complete(self, prompt: str, temperature: float, max_tokens: int) -> str:
        try:
            completion = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except groq.APIStatusError as e:
            raise UpstreamError("Groq", e.status_code, str(e.message)) from e
        except groq.APIError as e:
            raise UpstreamError("Groq", None, str(e)) from e

        if not completion.choices:
            return ""
        return (completion.choices[0].message.content or "").strip()


class FakeTextGenerator(TextGenerator):
    """Deterministic fake generator for offline runs and testing.

    Recognises the bot's prompt templates by their instructions and returns
    well-formed output for each. Same prompt always yields the same text.
    """

    def __init__(self):
        self.calls: list[str] = []

    @property
    def engine_name(self) -> str:
        return "fake"

    def complete(self, prompt: str, temperature: float, max_tokens: int) -> str:
        self.calls.append(prompt)
        digest = hashlib.md5(prompt.encode("utf-8")).hexdigest()

        if "identify the neighborhood" in prompt:
            return "Centro"

        if "Clean up this cafe name" in prompt:
            match = re.search(r'Raw name: "([^"]*)"', prompt)
            raw = match.group(1) if match else "Cafe"
            return raw.split("|")[0].strip().title()

        if "Suggest ONE new Google Maps search query" in prompt:
            return f"laptop friendly cafes madrid {digest[:6]}"

        if "Respond ONLY with valid JSON" in prompt:
            score = 5 + int(digest[:2], 16) % 5
            return (
                '{"wifi_speed": "reliable", "noise_level": "hum", "plug_access": true, '
                f'"casi_score": {score}, '
                '"review": "## The Vibe\\n\\nSteady and workable.\\n\\n## The Verdict\\n\\nGood for a morning."}'
            )

        return (
            "## First Impressions\n\nA corner cafe with a steady crowd.\n\n"
            "## The Setup\n\nPlugs along the back wall.\n\n"
            "## The Coffee\n\nA reliable cortado.\n\n"
            "## The Verdict\n\nWorth a morning."
        )


def get_text_generator(
    engine: str = "auto",
    model: str = DEFAULT_MODEL,
    timeout_seconds: float = 60.0,
) -> TextGenerator:
    """Get a text generator for the engine setting.

    Args:
        engine: 'groq', 'fake', or 'auto'
                'auto' uses Groq if GROQ_API_KEY is set, else fake

    Raises:
        ConfigurationError: If engine is 'groq' and GROQ_API_KEY is missing
        ValueError: If engine is unknown
    """
    if engine == "fake":
        return FakeTextGenerator()

    if engine == "groq":
        return GroqTextGenerator(model=model, timeout_seconds=timeout_seconds)

    if engine == "auto":
        if os.environ.get("GROQ_API_KEY"):
            return GroqTextGenerator(model=model, timeout_seconds=timeout_seconds)
        logger.warning("GROQ_API_KEY not set, using fake text generator")
        return FakeTextGenerator()

    raise ValueError(f"Unsupported engine: {engine}")
