"""Tests for text-generation clients and completion parsing."""

from unittest.mock import Mock, patch

import groq
import httpx
import pytest

from casilocal.errors import ConfigurationError, ParseError, UpstreamError
from casilocal.llm.client import (
    FakeTextGenerator,
    GroqTextGenerator,
    get_text_generator,
)
from casilocal.llm.parsing import first_line, parse_json_object, strip_code_fences
from casilocal.llm.prompts import clean_name_prompt, rewrite_prompt


def _completion(content):
    completion = Mock()
    if content is None:
        completion.choices = []
    else:
        choice = Mock()
        choice.message.content = content
        completion.choices = [choice]
    return completion


def test_groq_generator_requires_api_key():
    with patch.dict("os.environ", {}, clear=True):
        with pytest.raises(ConfigurationError, match="GROQ_API_KEY"):
            GroqTextGenerator()


def test_groq_generator_sends_single_user_message():
    generator = GroqTextGenerator(api_key="test-key", model="llama-3.3-70b-versatile")
    generator._client = Mock()
    generator._client.chat.completions.create.return_value = _completion("  Malasaña \n")

    assert generator.complete("prompt text", temperature=0.3, max_tokens=50) == "Malasaña"

    kwargs = generator._client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "llama-3.3-70b-versatile"
    assert kwargs["messages"] == [{"role": "user", "content": "prompt text"}]
    assert kwargs["temperature"] == 0.3
    assert kwargs["max_tokens"] == 50
    assert generator.provider_model == "groq/llama-3.3-70b-versatile"


def test_groq_generator_empty_choices_is_empty_string():
    generator = GroqTextGenerator(api_key="test-key")
    generator._client = Mock()
    generator._client.chat.completions.create.return_value = _completion(None)

    assert generator.complete("p", temperature=0.5, max_tokens=10) == ""


def test_groq_generator_maps_status_errors():
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    response = httpx.Response(429, request=request, json={"error": {"message": "rate limited"}})
    error = groq.RateLimitError("rate limited", response=response, body=None)

    generator = GroqTextGenerator(api_key="test-key")
    generator._client = Mock()
    generator._client.chat.completions.create.side_effect = error

    with pytest.raises(UpstreamError) as exc_info:
        generator.complete("p", temperature=0.5, max_tokens=10)

    assert exc_info.value.service == "Groq"
    assert exc_info.value.status_code == 429


def test_groq_generator_maps_connection_errors():
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    generator = GroqTextGenerator(api_key="test-key")
    generator._client = Mock()
    generator._client.chat.completions.create.side_effect = groq.APIConnectionError(request=request)

    with pytest.raises(UpstreamError) as exc_info:
        generator.complete("p", temperature=0.5, max_tokens=10)

    assert exc_info.value.status_code is None


def test_get_text_generator_engines():
    with patch.dict("os.environ", {}, clear=True):
        assert isinstance(get_text_generator("fake"), FakeTextGenerator)
        assert isinstance(get_text_generator("auto"), FakeTextGenerator)
        with pytest.raises(ConfigurationError):
            get_text_generator("groq")
    with pytest.raises(ValueError, match="Unsupported engine"):
        get_text_generator("openai")


def test_fake_generator_is_deterministic():
    generator = FakeTextGenerator()
    prompt = rewrite_prompt("Pastora", "Malasaña", "Old review")

    first = generator.complete(prompt, temperature=0.85, max_tokens=1500)

    assert first == generator.complete(prompt, temperature=0.85, max_tokens=1500)
    assert first.startswith("## First Impressions")
    assert len(generator.calls) == 2


def test_fake_generator_cleans_names():
    generator = FakeTextGenerator()
    assert generator.complete(clean_name_prompt("ambu coffee | Specialty"), 0.2, 50) == "Ambu Coffee"


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


def test_parse_json_object_recovers_wrapped_json():
    raw = 'Here you go:\n{"casi_score": 7, "review": "ok",}\nHope that helps!'
    assert parse_json_object(raw) == {"casi_score": 7, "review": "ok"}


@pytest.mark.parametrize("raw", ["", "   ", "[1, 2, 3]", "no braces here"])
def test_parse_json_object_rejects_non_objects(raw):
    with pytest.raises(ParseError):
        parse_json_object(raw)


def test_first_line():
    assert first_line('"Chamberí"\nIt is north of Malasaña.') == "Chamberí"
    assert first_line("“Tribunal”") == "Tribunal"
    assert first_line("") == ""
