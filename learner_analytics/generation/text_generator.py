"""
Text Generation Clients.

The engine uses a text generator for advisory content only (recommendation
prose, narrative insights). Nothing generated here ever feeds classification
or scheduling arithmetic.

- TextGenerator: protocol, ``generate(prompt) -> str`` raising GenerationError
- GeminiTextGenerator: Gemini REST ``generateContent`` endpoint
- ChatCompletionsTextGenerator: OpenAI-compatible chat endpoint (e.g. a Groq proxy)
- StaticTextGenerator: fixed reply, or always unavailable (offline mode)
- ResilientGenerator: applies the fallback policy uniformly
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeVar

import httpx
from loguru import logger

from config import Settings, get_settings
from learner_analytics.errors import GenerationError
from learner_analytics.generation.json_extract import extract_json_array

T = TypeVar("T")


class TextGenerator(Protocol):
    """Single-call text generation capability."""

    def generate(self, prompt: str) -> str:
        """Return generated text or raise GenerationError."""
        ...


class GeminiTextGenerator:
    """Client for the Gemini ``generateContent`` REST endpoint."""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key
            model: Model name used in the endpoint path
            timeout_seconds: Request timeout
            client: Optional pre-configured httpx client (tests inject a MockTransport)
        """
        if not api_key:
            raise ValueError("Gemini API key required")
        self.api_key = api_key
        self.model = model
        self.client = client or httpx.Client(timeout=httpx.Timeout(timeout_seconds))

    def generate(self, prompt: str) -> str:
        try:
            response = self.client.post(
                f"{self.BASE_URL}/{self.model}:generateContent",
                params={"key": self.api_key},
                json={"contents": [{"parts": [{"text": prompt}]}]},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GenerationError(f"Gemini request failed: {e}") from e

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError("Invalid response from Gemini: no candidate text") from e
        if not isinstance(text, str) or not text.strip():
            raise GenerationError("Empty response from Gemini")
        return text.strip()


class ChatCompletionsTextGenerator:
    """Client for an OpenAI-compatible ``chat/completions`` endpoint."""

    def __init__(
        self,
        url: str,
        model: str,
        api_key: str | None = None,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ):
        self.url = url
        self.model = model
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.client = client or httpx.Client(timeout=httpx.Timeout(timeout_seconds), headers=headers)

    def generate(self, prompt: str) -> str:
        try:
            response = self.client.post(
                self.url,
                json={"model": self.model, "messages": [{"role": "user", "content": prompt}]},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GenerationError(f"Chat completion request failed: {e}") from e

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError("Invalid chat completion response: no content") from e
        if not isinstance(text, str) or not text.strip():
            raise GenerationError("Empty chat completion response")
        return text.strip()


class StaticTextGenerator:
    """Returns a fixed reply; with no reply configured it is always unavailable."""

    def __init__(self, reply: str | None = None):
        self.reply = reply

    def generate(self, prompt: str) -> str:
        if self.reply is None:
            raise GenerationError("Text generation is disabled")
        return self.reply


def build_text_generator(settings: Settings | None = None) -> TextGenerator | None:
    """
    Build the configured text generator.

    Returns None when the provider is not configured (e.g. Gemini without an
    API key); callers then always use their fallbacks.
    """
    settings = settings or get_settings()
    if settings.generation_provider == "gemini":
        if not settings.gemini_api_key:
            logger.info("Gemini API key not set; generated content will use fallbacks")
            return None
        return GeminiTextGenerator(
            api_key=settings.gemini_api_key,
            model=settings.ai_model,
            timeout_seconds=settings.generation_timeout_seconds,
        )
    if settings.generation_provider == "chat":
        return ChatCompletionsTextGenerator(
            url=settings.chat_completions_url,
            model=settings.chat_model,
            api_key=settings.chat_api_key,
            timeout_seconds=settings.generation_timeout_seconds,
        )
    return StaticTextGenerator(settings.static_generation_reply)


class ResilientGenerator:
    """
    Best-effort wrapper around a TextGenerator.

    Any failure (transport, empty reply, unparseable JSON) is logged and
    replaced by the caller's fallback. Nothing raised by the wrapped
    generator escapes.
    """

    def __init__(self, generator: TextGenerator | None):
        self.generator = generator

    def _generate(self, prompt: str, purpose: str) -> str | None:
        if self.generator is None:
            logger.debug(f"No text generator configured for {purpose}; using fallback")
            return None
        try:
            return self.generator.generate(prompt)
        except Exception as e:  # Intentionally broad - generation is advisory and must never block
            logger.warning(f"Text generation failed for {purpose}: {e}")
            return None

    def text_or(self, prompt: str, fallback: str, *, purpose: str = "text") -> str:
        """Generated text, or ``fallback`` on any failure."""
        text = self._generate(prompt, purpose)
        return text if text else fallback

    def json_list_or(
        self,
        prompt: str,
        fallback: list[T],
        *,
        purpose: str = "json list",
        coerce: Callable[[Any], T | None] | None = None,
    ) -> list[T]:
        """
        Parse a JSON array from the generated text, or return ``fallback``.

        Args:
            prompt: Prompt sent to the generator
            fallback: Returned when generation or parsing fails, or nothing survives ``coerce``
            purpose: Label used in log messages
            coerce: Maps each parsed item to a value, or None to drop it
        """
        text = self._generate(prompt, purpose)
        if text is None:
            return fallback
        try:
            items = extract_json_array(text)
        except ValueError as e:
            logger.warning(f"Could not parse JSON array for {purpose}: {e}. Preview: {text[:200]!r}")
            return fallback

        if coerce is not None:
            items = [value for value in (coerce(item) for item in items) if value is not None]
        if not items:
            logger.warning(f"No usable items in generated {purpose}; using fallback")
            return fallback
        return items
