"""
Roadmap generator with provider abstraction.

The provider only turns a prompt into raw text; parsing, validation and the
single retry live in the base class so every provider behaves the same.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod

import httpx
import structlog

from ascend.config import get_settings
from ascend.errors import UpstreamError
from ascend.roadmaps.plan import GeneratedRoadmap, fallback_title, parse_generated_roadmap
from ascend.roadmaps.prompts import RETRY_SUFFIX, RoadmapRequest, roadmap_prompt, title_prompt

logger = structlog.get_logger()

_CODE_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_CODE_FENCE_END = re.compile(r"\s*```$")
_TITLE_QUOTES = re.compile(r"^[\"'`]|[\"'`]$")
_TITLE_TRAILING_PUNCT = re.compile(r"[.!?]+$")


class GeneratorError(Exception):
    """A provider call failed or returned unusable output."""


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if the model added one."""
    text = text.strip()
    text = _CODE_FENCE_START.sub("", text)
    return _CODE_FENCE_END.sub("", text).strip()


class BaseRoadmapGenerator(ABC):
    """Abstract base class for roadmap generation providers."""

    @abstractmethod
    async def complete(self, prompt: str, *, purpose: str) -> str:
        """Send a prompt and return the model's text.

        ``purpose`` is ``"roadmap"`` or ``"title"`` so providers can pick a
        model and output budget per call.

        Raises:
            GeneratorError: On transport or provider errors.
        """
        ...

    async def _attempt(self, prompt: str) -> GeneratedRoadmap:
        text = await self.complete(prompt, purpose="roadmap")
        try:
            data = json.loads(strip_code_fences(text))
        except json.JSONDecodeError as e:
            msg = f"Generator returned invalid JSON: {e.msg}"
            raise GeneratorError(msg) from e
        try:
            return parse_generated_roadmap(data)
        except ValueError as e:
            raise GeneratorError(str(e)) from e

    async def generate(self, req: RoadmapRequest) -> GeneratedRoadmap:
        """Generate a plan: one attempt plus exactly one retry with a stricter prompt.

        Raises:
            UpstreamError: If both attempts fail.
        """
        prompt = roadmap_prompt(req)
        try:
            return await self._attempt(prompt)
        except GeneratorError as first_error:
            logger.warning("roadmap_generation_retry", error=str(first_error))

        try:
            return await self._attempt(prompt + RETRY_SUFFIX)
        except GeneratorError as retry_error:
            logger.error("roadmap_generation_failed", error=str(retry_error))
            raise UpstreamError from retry_error

    async def extract_title(self, goal: str) -> str:
        """Distill a goal into a short title; falls back to the regex title on any failure."""
        try:
            raw = await self.complete(title_prompt(goal), purpose="title")
        except GeneratorError as e:
            logger.info("title_extraction_fallback", error=str(e))
            return fallback_title(goal)

        title = _TITLE_TRAILING_PUNCT.sub("", _TITLE_QUOTES.sub("", raw.strip())).strip()
        if 2 <= len(title) <= 100:  # noqa: PLR2004
            return title
        return fallback_title(goal)


class GeminiGenerator(BaseRoadmapGenerator):
    """Generate via the Gemini ``generateContent`` REST API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        title_model: str,
        base_url: str,
        timeout: float = 120.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.title_model = title_model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def complete(self, prompt: str, *, purpose: str) -> str:
        """POST the prompt and join the text parts of the first candidate."""
        if purpose == "title":
            model, generation_config = self.title_model, {"temperature": 0.2, "maxOutputTokens": 30}
        else:
            model, generation_config = self.model, {"temperature": 0.7, "maxOutputTokens": 32768}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/models/{model}:generateContent",
                    headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
                    json={
                        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                        "generationConfig": generation_config,
                    },
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            msg = f"Gemini request failed: {e}"
            raise GeneratorError(msg) from e

        try:
            parts = payload["candidates"][0]["content"]["parts"]
            return "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError) as e:
            msg = "Gemini response had no candidate text"
            raise GeneratorError(msg) from e


def _create_generator() -> BaseRoadmapGenerator:
    """Create the generator provider based on configuration."""
    settings = get_settings()
    provider_name = settings.generator_provider.lower()

    if provider_name == "gemini":
        return GeminiGenerator(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            title_model=settings.gemini_title_model,
            base_url=settings.gemini_base_url,
            timeout=settings.generator_timeout_seconds,
        )
    msg = f"Unsupported generator provider: {provider_name}"
    raise ValueError(msg)


_generator: BaseRoadmapGenerator | None = None


def get_roadmap_generator() -> BaseRoadmapGenerator:
    """Return the process-wide generator (FastAPI dependency; override in tests)."""
    global _generator  # noqa: PLW0603
    if _generator is None:
        _generator = _create_generator()
    return _generator
