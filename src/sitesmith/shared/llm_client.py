"""Async OpenAI wrapper for the text completion and image generation services.

One ``LLMClient`` may be shared by concurrent jobs: it owns one semaphore
per external service, and that is the only state jobs share.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
import re
from dataclasses import dataclass
from typing import Any, Callable

from openai import AsyncOpenAI, APIConnectionError, APITimeoutError, RateLimitError

from sitesmith.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)

MODEL = "gpt-4o"
IMAGE_MODEL = "gpt-image-1"
MAX_TOKENS = 8_192

# Retry settings for rate-limit (429) and transient connection errors.
# Stage timeouts bound the total wait, so keep this short.
_MAX_RETRIES = 4
_BASE_DELAY = 2  # seconds, floor for exponential backoff

# Sizes the image endpoint accepts.
_LANDSCAPE = "1536x1024"
_PORTRAIT = "1024x1536"
_SQUARE = "1024x1024"

TokensCallback = Callable[[int, int], None]
"""Called with (input_tokens, output_tokens) when a completion finishes."""


def _parse_retry_after(exc: RateLimitError) -> float | None:
    """Extract the suggested retry delay from a rate limit error.

    Checks the ``Retry-After`` header first, then the "Please try again in
    Xs / Xms" text of the message. Returns seconds, or None if absent.
    """
    try:
        headers = exc.response.headers  # type: ignore[union-attr]
        if retry_after := headers.get("retry-after"):
            return float(retry_after)
    except (AttributeError, TypeError, ValueError):
        pass

    m = re.search(r"try again in (\d+(?:\.\d+)?)\s*(ms|s)\b", str(exc), re.IGNORECASE)
    if m:
        value = float(m.group(1))
        return value / 1000 if m.group(2).lower() == "ms" else value

    return None


def image_size_for(width: int, height: int) -> str:
    """Closest supported size for the requested aspect ratio."""
    ratio = width / max(height, 1)
    if ratio >= 1.2:
        return _LANDSCAPE
    if ratio <= 0.83:
        return _PORTRAIT
    return _SQUARE


@dataclass
class ImageResult:
    """What the image service returned: a URL, base64 data, or both."""

    url: str = ""
    b64_json: str = ""

    @property
    def empty(self) -> bool:
        return not (self.url or self.b64_json)


class LLMClient:
    """Thin async wrapper around the OpenAI SDK.

    - ``simple_completion``: one chat request, JSON mode by default.
    - ``generate_image``: one image request for a prompt and dimensions.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        text_model: str = MODEL,
        image_model: str = IMAGE_MODEL,
        max_concurrent_completions: int = 4,
        max_concurrent_images: int = 3,
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key)
        self.text_model = text_model
        self.image_model = image_model
        self._completion_slots = asyncio.Semaphore(max_concurrent_completions)
        self._image_slots = asyncio.Semaphore(max_concurrent_images)

    async def _with_retry(self, call: Callable[..., Any], **kwargs: Any) -> Any:
        """Invoke an SDK coroutine with exponential backoff on transient errors.

        Waits at least as long as the suggested retry-after time, uses
        exponential backoff as a floor, and adds ±25% jitter so parallel
        image requests don't retry in lockstep.
        """
        for attempt in range(_MAX_RETRIES):
            try:
                return await call(**kwargs)
            except RateLimitError as exc:
                msg = str(exc).lower()
                # The payload itself is too big; retrying won't help.
                if "request too large" in msg or "context_length_exceeded" in msg:
                    logger.error("Request exceeds token limit (not retryable): %s", exc)
                    raise
                if attempt == _MAX_RETRIES - 1:
                    raise

                backoff = _BASE_DELAY * (2 ** attempt)
                suggested = _parse_retry_after(exc)
                base_delay = max(suggested or 0.0, backoff)
                jitter = random.uniform(-0.25 * base_delay, 0.25 * base_delay)
                delay = max(1.0, base_delay + jitter)

                logger.warning(
                    "Rate limited (429), retrying in %.1fs (attempt %d/%d, suggested=%.1fs): %s",
                    delay, attempt + 1, _MAX_RETRIES, suggested or 0.0, exc,
                )
                await asyncio.sleep(delay)
            except (APIConnectionError, APITimeoutError) as exc:
                if attempt == _MAX_RETRIES - 1:
                    raise
                backoff = _BASE_DELAY * (2 ** min(attempt, 3))
                jitter = random.uniform(-0.25 * backoff, 0.25 * backoff)
                delay = max(1.0, backoff + jitter)
                logger.warning(
                    "Connection error, retrying in %.1fs (attempt %d/%d): %s",
                    delay, attempt + 1, _MAX_RETRIES, exc,
                )
                await asyncio.sleep(delay)

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        """Single request/response.

        When ``json_mode`` is True (default), the API guarantees the
        response is valid JSON; its shape is still the caller's problem.
        """
        kwargs: dict[str, Any] = {
            "model": self.text_model,
            "max_tokens": MAX_TOKENS,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user_message},
            ],
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        async with self._completion_slots:
            response = await self._with_retry(self._client.chat.completions.create, **kwargs)
        usage = getattr(response, "usage", None)
        if on_tokens and usage:
            on_tokens(getattr(usage, "prompt_tokens", 0), getattr(usage, "completion_tokens", 0))
        return response.choices[0].message.content or ""

    async def generate_image(self, *, prompt: str, width: int, height: int) -> ImageResult:
        """Generate one image. Raises ``ValueError`` on an empty response."""
        async with self._image_slots:
            response = await self._with_retry(
                self._client.images.generate,
                model=self.image_model,
                prompt=prompt,
                size=image_size_for(width, height),
                n=1,
            )
        data = response.data[0] if getattr(response, "data", None) else None
        result = ImageResult(
            url=getattr(data, "url", None) or "",
            b64_json=getattr(data, "b64_json", None) or "",
        )
        if result.empty:
            raise ValueError("Image service returned no image data")
        return result


class OfflineClient:
    """Client used when no external service is configured.

    Every call fails, so each stage takes its rule-based path.
    """

    def __init__(self, reason: str = "No OpenAI API key configured") -> None:
        self.reason = reason

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        raise ServiceUnavailableError(self.reason)

    async def generate_image(self, *, prompt: str, width: int, height: int) -> ImageResult:
        raise ServiceUnavailableError(self.reason)


# ---------------------------------------------------------------------------
# Dry-run client: canned responses, zero API calls
# ---------------------------------------------------------------------------

_DRY_RUN_JSON: dict[str, dict[str, Any]] = {
    "sections": {
        "rationale": "Lead with the offer, prove it with social proof, close with contact.",
        "sections": [
            {"type": "hero", "importance": "high", "rationale": "First impression and primary CTA"},
            {"type": "value-proposition", "importance": "high", "rationale": "Why choose us"},
            {"type": "services", "importance": "high", "rationale": "What we offer"},
            {"type": "testimonials", "importance": "medium", "rationale": "Social proof"},
            {"type": "about", "importance": "medium", "rationale": "Who we are"},
            {"type": "faq", "importance": "low", "rationale": "Handle objections"},
            {"type": "contact", "importance": "high", "rationale": "Conversion point"},
        ],
    },
    "style": {
        "palette": {"primary": "#2A6F97", "secondary": "#014F86", "accent": "#F4A261"},
        "fonts": {"heading": "Merriweather", "body": "Source Sans Pro"},
        "notes": "Calm, credible palette with a warm accent for calls to action.",
    },
    "images": {
        "images": [
            {"section_key": "hero-1", "purpose": "hero",
             "prompt": "Bright, welcoming storefront at golden hour, photographic",
             "alt": "Welcoming storefront"},
            {"section_key": "about-1", "purpose": "supporting",
             "prompt": "Friendly team portrait in a modern workspace", "alt": "Our team"},
        ],
    },
    "copy": {
        "sections": [
            {"section_key": "hero-1", "heading": "Service you can count on, every single day",
             "subheading": "Local, experienced and ready when you need us.",
             "body": "We combine years of hands-on experience with a genuinely personal approach, "
                     "so every client leaves with exactly what they came for.",
             "cta_label": "Get Started", "cta_description": "Tell us what you need today"},
        ],
    },
    "seo": {
        "pages": [
            {"page": "home", "title": "Trusted Local Experts | Quality Service Near You",
             "description": "Experienced, friendly professionals delivering dependable results. "
                            "See our services, read client reviews and get in touch today.",
             "keywords": ["local experts", "trusted service", "professional team",
                          "client reviews", "free consultation"]},
        ],
    },
}


# 1x1 transparent PNG
_DRY_RUN_PNG = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


class DryRunClient:
    """Drop-in replacement for ``LLMClient`` that makes zero API calls.

    Returns canned JSON per stage. Copy and SEO responses cover only the
    hero section and home page, so the rest is filled from templates.
    """

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        key = self._detect_stage(system)
        logger.info("[dry-run] %s completion", key)
        return json.dumps(_DRY_RUN_JSON.get(key, {}))

    async def generate_image(self, *, prompt: str, width: int, height: int) -> ImageResult:
        logger.info("[dry-run] image %dx%d: %s", width, height, prompt[:80])
        return ImageResult(b64_json=_DRY_RUN_PNG)

    @staticmethod
    def _detect_stage(system: str) -> str:
        """Guess the stage from its system prompt."""
        if "Section Planner" in system:
            return "sections"
        if "Style Designer" in system:
            return "style"
        if "Image Planner" in system:
            return "images"
        if "Copywriter" in system:
            return "copy"
        if "SEO Strategist" in system:
            return "seo"
        return "unknown"
