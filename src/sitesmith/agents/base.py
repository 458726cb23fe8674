"""Base agent and the run-with-fallback combinator every stage goes through."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Protocol, TypeVar

from pydantic import BaseModel

from sitesmith.shared.llm_client import ImageResult, TokensCallback

logger = logging.getLogger(__name__)

T = TypeVar("T")

EventCallback = Callable[[str], None]
"""Called with a persistent, human-readable log line."""

_JSON_RETRY_MSG = (
    "I need the output as a single JSON object (no markdown, no explanation, "
    "just raw JSON) matching the schema described in your instructions. "
    "Please re-format your response now.\n\nYour previous response was:\n"
)


class CompletionClient(Protocol):
    """What stages need from a text/image service client."""

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
        on_tokens: TokensCallback | None = None,
    ) -> str: ...

    async def generate_image(self, *, prompt: str, width: int, height: int) -> ImageResult: ...


@dataclass
class StageOutcome(Generic[T]):
    """Result of one fallback-wrapped step and the path that produced it."""

    value: T
    used_fallback: bool
    error: str = ""


def describe_failure(exc: BaseException) -> str:
    if isinstance(exc, TimeoutError):
        return "timed out"
    text = str(exc).strip().splitlines()[0] if str(exc).strip() else ""
    return f"{type(exc).__name__}: {text[:200]}" if text else type(exc).__name__


async def run_with_fallback(
    stage: str,
    primary: Callable[[], Awaitable[T]],
    fallback: Callable[[], T],
    *,
    timeout: float | None,
    on_event: EventCallback | None = None,
) -> StageOutcome[T]:
    """Try ``primary`` under ``timeout``; on any failure return ``fallback()``.

    Timeouts, service errors, malformed output and a ``None`` result all
    select the fallback. The primary's failure is logged and recorded on
    the outcome, never raised. Cancellation is not a failure and propagates.
    ``fallback`` must be deterministic and must not raise.
    """
    try:
        value = await asyncio.wait_for(primary(), timeout=timeout)
        if value is None:
            raise ValueError("primary strategy produced no result")
        return StageOutcome(value=value, used_fallback=False)
    except Exception as exc:
        reason = describe_failure(exc)
        logger.warning("%s: AI path failed (%s), using rule-based fallback", stage, reason)
        logger.debug("%s failure detail", stage, exc_info=True)
        if on_event:
            on_event(f"[yellow]{stage}: AI path failed ({reason}), using fallback[/]")

    return StageOutcome(value=fallback(), used_fallback=True, error=reason)


class BaseAgent(ABC):
    """Abstract base class for AI-backed generation stages.

    Subclasses implement:
    - ``name``: human-readable stage name
    - ``get_system_prompt()``: the system prompt string
    - ``parse_output(raw_text)``: parse the model's text into a Pydantic model

    Each stage pairs an AI strategy with a deterministic fallback and runs
    them through ``run_with_fallback``.
    """

    VERSION = "1.0"

    def __init__(self, client: CompletionClient) -> None:
        self.client = client

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for progress display."""

    @abstractmethod
    def get_system_prompt(self) -> str:
        """Return the system prompt for this stage."""

    @abstractmethod
    def parse_output(self, raw_text: str) -> BaseModel:
        """Parse the model's final text response into a Pydantic model."""

    async def _complete(
        self,
        user_message: str,
        *,
        on_event: EventCallback | None = None,
    ) -> BaseModel:
        """One completion parsed into the output model.

        If parsing fails, asks the model once to re-format its answer as
        JSON. A second failure propagates to the fallback wrapper.
        """
        raw = await self.client.simple_completion(
            system=self.get_system_prompt(),
            user_message=user_message,
        )
        logger.debug("Agent %s raw output:\n%s", self.name, raw[:500])

        try:
            return self.parse_output(raw)
        except (ValueError, json.JSONDecodeError, KeyError, TypeError) as first_err:
            logger.warning(
                "Agent %s output was not usable, requesting re-format. Error: %s",
                self.name, first_err,
            )
        if on_event:
            on_event("[yellow]Output was not valid JSON, requesting re-format[/]")

        raw_retry = await self.client.simple_completion(
            system=self.get_system_prompt(),
            user_message=user_message + "\n\n" + _JSON_RETRY_MSG + raw[:4000],
        )
        logger.debug("Agent %s retry output:\n%s", self.name, raw_retry[:500])
        return self.parse_output(raw_retry)


def extract_json(text: str) -> dict[str, Any]:
    """Extract a JSON object from text that may contain markdown fences."""
    text = text.strip()

    # 1. Clean JSON response
    if text.startswith("{"):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            # Might have trailing text
            try:
                obj, _ = json.JSONDecoder().raw_decode(text)
                return obj
            except json.JSONDecodeError:
                pass

    # 2. ```json ... ``` or ``` ... ``` fenced blocks
    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if match:
        return json.loads(match.group(1).strip())

    # 3. First { onward
    try:
        start = text.index("{")
        obj, _ = json.JSONDecoder().raw_decode(text, idx=start)
        return obj
    except (ValueError, json.JSONDecodeError):
        pass

    raise ValueError(
        f"Could not extract JSON from model response (length={len(text)}). "
        f"First 300 chars: {text[:300]!r}"
    )
