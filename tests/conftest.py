"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from sitesmith.agents.style_designer.theme import harmonize
from sitesmith.errors import ServiceUnavailableError
from sitesmith.industries import resolve_industry
from sitesmith.schemas.config import BusinessProfile, ContactInfo, Service
from sitesmith.schemas.sections import SectionEntry, SectionPlan, SectionType
from sitesmith.schemas.style import StyleSystem, Theme
from sitesmith.shared.llm_client import ImageResult, LLMClient

# 1x1 transparent PNG
PNG_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

_STAGE_MARKERS = {
    "Section Planner": "sections",
    "Style Designer": "style",
    "Image Planner": "images",
    "Copywriter": "copy",
    "SEO Strategist": "seo",
}


class FakeClient:
    """Scripted completion/image client keyed by stage.

    ``responses`` maps a stage ("sections", "style", "images", "copy",
    "seo") to a dict (sent as JSON), a raw string, an exception to raise,
    or a list of those consumed in order. Unscripted stages raise
    ``ServiceUnavailableError``.
    """

    def __init__(
        self,
        responses: dict[str, Any] | None = None,
        *,
        image: ImageResult | Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.responses = dict(responses or {})
        self.image = image
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.image_calls: list[str] = []

    @staticmethod
    def stage_of(system: str) -> str:
        for marker, stage in _STAGE_MARKERS.items():
            if marker in system:
                return stage
        return "unknown"

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
        on_tokens=None,
    ) -> str:
        stage = self.stage_of(system)
        self.calls.append((stage, user_message))
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.responses.get(stage)
        if isinstance(response, list):
            response = response.pop(0) if response else None
        if response is None:
            raise ServiceUnavailableError(f"No scripted response for {stage}")
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return response
        return json.dumps(response)

    async def generate_image(self, *, prompt: str, width: int, height: int) -> ImageResult:
        self.image_calls.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.image is None:
            raise ServiceUnavailableError("No image service")
        if isinstance(self.image, Exception):
            raise self.image
        return self.image

    def stages_called(self) -> list[str]:
        return [stage for stage, _ in self.calls]


SECTIONS_RESPONSE = {
    "rationale": "Lead with the food, prove it with reviews, close with a reservation.",
    "sections": [
        {"type": "hero", "importance": "high", "variant": "full-bleed", "rationale": "First impression"},
        {"type": "value-proposition", "importance": "high", "rationale": "Why us"},
        {"type": "services", "importance": "high", "variant": "cards", "rationale": "Menu highlights"},
        {"type": "testimonials", "importance": "medium", "rationale": "Social proof"},
        {"type": "about", "importance": "medium", "rationale": "Our story"},
        {"type": "faq", "importance": "low", "rationale": "Objections"},
        {"type": "contact", "importance": "high", "variant": "form", "rationale": "Reservations"},
    ],
}

COPY_RESPONSE = {
    "sections": [
        {
            "section_key": "hero-1",
            "heading": "Portland's freshest catch, plated tonight",
            "subheading": "Seafood from the morning boats, served on the wharf.",
            "body": "Harbor Table cooks what the Gulf of Maine landed this morning, paired with "
                    "vegetables from farms less than an hour away.",
            "cta_label": "Reserve a Table",
            "cta_description": "Tables for two to twelve, seven nights a week.",
        },
        {
            "section_key": "about-1",
            "heading": "A wharf kitchen with deep local roots",
            "body": "Founded by two fishing families, Harbor Table has served the Old Port since 2009 "
                    "with a menu that changes every single day.",
        },
    ],
}

SEO_RESPONSE = {
    "pages": [
        {
            "page": "home",
            "title": "Harbor Table | Seafood Restaurant in Portland, Maine",
            "description": "Day-boat seafood and seasonal produce on the Portland waterfront. "
                           "See tonight's menu and reserve a table at Harbor Table.",
            "keywords": ["Seafood Restaurant Portland", "old port dining", "seafood restaurant portland"],
        },
    ],
}


@pytest.fixture
def restaurant_profile() -> BusinessProfile:
    return BusinessProfile(
        name="Harbor Table",
        industry="Restaurant",
        description="A neighbourhood seafood restaurant serving the day's catch with seasonal produce.",
        location="Portland, Maine",
        target_audiences=["local families", "visitors"],
        services=[Service(name="Dinner service"), Service(name="Catering", description="Seafood spreads for events.")],
        tone="warm",
        contact=ContactInfo(phone="(207) 555-0142", email="hello@harbortable.example"),
    )


@pytest.fixture
def niche_profile() -> BusinessProfile:
    return BusinessProfile(
        name="Reef Keepers",
        industry="Aquarium maintenance",
        description="We install and look after saltwater aquariums for homes and offices.",
        location="Tampa, FL",
        tone="friendly",
        contact=ContactInfo(email="care@reefkeepers.example"),
    )


@pytest.fixture
def section_plan() -> SectionPlan:
    return SectionPlan(sections=[
        SectionEntry(key="hero-1", type=SectionType.HERO, importance="high", variant="full-bleed"),
        SectionEntry(key="value-proposition-1", type=SectionType.VALUE_PROPOSITION),
        SectionEntry(key="services-1", type=SectionType.SERVICES, importance="high"),
        SectionEntry(key="testimonials-1", type=SectionType.TESTIMONIALS),
        SectionEntry(key="about-1", type=SectionType.ABOUT),
        SectionEntry(key="faq-1", type=SectionType.FAQ, importance="low"),
        SectionEntry(key="contact-1", type=SectionType.CONTACT, importance="high", variant="form"),
    ])


@pytest.fixture
def restaurant_theme() -> Theme:
    industry = resolve_industry("Restaurant")
    style = StyleSystem(palette=industry.palette, fonts=industry.fonts)
    return harmonize(style, industry="Restaurant", tone="warm", radius=industry.radius)


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Return an LLMClient with a mocked OpenAI SDK underneath."""
    client = LLMClient.__new__(LLMClient)
    client._client = AsyncMock()
    client.text_model = "gpt-4o"
    client.image_model = "gpt-image-1"
    client._completion_slots = asyncio.Semaphore(4)
    client._image_slots = asyncio.Semaphore(3)
    return client


@pytest.fixture
def tmp_request(tmp_path: Path) -> Path:
    """Write a minimal valid request YAML and return its path."""
    path = tmp_path / "request.yml"
    path.write_text(
        """\
profile:
  name: "Harbor Table"
  industry: "Restaurant"
  services:
    - "Dinner service"
pipeline:
  output_directory: "{out}"
""".format(out=str(tmp_path / "output"))
    )
    return path


@pytest.fixture
def client_factory() -> type[FakeClient]:
    return FakeClient


@pytest.fixture
def ai_responses() -> dict[str, Any]:
    """Healthy responses for every stage (style is only asked for unknown niches)."""
    return json.loads(json.dumps({
        "sections": SECTIONS_RESPONSE,
        "style": {
            "palette": {"primary": "#0E7C86", "accent": "#F28C28"},
            "fonts": {"heading": "Poppins", "body": "Nunito"},
            "notes": "Ocean blues with a coral accent.",
        },
        "images": {"images": [
            {"section_key": "hero-1", "purpose": "hero", "prompt": "Candle-lit dining room over the harbor",
             "alt": "Dining room at dusk"},
            {"section_key": "about-1", "purpose": "supporting", "prompt": "Chef plating scallops",
             "alt": "Chef at work"},
        ]},
        "copy": COPY_RESPONSE,
        "seo": SEO_RESPONSE,
    }))
