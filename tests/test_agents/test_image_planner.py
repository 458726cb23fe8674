"""Tests for the Image Planner and the Image Generator."""

from __future__ import annotations

import asyncio
import base64
import functools

import httpx
import pytest

from sitesmith.agents.image_planner import generator as generator_module
from sitesmith.agents.image_planner.agent import ImagePlannerAgent, ImageProposal, support_images
from sitesmith.agents.image_planner.generator import ImageGenerator, placeholder_image
from sitesmith.errors import ServiceUnavailableError
from sitesmith.industries import resolve_industry
from sitesmith.schemas.images import DEFAULT_DIMENSIONS, ImagePlan, ImagePlanEntry, ImagePurpose
from sitesmith.shared.llm_client import ImageResult

PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="

RESTAURANT = resolve_industry("Restaurant")


def _entry(key: str, purpose: ImagePurpose = ImagePurpose.SUPPORTING) -> ImagePlanEntry:
    return ImagePlanEntry(
        section_key=key, purpose=purpose, prompt=f"Photo for {key}",
        dimensions=DEFAULT_DIMENSIONS[purpose], alt=f"{key} photo",
    )


class TestImagePlanner:
    @pytest.mark.asyncio
    async def test_ai_plan(self, client_factory, ai_responses, restaurant_profile, section_plan,
                           restaurant_theme) -> None:
        client = client_factory(ai_responses)
        outcome = await ImagePlannerAgent(client).plan(
            restaurant_profile, RESTAURANT, section_plan, restaurant_theme, include_support=True, timeout=5,
        )

        assert not outcome.used_fallback
        plan = outcome.value
        assert [(e.section_key, e.purpose) for e in plan.entries] == [
            ("hero-1", ImagePurpose.HERO), ("about-1", ImagePurpose.SUPPORTING),
        ]
        hero = plan.entries[0]
        assert hero.prompt.startswith("Candle-lit dining room over the harbor. ")
        assert restaurant_theme.palette.primary in hero.prompt
        assert hero.dimensions == DEFAULT_DIMENSIONS[ImagePurpose.HERO]
        assert hero.alt == "Dining room at dusk"

    @pytest.mark.asyncio
    async def test_service_failure_uses_section_conventions(self, fake_client, restaurant_profile, section_plan,
                                                            restaurant_theme) -> None:
        outcome = await ImagePlannerAgent(fake_client).plan(
            restaurant_profile, RESTAURANT, section_plan, restaurant_theme, include_support=False, timeout=5,
        )

        assert outcome.used_fallback
        plan = outcome.value
        assert [e.section_key for e in plan.entries] == ["hero-1", "services-1", "about-1"]
        assert plan.entries[0].prompt.startswith(RESTAURANT.hero_subject)
        assert plan.support_images == []

    def test_normalize_guarantees_hero(self, restaurant_profile, section_plan, restaurant_theme) -> None:
        proposal = ImageProposal(images=[
            {"section_key": "about-1", "purpose": "hero", "prompt": "Chef portrait"},
            {"section_key": "pricing-9", "purpose": "supporting", "prompt": "Not planned"},
            {"section_key": "services-1", "purpose": "icon", "prompt": "Plated dish"},
            {"section_key": "faq-1", "purpose": "supporting", "prompt": "   "},
        ])
        plan = ImagePlannerAgent(client=None).normalize(
            proposal, restaurant_profile, RESTAURANT, section_plan, restaurant_theme, include_support=False,
        )

        assert [(e.section_key, e.purpose) for e in plan.entries] == [
            ("hero-1", ImagePurpose.HERO),
            ("services-1", ImagePurpose.SUPPORTING),
            ("about-1", ImagePurpose.SUPPORTING),
        ]
        assert plan.for_section("about-1").alt == "Harbor Table about"

    def test_normalize_rejects_proposal_without_planned_sections(self, restaurant_profile, section_plan,
                                                                 restaurant_theme) -> None:
        proposal = ImageProposal(images=[{"section_key": "gallery-1", "prompt": "Nope"}])
        with pytest.raises(ValueError, match="no planned sections"):
            ImagePlannerAgent(client=None).normalize(
                proposal, restaurant_profile, RESTAURANT, section_plan, restaurant_theme, include_support=False,
            )

    def test_support_images(self, restaurant_profile, section_plan, restaurant_theme) -> None:
        support = support_images(section_plan, restaurant_profile, RESTAURANT, restaurant_theme)
        icons = [s for s in support if s.purpose == ImagePurpose.ICON]
        avatars = [s for s in support if s.purpose == ImagePurpose.AVATAR]
        assert [i.label for i in icons] == ["Dinner service", "Catering"]
        assert icons[0].asset_name == "services-1-icon-dinner-service"
        assert len(avatars) == 3
        assert {a.section_key for a in avatars} == {"testimonials-1"}

    def test_support_icons_fall_back_to_industry_services(self, niche_profile, section_plan,
                                                          restaurant_theme) -> None:
        support = support_images(section_plan, niche_profile, RESTAURANT, restaurant_theme)
        icons = [s.label for s in support if s.purpose == ImagePurpose.ICON]
        assert icons == [s.name for s in RESTAURANT.default_services]


class _CountingClient:
    """Image client that records the peak number of concurrent calls."""

    def __init__(self, result: ImageResult, fail_on: str = "") -> None:
        self.result = result
        self.fail_on = fail_on
        self.active = 0
        self.peak = 0

    async def generate_image(self, *, prompt: str, width: int, height: int) -> ImageResult:
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0.01)
            if self.fail_on and self.fail_on in prompt:
                raise ServiceUnavailableError("content policy")
            return self.result
        finally:
            self.active -= 1


class TestImageGenerator:
    @pytest.mark.asyncio
    async def test_failures_become_placeholders(self, fake_client, restaurant_theme) -> None:
        plan = ImagePlan(entries=[_entry("hero-1", ImagePurpose.HERO), _entry("about-1")])
        events: list[str] = []
        outcome = await ImageGenerator(fake_client).generate(plan, restaurant_theme, on_event=events.append)

        images = outcome.value.images
        assert outcome.used_fallback
        assert len(images) == 2
        assert all(i.placeholder for i in images)
        assert images[0].src.startswith("data:image/svg+xml;base64,")
        assert images[0].alt == "hero-1 photo"
        assert events == ["Generated 0/2 images, 2 placeholder(s)"]

    @pytest.mark.asyncio
    async def test_base64_result_becomes_local_asset(self, client_factory, restaurant_theme) -> None:
        client = client_factory(image=ImageResult(b64_json=PNG_B64))
        plan = ImagePlan(entries=[_entry("hero-1", ImagePurpose.HERO)])
        outcome = await ImageGenerator(client).generate(plan, restaurant_theme)

        image = outcome.value.images[0]
        assert not outcome.used_fallback
        assert image.src == "images/hero-1-hero.png"
        assert image.content == base64.b64decode(PNG_B64)
        assert image.is_local

    @pytest.mark.asyncio
    async def test_remote_url_kept_when_not_downloading(self, client_factory, restaurant_theme) -> None:
        client = client_factory(image=ImageResult(url="https://images.example/hero.png"))
        plan = ImagePlan(entries=[_entry("hero-1", ImagePurpose.HERO)])
        outcome = await ImageGenerator(client, download=False).generate(plan, restaurant_theme)
        assert outcome.value.images[0].src == "https://images.example/hero.png"
        assert not outcome.value.images[0].is_local

    @pytest.mark.asyncio
    async def test_download(self, client_factory, restaurant_theme, monkeypatch) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/missing.png":
                return httpx.Response(404)
            return httpx.Response(200, content=b"JPEGDATA", headers={"content-type": "image/jpeg"})

        monkeypatch.setattr(
            generator_module.httpx, "AsyncClient",
            functools.partial(httpx.AsyncClient, transport=httpx.MockTransport(handler)),
        )
        plan = ImagePlan(entries=[_entry("hero-1", ImagePurpose.HERO)])

        client = client_factory(image=ImageResult(url="https://images.example/hero"))
        image = (await ImageGenerator(client).generate(plan, restaurant_theme)).value.images[0]
        assert image.src == "images/hero-1-hero.jpg"
        assert image.content == b"JPEGDATA"

        client = client_factory(image=ImageResult(url="https://images.example/missing.png"))
        image = (await ImageGenerator(client).generate(plan, restaurant_theme)).value.images[0]
        assert image.src == "https://images.example/missing.png"
        assert not image.placeholder

    @pytest.mark.asyncio
    async def test_concurrency_bound_and_order(self, restaurant_theme) -> None:
        client = _CountingClient(ImageResult(b64_json=PNG_B64), fail_on="about-1")
        plan = ImagePlan(entries=[_entry(f"section-{i}") for i in range(6)] + [_entry("about-1")])
        outcome = await ImageGenerator(client, concurrency=2).generate(plan, restaurant_theme)

        images = outcome.value.images
        assert client.peak == 2
        assert [i.section_key for i in images] == [e.section_key for e in plan.entries]
        assert [i.placeholder for i in images] == [False] * 6 + [True]
        assert "content policy" in outcome.error

    def test_placeholder_shapes(self, restaurant_theme) -> None:
        icon = placeholder_image(_entry("services-1", ImagePurpose.ICON), restaurant_theme)
        svg = base64.b64decode(icon.src.split(",", 1)[1]).decode()
        assert 'width="256"' in svg
        assert restaurant_theme.palette.primary in svg
        assert icon.placeholder
