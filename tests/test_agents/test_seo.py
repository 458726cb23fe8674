"""Tests for the SEO Strategist."""

from __future__ import annotations

import pytest

from sitesmith.agents.assembler.pages import plan_pages, select_pages
from sitesmith.agents.copywriter.agent import template_bundle
from sitesmith.agents.seo.agent import (
    SEOAgent,
    SEOProposal,
    canonical_url,
    clip,
    normalize_keywords,
    rule_keywords,
)
from sitesmith.industries import resolve_industry
from sitesmith.schemas.config import TIER_LIMITS, Tier
from sitesmith.schemas.images import GeneratedImage, ImagePurpose, ImageSet
from sitesmith.schemas.seo import DESCRIPTION_MAX_LENGTH, MAX_KEYWORDS, MIN_KEYWORDS, TITLE_MAX_LENGTH

RESTAURANT = resolve_industry("Restaurant")
BASE_URL = "https://harbortable.example/"


@pytest.fixture
def page_plan(section_plan):
    return plan_pages(section_plan, select_pages(RESTAURANT, TIER_LIMITS[Tier.PROFESSIONAL]), 4)


@pytest.fixture
def copy_bundle(section_plan, restaurant_profile):
    return template_bundle(section_plan, restaurant_profile, RESTAURANT)


class TestClip:
    def test_short_text_untouched(self) -> None:
        assert clip("  Harbor   Table  ", 20) == "Harbor Table"

    def test_cuts_at_word_boundary(self) -> None:
        assert clip("Hello world again", 11) == "Hello world"
        assert clip("Seafood, oysters and more", 9) == "Seafood"

    def test_single_long_word(self) -> None:
        assert clip("a" * 30, 10) == "a" * 10


class TestKeywords:
    def test_deduplicated_lowercase_and_topped_up(self) -> None:
        result = normalize_keywords(
            ["Seafood  Restaurant", "seafood restaurant", ""], ["harbor table", "restaurant", "seafood restaurant",
                                                                "portland dining", "oysters", "extra"],
        )
        assert result == ["seafood restaurant", "harbor table", "restaurant", "portland dining", "oysters"]

    def test_capped_at_maximum(self) -> None:
        result = normalize_keywords([f"keyword {i}" for i in range(20)], [])
        assert len(result) == MAX_KEYWORDS

    def test_rule_keywords_include_location_and_page(self, restaurant_profile, page_plan) -> None:
        menu = next(p for p in page_plan.pages if p.id == "menu")
        keywords = rule_keywords(restaurant_profile, RESTAURANT, menu)
        assert keywords[:4] == ["harbor table", "restaurant", "restaurant portland, maine", "restaurant near me"]
        assert "harbor table menu" in keywords
        assert "catering" in keywords


class TestSEOAgent:
    @pytest.mark.asyncio
    async def test_model_metadata_with_rule_gaps(self, client_factory, ai_responses, restaurant_profile,
                                                 page_plan, copy_bundle) -> None:
        client = client_factory(ai_responses)
        outcome = await SEOAgent(client).optimize(
            restaurant_profile, RESTAURANT, page_plan, copy_bundle, ImageSet(), base_url=BASE_URL, timeout=5,
        )

        seo = outcome.value
        assert not outcome.used_fallback
        assert set(seo.pages) == {p.id for p in page_plan.pages}

        home = seo.get("home")
        assert home.source == "ai"
        assert home.title == "Harbor Table | Seafood Restaurant in Portland, Maine"
        assert home.keywords[:2] == ["seafood restaurant portland", "old port dining"]
        assert len(home.keywords) == MIN_KEYWORDS
        assert home.slug == "index"
        assert home.canonical == "https://harbortable.example/index.html"
        assert home.structured_data["@type"] == "Restaurant"
        assert home.structured_data["telephone"] == "(207) 555-0142"
        assert home.structured_data["areaServed"] == "Portland, Maine"

        visit = seo.get("contact")
        assert visit.source == "rules"
        assert visit.slug == "visit-us"
        assert visit.title == "Visit Us | Harbor Table | Restaurant"

    @pytest.mark.asyncio
    async def test_service_failure_uses_rules_everywhere(self, fake_client, restaurant_profile, page_plan,
                                                         copy_bundle) -> None:
        outcome = await SEOAgent(fake_client).optimize(
            restaurant_profile, RESTAURANT, page_plan, copy_bundle, ImageSet(), timeout=5,
        )
        assert outcome.used_fallback
        for page in page_plan.pages:
            bundle = outcome.value.get(page.id)
            assert bundle.source == "rules"
            assert bundle.slug == page.slug
            assert bundle.canonical == page.filename
            assert len(bundle.title) <= TITLE_MAX_LENGTH
            assert len(bundle.description) <= DESCRIPTION_MAX_LENGTH
            assert len(bundle.keywords) >= MIN_KEYWORDS
            assert bundle.structured_data["@type"] == "Organization"

    def test_model_output_is_bounded(self, restaurant_profile, page_plan, copy_bundle) -> None:
        proposal = SEOProposal(pages=[{
            "page": "Home",
            "title": "Harbor Table " + "seafood " * 20,
            "description": "Fresh " * 60,
        }])
        seo = SEOAgent(client=None).compose(proposal, restaurant_profile, RESTAURANT, page_plan, copy_bundle,
                                            ImageSet())
        home = seo.get("home")
        assert len(home.title) <= TITLE_MAX_LENGTH
        assert len(home.description) <= DESCRIPTION_MAX_LENGTH
        assert len(home.open_graph.title) <= TITLE_MAX_LENGTH

    def test_proposal_for_unplanned_pages_rejected(self, restaurant_profile, page_plan, copy_bundle) -> None:
        proposal = SEOProposal(pages=[{"page": "blog", "title": "Blog"}])
        with pytest.raises(ValueError, match="no planned pages"):
            SEOAgent(client=None).compose(proposal, restaurant_profile, RESTAURANT, page_plan, copy_bundle,
                                          ImageSet())

    def test_open_graph_image_uses_local_hero(self, restaurant_profile, page_plan, copy_bundle) -> None:
        images = ImageSet(images=[
            GeneratedImage(section_key="hero-1", purpose=ImagePurpose.HERO, src="images/hero-1-hero.png",
                           content=b"png"),
        ])
        seo = SEOAgent(client=None).fallback(restaurant_profile, RESTAURANT, page_plan, copy_bundle, images,
                                             base_url=BASE_URL)
        assert seo.get("home").open_graph.image == "https://harbortable.example/images/hero-1-hero.png"

    def test_placeholder_hero_not_advertised(self, restaurant_profile, page_plan, copy_bundle) -> None:
        images = ImageSet(images=[
            GeneratedImage(section_key="hero-1", purpose=ImagePurpose.HERO, src="data:image/svg+xml;base64,AA",
                           placeholder=True),
        ])
        seo = SEOAgent(client=None).fallback(restaurant_profile, RESTAURANT, page_plan, copy_bundle, images)
        assert seo.get("home").open_graph.image == ""


def test_canonical_url(page_plan) -> None:
    home, menu = page_plan.pages[0], page_plan.pages[1]
    assert canonical_url("", home) == "index.html"
    assert canonical_url("https://example.com", menu) == "https://example.com/menu.html"
