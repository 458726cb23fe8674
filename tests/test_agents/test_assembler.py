"""Tests for page planning and the Site Assembler."""

from __future__ import annotations

import re

import pytest

from sitesmith.agents.assembler.agent import SiteAssembler
from sitesmith.agents.assembler.pages import plan_pages, select_pages, slugify
from sitesmith.agents.copywriter.agent import template_bundle
from sitesmith.agents.seo.agent import SEOAgent
from sitesmith.industries import GENERAL, resolve_industry
from sitesmith.schemas.config import TIER_LIMITS, Tier
from sitesmith.schemas.images import GeneratedImage, ImagePurpose, ImageSet
from sitesmith.schemas.sections import SectionEntry, SectionPlan, SectionType
from sitesmith.schemas.seo import SEOSet

RESTAURANT = resolve_industry("Restaurant")


def _layout(page_plan) -> dict[str, list[str]]:
    return {p.id: p.section_keys for p in page_plan.pages}


class TestSelectPages:
    def test_truncated_to_tier(self) -> None:
        ids = [t.id for t in select_pages(RESTAURANT, TIER_LIMITS[Tier.STARTER])]
        assert ids == ["home", "menu", "about"]

    def test_enterprise_keeps_whole_template(self) -> None:
        ids = [t.id for t in select_pages(RESTAURANT, TIER_LIMITS[Tier.ENTERPRISE])]
        assert ids == ["home", "menu", "about", "contact"]

    def test_unknown_industry_uses_default_pages(self) -> None:
        ids = [t.id for t in select_pages(GENERAL, TIER_LIMITS[Tier.ENTERPRISE])]
        assert ids[0] == "home"
        assert "services" in ids


class TestPlanPages:
    def test_sections_go_to_accepting_pages(self, section_plan) -> None:
        plan = plan_pages(section_plan, select_pages(RESTAURANT, TIER_LIMITS[Tier.PROFESSIONAL]), 4)
        assert _layout(plan) == {
            "home": ["hero-1", "value-proposition-1", "testimonials-1"],
            "menu": ["services-1"],
            "about": ["about-1"],
            "contact": ["faq-1", "contact-1"],
        }
        assert [p.slug for p in plan.pages] == ["index", "menu", "our-story", "visit-us"]
        assert [p.filename for p in plan.pages] == ["index.html", "menu.html", "our-story.html", "visit-us.html"]

    def test_full_page_spills_to_first_page_with_room(self, section_plan) -> None:
        plan = plan_pages(section_plan, select_pages(RESTAURANT, TIER_LIMITS[Tier.PROFESSIONAL]), 2)
        assert _layout(plan)["home"] == ["hero-1", "value-proposition-1"]
        assert _layout(plan)["menu"] == ["services-1", "testimonials-1"]
        assert all(len(p.section_keys) <= 2 for p in plan.pages)

    def test_unaccepted_types_land_on_home(self, section_plan) -> None:
        plan = plan_pages(section_plan, select_pages(RESTAURANT, TIER_LIMITS[Tier.STARTER]), 5)
        assert "contact-1" in _layout(plan)["home"]
        assert sorted(plan.all_keys()) == sorted(section_plan.keys())

    def test_empty_pages_dropped(self) -> None:
        sections = SectionPlan(sections=[
            SectionEntry(key="hero-1", type=SectionType.HERO),
            SectionEntry(key="contact-1", type=SectionType.CONTACT),
        ])
        plan = plan_pages(sections, select_pages(RESTAURANT, TIER_LIMITS[Tier.ENTERPRISE]), 4)
        assert [p.id for p in plan.pages] == ["home", "contact"]

    def test_no_room_raises(self, section_plan) -> None:
        with pytest.raises(ValueError, match="No page has room"):
            plan_pages(section_plan, select_pages(RESTAURANT, TIER_LIMITS[Tier.STARTER]), 2)


class TestSlugify:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("Our Story", "our-story"), ("Visit Us!", "visit-us"), ("FAQ & Help", "faq-help"), ("???", "page")],
    )
    def test_slugify(self, text: str, expected: str) -> None:
        assert slugify(text) == expected


@pytest.fixture
def artifacts(restaurant_profile, section_plan, restaurant_theme):
    pages = plan_pages(section_plan, select_pages(RESTAURANT, TIER_LIMITS[Tier.PROFESSIONAL]), 4)
    copy = template_bundle(section_plan, restaurant_profile, RESTAURANT)
    images = ImageSet(images=[
        GeneratedImage(section_key="hero-1", purpose=ImagePurpose.HERO, src="images/hero-1-hero.png",
                       alt="Dining room", content=b"png"),
        GeneratedImage(section_key="about-1", purpose=ImagePurpose.SUPPORTING,
                       src="data:image/svg+xml;base64,AA", alt="Kitchen", placeholder=True),
        GeneratedImage(section_key="services-1", purpose=ImagePurpose.ICON, src="images/services-1-icon.png",
                       alt="Catering icon", label="Catering", content=b"png"),
    ])
    seo = SEOAgent(client=None).fallback(restaurant_profile, RESTAURANT, pages, copy, images)
    return {
        "profile": restaurant_profile,
        "industry": RESTAURANT,
        "tier": Tier.PROFESSIONAL,
        "sections": section_plan,
        "pages": pages,
        "theme": restaurant_theme,
        "images": images,
        "copy": copy,
        "seo": seo,
        "pipeline_version": "0.4.0",
        "module_versions": {"assembler": SiteAssembler.VERSION},
    }


class TestSiteAssembler:
    def test_assembles_every_page(self, artifacts) -> None:
        site = SiteAssembler().assemble(**artifacts)

        assert [p.filename for p in site.pages] == ["index.html", "menu.html", "our-story.html", "visit-us.html"]
        assert site.metadata.page_count == 4
        assert site.metadata.section_count == 7
        assert site.metadata.image_count == 3
        assert site.metadata.placeholder_count == 1
        assert site.metadata.tier == "professional"
        assert "--color-primary" in site.stylesheet
        assert site.script

    def test_one_h1_per_page_and_shared_chrome(self, artifacts) -> None:
        site = SiteAssembler().assemble(**artifacts)
        for page in site.pages:
            assert len(re.findall(r"<h1[\s>]", page.html)) == 1, page.id
            for other in site.pages:
                assert f'href="{other.filename}"' in page.html
            assert "visit-us.html#contact-1" in page.html

    def test_sections_and_images_rendered(self, artifacts) -> None:
        site = SiteAssembler().assemble(**artifacts)
        home = site.page("home")
        assert 'id="hero-1"' in home.html
        assert 'src="images/hero-1-hero.png"' in home.html
        assert "Where every meal tells a story" in home.html
        menu = site.page("menu")
        assert 'src="images/services-1-icon.png"' in menu.html

    def test_missing_copy_rejected(self, artifacts) -> None:
        artifacts["copy"] = artifacts["copy"].model_copy(
            update={"entries": {k: v for k, v in artifacts["copy"].entries.items() if k != "faq-1"}},
        )
        with pytest.raises(ValueError, match="Copy bundle does not cover"):
            SiteAssembler().assemble(**artifacts)

    def test_missing_seo_rejected(self, artifacts) -> None:
        artifacts["seo"] = SEOSet(pages={"home": artifacts["seo"].get("home")})
        with pytest.raises(ValueError, match="No SEO metadata for page"):
            SiteAssembler().assemble(**artifacts)

    def test_unplaced_section_rejected(self, artifacts) -> None:
        extra = SectionEntry(key="cta-1", type=SectionType.CTA)
        artifacts["sections"] = SectionPlan(sections=[*artifacts["sections"].sections, extra])
        with pytest.raises(ValueError, match="not placed on any page"):
            SiteAssembler().assemble(**artifacts)
