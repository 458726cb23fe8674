"""Tests for the known-industry lookup."""

import pytest

from sitesmith.industries import (
    DEFAULT_PAGES,
    GENERAL,
    INDUSTRIES,
    find_industry,
    page_templates,
    resolve_industry,
    schema_type_for,
)
from sitesmith.schemas.site import HOME_PAGE
from sitesmith.schemas.style import is_hex_color


class TestFindIndustry:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Restaurant", "restaurant"),
            ("Family bakery", "restaurant"),
            ("Personal injury attorney", "legal"),
            ("B2B SaaS platform", "saas"),
            ("Wedding photography studio", "photography"),
            ("Commercial real estate", "realestate"),
            ("saas", "saas"),
        ],
    )
    def test_matches(self, text: str, expected: str) -> None:
        assert find_industry(text).id == expected

    def test_keywords_match_whole_words_only(self) -> None:
        # "lawn" must not match "law"
        assert find_industry("Lawn care") is None

    def test_empty_is_unknown(self) -> None:
        assert find_industry("  ") is None


class TestResolveIndustry:
    def test_unknown_resolves_to_general(self) -> None:
        profile = resolve_industry("Aquarium maintenance")
        assert profile is GENERAL
        assert not profile.known

    def test_known_flag(self) -> None:
        assert resolve_industry("Dental clinic").known


class TestLookupData:
    def test_every_profile_is_complete(self) -> None:
        for profile in [*INDUSTRIES, GENERAL]:
            for role, value in profile.palette.model_dump().items():
                assert is_hex_color(value), f"{profile.id}.{role}"
            assert profile.taglines, profile.id
            assert profile.cta_labels, profile.id
            assert profile.default_services, profile.id

    def test_page_templates_start_with_home(self) -> None:
        for profile in [*INDUSTRIES, GENERAL]:
            templates = page_templates(profile)
            assert templates[0].id == HOME_PAGE
            ids = [t.id for t in templates]
            assert len(ids) == len(set(ids)), profile.id

    def test_default_pages_used_when_industry_has_none(self) -> None:
        assert page_templates(GENERAL) == DEFAULT_PAGES


class TestSchemaType:
    @pytest.mark.parametrize(
        ("industry", "expected"),
        [
            ("Restaurant", "Restaurant"),
            ("Law firm", "LegalService"),
            ("Dental clinic", "MedicalBusiness"),
            ("SaaS", "SoftwareApplication"),
            ("Realty group", "RealEstateAgent"),
            ("Aquarium maintenance", "LocalBusiness"),
        ],
    )
    def test_schema_type(self, industry: str, expected: str) -> None:
        assert schema_type_for(industry) == expected
