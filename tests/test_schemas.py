"""Tests for the pipeline's Pydantic models and their invariants."""

import pytest
from pydantic import ValidationError

from sitesmith.schemas.copy import CopyBundle, SectionCopy
from sitesmith.schemas.images import GeneratedImage, ImagePurpose, ImageSet
from sitesmith.schemas.job import JobState, Stage, STAGE_ORDER, can_transition
from sitesmith.schemas.quality import DimensionScore, QualityDimension
from sitesmith.schemas.sections import SectionEntry, SectionPlan, SectionType
from sitesmith.schemas.site import PagePlan, PlannedPage
from sitesmith.schemas.style import is_hex_color, normalize_hex


class TestSectionPlan:
    def test_duplicate_keys_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate section keys: hero-1"):
            SectionPlan(sections=[
                SectionEntry(key="hero-1", type=SectionType.HERO),
                SectionEntry(key="hero-1", type=SectionType.HERO),
            ])

    def test_unknown_variant_falls_back_to_default(self) -> None:
        entry = SectionEntry(key="faq-1", type=SectionType.FAQ, variant="carousel")
        assert entry.variant == "accordion"

    def test_unknown_importance_becomes_medium(self) -> None:
        entry = SectionEntry(key="faq-1", type=SectionType.FAQ, importance="critical")
        assert entry.importance == "medium"

    def test_lookup_helpers(self, section_plan: SectionPlan) -> None:
        assert section_plan.keys()[0] == "hero-1"
        assert section_plan.get("about-1").type == SectionType.ABOUT
        assert section_plan.get("missing") is None
        assert section_plan.has_type(SectionType.CONTACT)
        assert not section_plan.has_type(SectionType.PRICING)


class TestPagePlan:
    def test_home_must_come_first(self) -> None:
        with pytest.raises(ValidationError, match="home page"):
            PagePlan(
                pages=[PlannedPage(id="about", title="About", slug="about")],
                max_sections_per_page=4,
            )

    def test_cap_enforced(self) -> None:
        with pytest.raises(ValidationError, match="max 2"):
            PagePlan(
                pages=[PlannedPage(id="home", title="Home", slug="index", section_keys=["a", "b", "c"])],
                max_sections_per_page=2,
            )

    def test_section_on_one_page_only(self) -> None:
        with pytest.raises(ValidationError, match="more than one page"):
            PagePlan(
                pages=[
                    PlannedPage(id="home", title="Home", slug="index", section_keys=["hero-1"]),
                    PlannedPage(id="about", title="About", slug="about", section_keys=["hero-1"]),
                ],
                max_sections_per_page=4,
            )

    def test_filenames(self) -> None:
        assert PlannedPage(id="home", title="Home", slug="index").filename == "index.html"
        assert PlannedPage(id="about", title="Our Story", slug="our-story").filename == "our-story.html"


class TestCopyBundle:
    def _entry(self, key: str, source: str) -> SectionCopy:
        return SectionCopy(section_key=key, section_type=SectionType.ABOUT, heading="About", source=source)

    def test_covers(self, section_plan: SectionPlan) -> None:
        bundle = CopyBundle(entries={k: self._entry(k, "ai") for k in section_plan.keys()})
        assert bundle.covers(section_plan)
        bundle.entries.pop("faq-1")
        assert not bundle.covers(section_plan)

    def test_template_share(self) -> None:
        bundle = CopyBundle(entries={
            "a": self._entry("a", "ai"),
            "b": self._entry("b", "template"),
            "c": self._entry("c", "template"),
            "d": self._entry("d", "ai"),
        })
        assert bundle.template_share == 0.5

    def test_empty_bundle_counts_as_templated(self) -> None:
        assert CopyBundle().template_share == 1.0


class TestImageSet:
    def test_main_and_support_are_separated(self) -> None:
        images = ImageSet(images=[
            GeneratedImage(section_key="services-1", purpose=ImagePurpose.ICON, src="a.png", label="Catering"),
            GeneratedImage(section_key="services-1", purpose=ImagePurpose.SUPPORTING, src="b.png"),
            GeneratedImage(section_key="hero-1", purpose=ImagePurpose.HERO, src="data:x", placeholder=True),
        ])
        assert images.main("services-1").src == "b.png"
        assert [i.label for i in images.support("services-1")] == ["Catering"]
        assert images.placeholder_count == 1

    def test_content_is_not_serialized(self) -> None:
        image = GeneratedImage(section_key="hero-1", purpose=ImagePurpose.HERO, src="images/hero.png",
                               content=b"\x89PNG")
        assert image.is_local
        assert "content" not in image.model_dump()


class TestColors:
    @pytest.mark.parametrize("value", ["#fff", "#A1B2C3", " #abcdef "])
    def test_valid_hex(self, value: str) -> None:
        assert is_hex_color(value)

    @pytest.mark.parametrize("value", ["red", "#12345", "#GGGGGG", "123456", None, 42])
    def test_invalid_hex(self, value: object) -> None:
        assert not is_hex_color(value)

    def test_normalize_expands_short_form(self) -> None:
        assert normalize_hex("#abc") == "#AABBCC"


class TestJobTransitions:
    def test_forward_path(self) -> None:
        path = [
            JobState.INIT, JobState.PLANNING, JobState.STYLING, JobState.IMAGING,
            JobState.COPYWRITING, JobState.SEO, JobState.ASSEMBLING, JobState.ASSESSING,
            JobState.ITERATING, JobState.ASSEMBLING, JobState.ASSESSING,
            JobState.REPORTING, JobState.DONE,
        ]
        for current, target in zip(path, path[1:]):
            assert can_transition(current, target), f"{current} -> {target}"

    def test_no_skipping_stages(self) -> None:
        assert not can_transition(JobState.PLANNING, JobState.COPYWRITING)
        assert not can_transition(JobState.ASSEMBLING, JobState.REPORTING)

    def test_failure_and_cancel_from_any_active_state(self) -> None:
        for state in JobState:
            if state.terminal:
                continue
            assert can_transition(state, JobState.FAILED)
            assert can_transition(state, JobState.CANCELLED)

    def test_terminal_states_are_final(self) -> None:
        for state in (JobState.DONE, JobState.FAILED, JobState.CANCELLED):
            assert state.terminal
            assert not any(can_transition(state, target) for target in JobState)

    def test_stage_order(self) -> None:
        assert STAGE_ORDER == [Stage.SECTIONS, Stage.STYLE, Stage.IMAGES, Stage.COPY, Stage.SEO]


class TestDimensionScore:
    def test_maxed(self) -> None:
        assert DimensionScore(dimension=QualityDimension.ORIGINALITY, score=10).maxed
        assert not DimensionScore(dimension=QualityDimension.ORIGINALITY, score=9.9).maxed

    def test_labels(self) -> None:
        assert QualityDimension.STRUCTURE_UX.label == "Structure & UX"
