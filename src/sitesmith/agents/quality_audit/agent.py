"""Quality Assessor: rule-based scoring of a generated site.

Each dimension starts at 10 and loses points per finding. Scores are
deterministic for a given set of artifacts so iteration decisions are
reproducible.
"""

from __future__ import annotations

import logging
import re

from sitesmith.agents.style_designer.theme import contrast_ratio
from sitesmith.industries import resolve_industry
from sitesmith.schemas.pipeline import PipelineState
from sitesmith.schemas.quality import (
    MAX_DIMENSION_SCORE,
    DimensionScore,
    QualityDimension,
    QualityScore,
)
from sitesmith.schemas.sections import SectionType
from sitesmith.schemas.seo import TITLE_MAX_LENGTH
from sitesmith.schemas.site import HOME_PAGE

logger = logging.getLogger(__name__)

WEIGHTS: dict[QualityDimension, float] = {
    QualityDimension.VISUAL_DESIGN: 0.20,
    QualityDimension.STRUCTURE_UX: 0.15,
    QualityDimension.CONTENT_QUALITY: 0.20,
    QualityDimension.CONVERSION_TRUST: 0.15,
    QualityDimension.SEO_FOUNDATIONS: 0.15,
    QualityDimension.ORIGINALITY: 0.15,
}

MIN_SECTIONS = 5
MIN_BODY_WORDS = 12
MIN_DESCRIPTION_LENGTH = 70
GENERIC_CTAS = {"get started", "contact us", "learn more", "submit", "click here", "read more"}

_H1 = re.compile(r"<h1[\s>]", re.IGNORECASE)


class _Scorecard:
    """Accumulates deductions for one dimension."""

    def __init__(self, dimension: QualityDimension) -> None:
        self.dimension = dimension
        self.score = MAX_DIMENSION_SCORE
        self.findings: list[str] = []

    def deduct(self, points: float, finding: str) -> None:
        if points <= 0:
            return
        self.score -= points
        self.findings.append(finding)

    def result(self) -> DimensionScore:
        return DimensionScore(
            dimension=self.dimension,
            score=round(max(0.0, min(MAX_DIMENSION_SCORE, self.score)), 1),
            findings=self.findings,
        )


class QualityAssessor:
    """Scores the assembled site on six weighted dimensions (0-10 each)."""

    name = "Quality Assessor"
    VERSION = "1.2"

    def assess(self, state: PipelineState, *, threshold: float) -> QualityScore:
        if state.website is None:
            raise ValueError("Nothing to assess: the site has not been assembled")

        dimensions = [
            self._visual_design(state),
            self._structure_ux(state),
            self._content_quality(state),
            self._conversion_trust(state),
            self._seo_foundations(state),
            self._originality(state),
        ]
        aggregate = round(sum(WEIGHTS[d.dimension] * d.score for d in dimensions) * 10, 1)
        logger.info(
            "Quality %.1f/100 (threshold %.1f): %s",
            aggregate, threshold,
            ", ".join(f"{d.dimension.value}={d.score}" for d in dimensions),
        )
        return QualityScore(
            dimensions=dimensions,
            aggregate=aggregate,
            threshold=threshold,
            meets_threshold=aggregate >= threshold,
            iteration=state.iteration,
        )

    # -- dimensions -----------------------------------------------------------

    @staticmethod
    def _visual_design(state: PipelineState) -> DimensionScore:
        card = _Scorecard(QualityDimension.VISUAL_DESIGN)
        theme = state.theme
        palette = theme.palette
        text_contrast = contrast_ratio(palette.text, palette.background)
        if text_contrast < 4.5:
            card.deduct(3, f"Body text contrast is {text_contrast:.1f}:1, below the 4.5:1 minimum")
        primary_contrast = contrast_ratio(palette.primary, palette.background)
        if primary_contrast < 3:
            card.deduct(1, f"Primary colour contrast against the background is only {primary_contrast:.1f}:1")
        if not theme.harmonized:
            card.deduct(2, "Theme tokens were derived by fixed ratios instead of being harmonized")
        if theme.fonts.heading == theme.fonts.body:
            card.deduct(0.5, "Heading and body use the same font, so hierarchy relies on size alone")
        images = state.images
        if images and images.images:
            share = images.placeholder_count / len(images.images)
            card.deduct(
                round(3 * share, 2),
                f"{images.placeholder_count} of {len(images.images)} images are placeholders",
            )
        return card.result()

    @staticmethod
    def _structure_ux(state: PipelineState) -> DimensionScore:
        card = _Scorecard(QualityDimension.STRUCTURE_UX)
        plan = state.section_plan
        if not plan.has_type(SectionType.CONTACT):
            card.deduct(2, "No contact section")
        if len(plan.sections) < MIN_SECTIONS:
            card.deduct(1.5, f"Only {len(plan.sections)} sections planned; visitors get little to explore")
        for page in state.website.pages:
            h1_count = len(_H1.findall(page.html))
            if h1_count != 1:
                card.deduct(2, f"Page '{page.title}' has {h1_count} top-level headings instead of one")
            if page.id != HOME_PAGE and len(page.section_keys) == 1:
                card.deduct(0.5, f"Page '{page.title}' holds a single section")
        return card.result()

    @staticmethod
    def _content_quality(state: PipelineState) -> DimensionScore:
        card = _Scorecard(QualityDimension.CONTENT_QUALITY)
        copy = state.copy_bundle
        share = copy.template_share
        templated = sum(1 for e in copy.entries.values() if e.source == "template")
        card.deduct(round(4 * share, 2), f"{templated} of {len(copy)} sections use template copy")
        thin = [e.section_key for e in copy.entries.values() if len(e.body.split()) < MIN_BODY_WORDS]
        if thin:
            card.deduct(min(3.0, 0.5 * len(thin)), f"Thin body copy in: {', '.join(thin)}")
        headings = [e.heading.strip().lower() for e in copy.entries.values()]
        if len(set(headings)) < len(headings):
            card.deduct(1, "Several sections share the same heading")
        hero = [e for e in copy.entries.values() if e.section_type == SectionType.HERO]
        if not hero or not hero[0].heading.strip():
            card.deduct(3, "The hero section has no heading")
        return card.result()

    @staticmethod
    def _conversion_trust(state: PipelineState) -> DimensionScore:
        card = _Scorecard(QualityDimension.CONVERSION_TRUST)
        plan = state.section_plan
        copy = state.copy_bundle
        profile = state.profile
        if not plan.has_type(SectionType.TESTIMONIALS):
            card.deduct(2, "No testimonials or other social proof")
        hero = [e for e in copy.entries.values() if e.section_type == SectionType.HERO]
        if not hero or not hero[0].cta_label:
            card.deduct(2, "The hero has no call to action")
        labels = [e.cta_label for e in copy.entries.values() if e.cta_label]
        if len(labels) < 2:
            card.deduct(1, "Fewer than two calls to action across the site")
        generic = sorted({label for label in labels if label.strip().lower() in GENERIC_CTAS})
        if generic:
            card.deduct(min(1.5, 0.5 * len(generic)), f"Generic call-to-action labels: {', '.join(generic)}")
        if not (profile.contact.phone or profile.contact.email):
            card.deduct(2, "No phone number or email address for visitors to reach the business")
        return card.result()

    @staticmethod
    def _seo_foundations(state: PipelineState) -> DimensionScore:
        card = _Scorecard(QualityDimension.SEO_FOUNDATIONS)
        bundles = list(state.seo.pages.values())
        if not bundles:
            card.deduct(10, "No page has SEO metadata")
            return card.result()
        rules = [b.page_id for b in bundles if b.source == "rules"]
        if rules:
            card.deduct(
                round(2 * len(rules) / len(bundles), 2),
                f"{len(rules)} page(s) use rule-based metadata: {', '.join(rules)}",
            )
        for bundle in bundles:
            if not 20 <= len(bundle.title) <= TITLE_MAX_LENGTH:
                card.deduct(0.5, f"Title of '{bundle.page_id}' is {len(bundle.title)} characters")
            if len(bundle.description) < MIN_DESCRIPTION_LENGTH:
                card.deduct(1, f"Meta description of '{bundle.page_id}' is too short")
        titles = [b.title for b in bundles]
        if len(set(titles)) < len(titles):
            card.deduct(1, "Duplicate page titles")
        if not any(b.open_graph.image for b in bundles):
            card.deduct(0.5, "No Open Graph image for link previews")
        return card.result()

    @staticmethod
    def _originality(state: PipelineState) -> DimensionScore:
        card = _Scorecard(QualityDimension.ORIGINALITY)
        industry = resolve_industry(state.profile.industry)
        copy = state.copy_bundle
        card.deduct(round(3 * copy.template_share, 2), "Template copy reads as generic for the industry")
        hero = [e for e in copy.entries.values() if e.section_type == SectionType.HERO]
        if hero and hero[0].heading in industry.taglines:
            card.deduct(1.5, "The hero heading reuses a stock industry tagline")
        if state.style and state.style.sources == ["lookup"]:
            card.deduct(1, "The palette is the stock industry palette with no brand input")
        images = state.images
        if images and images.images:
            share = images.placeholder_count / len(images.images)
            card.deduct(round(2 * share, 2), "Placeholder imagery is not specific to the business")
        return card.result()
