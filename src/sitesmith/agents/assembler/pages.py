"""Page planning: industry page set, tier truncation and section distribution."""

from __future__ import annotations

import logging
import re

from sitesmith.industries import IndustryProfile, page_templates
from sitesmith.schemas.config import TierLimits
from sitesmith.schemas.sections import SectionPlan, SectionType
from sitesmith.schemas.site import HOME_PAGE, PagePlan, PageTemplate, PlannedPage

logger = logging.getLogger(__name__)

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lowercase, hyphen-separated slug. Empty input gives ``page``."""
    return _NON_SLUG.sub("-", text.lower()).strip("-") or "page"


def select_pages(industry: IndustryProfile, limits: TierLimits) -> list[PageTemplate]:
    """The industry's page template, truncated to the tier's page limit."""
    templates = page_templates(industry)
    home = [t for t in templates if t.id == HOME_PAGE]
    rest = [t for t in templates if t.id != HOME_PAGE]
    if not home:
        home = [PageTemplate(id=HOME_PAGE, title="Home")]
    return (home + rest)[:max(limits.max_pages, 1)]


def plan_pages(sections: SectionPlan, templates: list[PageTemplate], cap: int) -> PagePlan:
    """Distribute sections over pages in plan order.

    A section goes to the first page that accepts its type, or home. When
    that page is full it spills to the first page with room. The hero
    always lands on home; non-home pages left empty are dropped.
    """
    buckets: dict[str, list[str]] = {t.id: [] for t in templates}
    order = list(buckets)

    for section in sections.sections:
        if section.type == SectionType.HERO:
            preferred = HOME_PAGE
        else:
            preferred = next((t.id for t in templates if section.type in t.accepts), HOME_PAGE)
        target = preferred if len(buckets[preferred]) < cap else next(
            (page_id for page_id in order if len(buckets[page_id]) < cap), None,
        )
        if target is None:
            raise ValueError(f"No page has room for section '{section.key}' (cap {cap})")
        if target != preferred:
            logger.info("Page '%s' is full, placing %s on '%s'", preferred, section.key, target)
        buckets[target].append(section.key)

    pages = [
        PlannedPage(
            id=t.id,
            title=t.title,
            slug="index" if t.id == HOME_PAGE else slugify(t.title),
            section_keys=buckets[t.id],
        )
        for t in templates
        if t.id == HOME_PAGE or buckets[t.id]
    ]
    return PagePlan(pages=pages, max_sections_per_page=cap)
