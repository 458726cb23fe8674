"""SEO Strategist: per-page titles, descriptions, keywords and structured data.

Slugs and canonical URLs are always derived from the page plan, never from
model output, so every page stays routable.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel

from sitesmith.agents.base import BaseAgent, EventCallback, StageOutcome, extract_json, run_with_fallback
from sitesmith.agents.image_planner.agent import services_for
from sitesmith.agents.seo.prompts import SYSTEM_PROMPT
from sitesmith.industries import IndustryProfile, schema_type_for
from sitesmith.schemas.config import BusinessProfile
from sitesmith.schemas.copy import CopyBundle
from sitesmith.schemas.images import ImageSet
from sitesmith.schemas.sections import SectionType
from sitesmith.schemas.seo import (
    DESCRIPTION_MAX_LENGTH,
    MAX_KEYWORDS,
    MIN_KEYWORDS,
    TITLE_MAX_LENGTH,
    OpenGraph,
    SEOBundle,
    SEOSet,
)
from sitesmith.schemas.site import HOME_PAGE, PagePlan, PlannedPage

logger = logging.getLogger(__name__)

_SPACES = re.compile(r"\s+")


def clip(text: str, limit: int) -> str:
    """Collapse whitespace and cut at the last word boundary within ``limit``."""
    text = _SPACES.sub(" ", text).strip()
    if len(text) <= limit:
        return text
    cut = text[:limit + 1]
    cut = cut.rsplit(" ", 1)[0] if " " in cut else text[:limit]
    return cut.rstrip(" ,;:-|")


def canonical_url(base_url: str, page: PlannedPage) -> str:
    if not base_url:
        return page.filename
    return f"{base_url.rstrip('/')}/{page.filename}"


def rule_keywords(profile: BusinessProfile, industry: IndustryProfile, page: PlannedPage) -> list[str]:
    industry_term = profile.industry.lower()
    keywords = [profile.name.lower(), industry_term]
    if profile.location:
        keywords.append(f"{industry_term} {profile.location.lower()}")
        keywords.append(f"{industry_term} near me")
    if page.id != HOME_PAGE:
        keywords.append(f"{profile.name.lower()} {page.title.lower()}")
    keywords += [s.name.lower() for s in services_for(profile, industry)]
    keywords += [f"{industry_term} {w}" for w in ("services", "company")]
    return keywords


def normalize_keywords(proposed: list[str], rules: list[str]) -> list[str]:
    """Lowercase and de-duplicate, then top up from ``rules`` to the minimum."""
    result: list[str] = []
    for keyword in proposed:
        value = _SPACES.sub(" ", str(keyword)).strip().lower()
        if value and value not in result:
            result.append(value)
    result = result[:MAX_KEYWORDS]
    for keyword in rules:
        if len(result) >= MIN_KEYWORDS:
            break
        value = _SPACES.sub(" ", keyword).strip().lower()
        if value and value not in result:
            result.append(value)
    return result


def _page_body(copy: CopyBundle, page: PlannedPage) -> str:
    for key in page.section_keys:
        entry = copy.get(key)
        if entry and entry.body:
            return entry.body
    return ""


def _og_image(images: ImageSet, copy: CopyBundle, base_url: str) -> str:
    hero_keys = [k for k, e in copy.entries.items() if e.section_type == SectionType.HERO]
    hero = images.main(hero_keys[0]) if hero_keys else None
    if hero is None or hero.placeholder:
        return ""
    if hero.is_local and base_url:
        return f"{base_url.rstrip('/')}/{hero.src}"
    return hero.src


def rule_title(profile: BusinessProfile, page: PlannedPage) -> str:
    base = f"{profile.name} | {profile.industry}"
    if page.id == HOME_PAGE:
        return clip(base, TITLE_MAX_LENGTH)
    return clip(f"{page.title} | {base}", TITLE_MAX_LENGTH)


def rule_description(profile: BusinessProfile, industry: IndustryProfile, page: PlannedPage, copy: CopyBundle) -> str:
    where = f" in {profile.location}" if profile.location else ""
    if page.id == HOME_PAGE:
        lead = profile.description or (
            f"{profile.name} is a {profile.industry.lower()} business{where} offering "
            f"{', '.join(s.name.lower() for s in services_for(profile, industry)[:3])}."
        )
    else:
        lead = f"{page.title} at {profile.name}{where}. {_page_body(copy, page)}"
    cta = industry.cta_labels[0] if industry.cta_labels else "Get in touch"
    return clip(f"{lead} {cta} today.", DESCRIPTION_MAX_LENGTH)


def organization_schema(profile: BusinessProfile, url: str) -> dict[str, Any]:
    """Minimal schema.org block used by the rule-based path."""
    data: dict[str, Any] = {"@context": "https://schema.org", "@type": "Organization", "name": profile.name}
    if url:
        data["url"] = url
    return data


def business_schema(profile: BusinessProfile, description: str, url: str, image: str) -> dict[str, Any]:
    data: dict[str, Any] = {
        "@context": "https://schema.org",
        "@type": schema_type_for(profile.industry),
        "name": profile.name,
        "description": description,
    }
    if url:
        data["url"] = url
    if image:
        data["image"] = image
    if profile.contact.phone:
        data["telephone"] = profile.contact.phone
    if profile.contact.email:
        data["email"] = profile.contact.email
    if profile.contact.address:
        data["address"] = {"@type": "PostalAddress", "streetAddress": profile.contact.address}
    if profile.location:
        data["areaServed"] = profile.location
    return data


class ProposedPageSEO(BaseModel):
    page: str
    title: str = ""
    description: str = ""
    keywords: list[str] = []
    og_title: str = ""
    og_description: str = ""


class SEOProposal(BaseModel):
    pages: list[ProposedPageSEO]


class SEOAgent(BaseAgent):
    """Builds one SEO bundle per planned page."""

    VERSION = "1.1"

    @property
    def name(self) -> str:
        return "SEO Strategist"

    def get_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def parse_output(self, raw_text: str) -> SEOProposal:
        data = extract_json(raw_text)
        if not isinstance(data, dict) or not isinstance(data.get("pages"), list):
            raise ValueError("SEO proposal must contain a 'pages' list")
        return SEOProposal(**data)

    async def optimize(
        self,
        profile: BusinessProfile,
        industry: IndustryProfile,
        pages: PagePlan,
        copy: CopyBundle,
        images: ImageSet,
        *,
        base_url: str = "",
        timeout: float | None,
        on_event: EventCallback | None = None,
    ) -> StageOutcome[SEOSet]:
        async def primary() -> SEOSet:
            proposal = await self._complete(self._build_user_message(profile, pages, copy), on_event=on_event)
            return self.compose(proposal, profile, industry, pages, copy, images, base_url=base_url)

        return await run_with_fallback(
            self.name,
            primary,
            lambda: self.fallback(profile, industry, pages, copy, images, base_url=base_url),
            timeout=timeout,
            on_event=on_event,
        )

    def rule_bundle(
        self,
        page: PlannedPage,
        profile: BusinessProfile,
        industry: IndustryProfile,
        copy: CopyBundle,
        images: ImageSet,
        *,
        base_url: str,
    ) -> SEOBundle:
        title = rule_title(profile, page)
        description = rule_description(profile, industry, page, copy)
        url = canonical_url(base_url, page)
        return SEOBundle(
            page_id=page.id,
            title=title,
            description=description,
            keywords=normalize_keywords([], rule_keywords(profile, industry, page)),
            open_graph=OpenGraph(
                title=title, description=description, url=url,
                image=_og_image(images, copy, base_url),
            ),
            structured_data=organization_schema(profile, url),
            slug=page.slug,
            canonical=url,
            source="rules",
        )

    def fallback(
        self,
        profile: BusinessProfile,
        industry: IndustryProfile,
        pages: PagePlan,
        copy: CopyBundle,
        images: ImageSet,
        *,
        base_url: str = "",
    ) -> SEOSet:
        return SEOSet(pages={
            page.id: self.rule_bundle(page, profile, industry, copy, images, base_url=base_url)
            for page in pages.pages
        })

    def compose(
        self,
        proposal: SEOProposal,
        profile: BusinessProfile,
        industry: IndustryProfile,
        pages: PagePlan,
        copy: CopyBundle,
        images: ImageSet,
        *,
        base_url: str = "",
    ) -> SEOSet:
        """Bound and complete the model's metadata; pages it skipped use rules."""
        proposed = {p.page.strip().lower(): p for p in proposal.pages if p.title.strip()}
        if not any(page.id in proposed for page in pages.pages):
            raise ValueError("SEO proposal covered no planned pages")

        result: dict[str, SEOBundle] = {}
        for page in pages.pages:
            item = proposed.get(page.id)
            if item is None:
                result[page.id] = self.rule_bundle(page, profile, industry, copy, images, base_url=base_url)
                continue
            title = clip(item.title, TITLE_MAX_LENGTH)
            description = clip(
                item.description or rule_description(profile, industry, page, copy),
                DESCRIPTION_MAX_LENGTH,
            )
            url = canonical_url(base_url, page)
            image = _og_image(images, copy, base_url)
            result[page.id] = SEOBundle(
                page_id=page.id,
                title=title,
                description=description,
                keywords=normalize_keywords(item.keywords, rule_keywords(profile, industry, page)),
                open_graph=OpenGraph(
                    title=clip(item.og_title or title, TITLE_MAX_LENGTH),
                    description=clip(item.og_description or description, DESCRIPTION_MAX_LENGTH),
                    url=url,
                    image=image,
                ),
                structured_data=business_schema(profile, description, url, image),
                slug=page.slug,
                canonical=url,
                source="ai",
            )
        return SEOSet(pages=result)

    def _build_user_message(self, profile: BusinessProfile, pages: PagePlan, copy: CopyBundle) -> str:
        context = {
            "business_name": profile.name,
            "industry": profile.industry,
            "location": profile.location,
            "description": profile.description,
            "services": profile.service_names,
            "target_audiences": profile.target_audiences,
            "pages": [
                {
                    "page": page.id,
                    "title": page.title,
                    "section_headings": [
                        copy.get(k).heading for k in page.section_keys if copy.get(k)
                    ],
                }
                for page in pages.pages
            ],
        }
        return f"Write the SEO metadata for these pages:\n\n{json.dumps(context, indent=2)}"
