"""Site Assembler: composes pages from the plan, copy, images, theme and SEO.

Shared navigation, header and footer are built once and reused on every
page. The assembler has no AI path; it only renders what upstream stages
produced, so it checks that every section it renders actually exists.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sitesmith.industries import IndustryProfile
from sitesmith.output.site import render_page, render_script, render_stylesheet
from sitesmith.schemas.config import BusinessProfile, Tier
from sitesmith.schemas.copy import CopyBundle, SectionCopy
from sitesmith.schemas.images import GeneratedImage, ImageSet
from sitesmith.schemas.sections import SectionPlan, SectionType
from sitesmith.schemas.seo import SEOSet
from sitesmith.schemas.site import (
    HOME_PAGE,
    GeneratedPage,
    GeneratedWebsite,
    PagePlan,
    PlannedPage,
    SiteMetadata,
)
from sitesmith.schemas.style import Theme

logger = logging.getLogger(__name__)


def _image_view(image: GeneratedImage | None) -> dict[str, str] | None:
    if image is None:
        return None
    return {"src": image.src, "alt": image.alt}


class SiteAssembler:
    """Renders a ``GeneratedWebsite`` from the job's artifacts."""

    name = "Site Assembler"
    VERSION = "1.3"

    def assemble(
        self,
        *,
        profile: BusinessProfile,
        industry: IndustryProfile,
        tier: Tier,
        sections: SectionPlan,
        pages: PagePlan,
        theme: Theme,
        images: ImageSet,
        copy: CopyBundle,
        seo: SEOSet,
        pipeline_version: str,
        module_versions: dict[str, str],
        iteration: int = 0,
    ) -> GeneratedWebsite:
        self._check_coverage(sections, pages, copy, seo)

        generated_at = datetime.now()
        contact_href = self._contact_href(sections, pages)
        site = {
            "name": profile.name,
            "tagline": profile.tagline or (industry.taglines[0] if industry.taglines else ""),
            "location": profile.location,
            "contact": profile.contact.model_dump(),
            "year": generated_at.year,
            "nav_cta": {
                "label": industry.cta_labels[0] if industry.cta_labels else "Get in Touch",
                "href": contact_href,
            },
        }

        rendered: list[GeneratedPage] = []
        for page in pages.pages:
            nav = [
                {"title": p.title, "href": p.filename, "active": p.id == page.id}
                for p in pages.pages
            ]
            views = [
                self._section_view(sections, copy.get(key), images, contact_href)
                for key in page.section_keys
            ]
            html = render_page(
                site=site,
                page={
                    "id": page.id,
                    "title": page.title,
                    "filename": page.filename,
                    "banner": page.id != HOME_PAGE,
                    "subtitle": self._banner_subtitle(page, copy),
                },
                sections=views,
                seo=seo.get(page.id),
                nav=nav,
            )
            rendered.append(GeneratedPage(
                id=page.id,
                title=page.title,
                slug=page.slug,
                filename=page.filename,
                section_keys=list(page.section_keys),
                html=html,
            ))

        metadata = SiteMetadata(
            pipeline_version=pipeline_version,
            module_versions=dict(module_versions),
            business_name=profile.name,
            industry=profile.industry,
            tier=tier.value,
            page_count=len(rendered),
            section_count=len(sections.sections),
            image_count=len(images.images),
            placeholder_count=images.placeholder_count,
            iteration=iteration,
            generated_at=generated_at.isoformat(),
        )
        logger.info(
            "Assembled %d page(s), %d section(s), %d image(s)",
            metadata.page_count, metadata.section_count, metadata.image_count,
        )
        return GeneratedWebsite(
            pages=rendered,
            stylesheet=render_stylesheet(theme),
            script=render_script(),
            images=list(images.images),
            metadata=metadata,
        )

    @staticmethod
    def _check_coverage(sections: SectionPlan, pages: PagePlan, copy: CopyBundle, seo: SEOSet) -> None:
        planned = set(sections.keys())
        placed = pages.all_keys()
        unknown = [k for k in placed if k not in planned]
        if unknown:
            raise ValueError(f"Page plan references unknown section(s): {', '.join(unknown)}")
        missing = planned - set(placed)
        if missing:
            raise ValueError(f"Section(s) not placed on any page: {', '.join(sorted(missing))}")
        if not copy.covers(sections):
            raise ValueError("Copy bundle does not cover the section plan")
        absent = [p.id for p in pages.pages if seo.get(p.id) is None]
        if absent:
            raise ValueError(f"No SEO metadata for page(s): {', '.join(absent)}")

    @staticmethod
    def _contact_href(sections: SectionPlan, pages: PagePlan) -> str:
        contacts = sections.of_type(SectionType.CONTACT)
        if not contacts:
            return "index.html"
        page = pages.page_for(contacts[0].key)
        filename = page.filename if page else "index.html"
        return f"{filename}#{contacts[0].key}"

    @staticmethod
    def _banner_subtitle(page: PlannedPage, copy: CopyBundle) -> str:
        if page.id == HOME_PAGE or not page.section_keys:
            return ""
        first = copy.get(page.section_keys[0])
        return first.subheading if first else ""

    @staticmethod
    def _section_view(
        sections: SectionPlan,
        entry: SectionCopy,
        images: ImageSet,
        contact_href: str,
    ) -> dict[str, Any]:
        section = sections.get(entry.section_key)
        main = images.main(entry.section_key)
        support = images.support(entry.section_key)
        items = []
        for i, item in enumerate(entry.items):
            image = next((img for img in support if img.label == item.title), None)
            if image is None and entry.section_type == SectionType.TESTIMONIALS and i < len(support):
                image = support[i]
            items.append({"title": item.title, "text": item.text, "image": _image_view(image)})
        return {
            "key": entry.section_key,
            "type": entry.section_type.value,
            "variant": section.variant,
            "alignment": entry.alignment,
            "cta_placement": entry.cta_placement,
            "heading": entry.heading,
            "heading_level": entry.heading_level,
            "subheading": entry.subheading,
            "body": entry.body,
            "bullets": entry.bullets,
            "entries": items,
            "cta_label": entry.cta_label,
            "cta_description": entry.cta_description,
            "cta_href": contact_href,
            "image": _image_view(main),
            "image_purpose": main.purpose.value if main else "",
        }
