"""Copywriter: section-scoped copy in one batched call, templates fill gaps."""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel

from sitesmith.agents.base import BaseAgent, EventCallback, StageOutcome, extract_json, run_with_fallback
from sitesmith.agents.copywriter.prompts import SYSTEM_PROMPT
from sitesmith.agents.copywriter.templates import template_copy
from sitesmith.industries import IndustryProfile
from sitesmith.schemas.config import BusinessProfile
from sitesmith.schemas.copy import CopyBundle, CopyItem, SectionCopy
from sitesmith.schemas.images import ImagePlan
from sitesmith.schemas.sections import SectionPlan
from sitesmith.schemas.style import Theme

logger = logging.getLogger(__name__)


class ProposedCopy(BaseModel):
    section_key: str
    heading: str = ""
    subheading: str = ""
    body: str = ""
    bullets: list[str] = []
    items: list[CopyItem] = []
    cta_label: str = ""
    cta_description: str = ""


class CopyProposal(BaseModel):
    sections: list[ProposedCopy]


def _clean(values: list[str]) -> list[str]:
    return [v.strip() for v in values if v and v.strip()]


def merge_copy(template: SectionCopy, proposed: ProposedCopy) -> SectionCopy:
    """Overlay model copy on the template entry.

    Layout fields (heading level, alignment, CTA placement) always come
    from the template since they follow the section variant.
    """
    items = [i for i in proposed.items if i.title.strip()]
    return template.model_copy(update={
        "heading": proposed.heading.strip(),
        "subheading": proposed.subheading.strip() or template.subheading,
        "body": proposed.body.strip() or template.body,
        "bullets": _clean(proposed.bullets) or template.bullets,
        "items": items or template.items,
        "cta_label": proposed.cta_label.strip() or template.cta_label,
        "cta_description": proposed.cta_description.strip() or template.cta_description,
        "source": "ai",
    })


def template_bundle(plan: SectionPlan, profile: BusinessProfile, industry: IndustryProfile) -> CopyBundle:
    return CopyBundle(entries={
        s.key: template_copy(s, profile, industry) for s in plan.sections
    })


class CopywriterAgent(BaseAgent):
    """Writes heading, body and CTA copy for every planned section."""

    VERSION = "1.4"

    @property
    def name(self) -> str:
        return "Copywriter"

    def get_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def parse_output(self, raw_text: str) -> CopyProposal:
        data = extract_json(raw_text)
        if not isinstance(data, dict) or not isinstance(data.get("sections"), list):
            raise ValueError("Copy proposal must contain a 'sections' list")
        return CopyProposal(**data)

    async def write(
        self,
        profile: BusinessProfile,
        industry: IndustryProfile,
        plan: SectionPlan,
        theme: Theme,
        images: ImagePlan,
        *,
        revision_notes: list[str] | None = None,
        timeout: float | None,
        on_event: EventCallback | None = None,
    ) -> StageOutcome[CopyBundle]:
        async def primary() -> CopyBundle:
            proposal = await self._complete(
                self._build_user_message(profile, plan, theme, images, revision_notes or []),
                on_event=on_event,
            )
            return self.compose(proposal, profile, industry, plan, on_event=on_event)

        return await run_with_fallback(
            self.name,
            primary,
            lambda: template_bundle(plan, profile, industry),
            timeout=timeout,
            on_event=on_event,
        )

    def compose(
        self,
        proposal: CopyProposal,
        profile: BusinessProfile,
        industry: IndustryProfile,
        plan: SectionPlan,
        *,
        on_event: EventCallback | None = None,
    ) -> CopyBundle:
        """One entry per planned section: model copy where usable, else template."""
        proposed: dict[str, ProposedCopy] = {}
        for item in proposal.sections:
            if plan.get(item.section_key) is None:
                logger.info("Copywriter wrote copy for unknown section %r, ignoring", item.section_key)
                continue
            if item.heading.strip():
                proposed.setdefault(item.section_key, item)

        if not proposed:
            raise ValueError("Copy proposal contained no usable sections")

        entries: dict[str, SectionCopy] = {}
        for section in plan.sections:
            template = template_copy(section, profile, industry)
            entries[section.key] = (
                merge_copy(template, proposed[section.key]) if section.key in proposed else template
            )

        missing = len(plan.sections) - len(proposed)
        if missing and on_event:
            on_event(f"Filled {missing} section(s) from templates")
        return CopyBundle(entries=entries)

    def _build_user_message(
        self,
        profile: BusinessProfile,
        plan: SectionPlan,
        theme: Theme,
        images: ImagePlan,
        revision_notes: list[str],
    ) -> str:
        context = {
            "business_name": profile.name,
            "industry": profile.industry,
            "description": profile.description,
            "tagline": profile.tagline,
            "location": profile.location,
            "target_audiences": profile.target_audiences,
            "services": [s.model_dump() for s in profile.services],
            "tone": profile.tone,
            "theme_mood": theme.mood,
            "sections": [
                {
                    "key": s.key,
                    "type": s.type.value,
                    "variant": s.variant,
                    "has_image": bool(images.for_section(s.key)),
                }
                for s in plan.sections
            ],
        }
        parts = [f"Write the copy for this website:\n\n{json.dumps(context, indent=2)}"]
        if revision_notes:
            notes = "\n".join(f"- {n}" for n in revision_notes)
            parts.append(f"## Revision notes\nThe previous draft was reviewed. Address these:\n{notes}")
        return "\n\n".join(parts)
