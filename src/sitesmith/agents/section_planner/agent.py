"""Section Planner: decides the site's section inventory and order."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel

from sitesmith.agents.base import BaseAgent, EventCallback, StageOutcome, extract_json, run_with_fallback
from sitesmith.agents.section_planner.prompts import SYSTEM_PROMPT
from sitesmith.industries import IndustryProfile
from sitesmith.schemas.config import BusinessProfile
from sitesmith.schemas.sections import IMPORTANCE_LEVELS, SECTION_VARIANTS, SectionEntry, SectionPlan, SectionType

logger = logging.getLogger(__name__)

_PINNED = (SectionType.HERO, SectionType.CONTACT)
_DROP_ORDER = ("low", "medium", "high")


class ProposedSection(BaseModel):
    type: str
    importance: str = "medium"
    variant: str = ""
    rationale: str = ""


class SectionProposal(BaseModel):
    """The model's raw proposal, before vocabulary checks."""

    sections: list[ProposedSection]
    rationale: str = ""


def fallback_types(profile: BusinessProfile) -> list[SectionType]:
    """Canonical section order used when planning can't be delegated."""
    types = [SectionType.HERO, SectionType.VALUE_PROPOSITION]
    if profile.services:
        types.append(SectionType.SERVICES)
    types += [SectionType.TESTIMONIALS, SectionType.ABOUT, SectionType.CONTACT]
    return types


def _build_plan(
    drafts: list[tuple[SectionType, str, str, str]],
    industry: IndustryProfile,
    rationale: str,
) -> SectionPlan:
    counts: dict[SectionType, int] = {}
    entries: list[SectionEntry] = []
    for section_type, importance, variant, why in drafts:
        counts[section_type] = counts.get(section_type, 0) + 1
        if section_type == SectionType.HERO and variant not in SECTION_VARIANTS[SectionType.HERO]:
            variant = industry.hero_variant
        entries.append(SectionEntry(
            key=f"{section_type.value}-{counts[section_type]}",
            type=section_type,
            importance=importance,
            variant=variant,
            rationale=why,
        ))
    return SectionPlan(sections=entries, rationale=rationale)


def enforce_capacity(
    drafts: list[tuple[SectionType, str, str, str]],
    capacity: int,
) -> list[tuple[SectionType, str, str, str]]:
    """Drop trailing low-importance sections until the plan fits.

    Hero and contact are never dropped.
    """
    drafts = list(drafts)
    while len(drafts) > max(capacity, len(_PINNED)):
        for level in _DROP_ORDER:
            victims = [
                i for i, d in enumerate(drafts)
                if d[1] == level and d[0] not in _PINNED
            ]
            if victims:
                dropped = drafts.pop(victims[-1])
                logger.info("Dropping section %s to fit %d slots", dropped[0].value, capacity)
                break
        else:
            break
    return drafts


class SectionPlannerAgent(BaseAgent):
    """Proposes an ordered, vocabulary-checked section plan."""

    VERSION = "2.1"

    @property
    def name(self) -> str:
        return "Section Planner"

    def get_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def parse_output(self, raw_text: str) -> SectionProposal:
        data = extract_json(raw_text)
        if not isinstance(data, dict) or not data.get("sections"):
            raise ValueError("Section proposal contains no sections")
        return SectionProposal(**data)

    async def plan(
        self,
        profile: BusinessProfile,
        industry: IndustryProfile,
        *,
        capacity: int,
        timeout: float | None,
        on_event: EventCallback | None = None,
    ) -> StageOutcome[SectionPlan]:
        async def primary() -> SectionPlan:
            proposal = await self._complete(self._build_user_message(profile, industry), on_event=on_event)
            return self.normalize(proposal, profile, industry, capacity=capacity)

        return await run_with_fallback(
            self.name,
            primary,
            lambda: self.fallback(profile, industry, capacity=capacity),
            timeout=timeout,
            on_event=on_event,
        )

    def fallback(self, profile: BusinessProfile, industry: IndustryProfile, *, capacity: int) -> SectionPlan:
        drafts = [
            (t, "high" if t in _PINNED else "medium", "", "Canonical section order")
            for t in fallback_types(profile)
        ]
        return _build_plan(enforce_capacity(drafts, capacity), industry, "Canonical section order")

    def normalize(
        self,
        proposal: SectionProposal,
        profile: BusinessProfile,
        industry: IndustryProfile,
        *,
        capacity: int,
    ) -> SectionPlan:
        """Turn a raw proposal into a renderable plan.

        Unknown types are replaced with the next canonical type the plan
        doesn't have yet; hero is moved first and contact guaranteed.
        """
        known = {t.value for t in SectionType}
        proposed = {p.type.strip().lower() for p in proposal.sections}
        spare = [t for t in fallback_types(profile) if t.value not in proposed]

        drafts: list[tuple[SectionType, str, str, str]] = []
        for item in proposal.sections:
            type_name = item.type.strip().lower()
            if type_name in known:
                section_type = SectionType(type_name)
            elif spare:
                section_type = spare.pop(0)
                logger.warning(
                    "Section Planner proposed unknown type %r, substituting %s",
                    item.type, section_type.value,
                )
            else:
                logger.warning("Section Planner proposed unknown type %r, dropping it", item.type)
                continue
            if section_type in _PINNED and any(d[0] == section_type for d in drafts):
                continue
            importance = item.importance.lower() if item.importance.lower() in IMPORTANCE_LEVELS else "medium"
            drafts.append((section_type, importance, item.variant.lower(), item.rationale))

        hero = [d for d in drafts if d[0] == SectionType.HERO]
        drafts = [d for d in drafts if d[0] != SectionType.HERO]
        drafts.insert(0, hero[0] if hero else (SectionType.HERO, "high", "", "Every site opens with a hero"))
        if not any(d[0] == SectionType.CONTACT for d in drafts):
            drafts.append((SectionType.CONTACT, "high", "", "Every site needs a way to get in touch"))

        return _build_plan(enforce_capacity(drafts, capacity), industry, proposal.rationale)

    def _build_user_message(self, profile: BusinessProfile, industry: IndustryProfile) -> str:
        context: dict[str, Any] = {
            "business_name": profile.name,
            "industry": profile.industry,
            "industry_profile": industry.name if industry.known else "unrecognized niche",
            "description": profile.description,
            "location": profile.location,
            "target_audiences": profile.target_audiences,
            "services": profile.service_names,
            "tone": profile.tone,
            "competitors": profile.competitors,
        }
        return (
            "Plan the website sections for this business:\n\n"
            f"{json.dumps(context, indent=2)}"
        )
