"""Image Planner: decides per-section imagery and writes generation prompts."""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel

from sitesmith.agents.base import BaseAgent, EventCallback, StageOutcome, extract_json, run_with_fallback
from sitesmith.agents.image_planner.prompts import SYSTEM_PROMPT
from sitesmith.industries import IndustryProfile
from sitesmith.schemas.config import BusinessProfile, Service
from sitesmith.schemas.images import (
    DEFAULT_DIMENSIONS,
    ImagePlan,
    ImagePlanEntry,
    ImagePurpose,
    SupportImage,
)
from sitesmith.schemas.sections import SectionEntry, SectionPlan, SectionType
from sitesmith.schemas.style import Theme

logger = logging.getLogger(__name__)

# Non-hero sections that conventionally carry an image.
IMAGE_SECTIONS = (
    SectionType.ABOUT,
    SectionType.SERVICES,
    SectionType.FEATURES,
    SectionType.TEAM,
    SectionType.GALLERY,
    SectionType.PORTFOLIO,
)
_PLANNABLE = (ImagePurpose.HERO, ImagePurpose.SUPPORTING, ImagePurpose.BACKGROUND)
MAX_ICONS = 6
TESTIMONIAL_AVATARS = 3


class ProposedImage(BaseModel):
    section_key: str
    purpose: str = "supporting"
    prompt: str = ""
    alt: str = ""


class ImageProposal(BaseModel):
    images: list[ProposedImage]


def services_for(profile: BusinessProfile, industry: IndustryProfile) -> list[Service]:
    """Services shown on the site: the caller's, else the industry defaults."""
    return list(profile.services or industry.default_services)


def style_suffix(profile: BusinessProfile, theme: Theme) -> str:
    return (
        f"{profile.tone} tone, {theme.mood} mood, color accents of {theme.palette.primary} "
        f"and {theme.palette.accent}, high quality, no text, no logos"
    )


def _subject_for(section: SectionEntry, profile: BusinessProfile, industry: IndustryProfile) -> str:
    where = f" in {profile.location}" if profile.location else ""
    if section.type == SectionType.HERO:
        return industry.hero_subject or f"{profile.industry} business{where}, inviting scene"
    if section.type == SectionType.TEAM:
        return f"friendly {profile.industry} team portrait{where}, natural light"
    if section.type in (SectionType.GALLERY, SectionType.PORTFOLIO):
        return f"showcase of finished {profile.industry} work, editorial composition"
    if section.type == SectionType.SERVICES:
        names = ", ".join(s.name for s in services_for(profile, industry)[:3])
        return f"{profile.industry} professionals delivering {names}"
    return industry.supporting_subject or f"{profile.industry} business{where}, candid working scene"


def _alt_for(section: SectionEntry, profile: BusinessProfile) -> str:
    if section.type == SectionType.HERO:
        return f"{profile.name}: {profile.industry.lower()}"
    return f"{profile.name} {section.type.value.replace('-', ' ')}"


def support_images(
    plan: SectionPlan,
    profile: BusinessProfile,
    industry: IndustryProfile,
    theme: Theme,
) -> list[SupportImage]:
    """Icons for each listed service and avatars for testimonials."""
    result: list[SupportImage] = []
    for section in plan.of_type(SectionType.SERVICES):
        for service in services_for(profile, industry)[:MAX_ICONS]:
            result.append(SupportImage(
                section_key=section.key,
                purpose=ImagePurpose.ICON,
                label=service.name,
                prompt=(
                    f"Minimal flat line icon representing {service.name}, "
                    f"single color {theme.palette.primary} on transparent background, no text"
                ),
                dimensions=DEFAULT_DIMENSIONS[ImagePurpose.ICON],
                alt=f"{service.name} icon",
            ))
    for section in plan.of_type(SectionType.TESTIMONIALS):
        for i in range(1, TESTIMONIAL_AVATARS + 1):
            result.append(SupportImage(
                section_key=section.key,
                purpose=ImagePurpose.AVATAR,
                label=f"Reviewer {i}",
                prompt=f"Friendly headshot of a satisfied {profile.industry.lower()} customer, soft background",
                dimensions=DEFAULT_DIMENSIONS[ImagePurpose.AVATAR],
                alt=f"Customer portrait {i}",
            ))
    return result


class ImagePlannerAgent(BaseAgent):
    """Assigns an image purpose and prompt to the sections that need one."""

    VERSION = "1.2"

    @property
    def name(self) -> str:
        return "Image Planner"

    def get_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def parse_output(self, raw_text: str) -> ImageProposal:
        data = extract_json(raw_text)
        if not isinstance(data, dict) or not isinstance(data.get("images"), list):
            raise ValueError("Image proposal must contain an 'images' list")
        return ImageProposal(**data)

    async def plan(
        self,
        profile: BusinessProfile,
        industry: IndustryProfile,
        sections: SectionPlan,
        theme: Theme,
        *,
        include_support: bool,
        timeout: float | None,
        on_event: EventCallback | None = None,
    ) -> StageOutcome[ImagePlan]:
        async def primary() -> ImagePlan:
            proposal = await self._complete(
                self._build_user_message(profile, sections, theme), on_event=on_event,
            )
            return self.normalize(proposal, profile, industry, sections, theme, include_support=include_support)

        return await run_with_fallback(
            self.name,
            primary,
            lambda: self.fallback(profile, industry, sections, theme, include_support=include_support),
            timeout=timeout,
            on_event=on_event,
        )

    def fallback(
        self,
        profile: BusinessProfile,
        industry: IndustryProfile,
        sections: SectionPlan,
        theme: Theme,
        *,
        include_support: bool,
    ) -> ImagePlan:
        """One hero image plus a supporting image per image-bearing section."""
        entries = []
        for section in sections.sections:
            if section.type == SectionType.HERO:
                purpose = ImagePurpose.HERO
            elif section.type in IMAGE_SECTIONS:
                purpose = ImagePurpose.SUPPORTING
            else:
                continue
            entries.append(self._entry(section, purpose, _subject_for(section, profile, industry),
                                       _alt_for(section, profile), profile, theme))
        support = support_images(sections, profile, industry, theme) if include_support else []
        return ImagePlan(entries=entries, support_images=support)

    def normalize(
        self,
        proposal: ImageProposal,
        profile: BusinessProfile,
        industry: IndustryProfile,
        sections: SectionPlan,
        theme: Theme,
        *,
        include_support: bool,
    ) -> ImagePlan:
        """Drop entries for unknown sections and guarantee a hero image."""
        entries: dict[str, ImagePlanEntry] = {}
        for item in proposal.images:
            section = sections.get(item.section_key)
            if section is None:
                logger.info("Image Planner referenced unknown section %r, ignoring", item.section_key)
                continue
            if section.key in entries or not item.prompt.strip():
                continue
            try:
                purpose = ImagePurpose(item.purpose.strip().lower())
            except ValueError:
                purpose = ImagePurpose.SUPPORTING
            if section.type == SectionType.HERO:
                purpose = ImagePurpose.HERO
            elif purpose not in _PLANNABLE or purpose == ImagePurpose.HERO:
                purpose = ImagePurpose.SUPPORTING
            entries[section.key] = self._entry(
                section, purpose, item.prompt.strip(), item.alt.strip() or _alt_for(section, profile),
                profile, theme,
            )

        if not entries:
            raise ValueError("Image proposal referenced no planned sections")

        hero = sections.of_type(SectionType.HERO)[0]
        if hero.key not in entries:
            entries[hero.key] = self._entry(hero, ImagePurpose.HERO, _subject_for(hero, profile, industry),
                                            _alt_for(hero, profile), profile, theme)

        ordered = [entries[s.key] for s in sections.sections if s.key in entries]
        support = support_images(sections, profile, industry, theme) if include_support else []
        return ImagePlan(entries=ordered, support_images=support)

    @staticmethod
    def _entry(
        section: SectionEntry,
        purpose: ImagePurpose,
        subject: str,
        alt: str,
        profile: BusinessProfile,
        theme: Theme,
    ) -> ImagePlanEntry:
        return ImagePlanEntry(
            section_key=section.key,
            purpose=purpose,
            prompt=f"{subject}. {style_suffix(profile, theme)}",
            dimensions=DEFAULT_DIMENSIONS[purpose],
            alt=alt,
        )

    def _build_user_message(self, profile: BusinessProfile, sections: SectionPlan, theme: Theme) -> str:
        context = {
            "business_name": profile.name,
            "industry": profile.industry,
            "location": profile.location,
            "tone": profile.tone,
            "theme_mood": theme.mood,
            "brand_colors": {"primary": theme.palette.primary, "accent": theme.palette.accent},
            "sections": [{"key": s.key, "type": s.type.value} for s in sections.sections],
        }
        return f"Plan the imagery for this website:\n\n{json.dumps(context, indent=2)}"
