"""Pydantic models for the section planner output."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, model_validator


class SectionType(str, Enum):
    """Renderable section vocabulary."""

    HERO = "hero"
    VALUE_PROPOSITION = "value-proposition"
    SERVICES = "services"
    FEATURES = "features"
    TESTIMONIALS = "testimonials"
    ABOUT = "about"
    TEAM = "team"
    GALLERY = "gallery"
    PORTFOLIO = "portfolio"
    PRICING = "pricing"
    PROCESS = "process"
    FAQ = "faq"
    CTA = "cta"
    CONTACT = "contact"


# Layout variants accepted per section type; the first is the default.
SECTION_VARIANTS: dict[SectionType, list[str]] = {
    SectionType.HERO: ["centered", "split", "full-bleed", "gradient"],
    SectionType.VALUE_PROPOSITION: ["centered", "split"],
    SectionType.SERVICES: ["cards", "list", "split"],
    SectionType.FEATURES: ["grid", "list", "split"],
    SectionType.TESTIMONIALS: ["quotes", "cards"],
    SectionType.ABOUT: ["split", "centered"],
    SectionType.TEAM: ["grid", "cards"],
    SectionType.GALLERY: ["grid", "masonry"],
    SectionType.PORTFOLIO: ["grid", "masonry"],
    SectionType.PRICING: ["tiers", "list"],
    SectionType.PROCESS: ["steps", "timeline"],
    SectionType.FAQ: ["accordion", "list"],
    SectionType.CTA: ["banner", "centered"],
    SectionType.CONTACT: ["form", "split"],
}

IMPORTANCE_LEVELS = ("high", "medium", "low")


class SectionEntry(BaseModel):
    """One planned section."""

    key: str
    type: SectionType
    importance: str = "medium"
    rationale: str = ""
    variant: str = ""

    @model_validator(mode="after")
    def check_variant(self) -> "SectionEntry":
        allowed = SECTION_VARIANTS[self.type]
        if self.variant not in allowed:
            self.variant = allowed[0]
        if self.importance not in IMPORTANCE_LEVELS:
            self.importance = "medium"
        return self


class SectionPlan(BaseModel):
    """Ordered section inventory for the whole site. Keys are unique."""

    sections: list[SectionEntry]
    rationale: str = ""

    @model_validator(mode="after")
    def check_unique_keys(self) -> "SectionPlan":
        keys = [s.key for s in self.sections]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise ValueError(f"Duplicate section keys: {', '.join(duplicates)}")
        return self

    def keys(self) -> list[str]:
        return [s.key for s in self.sections]

    def get(self, key: str) -> SectionEntry | None:
        for section in self.sections:
            if section.key == key:
                return section
        return None

    def of_type(self, section_type: SectionType) -> list[SectionEntry]:
        return [s for s in self.sections if s.type == section_type]

    def has_type(self, section_type: SectionType) -> bool:
        return any(s.type == section_type for s in self.sections)
