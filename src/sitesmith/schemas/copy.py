"""Pydantic models for generated section copy."""

from __future__ import annotations

from pydantic import BaseModel

from sitesmith.schemas.sections import SectionPlan, SectionType


class CopyItem(BaseModel):
    """A titled item inside a section (a service, an FAQ, a testimonial...)."""

    title: str
    text: str = ""


class SectionCopy(BaseModel):
    section_key: str
    section_type: SectionType
    heading: str
    heading_level: int = 2
    subheading: str = ""
    body: str = ""
    bullets: list[str] = []
    items: list[CopyItem] = []
    cta_label: str = ""
    cta_description: str = ""
    alignment: str = "left"
    cta_placement: str = "below"
    source: str = "ai"  # "ai" | "template"


class CopyBundle(BaseModel):
    """Section copy keyed by section key, in plan order."""

    entries: dict[str, SectionCopy] = {}

    def get(self, section_key: str) -> SectionCopy | None:
        return self.entries.get(section_key)

    def __len__(self) -> int:
        return len(self.entries)

    def covers(self, plan: SectionPlan) -> bool:
        """True when every planned section has exactly one entry."""
        return set(self.entries) == set(plan.keys())

    @property
    def template_share(self) -> float:
        if not self.entries:
            return 1.0
        templated = sum(1 for entry in self.entries.values() if entry.source == "template")
        return templated / len(self.entries)
