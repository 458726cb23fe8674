"""Pydantic models for page planning and the generated website."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sitesmith.schemas.images import GeneratedImage
from sitesmith.schemas.sections import SectionType

HOME_PAGE = "home"


class PageTemplate(BaseModel):
    """An entry of an industry page template."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    accepts: list[SectionType] = []


class PlannedPage(BaseModel):
    id: str
    title: str
    slug: str
    section_keys: list[str] = []

    @property
    def filename(self) -> str:
        return "index.html" if self.id == HOME_PAGE else f"{self.slug}.html"


class PagePlan(BaseModel):
    """Page name to ordered section keys.

    Invariants: home exists and comes first, no page exceeds the cap, and
    each section key lives on exactly one page.
    """

    pages: list[PlannedPage]
    max_sections_per_page: int

    @model_validator(mode="after")
    def check_layout(self) -> "PagePlan":
        if not self.pages or self.pages[0].id != HOME_PAGE:
            raise ValueError("The home page must exist and come first")
        seen: set[str] = set()
        for page in self.pages:
            if len(page.section_keys) > self.max_sections_per_page:
                raise ValueError(
                    f"Page '{page.id}' has {len(page.section_keys)} sections "
                    f"(max {self.max_sections_per_page})"
                )
            for key in page.section_keys:
                if key in seen:
                    raise ValueError(f"Section '{key}' is assigned to more than one page")
                seen.add(key)
        return self

    def page_for(self, section_key: str) -> PlannedPage | None:
        for page in self.pages:
            if section_key in page.section_keys:
                return page
        return None

    def all_keys(self) -> list[str]:
        return [key for page in self.pages for key in page.section_keys]


class GeneratedPage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    slug: str
    filename: str
    section_keys: list[str]
    html: str


class SiteMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    pipeline_version: str
    module_versions: dict[str, str]
    business_name: str
    industry: str
    tier: str
    page_count: int
    section_count: int
    image_count: int
    placeholder_count: int
    iteration: int = 0
    generated_at: str = Field(default_factory=lambda: datetime.now().isoformat())


class GeneratedWebsite(BaseModel):
    """The final artifact. Regeneration builds a new instance."""

    model_config = ConfigDict(frozen=True)

    pages: list[GeneratedPage]
    stylesheet: str
    script: str
    images: list[GeneratedImage] = []
    metadata: SiteMetadata

    def page(self, page_id: str) -> GeneratedPage | None:
        for page in self.pages:
            if page.id == page_id:
                return page
        return None
