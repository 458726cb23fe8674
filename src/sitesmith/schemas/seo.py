"""Pydantic models for per-page SEO metadata."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

TITLE_MAX_LENGTH = 65
DESCRIPTION_MAX_LENGTH = 160
MIN_KEYWORDS = 5
MAX_KEYWORDS = 10


class OpenGraph(BaseModel):
    title: str
    description: str
    type: str = "website"
    url: str = ""
    image: str = ""


class SEOBundle(BaseModel):
    """Metadata for one page. ``slug`` is always derived from the page name."""

    page_id: str
    title: str
    description: str
    keywords: list[str] = []
    open_graph: OpenGraph
    structured_data: dict[str, Any] = {}
    slug: str
    canonical: str = ""
    source: str = "ai"  # "ai" | "rules"


class SEOSet(BaseModel):
    """One bundle per planned page, keyed by page id."""

    pages: dict[str, SEOBundle] = {}

    def get(self, page_id: str) -> SEOBundle | None:
        return self.pages.get(page_id)
