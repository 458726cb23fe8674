"""Pydantic models for quality assessment and iteration decisions."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from sitesmith.schemas.job import Stage

MAX_DIMENSION_SCORE = 10.0


class QualityDimension(str, Enum):
    VISUAL_DESIGN = "visual_design"
    STRUCTURE_UX = "structure_ux"
    CONTENT_QUALITY = "content_quality"
    CONVERSION_TRUST = "conversion_trust"
    SEO_FOUNDATIONS = "seo_foundations"
    ORIGINALITY = "originality"

    @property
    def label(self) -> str:
        return {
            "visual_design": "Visual design",
            "structure_ux": "Structure & UX",
            "content_quality": "Content quality",
            "conversion_trust": "Conversion & trust",
            "seo_foundations": "SEO foundations",
            "originality": "Originality",
        }[self.value]


class DimensionScore(BaseModel):
    dimension: QualityDimension
    score: float  # 0-10
    findings: list[str] = []

    @property
    def maxed(self) -> bool:
        return self.score >= MAX_DIMENSION_SCORE


class QualityScore(BaseModel):
    """Scores for one GeneratedWebsite snapshot."""

    dimensions: list[DimensionScore]
    aggregate: float  # 0-100
    threshold: float
    meets_threshold: bool
    iteration: int = 0

    def score_for(self, dimension: QualityDimension) -> DimensionScore | None:
        for entry in self.dimensions:
            if entry.dimension == dimension:
                return entry
        return None

    def findings(self) -> list[str]:
        return [f for entry in self.dimensions for f in entry.findings]


class IterationOutcome(str, Enum):
    CONTINUE = "continue"
    MEETS_THRESHOLD = "meets-threshold"
    BUDGET_EXHAUSTED = "budget-exhausted"


class IterationDecision(BaseModel):
    outcome: IterationOutcome
    targets: list[QualityDimension] = []
    stages: list[Stage] = []
    reason: str = ""
