"""Pipeline state, phase report, and job result models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from sitesmith.schemas.config import BusinessProfile, Tier
from sitesmith.schemas.copy import CopyBundle
from sitesmith.schemas.images import ImagePlan, ImageSet
from sitesmith.schemas.job import JobState
from sitesmith.schemas.quality import QualityScore
from sitesmith.schemas.sections import SectionPlan
from sitesmith.schemas.seo import SEOSet
from sitesmith.schemas.site import GeneratedWebsite, PagePlan
from sitesmith.schemas.style import StyleSystem, Theme


class PipelineState(BaseModel):
    """Artifacts owned by one in-flight job."""

    profile: BusinessProfile
    tier: Tier = Tier.PROFESSIONAL
    industry_id: str = ""
    industry_known: bool = False
    section_plan: SectionPlan | None = None
    page_plan: PagePlan | None = None
    style: StyleSystem | None = None
    theme: Theme | None = None
    image_plan: ImagePlan | None = None
    images: ImageSet | None = None
    copy_bundle: CopyBundle | None = None
    seo: SEOSet | None = None
    website: GeneratedWebsite | None = None
    quality: QualityScore | None = None
    iteration: int = 0
    fallbacks: dict[str, bool] = {}


class PhaseStatus(str, Enum):
    COMPLETED = "completed"
    FALLBACK = "fallback"
    FAILED = "failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


class PhaseRecord(BaseModel):
    number: int
    name: str
    status: PhaseStatus = PhaseStatus.COMPLETED
    started_at: str = ""
    finished_at: str = ""
    duration_s: float = 0.0
    rating: int = 0  # 0-100
    steps: list[str] = []
    analysis: str = ""
    used_fallback: bool = False


class PhaseSummary(BaseModel):
    average_rating: float = 0.0
    best_phase: str = ""
    worst_phase: str = ""
    aggregate_score: float = 0.0
    meets_threshold: bool = False
    outcome: str = ""
    iterations: int = 0
    recommendations: list[str] = []


class PhaseReport(BaseModel):
    job_id: str
    business_name: str
    generated_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    phases: list[PhaseRecord] = []
    summary: PhaseSummary = PhaseSummary()
    quality: QualityScore | None = None


class JobError(BaseModel):
    code: str
    message: str


class JobResult(BaseModel):
    """What the caller receives when a job reaches a terminal state."""

    job_id: str
    status: JobState
    website: GeneratedWebsite | None = None
    report: PhaseReport | None = None
    quality: QualityScore | None = None
    locator: str = ""
    error: JobError | None = None
