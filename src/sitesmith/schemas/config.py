"""Configuration schema: validates a generation request (request.yml)."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class Service(BaseModel):
    """A service or product the business offers."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""


class ContactInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    phone: str = ""
    email: str = ""
    address: str = ""


class BrandPreferences(BaseModel):
    """Explicit brand choices supplied by the caller.

    ``colors`` maps palette roles (primary, secondary, accent, background,
    surface, text) to hex codes. Invalid values are ignored at merge time.
    """

    model_config = ConfigDict(frozen=True)

    colors: dict[str, str] = {}
    heading_font: str = ""
    body_font: str = ""
    style_notes: str = ""


class BusinessProfile(BaseModel):
    """The business a site is generated for.

    Created once per request and read-only thereafter. ``name`` and
    ``industry`` are mandatory.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = ""
    industry: str = ""
    description: str = ""
    tagline: str = ""
    location: str = ""
    target_audiences: list[str] = []
    services: list[Service] = []
    tone: str = "professional"
    brand: BrandPreferences = BrandPreferences()
    competitors: list[str] = []
    contact: ContactInfo = ContactInfo()

    @field_validator("services", mode="before")
    @classmethod
    def coerce_services(cls, value: Any) -> Any:
        # Plain strings are accepted as service names.
        if value is None:
            return []
        if isinstance(value, list):
            return [{"name": item} if isinstance(item, str) else item for item in value if item]
        return value

    @field_validator("target_audiences", "competitors", mode="before")
    @classmethod
    def coerce_string_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        if isinstance(value, list):
            return [item for item in value if item]
        return value

    @model_validator(mode="after")
    def check_mandatory_fields(self) -> "BusinessProfile":
        missing = [field for field in ("name", "industry") if not getattr(self, field)]
        if missing:
            raise ValueError(
                f"Business profile is missing mandatory field(s): {', '.join(missing)}"
            )
        return self

    @property
    def service_names(self) -> list[str]:
        return [s.name for s in self.services]


class Tier(str, Enum):
    """Package purchased by the caller; bounds page count and features."""

    STARTER = "starter"
    PROFESSIONAL = "professional"
    ENTERPRISE = "enterprise"


class TierLimits(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_pages: int
    max_sections_per_page: int
    support_images: bool


TIER_LIMITS: dict[Tier, TierLimits] = {
    Tier.STARTER: TierLimits(max_pages=3, max_sections_per_page=4, support_images=False),
    Tier.PROFESSIONAL: TierLimits(max_pages=5, max_sections_per_page=4, support_images=True),
    Tier.ENTERPRISE: TierLimits(max_pages=8, max_sections_per_page=5, support_images=True),
}


class PipelineSettings(BaseModel):
    """Tunables for one generation job."""

    # External services
    text_model: str = "gpt-4o"
    image_model: str = "gpt-image-1"
    completion_timeout: float = 60.0  # seconds
    image_timeout: float = 120.0
    sink_timeout: float = 30.0
    image_concurrency: int = 3
    download_images: bool = True

    # Quality loop
    quality_threshold: float = 75.0  # aggregate, 0-100
    dimension_threshold: float = 7.0  # per dimension, 0-10
    iteration_budget: int = 2

    # Layout
    max_sections_per_page: int | None = None  # overrides the tier cap

    # Output
    base_url: str = ""
    output_directory: str = "./output"

    @model_validator(mode="after")
    def check_ranges(self) -> "PipelineSettings":
        if not 0 <= self.quality_threshold <= 100:
            raise ValueError("quality_threshold must be between 0 and 100")
        if not 0 <= self.dimension_threshold <= 10:
            raise ValueError("dimension_threshold must be between 0 and 10")
        if not 0 <= self.iteration_budget <= 10:
            raise ValueError("iteration_budget must be between 0 and 10")
        if self.image_concurrency < 1:
            raise ValueError("image_concurrency must be at least 1")
        if self.max_sections_per_page is not None and self.max_sections_per_page < 2:
            raise ValueError("max_sections_per_page must be at least 2")
        for name in ("completion_timeout", "image_timeout", "sink_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        return self

    def limits_for(self, tier: Tier) -> TierLimits:
        """Tier limits with the per-page override applied."""
        limits = TIER_LIMITS[tier]
        if self.max_sections_per_page is None:
            return limits
        return limits.model_copy(update={"max_sections_per_page": self.max_sections_per_page})


class GenerationRequest(BaseModel):
    """Top-level request loaded from request.yml."""

    profile: BusinessProfile
    tier: Tier = Tier.PROFESSIONAL
    pipeline: PipelineSettings = PipelineSettings()
