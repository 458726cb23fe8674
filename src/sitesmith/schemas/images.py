"""Pydantic models for the image plan and generated image assets."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ImagePurpose(str, Enum):
    HERO = "hero"
    SUPPORTING = "supporting"
    BACKGROUND = "background"
    ICON = "icon"
    AVATAR = "avatar"


class Dimensions(BaseModel):
    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


DEFAULT_DIMENSIONS: dict[ImagePurpose, Dimensions] = {
    ImagePurpose.HERO: Dimensions(width=1600, height=900),
    ImagePurpose.SUPPORTING: Dimensions(width=1200, height=800),
    ImagePurpose.BACKGROUND: Dimensions(width=1920, height=1080),
    ImagePurpose.ICON: Dimensions(width=256, height=256),
    ImagePurpose.AVATAR: Dimensions(width=256, height=256),
}


class ImagePlanEntry(BaseModel):
    """One image for one section."""

    section_key: str
    purpose: ImagePurpose
    prompt: str
    dimensions: Dimensions
    alt: str = ""

    @property
    def asset_name(self) -> str:
        return f"{self.section_key}-{self.purpose.value}"


class SupportImage(BaseModel):
    """Icon or avatar attached to an item inside a section."""

    section_key: str
    purpose: ImagePurpose = ImagePurpose.ICON
    label: str
    prompt: str
    dimensions: Dimensions
    alt: str = ""

    @property
    def asset_name(self) -> str:
        slug = "".join(ch if ch.isalnum() else "-" for ch in self.label.lower()).strip("-")
        return f"{self.section_key}-{self.purpose.value}-{slug or 'item'}"


class ImagePlan(BaseModel):
    entries: list[ImagePlanEntry] = []
    support_images: list[SupportImage] = []

    def for_section(self, section_key: str) -> ImagePlanEntry | None:
        for entry in self.entries:
            if entry.section_key == section_key:
                return entry
        return None

    def requests(self) -> list[ImagePlanEntry | SupportImage]:
        """Every image that must be generated, main entries first."""
        return [*self.entries, *self.support_images]


class GeneratedImage(BaseModel):
    """An image attached to a section.

    ``src`` is either a remote URL, a ``data:`` URI placeholder, or a path
    relative to the site root (``images/...``) when ``content`` holds the
    bytes to write.
    """

    section_key: str
    purpose: ImagePurpose
    src: str
    alt: str = ""
    label: str = ""
    placeholder: bool = False
    content: bytes | None = Field(default=None, exclude=True, repr=False)

    @property
    def is_local(self) -> bool:
        return self.content is not None


class ImageSet(BaseModel):
    """Generated assets, one per plan request. Never shorter than the plan."""

    images: list[GeneratedImage] = []

    def main(self, section_key: str) -> GeneratedImage | None:
        for image in self.images:
            if image.section_key == section_key and image.purpose not in (
                ImagePurpose.ICON, ImagePurpose.AVATAR,
            ):
                return image
        return None

    def support(self, section_key: str) -> list[GeneratedImage]:
        return [
            image for image in self.images
            if image.section_key == section_key
            and image.purpose in (ImagePurpose.ICON, ImagePurpose.AVATAR)
        ]

    @property
    def placeholder_count(self) -> int:
        return sum(1 for image in self.images if image.placeholder)
