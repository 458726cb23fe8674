"""Image Generator: bounded-concurrency fan-out over the image plan.

Every planned image yields exactly one asset. A failed generation becomes
a deterministic SVG placeholder tinted with the theme, so rendering never
sees a missing image.
"""

from __future__ import annotations

import asyncio
import base64
import logging

import httpx

from sitesmith.agents.base import CompletionClient, EventCallback, StageOutcome, run_with_fallback
from sitesmith.schemas.images import (
    GeneratedImage,
    ImagePlan,
    ImagePlanEntry,
    ImagePurpose,
    ImageSet,
    SupportImage,
)
from sitesmith.schemas.style import Theme

logger = logging.getLogger(__name__)

ImageRequest = ImagePlanEntry | SupportImage

_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg", "image/webp": "webp", "image/gif": "gif"}


def placeholder_image(request: ImageRequest, theme: Theme) -> GeneratedImage:
    """Inline SVG placeholder sized and colored for the request."""
    w, h = request.dimensions.width, request.dimensions.height
    if request.purpose in (ImagePurpose.ICON, ImagePurpose.AVATAR):
        r = min(w, h) // 2
        shape = (
            f'<rect width="{w}" height="{h}" fill="none"/>'
            f'<circle cx="{w // 2}" cy="{h // 2}" r="{r}" fill="{theme.palette.primary}" opacity="0.18"/>'
            f'<circle cx="{w // 2}" cy="{h // 2}" r="{r // 3}" fill="{theme.palette.primary}"/>'
        )
    else:
        shape = (
            f'<rect width="{w}" height="{h}" fill="{theme.neutrals[0]}"/>'
            f'<rect y="{int(h * 0.62)}" width="{w}" height="{h - int(h * 0.62)}" '
            f'fill="{theme.palette.primary}" opacity="0.16"/>'
            f'<circle cx="{int(w * 0.78)}" cy="{int(h * 0.3)}" r="{int(min(w, h) * 0.09)}" '
            f'fill="{theme.palette.accent}" opacity="0.5"/>'
        )
    svg = f'<svg xmlns="http://www.w3.org/2000/svg" width="{w}" height="{h}" viewBox="0 0 {w} {h}">{shape}</svg>'
    return GeneratedImage(
        section_key=request.section_key,
        purpose=request.purpose,
        src="data:image/svg+xml;base64," + base64.b64encode(svg.encode()).decode(),
        alt=request.alt,
        label=request.label if isinstance(request, SupportImage) else "",
        placeholder=True,
    )


class ImageGenerator:
    """Generates every planned image with at most ``concurrency`` in flight."""

    name = "Image Generator"
    VERSION = "1.2"

    def __init__(
        self,
        client: CompletionClient,
        *,
        concurrency: int = 3,
        timeout: float | None = 120.0,
        download: bool = True,
    ) -> None:
        self.client = client
        self.concurrency = concurrency
        self.timeout = timeout
        self.download = download

    async def generate(
        self,
        plan: ImagePlan,
        theme: Theme,
        *,
        on_event: EventCallback | None = None,
    ) -> StageOutcome[ImageSet]:
        requests = plan.requests()
        slots = asyncio.Semaphore(self.concurrency)

        async with httpx.AsyncClient(timeout=30, follow_redirects=True) as http:
            async def one(request: ImageRequest) -> StageOutcome[GeneratedImage]:
                async with slots:
                    return await run_with_fallback(
                        f"{self.name} ({request.asset_name})",
                        lambda: self._render(request, http),
                        lambda: placeholder_image(request, theme),
                        timeout=self.timeout,
                    )

            outcomes = await asyncio.gather(*(one(r) for r in requests))

        images = ImageSet(images=[o.value for o in outcomes])
        failed = sum(1 for o in outcomes if o.used_fallback)
        if on_event:
            on_event(f"Generated {len(outcomes) - failed}/{len(outcomes)} images, {failed} placeholder(s)")
        errors = sorted({o.error for o in outcomes if o.error})
        return StageOutcome(value=images, used_fallback=failed > 0, error="; ".join(errors))

    async def _render(self, request: ImageRequest, http: httpx.AsyncClient) -> GeneratedImage:
        result = await self.client.generate_image(
            prompt=request.prompt,
            width=request.dimensions.width,
            height=request.dimensions.height,
        )
        label = request.label if isinstance(request, SupportImage) else ""
        image = GeneratedImage(
            section_key=request.section_key,
            purpose=request.purpose,
            src=result.url,
            alt=request.alt,
            label=label,
        )
        if result.b64_json:
            return image.model_copy(update={
                "src": f"images/{request.asset_name}.png",
                "content": base64.b64decode(result.b64_json),
            })
        if self.download and result.url:
            try:
                response = await http.get(result.url)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.warning("Could not download %s, linking remotely: %s", result.url, exc)
                return image
            content_type = response.headers.get("content-type", "").split(";")[0].strip()
            ext = _EXTENSIONS.get(content_type, "png")
            return image.model_copy(update={
                "src": f"images/{request.asset_name}.{ext}",
                "content": response.content,
            })
        return image
