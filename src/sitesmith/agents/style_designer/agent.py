"""Style Designer: base style lookup plus an AI override for unknown niches."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel

from sitesmith.agents.base import BaseAgent, EventCallback, StageOutcome, extract_json, run_with_fallback
from sitesmith.agents.style_designer.prompts import SYSTEM_PROMPT
from sitesmith.industries import IndustryProfile
from sitesmith.schemas.config import BrandPreferences, BusinessProfile
from sitesmith.schemas.style import (
    PALETTE_ROLES,
    FontPairing,
    Palette,
    StyleSystem,
    is_hex_color,
    normalize_hex,
)

logger = logging.getLogger(__name__)

_FONT_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9 ]{0,59}$")


class StyleOverride(BaseModel):
    """Unvalidated palette/typography proposal."""

    palette: dict[str, Any] = {}
    fonts: dict[str, Any] = {}
    notes: str = ""


def is_font_name(value: object) -> bool:
    return isinstance(value, str) and bool(_FONT_NAME.match(value.strip()))


def base_style(industry: IndustryProfile) -> StyleSystem:
    """Deterministic style for an industry profile."""
    return StyleSystem(palette=industry.palette, fonts=industry.fonts, sources=["lookup"])


def merge_style(
    base: StyleSystem,
    *,
    colors: dict[str, Any],
    fonts: dict[str, Any],
    notes: str = "",
    source: str,
) -> tuple[StyleSystem, list[str]]:
    """Merge an override onto ``base``. The override wins only where valid.

    Returns the merged style and the list of fields that were applied.
    """
    palette = base.palette.model_dump()
    font_pair = base.fonts.model_dump()
    applied: list[str] = []

    for role in PALETTE_ROLES:
        value = colors.get(role)
        if value is None:
            continue
        if is_hex_color(value):
            palette[role] = normalize_hex(value)
            applied.append(f"palette.{role}")
        else:
            logger.info("Discarding %s %s value %r (not a hex color)", source, role, value)

    for role in ("heading", "body"):
        value = fonts.get(role)
        if value is None or value == "":
            continue
        if is_font_name(value):
            font_pair[role] = value.strip()
            applied.append(f"fonts.{role}")
        else:
            logger.info("Discarding %s %s font %r", source, role, value)

    if not applied:
        return base, applied
    merged = StyleSystem(
        palette=Palette(**palette),
        fonts=FontPairing(**font_pair),
        notes=notes.strip() or base.notes,
        sources=[*base.sources, source],
    )
    return merged, applied


def apply_brand(style: StyleSystem, brand: BrandPreferences) -> StyleSystem:
    """Explicit brand preferences from the caller take precedence over everything."""
    merged, applied = merge_style(
        style,
        colors=brand.colors,
        fonts={"heading": brand.heading_font, "body": brand.body_font},
        notes=brand.style_notes,
        source="brand",
    )
    if applied:
        logger.info("Applied brand preferences: %s", ", ".join(applied))
    return merged


class StyleDesignerAgent(BaseAgent):
    """Produces the StyleSystem.

    Known industries use the lookup only. Unknown niches ask the model for
    an override that is merged field by field onto the lookup base.
    """

    VERSION = "1.3"

    @property
    def name(self) -> str:
        return "Style Designer"

    def get_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def parse_output(self, raw_text: str) -> StyleOverride:
        data = extract_json(raw_text)
        if not isinstance(data, dict):
            raise ValueError("Style override must be a JSON object")
        return StyleOverride(**data)

    async def design(
        self,
        profile: BusinessProfile,
        industry: IndustryProfile,
        *,
        timeout: float | None,
        on_event: EventCallback | None = None,
    ) -> StageOutcome[StyleSystem]:
        base = base_style(industry)

        if industry.known:
            # No AI override for known industries: the lookup is authoritative.
            return StageOutcome(value=apply_brand(base, profile.brand), used_fallback=True)

        async def primary() -> StyleSystem:
            override = await self._complete(self._build_user_message(profile, base), on_event=on_event)
            merged, applied = merge_style(
                base,
                colors=override.palette,
                fonts=override.fonts,
                notes=override.notes,
                source="ai",
            )
            if not applied:
                raise ValueError("Style override contained no valid fields")
            if on_event:
                on_event(f"Applied AI style fields: {', '.join(applied)}")
            return merged

        outcome = await run_with_fallback(
            self.name, primary, lambda: base, timeout=timeout, on_event=on_event,
        )
        return StageOutcome(
            value=apply_brand(outcome.value, profile.brand),
            used_fallback=outcome.used_fallback,
            error=outcome.error,
        )

    def _build_user_message(self, profile: BusinessProfile, base: StyleSystem) -> str:
        context = {
            "business_name": profile.name,
            "industry": profile.industry,
            "description": profile.description,
            "target_audiences": profile.target_audiences,
            "tone": profile.tone,
            "style_notes": profile.brand.style_notes,
            "base_style": base.model_dump(exclude={"sources"}),
        }
        return f"Design a visual identity for this business:\n\n{json.dumps(context, indent=2)}"
