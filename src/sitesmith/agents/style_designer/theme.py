"""Theme Engine: harmonizes a StyleSystem into design tokens.

Pure and deterministic: the same StyleSystem, industry and tone always
yield identical tokens.
"""

from __future__ import annotations

import logging
import re

from sitesmith.agents.base import EventCallback, StageOutcome, run_with_fallback
from sitesmith.schemas.style import Palette, ShadowScale, StyleSystem, Theme, normalize_hex

logger = logging.getLogger(__name__)

VERSION = "1.1"

MOODS = (
    "modern", "luxury", "clean", "nature", "tech",
    "trustworthy", "bold", "minimal", "warm", "cool",
)

_MOOD_HINTS: dict[str, tuple[str, ...]] = {
    "modern": ("modern", "startup", "contemporary", "innovative"),
    "luxury": ("luxury", "elegant", "premium", "exclusive", "aspirational", "upscale", "realestate"),
    "clean": ("clean", "clinical", "simple"),
    "nature": ("nature", "organic", "garden", "eco", "outdoor", "marine", "green", "farm"),
    "tech": ("tech", "software", "saas", "digital", "data", "app", "platform", "cloud"),
    "trustworthy": ("legal", "law", "medical", "health", "finance", "authoritative",
                    "caring", "reassuring", "professional", "reliable", "insurance"),
    "bold": ("bold", "motivational", "energetic", "powerful", "fitness", "gym", "racing"),
    "minimal": ("minimal", "artistic", "photography", "gallery", "studio"),
    "warm": ("warm", "friendly", "inviting", "cozy", "family", "restaurant", "bakery", "cafe"),
    "cool": ("cool", "calm", "relaxing", "serene", "spa", "salon"),
}

MIN_TEXT_CONTRAST = 4.5
_DARK_TEXT = "#111111"
_LIGHT_TEXT = "#F5F5F5"
_NEUTRAL_RATIOS = (0.06, 0.14, 0.28)
_SHADOW_GEOMETRY = (("0 2px 4px", 0.10), ("0 4px 12px", 0.15), ("0 8px 24px", 0.20))


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    value = normalize_hex(value)
    return int(value[1:3], 16), int(value[3:5], 16), int(value[5:7], 16)


def rgb_to_hex(rgb: tuple[float, float, float]) -> str:
    return "#" + "".join(f"{max(0, min(255, round(c))):02X}" for c in rgb)


def relative_luminance(value: str) -> float:
    def channel(c: int) -> float:
        s = c / 255
        return s / 12.92 if s <= 0.03928 else ((s + 0.055) / 1.055) ** 2.4

    r, g, b = hex_to_rgb(value)
    return 0.2126 * channel(r) + 0.7152 * channel(g) + 0.0722 * channel(b)


def contrast_ratio(first: str, second: str) -> float:
    """WCAG contrast ratio between two hex colors (1.0 to 21.0)."""
    a, b = relative_luminance(first), relative_luminance(second)
    lighter, darker = max(a, b), min(a, b)
    return (lighter + 0.05) / (darker + 0.05)


def mix(base: str, other: str, ratio: float) -> str:
    """Blend ``ratio`` of ``other`` into ``base``."""
    b, o = hex_to_rgb(base), hex_to_rgb(other)
    return rgb_to_hex(tuple(bc + (oc - bc) * ratio for bc, oc in zip(b, o)))


def infer_mood(industry: str, tone: str) -> str:
    """Mood label from industry and tone words. Tone counts double."""
    industry_words = set(re.findall(r"[a-z]+", industry.lower()))
    tone_words = set(re.findall(r"[a-z]+", tone.lower()))
    best, best_score = "clean", 0
    for mood in MOODS:
        hints = _MOOD_HINTS[mood]
        score = 2 * len(tone_words.intersection(hints)) + len(industry_words.intersection(hints))
        if score > best_score:
            best, best_score = mood, score
    return best


def _shadows(color: str, strength: float = 1.0) -> ShadowScale:
    r, g, b = hex_to_rgb(color)
    levels = [f"{geometry} rgba({r},{g},{b},{alpha * strength:.2f})" for geometry, alpha in _SHADOW_GEOMETRY]
    return ShadowScale(level1=levels[0], level2=levels[1], level3=levels[2])


def harmonize(style: StyleSystem, *, industry: str, tone: str, radius: str = "8px") -> Theme:
    """Full harmonization pass.

    Text is forced to a readable color when it fails contrast against the
    background; neutrals are blended from background toward text; shadows
    are tinted with the text color.
    """
    palette = style.palette.model_dump()
    palette = {role: normalize_hex(value) for role, value in palette.items()}

    background = palette["background"]
    if contrast_ratio(palette["text"], background) < MIN_TEXT_CONTRAST:
        candidate = max((_DARK_TEXT, _LIGHT_TEXT), key=lambda c: contrast_ratio(c, background))
        logger.info(
            "Text color %s fails contrast on %s; using %s", palette["text"], background, candidate,
        )
        palette["text"] = candidate

    neutrals = [mix(background, palette["text"], ratio) for ratio in _NEUTRAL_RATIOS]
    dark_background = relative_luminance(background) < 0.2

    return Theme(
        palette=Palette(**palette),
        neutrals=neutrals,
        fonts=style.fonts,
        shadows=_shadows("#000000" if dark_background else palette["text"], 2.0 if dark_background else 1.0),
        radius=radius,
        mood=infer_mood(industry, tone),
        harmonized=True,
    )


def fixed_ratio_theme(style: StyleSystem) -> Theme:
    """Tokens derived directly from the StyleSystem with fixed values."""
    return Theme(
        palette=style.palette,
        neutrals=["#F5F5F5", "#E5E5E5", "#D4D4D4"],
        fonts=style.fonts,
        shadows=_shadows("#000000"),
        mood="clean",
        harmonized=False,
    )


class ThemeEngine:
    """Always runs; no AI involved."""

    name = "Theme Engine"
    VERSION = VERSION

    async def derive(
        self,
        style: StyleSystem,
        *,
        industry: str,
        tone: str,
        radius: str = "8px",
        on_event: EventCallback | None = None,
    ) -> StageOutcome[Theme]:
        async def primary() -> Theme:
            return harmonize(style, industry=industry, tone=tone, radius=radius)

        return await run_with_fallback(
            self.name, primary, lambda: fixed_ratio_theme(style), timeout=None, on_event=on_event,
        )
