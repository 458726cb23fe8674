"""Pydantic models for the style system and the harmonized theme."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")

PALETTE_ROLES = ("primary", "secondary", "accent", "background", "surface", "text")


def is_hex_color(value: object) -> bool:
    """True for ``#rgb`` or ``#rrggbb`` strings."""
    return isinstance(value, str) and bool(_HEX_COLOR.match(value.strip()))


def normalize_hex(value: str) -> str:
    """Expand ``#abc`` to ``#aabbcc`` and upper-case the digits."""
    value = value.strip()
    if len(value) == 4:
        value = "#" + "".join(ch * 2 for ch in value[1:])
    return value.upper()


class Palette(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary: str
    secondary: str
    accent: str
    background: str
    surface: str
    text: str


class FontPairing(BaseModel):
    model_config = ConfigDict(frozen=True)

    heading: str
    body: str


class StyleSystem(BaseModel):
    """Palette and typography before harmonization.

    Only ever replaced through ``merge_style``; ``sources`` records which
    layer supplied the final values (``lookup``, ``ai``, ``brand``).
    """

    model_config = ConfigDict(frozen=True)

    palette: Palette
    fonts: FontPairing
    notes: str = ""
    sources: list[str] = ["lookup"]


class TypeScale(BaseModel):
    model_config = ConfigDict(frozen=True)

    hero: str = "3.5rem"
    h1: str = "2.5rem"
    h2: str = "2rem"
    h3: str = "1.5rem"
    body: str = "1rem"
    small: str = "0.875rem"


class SpacingScale(BaseModel):
    model_config = ConfigDict(frozen=True)

    xs: str = "0.5rem"
    sm: str = "1rem"
    md: str = "1.5rem"
    lg: str = "2rem"
    xl: str = "3rem"


class ShadowScale(BaseModel):
    model_config = ConfigDict(frozen=True)

    level1: str
    level2: str
    level3: str


class Theme(BaseModel):
    """Design tokens every renderer reads from."""

    model_config = ConfigDict(frozen=True)

    palette: Palette
    neutrals: list[str]
    fonts: FontPairing
    type_scale: TypeScale = TypeScale()
    spacing: SpacingScale = SpacingScale()
    shadows: ShadowScale
    radius: str = "8px"
    mood: str = "clean"
    harmonized: bool = True

    def css_variables(self) -> dict[str, str]:
        """Flatten the tokens into CSS custom properties."""
        variables: dict[str, str] = {}
        for role, value in self.palette.model_dump().items():
            variables[f"--color-{role}"] = value
        for i, value in enumerate(self.neutrals, start=1):
            variables[f"--color-neutral-{i}00"] = value
        variables["--font-heading"] = _font_stack(self.fonts.heading)
        variables["--font-body"] = _font_stack(self.fonts.body)
        for name, value in self.type_scale.model_dump().items():
            variables[f"--text-{name}"] = value
        for name, value in self.spacing.model_dump().items():
            variables[f"--space-{name}"] = value
        for name, value in self.shadows.model_dump().items():
            variables[f"--shadow-{name[-1]}"] = value
        variables["--radius"] = self.radius
        return variables


_SERIF_FAMILIES = (
    "playfair", "baskerville", "garamond", "cormorant", "merriweather",
    "lora", "georgia", "serif display",
)


def _font_stack(family: str) -> str:
    lowered = family.lower()
    serif = any(name in lowered for name in _SERIF_FAMILIES) and "sans" not in lowered
    return f"'{family}', {'serif' if serif else 'sans-serif'}"
