"""Static site renderer: page markup, the shared stylesheet and script."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from sitesmith.schemas.seo import SEOBundle
from sitesmith.schemas.style import Theme

_TEMPLATE_DIR = Path(__file__).parent / "templates"


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "html.j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_stylesheet(theme: Theme) -> str:
    """Shared CSS. Every colour, font and size comes from the theme tokens."""
    template = _environment().get_template("styles.css.j2")
    return template.render(variables=theme.css_variables(), mood=theme.mood)


def render_script() -> str:
    return _environment().get_template("app.js").render()


def render_page(
    *,
    site: dict[str, Any],
    page: dict[str, Any],
    sections: list[dict[str, Any]],
    seo: SEOBundle,
    nav: list[dict[str, Any]],
) -> str:
    """Render one page.

    ``site`` carries the cross-page singletons (name, contact, footer and
    nav CTA), ``sections`` the per-section view models in page order.
    """
    template = _environment().get_template("page.html.j2")
    return template.render(
        site=site,
        page=page,
        sections=sections,
        seo=seo.model_dump(),
        nav=nav,
    )
