"""Template copy keyed by section type and industry.

Used for any section the model did not (or could not) write. Filled from
the business profile so the text is never generic filler.
"""

from __future__ import annotations

from sitesmith.agents.image_planner.agent import services_for
from sitesmith.industries import IndustryProfile
from sitesmith.schemas.config import BusinessProfile
from sitesmith.schemas.copy import CopyItem, SectionCopy
from sitesmith.schemas.sections import SectionEntry, SectionType

# variant -> (alignment, CTA placement)
_LAYOUT_BY_VARIANT: dict[str, tuple[str, str]] = {
    "centered": ("center", "below"),
    "full-bleed": ("center", "below"),
    "gradient": ("center", "below"),
    "banner": ("center", "inline"),
    "split": ("left", "inline"),
    "form": ("left", "below"),
}


def layout_for(section: SectionEntry) -> tuple[str, str]:
    return _LAYOUT_BY_VARIANT.get(section.variant, ("left", "below"))


def heading_level_for(section: SectionEntry) -> int:
    return 1 if section.type == SectionType.HERO else 2


def _join(names: list[str]) -> str:
    if len(names) <= 1:
        return "".join(names)
    return f"{', '.join(names[:-1])} and {names[-1]}"


def _where(profile: BusinessProfile) -> str:
    return f" in {profile.location}" if profile.location else ""


def _audience(profile: BusinessProfile) -> str:
    return _join(profile.target_audiences) if profile.target_audiences else "clients"


def template_copy(
    section: SectionEntry,
    profile: BusinessProfile,
    industry: IndustryProfile,
) -> SectionCopy:
    """Deterministic copy for one section."""
    name = profile.name
    where = _where(profile)
    services = services_for(profile, industry)
    service_names = [s.name.lower() for s in services]
    words = industry.power_words or ["trusted", "dedicated", "quality"]
    ctas = industry.cta_labels or ["Get Started", "Contact Us"]
    alignment, placement = layout_for(section)

    heading = ""
    subheading = ""
    body = ""
    bullets: list[str] = []
    items: list[CopyItem] = []
    cta_label = ""
    cta_description = ""

    t = section.type
    if t == SectionType.HERO:
        heading = profile.tagline or (industry.taglines[0] if industry.taglines else f"Welcome to {name}")
        subheading = f"{name}, {profile.industry.lower()}{where}."
        body = profile.description or (
            f"{name} offers {_join(service_names[:3])}{where} for {_audience(profile)} "
            f"who expect {words[0]} results and a team that genuinely cares."
        )
        cta_label = ctas[0]
        cta_description = f"Start with {name} today."
    elif t == SectionType.VALUE_PROPOSITION:
        heading = f"Why choose {name}"
        body = (
            f"Choosing {name} means working with a {profile.industry.lower()} team that puts "
            f"{_audience(profile)} first, from the first conversation to the finished result."
        )
        items = [
            CopyItem(title=w.title(), text=f"{w.capitalize()} is at the heart of everything we do at {name}.")
            for w in words[:3]
        ]
    elif t in (SectionType.SERVICES, SectionType.FEATURES):
        heading = "What we offer" if t == SectionType.SERVICES else f"Why {_audience(profile)} love {name}"
        body = (
            f"From {_join(service_names[:3])}, every {name} service is delivered with the same "
            f"attention to detail{where}."
        )
        items = [
            CopyItem(
                title=s.name,
                text=s.description or f"{s.name} delivered by the {name} team, tailored to what you need.",
            )
            for s in services
        ]
    elif t == SectionType.TESTIMONIALS:
        heading = "What our clients say"
        body = f"Our reputation{where} is built one happy client at a time. Here is what people say about {name}."
        items = [
            CopyItem(title="Verified client", text=f"{name} exceeded every expectation. I recommend them to everyone I know."),
            CopyItem(title="Returning customer", text=f"Professional, friendly and {words[0]}. We keep coming back to {name}."),
            CopyItem(title="Local reviewer", text=f"The best {profile.industry.lower()} experience we have had{where}."),
        ]
    elif t == SectionType.ABOUT:
        heading = f"About {name}"
        body = profile.description or (
            f"{name} is a {profile.industry.lower()} business{where} built on {words[0]} work "
            f"and honest relationships with {_audience(profile)}."
        )
        bullets = [w.capitalize() for w in words[1:4]]
    elif t == SectionType.TEAM:
        heading = f"Meet the {name} team"
        body = (
            f"Behind {name} is a team of experienced people who care about {_audience(profile)} "
            f"and take pride in {words[0]} work."
        )
    elif t in (SectionType.GALLERY, SectionType.PORTFOLIO):
        heading = "Our work" if t == SectionType.GALLERY else "Portfolio"
        body = f"A look at recent {name} projects{where}. Every piece reflects the standard our clients expect."
    elif t == SectionType.PRICING:
        heading = "Simple, transparent pricing"
        body = f"Clear options for every need. Contact {name} for a tailored quote with no hidden costs."
        items = [
            CopyItem(title=label, text=f"{label} {service_names[0] if service_names else 'service'} package.")
            for label in ("Essential", "Standard", "Premium")
        ]
        cta_label = ctas[-1]
        cta_description = "Every quote is free and without obligation."
    elif t == SectionType.PROCESS:
        heading = "How it works"
        body = f"Working with {name} is straightforward. Here is what to expect from the first call onward."
        items = [
            CopyItem(title="Get in touch", text=f"Tell {name} what you need and when you need it."),
            CopyItem(title="Plan together", text="We agree on the details, timeline and cost up front."),
            CopyItem(title="Enjoy the result", text=f"We deliver {words[0]} results and follow up to make sure you are happy."),
        ]
    elif t == SectionType.FAQ:
        heading = "Frequently asked questions"
        body = f"Quick answers to the questions {_audience(profile)} ask {name} most often."
        items = [
            CopyItem(title="What services do you offer?", text=f"{name} offers {_join(service_names)}."),
            CopyItem(
                title="Where are you located?",
                text=f"We are based in {profile.location}." if profile.location else "Get in touch and we will point you in the right direction.",
            ),
            CopyItem(title="How do I get started?", text=f"Use the contact form or choose '{ctas[0]}' and we will respond promptly."),
        ]
    elif t == SectionType.CTA:
        heading = f"Ready to get started with {name}?"
        body = f"Join the {_audience(profile)} who already trust {name}. It only takes a minute to reach us."
        cta_label = ctas[0]
        cta_description = "We usually reply within one business day."
    elif t == SectionType.CONTACT:
        heading = "Get in touch"
        body = f"Have a question or ready to book? Send {name} a message and we will get back to you shortly."
        bullets = [line for line in (profile.contact.phone, profile.contact.email,
                                     profile.contact.address or profile.location) if line]
        cta_label = "Send Message"
        cta_description = "We usually reply within one business day."

    return SectionCopy(
        section_key=section.key,
        section_type=section.type,
        heading=heading,
        heading_level=heading_level_for(section),
        subheading=subheading,
        body=body,
        bullets=bullets,
        items=items,
        cta_label=cta_label,
        cta_description=cta_description,
        alignment=alignment,
        cta_placement=placement,
        source="template",
    )
