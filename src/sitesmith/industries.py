"""Known-industry lookup: palettes, typography, page templates, and copy material.

Free-text industries are matched against each profile's keywords on word
boundaries. Anything unmatched resolves to ``GENERAL``, which is flagged as
not known so the style designer may ask for an AI override.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

from sitesmith.schemas.config import Service
from sitesmith.schemas.sections import SectionType as S
from sitesmith.schemas.site import PageTemplate
from sitesmith.schemas.style import FontPairing, Palette


class IndustryProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    keywords: list[str]
    palette: Palette
    fonts: FontPairing
    hero_variant: str = "split"
    radius: str = "8px"
    tone: str = "professional"
    taglines: list[str] = []
    power_words: list[str] = []
    cta_labels: list[str] = []
    default_services: list[Service] = []
    hero_subject: str = ""
    supporting_subject: str = ""
    pages: list[PageTemplate] = []
    known: bool = True


def _svc(*names: str) -> list[Service]:
    return [Service(name=n) for n in names]


_HOME = PageTemplate(
    id="home", title="Home",
    accepts=[S.HERO, S.VALUE_PROPOSITION, S.TESTIMONIALS, S.CTA],
)
_CONTACT = PageTemplate(id="contact", title="Contact", accepts=[S.CONTACT, S.FAQ])
_ABOUT = PageTemplate(id="about", title="About", accepts=[S.ABOUT, S.TEAM, S.GALLERY, S.PORTFOLIO])

DEFAULT_PAGES: list[PageTemplate] = [
    _HOME,
    PageTemplate(id="services", title="Services", accepts=[S.SERVICES, S.FEATURES, S.PROCESS, S.PRICING]),
    _ABOUT,
    _CONTACT,
    PageTemplate(id="faq", title="FAQ", accepts=[S.FAQ]),
]

SAAS_PAGES: list[PageTemplate] = [
    _HOME,
    PageTemplate(id="features", title="Features", accepts=[S.FEATURES, S.SERVICES, S.PROCESS]),
    PageTemplate(id="pricing", title="Pricing", accepts=[S.PRICING, S.FAQ]),
    PageTemplate(id="contact", title="Contact", accepts=[S.CONTACT, S.ABOUT, S.TEAM]),
]

RESTAURANT_PAGES: list[PageTemplate] = [
    _HOME,
    PageTemplate(id="menu", title="Menu", accepts=[S.SERVICES, S.FEATURES, S.PRICING]),
    PageTemplate(id="about", title="Our Story", accepts=[S.ABOUT, S.TEAM, S.GALLERY, S.PORTFOLIO]),
    PageTemplate(id="contact", title="Visit Us", accepts=[S.CONTACT, S.FAQ]),
]

PORTFOLIO_PAGES: list[PageTemplate] = [
    _HOME,
    PageTemplate(id="portfolio", title="Portfolio", accepts=[S.PORTFOLIO, S.GALLERY]),
    PageTemplate(id="services", title="Services", accepts=[S.SERVICES, S.PRICING, S.PROCESS, S.FEATURES]),
    _ABOUT,
    _CONTACT,
]


INDUSTRIES: list[IndustryProfile] = [
    IndustryProfile(
        id="restaurant",
        name="Restaurant",
        keywords=["restaurant", "cafe", "bistro", "dining", "food", "cuisine", "eatery", "catering", "bakery"],
        palette=Palette(primary="#8B4513", secondary="#2F4F4F", accent="#D4AF37",
                        background="#FFF8F0", surface="#FFFFFF", text="#2D2D2D"),
        fonts=FontPairing(heading="Playfair Display", body="Lato"),
        hero_variant="full-bleed",
        radius="4px",
        tone="warm",
        taglines=["Where every meal tells a story", "Crafted with passion, served with love"],
        power_words=["savor", "crafted", "fresh", "seasonal", "artisan", "signature"],
        cta_labels=["Reserve a Table", "View Our Menu", "Book Now"],
        default_services=_svc("Dine-In", "Takeout", "Private Events"),
        hero_subject="elegant restaurant interior with warm ambient lighting and a set table",
        supporting_subject="close-up of fresh seasonal ingredients on a rustic wooden surface",
        pages=RESTAURANT_PAGES,
    ),
    IndustryProfile(
        id="legal",
        name="Legal Services",
        keywords=["law", "law firm", "attorney", "lawyer", "legal", "litigation", "counsel", "solicitor"],
        palette=Palette(primary="#1B365D", secondary="#8B7355", accent="#C9A962",
                        background="#FFFFFF", surface="#F5F3EF", text="#1A1A1A"),
        fonts=FontPairing(heading="Libre Baskerville", body="Source Sans Pro"),
        hero_variant="split",
        radius="2px",
        tone="authoritative",
        taglines=["Experienced counsel when it matters most", "Protecting your rights with integrity"],
        power_words=["advocate", "protect", "expertise", "proven", "strategic", "trusted"],
        cta_labels=["Schedule a Consultation", "Speak with an Attorney", "Get Legal Help"],
        default_services=_svc("Consultations", "Litigation", "Contract Review"),
        hero_subject="modern law office conference room with city view and dark wood furniture",
        supporting_subject="attorney reviewing documents with a client at a desk",
    ),
    IndustryProfile(
        id="saas",
        name="Software & SaaS",
        keywords=["saas", "software", "app", "platform", "tech", "technology", "startup", "cloud", "api"],
        palette=Palette(primary="#6366F1", secondary="#0F172A", accent="#22D3EE",
                        background="#FFFFFF", surface="#F8FAFC", text="#1E293B"),
        fonts=FontPairing(heading="Space Grotesk", body="Inter"),
        hero_variant="gradient",
        radius="12px",
        tone="innovative",
        taglines=["Work smarter, ship faster", "The platform that grows with you"],
        power_words=["seamless", "powerful", "automate", "scale", "streamline", "intelligent"],
        cta_labels=["Start Free Trial", "Get Started", "See a Demo"],
        default_services=_svc("Automation", "Analytics", "Integrations"),
        hero_subject="abstract 3D geometric shapes floating in a soft gradient, modern tech aesthetic",
        supporting_subject="clean product dashboard on a laptop screen in a bright workspace",
        pages=SAAS_PAGES,
    ),
    IndustryProfile(
        id="fitness",
        name="Fitness",
        keywords=["gym", "fitness", "workout", "training", "crossfit", "personal trainer", "yoga", "pilates"],
        palette=Palette(primary="#FF4500", secondary="#1A1A1A", accent="#00C27A",
                        background="#FFFFFF", surface="#F4F4F4", text="#111111"),
        fonts=FontPairing(heading="Oswald", body="Roboto"),
        hero_variant="full-bleed",
        radius="6px",
        tone="motivational",
        taglines=["Stronger every day", "Your transformation starts here"],
        power_words=["transform", "strength", "results", "elite", "breakthrough", "energy"],
        cta_labels=["Claim Your Free Trial", "Join Now", "Book a Session"],
        default_services=_svc("Personal Training", "Group Classes", "Nutrition Coaching"),
        hero_subject="athlete training in a modern gym with dramatic lighting",
        supporting_subject="group fitness class in a bright studio",
    ),
    IndustryProfile(
        id="medical",
        name="Healthcare",
        keywords=["medical", "healthcare", "health", "doctor", "clinic", "dental", "dentist", "physician", "hospital"],
        palette=Palette(primary="#0077B6", secondary="#00B4D8", accent="#48CAE4",
                        background="#FFFFFF", surface="#F1F8FB", text="#1D3557"),
        fonts=FontPairing(heading="Poppins", body="Open Sans"),
        hero_variant="split",
        radius="10px",
        tone="caring",
        taglines=["Compassionate care, close to home", "Your health, our priority"],
        power_words=["care", "trusted", "compassionate", "personalized", "experienced", "wellness"],
        cta_labels=["Book an Appointment", "Schedule a Visit", "Contact Our Team"],
        default_services=_svc("Primary Care", "Preventive Screenings", "Telehealth"),
        hero_subject="friendly doctor consulting with a patient in a bright modern clinic",
        supporting_subject="calm clinic reception area with natural light",
    ),
    IndustryProfile(
        id="realestate",
        name="Real Estate",
        keywords=["real estate", "realtor", "realty", "property", "properties", "homes", "broker", "listings"],
        palette=Palette(primary="#1A1A2E", secondary="#C9A962", accent="#E94560",
                        background="#FAFAFA", surface="#FFFFFF", text="#1A1A1A"),
        fonts=FontPairing(heading="Cormorant Garamond", body="Raleway"),
        hero_variant="full-bleed",
        radius="4px",
        tone="aspirational",
        taglines=["Find the place you'll love to call home", "Local expertise, exceptional results"],
        power_words=["dream home", "exclusive", "prime location", "stunning", "investment", "community"],
        cta_labels=["Find Your Home", "View Listings", "Schedule a Showing"],
        default_services=_svc("Buying", "Selling", "Market Valuations"),
        hero_subject="luxury modern home exterior at twilight with warm interior lights",
        supporting_subject="bright open-plan living room staged for sale",
    ),
    IndustryProfile(
        id="salon",
        name="Salon & Spa",
        keywords=["salon", "spa", "beauty", "hair", "nails", "massage", "skincare", "barber"],
        palette=Palette(primary="#B5838D", secondary="#6D6875", accent="#E5989B",
                        background="#FEFAE0", surface="#FFFFFF", text="#3D405B"),
        fonts=FontPairing(heading="Cormorant Garamond", body="Quicksand"),
        hero_variant="split",
        radius="16px",
        tone="relaxing",
        taglines=["Relax, refresh, renew", "Beauty that feels like you"],
        power_words=["rejuvenate", "pamper", "indulge", "serene", "radiant", "refresh"],
        cta_labels=["Book Your Appointment", "Treat Yourself", "View Services"],
        default_services=_svc("Haircuts & Styling", "Facials", "Massage"),
        hero_subject="serene spa interior with soft lighting, candles and fresh towels",
        supporting_subject="stylist finishing a client's hair in a bright salon",
    ),
    IndustryProfile(
        id="construction",
        name="Construction",
        keywords=["construction", "contractor", "builder", "renovation", "remodeling", "roofing", "plumbing", "electrical"],
        palette=Palette(primary="#F59E0B", secondary="#1F2937", accent="#DC2626",
                        background="#FFFFFF", surface="#F3F4F6", text="#111827"),
        fonts=FontPairing(heading="Oswald", body="Roboto"),
        hero_variant="full-bleed",
        radius="2px",
        tone="reliable",
        taglines=["Built right, built to last", "Quality craftsmanship you can count on"],
        power_words=["built to last", "licensed", "insured", "craftsmanship", "guaranteed", "reliable"],
        cta_labels=["Get a Free Quote", "Request an Estimate", "Start Your Project"],
        default_services=_svc("New Construction", "Renovations", "Repairs"),
        hero_subject="construction crew on a job site with a building frame at golden hour",
        supporting_subject="finished modern kitchen renovation with clean lines",
    ),
    IndustryProfile(
        id="photography",
        name="Photography",
        keywords=["photography", "photographer", "photo", "portrait", "wedding photography", "studio"],
        palette=Palette(primary="#1A1A1A", secondary="#444444", accent="#C9A962",
                        background="#FFFFFF", surface="#F7F7F7", text="#111111"),
        fonts=FontPairing(heading="Cormorant Garamond", body="Montserrat"),
        hero_variant="full-bleed",
        radius="0px",
        tone="artistic",
        taglines=["Moments worth keeping", "Telling your story, one frame at a time"],
        power_words=["capture", "timeless", "artistic", "vision", "authentic", "emotion"],
        cta_labels=["Book a Session", "View Portfolio", "Let's Create"],
        default_services=_svc("Portrait Sessions", "Weddings", "Commercial Shoots"),
        hero_subject="dramatic portrait photograph with artistic studio lighting",
        supporting_subject="photographer behind the camera during an outdoor shoot",
        pages=PORTFOLIO_PAGES,
    ),
]

GENERAL = IndustryProfile(
    id="general",
    name="Business",
    keywords=[],
    palette=Palette(primary="#2563EB", secondary="#1E40AF", accent="#F59E0B",
                    background="#FFFFFF", surface="#F8FAFC", text="#1F2937"),
    fonts=FontPairing(heading="Montserrat", body="Inter"),
    hero_variant="split",
    taglines=["Trusted by clients who expect more", "Solutions built around you"],
    power_words=["trusted", "dedicated", "experienced", "reliable", "quality", "results"],
    cta_labels=["Get Started", "Contact Us", "Request a Quote"],
    default_services=_svc("Consulting", "Implementation", "Support"),
    hero_subject="modern professional office with natural light and a collaborative team",
    supporting_subject="team discussing a project around a bright meeting table",
    known=False,
)

_BY_ID = {industry.id: industry for industry in INDUSTRIES}


def _matches(keyword: str, text: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}\b", text) is not None


def find_industry(industry: str) -> IndustryProfile | None:
    """Return the known profile for a free-text industry, or None.

    Exact id matches win; otherwise the profile with the longest matching
    keyword is chosen so "wedding photography studio" beats "studio".
    """
    text = industry.strip().lower()
    if not text:
        return None
    if text in _BY_ID:
        return _BY_ID[text]

    best: IndustryProfile | None = None
    best_len = 0
    for profile in INDUSTRIES:
        for keyword in [profile.name.lower(), *profile.keywords]:
            if len(keyword) > best_len and _matches(keyword, text):
                best, best_len = profile, len(keyword)
    return best


def resolve_industry(industry: str) -> IndustryProfile:
    """Known profile for ``industry``, or the generic business profile."""
    return find_industry(industry) or GENERAL


def page_templates(profile: IndustryProfile) -> list[PageTemplate]:
    return list(profile.pages or DEFAULT_PAGES)


# Checked in order; the first rule whose keyword occurs in the industry wins.
_SCHEMA_TYPE_RULES: list[tuple[tuple[str, ...], str]] = [
    (("saas", "software", "app", "platform"), "SoftwareApplication"),
    (("nonprofit", "non-profit", "ngo", "foundation", "research"), "Organization"),
    (("law", "legal", "attorney", "lawyer"), "LegalService"),
    (("restaurant", "cafe", "food", "bistro", "catering"), "Restaurant"),
    (("medical", "health", "clinic", "dental", "doctor"), "MedicalBusiness"),
    (("real estate", "realtor", "realty"), "RealEstateAgent"),
    (("education", "school", "academy", "tutoring"), "EducationalOrganization"),
]


def schema_type_for(industry: str) -> str:
    """schema.org ``@type`` for a free-text industry."""
    text = industry.lower()
    for keywords, schema_type in _SCHEMA_TYPE_RULES:
        if any(_matches(keyword, text) for keyword in keywords):
            return schema_type
    return "LocalBusiness"
