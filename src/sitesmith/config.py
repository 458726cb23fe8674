"""YAML request loader: reads request.yml into a GenerationRequest."""

from pathlib import Path

import yaml

from sitesmith.schemas.config import GenerationRequest

_PROFILE_LISTS = ("target_audiences", "services", "competitors")


def load_request(path: str | Path) -> GenerationRequest:
    """Load and validate a generation request file.

    Raises ``FileNotFoundError`` if the path doesn't exist and
    ``pydantic.ValidationError`` if the YAML content is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Request file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if not isinstance(raw, dict):
        raise ValueError(f"Request file must be a YAML mapping, got {type(raw).__name__}")

    profile = raw.get("profile")
    if not isinstance(profile, dict):
        raise ValueError("Request file must contain a 'profile' mapping")

    # YAML loads lists with only commented-out items as None; normalize to empty list.
    # Also strip empty-string or None items from actual lists.
    for key in _PROFILE_LISTS:
        if key in profile:
            if profile[key] is None:
                profile[key] = []
            elif isinstance(profile[key], list):
                profile[key] = [item for item in profile[key] if item]

    if raw.get("pipeline") is None:
        raw.pop("pipeline", None)

    return GenerationRequest(**raw)
