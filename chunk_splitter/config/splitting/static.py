"""Static split profile loader. Read-only; no business logic."""

import json
from pathlib import Path

from chunk_splitter.config.splitting.models import SplitProfile

_config_dir = Path(__file__).resolve().parent
_config_path = _config_dir / "static.json"

_cached: dict[str, SplitProfile] | None = None
_active_profile: str | None = None


def _load_raw_data() -> dict:
    """Load raw JSON; used to read both profiles and active."""
    raw = _config_path.read_text(encoding="utf-8")
    return json.loads(raw)


def load_split_profiles() -> dict[str, SplitProfile]:
    """Load split profiles from static.json. Keys are profile names."""
    global _cached
    if _cached is not None:
        return _cached
    data = _load_raw_data()
    profiles = data.get("profiles", {})
    _cached = {k: SplitProfile.model_validate(v) for k, v in profiles.items()}
    return _cached


def get_split_profile(profile_name: str) -> SplitProfile | None:
    """Return split profile by name, or None if missing."""
    return load_split_profiles().get(profile_name)


def get_active_profile_name() -> str:
    """Return the profile name marked as active in static.json. Defaults to 'fast' if missing."""
    global _active_profile
    if _active_profile is not None:
        return _active_profile
    data = _load_raw_data()
    _active_profile = data.get("active", "fast")
    return _active_profile


def resolve_split_profile(profile_name: str, overrides: dict | None = None) -> SplitProfile:
    """
    Resolve a split profile by name ("active" means the profile marked active in static.json)
    and apply non-None overrides on top. Raises ValueError if the profile is missing.
    """
    name = get_active_profile_name() if profile_name == "active" else profile_name
    profile = get_split_profile(name)
    if profile is None:
        raise ValueError(f"Unknown split profile: {profile_name!r}")
    updates = {k: v for k, v in (overrides or {}).items() if v is not None}
    if not updates:
        return profile
    return SplitProfile.model_validate({**profile.model_dump(), **updates})
