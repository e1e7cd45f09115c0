"""Load built-in device profiles from individual JSON files."""

import json
from pathlib import Path


def get_profiles_config() -> list[dict]:
    """Load profiles from device_profiles/*.json directory."""
    profiles_dir = Path(__file__).parent / "device_profiles"
    if not profiles_dir.exists():
        return []

    profiles = []
    for json_file in sorted(profiles_dir.glob("*.json")):
        with open(json_file) as f:
            profiles.append(json.load(f))

    return profiles


def sync_profiles() -> int:
    """Sync built-in profiles from config to database.

    Returns:
        Number of profiles synced.
    """
    from .models import DeviceProfile
    from .serializers import validate_profile_draft

    profiles = get_profiles_config()

    for profile_data in profiles:
        fields = validate_profile_draft(profile_data, check_unique=False)
        existing = DeviceProfile.objects.filter(name__iexact=fields["name"]).first()
        if existing:
            for name, value in fields.items():
                setattr(existing, name, value)
            existing.is_builtin = True
            existing.save()
        else:
            DeviceProfile.objects.create(is_builtin=True, **fields)

    return len(profiles)
