"""JSON serialization and validation for device profile import/export."""

from typing import Any, Optional

from django.utils import timezone

from library.system_loader import get_system_codes

from .models import DeviceProfile

EXPORT_VERSION = 1


class ProfileValidationError(Exception):
    """Raised when a profile draft is rejected. Holds every problem found."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid device profile: " + "; ".join(errors))


def export_profile(profile: DeviceProfile) -> dict[str, Any]:
    """Export a profile to a JSON-serializable draft.

    Args:
        profile: DeviceProfile instance to export

    Returns:
        Dictionary accepted by import_profile
    """
    return {
        "name": profile.name,
        "description": profile.description,
        "version": profile.version,
        "exportedAt": timezone.now().isoformat(),
        "romBasePath": profile.rom_base_path,
        "biosBasePath": profile.bios_base_path,
        "artworkConfig": profile.artwork_config,
        "systemMappings": profile.system_mappings,
    }


def _normalize_formats(formats: list) -> list[str]:
    normalized = []
    for fmt in formats:
        fmt = str(fmt).strip().lower()
        if fmt and not fmt.startswith("."):
            fmt = f".{fmt}"
        if fmt and fmt not in normalized:
            normalized.append(fmt)
    return normalized


def validate_profile_draft(
    data: Any, check_unique: bool = True, exclude_pk: Optional[int] = None
) -> dict[str, Any]:
    """Validate a profile draft.

    Args:
        data: Draft dict (as produced by export_profile or uploaded JSON)
        check_unique: Also require the name to be unused (case-insensitive)
        exclude_pk: Profile allowed to hold the name already (for updates)

    Returns:
        Model field values for DeviceProfile

    Raises:
        ProfileValidationError: If the draft is invalid
    """
    if not isinstance(data, dict):
        raise ProfileValidationError(["expected a JSON object"])

    errors = []
    name = str(data.get("name") or "").strip()
    rom_base_path = str(data.get("romBasePath") or "").strip()
    mappings = data.get("systemMappings")

    if not name:
        errors.append("name is required")
    if not rom_base_path:
        errors.append("romBasePath is required")
    if not isinstance(mappings, dict) or not mappings:
        errors.append("systemMappings must map at least one system")
        mappings = {}

    known_codes = get_system_codes()
    system_mappings = {}
    for code, mapping in mappings.items():
        if code not in known_codes:
            errors.append(f"unknown system '{code}'")
            continue
        if not isinstance(mapping, dict):
            errors.append(f"mapping for '{code}' must be an object")
            continue
        folder_name = str(mapping.get("folderName") or "").strip()
        formats = _normalize_formats(mapping.get("supportedFormats") or [])
        if not folder_name:
            errors.append(f"mapping for '{code}' needs a folderName")
        if not formats:
            errors.append(f"mapping for '{code}' needs at least one supported format")
        system_mappings[code] = {"folderName": folder_name, "supportedFormats": formats}

    if name and check_unique:
        clash = DeviceProfile.objects.filter(name__iexact=name)
        if exclude_pk is not None:
            clash = clash.exclude(pk=exclude_pk)
        if clash.exists():
            errors.append(f"a profile named '{name}' already exists")

    if errors:
        raise ProfileValidationError(errors)

    return {
        "name": name,
        "description": str(data.get("description") or ""),
        "version": int(data.get("version") or 1),
        "rom_base_path": rom_base_path,
        "bios_base_path": str(data.get("biosBasePath") or ""),
        "artwork_config": data.get("artworkConfig") or {},
        "system_mappings": system_mappings,
    }


def import_profile(data: dict[str, Any]) -> DeviceProfile:
    """Validate and persist a user profile draft.

    Raises:
        ProfileValidationError: If the draft is invalid or the name is taken
    """
    fields = validate_profile_draft(data)
    return DeviceProfile.objects.create(is_builtin=False, **fields)
