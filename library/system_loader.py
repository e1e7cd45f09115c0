"""Load system definitions from config file."""

import json
from functools import lru_cache
from pathlib import Path


@lru_cache(maxsize=1)
def get_systems_config() -> list[dict]:
    """Load systems from JSON config file."""
    config_path = Path(__file__).parent / "systems.json"
    with open(config_path) as f:
        data = json.load(f)
    return data.get("systems", [])


def get_system_codes() -> set[str]:
    """Slugs of every recognized system."""
    return {s["slug"] for s in get_systems_config()}


def sync_systems() -> int:
    """Sync systems from config to database.

    Systems in the database but not in the config are left as-is, since
    catalogued ROMs reference them.

    Returns:
        Number of systems synced
    """
    from .models import System

    systems = get_systems_config()
    for system_data in systems:
        System.objects.update_or_create(
            slug=system_data["slug"],
            defaults={
                "name": system_data["name"],
                "extensions": system_data["extensions"],
                "exclusive_extensions": system_data.get("exclusive_extensions", []),
                "folder_names": system_data["folder_names"],
                "ra_console_id": system_data.get("ra_console_id"),
            },
        )
    return len(systems)
