"""Catalog queries and user edits."""

import logging
from typing import Iterable, Optional

from django.db.models import Count, Q, Sum

from .models import ROM

logger = logging.getLogger(__name__)

# Fields a user may edit; everything else is owned by import and corrections
EDITABLE_FIELDS = {"display_name", "tags", "favorite", "notes"}

# Tag that also selects ROMs flagged as favorite
FAVORITES_TAG = "favorites"


def find_by_md5(md5: str) -> Optional[ROM]:
    return ROM.objects.filter(md5=md5.lower()).first()


def roms_for_system(system_slug: str):
    return ROM.objects.filter(system__slug=system_slug)


def roms_with_tags(tag_ids: Iterable[str]) -> list[ROM]:
    """
    ROMs carrying any of the given tags, ordered by id.

    JSON containment lookups are not available on every database backend,
    so tags are matched in Python.

    Args:
        tag_ids: Tags to match; empty selects the whole catalog

    Returns:
        List of matching ROMs
    """
    tag_ids = list(tag_ids)
    roms = ROM.objects.select_related("system").order_by("pk")
    if not tag_ids:
        return list(roms)
    return [
        rom
        for rom in roms
        if rom.has_any_tag(tag_ids) or (FAVORITES_TAG in tag_ids and rom.favorite)
    ]


def update_rom(rom_id: int, **changes) -> ROM:
    """
    Apply a user edit to a ROM.

    Raises:
        ValueError: If a field outside EDITABLE_FIELDS is given
        ROM.DoesNotExist: If the ROM is gone
    """
    invalid = set(changes) - EDITABLE_FIELDS
    if invalid:
        raise ValueError(f"Fields not editable: {', '.join(sorted(invalid))}")

    rom = ROM.objects.get(pk=rom_id)
    for name, value in changes.items():
        setattr(rom, name, value)
    rom.save(update_fields=[*changes, "updated_at"])
    return rom


def remove_roms(rom_ids: Iterable[int]) -> int:
    """Delete catalog records. Files on disk are left alone."""
    deleted, _ = ROM.objects.filter(pk__in=list(rom_ids)).delete()
    logger.info("Removed %d ROM(s) from catalog", deleted)
    return deleted


def library_stats() -> dict:
    """Aggregate counts and sizes for the whole catalog."""
    totals = ROM.objects.aggregate(
        total=Count("pk"),
        total_size=Sum("file_size"),
        verified=Count("pk", filter=Q(verified=True)),
        favorites=Count("pk", filter=Q(favorite=True)),
    )
    by_system = (
        ROM.objects.values("system__slug", "system__name")
        .annotate(count=Count("pk"), size=Sum("file_size"))
        .order_by("system__name")
    )
    by_region = (
        ROM.objects.values("region").annotate(count=Count("pk")).order_by("-count")
    )

    return {
        "total": totals["total"],
        "total_size": totals["total_size"] or 0,
        "verified": totals["verified"],
        "favorites": totals["favorites"],
        "systems": [
            {
                "slug": row["system__slug"],
                "name": row["system__name"],
                "count": row["count"],
                "size": row["size"] or 0,
            }
            for row in by_system
        ],
        "regions": {row["region"]: row["count"] for row in by_region},
    }
