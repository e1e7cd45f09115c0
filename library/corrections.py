"""Background correction passes over existing catalog records."""

import logging
import os

from .archive import compute_file_crc32, is_archive_file
from .lookup import LookupService
from .models import ROM
from .parser import extract_region_from_filename

logger = logging.getLogger(__name__)


def redetect_regions() -> dict:
    """
    Re-run region extraction for every ROM.

    Earlier releases matched region codes anywhere in the filename, which
    tagged names like "arkretrn" as Korea.

    Returns:
        dict with "updated" and "unchanged" counts
    """
    updated = 0
    unchanged = 0
    for rom in ROM.objects.all().iterator():
        region = extract_region_from_filename(rom.rom_file_name or rom.file_name)
        if region == rom.region:
            unchanged += 1
            continue
        logger.debug("Region of %s: %s -> %s", rom.file_name, rom.region, region)
        rom.region = region
        rom.save(update_fields=["region", "updated_at"])
        updated += 1

    logger.info("Region re-detection: updated=%d, unchanged=%d", updated, unchanged)
    return {"updated": updated, "unchanged": unchanged}


def recompute_container_digests() -> dict:
    """
    Recompute the stored file CRC32 of archived ROMs from the file on disk.

    Sync verification compares against the archive as copied, so the digest
    must cover the archive rather than the ROM inside it.

    Returns:
        dict with "updated", "unchanged", "missing" and "failed" counts
    """
    updated = 0
    unchanged = 0
    missing = 0
    failed = 0
    for rom in ROM.objects.all().iterator():
        if not is_archive_file(rom.file_path):
            continue
        if not os.path.exists(rom.file_path):
            logger.warning("File missing, skipping CRC32 update: %s", rom.file_path)
            missing += 1
            continue
        try:
            crc32 = compute_file_crc32(rom.file_path)
        except IOError as e:
            logger.warning("Skipping CRC32 update: %s", e)
            failed += 1
            continue
        if crc32 == rom.file_crc32:
            unchanged += 1
            continue
        rom.file_crc32 = crc32
        rom.save(update_fields=["file_crc32", "updated_at"])
        updated += 1

    logger.info(
        "File CRC32 recompute: updated=%d, unchanged=%d, missing=%d, failed=%d",
        updated,
        unchanged,
        missing,
        failed,
    )
    return {
        "updated": updated,
        "unchanged": unchanged,
        "missing": missing,
        "failed": failed,
    }


def reidentify(lookup: LookupService) -> dict:
    """
    Look up unverified ROMs again, e.g. after the hash database was rebuilt.

    Args:
        lookup: Loaded identification database

    Returns:
        dict with "verified" and "unmatched" counts
    """
    verified = 0
    unmatched = 0
    for rom in ROM.objects.filter(verified=False, ra_md5__isnull=False).iterator():
        game = lookup.lookup(rom.ra_md5)
        if game is None:
            unmatched += 1
            continue
        rom.display_name = game.title
        rom.verified = True
        rom.save(update_fields=["display_name", "verified", "updated_at"])
        verified += 1

    logger.info("Re-identification: verified=%d, unmatched=%d", verified, unmatched)
    return {"verified": verified, "unmatched": unmatched}
