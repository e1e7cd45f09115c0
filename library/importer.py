"""Import a single ROM payload into the catalog."""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from .extensions import determine_system
from .hashing import compute_hashes
from .lookup import LookupService
from .models import ROM, System
from .parser import clean_display_name, extract_region_from_filename

logger = logging.getLogger(__name__)


class DuplicateRom(Exception):
    """A ROM with the same content digest is already catalogued."""

    def __init__(self, file_path: str, existing: ROM):
        self.file_path = file_path
        self.existing_id = existing.pk
        self.existing_file = existing.file_path
        super().__init__(
            f'ROM "{Path(file_path).name}" already exists '
            f'(duplicate of "{existing.file_name}", id {existing.pk})'
        )


class RomProcessingError(Exception):
    """A file could not be processed. Collected per file by the scanner."""

    def __init__(self, file: str, reason: str, cause: Optional[Exception] = None):
        self.file = file
        self.reason = reason
        self.cause = cause
        super().__init__(f"{file}: {reason}")

    def as_dict(self) -> dict:
        return {
            "file": self.file,
            "reason": self.reason,
            "error_type": type(self.cause).__name__ if self.cause else None,
        }


def import_rom(
    file_path: str,
    logical_filename: str,
    payload: bytes,
    lookup: Optional[LookupService] = None,
    systems: Optional[Iterable[System]] = None,
) -> ROM:
    """
    Catalog one ROM.

    Args:
        file_path: Path of the file on disk (archive or raw ROM)
        logical_filename: ROM filename (the entry name for archived ROMs)
        payload: ROM bytes
        lookup: Loaded identification database, or None to skip identification
        systems: Known systems (loaded from the database if omitted)

    Returns:
        The created ROM record

    Raises:
        RomProcessingError: On any failure, with the underlying error as cause
    """
    try:
        return _import_rom(file_path, logical_filename, payload, lookup, systems)
    except RomProcessingError:
        raise
    except Exception as e:
        raise RomProcessingError(file_path, str(e), e) from e


def _import_rom(
    file_path: str,
    logical_filename: str,
    payload: bytes,
    lookup: Optional[LookupService],
    systems: Optional[Iterable[System]],
) -> ROM:
    if systems is None:
        systems = System.objects.all()
    system = determine_system(logical_filename, file_path, systems)

    hashes = compute_hashes(
        payload,
        container_path=file_path,
        console_id=system.ra_console_id,
        filename=logical_filename,
    )

    game = lookup.lookup(hashes.ra_md5) if lookup and hashes.ra_md5 else None
    if game:
        display_name = game.title
        logger.debug("Identified %s as '%s'", logical_filename, game.title)
    else:
        display_name = clean_display_name(logical_filename)

    region = extract_region_from_filename(logical_filename)

    existing = ROM.objects.filter(md5=hashes.md5).first()
    if existing:
        raise DuplicateRom(file_path, existing)

    rom = ROM.objects.create(
        system=system,
        display_name=display_name,
        region=region,
        file_path=file_path,
        file_name=os.path.basename(file_path),
        rom_file_name=logical_filename,
        file_size=os.path.getsize(file_path),
        md5=hashes.md5,
        file_crc32=hashes.file_crc32,
        ra_md5=hashes.ra_md5,
        verified=game is not None,
    )
    logger.info(
        "Imported %s as '%s' (%s, %s)", file_path, display_name, system.slug, region
    )
    return rom
