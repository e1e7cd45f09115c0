"""ROM directory scanner.

Walks a directory tree and imports every ROM it finds. Archives must hold a
single ROM; an archive without any ROM entry is retried as a raw ROM by its
own extension (arcade sets are plain .zip files).
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from django.conf import settings

from .archive import extract_single_rom
from .extensions import is_archive_extension, supported_rom_extensions
from .importer import RomProcessingError, import_rom
from .lookup import LookupService
from .models import ROM, System

logger = logging.getLogger(__name__)

SKIP_UNSUPPORTED = "unsupported_extension"
SKIP_NO_ROM_IN_ARCHIVE = "no_rom_in_archive"
SKIP_ALREADY_CATALOGUED = "already_catalogued"


@dataclass
class ScanResult:
    """Outcome of one scan."""

    processed: int = 0  # Files examined
    added_rom_ids: list[int] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)  # [{"file", "reason"}]
    errors: list[RomProcessingError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def added(self) -> int:
        return len(self.added_rom_ids)

    def as_dict(self) -> dict:
        return {
            "processed": self.processed,
            "added": self.added,
            "added_rom_ids": list(self.added_rom_ids),
            "skipped": len(self.skipped),
            "errors": [e.as_dict() for e in self.errors],
            "cancelled": self.cancelled,
        }


def get_library_root() -> str:
    """Get the default scan root from settings."""
    return os.path.abspath(settings.ROM_LIBRARY_ROOT)


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def _safe_notify(
    progress_callback: Optional[Callable[[dict], None]], data: dict
) -> None:
    if progress_callback is None:
        return
    try:
        progress_callback(data)
    except Exception as e:
        # Progress is best-effort; a failing listener never stops the scan
        logger.debug("Progress callback failed: %s", e)


class DirectoryScanner:
    """Scans one directory tree, one file at a time."""

    def __init__(
        self,
        lookup: Optional[LookupService] = None,
        progress_callback: Optional[Callable[[dict], None]] = None,
        should_abort: Optional[Callable[[], bool]] = None,
    ):
        self.lookup = lookup
        self.progress_callback = progress_callback
        self.should_abort = should_abort
        self.systems = list(System.objects.all())
        self.rom_extensions = supported_rom_extensions(self.systems)

    def scan(self, root_path: str) -> ScanResult:
        """
        Scan a directory recursively.

        Args:
            root_path: Directory to scan

        Returns:
            ScanResult with counts, skips and per-file errors
        """
        root_path = os.path.abspath(root_path)
        logger.info("Starting scan of directory: %s", root_path)
        result = ScanResult()

        if not os.path.isdir(root_path):
            logger.error("Directory not found: %s", root_path)
            result.errors.append(
                RomProcessingError(root_path, f"Directory not found: {root_path}")
            )
            return result

        # Explicit stack instead of recursion; deep trees can't blow the stack
        pending = [root_path]
        while pending:
            directory = pending.pop()
            try:
                entries = sorted(os.scandir(directory), key=lambda e: e.name)
            except OSError as e:
                logger.warning("Cannot list %s: %s", directory, e)
                result.errors.append(RomProcessingError(directory, str(e), e))
                continue

            subdirs = []
            for entry in entries:
                if is_hidden(entry.name):
                    continue
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(entry.path)
                    continue
                if not entry.is_file():
                    continue

                if self.should_abort and self.should_abort():
                    logger.info("Scan of %s cancelled", root_path)
                    result.cancelled = True
                    return result

                result.processed += 1
                self._process_file(entry.path, result)
                _safe_notify(
                    self.progress_callback,
                    {
                        "files_processed": result.processed,
                        "roms_found": result.added,
                        "current_file": entry.path,
                    },
                )

            # Reversed so subdirectories are visited in sorted order
            pending.extend(reversed(subdirs))

        logger.info(
            "Scan complete: processed=%d, added=%d, skipped=%d, errors=%d",
            result.processed,
            result.added,
            len(result.skipped),
            len(result.errors),
        )
        return result

    def _process_file(self, file_path: str, result: ScanResult) -> None:
        filename = os.path.basename(file_path)
        extension = Path(filename).suffix.lower()

        try:
            is_archive = is_archive_extension(extension)
            if not is_archive and extension not in self.rom_extensions:
                logger.debug("Skipped unsupported file: %s", file_path)
                result.skipped.append({"file": file_path, "reason": SKIP_UNSUPPORTED})
                return

            if ROM.objects.filter(file_path=file_path).exists():
                logger.debug("Skipped existing ROM: %s", file_path)
                result.skipped.append(
                    {"file": file_path, "reason": SKIP_ALREADY_CATALOGUED}
                )
                return

            if is_archive:
                extracted = extract_single_rom(file_path, self.rom_extensions)
                if extracted is not None:
                    rom = import_rom(
                        file_path,
                        extracted.logical_filename,
                        extracted.payload,
                        lookup=self.lookup,
                        systems=self.systems,
                    )
                    result.added_rom_ids.append(rom.pk)
                    return
                if extension not in self.rom_extensions:
                    logger.debug("No ROM inside archive: %s", file_path)
                    result.skipped.append(
                        {"file": file_path, "reason": SKIP_NO_ROM_IN_ARCHIVE}
                    )
                    return
                logger.debug(
                    "No ROM inside %s, importing the archive itself", file_path
                )

            payload = Path(file_path).read_bytes()
            rom = import_rom(
                file_path, filename, payload, lookup=self.lookup, systems=self.systems
            )
            result.added_rom_ids.append(rom.pk)
        except RomProcessingError as e:
            logger.warning("Failed to import %s: %s", file_path, e.reason)
            result.errors.append(e)
        except Exception as e:
            logger.warning("Failed to process %s: %s", file_path, e)
            result.errors.append(RomProcessingError(file_path, str(e), e))


def scan_directory(
    base_path: str,
    lookup: Optional[LookupService] = None,
    progress_callback: Optional[Callable[[dict], None]] = None,
    should_abort: Optional[Callable[[], bool]] = None,
) -> ScanResult:
    """
    Scan a directory for ROMs, adding them to the catalog.

    Args:
        base_path: Path to scan recursively
        lookup: Loaded identification database (optional)
        progress_callback: Called with a progress dict after each file
        should_abort: Checked before each file; a True result stops the scan

    Returns:
        ScanResult
    """
    scanner = DirectoryScanner(
        lookup=lookup,
        progress_callback=progress_callback,
        should_abort=should_abort,
    )
    return scanner.scan(base_path)
