"""Archive handling for scanning compressed ROMs.

A scanned archive must hold exactly one ROM. The ROM entry is read fully into
memory; any second ROM entry rejects the whole archive.
"""

import binascii
import logging
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import py7zr

logger = logging.getLogger(__name__)

SUPPORTED_ARCHIVE_EXTENSIONS = {".zip", ".7z"}


class ZipSlipError(ValueError):
    """Raised when archive path traversal attack is detected."""

    pass


class ArchiveError(IOError):
    """Base class for archive failures. Carries the archive path and cause."""

    def __init__(
        self, archive_path: str, message: str, cause: Optional[Exception] = None
    ):
        self.archive_path = archive_path
        self.cause = cause
        super().__init__(message)


class ArchiveOpenFailed(ArchiveError):
    """The archive could not be opened (corrupt or unreadable container)."""

    def __init__(self, archive_path: str, cause: Exception):
        super().__init__(
            archive_path, f"Failed to open archive {archive_path}: {cause}", cause
        )


class ArchiveReadFailed(ArchiveError):
    """An entry could not be read from an opened archive."""

    def __init__(self, archive_path: str, entry: str, cause: Exception):
        self.entry = entry
        super().__init__(
            archive_path,
            f"Failed to read '{entry}' from archive {archive_path}: {cause}",
            cause,
        )


class MultipleRomsInArchive(ArchiveError):
    """The archive holds more than one ROM entry."""

    def __init__(self, archive_path: str, first_entry: str, second_entry: str):
        self.first_entry = first_entry
        self.second_entry = second_entry
        super().__init__(
            archive_path,
            f"Archive {archive_path} contains multiple ROMs "
            f"('{first_entry}', '{second_entry}')",
        )


@dataclass
class ExtractedRom:
    """The single ROM found inside an archive."""

    logical_filename: str  # Basename of the entry, e.g. "Tetris (World).gb"
    payload: bytes
    entry_path: str  # Path inside the archive


def _validate_archive_path(internal_path: str, dest_dir: str) -> Path:
    """Validate that an archive internal path doesn't escape the destination directory.

    Prevents ZIP slip attacks where malicious archives contain paths like
    '../../../etc/passwd' that could write files outside the intended directory.

    Args:
        internal_path: The path inside the archive
        dest_dir: The destination directory for extraction

    Returns:
        The resolved safe path

    Raises:
        ZipSlipError: If the path would escape the destination directory
    """
    dest = Path(dest_dir).resolve()
    target = (dest / internal_path).resolve()

    try:
        target.relative_to(dest)
    except ValueError:
        raise ZipSlipError(
            f"Attempted path traversal in archive: '{internal_path}' "
            f"would escape destination '{dest_dir}'"
        )

    return target


def is_archive_file(filename: str) -> bool:
    """
    Check if filename has a supported archive extension.

    Args:
        filename: Filename to check

    Returns:
        True if file has .zip or .7z extension, False otherwise
    """
    return Path(filename).suffix.lower() in SUPPORTED_ARCHIVE_EXTENSIONS


def is_nested_archive(filename: str) -> bool:
    """Check if a filename inside an archive is itself an archive."""
    return is_archive_file(filename)


def is_rom_entry(entry_name: str, rom_extensions: Iterable[str]) -> bool:
    """
    Check if an archive entry looks like a ROM.

    Hidden entries (and anything under a hidden directory such as __MACOSX
    resource forks) and nested archives never count as ROMs.

    Args:
        entry_name: Path of the entry inside the archive
        rom_extensions: Supported ROM extensions (lowercase, with leading dot)

    Returns:
        True if the entry should be treated as a ROM
    """
    parts = Path(entry_name).parts
    if any(part.startswith(".") or part == "__MACOSX" for part in parts):
        return False
    if is_nested_archive(entry_name):
        return False
    return Path(entry_name).suffix.lower() in rom_extensions


def extract_single_rom(
    archive_path: str,
    rom_extensions: Iterable[str],
    archive_kind: Optional[str] = None,
) -> Optional[ExtractedRom]:
    """
    Extract the single ROM held by an archive.

    Args:
        archive_path: Path to .zip or .7z file
        rom_extensions: Supported ROM extensions (lowercase, with leading dot)
        archive_kind: "zip" or "7z"; derived from the file extension if omitted

    Returns:
        ExtractedRom, or None if the archive holds no ROM entry

    Raises:
        MultipleRomsInArchive: If a second ROM entry is found
        ArchiveOpenFailed: If the archive cannot be opened
        ArchiveReadFailed: If an entry cannot be read
        ValueError: If the archive kind is not supported
    """
    kind = (archive_kind or Path(archive_path).suffix).lower().lstrip(".")
    extensions = {ext.lower() for ext in rom_extensions}

    if kind == "zip":
        return _extract_single_from_zip(archive_path, extensions)
    elif kind == "7z":
        return _extract_single_from_7z(archive_path, extensions)
    else:
        raise ValueError(f"Unsupported archive format: {kind}")


def _extract_single_from_zip(
    archive_path: str, extensions: set[str]
) -> Optional[ExtractedRom]:
    try:
        zf = zipfile.ZipFile(archive_path, "r")
    except Exception as e:
        logger.error("Failed to open ZIP archive %s: %s", archive_path, e)
        raise ArchiveOpenFailed(archive_path, e) from e

    found: Optional[ExtractedRom] = None
    with zf:
        for info in zf.infolist():
            if info.is_dir() or not is_rom_entry(info.filename, extensions):
                continue
            if found is not None:
                raise MultipleRomsInArchive(
                    archive_path, found.entry_path, info.filename
                )
            try:
                payload = zf.read(info)
            except Exception as e:
                logger.error(
                    "Failed to read %s from ZIP archive %s: %s",
                    info.filename,
                    archive_path,
                    e,
                )
                raise ArchiveReadFailed(archive_path, info.filename, e) from e
            found = ExtractedRom(
                logical_filename=Path(info.filename).name,
                payload=payload,
                entry_path=info.filename,
            )
    return found


def _extract_single_from_7z(
    archive_path: str, extensions: set[str]
) -> Optional[ExtractedRom]:
    # py7zr only extracts to directories; the temp dir goes away on every exit
    with tempfile.TemporaryDirectory(prefix="romdock-7z-") as temp_dir:
        try:
            szf = py7zr.SevenZipFile(archive_path, mode="r")
        except Exception as e:
            logger.error("Failed to open 7z archive %s: %s", archive_path, e)
            raise ArchiveOpenFailed(archive_path, e) from e

        found: Optional[ExtractedRom] = None
        with szf:
            try:
                entries = szf.list()
            except Exception as e:
                raise ArchiveOpenFailed(archive_path, e) from e

            for info in entries:
                if info.is_directory or not is_rom_entry(info.filename, extensions):
                    continue
                if found is not None:
                    raise MultipleRomsInArchive(
                        archive_path, found.entry_path, info.filename
                    )
                try:
                    target = _validate_archive_path(info.filename, temp_dir)
                    szf.extract(path=temp_dir, targets=[info.filename])
                    payload = target.read_bytes()
                except Exception as e:
                    logger.error(
                        "Failed to read %s from 7z archive %s: %s",
                        info.filename,
                        archive_path,
                        e,
                    )
                    raise ArchiveReadFailed(archive_path, info.filename, e) from e
                found = ExtractedRom(
                    logical_filename=Path(info.filename).name,
                    payload=payload,
                    entry_path=info.filename,
                )
        return found


def compute_file_crc32(file_path: str) -> str:
    """
    Compute CRC32 hash of a file.

    Args:
        file_path: Path to the file

    Returns:
        CRC32 hash as 8-character lowercase hex string

    Raises:
        IOError: If file cannot be read
    """
    try:
        crc = 0
        with open(file_path, "rb") as f:
            while True:
                chunk = f.read(65536)  # 64KB chunks
                if not chunk:
                    break
                crc = binascii.crc32(chunk, crc)
        return format(crc & 0xFFFFFFFF, "08x")
    except Exception as e:
        raise IOError(f"Failed to compute CRC32 for {file_path}: {e}") from e
