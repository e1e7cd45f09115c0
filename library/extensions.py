"""Extension categorization and system detection.

A file's system is decided by its extension. Extensions shared by several
systems (".bin", ".iso") need a parent folder alias to break the tie.
"""

from pathlib import Path
from typing import Iterable, Optional

# Compressed extensions that can contain ROMs
COMPRESSED_EXTENSIONS = {".zip", ".7z"}


class UnsupportedExtension(ValueError):
    """No recognized system accepts this file."""

    def __init__(self, filename: str, extension: str, detail: str = ""):
        self.filename = filename
        self.extension = extension
        message = f"Unsupported file extension {extension or '(none)'}: {filename}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


def get_full_extension(filename: str) -> str:
    """Get the lowercase extension of a filename, including the dot."""
    return Path(filename).suffix.lower()


def is_archive_extension(ext: str) -> bool:
    """Check if extension is a supported archive format.

    Args:
        ext: File extension including the dot (e.g., ".zip")

    Returns:
        True if the extension is a supported archive format.
    """
    return ext.lower() in COMPRESSED_EXTENSIONS


def supported_rom_extensions(systems: Iterable) -> set[str]:
    """Every extension accepted by at least one system.

    Args:
        systems: System objects with an extensions attribute

    Returns:
        Set of lowercase extensions
    """
    return {ext.lower() for system in systems for ext in system.extensions}


def build_exclusive_extension_map(systems: Iterable) -> dict:
    """Build map of exclusive extensions to systems.

    Compressed extensions (.zip, .7z) are never exclusive.

    Args:
        systems: System objects with exclusive_extensions attribute

    Returns:
        Dict mapping extension (str) to System object
    """
    exclusive_map = {}

    for system in systems:
        for ext in system.exclusive_extensions or []:
            ext_lower = ext.lower()
            if ext_lower in COMPRESSED_EXTENSIONS:
                continue
            # First system to claim an extension wins
            if ext_lower not in exclusive_map:
                exclusive_map[ext_lower] = system

    return exclusive_map


def match_by_folder(path: Path, systems: Iterable) -> Optional[object]:
    """
    Match system by folder name in path.

    Checks parent folders from the nearest outwards.

    Args:
        path: Path to the file
        systems: Candidate System objects

    Returns:
        Matching System, or None
    """
    systems = list(systems)
    for part in reversed(path.parent.parts):
        part_lower = part.lower()
        for system in systems:
            if part_lower in (f.lower() for f in system.folder_names):
                return system
    return None


def determine_system(filename: str, file_path: str, systems: Iterable):
    """
    Determine the system of a ROM from its logical filename.

    Resolution order:
    1. Exclusive extension
    2. The only system accepting the extension
    3. Parent folder alias among the systems accepting the extension

    Args:
        filename: Logical ROM filename (the entry name for archived ROMs)
        file_path: Path of the file on disk, used for folder context
        systems: All known System objects

    Returns:
        The matching System

    Raises:
        UnsupportedExtension: If no system accepts the extension, or the
            extension is ambiguous and the folder does not decide it
    """
    systems = list(systems)
    ext = get_full_extension(filename)

    exclusive = build_exclusive_extension_map(systems).get(ext)
    if exclusive is not None:
        return exclusive

    candidates = [s for s in systems if ext in (e.lower() for e in s.extensions)]
    if not candidates:
        raise UnsupportedExtension(filename, ext)
    if len(candidates) == 1:
        return candidates[0]

    folder_system = match_by_folder(Path(file_path), candidates)
    if folder_system is not None:
        return folder_system

    raise UnsupportedExtension(
        filename,
        ext,
        "shared by " + ", ".join(s.slug for s in candidates) + "; no folder match",
    )
