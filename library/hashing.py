"""ROM hashing: identification, content and container digests.

The identification digest reproduces the RetroAchievements hashing scheme,
which normalizes each console's ROM layout before taking an MD5. The content
digest is a plain MD5 of the ROM payload and the container digest is a CRC32
of the file as stored on disk.
"""

import hashlib
import logging
import struct
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Callable, Optional

from .archive import compute_file_crc32

logger = logging.getLogger(__name__)


class ConsoleId(IntEnum):
    """RetroAchievements console identifiers."""

    GENESIS = 1
    N64 = 2
    SNES = 3
    GB = 4
    GBA = 5
    GBC = 6
    NES = 7
    SMS = 11
    LYNX = 13
    NGP = 14
    GAME_GEAR = 15
    NDS = 18
    ATARI_2600 = 25
    ARCADE = 27
    VIRTUAL_BOY = 28
    PSP = 41
    ATARI_7800 = 51


class MalformedRom(ValueError):
    """Payload is too small for the declared console format."""

    def __init__(self, console: str, minimum_size: int, actual_size: int):
        self.console = console
        self.minimum_size = minimum_size
        self.actual_size = actual_size
        super().__init__(
            f"Malformed {console} ROM: expected at least {minimum_size} bytes, "
            f"got {actual_size}"
        )


@dataclass(frozen=True)
class IdentifyResult:
    """Identification digest plus an optional note on how it was derived."""

    digest: str
    note: Optional[str] = None


@dataclass(frozen=True)
class HashSet:
    """All digests computed for one imported ROM."""

    ra_md5: Optional[str]  # identification digest, None for unknown consoles
    md5: str  # content digest of the ROM payload
    file_crc32: str  # container digest of the file on disk


def _md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


# Header-stripping consoles
NES_MAGIC = b"NES\x1a"
NES_HEADER_SIZE = 16

LYNX_MAGIC = b"LYNX"
LYNX_HEADER_SIZE = 64

ATARI_7800_MAGIC = b"\x01ATARI7800"
ATARI_7800_HEADER_SIZE = 128

# Copier header detected by size modulo
SNES_HEADER_SIZE = 512
SNES_HEADER_MODULO = 1024

# N64 byte orders, identified by the first four bytes
N64_Z64_MAGIC = b"\x80\x37\x12\x40"  # big-endian, canonical
N64_V64_MAGIC = b"\x37\x80\x40\x12"  # byte-swapped
N64_N64_MAGIC = b"\x40\x12\x37\x80"  # word-swapped (little-endian)

# NDS header layout
NDS_HEADER_SIZE = 0x160
NDS_ICON_OFFSET_FIELD = 0x68
NDS_ICON_SIZE = 0x840
NDS_ARM9_OFFSET_FIELD = 0x20
NDS_ARM9_SIZE_FIELD = 0x2C
NDS_ARM7_OFFSET_FIELD = 0x30
NDS_ARM7_SIZE_FIELD = 0x3C


def _hash_nes(payload: bytes, filename: str) -> IdentifyResult:
    if len(payload) >= NES_HEADER_SIZE and payload[:4] == NES_MAGIC:
        return IdentifyResult(
            _md5(payload[NES_HEADER_SIZE:]), "skipped 16B iNES header"
        )
    return IdentifyResult(_md5(payload))


def _hash_lynx(payload: bytes, filename: str) -> IdentifyResult:
    if len(payload) > LYNX_HEADER_SIZE and payload[:4] == LYNX_MAGIC:
        return IdentifyResult(
            _md5(payload[LYNX_HEADER_SIZE:]), "skipped 64B Atari Lynx header"
        )
    return IdentifyResult(_md5(payload))


def _hash_atari_7800(payload: bytes, filename: str) -> IdentifyResult:
    if (
        len(payload) > ATARI_7800_HEADER_SIZE
        and payload[: len(ATARI_7800_MAGIC)] == ATARI_7800_MAGIC
    ):
        return IdentifyResult(
            _md5(payload[ATARI_7800_HEADER_SIZE:]), "skipped 128B Atari 7800 header"
        )
    return IdentifyResult(_md5(payload))


def _hash_snes(payload: bytes, filename: str) -> IdentifyResult:
    if len(payload) % SNES_HEADER_MODULO == SNES_HEADER_SIZE:
        return IdentifyResult(_md5(payload[SNES_HEADER_SIZE:]), "skipped 512B header")
    return IdentifyResult(_md5(payload))


def _zero_pad(payload: bytes, width: int) -> bytes:
    return payload + b"\x00" * (-len(payload) % width)


def _swap_pairs(payload: bytes) -> bytes:
    """Swap every pair of bytes: [A B] -> [B A].

    A partial trailing group is swapped as if zero-padded, then truncated.
    """
    padded = _zero_pad(payload, 2)
    out = bytearray(padded)
    out[0::2] = padded[1::2]
    out[1::2] = padded[0::2]
    return bytes(out[: len(payload)])


def _reverse_words(payload: bytes) -> bytes:
    """Reverse every 4-byte group: [A B C D] -> [D C B A].

    A partial trailing group is reversed as if zero-padded, then truncated.
    """
    padded = _zero_pad(payload, 4)
    out = bytearray(padded)
    out[0::4] = padded[3::4]
    out[1::4] = padded[2::4]
    out[2::4] = padded[1::4]
    out[3::4] = padded[0::4]
    return bytes(out[: len(payload)])


def _hash_n64(payload: bytes, filename: str) -> IdentifyResult:
    magic = payload[:4]
    if magic == N64_Z64_MAGIC:
        return IdentifyResult(_md5(payload))
    if magic == N64_V64_MAGIC:
        return IdentifyResult(
            _md5(_swap_pairs(payload)), "normalized N64 (.v64 -> .z64) before hashing"
        )
    if magic == N64_N64_MAGIC:
        return IdentifyResult(
            _md5(_reverse_words(payload)),
            "normalized N64 (.n64 -> .z64) before hashing",
        )
    logger.warning("Unknown N64 byte order in %s, hashing as-is", filename or "payload")
    return IdentifyResult(_md5(payload), "layout unknown; hashed as-is")


def _hash_arcade(payload: bytes, filename: str) -> IdentifyResult:
    # Arcade sets are identified by name only
    stem = Path(filename).stem
    return IdentifyResult(_md5(stem.encode("utf-8")), f'hashed filename: "{stem}"')


def _nds_segment(payload: bytes, offset: int, size: int) -> bytes:
    if offset > 0 and size > 0 and offset + size <= len(payload):
        return payload[offset : offset + size]
    return b""


def _hash_nds(payload: bytes, filename: str) -> IdentifyResult:
    if len(payload) < NDS_HEADER_SIZE:
        raise MalformedRom("NDS", NDS_HEADER_SIZE, len(payload))

    def u32(field: int) -> int:
        return struct.unpack_from("<I", payload, field)[0]

    parts = [
        payload[:NDS_HEADER_SIZE],
        _nds_segment(payload, u32(NDS_ICON_OFFSET_FIELD), NDS_ICON_SIZE),
        _nds_segment(payload, u32(NDS_ARM9_OFFSET_FIELD), u32(NDS_ARM9_SIZE_FIELD)),
        _nds_segment(payload, u32(NDS_ARM7_OFFSET_FIELD), u32(NDS_ARM7_SIZE_FIELD)),
    ]
    return IdentifyResult(
        _md5(b"".join(parts)), "NDS hash built from header + icon + ARM9 + ARM7"
    )


def _hash_whole(payload: bytes, filename: str) -> IdentifyResult:
    return IdentifyResult(_md5(payload))


HASHERS: dict[ConsoleId, Callable[[bytes, str], IdentifyResult]] = {
    ConsoleId.NES: _hash_nes,
    ConsoleId.SNES: _hash_snes,
    ConsoleId.N64: _hash_n64,
    ConsoleId.NDS: _hash_nds,
    ConsoleId.LYNX: _hash_lynx,
    ConsoleId.ATARI_7800: _hash_atari_7800,
    ConsoleId.ARCADE: _hash_arcade,
}


def identify(console_id: int, payload: bytes, filename: str = "") -> IdentifyResult:
    """Compute the identification digest for a ROM payload.

    Args:
        console_id: RetroAchievements console ID
        payload: Raw ROM bytes
        filename: Logical ROM filename (only used by filename-identity consoles)

    Returns:
        IdentifyResult with lowercase hex MD5 and an optional note

    Raises:
        MalformedRom: If the payload is too small for the console's format
    """
    try:
        hasher = HASHERS.get(ConsoleId(console_id), _hash_whole)
    except ValueError:
        hasher = _hash_whole
    return hasher(payload, filename)


def compute_hashes(
    payload: bytes,
    container_path: str,
    console_id: Optional[int],
    filename: str = "",
) -> HashSet:
    """Compute all digests stored with a catalog record.

    Args:
        payload: ROM payload bytes (extracted from the archive when archived)
        container_path: Path to the file on disk (archive or raw ROM)
        console_id: RetroAchievements console ID, or None if unknown
        filename: Logical ROM filename

    Returns:
        HashSet with identification, content and container digests
    """
    ra_md5 = None
    if console_id is not None:
        result = identify(console_id, payload, filename)
        ra_md5 = result.digest
        if result.note:
            logger.debug("Identification hash for %s: %s", filename, result.note)

    return HashSet(
        ra_md5=ra_md5,
        md5=_md5(payload),
        file_crc32=compute_file_crc32(container_path),
    )
