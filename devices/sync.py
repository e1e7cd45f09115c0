"""Copy catalog ROMs onto a mounted device.

Files are processed one at a time. Every candidate ends with exactly one
disposition: copied, skipped (with a reason) or failed (with an error).
"""

import dataclasses
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional

from library.archive import compute_file_crc32
from library.catalog import roms_with_tags
from library.models import ROM
from library.system_loader import get_system_codes

from .models import Device

logger = logging.getLogger(__name__)

PHASE_IDLE = "idle"
PHASE_PREPARING = "preparing"
PHASE_COPYING = "copying"
PHASE_VERIFYING = "verifying"
PHASE_DONE = "done"
PHASE_ERROR = "error"

SKIP_FILE_EXISTS = "file_exists"
SKIP_UNSUPPORTED_SYSTEM = "unsupported_system"
SKIP_UNSUPPORTED_FORMAT = "unsupported_format"
SKIP_MISSING_SYSTEM_MAPPING = "missing_system_mapping"


@dataclass
class SyncOptions:
    clean_destination: bool = False  # Delete the device ROM folder first
    verify_files: bool = False  # Re-read each copy and compare CRC32


@dataclass
class SkippedFile:
    rom_id: int
    file_name: str
    reason: str
    details: str = ""


@dataclass
class FailedFile:
    rom_id: int
    file_name: str
    error: str


@dataclass
class SyncStatus:
    """Progress of one sync session, pushed to subscribers."""

    phase: str = PHASE_IDLE
    current_file: Optional[str] = None
    total_files: int = 0
    files_processed: int = 0
    files_copied: int = 0
    files_skipped: list[SkippedFile] = field(default_factory=list)
    files_failed: list[FailedFile] = field(default_factory=list)
    cancelled: bool = False
    error: Optional[str] = None

    @property
    def progress_percent(self) -> int:
        if self.total_files == 0:
            return 0
        return min(100, round(self.files_processed / self.total_files * 100))

    def snapshot(self) -> "SyncStatus":
        """Independent copy, safe to hand to listeners."""
        return dataclasses.replace(
            self,
            files_skipped=list(self.files_skipped),
            files_failed=list(self.files_failed),
        )

    def as_dict(self) -> dict:
        data = dataclasses.asdict(self)
        data["progress_percent"] = self.progress_percent
        return data


class SyncError(Exception):
    """The sync session could not run."""

    pass


class SyncFailed(SyncError):
    """One or more files failed. Raised after the final status is delivered."""

    def __init__(self, status: SyncStatus):
        self.status = status
        names = ", ".join(f.file_name for f in status.files_failed[:5])
        more = len(status.files_failed) - 5
        if more > 0:
            names = f"{names} and {more} more"
        super().__init__(
            f"{len(status.files_failed)} of {status.total_files} file(s) failed "
            f"to sync: {names}"
        )


Listener = Callable[[SyncStatus], None]


class SyncEngine:
    """Copies a tag-filtered ROM set to a device.

    One session runs at a time; callers serialize start() calls.
    """

    def __init__(self):
        self._listeners: list[Listener] = []
        self._cancel_requested = False
        self.status = SyncStatus()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a progress listener.

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def cancel(self) -> None:
        """Stop after the file currently being processed."""
        logger.info("Sync cancellation requested")
        self._cancel_requested = True

    def start(
        self,
        tag_ids: Iterable[str],
        device_id: int,
        options: Optional[SyncOptions] = None,
    ) -> SyncStatus:
        """
        Run a sync session.

        Args:
            tag_ids: Only ROMs carrying one of these tags; empty means all
            device_id: Target Device primary key
            options: SyncOptions (defaults: no clean, no verify)

        Returns:
            Final SyncStatus

        Raises:
            SyncFailed: If any file failed (after the final status is pushed)
            SyncError: If the session could not run at all
        """
        options = options or SyncOptions()
        tag_ids = list(tag_ids)
        self._cancel_requested = False
        self.status = status = SyncStatus(phase=PHASE_PREPARING)
        self._notify()

        try:
            device = self._resolve_device(device_id)
            if options.clean_destination:
                self._clean_destination(device)
            candidates = roms_with_tags(tag_ids)
            status.total_files = len(candidates)
            logger.info(
                "Syncing %d ROM(s) to %s (tags=%s, verify=%s)",
                len(candidates),
                device.name,
                tag_ids or "all",
                options.verify_files,
            )

            status.phase = PHASE_COPYING
            self._notify()

            known_codes = get_system_codes()
            for rom in candidates:
                # Checked between files only, never mid-copy
                if self._cancel_requested:
                    status.cancelled = True
                    logger.info(
                        "Sync cancelled after %d of %d file(s)",
                        status.files_processed,
                        status.total_files,
                    )
                    break
                self._sync_rom(rom, device, options, known_codes)
                status.files_processed += 1
                self._notify()
        except Exception as e:
            status.phase = PHASE_ERROR
            status.current_file = None
            status.error = str(e)
            logger.error("Sync failed: %s", e)
            self._notify()
            raise

        status.phase = PHASE_DONE
        status.current_file = None
        logger.info(
            "Sync complete: copied=%d, skipped=%d, failed=%d",
            status.files_copied,
            len(status.files_skipped),
            len(status.files_failed),
        )
        self._notify()

        if status.files_failed:
            raise SyncFailed(status.snapshot())
        return status.snapshot()

    def _notify(self) -> None:
        snapshot = self.status.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                # Delivery is best-effort; a broken listener loses its events
                logger.warning("Sync progress listener failed: %s", e)

    def _resolve_device(self, device_id: int) -> Device:
        try:
            device = Device.objects.select_related("profile").get(pk=device_id)
        except Device.DoesNotExist:
            raise SyncError(f"Device {device_id} not found") from None

        if not device.is_mounted():
            raise SyncError(
                f"Device '{device.name}' is not accessible at {device.mount_path}"
            )
        if not device.profile.system_mappings:
            raise SyncError(f"Device profile '{device.profile.name}' has no systems")
        return device

    def _clean_destination(self, device: Device) -> None:
        rom_root = device.rom_root()
        if not rom_root.exists():
            return
        logger.info("Cleaning destination %s", rom_root)
        try:
            shutil.rmtree(rom_root)
        except OSError as e:
            raise SyncError(f"Failed to clean destination {rom_root}: {e}") from e

    def _skip(self, rom: ROM, reason: str, details: str = "") -> None:
        logger.debug("Skipped %s: %s", rom.file_name, reason)
        self.status.files_skipped.append(
            SkippedFile(
                rom_id=rom.pk, file_name=rom.file_name, reason=reason, details=details
            )
        )

    def _fail(self, rom: ROM, error: str) -> None:
        logger.warning("Failed to sync %s: %s", rom.file_name, error)
        self.status.files_failed.append(
            FailedFile(rom_id=rom.pk, file_name=rom.file_name, error=error)
        )

    def _sync_rom(
        self, rom: ROM, device: Device, options: SyncOptions, known_codes: set[str]
    ) -> None:
        status = self.status
        status.current_file = rom.file_name
        profile = device.profile
        system_slug = rom.system.slug

        if system_slug not in known_codes:
            self._skip(rom, SKIP_UNSUPPORTED_SYSTEM, f"Unknown system '{system_slug}'")
            return

        folder = device.system_folder(system_slug)
        if folder is None:
            self._skip(
                rom,
                SKIP_MISSING_SYSTEM_MAPPING,
                f"Profile '{profile.name}' has no folder for {system_slug}",
            )
            return

        if not profile.supports_format(system_slug, rom.file_name):
            self._skip(
                rom,
                SKIP_UNSUPPORTED_FORMAT,
                f"{Path(rom.file_name).suffix or rom.file_name} is not supported "
                f"for {system_slug} on {profile.name}",
            )
            return

        dest = folder / rom.file_name
        if dest.exists():
            self._skip(rom, SKIP_FILE_EXISTS, f"File already exists at {dest}")
            return

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(rom.file_path, dest)
        except OSError as e:
            _remove_partial(dest)
            self._fail(rom, f"Failed to copy {rom.file_name}: {e}")
            return

        if options.verify_files:
            status.phase = PHASE_VERIFYING
            self._notify()
            try:
                error = _verify_copy(dest, rom.file_crc32)
            except IOError as e:
                error = f"Copy verification failed: {e}"
            status.phase = PHASE_COPYING
            if error:
                _remove_partial(dest)
                self._fail(rom, error)
                return

        status.files_copied += 1


def _verify_copy(dest: Path, expected_crc32: str) -> Optional[str]:
    """Compare the copy against the catalogued CRC32. Returns an error or None."""
    actual = compute_file_crc32(str(dest))
    if actual != expected_crc32.lower():
        return (
            f"Copy verification failed: checksum mismatch "
            f"(expected {expected_crc32.lower()}, got {actual})"
        )
    return None


def _remove_partial(dest: Path) -> None:
    try:
        dest.unlink(missing_ok=True)
    except OSError as e:
        logger.error("Could not remove bad copy %s: %s", dest, e)
