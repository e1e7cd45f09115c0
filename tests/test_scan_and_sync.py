"""End-to-end: scan a library, tag some ROMs and sync them to a device."""

import pytest

from devices.models import Device, DeviceProfile
from devices.profile_loader import sync_profiles
from devices.sync import SKIP_FILE_EXISTS, SyncEngine, SyncOptions
from library.catalog import update_rom
from library.models import ROM
from library.scanner import scan_directory

from .conftest import create_zip

pytestmark = pytest.mark.django_db


@pytest.fixture
def onion_device(tmp_path):
    sync_profiles()
    mount = tmp_path / "sdcard"
    mount.mkdir()
    return Device.objects.create(
        name="Miyoo Mini Plus",
        slug="mini-plus",
        profile=DeviceProfile.objects.get(name="Onion"),
        mount_path=str(mount),
    )


def test_scan_tag_and_sync(systems, rom_dir, onion_device):
    (rom_dir / "GBA").mkdir()
    (rom_dir / "GBA" / "Advance Wars (USA).gba").write_bytes(b"aw" * 64)
    create_zip(rom_dir / "Tetris.zip", {"Tetris (World).gb": b"tetris" * 32})
    (rom_dir / "Genesis").mkdir()
    (rom_dir / "Genesis" / "Sonic (Europe).bin").write_bytes(b"sonic" * 32)
    (rom_dir / "notes.txt").write_text("not a rom")

    result = scan_directory(str(rom_dir))

    assert result.added == 3
    assert result.errors == []
    for rom in ROM.objects.exclude(system__slug="genesis"):
        update_rom(rom.pk, favorite=True)

    status = SyncEngine().start(
        ["favorites"], onion_device.pk, SyncOptions(verify_files=True)
    )

    mount = onion_device.rom_root()
    assert status.files_copied == 2
    assert (mount / "GBA" / "Advance Wars (USA).gba").exists()
    assert (mount / "GB" / "Tetris.zip").exists()
    assert not (mount / "MD").exists()

    again = SyncEngine().start(["favorites"], onion_device.pk)

    assert [s.reason for s in again.files_skipped] == [SKIP_FILE_EXISTS] * 2
