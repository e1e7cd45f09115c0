"""Shared fixtures for devices tests."""

import hashlib
from unittest.mock import MagicMock

import pytest

from devices.models import Device, DeviceProfile
from library.archive import compute_file_crc32
from library.models import ROM, System
from library.system_loader import sync_systems


def create_mock_context(should_abort=False):
    """Create a mock JobContext for testing tasks that use pass_context=True."""
    mock_context = MagicMock()
    mock_context.should_abort.return_value = should_abort
    return mock_context


@pytest.fixture
def systems(db):
    sync_systems()
    return {s.slug: s for s in System.objects.all()}


@pytest.fixture
def profile(db):
    return DeviceProfile.objects.create(
        name="Test Handheld",
        rom_base_path="/Roms/",
        system_mappings={
            "gba": {"folderName": "GBA", "supportedFormats": [".gba", ".zip"]},
            "nes": {"folderName": "FC", "supportedFormats": [".nes"]},
        },
    )


@pytest.fixture
def mount(tmp_path):
    path = tmp_path / "sdcard"
    path.mkdir()
    return path


@pytest.fixture
def device(profile, mount):
    return Device.objects.create(
        name="Miyoo Mini", slug="miyoo-mini", profile=profile, mount_path=str(mount)
    )


@pytest.fixture
def library_dir(tmp_path):
    path = tmp_path / "library"
    path.mkdir()
    return path


@pytest.fixture
def make_rom(systems, library_dir):
    """Factory for catalog records backed by a real file."""

    def _make_rom(file_name, system="gba", payload=None, **kwargs):
        payload = payload if payload is not None else file_name.encode() * 8
        path = library_dir / file_name
        path.write_bytes(payload)
        return ROM.objects.create(
            system=systems[system],
            display_name=file_name.rsplit(".", 1)[0],
            file_path=str(path),
            file_name=file_name,
            rom_file_name=kwargs.pop("rom_file_name", file_name),
            file_size=len(payload),
            md5=hashlib.md5(payload).hexdigest(),
            file_crc32=compute_file_crc32(str(path)),
            **kwargs,
        )

    return _make_rom


@pytest.fixture
def favorites(make_rom):
    """Three favorite ROMs for systems the test profile maps."""
    return [
        make_rom("Advance Wars (USA).gba", tags=["favorites"]),
        make_rom("Golden Sun (USA).gba", favorite=True),
        make_rom("Zelda (Europe).nes", system="nes", tags=["favorites", "rpg"]),
    ]
