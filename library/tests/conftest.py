"""Shared fixtures for library tests."""

import hashlib
import json
from unittest.mock import MagicMock

import pytest

from library.models import ROM, System
from library.system_loader import sync_systems


def create_mock_context(should_abort=False):
    """Create a mock JobContext for testing tasks that use pass_context=True."""
    mock_context = MagicMock()
    mock_context.should_abort.return_value = should_abort
    return mock_context


@pytest.fixture
def systems(db):
    """Seed every built-in system from systems.json."""
    sync_systems()
    return {s.slug: s for s in System.objects.all()}


@pytest.fixture
def make_rom(systems):
    """Factory for catalog records that don't need a file on disk."""

    def _make_rom(file_name="Game (USA).gba", system="gba", **kwargs):
        md5 = kwargs.pop("md5", hashlib.md5(file_name.encode()).hexdigest())
        defaults = {
            "display_name": file_name.rsplit(".", 1)[0],
            "file_path": f"/roms/{file_name}",
            "file_name": file_name,
            "rom_file_name": file_name,
            "file_size": 1024,
            "file_crc32": "00000000",
        }
        defaults.update(kwargs)
        return ROM.objects.create(system=systems[system], md5=md5, **defaults)

    return _make_rom


@pytest.fixture
def hash_db_file(tmp_path):
    """Factory writing a hash database file."""

    def _write(games, hash_map, name="hashes.json"):
        path = tmp_path / name
        path.write_text(json.dumps({"games": games, "hashMap": hash_map}))
        return path

    return _write
