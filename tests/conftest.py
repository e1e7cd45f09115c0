"""Pytest configuration and shared fixtures for Django tests."""

import io
import os
import zipfile
from pathlib import Path
from unittest.mock import MagicMock

import django
import pytest


def pytest_configure(config):
    """Configure Django settings before running tests."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "romdock.settings")
    django.setup()


# -----------------------------------------------------------------------------
# Archive test helpers
# -----------------------------------------------------------------------------


def create_zip(path: Path, entries: dict[str, bytes]) -> Path:
    """Write a zip archive holding the given entries."""
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


def zip_bytes(entries: dict[str, bytes]) -> bytes:
    """Build a zip archive in memory."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buffer.getvalue()


def create_mock_context(should_abort=False):
    """Create a mock JobContext for testing tasks that use pass_context=True."""
    mock_context = MagicMock()
    mock_context.should_abort.return_value = should_abort
    return mock_context


# -----------------------------------------------------------------------------
# System fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def systems(db):
    """Seed every built-in system from systems.json."""
    from library.models import System
    from library.system_loader import sync_systems

    sync_systems()
    return {s.slug: s for s in System.objects.all()}


@pytest.fixture
def gba_system(systems):
    return systems["gba"]


@pytest.fixture
def nes_system(systems):
    return systems["nes"]


@pytest.fixture
def rom_dir(tmp_path):
    """Empty library root."""
    root = tmp_path / "roms"
    root.mkdir()
    return root
