"""Tests for single-ROM archive extraction."""

import zipfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from library.archive import (
    ArchiveOpenFailed,
    ArchiveReadFailed,
    MultipleRomsInArchive,
    ZipSlipError,
    _validate_archive_path,
    compute_file_crc32,
    extract_single_rom,
    is_archive_file,
    is_rom_entry,
)

from .conftest import create_zip

ROM_EXTENSIONS = {".gba", ".nes", ".sfc"}


def make_7z_entry(name, is_directory=False):
    entry = MagicMock()
    entry.filename = name
    entry.is_directory = is_directory
    return entry


def make_7z_archive(mock_py7zr, entries, contents=None, extracted_dirs=None):
    """Wire a mocked SevenZipFile whose extract() writes files to disk."""
    contents = contents or {}

    def fake_extract(path, targets):
        if extracted_dirs is not None:
            extracted_dirs.append(path)
        for target in targets:
            dest = Path(path) / target
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(contents.get(target, b""))

    mock_szf = MagicMock()
    mock_szf.__enter__ = MagicMock(return_value=mock_szf)
    mock_szf.__exit__ = MagicMock(return_value=False)
    mock_szf.list.return_value = [make_7z_entry(name) for name in entries]
    mock_szf.extract.side_effect = fake_extract
    mock_py7zr.SevenZipFile.return_value = mock_szf
    return mock_szf


class TestIsRomEntry:
    @pytest.mark.parametrize(
        "entry,expected",
        [
            ("Game (USA).gba", True),
            ("folder/Game.GBA", True),
            ("readme.txt", False),
            ("inner.zip", False),
            ("inner.7z", False),
            (".hidden.gba", False),
            ("__MACOSX/._Game.gba", False),
            (".trash/Game.gba", False),
        ],
    )
    def test_rom_entry_detection(self, entry, expected):
        assert is_rom_entry(entry, ROM_EXTENSIONS) is expected

    @pytest.mark.parametrize(
        "filename,expected",
        [("game.zip", True), ("game.7Z", True), ("game.rar", False), ("game.gba", False)],
    )
    def test_archive_file_detection(self, filename, expected):
        assert is_archive_file(filename) is expected


class TestExtractFromZip:
    def test_single_rom(self, tmp_path):
        archive = create_zip(
            tmp_path / "game.zip",
            {"Tetris (World).gba": b"ROM DATA", "readme.txt": b"hello"},
        )

        result = extract_single_rom(str(archive), ROM_EXTENSIONS)

        assert result.logical_filename == "Tetris (World).gba"
        assert result.payload == b"ROM DATA"
        assert result.entry_path == "Tetris (World).gba"

    def test_rom_in_subfolder_uses_basename(self, tmp_path):
        archive = create_zip(tmp_path / "game.zip", {"sub/Game.nes": b"NES"})

        result = extract_single_rom(str(archive), ROM_EXTENSIONS)

        assert result.logical_filename == "Game.nes"
        assert result.entry_path == "sub/Game.nes"

    def test_no_rom_entry_returns_none(self, tmp_path):
        archive = create_zip(tmp_path / "docs.zip", {"readme.txt": b"hello"})

        assert extract_single_rom(str(archive), ROM_EXTENSIONS) is None

    def test_nested_archive_is_not_a_rom(self, tmp_path):
        archive = create_zip(tmp_path / "outer.zip", {"inner.zip": b"PK"})

        assert extract_single_rom(str(archive), ROM_EXTENSIONS | {".zip"}) is None

    def test_two_roms_rejected(self, tmp_path):
        archive = create_zip(
            tmp_path / "pack.zip", {"One.gba": b"one", "Two.gba": b"two"}
        )

        with pytest.raises(MultipleRomsInArchive) as exc_info:
            extract_single_rom(str(archive), ROM_EXTENSIONS)

        assert exc_info.value.first_entry == "One.gba"
        assert exc_info.value.second_entry == "Two.gba"
        assert exc_info.value.archive_path == str(archive)

    def test_macos_resource_fork_ignored(self, tmp_path):
        archive = create_zip(
            tmp_path / "game.zip",
            {"Game.gba": b"ROM", "__MACOSX/._Game.gba": b"fork"},
        )

        result = extract_single_rom(str(archive), ROM_EXTENSIONS)

        assert result.payload == b"ROM"

    def test_corrupt_zip_raises_open_failed(self, tmp_path):
        archive = tmp_path / "broken.zip"
        archive.write_bytes(b"not a zip file")

        with pytest.raises(ArchiveOpenFailed) as exc_info:
            extract_single_rom(str(archive), ROM_EXTENSIONS)

        assert isinstance(exc_info.value.cause, zipfile.BadZipFile)
        assert isinstance(exc_info.value, IOError)

    def test_unreadable_entry_raises_read_failed(self, tmp_path):
        archive = create_zip(tmp_path / "game.zip", {"Game.gba": b"ROM"})

        with patch.object(zipfile.ZipFile, "read", side_effect=zipfile.BadZipFile("crc")):
            with pytest.raises(ArchiveReadFailed) as exc_info:
                extract_single_rom(str(archive), ROM_EXTENSIONS)

        assert exc_info.value.entry == "Game.gba"

    def test_archive_kind_overrides_extension(self, tmp_path):
        archive = create_zip(tmp_path / "game.bin", {"Game.gba": b"ROM"})

        result = extract_single_rom(str(archive), ROM_EXTENSIONS, archive_kind="zip")

        assert result.payload == b"ROM"

    def test_unsupported_kind(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported archive format"):
            extract_single_rom(str(tmp_path / "game.rar"), ROM_EXTENSIONS)


class TestExtractFrom7z:
    @patch("library.archive.py7zr")
    def test_single_rom(self, mock_py7zr):
        mock_szf = make_7z_archive(
            mock_py7zr,
            ["Game (Europe).sfc", "info.nfo"],
            {"Game (Europe).sfc": b"SNES ROM"},
        )

        result = extract_single_rom("/path/to/game.7z", ROM_EXTENSIONS)

        assert result.logical_filename == "Game (Europe).sfc"
        assert result.payload == b"SNES ROM"
        mock_py7zr.SevenZipFile.assert_called_once_with("/path/to/game.7z", mode="r")
        assert mock_szf.extract.call_count == 1

    @patch("library.archive.py7zr")
    def test_temp_dir_removed(self, mock_py7zr):
        extracted_dirs = []
        make_7z_archive(
            mock_py7zr, ["Game.gba"], {"Game.gba": b"ROM"}, extracted_dirs
        )

        extract_single_rom("/path/to/game.7z", ROM_EXTENSIONS)

        assert len(extracted_dirs) == 1
        assert not Path(extracted_dirs[0]).exists()

    @patch("library.archive.py7zr")
    def test_temp_dir_removed_on_error(self, mock_py7zr):
        extracted_dirs = []
        make_7z_archive(
            mock_py7zr,
            ["One.gba", "Two.gba"],
            {"One.gba": b"1", "Two.gba": b"2"},
            extracted_dirs,
        )

        with pytest.raises(MultipleRomsInArchive):
            extract_single_rom("/path/to/pack.7z", ROM_EXTENSIONS)

        assert extracted_dirs
        assert all(not Path(d).exists() for d in extracted_dirs)

    @patch("library.archive.py7zr")
    def test_directories_skipped(self, mock_py7zr):
        mock_szf = make_7z_archive(mock_py7zr, [], {"roms/Game.nes": b"NES"})
        mock_szf.list.return_value = [
            make_7z_entry("roms", is_directory=True),
            make_7z_entry("roms/Game.nes"),
        ]

        result = extract_single_rom("/path/to/game.7z", ROM_EXTENSIONS)

        assert result.logical_filename == "Game.nes"

    @patch("library.archive.py7zr")
    def test_open_failure(self, mock_py7zr):
        mock_py7zr.SevenZipFile.side_effect = OSError("bad header")

        with pytest.raises(ArchiveOpenFailed, match="bad header"):
            extract_single_rom("/path/to/broken.7z", ROM_EXTENSIONS)

    @patch("library.archive.py7zr")
    def test_path_traversal_entry_fails_read(self, mock_py7zr):
        make_7z_archive(mock_py7zr, ["/etc/evil.gba"])

        with pytest.raises(ArchiveReadFailed) as exc_info:
            extract_single_rom("/path/to/evil.7z", ROM_EXTENSIONS)

        assert isinstance(exc_info.value.cause, ZipSlipError)


class TestValidateArchivePath:
    def test_nested_path_allowed(self, tmp_path):
        assert (
            _validate_archive_path("folder/game.gba", str(tmp_path))
            == tmp_path / "folder" / "game.gba"
        )

    @pytest.mark.parametrize(
        "path", ["../../../etc/passwd", "/etc/passwd", "folder/../../etc/passwd"]
    )
    def test_escape_blocked(self, tmp_path, path):
        with pytest.raises(ZipSlipError, match="escape destination"):
            _validate_archive_path(path, str(tmp_path))


class TestComputeFileCrc32:
    def test_known_value(self, tmp_path):
        test_file = tmp_path / "test.bin"
        test_file.write_bytes(b"hello world")

        assert compute_file_crc32(str(test_file)) == "0d4a1185"

    def test_empty_file(self, tmp_path):
        test_file = tmp_path / "empty.bin"
        test_file.write_bytes(b"")

        assert compute_file_crc32(str(test_file)) == "00000000"

    def test_missing_file(self):
        with pytest.raises(IOError, match="Failed to compute CRC32"):
            compute_file_crc32("/nonexistent/path/file.bin")
