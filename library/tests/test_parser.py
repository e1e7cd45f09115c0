"""Tests for ROM filename parser."""

from django.test import SimpleTestCase

from library.parser import (
    REGION_UNKNOWN,
    clean_display_name,
    extract_region_from_filename,
    find_region_in_group,
    parse_rom_filename,
)


class TestRegionExtraction(SimpleTestCase):
    """Test region detection from tag groups."""

    def test_parenthesized_region(self):
        self.assertEqual(extract_region_from_filename("Chrono Trigger (USA).sfc"), "USA")
        self.assertEqual(extract_region_from_filename("Zelda (Europe).nes"), "Europe")
        self.assertEqual(extract_region_from_filename("Mother 3 (Japan).gba"), "Japan")

    def test_goodtools_codes(self):
        self.assertEqual(extract_region_from_filename("Pokemon_Emerald_(U).gba"), "USA")
        self.assertEqual(
            extract_region_from_filename("Pokemon_Emerald_(U)_[f1].gba"), "USA"
        )
        self.assertEqual(extract_region_from_filename("Tetris (W).gb"), "World")

    def test_bracketed_region(self):
        self.assertEqual(extract_region_from_filename("Game [E].nes"), "Europe")

    def test_parentheses_win_over_brackets(self):
        self.assertEqual(extract_region_from_filename("Game [E] (Japan).nes"), "Japan")

    def test_multi_region_priority(self):
        self.assertEqual(extract_region_from_filename("Game (USA, Korea).rom"), "USA")
        self.assertEqual(extract_region_from_filename("Game (Japan, Europe).gba"), "Europe")

    def test_multi_region_without_priority_code(self):
        self.assertEqual(extract_region_from_filename("Game (Korea, Asia).gba"), "Korea")

    def test_language_tags_are_not_regions(self):
        self.assertEqual(
            extract_region_from_filename("Battletoads (PT-BR).nes"), REGION_UNKNOWN
        )
        self.assertEqual(
            extract_region_from_filename("Game (En,Fr,De).gba"), REGION_UNKNOWN
        )

    def test_later_group_found_after_non_region_group(self):
        self.assertEqual(extract_region_from_filename("Game (Beta) (Korea).gba"), "Korea")
        self.assertEqual(
            extract_region_from_filename("Game (Rev A) (NTSC-U).sfc"), "USA"
        )

    def test_no_region(self):
        self.assertEqual(extract_region_from_filename("arkretrn.zip"), REGION_UNKNOWN)
        self.assertEqual(extract_region_from_filename("Game (Unl).nes"), REGION_UNKNOWN)
        self.assertEqual(extract_region_from_filename("Ultra Game.nes"), REGION_UNKNOWN)

    def test_codes_inside_words_are_ignored(self):
        # "Korea" must not be found inside arcade set names
        self.assertEqual(extract_region_from_filename("kr_mslug.zip"), REGION_UNKNOWN)
        self.assertEqual(extract_region_from_filename("castlevania.nes"), REGION_UNKNOWN)

    def test_untagged_fallback(self):
        self.assertEqual(extract_region_from_filename("Super Game USA.nes"), "USA")
        self.assertEqual(extract_region_from_filename("usa game.nes"), REGION_UNKNOWN)

    def test_directories_ignored(self):
        self.assertEqual(
            extract_region_from_filename("/roms/Japan/Game (USA).sfc"), "USA"
        )


class TestFindRegionInGroup(SimpleTestCase):
    def test_exact_match_case_insensitive(self):
        self.assertEqual(find_region_in_group("usa"), "USA")
        self.assertEqual(find_region_in_group(" Europe "), "Europe")

    def test_partial_match_on_word_boundary(self):
        self.assertEqual(find_region_in_group("USA Rev 1"), "USA")

    def test_no_region(self):
        self.assertIsNone(find_region_in_group("Rev 1"))
        self.assertIsNone(find_region_in_group(""))
        self.assertIsNone(find_region_in_group("en-US"))


class TestCleanDisplayName(SimpleTestCase):
    def test_strips_tags_and_extension(self):
        self.assertEqual(clean_display_name("Chrono Trigger (USA).sfc"), "Chrono Trigger")
        self.assertEqual(
            clean_display_name("Pokemon_Emerald_(U)_[f1].gba"), "Pokemon Emerald"
        )

    def test_title_cases_words(self):
        self.assertEqual(
            clean_display_name("Sonic_the_Hedgehog_2_(World).md"), "Sonic The Hedgehog 2"
        )
        self.assertEqual(clean_display_name("TETRIS.gb"), "Tetris")
        self.assertEqual(clean_display_name("mario's-quest.nes"), "Mario's Quest")

    def test_collapses_separators(self):
        self.assertEqual(
            clean_display_name("Castlevania - Aria of Sorrow (USA).gba"),
            "Castlevania Aria Of Sorrow",
        )

    def test_arcade_set_name(self):
        self.assertEqual(clean_display_name("arkretrn.zip"), "Arkretrn")


class TestParseRomFilename(SimpleTestCase):
    def test_name_and_region(self):
        result = parse_rom_filename("Advance Wars (USA) (Rev 1).gba")
        self.assertEqual(result, {"name": "Advance Wars", "region": "USA"})
