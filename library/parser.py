"""ROM filename parser.

Derives a region and a display name from No-Intro/GoodTools style filenames
such as "Chrono Trigger (USA).sfc" or "Pokemon_Emerald_(U)_[f1].gba".
"""

import json
import logging
import re
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

REGION_UNKNOWN = "Unknown"


def _load_region_config() -> dict:
    """Load region codes from JSON config file."""
    config_path = Path(__file__).parent / "regions.json"
    with open(config_path) as f:
        return json.load(f)


_CONFIG = _load_region_config()

# Tag code -> canonical region, e.g. "U" -> "USA"
REGION_CODES: dict[str, str] = _CONFIG["region_codes"]
_REGION_CODES_LOWER = {code.lower(): region for code, region in REGION_CODES.items()}

# Representative region for multi-region tags like "(USA, Europe)"
MULTI_REGION_PRIORITY: list[str] = _CONFIG["multi_region_priority"]

LANGUAGE_CODES = {code.lower() for code in _CONFIG["language_codes"]}

# Partial matches only consider multi-character codes, longest first
_PARTIAL_CODES = sorted(
    (code for code in REGION_CODES if len(code) > 1), key=len, reverse=True
)

# Whole-string fallback only trusts upper-case codes standing alone as a word
_FALLBACK_CODES = {code for code in REGION_CODES if len(code) > 1 and code.isupper()}

EXTENSION_PATTERN = re.compile(r"\.[^/.]+$")
PAREN_GROUP_PATTERN = re.compile(r"\(([^)]*)\)")
BRACKET_GROUP_PATTERN = re.compile(r"\[([^\]]*)\]")
ANY_GROUP_PATTERN = re.compile(r"\([^)]*\)|\[[^\]]*\]")

# "PT-BR", "en-US": language-region tags, not release regions
LANGUAGE_TAG_PATTERN = re.compile(r"^[a-z]{2}-[a-z]{2}$", re.IGNORECASE)

FALLBACK_TOKEN_SPLIT = re.compile(r"[\s_.,]+")
SEPARATOR_PATTERN = re.compile(r"[_-]")
WHITESPACE_PATTERN = re.compile(r"\s+")
WORD_PATTERN = re.compile(r"\w\S*")


def _strip_extension(filename: str) -> str:
    return EXTENSION_PATTERN.sub("", Path(filename).name)


def _is_language_tag(text: str) -> bool:
    if LANGUAGE_TAG_PATTERN.match(text):
        return True
    parts = [p.strip().lower() for p in text.split(",")]
    return all(parts) and all(p in LANGUAGE_CODES for p in parts)


def _exact_region(text: str) -> Optional[str]:
    return _REGION_CODES_LOWER.get(text.strip().lower())


def find_region_in_group(text: str) -> Optional[str]:
    """
    Find the region named by the contents of one tag group.

    Args:
        text: Group contents without the surrounding brackets, e.g. "USA, Korea"

    Returns:
        Canonical region name, or None if the group names no region
    """
    text = text.strip()
    if not text or _is_language_tag(text):
        return None

    region = _exact_region(text)
    if region:
        return region

    if "," in text:
        parts = [p.strip() for p in text.split(",") if p.strip()]
        lowered = [p.lower() for p in parts]
        for code in MULTI_REGION_PRIORITY:
            if code.lower() in lowered:
                return REGION_CODES[code]
        for part in parts:
            region = _exact_region(part)
            if region:
                return region

    for code in _PARTIAL_CODES:
        pattern = r"(?<![A-Za-z0-9])" + re.escape(code) + r"(?![A-Za-z0-9])"
        if re.search(pattern, text, re.IGNORECASE):
            return REGION_CODES[code]

    return None


def extract_region_from_filename(filename: str) -> str:
    """
    Extract the release region from a ROM filename.

    Parenthesized tags are checked first, then bracketed tags. Only when no
    tag names a region is the rest of the name scanned for a stand-alone
    upper-case code such as "USA".

    Args:
        filename: ROM filename, with or without directories

    Returns:
        Canonical region name, or "Unknown"
    """
    stem = _strip_extension(filename)

    for pattern in (PAREN_GROUP_PATTERN, BRACKET_GROUP_PATTERN):
        for group in pattern.findall(stem):
            region = find_region_in_group(group)
            if region:
                return region

    untagged = ANY_GROUP_PATTERN.sub(" ", stem)
    for token in FALLBACK_TOKEN_SPLIT.split(untagged):
        if token in _FALLBACK_CODES:
            return REGION_CODES[token]

    return REGION_UNKNOWN


def _capitalize_word(match: re.Match) -> str:
    word = match.group(0)
    return word[0].upper() + word[1:].lower()


def clean_display_name(filename: str) -> str:
    """
    Turn a ROM filename into a readable title.

    Strips the extension and all tag groups, turns underscores and dashes
    into spaces and title-cases each word.

    Args:
        filename: ROM filename (e.g., "Sonic_the_Hedgehog_2_(World).md")

    Returns:
        Display name (e.g., "Sonic The Hedgehog 2")
    """
    name = _strip_extension(filename)
    name = ANY_GROUP_PATTERN.sub("", name)
    name = SEPARATOR_PATTERN.sub(" ", name)
    name = WHITESPACE_PATTERN.sub(" ", name).strip()
    return WORD_PATTERN.sub(_capitalize_word, name)


def parse_rom_filename(filename: str) -> dict:
    """
    Parse a ROM filename into display name and region.

    Args:
        filename: The ROM filename (e.g., "Advance Wars (USA) (Rev 1).gba")

    Returns:
        dict with keys:
            - name: Cleaned display name (str)
            - region: Canonical region or "Unknown" (str)
    """
    result = {
        "name": clean_display_name(filename),
        "region": extract_region_from_filename(filename),
    }
    logger.debug(
        "Parsed '%s': name=%s region=%s", filename, result["name"], result["region"]
    )
    return result
