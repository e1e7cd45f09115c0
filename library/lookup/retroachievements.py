"""RetroAchievements web API client used to build the hash database."""

import logging
import time

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

API_BASE = "https://retroachievements.org/API"
API_TIMEOUT = 60  # seconds, game lists with hashes are large
REQUEST_DELAY = 3.0  # seconds between requests to be polite

_last_request_time = 0.0


class RetroAchievementsError(Exception):
    """The RetroAchievements API could not be queried."""

    pass


def credentials_available() -> bool:
    return bool(
        settings.RETROACHIEVEMENTS_USERNAME and settings.RETROACHIEVEMENTS_API_KEY
    )


def _rate_limit():
    """Enforce rate limiting between API requests."""
    global _last_request_time
    elapsed = time.time() - _last_request_time
    if elapsed < REQUEST_DELAY:
        time.sleep(REQUEST_DELAY - elapsed)
    _last_request_time = time.time()


def fetch_game_list(console_id: int) -> list[dict]:
    """Fetch every game for a console, including its ROM hashes.

    Args:
        console_id: RetroAchievements console ID

    Returns:
        List of game entries as returned by API_GetGameList

    Raises:
        RetroAchievementsError: If credentials are missing or the request fails
    """
    if not credentials_available():
        raise RetroAchievementsError("RetroAchievements credentials are not configured")

    _rate_limit()
    params = {
        "z": settings.RETROACHIEVEMENTS_USERNAME,
        "y": settings.RETROACHIEVEMENTS_API_KEY,
        "i": console_id,
        "h": 1,  # include hashes
        "f": 1,  # only games with achievements
    }
    try:
        response = requests.get(
            f"{API_BASE}/API_GetGameList.php", params=params, timeout=API_TIMEOUT
        )
    except requests.RequestException as e:
        raise RetroAchievementsError(
            f"Request for console {console_id} failed: {e}"
        ) from e

    if response.status_code != 200:
        logger.warning(
            "RetroAchievements API error: status=%d, body=%s",
            response.status_code,
            response.text[:200],
        )
        raise RetroAchievementsError(
            f"RetroAchievements returned HTTP {response.status_code} "
            f"for console {console_id}"
        )

    games = response.json()
    logger.info("Fetched %d games for console %d", len(games), console_id)
    return games
