"""Local identification hash database.

The database is a JSON file (or a directory of per-console JSON files)::

    {
        "games": [{"title": "...", "consoleId": 3, "numAchievements": 96}],
        "hashMap": {"<md5>": 0}
    }

``hashMap`` values index into ``games``. The whole table is held in memory
between ``load()`` and ``unload()``; a scan owns that lifecycle.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from .base import GameRecord, LookupService

logger = logging.getLogger(__name__)


class HashDatabase(LookupService):
    """In-memory lookup table from identification digest to game."""

    name = "hashdb"

    def __init__(self, path: str):
        self.path = Path(path)
        self._games: Optional[dict[str, GameRecord]] = None

    def __enter__(self) -> "HashDatabase":
        self.load()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unload()

    @property
    def is_loaded(self) -> bool:
        return self._games is not None

    def __len__(self) -> int:
        return len(self._games or {})

    def load(self) -> None:
        """Read the database into memory. Loading twice is a no-op.

        A missing database loads as empty, so every ROM imports unverified.

        Raises:
            ValueError: If a database file is not valid JSON
        """
        if self._games is not None:
            return

        if self.path.is_dir():
            files = sorted(self.path.glob("*.json"))
        elif self.path.exists():
            files = [self.path]
        else:
            logger.warning("Hash database not found at %s, lookups disabled", self.path)
            files = []

        games: dict[str, GameRecord] = {}
        for file_path in files:
            games.update(self._read_file(file_path))

        self._games = games
        logger.info(
            "Loaded hash database: %d hashes from %d file(s)", len(games), len(files)
        )

    def unload(self) -> None:
        """Release the in-memory table."""
        if self._games is not None:
            logger.debug("Unloaded hash database (%d hashes)", len(self._games))
        self._games = None

    def lookup(self, digest: str) -> Optional[GameRecord]:
        """Look up a game by identification digest.

        Raises:
            RuntimeError: If the database has not been loaded
        """
        if self._games is None:
            raise RuntimeError("Hash database is not loaded")
        if not digest:
            return None
        return self._games.get(digest.lower())

    def is_available(self) -> bool:
        return bool(self._games)

    @staticmethod
    def _read_file(file_path: Path) -> dict[str, GameRecord]:
        try:
            with open(file_path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid hash database file {file_path}: {e}") from e

        games = [
            GameRecord(
                title=game["title"],
                console_id=int(game["consoleId"]),
                achievement_count=int(game.get("numAchievements", 0)),
            )
            for game in data.get("games", [])
        ]

        hashes = {}
        for digest, index in data.get("hashMap", {}).items():
            if 0 <= index < len(games):
                hashes[digest.lower()] = games[index]
            else:
                logger.warning(
                    "Hash %s in %s points past the game list", digest, file_path
                )
        return hashes


def build_database_document(game_lists: list[list[dict]]) -> dict:
    """Build a hash database document from RetroAchievements game lists.

    Args:
        game_lists: Per-console lists of API game entries (with "Hashes")

    Returns:
        Dict in the hash database file format
    """
    games = []
    hash_map = {}
    for game_list in game_lists:
        for entry in game_list:
            hashes = entry.get("Hashes") or []
            if not hashes:
                continue
            index = len(games)
            games.append(
                {
                    "title": entry["Title"],
                    "consoleId": int(entry["ConsoleID"]),
                    "numAchievements": int(entry.get("NumAchievements") or 0),
                }
            )
            for digest in hashes:
                hash_map[digest.lower()] = index
    return {"games": games, "hashMap": hash_map}
