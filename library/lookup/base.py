"""Base classes for ROM identification lookups."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GameRecord:
    """A game known to the identification database."""

    title: str  # Canonical title, e.g. "Super Mario World"
    console_id: int  # RetroAchievements console ID
    achievement_count: int = 0


class LookupService(ABC):
    """Abstract base for identification lookups keyed by hash."""

    name: str  # Service identifier

    @abstractmethod
    def lookup(self, digest: str) -> Optional[GameRecord]:
        """Look up a game by identification digest.

        Args:
            digest: Identification MD5 (32 hex chars, any case)

        Returns:
            GameRecord if found, None otherwise
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the service is ready for lookups."""
        pass
