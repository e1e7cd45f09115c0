"""ROM identification lookups keyed by hash."""

from .base import GameRecord, LookupService
from .hashdb import HashDatabase

__all__ = ["GameRecord", "HashDatabase", "LookupService"]
