"""Lexicon cache and persistence."""

from alchemist.lexicon.cache import (
    LexiconCache,
    ReservationError,
    ReservationTimeout,
)
from alchemist.lexicon.models import Lexeme, attribute_key
from alchemist.lexicon.store import LexiconStore

__all__ = [
    "LexiconCache",
    "ReservationError",
    "ReservationTimeout",
    "Lexeme",
    "attribute_key",
    "LexiconStore",
]
