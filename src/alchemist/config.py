"""Configuration settings for Language Alchemist."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _home() -> Path:
    override = os.environ.get("ALCHEMIST_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".alchemist"


@dataclass
class Settings:
    """Application settings."""

    # Storage
    db_path: Path = field(default_factory=lambda: _home() / "alchemist.db")
    profile_dir: Path = field(default_factory=lambda: _home() / "profiles")

    # Word generation
    max_syllable_retries: int = 64

    # Lexicon reservations
    reservation_timeout: float = 10.0

    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings, honoring ALCHEMIST_* environment overrides."""
        settings = cls()
        db_path = os.environ.get("ALCHEMIST_DB_PATH")
        if db_path:
            settings.db_path = Path(db_path).expanduser()
        profile_dir = os.environ.get("ALCHEMIST_PROFILE_DIR")
        if profile_dir:
            settings.profile_dir = Path(profile_dir).expanduser()
        log_level = os.environ.get("ALCHEMIST_LOG_LEVEL")
        if log_level:
            settings.log_level = log_level.upper()
        retries = os.environ.get("ALCHEMIST_MAX_SYLLABLE_RETRIES")
        if retries:
            settings.max_syllable_retries = int(retries)
        timeout = os.environ.get("ALCHEMIST_RESERVATION_TIMEOUT")
        if timeout:
            settings.reservation_timeout = float(timeout)
        return settings


# Part-of-speech tag aliases accepted after '#'
POS_TAGS = {
    "n": "noun",
    "noun": "noun",
    "v": "verb",
    "verb": "verb",
    "adj": "noun_modifier",
    "nm": "noun_modifier",
    "adv": "verb_modifier",
    "vm": "verb_modifier",
    "det": "determiner",
    "d": "determiner",
    "pro": "pronoun",
    "pron": "pronoun",
    "adp": "adposition",
    "prep": "adposition",
    "post": "adposition",
    "conj": "conjunction",
    "c": "conjunction",
}

# Known attribute tags, grouped by slot. A token may hold one value per slot.
ATTRIBUTE_SLOTS = {
    "tense": ("PST", "PRS", "FUT"),
    "aspect": ("PFV", "IPFV"),
    "number": ("SG", "DU", "PL"),
    "person": ("1", "2", "3"),
    "polarity": ("NEG",),
    "definiteness": ("DEF", "INDF"),
    "case": ("NOM", "ACC", "GEN", "DAT"),
}

ATTRIBUTE_TAGS = {
    tag: slot for slot, tags in ATTRIBUTE_SLOTS.items() for tag in tags
}


WORD_ORDERS = ("SVO", "SOV", "VSO", "VOS", "OSV", "OVS")
