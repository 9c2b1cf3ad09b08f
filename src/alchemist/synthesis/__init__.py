"""Phonology and deterministic word generation."""

from alchemist.synthesis.generator import (
    GeneratedWord,
    GenerationExhausted,
    WordGenerator,
    seed_for,
)
from alchemist.synthesis.phonology import Syllable, check_syllable, render

__all__ = [
    "GeneratedWord",
    "GenerationExhausted",
    "WordGenerator",
    "seed_for",
    "Syllable",
    "check_syllable",
    "render",
]
