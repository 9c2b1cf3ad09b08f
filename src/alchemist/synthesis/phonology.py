"""Syllable structure, phonotactic checks and orthographic rendering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from alchemist.profile.models import Phonology


@dataclass(frozen=True)
class Syllable:
    """One syllable split into onset, nucleus and coda phonemes."""

    onset: tuple[str, ...]
    nucleus: str
    coda: tuple[str, ...] = ()

    @property
    def phonemes(self) -> tuple[str, ...]:
        return self.onset + (self.nucleus,) + self.coda

    def __str__(self) -> str:
        return "".join(self.phonemes)


def split_shape(shape: str, nucleus: str) -> tuple[str, str]:
    """Split a shape like 'CCVC' into onset and coda class symbols.

    Raises:
        ValueError: If the shape does not contain exactly one nucleus symbol
    """
    if shape.count(nucleus) != 1:
        raise ValueError(f"Shape '{shape}' must contain exactly one '{nucleus}'")
    index = shape.index(nucleus)
    return shape[:index], shape[index + 1 :]


def find_forbidden(phonemes: Iterable[str], forbidden: Iterable[str]) -> str | None:
    """Return the first forbidden sequence found in the phoneme string, if any."""
    joined = "".join(phonemes)
    for sequence in forbidden:
        if sequence and sequence in joined:
            return sequence
    return None


def check_syllable(phonology: Phonology, syllable: Syllable) -> str | None:
    """Check one syllable against the phonotactic constraints.

    Empty onsets and codas are always permitted; the onset/coda allow-lists
    constrain non-empty clusters only.

    Returns:
        None if the syllable complies, otherwise a description of the violation
    """
    if syllable.nucleus not in phonology.vowels:
        return f"nucleus '{syllable.nucleus}' is not in class '{phonology.nucleus}'"

    inventory = phonology.phonemes
    for phoneme in syllable.onset + syllable.coda:
        if phoneme not in inventory:
            return f"'{phoneme}' is not in the phoneme inventory"

    if syllable.onset and phonology.onsets is not None:
        if syllable.onset not in phonology.onsets:
            return f"onset '{''.join(syllable.onset)}' is not allowed"
    if syllable.coda and phonology.codas is not None:
        if syllable.coda not in phonology.codas:
            return f"coda '{''.join(syllable.coda)}' is not allowed"

    banned = find_forbidden(syllable.phonemes, phonology.forbidden)
    if banned:
        return f"contains forbidden sequence '{banned}'"
    return None


def render(phonemes: Iterable[str], orthography: dict[str, str]) -> str:
    """Render phonemes to written form; unmapped phonemes are written as-is."""
    return "".join(orthography.get(p, p) for p in phonemes)
