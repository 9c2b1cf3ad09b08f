"""Deterministic word generation from a profile's phonotactics.

The generator is a pure function of (profile, part of speech, seed). Seeds
come from ``seed_for`` which hashes the conlang id, lemma and part of speech,
so the same cache miss always produces the same word, across processes.

Algorithm:
1. Draw a syllable count from the part of speech's length weights
2. For each position (single / initial / middle / terminal) pick a shape
3. Fill each shape class with a phoneme, reject and resample syllables that
   break a constraint (bounded by ``max_retries`` per syllable)
4. Render the phoneme sequence through the orthography
"""

from __future__ import annotations

import hashlib
import logging
import random
from dataclasses import dataclass

from alchemist.annotation.models import FUNCTION_WORD_TYPES, WordType
from alchemist.profile.models import ConlangProfile
from alchemist.synthesis.phonology import (
    Syllable,
    check_syllable,
    find_forbidden,
    render,
    split_shape,
)

logger = logging.getLogger(__name__)


class GenerationExhausted(Exception):
    """Raised when phonotactic constraints cannot be satisfied.

    This is a configuration error in the profile, never a transient
    condition: retrying with the same profile fails the same way.
    """

    def __init__(self, part_of_speech: WordType | None, reason: str):
        self.part_of_speech = part_of_speech
        self.reason = reason
        label = part_of_speech.value if part_of_speech else "word"
        super().__init__(f"Cannot generate a {label}: {reason}")


@dataclass(frozen=True)
class GeneratedWord:
    """A freshly generated base form."""

    phonemes: tuple[str, ...]
    syllables: tuple[Syllable, ...]
    written: str


def seed_for(conlang_id: str, lemma: str, part_of_speech: WordType | str) -> int:
    """Derive a stable seed from the lexicon key."""
    pos = WordType(part_of_speech).value
    digest = hashlib.sha256(f"{conlang_id}\x1f{lemma}\x1f{pos}".encode("utf-8"))
    return int.from_bytes(digest.digest()[:8], "big")


def _positions(count: int) -> list[str]:
    if count == 1:
        return ["single"]
    return ["initial"] + ["middle"] * (count - 2) + ["terminal"]


class WordGenerator:
    """Invents conlang words for a profile.

    Usage:
        generator = WordGenerator(profile)
        word = generator.generate(WordType.NOUN, seed_for(profile.id, "dog", "noun"))
    """

    def __init__(self, profile: ConlangProfile, max_retries: int = 64):
        self.profile = profile
        self.phonology = profile.phonology
        self.max_retries = max_retries

    def generate(self, part_of_speech: WordType | str, seed: int) -> GeneratedWord:
        """Generate one word.

        Raises:
            GenerationExhausted: If the constraints cannot be met
        """
        pos = WordType(part_of_speech)
        rng = random.Random(seed)
        count = self._syllable_count(rng, pos)

        syllables: list[Syllable] = []
        phonemes: list[str] = []
        for position in _positions(count):
            syllable = self._sample_syllable(rng, pos, position, phonemes)
            syllables.append(syllable)
            phonemes.extend(syllable.phonemes)

        written = render(phonemes, self.profile.orthography)
        logger.debug(f"Generated {pos.value} '{written}' from seed {seed}")
        return GeneratedWord(
            phonemes=tuple(phonemes), syllables=tuple(syllables), written=written
        )

    def generate_for(self, lemma: str, part_of_speech: WordType | str) -> GeneratedWord:
        """Generate the word for a lexicon key using its derived seed."""
        return self.generate(
            part_of_speech, seed_for(self.profile.id, lemma, part_of_speech)
        )

    def sample(
        self, part_of_speech: WordType | str, count: int, seed: int = 0
    ) -> list[GeneratedWord]:
        """Generate several words from consecutive seeds (for previewing a profile)."""
        return [self.generate(part_of_speech, seed + i) for i in range(count)]

    def _syllable_count(self, rng: random.Random, pos: WordType) -> int:
        weights = self.phonology.pos_syllable_weights.get(pos)
        if weights is None:
            group = "function" if pos in FUNCTION_WORD_TYPES else "content"
            weights = self.phonology.syllable_weights.get(group, ())
        if not weights or sum(weights) <= 0:
            logger.error(f"No syllable length weights usable for {pos.value}")
            raise GenerationExhausted(pos, "syllable length weights have no mass")
        return rng.choices(range(1, len(weights) + 1), weights=weights)[0]

    def _sample_syllable(
        self,
        rng: random.Random,
        pos: WordType,
        position: str,
        preceding: list[str],
    ) -> Syllable:
        shapes = self.phonology.shapes_for(position)
        if not shapes:
            logger.error(f"No syllable shapes for position '{position}'")
            raise GenerationExhausted(pos, f"no syllable shapes for {position} position")

        last_violation = "no attempts made"
        for attempt in range(self.max_retries):
            shape = rng.choice(shapes)
            syllable = self._fill_shape(rng, shape)
            if syllable is None:
                last_violation = f"shape '{shape}' cannot be filled"
                continue

            violation = check_syllable(self.phonology, syllable)
            if violation is None:
                # Sequences spanning the boundary with the previous syllable
                tail = "".join(preceding)[-8:]
                banned = find_forbidden(
                    [tail, *syllable.phonemes], self.phonology.forbidden
                )
                if banned:
                    violation = f"forbidden sequence '{banned}' across boundary"
            if violation is None:
                return syllable

            last_violation = violation
            logger.debug(
                f"Rejected syllable '{syllable}' ({violation}), attempt {attempt + 1}"
            )

        logger.error(
            f"Exhausted {self.max_retries} attempts for {position} syllable "
            f"of {pos.value}: {last_violation}"
        )
        raise GenerationExhausted(
            pos,
            f"{self.max_retries} attempts exhausted for {position} syllable "
            f"(last: {last_violation})",
        )

    def _fill_shape(self, rng: random.Random, shape: str) -> Syllable | None:
        try:
            onset_classes, coda_classes = split_shape(shape, self.phonology.nucleus)
        except ValueError:
            return None

        classes = self.phonology.classes
        vowels = classes.get(self.phonology.nucleus)
        if not vowels:
            return None

        onset = []
        for symbol in onset_classes:
            members = classes.get(symbol)
            if not members:
                return None
            onset.append(rng.choice(members))
        nucleus = rng.choice(vowels)
        coda = []
        for symbol in coda_classes:
            members = classes.get(symbol)
            if not members:
                return None
            coda.append(rng.choice(members))
        return Syllable(onset=tuple(onset), nucleus=nucleus, coda=tuple(coda))
