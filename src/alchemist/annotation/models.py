"""Lexical unit types shared by the parser, tagger and tree builder."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from enum import Enum

from alchemist.config import POS_TAGS


def normalize_lemma(text: str) -> str:
    """Normalize a word for lexicon lookup: NFC, lower-cased, trimmed."""
    return unicodedata.normalize("NFC", text).strip().lower()


class WordType(str, Enum):
    """A word type, roughly a part of speech simplified to fit arbitrary languages."""

    ADPOSITION = "adposition"
    CONJUNCTION = "conjunction"
    DETERMINER = "determiner"
    NOUN = "noun"
    NOUN_MODIFIER = "noun_modifier"
    PRONOUN = "pronoun"
    VERB = "verb"
    VERB_MODIFIER = "verb_modifier"

    @property
    def short_name(self) -> str:
        """Abbreviation used in rewrite-rule patterns."""
        return _SHORT_NAMES[self]

    @classmethod
    def from_short_name(cls, name: str) -> "WordType | None":
        for word_type, short in _SHORT_NAMES.items():
            if short == name:
                return word_type
        return None


def resolve_word_type(tag: str) -> WordType:
    """Resolve a part-of-speech tag or alias ('n', 'adj', 'noun') to a WordType.

    Raises:
        ValueError: If the tag is not recognized
    """
    name = tag.strip().lower()
    return WordType(POS_TAGS.get(name, name))


_SHORT_NAMES = {
    WordType.ADPOSITION: "Adp",
    WordType.CONJUNCTION: "Conj",
    WordType.DETERMINER: "Det",
    WordType.NOUN: "Noun",
    WordType.NOUN_MODIFIER: "NM",
    WordType.PRONOUN: "Pro",
    WordType.VERB: "Verb",
    WordType.VERB_MODIFIER: "VM",
}


@dataclass(frozen=True)
class AnnotatedToken:
    """One parsed input unit.

    Group boundaries are carried on the tokens themselves: ``opens`` counts
    the groups that start immediately before this token and ``closes`` the
    groups that end immediately after it.
    """

    surface: str
    """Surface text with annotation markers stripped."""

    lemma: str
    """Lookup key for the lexicon (normalized, lower-case)."""

    part_of_speech: WordType | None = None
    attributes: frozenset[str] = field(default_factory=frozenset)
    opens: int = 0
    closes: int = 0
    is_punctuation: bool = False
    span: tuple[int, int] = (0, 0)
    """Character offsets of the token in the source text."""

    @property
    def is_tagged(self) -> bool:
        return self.part_of_speech is not None

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {
            "surface": self.surface,
            "lemma": self.lemma,
            "part_of_speech": self.part_of_speech.value
            if self.part_of_speech
            else None,
            "attributes": sorted(self.attributes),
            "opens": self.opens,
            "closes": self.closes,
            "is_punctuation": self.is_punctuation,
            "span": list(self.span),
        }


# Word types that draw from the function-word length profile
FUNCTION_WORD_TYPES = frozenset(
    {
        WordType.ADPOSITION,
        WordType.CONJUNCTION,
        WordType.DETERMINER,
        WordType.PRONOUN,
    }
)
NOMINAL_WORD_TYPES = frozenset({WordType.NOUN, WordType.PRONOUN})
MODIFIER_WORD_TYPES = frozenset({WordType.NOUN_MODIFIER, WordType.VERB_MODIFIER})
CONTENT_WORD_TYPES = NOMINAL_WORD_TYPES | MODIFIER_WORD_TYPES | {WordType.VERB}
