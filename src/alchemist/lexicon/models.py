"""Lexicon entry types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from alchemist.annotation.models import WordType


def attribute_key(attributes: Iterable[str]) -> str:
    """Stable string form of an attribute set, e.g. 'FUT.NEG'."""
    return ".".join(sorted(attributes))


@dataclass(frozen=True)
class Lexeme:
    """One (lemma, part of speech) -> base form entry for a conlang.

    The base form of a generated lexeme never changes once committed. A user
    override produces a new Lexeme with ``source == "override"`` that takes
    precedence for the same key.
    """

    lemma: str
    part_of_speech: WordType
    base_form: str
    phonemes: tuple[str, ...] = ()
    source: str = "generated"
    irregular: dict[frozenset[str], str] = field(default_factory=dict)
    """User-supplied surface forms for specific attribute sets."""

    created_at: str = ""

    @property
    def key(self) -> tuple[str, WordType]:
        return (self.lemma, self.part_of_speech)

    def irregular_form(self, attributes: frozenset[str]) -> str | None:
        return self.irregular.get(frozenset(attributes))

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {
            "lemma": self.lemma,
            "part_of_speech": self.part_of_speech.value,
            "base_form": self.base_form,
            "phonemes": list(self.phonemes),
            "source": self.source,
            "irregular": {
                attribute_key(attrs): form
                for attrs, form in sorted(
                    self.irregular.items(), key=lambda item: attribute_key(item[0])
                )
            },
            "created_at": self.created_at,
        }
