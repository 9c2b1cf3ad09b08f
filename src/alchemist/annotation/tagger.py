"""Basic-mode tagging for un-annotated input.

Provides:
- Tagger: Protocol for any best-effort tagger the pipeline can call
- BasicTagger: Small closed-class word lists plus suffix heuristics

The tagger output is treated exactly like explicit annotation. It makes no
attempt at real disambiguation: closed-class words are looked up, auxiliaries
are folded into the next verb as attributes, and determiner-led runs become
noun-phrase groups.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Protocol

from alchemist.annotation.models import AnnotatedToken, WordType, normalize_lemma

logger = logging.getLogger(__name__)


class Tagger(Protocol):
    """Interface for basic-mode taggers."""

    def tag(self, raw_text: str) -> list[AnnotatedToken]:
        """Infer parts of speech, attributes and groups for raw text."""
        ...


DETERMINERS = frozenset(
    {
        "a", "an", "the", "this", "that", "these", "those", "my", "your",
        "his", "her", "its", "our", "their", "some", "any", "every", "each",
        "no",
    }
)
PLURAL_DETERMINERS = frozenset({"these", "those"})

PRONOUNS = frozenset(
    {
        "i", "you", "he", "she", "it", "we", "they", "me", "him", "us",
        "them", "myself", "yourself", "someone", "something", "nothing",
    }
)
PLURAL_PRONOUNS = frozenset({"we", "they", "us", "them"})

CONJUNCTIONS = frozenset({"and", "or", "but", "nor", "so", "yet", "because"})

ADPOSITIONS = frozenset(
    {
        "in", "on", "at", "to", "from", "with", "without", "of", "by", "for",
        "under", "over", "into", "onto", "through", "between", "near",
        "after", "before", "behind", "across", "about",
    }
)

# Auxiliaries fold into the following verb as attributes
AUXILIARIES = {
    "will": frozenset({"FUT"}),
    "shall": frozenset({"FUT"}),
    "did": frozenset({"PST"}),
    "was": frozenset({"PST"}),
    "were": frozenset({"PST"}),
    "do": frozenset(),
    "does": frozenset(),
    "is": frozenset({"PRS"}),
    "are": frozenset({"PRS"}),
    "am": frozenset({"PRS"}),
}
NEGATORS = frozenset({"not", "never"})

_TOKEN_RE = re.compile(r"\w+(?:[-'’]\w+)*|[^\w\s]")

# Words ending in -s that are not plurals
_NON_PLURAL_S = frozenset({"news", "lens", "bus", "gas", "this", "is", "has", "was"})


def _singular(word: str) -> str | None:
    """Return the singular of a regular English plural, or None."""
    if word in _NON_PLURAL_S or len(word) < 3 or word.endswith("ss"):
        return None
    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"
    if word.endswith(("ches", "shes", "xes", "zes", "sses")):
        return word[:-2]
    if word.endswith("s") and not word.endswith("us"):
        return word[:-1]
    return None


@dataclasses.dataclass
class _Draft:
    """Mutable token under construction."""

    surface: str
    lemma: str
    span: tuple[int, int]
    part_of_speech: WordType | None = None
    attributes: set[str] = dataclasses.field(default_factory=set)
    is_punctuation: bool = False
    absorbed: bool = False


class BasicTagger:
    """Heuristic tagger for plain English input.

    Usage:
        tokens = BasicTagger().tag("I will find the answers")
    """

    def tag(self, raw_text: str) -> list[AnnotatedToken]:
        drafts = [
            _Draft(
                surface=m.group(0),
                lemma=normalize_lemma(m.group(0)),
                span=m.span(),
                is_punctuation=not m.group(0)[0].isalnum(),
            )
            for m in _TOKEN_RE.finditer(raw_text)
        ]

        self._tag_closed_class(drafts)
        self._tag_verbs(drafts)
        self._tag_nominals(drafts)
        groups = self._find_groups(drafts)

        tokens = []
        opens: dict[int, int] = {}
        closes: dict[int, int] = {}
        for start, end in groups:
            opens[start] = opens.get(start, 0) + 1
            closes[end] = closes.get(end, 0) + 1

        for i, draft in enumerate(drafts):
            if draft.absorbed:
                continue
            tokens.append(
                AnnotatedToken(
                    surface=draft.surface,
                    lemma=draft.lemma,
                    part_of_speech=draft.part_of_speech,
                    attributes=frozenset(draft.attributes),
                    opens=opens.get(i, 0),
                    closes=closes.get(i, 0),
                    is_punctuation=draft.is_punctuation,
                    span=draft.span,
                )
            )

        logger.debug(f"Tagged {len(tokens)} tokens in basic mode")
        return tokens

    def _tag_closed_class(self, drafts: list[_Draft]) -> None:
        for draft in drafts:
            if draft.is_punctuation:
                continue
            word = draft.lemma
            if word in DETERMINERS:
                draft.part_of_speech = WordType.DETERMINER
                if word in PLURAL_DETERMINERS:
                    draft.attributes.add("PL")
            elif word in PRONOUNS:
                draft.part_of_speech = WordType.PRONOUN
                if word in PLURAL_PRONOUNS:
                    draft.attributes.add("PL")
            elif word in CONJUNCTIONS:
                draft.part_of_speech = WordType.CONJUNCTION
            elif word in ADPOSITIONS:
                draft.part_of_speech = WordType.ADPOSITION

    def _tag_verbs(self, drafts: list[_Draft]) -> None:
        """Fold auxiliaries into the next open word and mark it a verb."""
        pending: set[str] = set()
        after_subject = False

        for draft in drafts:
            if draft.is_punctuation:
                pending = set()
                after_subject = False
                continue

            word = draft.lemma
            if draft.part_of_speech is None and word in AUXILIARIES:
                pending |= AUXILIARIES[word]
                draft.absorbed = True
                continue
            if draft.part_of_speech is None and word in NEGATORS:
                pending.add("NEG")
                draft.absorbed = True
                continue
            if word.endswith("n't") and word[:-3] in AUXILIARIES:
                pending |= AUXILIARIES[word[:-3]] | {"NEG"}
                draft.absorbed = True
                continue

            if draft.part_of_speech == WordType.PRONOUN:
                after_subject = True
                continue
            if draft.part_of_speech is not None:
                continue

            past = word.endswith("ed") and len(word) > 4
            if pending or after_subject or past:
                draft.part_of_speech = WordType.VERB
                draft.attributes |= pending
                if past:
                    draft.attributes.add("PST")
                    stem = word[:-2]
                    # stopped -> stop
                    if len(stem) > 2 and stem[-1] == stem[-2]:
                        stem = stem[:-1]
                    draft.lemma = stem
                elif not pending and _singular(word):
                    # third person -s: "sees" -> "see"
                    draft.lemma = _singular(word) or word
                pending = set()
                after_subject = False

    def _tag_nominals(self, drafts: list[_Draft]) -> None:
        for i, draft in enumerate(drafts):
            if draft.is_punctuation or draft.part_of_speech is not None:
                continue
            word = draft.lemma
            if word.endswith("ly") and len(word) > 4:
                draft.part_of_speech = WordType.VERB_MODIFIER
                continue

            following = drafts[i + 1] if i + 1 < len(drafts) else None
            if (
                following is not None
                and not following.is_punctuation
                and following.part_of_speech is None
                and not following.absorbed
            ):
                # Open word followed by another open word: treat as a modifier
                draft.part_of_speech = WordType.NOUN_MODIFIER
                continue

            draft.part_of_speech = WordType.NOUN
            singular = _singular(word)
            if singular:
                draft.lemma = singular
                draft.attributes.add("PL")

    def _find_groups(self, drafts: list[_Draft]) -> list[tuple[int, int]]:
        """Group determiner + modifiers + noun runs into noun phrases."""
        groups = []
        i = 0
        while i < len(drafts):
            if drafts[i].part_of_speech != WordType.DETERMINER:
                i += 1
                continue
            j = i + 1
            while j < len(drafts) and drafts[j].part_of_speech == WordType.NOUN_MODIFIER:
                j += 1
            if j < len(drafts) and drafts[j].part_of_speech == WordType.NOUN:
                groups.append((i, j))
                i = j + 1
            else:
                i += 1
        return groups
