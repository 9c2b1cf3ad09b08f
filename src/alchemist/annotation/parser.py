"""Annotation parser: explicit inline markup to AnnotatedToken sequences.

Syntax (no whitespace between a word and its markers):
- ``word#pos``    part of speech (``dog#n``, ``see#verb``)
- ``word.TAG``    attribute (``dogs.PL``); chains like ``.FUT.NEG`` only when
                  the profile allows them, and never two values for one slot
- ``( ... )``     group boundaries, nesting limited by ``max_group_depth``

Anything else that is not a word or whitespace is punctuation. Markers may
not follow punctuation. The parser never recovers from a malformed span;
it raises ParseError with the offending character offsets.

The lemma is the written word, lower-cased. Annotated words are never
stemmed: ``dogs#n.PL`` and ``dog#n.PL`` are different lexicon keys, while the
basic tagger reduces ``dogs`` to ``dog``. Write the base form with its
attributes to share an entry with plain-text input.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import TYPE_CHECKING, Iterable

from alchemist.annotation.models import (
    AnnotatedToken,
    WordType,
    normalize_lemma,
    resolve_word_type,
)
from alchemist.config import ATTRIBUTE_TAGS

if TYPE_CHECKING:
    from alchemist.profile.models import ConlangProfile

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\w+(?:[-'’]\w+)*")
_POS_RE = re.compile(r"#(\w*)")
_ATTR_RE = re.compile(r"\.(\w+)")
_MARKER_START_RE = re.compile(r"#|\.\w")
_ANNOTATION_HINT_RE = re.compile(r"\w#\w|[()]")
_ATTRIBUTE_HINT_RE = re.compile(r"(?<=\w)\.(\w+)\b")


class ParseError(Exception):
    """Raised for malformed annotation syntax."""

    def __init__(self, message: str, span: tuple[int, int], text: str = ""):
        self.span = span
        self.text = text
        self.fragment = text[span[0] : span[1]] if text else ""
        location = f" at {span[0]}-{span[1]}"
        if self.fragment:
            location += f" ({self.fragment!r})"
        super().__init__(f"{message}{location}")


def has_annotations(
    text: str, known_attributes: Iterable[str] | None = None
) -> bool:
    """Return True if the text carries explicit annotation markup.

    A '.TAG' suffix only counts when TAG is a known attribute, so
    abbreviations ('U.S.') and decimals ('3.50') stay plain text.
    """
    if _ANNOTATION_HINT_RE.search(text):
        return True
    known = frozenset(
        known_attributes if known_attributes is not None else ATTRIBUTE_TAGS
    )
    return any(m.group(1) in known for m in _ATTRIBUTE_HINT_RE.finditer(text))


class AnnotationParser:
    """Tokenizes annotated text.

    Usage:
        parser = AnnotationParser.for_profile(profile)
        tokens = parser.parse("I see#v (a dog#n)")
    """

    def __init__(
        self,
        known_attributes: Iterable[str] | None = None,
        max_group_depth: int = 2,
        allow_attribute_chains: bool = False,
    ):
        self.known_attributes = frozenset(
            known_attributes if known_attributes is not None else ATTRIBUTE_TAGS
        )
        self.max_group_depth = max_group_depth
        self.allow_attribute_chains = allow_attribute_chains

    @classmethod
    def for_profile(cls, profile: "ConlangProfile") -> "AnnotationParser":
        return cls(
            known_attributes=profile.known_attributes,
            max_group_depth=profile.policy.max_group_depth,
            allow_attribute_chains=profile.policy.allow_attribute_chains,
        )

    def parse(self, text: str) -> list[AnnotatedToken]:
        """Parse annotated text into tokens.

        Raises:
            ParseError: On unknown tags, unbalanced or over-deep groups,
                empty groups, or markers attached to punctuation
        """
        tokens: list[AnnotatedToken] = []
        open_stack: list[tuple[int, int]] = []  # (char offset, token count at open)
        pending_opens = 0
        pos = 0

        while pos < len(text):
            char = text[pos]

            if char.isspace():
                pos += 1
                continue

            if char == "(":
                if len(open_stack) >= self.max_group_depth:
                    raise ParseError(
                        f"Groups nested deeper than {self.max_group_depth} levels",
                        (pos, pos + 1),
                        text,
                    )
                open_stack.append((pos, len(tokens)))
                pending_opens += 1
                pos += 1
                continue

            if char == ")":
                if not open_stack:
                    raise ParseError(
                        "Unbalanced ')' with no open group", (pos, pos + 1), text
                    )
                start, token_count = open_stack.pop()
                if token_count == len(tokens):
                    raise ParseError("Empty group", (start, pos + 1), text)
                last = tokens[-1]
                tokens[-1] = dataclasses.replace(last, closes=last.closes + 1)
                pos += 1
                continue

            word_match = _WORD_RE.match(text, pos)
            if word_match:
                token, pos = self._parse_word(text, word_match, pending_opens)
                tokens.append(token)
                pending_opens = 0
                continue

            if char == "#":
                raise ParseError("Tag without a word", (pos, pos + 1), text)

            # Punctuation
            if char == ".":
                dangling = _WORD_RE.match(text, pos + 1)
                if dangling:
                    raise ParseError(
                        "Attribute without a word", (pos, dangling.end()), text
                    )
            marker = _MARKER_START_RE.match(text, pos + 1)
            if marker:
                raise ParseError(
                    "Tag attached to punctuation", (pos, marker.end()), text
                )
            tokens.append(
                AnnotatedToken(
                    surface=char,
                    lemma=char,
                    opens=pending_opens,
                    is_punctuation=True,
                    span=(pos, pos + 1),
                )
            )
            pending_opens = 0
            pos += 1

        if open_stack:
            start, _ = open_stack[-1]
            raise ParseError("Unbalanced '(' never closed", (start, start + 1), text)

        logger.debug(f"Parsed {len(tokens)} tokens from annotated input")
        return tokens

    def _parse_word(
        self, text: str, word_match: re.Match, opens: int
    ) -> tuple[AnnotatedToken, int]:
        """Parse a word and its trailing markers. Returns (token, next offset)."""
        word = word_match.group(0)
        start = word_match.start()
        pos = word_match.end()
        part_of_speech: WordType | None = None
        attributes: list[tuple[str, int, int]] = []

        while pos < len(text):
            pos_match = _POS_RE.match(text, pos)
            if pos_match:
                tag = pos_match.group(1)
                if not tag:
                    raise ParseError(
                        "Empty part-of-speech tag", pos_match.span(), text
                    )
                if part_of_speech is not None:
                    raise ParseError(
                        "Duplicate part-of-speech tag", pos_match.span(), text
                    )
                part_of_speech = self._resolve_pos(tag, pos_match.span(), text)
                pos = pos_match.end()
                continue

            attr_match = _ATTR_RE.match(text, pos)
            if attr_match:
                attributes.append(
                    (attr_match.group(1).upper(), attr_match.start(), attr_match.end())
                )
                pos = attr_match.end()
                continue
            break

        return (
            AnnotatedToken(
                surface=word,
                lemma=normalize_lemma(word),
                part_of_speech=part_of_speech,
                attributes=self._resolve_attributes(attributes, text),
                opens=opens,
                span=(start, pos),
            ),
            pos,
        )

    def _resolve_pos(self, tag: str, span: tuple[int, int], text: str) -> WordType:
        try:
            return resolve_word_type(tag)
        except ValueError:
            raise ParseError(f"Unknown part-of-speech tag '#{tag}'", span, text)

    def _resolve_attributes(
        self, attributes: list[tuple[str, int, int]], text: str
    ) -> frozenset[str]:
        if not attributes:
            return frozenset()

        if len(attributes) > 1 and not self.allow_attribute_chains:
            _, start, _ = attributes[1]
            raise ParseError(
                "Attribute chains are not enabled for this language",
                (start, attributes[-1][2]),
                text,
            )

        resolved: set[str] = set()
        slots: dict[str, str] = {}
        for tag, start, end in attributes:
            if tag not in self.known_attributes:
                raise ParseError(f"Unknown attribute tag '.{tag}'", (start, end), text)
            if tag in resolved:
                raise ParseError(f"Repeated attribute '.{tag}'", (start, end), text)
            slot = ATTRIBUTE_TAGS.get(tag, tag)
            if slot in slots:
                raise ParseError(
                    f"Attribute '.{tag}' conflicts with '.{slots[slot]}' "
                    f"in the {slot} slot",
                    (start, end),
                    text,
                )
            slots[slot] = tag
            resolved.add(tag)
        return frozenset(resolved)
