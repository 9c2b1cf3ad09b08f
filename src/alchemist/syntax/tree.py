"""Shallow constituent tree built from annotated tokens.

The tree is a tagged variant: LeafNode wraps one token, PhraseNode owns an
ordered list of children. The root is a PhraseNode of type ``clause``.
Nodes are mutable because the orchestrator fills in surface forms and the
transducer re-sequences children in place; the tree lives for one request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Union

from alchemist.annotation.models import (
    CONTENT_WORD_TYPES,
    NOMINAL_WORD_TYPES,
    AnnotatedToken,
    WordType,
)

if TYPE_CHECKING:
    from alchemist.morphology.engine import MorphologyGap

logger = logging.getLogger(__name__)

CLAUSE = "clause"
NOUN_PHRASE = "noun_phrase"
VERB_PHRASE = "verb_phrase"
MODIFIER_PHRASE = "modifier_phrase"

PHRASE_SHORT_NAMES = {
    NOUN_PHRASE: "NP",
    VERB_PHRASE: "VP",
    MODIFIER_PHRASE: "MP",
    CLAUSE: "Clause",
}


class StructureError(Exception):
    """Raised when tokens cannot be assembled into a valid tree."""

    def __init__(self, message: str, tokens: list[AnnotatedToken] | None = None):
        self.tokens = tokens or []
        self.span = (
            (self.tokens[0].span[0], self.tokens[-1].span[1]) if self.tokens else None
        )
        if self.tokens:
            words = " ".join(t.surface for t in self.tokens)
            message = f"{message}: ({words})"
        super().__init__(message)


@dataclass(eq=False)
class LeafNode:
    """A single word or punctuation mark."""

    token: AnnotatedToken | None
    part_of_speech: WordType | None = None
    attributes: frozenset[str] = frozenset()
    role: str = "other"
    base_form: str | None = None
    surface: str | None = None
    """Output text; None until translated. Literal leaves are created with it set."""

    irregular: dict[frozenset[str], str] = field(default_factory=dict)
    gap: "MorphologyGap | None" = None
    ignored: frozenset[str] = frozenset()
    """Attributes the paradigm does not model, dropped during inflection."""

    @classmethod
    def from_token(cls, token: AnnotatedToken) -> "LeafNode":
        return cls(
            token=token,
            part_of_speech=token.part_of_speech,
            attributes=token.attributes,
        )

    @classmethod
    def literal(cls, text: str) -> "LeafNode":
        """A leaf inserted by a rewrite rule, emitted verbatim."""
        return cls(token=None, surface=text)

    @property
    def is_punctuation(self) -> bool:
        return self.token is not None and self.token.is_punctuation

    @property
    def lemma(self) -> str | None:
        return self.token.lemma if self.token is not None else None

    @property
    def source_text(self) -> str:
        return self.token.surface if self.token is not None else (self.surface or "")

    def output(self) -> str:
        """Text this leaf contributes to the final output."""
        if self.surface is not None:
            return self.surface
        return self.source_text

    def to_dict(self) -> dict:
        return {
            "type": "leaf",
            "role": self.role,
            "source": self.source_text,
            "part_of_speech": self.part_of_speech.value if self.part_of_speech else None,
            "attributes": sorted(self.attributes),
            "base_form": self.base_form,
            "surface": self.surface,
        }


@dataclass(eq=False)
class PhraseNode:
    """A group of constituents."""

    phrase_type: str
    children: list["ConstituentNode"] = field(default_factory=list)
    head: LeafNode | None = None
    role: str = "complement"

    def leaves(self) -> Iterator[LeafNode]:
        """All leaves in order, depth first."""
        for child in self.children:
            if isinstance(child, LeafNode):
                yield child
            else:
                yield from child.leaves()

    def phrases(self) -> Iterator["PhraseNode"]:
        """Nested phrases, innermost first, excluding self."""
        for child in self.children:
            if isinstance(child, PhraseNode):
                yield from child.phrases()
                yield child

    def tokens(self) -> list[AnnotatedToken]:
        return [leaf.token for leaf in self.leaves() if leaf.token is not None]

    def to_dict(self) -> dict:
        return {
            "type": "phrase",
            "phrase_type": self.phrase_type,
            "role": self.role,
            "head": self.head.source_text if self.head else None,
            "children": [child.to_dict() for child in self.children],
        }


ConstituentNode = Union[LeafNode, PhraseNode]


def _select_head(leaves: list[LeafNode]) -> LeafNode | None:
    """Rightmost nominal, else rightmost verb, else rightmost content word."""
    for wanted in (NOMINAL_WORD_TYPES, {WordType.VERB}, CONTENT_WORD_TYPES):
        for leaf in reversed(leaves):
            if leaf.part_of_speech in wanted:
                return leaf
    return None


def _phrase_type_for(head: LeafNode) -> str:
    if head.part_of_speech in NOMINAL_WORD_TYPES:
        return NOUN_PHRASE
    if head.part_of_speech == WordType.VERB:
        return VERB_PHRASE
    return MODIFIER_PHRASE


def _finish_phrase(phrase: PhraseNode) -> None:
    """Pick the head, infer the phrase type and assign child roles."""
    leaves = [
        c for c in phrase.children if isinstance(c, LeafNode) and not c.is_punctuation
    ]
    head = _select_head(leaves)
    if head is None:
        raise StructureError("Group has no identifiable head", phrase.tokens())

    phrase.head = head
    phrase.phrase_type = _phrase_type_for(head)
    head.role = "head"

    before_head = True
    for child in phrase.children:
        if child is head:
            before_head = False
            continue
        if isinstance(child, PhraseNode):
            child.role = "complement"
        elif child.is_punctuation:
            child.role = "other"
        elif child.part_of_speech is None:
            if before_head:
                # Untagged words ahead of the head are determiners
                child.part_of_speech = WordType.DETERMINER
                child.role = "determiner"
            else:
                child.role = "other"
        elif child.part_of_speech == WordType.DETERMINER:
            child.role = "determiner"
        elif child.part_of_speech == WordType.ADPOSITION:
            child.role = "adposition"
        elif child.part_of_speech in CONTENT_WORD_TYPES:
            child.role = "modifier"
        else:
            child.role = "other"


def build_tree(tokens: list[AnnotatedToken]) -> PhraseNode:
    """Assemble tokens into a clause-rooted constituent tree.

    Raises:
        StructureError: If group markers are unbalanced or a group is headless
    """
    root = PhraseNode(phrase_type=CLAUSE, role="root")
    stack: list[PhraseNode] = [root]

    for token in tokens:
        for _ in range(token.opens):
            phrase = PhraseNode(phrase_type=NOUN_PHRASE)
            stack[-1].children.append(phrase)
            stack.append(phrase)

        stack[-1].children.append(LeafNode.from_token(token))

        for _ in range(token.closes):
            if len(stack) == 1:
                raise StructureError("Group closed without being opened", [token])
            _finish_phrase(stack.pop())

    if len(stack) > 1:
        raise StructureError("Group opened but never closed", stack[-1].tokens())

    logger.debug(
        f"Built tree with {len(root.children)} root constituents "
        f"and {sum(1 for _ in root.phrases())} phrases"
    )
    return root
