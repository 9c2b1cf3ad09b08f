"""Syntax transducer: reorder a translated tree into conlang word order.

Passes, in order:
1. Phrase ordering: each phrase's dependents are placed before or after the
   head by role, per ``syntax.phrase_order``
2. Clause ordering: subject, verb and object at the root are re-sequenced
   per ``syntax.word_order`` into the slots they occupied
3. Rewrite rules at every level, innermost phrases first
4. Agreement: targets copy attributes from their phrase head and are
   re-inflected

The tree is modified in place; ``transduce`` returns the output leaves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from alchemist.annotation.models import NOMINAL_WORD_TYPES, WordType
from alchemist.config import ATTRIBUTE_TAGS
from alchemist.morphology.engine import MorphologyEngine
from alchemist.profile.models import AgreementRule, ConlangProfile
from alchemist.syntax.rewrite import compile_rules
from alchemist.syntax.tree import (
    NOUN_PHRASE,
    VERB_PHRASE,
    ConstituentNode,
    LeafNode,
    PhraseNode,
)

logger = logging.getLogger(__name__)


@dataclass
class TransductionResult:
    """Ordered output leaves plus bookkeeping for diagnostics."""

    leaves: list[LeafNode]
    agreed: list[LeafNode] = field(default_factory=list)
    """Leaves re-inflected by agreement."""

    rewrites: int = 0


def _is_verb(node: ConstituentNode) -> bool:
    if isinstance(node, PhraseNode):
        return node.phrase_type == VERB_PHRASE
    return node.part_of_speech == WordType.VERB


def _is_nominal(node: ConstituentNode) -> bool:
    if isinstance(node, PhraseNode):
        return node.phrase_type == NOUN_PHRASE
    return node.part_of_speech in NOMINAL_WORD_TYPES


def agree_attributes(
    current: frozenset[str], controller: frozenset[str], rule: AgreementRule
) -> frozenset[str]:
    """Attributes of a target after copying the controller's agreeing values."""
    copied = controller & rule.attributes
    if not copied:
        return current
    slots = {ATTRIBUTE_TAGS.get(a) for a in copied} - {None}
    kept = frozenset(
        a
        for a in current
        if a not in rule.attributes and ATTRIBUTE_TAGS.get(a) not in slots
    )
    return kept | copied


class SyntaxTransducer:
    """Applies a profile's syntax parameters to a constituent tree.

    Usage:
        transducer = SyntaxTransducer(profile, MorphologyEngine(profile))
        result = transducer.transduce(root)
    """

    def __init__(
        self, profile: ConlangProfile, morphology: MorphologyEngine | None = None
    ):
        self.profile = profile
        self.params = profile.syntax
        self.morphology = morphology or MorphologyEngine(profile)
        self.rules = compile_rules(self.params.rewrite_rules)

    def transduce(self, root: PhraseNode) -> TransductionResult:
        for phrase in root.phrases():
            self.order_phrase(phrase)
        self.order_clause(root)
        rewrites = self.rewrite(root)
        agreed = self.apply_agreement(root)

        leaves = [
            leaf
            for leaf in root.leaves()
            if self.params.realize_determiners
            or leaf.part_of_speech != WordType.DETERMINER
        ]
        return TransductionResult(leaves=leaves, agreed=agreed, rewrites=rewrites)

    def order_phrase(self, phrase: PhraseNode) -> None:
        """Place dependents before or after the head by role. Stable per side."""
        head = phrase.head
        if head is None or head not in phrase.children:
            return
        rules = self.params.phrase_order.get(phrase.phrase_type, {})
        head_index = phrase.children.index(head)

        before: list[ConstituentNode] = []
        after: list[ConstituentNode] = []
        for index, child in enumerate(phrase.children):
            if child is head:
                continue
            side = rules.get(child.role)
            if side is None:
                side = "before" if index < head_index else "after"
            (before if side == "before" else after).append(child)

        phrase.children = before + [head] + after

    def order_clause(self, root: PhraseNode) -> None:
        """Re-sequence subject, verb and object at the root."""
        children = root.children
        verb_index = next((i for i, c in enumerate(children) if _is_verb(c)), None)
        if verb_index is None:
            return

        slots = {"V": verb_index}
        for i in range(verb_index - 1, -1, -1):
            if _is_nominal(children[i]):
                slots["S"] = i
                break
        for i in range(verb_index + 1, len(children)):
            if _is_nominal(children[i]):
                slots["O"] = i
                break

        names = {"S": "subject", "V": "verb", "O": "object"}
        for letter, index in slots.items():
            children[index].role = names[letter]

        positions = sorted(slots.values())
        wanted = [letter for letter in self.params.word_order if letter in slots]
        moved = [children[slots[letter]] for letter in wanted]
        for position, node in zip(positions, moved):
            children[position] = node
        logger.debug(f"Clause order {''.join(wanted)} over slots {positions}")

    def rewrite(self, root: PhraseNode) -> int:
        """Run rewrite rules on every phrase, innermost first, then the root."""
        if not self.rules:
            return 0
        total = 0
        for phrase in [*root.phrases(), root]:
            for rule in self.rules:
                phrase.children, count = rule.apply(phrase.children)
                total += count
        if total:
            logger.debug(f"Applied {total} rewrites")
        return total

    def apply_agreement(self, root: PhraseNode) -> list[LeafNode]:
        """Copy controller attributes onto targets and re-inflect them."""
        agreed: list[LeafNode] = []
        if not self.params.agreement:
            return agreed

        for phrase in root.phrases():
            head = phrase.head
            if head is None:
                continue
            for rule in self.params.agreement:
                if head.part_of_speech != rule.controller:
                    continue
                for child in phrase.children:
                    if (
                        not isinstance(child, LeafNode)
                        or child is head
                        or child.part_of_speech != rule.target
                    ):
                        continue
                    updated = agree_attributes(
                        child.attributes, head.attributes, rule
                    )
                    if updated == child.attributes:
                        continue
                    child.attributes = updated
                    self.morphology.inflect_leaf(child)
                    agreed.append(child)
                    logger.debug(
                        f"'{child.source_text}' agrees with '{head.source_text}': "
                        f"{sorted(updated)}"
                    )
        return agreed
