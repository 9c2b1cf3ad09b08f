"""Tests for the syntax tree builder."""

import pytest

from alchemist.annotation.models import WordType
from alchemist.annotation.parser import AnnotationParser
from alchemist.syntax.tree import (
    CLAUSE,
    NOUN_PHRASE,
    VERB_PHRASE,
    LeafNode,
    PhraseNode,
    StructureError,
    build_tree,
)


def tree_for(text: str) -> PhraseNode:
    return build_tree(AnnotationParser().parse(text))


class TestBuildTree:
    """Grouping tokens into phrases."""

    def test_root_is_clause(self):
        root = tree_for("I see#v (a dog#n)")
        assert root.phrase_type == CLAUSE
        assert root.role == "root"
        assert len(root.children) == 3
        assert isinstance(root.children[0], LeafNode)
        assert isinstance(root.children[2], PhraseNode)

    def test_noun_phrase_head_and_determiner(self):
        """The noun heads the group; the untagged word before it is a determiner."""
        phrase = tree_for("I see#v (a dog#n)").children[2]
        assert phrase.phrase_type == NOUN_PHRASE
        assert phrase.head.lemma == "dog"
        determiner = phrase.children[0]
        assert determiner.role == "determiner"
        assert determiner.part_of_speech == WordType.DETERMINER

    def test_head_is_rightmost_nominal(self):
        """With two nouns the rightmost heads the phrase."""
        phrase = tree_for("(stone#n wall#n)").children[0]
        assert phrase.head.lemma == "wall"
        assert phrase.children[0].role == "modifier"

    def test_verb_phrase(self):
        """A group headed by a verb is a verb phrase; adverbs are modifiers."""
        phrase = tree_for("(quickly#adv run#v)").children[0]
        assert phrase.phrase_type == VERB_PHRASE
        assert phrase.head.lemma == "run"
        assert phrase.children[0].role == "modifier"

    def test_nested_phrase_is_complement(self):
        """A nested group becomes a complement child of its parent."""
        outer = tree_for("(dog#n (of#adp the#det king#n))").children[0]
        assert outer.head.lemma == "dog"
        inner = outer.children[1]
        assert isinstance(inner, PhraseNode)
        assert inner.role == "complement"
        assert inner.head.lemma == "king"
        assert inner.children[0].role == "adposition"

    def test_phrases_innermost_first(self):
        root = tree_for("(dog#n (of#adp the#det king#n))")
        heads = [p.head.lemma for p in root.phrases()]
        assert heads == ["king", "dog"]

    def test_leaves_in_source_order(self):
        root = tree_for("I see#v (a dog#n).")
        assert [leaf.source_text for leaf in root.leaves()] == ["I", "see", "a", "dog", "."]

    def test_headless_group(self):
        """A group with only a determiner has no head."""
        with pytest.raises(StructureError) as exc_info:
            tree_for("see#v (the#det)")
        assert exc_info.value.span == (7, 14)

    def test_untagged_group(self):
        with pytest.raises(StructureError):
            tree_for("(a big)")

    def test_to_dict(self):
        data = tree_for("I see#v (a dog#n)").to_dict()
        assert data["type"] == "phrase"
        assert data["children"][2]["phrase_type"] == NOUN_PHRASE
        assert data["children"][2]["head"] == "dog"
