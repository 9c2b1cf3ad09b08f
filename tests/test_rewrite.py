"""Tests for find/replace rewrite rules."""

from __future__ import annotations

import pytest

from alchemist.annotation.parser import AnnotationParser
from alchemist.profile.models import ProfileValidationError, RewriteRuleConfig
from alchemist.syntax.rewrite import compile_rule, compile_rules
from alchemist.syntax.tree import PhraseNode, build_tree


def nodes_for(text: str):
    return build_tree(AnnotationParser().parse(text)).children


def rule(find, replace):
    return compile_rule(RewriteRuleConfig(find=tuple(find), replace=tuple(replace)))


def labels(nodes) -> list[str]:
    """Lemma for word leaves, surface for literals, phrase head for phrases."""
    result = []
    for node in nodes:
        if isinstance(node, PhraseNode):
            result.append(f"[{node.head.lemma}]")
        elif node.token is None:
            result.append(node.output())
        else:
            result.append(node.lemma)
    return result


class TestRewriteRule:
    """Matching and rebuilding constituent sequences."""

    def test_reorder_with_repetition(self):
        nodes = nodes_for("the#det big#adj red#adj dog#n")
        rewritten, count = rule(["Det", "NM*", "Noun"], ["$3", "$2", "$1"]).apply(nodes)
        assert labels(rewritten) == ["dog", "big", "red", "the"]
        assert count == 1

    def test_star_matches_nothing(self):
        nodes = nodes_for("the#det dog#n")
        rewritten, _ = rule(["Det", "NM*", "Noun"], ["$3", "$2", "$1"]).apply(nodes)
        assert labels(rewritten) == ["dog", "the"]

    def test_backtracking(self):
        """A greedy element gives nodes back so later elements can match."""
        nodes = nodes_for("big#adj red#adj")
        rewritten, count = rule(["NM*", "NM"], ["$2", "$1"]).apply(nodes)
        assert labels(rewritten) == ["red", "big"]
        assert count == 1

    def test_optional_and_repeated_matches(self):
        """Matches do not overlap and are applied left to right."""
        nodes = nodes_for("the#det dog#n cat#n")
        rewritten, count = rule(["Det?", "Noun"], ["$2"]).apply(nodes)
        assert labels(rewritten) == ["dog", "cat"]
        assert count == 2

    def test_literal_match_and_insert(self):
        """Quoted elements match lemmas and insert verbatim text."""
        nodes = nodes_for("The dog#n")
        rewritten, _ = rule(['"the"', "Noun"], ["$2", '"ke"']).apply(nodes)
        assert labels(rewritten) == ["dog", "ke"]
        assert rewritten[1].surface == "ke"

    def test_deletion(self):
        nodes = nodes_for("the#det dog#n")
        rewritten, count = rule(["Det"], []).apply(nodes)
        assert labels(rewritten) == ["dog"]
        assert count == 1

    def test_phrase_element(self):
        nodes = nodes_for("I see#v (a dog#n)")
        rewritten, _ = rule(["Verb", "NP"], ["$2", "$1"]).apply(nodes)
        assert labels(rewritten) == ["i", "[dog]", "see"]

    def test_punctuation_never_matches(self):
        nodes = nodes_for("dog#n, cat#n")
        rewritten, count = rule(["Noun+"], ['"x"']).apply(nodes)
        assert labels(rewritten) == ["x", ",", "x"]
        assert count == 2

    def test_empty_match_is_not_a_rewrite(self):
        nodes = nodes_for("dog#n")
        rewritten, count = rule(["Det*"], ['"x"']).apply(nodes)
        assert labels(rewritten) == ["dog"]
        assert count == 0

    def test_no_match(self):
        nodes = nodes_for("see#v dog#n")
        rewritten, count = rule(["Det", "Noun"], ["$2", "$1"]).apply(nodes)
        assert rewritten == nodes
        assert count == 0


class TestCompileRule:
    """Validation of rule definitions."""

    @pytest.mark.parametrize(
        "find,replace,message",
        [
            (["Blob"], [], "Unknown pattern element 'Blob'"),
            (["Clause"], [], "Unknown pattern element"),
            (["Noun!"], [], "Invalid pattern element"),
            (["Noun"], ["$2"], "out of range"),
            (["Noun"], ["$0"], "out of range"),
            (["Noun"], ["dog"], "Invalid replacement"),
        ],
    )
    def test_invalid(self, find, replace, message):
        with pytest.raises(ProfileValidationError, match=message):
            rule(find, replace)

    def test_field_name_indexed(self):
        definitions = (
            RewriteRuleConfig(find=("Noun",), replace=("$1",)),
            RewriteRuleConfig(find=("Blob",), replace=()),
        )
        with pytest.raises(ProfileValidationError) as exc_info:
            compile_rules(definitions)
        assert exc_info.value.field == "syntax.rewrite_rules[1]"

    def test_quantifiers(self):
        compiled = rule(["Det?", "NM*", "Noun+"], ["$3"])
        assert [(e.min_count, e.max_count) for e in compiled.find] == [
            (0, 1),
            (0, None),
            (1, None),
        ]
