"""Tests for the annotation parser."""

import pytest

from alchemist.annotation.models import WordType
from alchemist.annotation.parser import AnnotationParser, ParseError, has_annotations


@pytest.fixture
def parser():
    return AnnotationParser()


@pytest.fixture
def chain_parser():
    return AnnotationParser(allow_attribute_chains=True)


class TestWordsAndTags:
    """Part-of-speech tags and attributes on single words."""

    def test_untagged_words(self, parser):
        """Plain words come through with no part of speech."""
        tokens = parser.parse("hello world")
        assert [t.surface for t in tokens] == ["hello", "world"]
        assert all(t.part_of_speech is None for t in tokens)

    def test_pos_tag_stripped_from_surface(self, parser):
        """'#v' sets the part of speech and is removed from the surface."""
        (token,) = parser.parse("see#v")
        assert token.surface == "see"
        assert token.part_of_speech == WordType.VERB

    def test_pos_aliases(self, parser):
        """Short and long tag names resolve to the same word type."""
        tokens = parser.parse("big#adj big#noun_modifier quickly#adv on#adp")
        assert [t.part_of_speech for t in tokens] == [
            WordType.NOUN_MODIFIER,
            WordType.NOUN_MODIFIER,
            WordType.VERB_MODIFIER,
            WordType.ADPOSITION,
        ]

    def test_attribute(self, parser):
        """'.PL' adds an attribute and is stripped."""
        (token,) = parser.parse("dogs#n.PL")
        assert token.surface == "dogs"
        assert token.attributes == frozenset({"PL"})

    def test_annotated_lemma_is_not_stemmed(self, parser):
        """The written word is the lemma; write the base form to share an entry."""
        inflected = parser.parse("dogs#n.PL")[0]
        base = parser.parse("dog#n.PL")[0]
        assert inflected.lemma == "dogs"
        assert base.lemma == "dog"

    def test_markers_in_any_order(self, parser):
        """Attribute before tag parses the same as tag before attribute."""
        first = parser.parse("answer.PL#n")[0]
        second = parser.parse("answer#n.PL")[0]
        assert first.part_of_speech == second.part_of_speech == WordType.NOUN
        assert first.attributes == second.attributes == frozenset({"PL"})

    def test_lowercase_attribute_normalized(self, parser):
        """Attribute tags are upper-cased."""
        (token,) = parser.parse("dog#n.pl")
        assert token.attributes == frozenset({"PL"})

    def test_lemma_normalized(self, parser):
        """Lemma is lower-cased; the surface keeps its case."""
        (token,) = parser.parse("Dog#n")
        assert token.surface == "Dog"
        assert token.lemma == "dog"

    def test_span_covers_markers(self, parser):
        """Token span includes the stripped markers."""
        tokens = parser.parse("I see#v")
        assert tokens[0].span == (0, 1)
        assert tokens[1].span == (2, 7)

    def test_apostrophes_and_hyphens_stay_in_word(self, parser):
        """Inner apostrophes and hyphens are part of the word."""
        tokens = parser.parse("don't#v well-known#adj")
        assert [t.surface for t in tokens] == ["don't", "well-known"]


class TestAttributeErrors:
    """Malformed attribute annotations."""

    def test_unknown_attribute(self, parser):
        """Unknown tags raise with the span of the tag."""
        with pytest.raises(ParseError) as exc_info:
            parser.parse("dog#n.XYZ")
        assert exc_info.value.span == (5, 9)
        assert exc_info.value.fragment == ".XYZ"

    def test_chain_rejected_by_default(self, parser):
        """Two attributes on a word need chains enabled."""
        with pytest.raises(ParseError, match="chains"):
            parser.parse("go#v.FUT.NEG")

    def test_chain_allowed(self, chain_parser):
        """With chains enabled, attributes from different slots combine."""
        (token,) = chain_parser.parse("go#v.FUT.NEG")
        assert token.attributes == frozenset({"FUT", "NEG"})

    def test_chain_slot_conflict(self, chain_parser):
        """Two values for one slot are rejected."""
        with pytest.raises(ParseError, match="tense"):
            chain_parser.parse("go#v.PST.FUT")

    def test_repeated_attribute(self, chain_parser):
        """The same tag twice is rejected."""
        with pytest.raises(ParseError, match="Repeated"):
            chain_parser.parse("dogs#n.PL.PL")

    def test_extra_known_attributes(self):
        """Profile-specific tags are accepted when declared."""
        parser = AnnotationParser(known_attributes={"EVID"})
        (token,) = parser.parse("saw#v.EVID")
        assert token.attributes == frozenset({"EVID"})


class TestTagErrors:
    """Malformed part-of-speech annotations."""

    def test_unknown_pos(self, parser):
        with pytest.raises(ParseError, match="Unknown part-of-speech"):
            parser.parse("dog#zz")

    def test_empty_pos(self, parser):
        with pytest.raises(ParseError, match="Empty"):
            parser.parse("dog# cat")

    def test_duplicate_pos(self, parser):
        with pytest.raises(ParseError, match="Duplicate"):
            parser.parse("dog#n#v")

    def test_tag_without_word(self, parser):
        with pytest.raises(ParseError, match="without a word"):
            parser.parse("#n")

    def test_tag_on_punctuation(self, parser):
        """Markers attached to punctuation are rejected."""
        with pytest.raises(ParseError, match="punctuation") as exc_info:
            parser.parse("hello#n !#n")
        assert exc_info.value.span[0] == 8


class TestGroups:
    """Parenthesized groups."""

    def test_group_markers_on_tokens(self, parser):
        """Group start and end are recorded on the first and last token."""
        tokens = parser.parse("I see#v (a dog#n)")
        assert [t.surface for t in tokens] == ["I", "see", "a", "dog"]
        assert tokens[2].opens == 1
        assert tokens[3].closes == 1
        assert tokens[0].opens == tokens[0].closes == 0

    def test_one_nested_level(self, parser):
        """A group may contain one nested group."""
        tokens = parser.parse("(dog#n (of#adp the#det king#n))")
        assert tokens[0].opens == 1
        assert tokens[1].opens == 1
        assert tokens[-1].closes == 2

    def test_too_deep(self, parser):
        """Nesting beyond the limit is rejected."""
        with pytest.raises(ParseError, match="nested"):
            parser.parse("(((dog#n)))")

    def test_depth_is_configurable(self):
        """max_group_depth=1 forbids any nesting."""
        with pytest.raises(ParseError):
            AnnotationParser(max_group_depth=1).parse("((dog#n))")

    def test_unclosed_group(self, parser):
        with pytest.raises(ParseError, match="never closed") as exc_info:
            parser.parse("(a dog#n")
        assert exc_info.value.span == (0, 1)

    def test_unopened_group(self, parser):
        with pytest.raises(ParseError, match="Unbalanced"):
            parser.parse("a dog#n)")

    def test_empty_group(self, parser):
        with pytest.raises(ParseError, match="Empty group"):
            parser.parse("see#v ()")


class TestPunctuation:
    """Punctuation handling."""

    def test_trailing_period(self, parser):
        """A period after a word is punctuation, not an attribute."""
        tokens = parser.parse("I see#v.")
        assert tokens[-1].is_punctuation
        assert tokens[-1].surface == "."
        assert tokens[1].attributes == frozenset()

    def test_comma(self, parser):
        tokens = parser.parse("dog#n, cat#n")
        assert [t.is_punctuation for t in tokens] == [False, True, False]


class TestHasAnnotations:
    """Detection of annotated input for auto mode."""

    @pytest.mark.parametrize(
        "text",
        ["I see#v", "(a dog)", "dogs.PL", "go#v.FUT"],
    )
    def test_annotated(self, text):
        assert has_annotations(text)

    @pytest.mark.parametrize(
        "text",
        [
            "I will find the answers",
            "Hello, world.",
            "It ends here.",
            "I live in the U.S.",
            "It costs 3.50 now",
            "See e.g. the appendix",
        ],
    )
    def test_plain(self, text):
        assert not has_annotations(text)

    def test_profile_attributes(self):
        """Only attributes the language knows mark text as annotated."""
        assert not has_annotations("stones.ERG")
        assert has_annotations("stones.ERG", frozenset({"ERG"}))


class TestForProfile:
    """Parser configured from a profile policy."""

    def test_demo_allows_chains(self, demo_profile):
        parser = AnnotationParser.for_profile(demo_profile)
        (token,) = parser.parse("go#v.FUT.NEG")
        assert token.attributes == frozenset({"FUT", "NEG"})
