"""Tests for phonology checks and deterministic word generation."""

from __future__ import annotations

import pytest

from alchemist.annotation.models import FUNCTION_WORD_TYPES, WordType
from alchemist.profile.models import ConlangProfile
from alchemist.synthesis.generator import GenerationExhausted, WordGenerator, seed_for
from alchemist.synthesis.phonology import (
    Syllable,
    check_syllable,
    find_forbidden,
    render,
    split_shape,
)


def tiny_profile(**phonology) -> ConlangProfile:
    """One consonant class, one vowel class, one-syllable words."""
    base = {
        "classes": {"C": ["p", "t"], "V": ["a"]},
        "syllable_shapes": ["CV"],
        "syllable_weights": {"function": [1], "content": [1]},
    }
    base.update(phonology)
    return ConlangProfile.from_dict(
        {"id": "tiny", "phonology": base, "orthography": {"sh": "x"}}
    )


class TestSeed:
    """Seed derivation from lexicon keys."""

    def test_stable(self):
        assert seed_for("demo", "dog", WordType.NOUN) == seed_for("demo", "dog", "noun")

    def test_distinct_per_key_part(self):
        base = seed_for("demo", "dog", "noun")
        assert seed_for("demo", "dog", "verb") != base
        assert seed_for("demo", "cat", "noun") != base
        assert seed_for("other", "dog", "noun") != base

    def test_fits_in_64_bits(self):
        assert 0 <= seed_for("demo", "dog", "noun") < 2**64


class TestPhonology:
    """Syllable structure helpers."""

    def test_split_shape(self):
        assert split_shape("CCVN", "V") == ("CC", "N")
        assert split_shape("V", "V") == ("", "")

    def test_split_shape_needs_one_nucleus(self):
        with pytest.raises(ValueError):
            split_shape("CVCV", "V")

    def test_check_syllable(self, demo_profile):
        phonology = demo_profile.phonology
        assert check_syllable(phonology, Syllable(("k",), "a", ("n",))) is None
        assert "nucleus" in check_syllable(phonology, Syllable(("k",), "k"))
        assert "inventory" in check_syllable(phonology, Syllable(("z",), "a"))

    def test_check_syllable_forbidden(self, demo_profile):
        violation = check_syllable(demo_profile.phonology, Syllable((), "o", ("m",)))
        assert violation is None
        assert find_forbidden(["a", "n", "m", "a"], ["nm"]) == "nm"

    def test_render(self):
        assert render(["sh", "a", "k"], {"sh": "x"}) == "xak"


class TestWordGenerator:
    """Generation from the demo profile."""

    def test_deterministic(self, demo_profile):
        """Same profile and seed give the same word, across generator instances."""
        first = WordGenerator(demo_profile).generate(WordType.NOUN, 12345)
        second = WordGenerator(demo_profile).generate(WordType.NOUN, 12345)
        assert first == second

    def test_generate_for_uses_key_seed(self, demo_profile):
        generator = WordGenerator(demo_profile)
        expected = generator.generate("verb", seed_for("demo", "see", "verb"))
        assert generator.generate_for("see", WordType.VERB) == expected

    @pytest.mark.parametrize("part_of_speech", list(WordType))
    def test_phonotactic_compliance(self, demo_profile, part_of_speech):
        """Every syllable satisfies the constraints; no forbidden sequence anywhere."""
        phonology = demo_profile.phonology
        generator = WordGenerator(demo_profile)
        for seed in range(150):
            word = generator.generate(part_of_speech, seed)
            for syllable in word.syllables:
                assert check_syllable(phonology, syllable) is None
            assert find_forbidden(word.phonemes, phonology.forbidden) is None
            flattened = tuple(p for s in word.syllables for p in s.phonemes)
            assert flattened == word.phonemes
            assert word.written == render(word.phonemes, demo_profile.orthography)

    def test_length_profiles(self, demo_profile):
        """Function words use the short length profile."""
        generator = WordGenerator(demo_profile)
        for pos in WordType:
            limit = 2 if pos in FUNCTION_WORD_TYPES else 3
            for seed in range(50):
                assert 1 <= len(generator.generate(pos, seed).syllables) <= limit

    def test_single_syllable_shapes(self, demo_profile):
        """One-syllable words draw from the 'single' position shapes."""
        generator = WordGenerator(demo_profile)
        for seed in range(100):
            word = generator.generate(WordType.DETERMINER, seed)
            if len(word.syllables) == 1:
                assert word.syllables[0].onset != ()

    def test_pos_syllable_weights(self, make_profile):
        profile = make_profile(phonology={"pos_syllable_weights": {"verb": [0, 0, 1]}})
        generator = WordGenerator(profile)
        for seed in range(20):
            assert len(generator.generate(WordType.VERB, seed).syllables) == 3

    def test_orthography_applied(self):
        profile = tiny_profile(classes={"C": ["sh"], "V": ["a"]})
        word = WordGenerator(profile).generate(WordType.NOUN, 1)
        assert word.phonemes == ("sh", "a")
        assert word.written == "xa"

    def test_onset_allow_list(self):
        profile = tiny_profile(syllable_shapes=["CCV"], onsets=[["p", "t"]])
        generator = WordGenerator(profile)
        for seed in range(20):
            assert generator.generate(WordType.NOUN, seed).syllables[0].onset == ("p", "t")

    def test_sample(self, demo_profile):
        generator = WordGenerator(demo_profile)
        words = generator.sample(WordType.NOUN, 5, seed=10)
        assert len(words) == 5
        assert words[2] == generator.generate(WordType.NOUN, 12)


class TestGenerationExhausted:
    """Unsatisfiable profiles fail with a configuration error."""

    def test_no_shapes(self):
        profile = tiny_profile(syllable_shapes=[])
        with pytest.raises(GenerationExhausted) as exc_info:
            WordGenerator(profile).generate(WordType.NOUN, 1)
        assert exc_info.value.part_of_speech == WordType.NOUN
        assert "no syllable shapes" in exc_info.value.reason

    def test_everything_forbidden(self):
        """Bounded retries end in GenerationExhausted, not a hang."""
        profile = tiny_profile(forbidden=["a"])
        with pytest.raises(GenerationExhausted, match="attempts exhausted"):
            WordGenerator(profile, max_retries=10).generate(WordType.NOUN, 1)

    def test_zero_weights(self):
        profile = tiny_profile(syllable_weights={"content": [0, 0]})
        with pytest.raises(GenerationExhausted, match="weights"):
            WordGenerator(profile).generate(WordType.NOUN, 1)

    def test_empty_vowel_class(self):
        profile = tiny_profile(classes={"C": ["p"], "V": []})
        with pytest.raises(GenerationExhausted):
            WordGenerator(profile, max_retries=5).generate(WordType.NOUN, 1)
