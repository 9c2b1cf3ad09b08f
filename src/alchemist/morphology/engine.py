"""Morphology engine: paradigm lookup and transform application.

Paradigms are data: each rule maps an attribute set of one part of speech to
an ordered list of transform steps. Lookup order for a request:

1. Irregular form stored on the lexeme for the exact attribute set
2. A rule whose attribute set equals the requested (modeled) set
3. Composition of rules covering the requested set, largest rules first

Attributes that no rule of the part of speech ever mentions are "unmodeled"
and dropped from the lookup key. A modeled attribute that cannot be covered
is a gap: the unmarked base form is returned together with a MorphologyGap.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from alchemist.annotation.models import WordType
from alchemist.lexicon.models import attribute_key
from alchemist.profile.models import (
    ConlangProfile,
    ParadigmRule,
    ProfileValidationError,
    TransformStep,
)
from alchemist.synthesis.phonology import render
from alchemist.syntax.tree import LeafNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MorphologyGap:
    """A requested attribute combination the paradigm cannot express."""

    part_of_speech: WordType
    attributes: frozenset[str]
    missing: frozenset[str]
    base_form: str

    @property
    def message(self) -> str:
        return (
            f"No {self.part_of_speech.value} rule for "
            f"{attribute_key(self.missing)}; used unmarked form '{self.base_form}'"
        )


@dataclass(frozen=True)
class InflectionResult:
    """Surface form plus a record of how it was produced."""

    surface: str
    applied: tuple[frozenset[str], ...] = ()
    gap: MorphologyGap | None = None
    ignored: frozenset[str] = frozenset()
    irregular: bool = False


class MorphologyEngine:
    """Applies a profile's paradigms to base forms. Stateless per call.

    Raises:
        ProfileValidationError: At construction, if a replace pattern is not
            a valid regular expression
    """

    def __init__(self, profile: ConlangProfile):
        self.profile = profile
        self._vowel_chars = frozenset(
            "".join(render([v], profile.orthography) for v in profile.phonology.vowels)
        )
        self._modeled: dict[WordType, frozenset[str]] = {}
        self._patterns: dict[str, re.Pattern] = {}

        for pos, rules in profile.morphology.items():
            self._modeled[pos] = frozenset(a for rule in rules for a in rule.attributes)
            for rule in rules:
                for step in rule.steps:
                    if step.kind == "replace":
                        self._compile(step.value[0], pos)

    def _compile(self, pattern: str, pos: WordType) -> re.Pattern:
        compiled = self._patterns.get(pattern)
        if compiled is None:
            try:
                compiled = re.compile(pattern)
            except re.error as e:
                raise ProfileValidationError(
                    f"Invalid replace pattern '{pattern}': {e}",
                    f"morphology.{pos.value}",
                )
            self._patterns[pattern] = compiled
        return compiled

    def modeled_attributes(self, part_of_speech: WordType) -> frozenset[str]:
        """Attributes mentioned by at least one rule for the part of speech."""
        return self._modeled.get(part_of_speech, frozenset())

    def inflect(
        self,
        base_form: str,
        part_of_speech: WordType | None,
        attributes: frozenset[str] | set[str] = frozenset(),
        irregular: dict[frozenset[str], str] | None = None,
    ) -> InflectionResult:
        """Produce the surface form of a base form for an attribute set."""
        attrs = frozenset(attributes)
        if part_of_speech is None:
            return InflectionResult(surface=base_form, ignored=attrs)

        modeled = attrs & self.modeled_attributes(part_of_speech)
        ignored = attrs - modeled

        if irregular:
            form = irregular.get(modeled) or irregular.get(attrs)
            if form is not None:
                return InflectionResult(
                    surface=form, applied=(modeled,), ignored=ignored, irregular=True
                )

        if not modeled:
            return InflectionResult(surface=base_form, ignored=ignored)

        rules = self._cover(part_of_speech, modeled)
        if rules is None:
            covered = frozenset(
                a
                for rule in self.profile.paradigm(part_of_speech)
                if rule.attributes <= modeled
                for a in rule.attributes
            )
            gap = MorphologyGap(
                part_of_speech=part_of_speech,
                attributes=modeled,
                missing=modeled - covered or modeled,
                base_form=base_form,
            )
            logger.warning(gap.message)
            return InflectionResult(surface=base_form, gap=gap, ignored=ignored)

        surface = base_form
        for rule in rules:
            for step in rule.steps:
                surface = self._apply(surface, step, part_of_speech)
        logger.debug(
            f"Inflected '{base_form}' {attribute_key(modeled)} -> '{surface}'"
        )
        return InflectionResult(
            surface=surface,
            applied=tuple(rule.attributes for rule in rules),
            ignored=ignored,
        )

    def inflect_leaf(self, leaf: LeafNode) -> InflectionResult | None:
        """Inflect a translated leaf in place from its base form.

        Leaves without a base form (punctuation, passthrough words, literals)
        are left untouched and None is returned.
        """
        if leaf.base_form is None:
            return None
        result = self.inflect(
            leaf.base_form, leaf.part_of_speech, leaf.attributes, leaf.irregular
        )
        leaf.surface = result.surface
        leaf.gap = result.gap
        leaf.ignored = result.ignored
        return result

    def _cover(
        self, part_of_speech: WordType, attributes: frozenset[str]
    ) -> list[ParadigmRule] | None:
        """Rules to apply for an attribute set, in paradigm order, or None."""
        paradigm = self.profile.paradigm(part_of_speech)
        for rule in paradigm:
            if rule.attributes == attributes:
                return [rule]

        # Largest rules first; ties keep paradigm order
        candidates = sorted(
            (rule for rule in paradigm if rule.attributes <= attributes),
            key=lambda rule: -len(rule.attributes),
        )
        remaining = set(attributes)
        chosen: list[ParadigmRule] = []
        for rule in candidates:
            if rule.attributes <= remaining:
                chosen.append(rule)
                remaining -= rule.attributes
        if remaining:
            return None
        return sorted(chosen, key=paradigm.index)

    def _apply(self, form: str, step: TransformStep, pos: WordType) -> str:
        if step.kind == "prefix":
            return step.value + form
        if step.kind == "suffix":
            return form + step.value
        if step.kind == "mutate":
            return self._mutate(form, dict(step.value))
        if step.kind == "reduplicate":
            return self._reduplicate(form, step.value)
        if step.kind == "replace":
            pattern, replacement = step.value
            return self._compile(pattern, pos).sub(replacement, form)
        raise ValueError(f"Unknown transform: {step.kind}")

    @staticmethod
    def _mutate(form: str, mapping: dict[str, str]) -> str:
        # Longest match wins; replacements are not re-scanned
        keys = sorted(mapping, key=len, reverse=True)
        pattern = re.compile("|".join(re.escape(k) for k in keys))
        return pattern.sub(lambda m: mapping[m.group(0)], form)

    def _reduplicate(self, form: str, mode: str) -> str:
        if mode == "full":
            return form + form

        vowel_positions = [i for i, ch in enumerate(form) if ch in self._vowel_chars]
        if not vowel_positions:
            return form + form

        if mode == "initial":
            # Copy up to and including the first vowel: kasu -> kakasu
            return form[: vowel_positions[0] + 1] + form

        # final: copy the last vowel with its onset consonant: kasu -> kasusu
        start = vowel_positions[-1]
        if start > 0 and form[start - 1] not in self._vowel_chars:
            start -= 1
        return form + form[start:]
