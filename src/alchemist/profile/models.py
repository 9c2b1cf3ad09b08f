"""ConlangProfile: the full parameter set for one constructed language.

Profiles are authored as YAML (see ``alchemist.profile.loader``) and parsed
into frozen dataclasses here. Parsing validates structure only; whether the
phonotactics can actually produce a word is discovered by the generator.

Design notes:
- Morphology paradigms are data, keyed by (part of speech, attribute set)
- Transform steps are single-key mappings (``{suffix: i}``) applied in order
- Every collection is a tuple or frozenset so a loaded profile is immutable
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from alchemist.annotation.models import WordType
from alchemist.config import ATTRIBUTE_TAGS, WORD_ORDERS

TRANSFORM_KINDS = ("prefix", "suffix", "mutate", "reduplicate", "replace")
REDUPLICATION_MODES = ("full", "initial", "final")
ORDER_KEYWORDS = ("before", "after")
PHRASE_ROLES = ("determiner", "modifier", "adposition", "complement", "other")
PHRASE_TYPES = ("noun_phrase", "verb_phrase", "modifier_phrase")
POSITIONS = ("initial", "middle", "terminal", "single")

# Ids name files in the profile directory
CONLANG_ID_RE = re.compile(r"[A-Za-z0-9_-]+")


class ProfileValidationError(Exception):
    """Raised when a profile definition is structurally invalid."""

    def __init__(self, message: str, field_name: str | None = None):
        self.field = field_name
        full_message = f"[{field_name}] {message}" if field_name else message
        super().__init__(full_message)


def _word_type(value: str, field_name: str) -> WordType:
    try:
        return WordType(value)
    except ValueError:
        valid = [w.value for w in WordType]
        raise ProfileValidationError(
            f"Unknown part of speech '{value}'. Must be one of: {valid}", field_name
        )


def _weights(value: Any, field_name: str) -> tuple[int, ...]:
    if not isinstance(value, (list, tuple)):
        raise ProfileValidationError("Weights must be a list", field_name)
    weights = tuple(int(w) for w in value)
    if any(w < 0 for w in weights):
        raise ProfileValidationError("Weights must be non-negative", field_name)
    return weights


def _cluster_set(value: Any, field_name: str) -> frozenset[tuple[str, ...]] | None:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        raise ProfileValidationError("Expected a list of clusters", field_name)
    clusters = set()
    for cluster in value:
        if isinstance(cluster, str):
            clusters.add((cluster,) if cluster else ())
        else:
            clusters.add(tuple(str(p) for p in cluster))
    return frozenset(clusters)


@dataclass(frozen=True)
class Phonology:
    """Phoneme inventory and phonotactic constraints."""

    classes: dict[str, tuple[str, ...]]
    """Class symbol (single letter) -> phonemes, e.g. C -> (p, t, k)."""

    syllable_shapes: tuple[str, ...]
    nucleus: str = "V"
    positional_shapes: dict[str, tuple[str, ...]] = field(default_factory=dict)
    onsets: frozenset[tuple[str, ...]] | None = None
    """Allowed onset clusters; None means any onset the shapes produce."""

    codas: frozenset[tuple[str, ...]] | None = None
    forbidden: tuple[str, ...] = ()
    """Phoneme sequences banned anywhere in a word."""

    syllable_weights: dict[str, tuple[int, ...]] = field(default_factory=dict)
    pos_syllable_weights: dict[WordType, tuple[int, ...]] = field(
        default_factory=dict
    )

    @property
    def phonemes(self) -> frozenset[str]:
        return frozenset(p for members in self.classes.values() for p in members)

    @property
    def vowels(self) -> tuple[str, ...]:
        return self.classes.get(self.nucleus, ())

    def shapes_for(self, position: str) -> tuple[str, ...]:
        """Syllable shapes for a word position, falling back to the general list."""
        return self.positional_shapes.get(position) or self.syllable_shapes

    @classmethod
    def from_dict(cls, data: dict) -> "Phonology":
        classes_raw = data.get("classes") or {}
        if not isinstance(classes_raw, dict):
            raise ProfileValidationError("Must be a mapping", "phonology.classes")
        classes = {}
        for symbol, members in classes_raw.items():
            if not isinstance(members, (list, tuple)):
                raise ProfileValidationError(
                    f"Class '{symbol}' must list phonemes", "phonology.classes"
                )
            classes[str(symbol)] = tuple(str(m) for m in members)

        shapes = data.get("syllable_shapes", [])
        if not isinstance(shapes, (list, tuple)):
            raise ProfileValidationError(
                "Must be a list of shapes", "phonology.syllable_shapes"
            )

        positional = {}
        for position, pos_shapes in (data.get("positional_shapes") or {}).items():
            if position not in POSITIONS:
                raise ProfileValidationError(
                    f"Unknown position '{position}'. Must be one of: {list(POSITIONS)}",
                    "phonology.positional_shapes",
                )
            positional[position] = tuple(str(s) for s in pos_shapes)

        weights_raw = data.get("syllable_weights") or {}
        weights = {
            "function": _weights(
                weights_raw.get("function", [60, 40]),
                "phonology.syllable_weights.function",
            ),
            "content": _weights(
                weights_raw.get("content", [30, 50, 20]),
                "phonology.syllable_weights.content",
            ),
        }
        pos_weights = {
            _word_type(pos, "phonology.pos_syllable_weights"): _weights(
                value, f"phonology.pos_syllable_weights.{pos}"
            )
            for pos, value in (data.get("pos_syllable_weights") or {}).items()
        }

        return cls(
            classes=classes,
            syllable_shapes=tuple(str(s) for s in shapes),
            nucleus=str(data.get("nucleus", "V")),
            positional_shapes=positional,
            onsets=_cluster_set(data.get("onsets"), "phonology.onsets"),
            codas=_cluster_set(data.get("codas"), "phonology.codas"),
            forbidden=tuple(str(f) for f in data.get("forbidden") or ()),
            syllable_weights=weights,
            pos_syllable_weights=pos_weights,
        )

    def to_dict(self) -> dict:
        result: dict[str, Any] = {
            "classes": {k: list(v) for k, v in self.classes.items()},
            "nucleus": self.nucleus,
            "syllable_shapes": list(self.syllable_shapes),
            "syllable_weights": {k: list(v) for k, v in self.syllable_weights.items()},
        }
        if self.positional_shapes:
            result["positional_shapes"] = {
                k: list(v) for k, v in self.positional_shapes.items()
            }
        if self.onsets is not None:
            result["onsets"] = sorted(list(c) for c in self.onsets)
        if self.codas is not None:
            result["codas"] = sorted(list(c) for c in self.codas)
        if self.forbidden:
            result["forbidden"] = list(self.forbidden)
        if self.pos_syllable_weights:
            result["pos_syllable_weights"] = {
                k.value: list(v) for k, v in self.pos_syllable_weights.items()
            }
        return result


@dataclass(frozen=True)
class TransformStep:
    """One step of a morphological transform."""

    kind: str
    value: Any

    @classmethod
    def from_dict(cls, data: Any, field_name: str) -> "TransformStep":
        if not isinstance(data, dict) or len(data) != 1:
            raise ProfileValidationError(
                "Each transform step must be a single-key mapping", field_name
            )
        kind, value = next(iter(data.items()))
        if kind not in TRANSFORM_KINDS:
            raise ProfileValidationError(
                f"Unknown transform '{kind}'. Must be one of: {list(TRANSFORM_KINDS)}",
                field_name,
            )
        if kind in ("prefix", "suffix"):
            value = str(value)
        elif kind == "mutate":
            if not isinstance(value, dict) or not value:
                raise ProfileValidationError(
                    "mutate needs a non-empty mapping", field_name
                )
            value = tuple((str(k), str(v)) for k, v in value.items())
        elif kind == "reduplicate":
            if value not in REDUPLICATION_MODES:
                raise ProfileValidationError(
                    f"reduplicate must be one of: {list(REDUPLICATION_MODES)}",
                    field_name,
                )
        elif kind == "replace":
            if not isinstance(value, dict) or "pattern" not in value:
                raise ProfileValidationError(
                    "replace needs 'pattern' and 'with'", field_name
                )
            value = (str(value["pattern"]), str(value.get("with", "")))
        return cls(kind=kind, value=value)

    def to_dict(self) -> dict:
        if self.kind == "mutate":
            return {"mutate": dict(self.value)}
        if self.kind == "replace":
            return {"replace": {"pattern": self.value[0], "with": self.value[1]}}
        return {self.kind: self.value}


@dataclass(frozen=True)
class ParadigmRule:
    """Maps one attribute combination of a part of speech to a transform."""

    attributes: frozenset[str]
    steps: tuple[TransformStep, ...]

    @classmethod
    def from_dict(cls, data: dict, field_name: str) -> "ParadigmRule":
        attributes = data.get("attributes")
        if not attributes:
            raise ProfileValidationError("Rule needs attributes", field_name)
        transform = data.get("transform")
        if transform is None:
            raise ProfileValidationError("Rule needs a transform", field_name)
        if isinstance(transform, dict):
            transform = [transform]
        steps = tuple(TransformStep.from_dict(s, field_name) for s in transform)
        return cls(attributes=frozenset(str(a) for a in attributes), steps=steps)

    def to_dict(self) -> dict:
        return {
            "attributes": sorted(self.attributes),
            "transform": [s.to_dict() for s in self.steps],
        }


@dataclass(frozen=True)
class AgreementRule:
    """Copy attributes from a phrase head onto matching dependents."""

    target: WordType
    controller: WordType
    attributes: frozenset[str]

    @classmethod
    def from_dict(cls, data: dict) -> "AgreementRule":
        return cls(
            target=_word_type(data.get("target", ""), "syntax.agreement.target"),
            controller=_word_type(
                data.get("controller", ""), "syntax.agreement.controller"
            ),
            attributes=frozenset(str(a) for a in data.get("attributes") or ()),
        )


@dataclass(frozen=True)
class RewriteRuleConfig:
    """Uncompiled find/replace rule; compiled by ``alchemist.syntax.rewrite``."""

    find: tuple[str, ...]
    replace: tuple[str, ...]


@dataclass(frozen=True)
class SyntaxParams:
    """Word-order and agreement parameters."""

    word_order: str = "SVO"
    phrase_order: dict[str, dict[str, str]] = field(default_factory=dict)
    agreement: tuple[AgreementRule, ...] = ()
    realize_determiners: bool = True
    rewrite_rules: tuple[RewriteRuleConfig, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "SyntaxParams":
        word_order = str(data.get("word_order", "SVO")).upper()
        if word_order not in WORD_ORDERS:
            raise ProfileValidationError(
                f"Unknown word order '{word_order}'. Must be one of: {list(WORD_ORDERS)}",
                "syntax.word_order",
            )

        phrase_order: dict[str, dict[str, str]] = {}
        for phrase_type, roles in (data.get("phrase_order") or {}).items():
            if phrase_type not in PHRASE_TYPES:
                raise ProfileValidationError(
                    f"Unknown phrase type '{phrase_type}'", "syntax.phrase_order"
                )
            for role, order in roles.items():
                if role not in PHRASE_ROLES:
                    raise ProfileValidationError(
                        f"Unknown role '{role}'", f"syntax.phrase_order.{phrase_type}"
                    )
                if order not in ORDER_KEYWORDS:
                    raise ProfileValidationError(
                        f"Order must be 'before' or 'after', got '{order}'",
                        f"syntax.phrase_order.{phrase_type}.{role}",
                    )
            phrase_order[phrase_type] = {str(k): str(v) for k, v in roles.items()}

        rewrite_rules = []
        for i, rule in enumerate(data.get("rewrite_rules") or ()):
            find = rule.get("find")
            if not find:
                raise ProfileValidationError(
                    "Rule needs a non-empty find pattern", f"syntax.rewrite_rules[{i}]"
                )
            rewrite_rules.append(
                RewriteRuleConfig(
                    find=tuple(str(f) for f in find),
                    replace=tuple(str(r) for r in rule.get("replace") or ()),
                )
            )

        return cls(
            word_order=word_order,
            phrase_order=phrase_order,
            agreement=tuple(
                AgreementRule.from_dict(a) for a in data.get("agreement") or ()
            ),
            realize_determiners=bool(data.get("realize_determiners", True)),
            rewrite_rules=tuple(rewrite_rules),
        )

    def to_dict(self) -> dict:
        return {
            "word_order": self.word_order,
            "phrase_order": {k: dict(v) for k, v in self.phrase_order.items()},
            "agreement": [
                {
                    "target": a.target.value,
                    "controller": a.controller.value,
                    "attributes": sorted(a.attributes),
                }
                for a in self.agreement
            ],
            "realize_determiners": self.realize_determiners,
            "rewrite_rules": [
                {"find": list(r.find), "replace": list(r.replace)}
                for r in self.rewrite_rules
            ],
        }


@dataclass(frozen=True)
class Policy:
    """Configurable handling of edge cases in input and grammar."""

    unmodeled_attributes: str = "ignore"
    """'ignore' drops attributes the paradigm never mentions; 'report' records them."""

    max_group_depth: int = 2
    allow_attribute_chains: bool = False
    allow_basic_fallback: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "Policy":
        unmodeled = str(data.get("unmodeled_attributes", "ignore"))
        if unmodeled not in ("ignore", "report"):
            raise ProfileValidationError(
                "Must be 'ignore' or 'report'", "policy.unmodeled_attributes"
            )
        depth = int(data.get("max_group_depth", 2))
        if depth < 1:
            raise ProfileValidationError(
                "Must be at least 1", "policy.max_group_depth"
            )
        return cls(
            unmodeled_attributes=unmodeled,
            max_group_depth=depth,
            allow_attribute_chains=bool(data.get("allow_attribute_chains", False)),
            allow_basic_fallback=bool(data.get("allow_basic_fallback", False)),
        )


@dataclass(frozen=True)
class ConlangProfile:
    """Full parameter set for one conlang. Immutable once loaded."""

    id: str
    name: str
    phonology: Phonology
    orthography: dict[str, str] = field(default_factory=dict)
    morphology: dict[WordType, tuple[ParadigmRule, ...]] = field(
        default_factory=dict
    )
    syntax: SyntaxParams = field(default_factory=SyntaxParams)
    policy: Policy = field(default_factory=Policy)
    extra_attributes: frozenset[str] = frozenset()

    @property
    def known_attributes(self) -> frozenset[str]:
        """Attribute tags the parser accepts for this profile."""
        return frozenset(ATTRIBUTE_TAGS) | self.extra_attributes

    def paradigm(self, part_of_speech: WordType) -> tuple[ParadigmRule, ...]:
        return self.morphology.get(part_of_speech, ())

    @classmethod
    def from_dict(cls, data: dict) -> "ConlangProfile":
        """Create a profile from its YAML/JSON mapping."""
        profile_id = data.get("id")
        if not profile_id:
            raise ProfileValidationError("Missing required field: id")
        if not CONLANG_ID_RE.fullmatch(str(profile_id)):
            raise ProfileValidationError(
                "Must contain only letters, digits, '_' and '-'", "id"
            )
        if "phonology" not in data:
            raise ProfileValidationError("Missing required field: phonology")

        morphology: dict[WordType, tuple[ParadigmRule, ...]] = {}
        for pos, rules in (data.get("morphology") or {}).items():
            word_type = _word_type(pos, "morphology")
            morphology[word_type] = tuple(
                ParadigmRule.from_dict(rule, f"morphology.{pos}[{i}]")
                for i, rule in enumerate(rules or ())
            )

        return cls(
            id=str(profile_id),
            name=str(data.get("name", profile_id)),
            phonology=Phonology.from_dict(data["phonology"] or {}),
            orthography={
                str(k): str(v) for k, v in (data.get("orthography") or {}).items()
            },
            morphology=morphology,
            syntax=SyntaxParams.from_dict(data.get("syntax") or {}),
            policy=Policy.from_dict(data.get("policy") or {}),
            extra_attributes=frozenset(
                str(a) for a in data.get("attributes") or ()
            ),
        )

    def to_dict(self) -> dict:
        """Serialize back to the authoring format."""
        return {
            "id": self.id,
            "name": self.name,
            "phonology": self.phonology.to_dict(),
            "orthography": dict(self.orthography),
            "morphology": {
                pos.value: [rule.to_dict() for rule in rules]
                for pos, rules in self.morphology.items()
            },
            "syntax": self.syntax.to_dict(),
            "policy": {
                "unmodeled_attributes": self.policy.unmodeled_attributes,
                "max_group_depth": self.policy.max_group_depth,
                "allow_attribute_chains": self.policy.allow_attribute_chains,
                "allow_basic_fallback": self.policy.allow_basic_fallback,
            },
            "attributes": sorted(self.extra_attributes),
        }
