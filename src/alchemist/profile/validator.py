"""Soft validation of a loaded profile.

Structural problems already raise ProfileValidationError at load time.
The checks here report configurations that load fine but will misbehave:
weights that cannot be drawn from, shapes naming undefined classes, and
similar. An empty result means the profile is usable.
"""

from __future__ import annotations

from alchemist.profile.models import ConlangProfile, ProfileValidationError


def validate_profile(profile: ConlangProfile) -> list[str]:
    """Return a list of human-readable problems with the profile."""
    problems: list[str] = []
    phonology = profile.phonology

    if not phonology.classes:
        problems.append("phonology: no phoneme classes defined")
    for symbol, members in phonology.classes.items():
        if len(symbol) != 1:
            problems.append(f"phonology: class symbol '{symbol}' must be one letter")
        if not members:
            problems.append(f"phonology: class '{symbol}' is empty")

    if phonology.nucleus not in phonology.classes:
        problems.append(
            f"phonology: nucleus class '{phonology.nucleus}' is not defined"
        )

    all_shapes = set(phonology.syllable_shapes)
    for shapes in phonology.positional_shapes.values():
        all_shapes.update(shapes)
    if not all_shapes:
        problems.append("phonology: no syllable shapes defined")
    for shape in sorted(all_shapes):
        undefined = sorted({s for s in shape if s not in phonology.classes})
        if undefined:
            problems.append(
                f"phonology: shape '{shape}' uses undefined classes {undefined}"
            )
        if shape.count(phonology.nucleus) != 1:
            problems.append(
                f"phonology: shape '{shape}' must contain exactly one nucleus "
                f"'{phonology.nucleus}'"
            )

    for name, weights in phonology.syllable_weights.items():
        if sum(weights) <= 0:
            problems.append(f"phonology: {name} syllable weights have no mass")
    for pos, weights in phonology.pos_syllable_weights.items():
        if sum(weights) <= 0:
            problems.append(f"phonology: {pos.value} syllable weights have no mass")

    phonemes = phonology.phonemes
    for phoneme in sorted(profile.orthography):
        if phoneme not in phonemes:
            problems.append(
                f"orthography: '{phoneme}' is not in the phoneme inventory"
            )

    known = profile.known_attributes
    for pos, rules in profile.morphology.items():
        seen = set()
        for rule in rules:
            unknown = sorted(rule.attributes - known)
            if unknown:
                problems.append(
                    f"morphology.{pos.value}: unknown attributes {unknown}"
                )
            if rule.attributes in seen:
                problems.append(
                    f"morphology.{pos.value}: duplicate rule for "
                    f"{sorted(rule.attributes)}"
                )
            seen.add(rule.attributes)

    for rule in profile.syntax.agreement:
        unknown = sorted(rule.attributes - known)
        if unknown:
            problems.append(f"syntax.agreement: unknown attributes {unknown}")

    # Imported here: both modules depend on the profile package
    from alchemist.morphology.engine import MorphologyEngine
    from alchemist.syntax.rewrite import compile_rules

    for check in (MorphologyEngine, lambda p: compile_rules(p.syntax.rewrite_rules)):
        try:
            check(profile)
        except ProfileValidationError as e:
            problems.append(str(e))

    return problems
