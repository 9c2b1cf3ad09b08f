"""Paradigm-driven inflection."""

from alchemist.morphology.engine import InflectionResult, MorphologyEngine, MorphologyGap

__all__ = ["InflectionResult", "MorphologyEngine", "MorphologyGap"]
