"""Annotation parsing and basic-mode tagging."""

from alchemist.annotation.models import (
    AnnotatedToken,
    WordType,
    normalize_lemma,
    resolve_word_type,
)
from alchemist.annotation.parser import AnnotationParser, ParseError, has_annotations
from alchemist.annotation.tagger import BasicTagger, Tagger

__all__ = [
    "AnnotatedToken",
    "WordType",
    "normalize_lemma",
    "resolve_word_type",
    "AnnotationParser",
    "ParseError",
    "has_annotations",
    "BasicTagger",
    "Tagger",
]
