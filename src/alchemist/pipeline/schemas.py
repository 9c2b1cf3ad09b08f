"""Request/response schemas for translation.

Stable schema for CLI and API consumption. Results serialize with
``to_dict`` so both surfaces emit identical JSON.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Literal

TranslationMode = Literal["auto", "annotated", "basic"]
TRANSLATION_MODES = ("auto", "annotated", "basic")


@dataclass
class TranslationRequest:
    """Request to translate source text into a conlang."""

    text: str
    conlang_id: str
    mode: TranslationMode = "auto"
    """'annotated' requires markers, 'basic' uses the tagger, 'auto' picks."""

    include_tree: bool = False
    allow_fallback: bool | None = None
    """Fall back to the tagger on a ParseError. None defers to the profile policy."""

    cancel_event: threading.Event | None = field(default=None, repr=False)


@dataclass
class Diagnostic:
    """A non-fatal issue found while translating."""

    kind: str
    """morphology_gap, unmodeled_attribute or parse_fallback."""

    message: str
    lemma: str | None = None
    part_of_speech: str | None = None
    attributes: list[str] = field(default_factory=list)
    span: tuple[int, int] | None = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "message": self.message,
            "lemma": self.lemma,
            "part_of_speech": self.part_of_speech,
            "attributes": self.attributes,
            "span": list(self.span) if self.span else None,
        }


@dataclass
class TranslationResult:
    """Conlang output plus diagnostics."""

    text: str
    conlang_id: str
    mode: str = "annotated"
    """Mode actually used (after 'auto' resolution and any fallback)."""

    diagnostics: list[Diagnostic] = field(default_factory=list)
    tree: dict | None = None
    generated: list[str] = field(default_factory=list)
    """Lemmas whose base form was generated by this request."""

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {
            "text": self.text,
            "conlang_id": self.conlang_id,
            "mode": self.mode,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "tree": self.tree,
            "generated": self.generated,
        }
