"""Pydantic models for API."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class HealthModel(BaseModel):
    """Health check response."""

    status: str
    version: str
    db_connected: bool


class TranslateRequestModel(BaseModel):
    """Request body for POST /translate."""

    text: str = Field(..., description="Source text, annotated or plain")
    conlang_id: str = Field("demo", description="Target conlang id")
    mode: Literal["auto", "annotated", "basic"] = Field(
        "auto", description="Input handling mode"
    )
    include_tree: bool = Field(False, description="Include the constituent tree")
    allow_fallback: Optional[bool] = Field(
        None, description="Fall back to basic tagging on parse errors"
    )


class DiagnosticModel(BaseModel):
    """Non-fatal translation issue."""

    kind: str
    message: str
    lemma: Optional[str] = None
    part_of_speech: Optional[str] = None
    attributes: List[str] = Field(default_factory=list)
    span: Optional[List[int]] = None


class TranslateResponseModel(BaseModel):
    """Translation output."""

    text: str
    conlang_id: str
    mode: str
    diagnostics: List[DiagnosticModel]
    tree: Optional[dict] = None
    generated: List[str]


class LexemeModel(BaseModel):
    """One lexicon entry."""

    lemma: str
    part_of_speech: str
    base_form: str
    source: str
    irregular: Dict[str, str] = Field(default_factory=dict)


class LexiconResponseModel(BaseModel):
    """Lexicon listing for a conlang."""

    conlang_id: str
    count: int
    entries: List[LexemeModel]


class OverrideRequestModel(BaseModel):
    """Set a base form, or an irregular form when attributes are given."""

    lemma: str
    part_of_speech: str = Field(..., description="Word type or alias, e.g. 'n'")
    form: str = Field(..., description="Conlang form to use")
    attributes: Optional[List[str]] = Field(
        None, description="Attribute set for an irregular inflected form"
    )
