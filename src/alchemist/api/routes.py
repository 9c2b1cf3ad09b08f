"""API route definitions."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request

# Keep typing imports in namespace for Pydantic annotation evaluation
__typing_imports__ = (List, Optional)

from alchemist import __version__
from alchemist.annotation.models import resolve_word_type
from alchemist.annotation.parser import ParseError
from alchemist.api.models import (
    HealthModel,
    LexemeModel,
    LexiconResponseModel,
    OverrideRequestModel,
    TranslateRequestModel,
    TranslateResponseModel,
)
from alchemist.lexicon.cache import ReservationTimeout
from alchemist.lexicon.models import Lexeme, attribute_key
from alchemist.pipeline.schemas import TranslationRequest
from alchemist.pipeline.orchestrator import Translator
from alchemist.pipeline.service import TranslationService
from alchemist.profile.models import ProfileValidationError
from alchemist.synthesis.generator import GenerationExhausted
from alchemist.syntax.tree import StructureError

router = APIRouter()


def _service(request: Request) -> TranslationService:
    return request.app.state.service


def _unknown_conlang(conlang_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"error": "unknown_conlang", "message": f"No conlang '{conlang_id}'"},
    )


def _translator(request: Request, conlang_id: str) -> Translator:
    try:
        return _service(request).translator_for(conlang_id)
    except KeyError:
        raise _unknown_conlang(conlang_id)
    except ProfileValidationError as e:
        raise HTTPException(
            status_code=500,
            detail={"error": "invalid_profile", "message": str(e), "field": e.field},
        )


def _lexeme_model(lexeme: Lexeme) -> LexemeModel:
    return LexemeModel(
        lemma=lexeme.lemma,
        part_of_speech=lexeme.part_of_speech.value,
        base_form=lexeme.base_form,
        source=lexeme.source,
        irregular={
            attribute_key(attrs): form for attrs, form in lexeme.irregular.items()
        },
    )


@router.get("/health", response_model=HealthModel)
def health_check(request: Request):
    """Health check endpoint."""
    store = _service(request).store
    db_connected = store is not None and store.is_available()
    return HealthModel(
        status="ok" if db_connected else "degraded",
        version=__version__,
        db_connected=db_connected,
    )


@router.post("/translate", response_model=TranslateResponseModel)
def translate_text(body: TranslateRequestModel, request: Request):
    """
    Translate text into a conlang.

    Annotated input uses '#pos' tags, '.ATTR' attributes and parentheses
    for groups; plain input is tagged heuristically. Morphology gaps are
    returned as diagnostics rather than errors.
    """
    translator = _translator(request, body.conlang_id)
    translation_request = TranslationRequest(
        text=body.text,
        conlang_id=body.conlang_id,
        mode=body.mode,
        include_tree=body.include_tree,
        allow_fallback=body.allow_fallback,
    )

    try:
        result = translator.translate(translation_request)
    except ParseError as e:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "parse_error",
                "message": str(e),
                "span": list(e.span),
                "fragment": e.fragment,
            },
        )
    except StructureError as e:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "structure_error",
                "message": str(e),
                "span": list(e.span) if e.span else None,
            },
        )
    except GenerationExhausted as e:
        raise HTTPException(
            status_code=500,
            detail={
                "error": "generation_exhausted",
                "message": str(e),
                "part_of_speech": e.part_of_speech.value if e.part_of_speech else None,
                "reason": e.reason,
            },
        )
    except ReservationTimeout as e:
        raise HTTPException(
            status_code=503,
            detail={"error": "reservation_timeout", "message": str(e)},
        )

    return result.to_dict()


@router.get("/lexicon/{conlang_id}", response_model=LexiconResponseModel)
def list_lexicon(
    conlang_id: str,
    request: Request,
    search: Optional[str] = Query(None, description="Substring to search for"),
    field: str = Query("lemma", pattern="^(lemma|form)$"),
):
    """List lexicon entries, optionally filtered by lemma or conlang form."""
    cache = _translator(request, conlang_id).cache

    entries = cache.search(search, field) if search else cache.entries()
    return LexiconResponseModel(
        conlang_id=conlang_id,
        count=len(entries),
        entries=[_lexeme_model(lx) for lx in entries],
    )


@router.put("/lexicon/{conlang_id}/override", response_model=LexemeModel)
def override_lexeme(conlang_id: str, body: OverrideRequestModel, request: Request):
    """Set a user-supplied base form, or an irregular form for an attribute set."""
    try:
        part_of_speech = resolve_word_type(body.part_of_speech)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown part of speech '{body.part_of_speech}'",
        )

    cache = _translator(request, conlang_id).cache

    if body.attributes:
        try:
            lexeme = cache.override_inflection(
                body.lemma, part_of_speech, body.attributes, body.form
            )
        except KeyError:
            raise HTTPException(
                status_code=404,
                detail=f"'{body.lemma}' ({part_of_speech.value}) is not in the lexicon",
            )
    else:
        lexeme = cache.override(body.lemma, part_of_speech, body.form)
    return _lexeme_model(lexeme)
