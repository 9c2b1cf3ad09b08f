"""Translation pipeline: schemas, orchestrator and service."""

from alchemist.pipeline.orchestrator import TranslationCancelled, Translator, join_output
from alchemist.pipeline.schemas import Diagnostic, TranslationRequest, TranslationResult
from alchemist.pipeline.service import TranslationService

__all__ = [
    "TranslationCancelled",
    "Translator",
    "join_output",
    "Diagnostic",
    "TranslationRequest",
    "TranslationResult",
    "TranslationService",
]
