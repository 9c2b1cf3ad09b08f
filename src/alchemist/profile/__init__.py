"""Conlang profile model, loading and validation."""

from alchemist.profile.models import (
    AgreementRule,
    ConlangProfile,
    ParadigmRule,
    Phonology,
    Policy,
    ProfileValidationError,
    SyntaxParams,
    TransformStep,
)
from alchemist.profile.loader import (
    DEMO_PROFILE,
    ProfileStore,
    load_demo_profile,
    load_profile,
)
from alchemist.profile.validator import validate_profile

__all__ = [
    "AgreementRule",
    "ConlangProfile",
    "ParadigmRule",
    "Phonology",
    "Policy",
    "ProfileValidationError",
    "SyntaxParams",
    "TransformStep",
    "DEMO_PROFILE",
    "ProfileStore",
    "load_demo_profile",
    "load_profile",
    "validate_profile",
]
