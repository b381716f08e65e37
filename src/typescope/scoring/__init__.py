"""Deterministic trait and framework scoring."""

from typescope.scoring.engine import score_profile
from typescope.scoring.models import (
    ALL_FRAMEWORKS,
    DimensionWeights,
    Framework,
    FrameworkMappings,
    PersonalityProfile,
    validate_responses,
)

__all__ = [
    "ALL_FRAMEWORKS",
    "DimensionWeights",
    "Framework",
    "FrameworkMappings",
    "PersonalityProfile",
    "score_profile",
    "validate_responses",
]
