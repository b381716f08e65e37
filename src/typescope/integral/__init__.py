"""Integral developmental-level scoring and confidence enhancement."""

from typescope.integral.models import (
    ConfidenceAnalysis,
    DynamicQuestion,
    DynamicQuestionOption,
    IntegralDetail,
    IntegralQuestion,
    LevelScore,
    RealityTriad,
)

__all__ = [
    "ConfidenceAnalysis",
    "DynamicQuestion",
    "DynamicQuestionOption",
    "IntegralDetail",
    "IntegralQuestion",
    "LevelScore",
    "RealityTriad",
]
