"""MBTI classifier.

Each dichotomy's value is the weighted mean of its traits (1-10 scale) and
is compared against the dimension threshold:

    value >  threshold  -> first letter  (E, N, T, J)
    value <= threshold  -> second letter (I, S, F, P)

A value exactly on the threshold resolves to the second letter for every
dimension, so an all-neutral respondent is ISFP. Differences below
BOUNDARY_EPSILON count as "on the threshold" to absorb float noise.
"""

from __future__ import annotations

from collections.abc import Mapping

from typescope.scoring.frameworks._common import calculate_confidence, trait_mean, weighted_mean
from typescope.scoring.models import (
    CognitiveFunction,
    DimensionWeights,
    Framework,
    MbtiDimensionResult,
    MbtiResult,
)

BOUNDARY_EPSILON = 1e-9

# dimension -> (letter above threshold, letter at or below threshold)
DIMENSION_LETTERS: dict[str, tuple[str, str]] = {
    "EI": ("E", "I"),
    "SN": ("N", "S"),
    "TF": ("T", "F"),
    "JP": ("J", "P"),
}

COGNITIVE_FUNCTIONS: dict[str, tuple[tuple[str, ...], str]] = {
    "Fe": (("Diplomatic", "Social", "Responsive", "Communal Navigate"), "Extraverted Feeling"),
    "Te": (("Assertive", "Direct", "Pragmatic", "Extrinsic"), "Extraverted Thinking"),
    "Fi": (
        ("Self-Aware", "Self-Principled", "Independent Navigate", "Intrinsic"),
        "Introverted Feeling",
    ),
    "Ti": (("Analytical", "Independent", "Stoic", "Physical"), "Introverted Thinking"),
    "Se": (("Physical", "Dynamic", "Assertive", "Self-Indulgent"), "Extraverted Sensing"),
    "Si": (("Physical", "Structured", "Static", "Pessimistic"), "Introverted Sensing"),
    "Ne": (("Intuitive", "Dynamic", "Varied", "Optimistic"), "Extraverted Intuition"),
    "Ni": (("Intuitive", "Universal", "Self-Aware", "Self-Mastery"), "Introverted Intuition"),
}

TYPE_COGNITIVE_STACKS: dict[str, tuple[str, str, str, str]] = {
    "INTJ": ("Ni", "Te", "Fi", "Se"),
    "INTP": ("Ti", "Ne", "Si", "Fe"),
    "ENTJ": ("Te", "Ni", "Se", "Fi"),
    "ENTP": ("Ne", "Ti", "Fe", "Si"),
    "INFJ": ("Ni", "Fe", "Ti", "Se"),
    "INFP": ("Fi", "Ne", "Si", "Te"),
    "ENFJ": ("Fe", "Ni", "Se", "Ti"),
    "ENFP": ("Ne", "Fi", "Te", "Si"),
    "ISTJ": ("Si", "Te", "Fi", "Ne"),
    "ISFJ": ("Si", "Fe", "Ti", "Ne"),
    "ESTJ": ("Te", "Si", "Ne", "Fi"),
    "ESFJ": ("Fe", "Si", "Ne", "Ti"),
    "ISTP": ("Ti", "Se", "Ni", "Fe"),
    "ISFP": ("Fi", "Se", "Ni", "Te"),
    "ESTP": ("Se", "Ti", "Fe", "Ni"),
    "ESFP": ("Se", "Fi", "Te", "Ni"),
}

STACK_POSITIONS = ("dominant", "auxiliary", "tertiary", "inferior")


def letter_for(dimension: str, value: float, threshold: float) -> str:
    """Return the MBTI letter for a dimension value against its threshold."""
    above, at_or_below = DIMENSION_LETTERS[dimension]
    return above if value - threshold > BOUNDARY_EPSILON else at_or_below


def _cognitive_stack(mbti_type: str, scores: Mapping[str, float]) -> list[CognitiveFunction]:
    stack = TYPE_COGNITIVE_STACKS[mbti_type]
    result: list[CognitiveFunction] = []
    for position, function in zip(STACK_POSITIONS, stack, strict=True):
        traits, description = COGNITIVE_FUNCTIONS[function]
        result.append(
            CognitiveFunction(
                function=function,
                position=position,
                strength=trait_mean(scores, traits),
                description=description,
            )
        )
    return result


def classify_mbti(
    scores: Mapping[str, float],
    weights: Mapping[str, DimensionWeights],
) -> MbtiResult:
    """Classify MBTI type from trait scores.

    Args:
        scores: Trait scores.
        weights: Complete MBTI dimension table (EI, SN, TF, JP).

    Returns:
        MbtiResult with per-dimension values and cognitive function stack.

    Raises:
        ConfigurationError: If a dimension table is unusable.
    """
    dimensions: dict[str, MbtiDimensionResult] = {}
    for dimension in DIMENSION_LETTERS:
        table = weights[dimension]
        threshold = table.threshold if table.threshold is not None else 5.0
        value = weighted_mean(scores, table, framework=Framework.MBTI.value, dimension=dimension)
        dimensions[dimension] = MbtiDimensionResult(
            dimension=dimension,
            value=value,
            threshold=threshold,
            letter=letter_for(dimension, value, threshold),
            confidence=calculate_confidence(value - threshold, 1.0),
        )

    mbti_type = "".join(dimensions[d].letter for d in DIMENSION_LETTERS)
    confidence = sum(d.confidence for d in dimensions.values()) / len(dimensions)
    return MbtiResult(
        type=mbti_type,
        dimensions=dimensions,
        cognitive_functions=_cognitive_stack(mbti_type, scores),
        confidence=confidence,
    )
