"""Socionics classifier.

The Socionics type is a static lookup from the computed MBTI code. The
information-element stack is scored from the `socionics` weight table.
"""

from __future__ import annotations

from collections.abc import Mapping

from typescope.scoring.frameworks._common import weighted_mean
from typescope.scoring.frameworks.mbti import STACK_POSITIONS, TYPE_COGNITIVE_STACKS
from typescope.scoring.models import (
    CognitiveFunction,
    DimensionWeights,
    Framework,
    SocionicsResult,
)

# MBTI -> (Socionics type, three-letter abbreviation, quadra)
MBTI_TO_SOCIONICS: dict[str, tuple[str, str, str]] = {
    "INTJ": ("INTp", "ILI", "Gamma"),
    "INTP": ("INTj", "LII", "Alpha"),
    "ENTJ": ("ENTj", "LIE", "Gamma"),
    "ENTP": ("ENTp", "ILE", "Alpha"),
    "INFJ": ("INFp", "IEI", "Beta"),
    "INFP": ("INFj", "EII", "Delta"),
    "ENFJ": ("ENFj", "EIE", "Beta"),
    "ENFP": ("ENFp", "IEE", "Delta"),
    "ISTJ": ("ISTp", "SLI", "Delta"),
    "ISFJ": ("ISFp", "SEI", "Alpha"),
    "ESTJ": ("ESTj", "LSE", "Delta"),
    "ESFJ": ("ESFj", "ESE", "Alpha"),
    "ISTP": ("ISTj", "LSI", "Beta"),
    "ISFP": ("ISFj", "ESI", "Gamma"),
    "ESTP": ("ESTp", "SLE", "Beta"),
    "ESFP": ("ESFp", "SEE", "Gamma"),
}

SOCIONICS_TYPES: frozenset[str] = frozenset(t for t, _, _ in MBTI_TO_SOCIONICS.values())

ELEMENT_DESCRIPTIONS: dict[str, str] = {
    "Ne": "Explores external possibilities and connections",
    "Se": "Direct impact on physical environment",
    "Te": "Efficient external organization",
    "Fe": "External emotional atmosphere",
    "Ni": "Internal vision and convergent insights",
    "Si": "Internal sensory experience and memory",
    "Ti": "Internal logical consistency",
    "Fi": "Internal value system and authenticity",
}


def classify_socionics(
    mbti_type: str,
    scores: Mapping[str, float],
    weights: Mapping[str, DimensionWeights],
) -> SocionicsResult | None:
    """Map an MBTI code to its Socionics type.

    Returns:
        SocionicsResult, or None for an unrecognised MBTI code.
    """
    entry = MBTI_TO_SOCIONICS.get(mbti_type)
    if entry is None:
        return None
    socionics_type, abbreviation, quadra = entry

    elements = [
        CognitiveFunction(
            function=element,
            position=position,
            strength=weighted_mean(
                scores, weights[element], framework=Framework.SOCIONICS.value, dimension=element
            ),
            description=ELEMENT_DESCRIPTIONS[element],
        )
        for position, element in zip(STACK_POSITIONS, TYPE_COGNITIVE_STACKS[mbti_type], strict=True)
    ]
    return SocionicsResult(
        type=socionics_type,
        abbreviation=abbreviation,
        quadra=quadra,
        information_elements=elements,
    )
