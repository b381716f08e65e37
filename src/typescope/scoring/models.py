"""Scoring domain models.

Defines:
- Framework: the personality frameworks computed from trait scores
- DimensionWeights: one classification dimension of a weight table
- Per-framework result models (MBTI, Enneagram, Big Five, Holland,
  Alignment, Socionics, Attachment)
- PersonalityProfile: the full output of score_profile()

All models are immutable after construction. Trait/domain/dominant maps are
ephemeral: recomputed per request, never persisted on their own.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from typescope.errors import InputValidationError
from typescope.integral.models import IntegralDetail
from typescope.scoring.catalog import RESPONSE_LENGTH, RESPONSE_MAX, RESPONSE_MIN


class Framework(StrEnum):
    """Personality frameworks with overridable weight tables."""

    MBTI = "mbti"
    BIGFIVE = "bigfive"
    ENNEAGRAM = "enneagram"
    ALIGNMENT = "alignment"
    HOLLAND = "holland"
    SOCIONICS = "socionics"
    INTEGRAL = "integral"
    ATTACHMENT = "attachment"


ALL_FRAMEWORKS: tuple[Framework, ...] = tuple(Framework)


class DimensionWeights(BaseModel):
    """Weights for one classification dimension of a framework.

    The dimension value is the weighted mean of the listed trait scores.
    `threshold` is only meaningful for frameworks that compare against a
    cut-off (MBTI letter boundary, alignment margin).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    traits: dict[str, float] = Field(..., description="Trait name -> weight")
    threshold: float | None = Field(default=None, description="Optional decision threshold")

    @field_validator("traits")
    @classmethod
    def _non_negative(cls, v: dict[str, float]) -> dict[str, float]:
        for trait, weight in v.items():
            if weight < 0:
                raise ValueError(f"Weight for '{trait}' must be non-negative (got {weight})")
        return v


def validate_responses(
    responses: Sequence[int], expected_length: int = RESPONSE_LENGTH
) -> tuple[int, ...]:
    """Validate a raw response vector before any scoring happens.

    Args:
        responses: Likert responses, one per question.
        expected_length: Required vector length.

    Returns:
        The responses as an immutable tuple.

    Raises:
        InputValidationError: On wrong length, non-integer, or out-of-range values.
    """
    if isinstance(responses, (str, bytes)):
        raise InputValidationError("Responses must be a sequence of integers")
    values = tuple(responses)
    if len(values) != expected_length:
        raise InputValidationError(
            f"Expected {expected_length} responses, got {len(values)}",
            details={"expected_length": expected_length, "actual_length": len(values)},
        )
    for position, value in enumerate(values, start=1):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InputValidationError(
                f"Response {position} must be an integer",
                details={"question": position},
            )
        if not RESPONSE_MIN <= value <= RESPONSE_MAX:
            raise InputValidationError(
                f"Response {position} out of range [{RESPONSE_MIN}, {RESPONSE_MAX}]: {value}",
                details={"question": position, "value": value},
            )
    return values


class MbtiDimensionResult(BaseModel):
    """Outcome of one MBTI dichotomy."""

    model_config = ConfigDict(frozen=True)

    dimension: str
    value: float = Field(..., description="Weighted mean of the dimension's traits")
    threshold: float
    letter: str = Field(..., min_length=1, max_length=1)
    confidence: float = Field(..., ge=0.0, le=100.0)


class CognitiveFunction(BaseModel):
    """One position of a cognitive-function or information-element stack."""

    model_config = ConfigDict(frozen=True)

    function: str
    position: str
    strength: float
    description: str


class MbtiResult(BaseModel):
    """MBTI type with per-dimension detail and function stack."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., pattern=r"^[EI][SN][TF][JP]$")
    dimensions: dict[str, MbtiDimensionResult]
    cognitive_functions: list[CognitiveFunction]
    confidence: float


class InstinctualVariant(BaseModel):
    """Ordered instinctual stacking (first two positions)."""

    model_config = ConfigDict(frozen=True)

    primary: str
    secondary: str


class EnneagramResult(BaseModel):
    """Enneagram core type with wing, tritype and supporting detail."""

    model_config = ConfigDict(frozen=True)

    type: int = Field(..., ge=1, le=9)
    wing: int = Field(..., ge=1, le=9)
    tritype: str
    type_scores: dict[str, float]
    instinctual_variant: InstinctualVariant
    health_level: str
    wing_influence: float
    confidence: float


class BigFiveResult(BaseModel):
    """Big Five factor values (1-10) with coarse bands."""

    model_config = ConfigDict(frozen=True)

    scores: dict[str, float]
    bands: dict[str, str]


class HollandResult(BaseModel):
    """Holland (RIASEC) code and per-type scores."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., pattern=r"^[RIASEC]{1,3}$")
    scores: dict[str, float]


class AxisResult(BaseModel):
    """Position on one alignment axis."""

    model_config = ConfigDict(frozen=True)

    position: str
    score: float
    pole_scores: dict[str, float]


class AlignmentResult(BaseModel):
    """Nine-box alignment label with per-axis detail."""

    model_config = ConfigDict(frozen=True)

    alignment: str
    ethical_axis: AxisResult
    moral_axis: AxisResult
    confidence: float


class SocionicsResult(BaseModel):
    """Socionics type derived from the MBTI code."""

    model_config = ConfigDict(frozen=True)

    type: str
    abbreviation: str
    quadra: str
    information_elements: list[CognitiveFunction]


class AttachmentResult(BaseModel):
    """Attachment style with per-style scores."""

    model_config = ConfigDict(frozen=True)

    style: str
    scores: dict[str, float]
    confidence: float


class FrameworkMappings(BaseModel):
    """Display values and detail for every framework.

    Display fields (`mbti`, `enneagram`, ...) may be replaced by a user
    override; the `*_details` fields always hold the computed result.
    """

    model_config = ConfigDict(frozen=True)

    mbti: str | None = None
    mbti_details: MbtiResult | None = None
    enneagram: int | None = None
    enneagram_details: EnneagramResult | None = None
    big_five: dict[str, float] | None = None
    big_five_details: BigFiveResult | None = None
    dnd_alignment: str | None = None
    alignment_details: AlignmentResult | None = None
    socionics: str | None = None
    socionics_details: SocionicsResult | None = None
    holland_code: str | None = None
    holland_details: HollandResult | None = None
    attachment_style: str | None = None
    attachment_details: AttachmentResult | None = None
    integral_level: str | None = None
    integral_details: IntegralDetail | None = None


class PersonalityProfile(BaseModel):
    """Full scoring output for one response vector."""

    model_config = ConfigDict(frozen=True)

    trait_scores: dict[str, float]
    dominant_traits: dict[str, str]
    domain_scores: dict[str, float]
    mappings: FrameworkMappings
    errors: dict[str, str] = Field(
        default_factory=dict, description="Framework -> configuration error message"
    )
    overridden_frameworks: list[str] = Field(
        default_factory=list, description="Frameworks whose display value came from a user override"
    )
