"""Admin analysis tools: question impact and MBTI threshold sensitivity."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from typescope.errors import InputValidationError
from typescope.scoring.catalog import RESPONSE_MAX, RESPONSE_MIN
from typescope.scoring.engine import score_profile
from typescope.scoring.frameworks._common import weighted_mean
from typescope.scoring.frameworks.mbti import DIMENSION_LETTERS, letter_for
from typescope.scoring.models import Framework, validate_responses
from typescope.scoring.traits import calculate_trait_scores, resolve_trait_mappings
from typescope.scoring.weight_packs import resolve_weights

if TYPE_CHECKING:
    from typescope.config.overrides import ScoringOverrides


class QuestionImpactPoint(BaseModel):
    """Profile outcome for one candidate answer value."""

    model_config = ConfigDict(frozen=True)

    value: int
    mbti: str | None
    changed_traits: dict[str, float]


class QuestionImpact(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_index: int
    affected_traits: list[str]
    points: list[QuestionImpactPoint]
    mbti_types: list[str]


def analyze_question_impact(
    responses: Sequence[int],
    question_index: int,
    overrides: ScoringOverrides | None = None,
) -> QuestionImpact:
    """Vary one answer across the response scale and report what moves.

    Args:
        responses: Baseline response vector.
        question_index: 1-based question to vary.
        overrides: Optional global scoring overrides.

    Returns:
        One point per answer value with the MBTI type and the trait scores
        that differ from the baseline.

    Raises:
        InputValidationError: If the responses or question index are invalid.
    """
    baseline = list(validate_responses(responses))
    if not 1 <= question_index <= len(baseline):
        raise InputValidationError(
            f"Question index {question_index} outside 1..{len(baseline)}",
            details={"question_index": question_index},
        )

    mappings = resolve_trait_mappings(overrides.trait_mappings if overrides else None)
    affected = sorted(t for t, indices in mappings.items() if question_index in indices)
    base_scores = score_profile(baseline, overrides).trait_scores

    points: list[QuestionImpactPoint] = []
    for value in range(RESPONSE_MIN, RESPONSE_MAX + 1):
        varied = list(baseline)
        varied[question_index - 1] = value
        profile = score_profile(varied, overrides)
        changed = {
            trait: score
            for trait, score in profile.trait_scores.items()
            if abs(score - base_scores[trait]) > 1e-9
        }
        points.append(
            QuestionImpactPoint(value=value, mbti=profile.mappings.mbti, changed_traits=changed)
        )

    mbti_types = sorted({p.mbti for p in points if p.mbti is not None})
    return QuestionImpact(
        question_index=question_index,
        affected_traits=affected,
        points=points,
        mbti_types=mbti_types,
    )


def threshold_sensitivity(
    responses: Sequence[int],
    dimension: str,
    thresholds: Sequence[float],
    overrides: ScoringOverrides | None = None,
) -> dict[float, str]:
    """MBTI letter for one dimension at each candidate threshold.

    Raises:
        InputValidationError: If the responses or dimension are invalid.
    """
    if dimension not in DIMENSION_LETTERS:
        raise InputValidationError(
            f"Unknown MBTI dimension: {dimension}", details={"dimension": dimension}
        )
    values = validate_responses(responses)
    mappings = resolve_trait_mappings(overrides.trait_mappings if overrides else None)
    scores = calculate_trait_scores(values, mappings)
    table = overrides.framework_table(Framework.MBTI) if overrides else None
    weights = resolve_weights(Framework.MBTI, table)[dimension]
    value = weighted_mean(scores, weights, framework=Framework.MBTI.value, dimension=dimension)
    return {threshold: letter_for(dimension, value, threshold) for threshold in thresholds}
