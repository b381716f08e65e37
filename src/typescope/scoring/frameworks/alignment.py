"""Alignment (nine-box) classifier.

Each axis has two poles and a neutral table. A pole wins its axis only
when its score beats both the other pole and the neutral score by more
than the pole's margin (its `threshold`); otherwise the axis is Neutral.
"""

from __future__ import annotations

from collections.abc import Mapping

from typescope.scoring.frameworks._common import calculate_confidence, weighted_mean
from typescope.scoring.models import AlignmentResult, AxisResult, DimensionWeights, Framework
from typescope.scoring.weight_packs import DEFAULT_ALIGNMENT_MARGIN

# axis name -> ((pole key, label), neutral key, (pole key, label))
AXES: dict[str, tuple[tuple[str, str], str, tuple[str, str]]] = {
    "ethical": (("lawful", "Lawful"), "neutral_ethical", ("chaotic", "Chaotic")),
    "moral": (("good", "Good"), "neutral_moral", ("evil", "Evil")),
}


def _axis(
    scores: Mapping[str, float],
    weights: Mapping[str, DimensionWeights],
    axis: str,
) -> AxisResult:
    (first_key, first_label), neutral_key, (second_key, second_label) = AXES[axis]
    pole_scores = {
        key: weighted_mean(scores, weights[key], framework=Framework.ALIGNMENT.value, dimension=key)
        for key in (first_key, neutral_key, second_key)
    }

    for key, label, other in (
        (first_key, first_label, second_key),
        (second_key, second_label, first_key),
    ):
        margin = weights[key].threshold
        if margin is None:
            margin = DEFAULT_ALIGNMENT_MARGIN
        rival = max(pole_scores[other], pole_scores[neutral_key])
        if pole_scores[key] - rival > margin:
            return AxisResult(position=label, score=pole_scores[key], pole_scores=pole_scores)

    return AxisResult(position="Neutral", score=pole_scores[neutral_key], pole_scores=pole_scores)


def classify_alignment(
    scores: Mapping[str, float],
    weights: Mapping[str, DimensionWeights],
) -> AlignmentResult:
    """Classify the nine-box alignment label, e.g. "Lawful Good"."""
    ethical = _axis(scores, weights, "ethical")
    moral = _axis(scores, weights, "moral")

    if ethical.position == "Neutral" and moral.position == "Neutral":
        label = "True Neutral"
    else:
        label = f"{ethical.position} {moral.position}"

    confidence = (
        calculate_confidence(ethical.score - 5.0, 1.0) + calculate_confidence(moral.score - 5.0, 1.0)
    ) / 2
    return AlignmentResult(
        alignment=label, ethical_axis=ethical, moral_axis=moral, confidence=confidence
    )
