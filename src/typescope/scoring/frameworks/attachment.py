"""Attachment style classifier (secure / anxious / dismissive / fearful)."""

from __future__ import annotations

from collections.abc import Mapping

from typescope.scoring.frameworks._common import calculate_confidence, weighted_mean
from typescope.scoring.models import AttachmentResult, DimensionWeights, Framework

ATTACHMENT_STYLES = (
    "secure",
    "anxious-preoccupied",
    "dismissive-avoidant",
    "fearful-avoidant",
)


def classify_attachment(
    scores: Mapping[str, float],
    weights: Mapping[str, DimensionWeights],
) -> AttachmentResult:
    """Pick the highest-scoring attachment style; earlier styles win ties."""
    style_scores = {
        style: weighted_mean(
            scores, weights[style], framework=Framework.ATTACHMENT.value, dimension=style
        )
        for style in ATTACHMENT_STYLES
    }
    ranked = sorted(ATTACHMENT_STYLES, key=lambda style: -style_scores[style])
    separation = style_scores[ranked[0]] - style_scores[ranked[1]]
    return AttachmentResult(
        style=ranked[0],
        scores=style_scores,
        confidence=calculate_confidence(separation, 0.5),
    )
