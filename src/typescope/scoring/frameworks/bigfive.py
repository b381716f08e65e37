"""Big Five classifier: each factor is a weighted mean of its traits."""

from __future__ import annotations

from collections.abc import Mapping

from typescope.scoring.frameworks._common import weighted_mean
from typescope.scoring.models import BigFiveResult, DimensionWeights, Framework

HIGH_BAND_MIN = 7.0
LOW_BAND_MAX = 4.0


def band_for(value: float) -> str:
    """Coarse band for a 1-10 factor value."""
    if value >= HIGH_BAND_MIN:
        return "high"
    if value > LOW_BAND_MAX:
        return "moderate"
    return "low"


def classify_bigfive(
    scores: Mapping[str, float],
    weights: Mapping[str, DimensionWeights],
) -> BigFiveResult:
    """Compute the five factor values and their bands."""
    factors = {
        factor: weighted_mean(scores, table, framework=Framework.BIGFIVE.value, dimension=factor)
        for factor, table in weights.items()
    }
    return BigFiveResult(
        scores=factors,
        bands={factor: band_for(value) for factor, value in factors.items()},
    )
