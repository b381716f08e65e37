"""Trait-based Integral level estimate.

Level scores are weighted means over each level's indicator traits; the
detail is assembled by the same builder as the question-bank scorer.
"""

from __future__ import annotations

from collections.abc import Mapping

from typescope.integral.levels import LEVEL_ORDER
from typescope.integral.models import IntegralDetail
from typescope.integral.scorer import build_integral_detail, rank_levels
from typescope.scoring.frameworks._common import weighted_mean
from typescope.scoring.models import DimensionWeights, Framework

# Trait scores above this count as agreeing with a level's indicators.
INDICATOR_CUTOFF = 5.0


def classify_integral(
    scores: Mapping[str, float],
    weights: Mapping[str, DimensionWeights],
) -> IntegralDetail:
    level_scores = {
        level: weighted_mean(
            scores, weights[level], framework=Framework.INTEGRAL.value, dimension=level
        )
        for level in LEVEL_ORDER
    }
    primary = rank_levels(level_scores)[0]
    indicators = weights[primary].traits
    agreeing = sum(1 for trait in indicators if scores[trait] > INDICATOR_CUTOFF)
    return build_integral_detail(level_scores, consistency=agreeing / len(indicators))
