"""Holland Code (RIASEC) classifier.

Type score defaults to 0.7 * mean(primary traits) + 0.3 * mean(secondary
traits), expressed as per-trait weights. The code lists up to three types
scoring above CODE_THRESHOLD, strongest first; when none qualify the single
strongest type is used.
"""

from __future__ import annotations

from collections.abc import Mapping

from typescope.scoring.frameworks._common import weighted_mean
from typescope.scoring.models import DimensionWeights, Framework, HollandResult

RIASEC_ORDER = ("R", "I", "A", "S", "E", "C")
CODE_THRESHOLD = 6.0
MAX_CODE_LENGTH = 3


def classify_holland(
    scores: Mapping[str, float],
    weights: Mapping[str, DimensionWeights],
) -> HollandResult:
    """Compute RIASEC scores and the Holland code."""
    type_scores = {
        letter: weighted_mean(
            scores, weights[letter], framework=Framework.HOLLAND.value, dimension=letter
        )
        for letter in RIASEC_ORDER
    }
    ranked = sorted(RIASEC_ORDER, key=lambda letter: -type_scores[letter])
    qualifying = [letter for letter in ranked if type_scores[letter] > CODE_THRESHOLD]
    code = "".join(qualifying[:MAX_CODE_LENGTH]) or ranked[0]
    return HollandResult(code=code, scores=type_scores)
