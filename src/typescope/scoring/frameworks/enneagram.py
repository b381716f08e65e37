"""Enneagram classifier.

Type score = weighted mean of the type's core traits (primary 3, secondary 2,
tertiary 1 by default). Type = highest score; wing = the higher-scoring of
the two adjacent types (1 and 9 are adjacent), the clockwise neighbour
(primary + 1, 9 wraps to 1) on a tie; tritype takes the primary
type plus the strongest type of each other center.

Instinctual variants and health levels come from fixed trait tables.
"""

from __future__ import annotations

from collections.abc import Mapping

from typescope.scoring.frameworks._common import calculate_confidence, trait_mean, weighted_mean
from typescope.scoring.models import (
    DimensionWeights,
    EnneagramResult,
    Framework,
    InstinctualVariant,
)

CENTERS: tuple[tuple[str, tuple[int, ...]], ...] = (
    ("heart", (2, 3, 4)),
    ("head", (5, 6, 7)),
    ("gut", (8, 9, 1)),
)

INSTINCTUAL_VARIANTS: dict[int, dict[str, tuple[str, ...]]] = {
    1: {
        "self-preservation": ("Structured", "Physical", "Pessimistic"),
        "social": ("Lawful", "Social", "Diplomatic"),
        "sexual": ("Self-Mastery", "Direct", "Assertive"),
    },
    2: {
        "self-preservation": ("Passive", "Social", "Structured"),
        "social": ("Communal Navigate", "Diplomatic", "Extrinsic"),
        "sexual": ("Assertive", "Dynamic", "Direct"),
    },
    3: {
        "self-preservation": ("Pragmatic", "Self-Mastery", "Structured"),
        "social": ("Social", "Extrinsic", "Dynamic"),
        "sexual": ("Assertive", "Dynamic", "Direct"),
    },
    4: {
        "self-preservation": ("Self-Aware", "Pessimistic", "Physical"),
        "social": ("Social", "Turbulent", "Responsive"),
        "sexual": ("Dynamic", "Assertive", "Self-Principled"),
    },
    5: {
        "self-preservation": ("Physical", "Structured", "Pessimistic"),
        "social": ("Social", "Analytical", "Universal"),
        "sexual": ("Assertive", "Self-Principled", "Direct"),
    },
    6: {
        "self-preservation": ("Structured", "Pessimistic", "Physical"),
        "social": ("Social", "Lawful", "Responsive Regulation"),
        "sexual": ("Assertive", "Direct", "Dynamic"),
    },
    7: {
        "self-preservation": ("Self-Indulgent", "Physical", "Pragmatic"),
        "social": ("Social", "Optimistic", "Dynamic"),
        "sexual": ("Dynamic", "Assertive", "Self-Principled"),
    },
    8: {
        "self-preservation": ("Physical", "Pragmatic", "Structured"),
        "social": ("Social", "Assertive", "Direct"),
        "sexual": ("Assertive", "Direct", "Dynamic"),
    },
    9: {
        "self-preservation": ("Passive", "Physical", "Static"),
        "social": ("Social", "Diplomatic", "Mixed Navigate"),
        "sexual": ("Responsive", "Dynamic", "Optimistic"),
    },
}

HEALTH_LEVELS: dict[int, dict[str, tuple[str, ...]]] = {
    1: {
        "healthy": ("Self-Mastery", "Diplomatic", "Responsive"),
        "average": ("Lawful", "Structured", "Stoic"),
        "unhealthy": ("Pessimistic", "Direct", "Turbulent"),
    },
    2: {
        "healthy": ("Diplomatic", "Responsive", "Optimistic"),
        "average": ("Communal Navigate", "Social", "Passive"),
        "unhealthy": ("Passive", "Pessimistic", "Turbulent"),
    },
    3: {
        "healthy": ("Optimistic", "Dynamic", "Responsive"),
        "average": ("Assertive", "Pragmatic", "Extrinsic"),
        "unhealthy": ("Self-Indulgent", "Pessimistic", "Turbulent"),
    },
    4: {
        "healthy": ("Self-Aware", "Intuitive", "Universal"),
        "average": ("Self-Principled", "Independent", "Turbulent"),
        "unhealthy": ("Pessimistic", "Self-Indulgent", "Passive"),
    },
    5: {
        "healthy": ("Analytical", "Universal", "Self-Mastery"),
        "average": ("Independent Navigate", "Stoic", "Intrinsic"),
        "unhealthy": ("Pessimistic", "Passive", "Static"),
    },
    6: {
        "healthy": ("Lawful", "Social", "Responsive Regulation"),
        "average": ("Ambivalent", "Pessimistic", "Structured"),
        "unhealthy": ("Pessimistic", "Passive", "Turbulent"),
    },
    7: {
        "healthy": ("Optimistic", "Dynamic", "Varied"),
        "average": ("Self-Indulgent", "Independent", "Intuitive"),
        "unhealthy": ("Self-Indulgent", "Turbulent", "Pessimistic"),
    },
    8: {
        "healthy": ("Assertive", "Self-Principled", "Stoic"),
        "average": ("Direct", "Independent", "Physical"),
        "unhealthy": ("Turbulent", "Pessimistic", "Self-Indulgent"),
    },
    9: {
        "healthy": ("Optimistic", "Diplomatic", "Responsive"),
        "average": ("Passive", "Ambivalent", "Mixed Navigate"),
        "unhealthy": ("Passive", "Pessimistic", "Static"),
    },
}


def adjacent_types(type_number: int) -> tuple[int, int]:
    """Return the two wing candidates of a type (1 and 9 wrap)."""
    left = 9 if type_number == 1 else type_number - 1
    right = 1 if type_number == 9 else type_number + 1
    return left, right


def _best(candidates: tuple[int, ...], type_scores: Mapping[int, float]) -> int:
    """Highest-scoring candidate; earlier candidate wins ties."""
    best = candidates[0]
    for candidate in candidates[1:]:
        if type_scores[candidate] > type_scores[best]:
            best = candidate
    return best


def _tritype(primary: int, type_scores: Mapping[int, float]) -> str:
    center_index = next(i for i, (_, members) in enumerate(CENTERS) if primary in members)
    digits = [primary]
    for offset in (1, 2):
        _, members = CENTERS[(center_index + offset) % len(CENTERS)]
        digits.append(_best(members, type_scores))
    return "".join(str(d) for d in digits)


def _ranked_means(
    scores: Mapping[str, float], table: Mapping[str, tuple[str, ...]]
) -> list[tuple[str, float]]:
    means = [(name, trait_mean(scores, traits)) for name, traits in table.items()]
    return sorted(means, key=lambda item: item[1], reverse=True)


def classify_enneagram(
    scores: Mapping[str, float],
    weights: Mapping[str, DimensionWeights],
) -> EnneagramResult:
    """Classify Enneagram type, wing, tritype and supporting detail.

    Args:
        scores: Trait scores.
        weights: Complete Enneagram table keyed "1".."9".

    Raises:
        ConfigurationError: If a type table is unusable.
    """
    type_scores = {
        n: weighted_mean(
            scores, weights[str(n)], framework=Framework.ENNEAGRAM.value, dimension=str(n)
        )
        for n in range(1, 10)
    }
    ranked = sorted(type_scores, key=lambda n: (-type_scores[n], n))
    primary = ranked[0]

    left, right = adjacent_types(primary)
    wing = left if type_scores[left] > type_scores[right] else right

    variants = _ranked_means(scores, INSTINCTUAL_VARIANTS[primary])
    health = _ranked_means(scores, HEALTH_LEVELS[primary])

    separation = type_scores[primary] - type_scores[ranked[1]]
    wing_influence = type_scores[wing] / type_scores[primary] if type_scores[primary] else 0.0

    return EnneagramResult(
        type=primary,
        wing=wing,
        tritype=_tritype(primary, type_scores),
        type_scores={str(n): s for n, s in type_scores.items()},
        instinctual_variant=InstinctualVariant(primary=variants[0][0], secondary=variants[1][0]),
        health_level=health[0][0],
        wing_influence=wing_influence,
        confidence=calculate_confidence(separation, 0.5),
    )
