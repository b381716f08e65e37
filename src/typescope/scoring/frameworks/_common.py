"""Shared helpers for framework classifiers."""

from __future__ import annotations

from collections.abc import Mapping

from typescope.errors import ConfigurationError
from typescope.scoring.models import DimensionWeights


def weighted_mean(
    scores: Mapping[str, float],
    weights: DimensionWeights,
    *,
    framework: str,
    dimension: str,
) -> float:
    """Weighted mean of trait scores for one dimension.

    Raises:
        ConfigurationError: If the dimension is empty, has zero total
            weight, or references a trait that was not scored.
    """
    total_weight = sum(weights.traits.values())
    if not weights.traits or total_weight <= 0:
        raise ConfigurationError(
            f"{framework}.{dimension} has no usable trait weights", framework=framework
        )
    total = 0.0
    for trait, weight in weights.traits.items():
        if trait not in scores:
            raise ConfigurationError(
                f"{framework}.{dimension} references unscored trait '{trait}'",
                framework=framework,
            )
        total += scores[trait] * weight
    return total / total_weight


def calculate_confidence(distance: float, threshold: float = 1.5) -> float:
    """Map a signed distance from a decision boundary to 50-100."""
    return min(100.0, max(50.0, abs(distance) / threshold * 50.0 + 50.0))


def trait_mean(scores: Mapping[str, float], traits: tuple[str, ...] | list[str]) -> float:
    """Plain mean over a fixed trait list."""
    return sum(scores[trait] for trait in traits) / len(traits)
