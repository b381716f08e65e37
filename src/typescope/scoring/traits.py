"""Trait scoring, dominant-trait resolution and domain aggregation.

- calculate_trait_scores: mean of mapped responses per trait
- resolve_dominant_trait: triad winner with the positional tie-break
- aggregate_domain_scores: unweighted mean of each domain's 9 traits

All functions are pure; the effective trait mapping is passed in.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from typescope.errors import ConfigurationError
from typescope.scoring.catalog import (
    DEFAULT_TRAIT_MAPPINGS,
    DOMAINS,
    TRAIT_SET,
    Triad,
    dominant_key,
    iter_triads,
)

logger = logging.getLogger(__name__)

TIE_TOLERANCE = 0.01


def resolve_trait_mappings(
    overrides: Mapping[str, Sequence[int]] | None = None,
) -> dict[str, tuple[int, ...]]:
    """Overlay per-trait question overrides on the default mapping.

    Only the traits named in `overrides` change; all others keep their
    default question indices.

    Raises:
        ConfigurationError: If an override names an unknown trait.
    """
    mappings = dict(DEFAULT_TRAIT_MAPPINGS)
    if not overrides:
        return mappings
    unknown = sorted(set(overrides) - TRAIT_SET)
    if unknown:
        raise ConfigurationError(f"Trait mapping override names unknown traits: {unknown}")
    for trait, indices in overrides.items():
        mappings[trait] = tuple(indices)
    return mappings


def calculate_trait_scores(
    responses: Sequence[int],
    trait_mappings: Mapping[str, Sequence[int]],
) -> dict[str, float]:
    """Compute each trait's score as the mean of its mapped responses.

    Args:
        responses: Validated response vector.
        trait_mappings: Trait -> 1-based question indices.

    Returns:
        Trait -> score on the response scale.

    Raises:
        ConfigurationError: If a trait has no mapped questions or an index
            falls outside the response vector.
    """
    scores: dict[str, float] = {}
    size = len(responses)
    for trait, indices in trait_mappings.items():
        if not indices:
            raise ConfigurationError(f"Trait '{trait}' has no mapped questions")
        values: list[int] = []
        for index in indices:
            if not 1 <= index <= size:
                raise ConfigurationError(
                    f"Trait '{trait}' maps to question {index}, outside 1..{size}"
                )
            values.append(responses[index - 1])
        scores[trait] = sum(values) / len(values)
    return scores


def resolve_dominant_trait(triad: Triad, scores: Mapping[str, float]) -> str:
    """Pick the dominant trait of a triad.

    Traits within TIE_TOLERANCE of the top score are tied:
    - all three tied -> middle trait
    - first and last tied -> middle trait (the balanced position)
    - any other pair tied -> the earlier of the pair in triad order
    - otherwise the top-scoring trait

    Args:
        triad: Ordered (first, middle, last) trait names.
        scores: Trait scores; missing traits count as 0.

    Returns:
        Winning trait name.
    """
    values = [scores.get(trait, 0.0) for trait in triad]
    ranked = sorted(range(3), key=lambda i: values[i], reverse=True)
    highest = values[ranked[0]]
    tied = sorted(i for i in ranked if abs(values[i] - highest) < TIE_TOLERANCE)

    if len(tied) == 3:
        return triad[1]
    if len(tied) == 2:
        if tied == [0, 2]:
            return triad[1]
        return triad[tied[0]]
    return triad[ranked[0]]


def determine_dominant_traits(scores: Mapping[str, float]) -> dict[str, str]:
    """Resolve the dominant trait for every triad, keyed "<Domain>-<Triad>"."""
    return {
        dominant_key(domain, name): resolve_dominant_trait(triad, scores)
        for domain, name, triad in iter_triads()
    }


def aggregate_domain_scores(scores: Mapping[str, float]) -> dict[str, float]:
    """Average the nine trait scores under each domain.

    A trait missing from `scores` contributes 0 to its domain mean.
    """
    domain_scores: dict[str, float] = {}
    for domain, triads in DOMAINS.items():
        traits = [trait for triad in triads.values() for trait in triad]
        missing = [trait for trait in traits if trait not in scores]
        if missing:
            logger.warning("Domain %s missing trait scores %s; counting them as 0", domain, missing)
        domain_scores[domain] = sum(scores.get(trait, 0.0) for trait in traits) / len(traits)
    return domain_scores
