"""Integral level scoring.

score_responses() scores answers to the fixed question bank;
build_integral_detail() turns any per-level score map into an
IntegralDetail and is shared with the trait-based estimate and the
confidence enhancement flow.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from typescope.errors import InputValidationError
from typescope.integral.levels import INTEGRAL_LEVELS, LEVEL_ORDER, get_level, level_position
from typescope.integral.models import IntegralDetail, LevelScore, RealityTriad
from typescope.integral.question_bank import MAX_OPTION_POINTS, QUESTIONS_BY_ID, option_level

logger = logging.getLogger(__name__)

SECONDARY_WINDOW = 2.0
SCORE_SCALE = 10.0


def rank_levels(level_scores: Mapping[str, float]) -> list[str]:
    """Level keys ordered by score, highest first (earlier level wins ties)."""
    return sorted(LEVEL_ORDER, key=lambda key: -level_scores.get(key, 0.0))


def level_score(key: str, score: float) -> LevelScore:
    level = get_level(key)
    return LevelScore(
        key=key, number=level.number, color=level.color, name=level.name, score=score
    )


def reality_triad(level_scores: Mapping[str, float]) -> RealityTriad:
    """Share of total level score on physical / social / universal levels.

    An all-zero score map splits evenly.
    """
    buckets = {"physical": 0.0, "social": 0.0, "universal": 0.0}
    for key in LEVEL_ORDER:
        buckets[INTEGRAL_LEVELS[key].triad] += max(level_scores.get(key, 0.0), 0.0)
    total = sum(buckets.values())
    if total <= 0:
        return RealityTriad(physical=1 / 3, social=1 / 3, universal=1 / 3)
    return RealityTriad(**{name: value / total for name, value in buckets.items()})


def cognitive_complexity(level_scores: Mapping[str, float], primary: str) -> float:
    """Complexity weighted by each level's share of the total score."""
    total = sum(max(level_scores.get(key, 0.0), 0.0) for key in LEVEL_ORDER)
    if total <= 0:
        return INTEGRAL_LEVELS[primary].complexity
    weighted = sum(
        INTEGRAL_LEVELS[key].complexity * max(level_scores.get(key, 0.0), 0.0) / total
        for key in LEVEL_ORDER
    )
    return min(SCORE_SCALE, weighted)


def developmental_edge(primary: str, secondary: str | None) -> str:
    primary_level = INTEGRAL_LEVELS[primary]
    if secondary is None:
        return f"Focus on integrating {primary_level.growth_edge[0]}"
    if level_position(secondary) > level_position(primary):
        secondary_level = INTEGRAL_LEVELS[secondary]
        return f"Developing toward {secondary_level.name}: {secondary_level.growth_edge[0]}"
    return (
        "Strengthening current level while preparing for next: "
        f"{primary_level.growth_edge[0]}"
    )


def overall_confidence(gap: float, consistency: float) -> float:
    """Confidence (0-100) from the primary/runner-up gap and answer consistency."""
    return max(0.0, min(100.0, 50.0 + 10.0 * gap + 30.0 * consistency - 15.0))


def build_integral_detail(
    level_scores: Mapping[str, float],
    *,
    consistency: float = 0.5,
) -> IntegralDetail:
    """Build an IntegralDetail from per-level scores (0-10).

    Args:
        level_scores: Level key -> score. Missing levels count as 0.
        consistency: Fraction (0-1) of the evidence agreeing with the primary.

    Returns:
        IntegralDetail with primary/secondary, confidence, complexity,
        reality triad mapping and developmental edge.
    """
    scores = {key: float(level_scores.get(key, 0.0)) for key in LEVEL_ORDER}
    ranked = rank_levels(scores)
    primary, runner_up = ranked[0], ranked[1]
    gap = scores[primary] - scores[runner_up]
    secondary = runner_up if gap <= SECONDARY_WINDOW else None
    consistency = max(0.0, min(1.0, consistency))

    return IntegralDetail(
        primary_level=level_score(primary, scores[primary]),
        secondary_level=level_score(secondary, scores[secondary]) if secondary else None,
        confidence=overall_confidence(gap, consistency),
        cognitive_complexity=cognitive_complexity(scores, primary),
        reality_triad_mapping=reality_triad(scores),
        developmental_edge=developmental_edge(primary, secondary),
        consistency=consistency,
        level_scores=scores,
    )


def score_responses(answers: Mapping[int, int]) -> IntegralDetail:
    """Score answers to the fixed question bank.

    Args:
        answers: Question id -> zero-based option index.

    Returns:
        IntegralDetail for the answered questions.

    Raises:
        InputValidationError: On an empty answer set, an unknown question id
            or an out-of-range option index.
    """
    if not answers:
        raise InputValidationError("At least one Integral answer is required")

    points = dict.fromkeys(LEVEL_ORDER, 0)
    chosen_levels: list[str] = []
    for question_id, option_index in answers.items():
        question = QUESTIONS_BY_ID.get(question_id)
        if question is None:
            raise InputValidationError(
                f"Unknown Integral question id: {question_id}",
                details={"question_id": question_id},
            )
        if (
            isinstance(option_index, bool)
            or not isinstance(option_index, int)
            or not 0 <= option_index < len(question.options)
        ):
            raise InputValidationError(
                f"Invalid option {option_index!r} for question {question_id}",
                details={"question_id": question_id, "option": option_index},
            )
        option = question.options[option_index]
        for key in LEVEL_ORDER:
            points[key] += option.scores.get(key, 0)
        chosen_levels.append(option_level(option))

    max_points = MAX_OPTION_POINTS * len(answers)
    level_scores = {key: points[key] / max_points * SCORE_SCALE for key in LEVEL_ORDER}
    primary = rank_levels(level_scores)[0]
    consistency = chosen_levels.count(primary) / len(chosen_levels)

    logger.debug("Scored %d Integral answers, primary level %s", len(answers), primary)
    return build_integral_detail(level_scores, consistency=consistency)
