"""Integral confidence analysis and clarification-based enhancement.

- analyze_confidence: detect weak spots in an IntegralDetail
- generate_clarification_questions: ask an LLMClient for targeted questions
- process_confidence_enhancement: re-rank levels from clarification answers

Failures raise EnhancementFailure; the caller's IntegralDetail is never
modified, so the prior assessment stays valid after any error.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from typescope.errors import EnhancementFailure
from typescope.integral.levels import (
    INTEGRAL_LEVELS,
    LEVEL_KEYS,
    LEVEL_ORDER,
    is_extreme_level,
    level_position,
)
from typescope.integral.llm.client import LEVELS_MARKER, LLMClient
from typescope.integral.models import ConfidenceAnalysis, DynamicQuestion, IntegralDetail
from typescope.integral.scorer import SCORE_SCALE, build_integral_detail, rank_levels

logger = logging.getLogger(__name__)

LOW_CONFIDENCE = 70.0
ENHANCEMENT_CONFIDENCE = 75.0
CLOSE_LEVELS_GAP = 0.5
FLAT_TRIAD_SPREAD = 0.2
ENHANCEMENT_BONUS = 1.0
MAX_QUESTIONS = 5


def _neighbour(detail: IntegralDetail) -> str:
    """Adjacent level with the higher score (lower level on ties)."""
    position = level_position(detail.primary_level.key)
    candidates = [
        LEVEL_ORDER[i] for i in (position - 1, position + 1) if 0 <= i < len(LEVEL_ORDER)
    ]
    return max(candidates, key=lambda key: detail.level_scores.get(key, 0.0))


def analyze_confidence(detail: IntegralDetail) -> ConfidenceAnalysis:
    """Decide whether an Integral assessment needs clarification questions."""
    primary = detail.primary_level
    secondary = detail.secondary_level

    issues: list[str] = []
    actions: list[str] = []
    areas: list[str] = []

    if detail.confidence < LOW_CONFIDENCE:
        issues.append("Overall confidence below 70%")
        actions.append("Additional clarification questions needed")

    if secondary is not None and abs(primary.score - secondary.score) < CLOSE_LEVELS_GAP:
        issues.append("Primary and secondary levels too close")
        areas.append("Primary level identification")
        actions.append("Scenario-based questions to clarify primary level")

    if detail.reality_triad_mapping.spread() < FLAT_TRIAD_SPREAD:
        issues.append("Reality triad mapping unclear")
        areas.append("Reality focus areas")
        actions.append("Values-based questions to clarify reality orientation")

    if is_extreme_level(primary.key):
        areas.append("Extreme level placement")
        actions.append("Behavioral verification questions")

    other = secondary.key if secondary is not None else _neighbour(detail)
    return ConfidenceAnalysis(
        current_confidence=detail.confidence,
        issues_detected=issues,
        recommended_actions=actions,
        needs_additional_questions=detail.confidence < ENHANCEMENT_CONFIDENCE or bool(issues),
        uncertain_areas=areas,
        uncertain_level_pairs=[(primary.key, other)],
    )


def build_question_prompt(detail: IntegralDetail, analysis: ConfidenceAnalysis) -> str:
    """Build the clarification-question prompt for an LLM."""
    levels: list[str] = []
    for pair in analysis.uncertain_level_pairs:
        for key in pair:
            if key not in levels:
                levels.append(key)
    level_lines = "\n".join(
        f"- {key}: {INTEGRAL_LEVELS[key].name} ({INTEGRAL_LEVELS[key].worldview})"
        for key in levels
    )
    triad = detail.reality_triad_mapping
    return (
        "Generate 3-5 targeted clarification questions to improve confidence in this "
        "developmental level assessment.\n\n"
        f"Primary level: {detail.primary_level.key} ({detail.primary_level.name})\n"
        f"Confidence: {round(detail.confidence)}%\n"
        f"Reality triad: physical {triad.physical:.2f}, social {triad.social:.2f}, "
        f"universal {triad.universal:.2f}\n"
        f"Uncertain areas: {', '.join(analysis.uncertain_areas) or 'General clarification'}\n"
        f"{LEVELS_MARKER}{', '.join(levels)}\n"
        f"{level_lines}\n\n"
        "Each question must help distinguish between the levels above. Respond with a "
        'JSON object {"questions": [...]} where each question has: id, question, '
        'type ("scenario", "values", "behavior" or "preference"), target_level, context, '
        "and options: a list of {key, text, level} where level is one of the level keys "
        "above."
    )


def _parse_questions(raw: str) -> list[DynamicQuestion]:
    try:
        payload: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise EnhancementFailure(
            f"LLM returned invalid JSON: {exc}", stage="generating_questions"
        ) from exc

    if isinstance(payload, dict):
        payload = payload.get("questions")
    if not isinstance(payload, list):
        raise EnhancementFailure(
            "LLM response has no questions array", stage="generating_questions"
        )

    questions: list[DynamicQuestion] = []
    seen_ids: set[str] = set()
    for item in payload:
        try:
            question = DynamicQuestion.model_validate(item)
        except ValidationError as exc:
            logger.warning("Dropping malformed clarification question: %s", exc.error_count())
            continue
        levels = {option.level for option in question.options}
        keys = [option.key for option in question.options]
        if (
            question.target_level not in LEVEL_KEYS
            or not levels <= LEVEL_KEYS
            or len(set(keys)) != len(keys)
            or question.id in seen_ids
        ):
            logger.warning("Dropping clarification question %s with unknown levels", question.id)
            continue
        seen_ids.add(question.id)
        questions.append(question)
    return questions[:MAX_QUESTIONS]


def generate_clarification_questions(
    detail: IntegralDetail,
    client: LLMClient,
    analysis: ConfidenceAnalysis | None = None,
) -> list[DynamicQuestion]:
    """Ask the LLM for clarification questions targeting the uncertain levels.

    Raises:
        EnhancementFailure: If the LLM call fails, its output cannot be
            parsed, or no valid question remains.
    """
    analysis = analysis or analyze_confidence(detail)
    prompt = build_question_prompt(detail, analysis)
    try:
        raw = client.call(prompt, json_mode=True)
    except (RuntimeError, ValueError) as exc:
        raise EnhancementFailure(
            f"Clarification question generation failed: {exc}", stage="generating_questions"
        ) from exc

    questions = _parse_questions(raw)
    if not questions:
        raise EnhancementFailure(
            "LLM produced no usable clarification questions", stage="generating_questions"
        )
    logger.info("Generated %d clarification questions", len(questions))
    return questions


def process_confidence_enhancement(
    detail: IntegralDetail,
    questions: Sequence[DynamicQuestion],
    responses: Mapping[str, str],
) -> IntegralDetail:
    """Apply clarification answers and return a re-ranked IntegralDetail.

    Each answer adds ENHANCEMENT_BONUS to the level its option supports
    (capped at the top of the scale). Confidence, complexity and the reality
    triad are recomputed, so primary and secondary may change.

    Args:
        detail: Assessment being enhanced (left unchanged).
        questions: Questions that were presented.
        responses: Question id -> chosen option key.

    Raises:
        EnhancementFailure: If there are no responses or a response names an
            unknown question or option.
    """
    if not responses:
        raise EnhancementFailure("No clarification responses supplied", stage="processing")

    by_id = {question.id: question for question in questions}
    scores = {key: detail.level_scores.get(key, 0.0) for key in LEVEL_ORDER}
    if not detail.level_scores:
        scores[detail.primary_level.key] = detail.primary_level.score
        if detail.secondary_level is not None:
            scores[detail.secondary_level.key] = detail.secondary_level.score

    supported: list[str] = []
    for question_id, answer_key in responses.items():
        question = by_id.get(question_id)
        if question is None:
            raise EnhancementFailure(
                f"Response for unknown question: {question_id}", stage="processing"
            )
        option = next((o for o in question.options if o.key == answer_key), None)
        if option is None:
            raise EnhancementFailure(
                f"Unknown option {answer_key!r} for question {question_id}", stage="processing"
            )
        scores[option.level] = min(SCORE_SCALE, scores[option.level] + ENHANCEMENT_BONUS)
        supported.append(option.level)

    primary = rank_levels(scores)[0]
    agreement = supported.count(primary) / len(supported)
    consistency = (detail.consistency + agreement) / 2
    return build_integral_detail(scores, consistency=consistency)
