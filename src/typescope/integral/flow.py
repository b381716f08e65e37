"""Confidence enhancement flow.

Drives one IntegralDetail through analysis, question generation and answer
processing:

    analyzing -> needs_clarification -> generating_questions
              -> awaiting_responses -> processing -> enhanced
    analyzing -> confident
    (any state before processing) -> skipped

A failed step returns the flow to the state it was in before the step,
with `last_error` set, so the caller may retry or skip.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum

from typescope.errors import EnhancementFailure, InvalidEnhancementTransitionError
from typescope.integral.confidence import (
    analyze_confidence,
    generate_clarification_questions,
    process_confidence_enhancement,
)
from typescope.integral.llm.client import LLMClient
from typescope.integral.models import ConfidenceAnalysis, DynamicQuestion, IntegralDetail

logger = logging.getLogger(__name__)


class EnhancementState(StrEnum):
    ANALYZING = "analyzing"
    NEEDS_CLARIFICATION = "needs_clarification"
    GENERATING_QUESTIONS = "generating_questions"
    AWAITING_RESPONSES = "awaiting_responses"
    PROCESSING = "processing"
    ENHANCED = "enhanced"
    CONFIDENT = "confident"
    SKIPPED = "skipped"


TERMINAL_STATES = frozenset(
    {EnhancementState.ENHANCED, EnhancementState.CONFIDENT, EnhancementState.SKIPPED}
)

_SKIPPABLE = frozenset(
    {
        EnhancementState.ANALYZING,
        EnhancementState.NEEDS_CLARIFICATION,
        EnhancementState.GENERATING_QUESTIONS,
        EnhancementState.AWAITING_RESPONSES,
    }
)

_TRANSITIONS: dict[EnhancementState, frozenset[EnhancementState]] = {
    EnhancementState.ANALYZING: frozenset(
        {EnhancementState.NEEDS_CLARIFICATION, EnhancementState.CONFIDENT}
    ),
    EnhancementState.NEEDS_CLARIFICATION: frozenset({EnhancementState.GENERATING_QUESTIONS}),
    EnhancementState.GENERATING_QUESTIONS: frozenset(
        {EnhancementState.AWAITING_RESPONSES, EnhancementState.NEEDS_CLARIFICATION}
    ),
    EnhancementState.AWAITING_RESPONSES: frozenset({EnhancementState.PROCESSING}),
    EnhancementState.PROCESSING: frozenset(
        {EnhancementState.ENHANCED, EnhancementState.AWAITING_RESPONSES}
    ),
}


class EnhancementFlow:
    """State machine around the confidence-enhancement steps.

    Args:
        detail: Assessment to enhance. Never modified.
        client: LLM client used to generate clarification questions.
    """

    def __init__(self, detail: IntegralDetail, client: LLMClient) -> None:
        self._original = detail
        self._client = client
        self._state = EnhancementState.ANALYZING
        self._result: IntegralDetail | None = None
        self.analysis: ConfidenceAnalysis | None = None
        self.questions: list[DynamicQuestion] = []
        self.last_error: EnhancementFailure | None = None

    @property
    def state(self) -> EnhancementState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    @property
    def result(self) -> IntegralDetail:
        """Final detail once terminal; the original detail before that."""
        return self._result if self._result is not None else self._original

    def _transition(self, target: EnhancementState) -> None:
        if target not in _TRANSITIONS.get(self._state, frozenset()):
            raise InvalidEnhancementTransitionError(self._state.value, target.value)
        logger.debug("Enhancement flow %s -> %s", self._state, target)
        self._state = target

    def analyze(self) -> ConfidenceAnalysis:
        """Analyze the assessment and decide whether clarification is needed."""
        if self._state is not EnhancementState.ANALYZING:
            raise InvalidEnhancementTransitionError(
                self._state.value, EnhancementState.ANALYZING.value
            )
        self.analysis = analyze_confidence(self._original)
        if self.analysis.needs_additional_questions:
            self._transition(EnhancementState.NEEDS_CLARIFICATION)
        else:
            self._transition(EnhancementState.CONFIDENT)
            self._result = self._original
        return self.analysis

    def generate_questions(self) -> list[DynamicQuestion]:
        """Generate clarification questions.

        Raises:
            EnhancementFailure: Generation failed; the flow is back in
                needs_clarification.
        """
        self._transition(EnhancementState.GENERATING_QUESTIONS)
        try:
            questions = generate_clarification_questions(
                self._original, self._client, self.analysis
            )
        except EnhancementFailure as exc:
            self.last_error = exc
            self._transition(EnhancementState.NEEDS_CLARIFICATION)
            raise
        self.questions = questions
        self.last_error = None
        self._transition(EnhancementState.AWAITING_RESPONSES)
        return questions

    def submit_responses(self, responses: Mapping[str, str]) -> IntegralDetail:
        """Process clarification answers and finish the flow.

        Raises:
            EnhancementFailure: Processing failed; the flow is back in
                awaiting_responses.
        """
        self._transition(EnhancementState.PROCESSING)
        try:
            enhanced = process_confidence_enhancement(self._original, self.questions, responses)
        except EnhancementFailure as exc:
            self.last_error = exc
            self._transition(EnhancementState.AWAITING_RESPONSES)
            raise
        self.last_error = None
        self._result = enhanced
        self._transition(EnhancementState.ENHANCED)
        logger.info(
            "Integral assessment enhanced: %s -> %s (confidence %.0f -> %.0f)",
            self._original.primary_level.key,
            enhanced.primary_level.key,
            self._original.confidence,
            enhanced.confidence,
        )
        return enhanced

    def skip(self) -> IntegralDetail:
        """Abandon enhancement and keep the original assessment."""
        if self._state not in _SKIPPABLE:
            raise InvalidEnhancementTransitionError(
                self._state.value, EnhancementState.SKIPPED.value
            )
        self._state = EnhancementState.SKIPPED
        self._result = self._original
        return self._original
