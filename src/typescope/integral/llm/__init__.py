"""LLM clients used to generate Integral clarification questions."""

from typescope.integral.llm.client import (
    DeterministicQuestionClient,
    LLMClient,
    build_question_client,
)

__all__ = ["DeterministicQuestionClient", "LLMClient", "build_question_client"]
