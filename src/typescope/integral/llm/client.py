"""Provider-agnostic LLM client interface + deterministic clarification client.

LLMClient: Protocol for making LLM calls (provider-agnostic).
DeterministicQuestionClient: Returns valid clarification-question JSON built
from the level pair named in the prompt. No external calls are made.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Protocol

from typescope.integral.levels import INTEGRAL_LEVELS, LEVEL_KEYS

logger = logging.getLogger(__name__)

LEVELS_MARKER = "Levels: "

# level key -> (scenario answer, values answer, behavior answer)
_LEVEL_ANSWERS: dict[str, tuple[str, str, str]] = {
    "red": (
        "Take charge quickly and make sure my needs are met",
        "Strength and being respected",
        "I push back hard until I get my way",
    ),
    "amber": (
        "Follow the agreed procedure and respect the chain of command",
        "Duty, loyalty and doing things properly",
        "I stick to the rules even when it is inconvenient",
    ),
    "orange": (
        "Work out the most effective plan and execute it",
        "Achievement and measurable progress",
        "I set goals and track results",
    ),
    "green": (
        "Make sure everyone is heard before deciding together",
        "Fairness, inclusion and belonging",
        "I check how others feel before I act",
    ),
    "teal": (
        "Look at how the parts of the system interact and adapt",
        "Integration and healthy complexity",
        "I hold several perspectives and let the right one emerge",
    ),
    "turquoise": (
        "See the situation as part of a larger living whole",
        "Unity and care for all of life",
        "I act from a sense of connection with everything involved",
    ),
}

_PROMPTS: tuple[tuple[str, str], ...] = (
    ("scenario", "Your team faces an unexpected setback. What is your first move?"),
    ("values", "Which of these matters most to you when making a hard decision?"),
    ("behavior", "When a rule gets in the way of a good outcome, what do you usually do?"),
)


class LLMClient(Protocol):
    """Provider-agnostic interface for LLM calls."""

    def call(self, prompt: str, *, json_mode: bool = False) -> str:
        """Make an LLM call and return the raw response text.

        Args:
            prompt: The full prompt text to send.
            json_mode: If True, request JSON-formatted output.

        Returns:
            Raw response string from the LLM.
        """
        ...


class DeterministicQuestionClient:
    """Deterministic LLM client for clarification questions.

    Parses the `Levels: a, b` line of the prompt and emits one question per
    prompt kind, each offering an answer for every named level.
    """

    def call(self, prompt: str, *, json_mode: bool = False) -> str:
        """Return deterministic question JSON based on prompt content.

        Args:
            prompt: The full prompt text (includes the Levels line).
            json_mode: Ignored; always returns JSON.

        Returns:
            JSON string with a `questions` array.
        """
        levels = self._extract_levels(prompt)
        return json.dumps({"questions": self._build_questions(levels)}, sort_keys=True)

    def _extract_levels(self, prompt: str) -> list[str]:
        """Parse the level keys named in the prompt.

        Raises:
            ValueError: If the prompt has no Levels line (fail-closed).
        """
        for line in prompt.splitlines():
            if line.startswith(LEVELS_MARKER):
                keys = [part.strip() for part in line[len(LEVELS_MARKER) :].split(",")]
                return [key for key in keys if key in LEVEL_KEYS]
        raise ValueError("DETERMINISTIC_QUESTION_PARSE_FAILED: no Levels line found in prompt")

    def _build_questions(self, levels: list[str]) -> list[dict[str, Any]]:
        if len(levels) < 2:
            return []
        questions: list[dict[str, Any]] = []
        for index, (question_type, text) in enumerate(_PROMPTS):
            target = levels[index % len(levels)]
            questions.append(
                {
                    "id": f"clarify-{index + 1}",
                    "question": text,
                    "type": question_type,
                    "target_level": target,
                    "context": (
                        f"Distinguishes {' vs '.join(INTEGRAL_LEVELS[k].name for k in levels)}"
                    ),
                    "options": [
                        {
                            "key": chr(ord("a") + position),
                            "text": _LEVEL_ANSWERS[level][index],
                            "level": level,
                        }
                        for position, level in enumerate(levels)
                    ],
                }
            )
        return questions


def build_question_client() -> LLMClient:
    """Build the clarification-question client from env configuration.

    Reads TYPESCOPE_LLM_BACKEND (default: deterministic).

    Raises:
        ValueError: If TYPESCOPE_LLM_BACKEND=anthropic but ANTHROPIC_API_KEY is unset.
    """
    backend = os.environ.get("TYPESCOPE_LLM_BACKEND", "deterministic")

    if backend == "anthropic":
        from typescope.integral.llm.anthropic_client import AnthropicLLMClient

        return AnthropicLLMClient(model=os.environ.get("TYPESCOPE_ANTHROPIC_MODEL"))

    if backend != "deterministic":
        logger.warning("Unknown TYPESCOPE_LLM_BACKEND %r, using deterministic client", backend)
    return DeterministicQuestionClient()
