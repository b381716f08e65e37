"""Anthropic-backed clarification question client.

Environment:
- ANTHROPIC_API_KEY: required; construction fails without it.
- TYPESCOPE_ANTHROPIC_MODEL: model override.
"""

from __future__ import annotations

import logging
import os
import time

import anthropic

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"
MAX_ATTEMPTS = 3
RETRY_BACKOFF_BASE_SECONDS = 1.0
REQUEST_TIMEOUT_SECONDS = 60
MAX_TOKENS = 2048

SYSTEM_PROMPT = (
    "You write short multiple-choice clarification questions that help tell "
    "apart two adjacent developmental levels in an Integral assessment. Each "
    "option must read as a natural first-person preference, never name a level."
)
JSON_ONLY = "Respond with raw JSON only: no markdown, no code fences, no commentary."


def _is_retryable(exc: anthropic.APIError) -> bool:
    if isinstance(exc, anthropic.RateLimitError | anthropic.APIConnectionError):
        return True
    return isinstance(exc, anthropic.APIStatusError) and exc.status_code >= 500


class AnthropicLLMClient:
    """LLMClient over the Anthropic Messages API at temperature 0.

    Rate limits, 5xx responses and connection errors are retried with
    exponential backoff; other API errors fail on the first attempt.
    """

    def __init__(self, *, model: str | None = None, max_tokens: int = MAX_TOKENS) -> None:
        api_key = os.environ.get("ANTHROPIC_API_KEY", "")
        if not api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY is required for the anthropic question backend; "
                "set TYPESCOPE_LLM_BACKEND=deterministic to generate questions offline"
            )
        self._model = model or os.environ.get("TYPESCOPE_ANTHROPIC_MODEL") or DEFAULT_MODEL
        self._max_tokens = max_tokens
        self._client = anthropic.Anthropic(
            api_key=api_key, timeout=REQUEST_TIMEOUT_SECONDS, max_retries=0
        )

    @property
    def model(self) -> str:
        return self._model

    def call(self, prompt: str, *, json_mode: bool = False) -> str:
        """Send one prompt and return the concatenated text of the reply.

        Raises:
            RuntimeError: On a non-retryable API error, an empty reply, or
                when every attempt failed.
        """
        system = f"{SYSTEM_PROMPT}\n\n{JSON_ONLY}" if json_mode else SYSTEM_PROMPT
        last_error: anthropic.APIError | None = None

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                response = self._client.messages.create(
                    model=self._model,
                    max_tokens=self._max_tokens,
                    temperature=0,
                    system=system,
                    messages=[{"role": "user", "content": prompt}],
                )
            except anthropic.APIError as exc:
                if not _is_retryable(exc):
                    raise RuntimeError(f"Anthropic request rejected: {exc}") from exc
                last_error = exc
                logger.warning(
                    "Anthropic %s (attempt %d/%d)", type(exc).__name__, attempt, MAX_ATTEMPTS
                )
                if attempt < MAX_ATTEMPTS:
                    time.sleep(RETRY_BACKOFF_BASE_SECONDS * 2 ** (attempt - 1))
                continue

            text = "".join(
                block.text for block in response.content if getattr(block, "type", "") == "text"
            )
            if not text.strip():
                raise RuntimeError("Anthropic returned no text content")
            return text

        raise RuntimeError(f"Anthropic request failed after {MAX_ATTEMPTS} attempts") from last_error
