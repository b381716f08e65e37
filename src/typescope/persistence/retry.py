"""Retry of transient store failures.

Connection drops and similar operational errors are retried with
exponential backoff. Integrity errors, programming errors and domain errors
are never retried.

Environment Variables:
    TYPESCOPE_STORE_MAX_RETRIES: Retries after the first attempt (default 2)
    TYPESCOPE_STORE_RETRY_BACKOFF_SECONDS: Backoff base in seconds (default 0.1)
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError

logger = logging.getLogger(__name__)

MAX_RETRIES_ENV = "TYPESCOPE_STORE_MAX_RETRIES"
BACKOFF_ENV = "TYPESCOPE_STORE_RETRY_BACKOFF_SECONDS"
DEFAULT_MAX_RETRIES = 2
DEFAULT_BACKOFF_SECONDS = 0.1

TRANSIENT_ERRORS: tuple[type[Exception], ...] = (OperationalError, InterfaceError)

T = TypeVar("T")


def _env_number(key: str, default: float) -> float:
    raw = os.environ.get(key)
    if not raw:
        return default
    try:
        return max(0.0, float(raw))
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", key, raw)
        return default


def max_retries() -> int:
    return int(_env_number(MAX_RETRIES_ENV, DEFAULT_MAX_RETRIES))


def backoff_seconds() -> float:
    return _env_number(BACKOFF_ENV, DEFAULT_BACKOFF_SECONDS)


def run_with_retry(operation: Callable[[], T], *, description: str) -> T:
    """Run `operation`, retrying transient database errors.

    Args:
        operation: Callable doing the store I/O (opening its own transaction).
        description: Short label for log messages.

    Returns:
        Whatever `operation` returns.

    Raises:
        OperationalError | InterfaceError: The last transient error once all
            attempts are exhausted.
        Exception: Any non-transient error, unchanged, on first occurrence.
    """
    retries = max_retries()
    base = backoff_seconds()
    for attempt in range(retries + 1):
        try:
            return operation()
        except TRANSIENT_ERRORS as e:
            if attempt >= retries:
                raise
            logger.warning(
                "Transient store error during %s (attempt %d/%d): %s",
                description,
                attempt + 1,
                retries + 1,
                type(e).__name__,
            )
            time.sleep(base * (2**attempt))
    raise AssertionError("unreachable")
