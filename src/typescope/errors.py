"""Error taxonomy for TypeScope.

Every domain failure derives from TypeScopeError so the API and CLI layers
can map them without catching unrelated exceptions.

- InputValidationError: malformed response vector; fatal, raised before scoring.
- ConfigurationError: bad trait mapping or weight table; fatal for the
  affected framework only.
- OverrideStoreUnavailable: backing store unreachable; reads degrade to
  built-in defaults, writes fail.
- AuditWriteFailure: audit entry could not be recorded; always surfaced.
- EnhancementFailure: clarification generation/processing failed; the prior
  IntegralDetail is left untouched.
"""

from __future__ import annotations

from typing import Any


class TypeScopeError(Exception):
    """Base class for all TypeScope domain errors."""


class InputValidationError(TypeScopeError):
    """Raised when a response vector or answer set is malformed."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(TypeScopeError):
    """Raised when a trait mapping or framework weight table is unusable.

    Attributes:
        framework: Framework whose configuration is broken, or None when the
            problem affects trait scoring as a whole.
    """

    def __init__(self, message: str, *, framework: str | None = None) -> None:
        super().__init__(message)
        self.framework = framework


class OverrideStoreUnavailable(TypeScopeError):
    """Raised when the override store cannot be reached after retries."""


class AuditWriteFailure(TypeScopeError):
    """Raised when an audit entry cannot be recorded.

    Attributes:
        entry: The entry that failed to be written, so callers can retry.
        committed: True when the configuration mutation itself was committed
            and only the audit mirror failed.
    """

    def __init__(self, message: str, *, entry: Any = None, committed: bool = False) -> None:
        super().__init__(message)
        self.entry = entry
        self.committed = committed


class ConcurrentModificationError(TypeScopeError):
    """Raised when a config write was based on a stale version."""

    def __init__(self, expected_version: int, actual_version: int) -> None:
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Scoring config version conflict: expected {expected_version}, "
            f"current is {actual_version}"
        )


class SnapshotNotFoundError(TypeScopeError):
    """Raised when a snapshot id does not exist."""

    def __init__(self, snapshot_id: str) -> None:
        self.snapshot_id = snapshot_id
        super().__init__(f"Snapshot {snapshot_id} not found")


class EnhancementFailure(TypeScopeError):
    """Raised when the confidence-enhancement flow cannot complete a step.

    Attributes:
        stage: Step that failed ("generating_questions" or "processing").
    """

    def __init__(self, message: str, *, stage: str) -> None:
        super().__init__(message)
        self.stage = stage


class InvalidEnhancementTransitionError(TypeScopeError):
    """Raised when the enhancement flow is driven out of order."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid enhancement transition: {current} -> {target}")
