"""Audit entry mirrors.

The audit repository is the record of truth; a sink is an optional
append-only mirror (e.g. a JSONL file shipped to log storage).

- Append-only: never truncate/overwrite
- Fail closed: any IO failure raises AuditSinkError
- Deterministic: sorted keys, no extra whitespace
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

AUDIT_LOG_PATH_ENV = "TYPESCOPE_AUDIT_LOG_PATH"


class AuditSinkError(Exception):
    """Raised when an audit sink cannot record an entry."""


@runtime_checkable
class AuditSink(Protocol):
    """Append-only destination for audit entries."""

    def emit(self, event: dict[str, Any]) -> None:
        """Emit one audit entry.

        Raises:
            AuditSinkError: If emission fails for any reason
        """
        ...


class JsonlFileAuditSink:
    """Append-only JSONL file sink.

    Appends one line per entry:
    json.dumps(event, sort_keys=True, separators=(",", ":")) + "\\n".
    Parent directories are created on first write.
    """

    def __init__(self, file_path: str | Path) -> None:
        self._file_path = Path(file_path)

    @property
    def file_path(self) -> Path:
        return self._file_path

    def emit(self, event: dict[str, Any]) -> None:
        try:
            line = json.dumps(event, sort_keys=True, separators=(",", ":")) + "\n"
        except (TypeError, ValueError) as e:
            raise AuditSinkError(f"Failed to serialize audit event: {e}") from e

        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._file_path, mode="a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            raise AuditSinkError(f"Failed to write audit event to {self._file_path}: {e}") from e


class InMemoryAuditSink:
    """In-memory audit sink for testing (no disk writes)."""

    def __init__(self) -> None:
        self._events: list[dict[str, Any]] = []

    def emit(self, event: dict[str, Any]) -> None:
        # Round-trip through JSON so tests see exactly what a file sink would write
        try:
            self._events.append(json.loads(json.dumps(event, sort_keys=True)))
        except (TypeError, ValueError) as e:
            raise AuditSinkError(f"Failed to serialize audit event: {e}") from e

    @property
    def events(self) -> list[dict[str, Any]]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()


def get_audit_sink() -> AuditSink | None:
    """Return the configured mirror sink, or None when no path is set."""
    path = os.environ.get(AUDIT_LOG_PATH_ENV)
    if not path:
        return None
    logger.debug("Mirroring audit entries to %s", path)
    return JsonlFileAuditSink(path)
