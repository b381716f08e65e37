"""Append-only audit log repository.

There is no update or delete: entries are immutable once written. On
PostgreSQL a trigger installed by the migrations rejects UPDATE/DELETE.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from sqlalchemy import text

from typescope.audit.models import AuditLogEntry

if TYPE_CHECKING:
    from sqlalchemy import Connection

logger = logging.getLogger(__name__)


@runtime_checkable
class AuditLogRepo(Protocol):
    """Structural interface for audit log repositories."""

    def append(self, entry: AuditLogEntry) -> AuditLogEntry: ...

    def list_recent(self, limit: int) -> list[AuditLogEntry]: ...


_audit_log_store: list[dict[str, Any]] = []
"""Global in-memory store, oldest first."""


class InMemoryAuditLogRepository:
    """In-memory audit log repository (single process)."""

    def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        _audit_log_store.append(entry.model_dump())
        return entry

    def list_recent(self, limit: int) -> list[AuditLogEntry]:
        """Return up to `limit` entries, newest first."""
        return [AuditLogEntry.model_validate(data) for data in reversed(_audit_log_store)][:limit]


class SqlAuditLogRepository:
    """SQL audit log repository.

    Args:
        conn: SQLAlchemy connection (must be in a transaction).
    """

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        self._conn.execute(
            text(
                """
                INSERT INTO config_audit_log
                    (id, created_at, user_id, action, target, framework,
                     change_description, old_values, new_values, metadata)
                VALUES
                    (:id, :created_at, :user_id, :action, :target, :framework,
                     :change_description, :old_values, :new_values, :metadata)
                """
            ),
            {
                "id": entry.id,
                "created_at": entry.timestamp.isoformat(),
                "user_id": entry.user_id,
                "action": entry.action.value,
                "target": entry.target.value,
                "framework": entry.framework,
                "change_description": entry.change_description,
                "old_values": _dumps_optional(entry.old_values),
                "new_values": _dumps_optional(entry.new_values),
                "metadata": json.dumps(entry.metadata, sort_keys=True),
            },
        )
        return entry

    def list_recent(self, limit: int) -> list[AuditLogEntry]:
        """Return up to `limit` entries, newest first."""
        result = self._conn.execute(
            text(
                """
                SELECT id, created_at, user_id, action, target, framework,
                       change_description, old_values, new_values, metadata
                FROM config_audit_log
                ORDER BY seq DESC
                LIMIT :limit
                """
            ),
            {"limit": limit},
        )
        return [self._row_to_model(row) for row in result.fetchall()]

    def _row_to_model(self, row: Any) -> AuditLogEntry:
        return AuditLogEntry(
            id=row.id,
            timestamp=row.created_at,
            user_id=row.user_id,
            action=row.action,
            target=row.target,
            framework=row.framework,
            change_description=row.change_description,
            old_values=_loads_optional(row.old_values),
            new_values=_loads_optional(row.new_values),
            metadata=_loads_optional(row.metadata) or {},
        )


def _dumps_optional(value: dict[str, Any] | None) -> str | None:
    return json.dumps(value, sort_keys=True) if value is not None else None


def _loads_optional(value: Any) -> Any:
    if isinstance(value, str):
        return json.loads(value)
    return value


def clear_audit_log_store() -> None:
    """Clear the in-memory audit log store. For testing only."""
    _audit_log_store.clear()
