"""Per-user override repository (one record per user, framework -> value)."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from sqlalchemy import text

from typescope.config.overrides import UserOverrideRecord

if TYPE_CHECKING:
    from sqlalchemy import Connection

logger = logging.getLogger(__name__)


@runtime_checkable
class UserOverridesRepo(Protocol):
    """Structural interface for user override repositories."""

    def get(self, user_id: str) -> UserOverrideRecord | None: ...

    def upsert(self, record: UserOverrideRecord) -> UserOverrideRecord: ...

    def delete(self, user_id: str) -> bool: ...


_user_overrides_store: dict[str, dict[str, Any]] = {}
"""Global in-memory store keyed by user_id."""


class InMemoryUserOverridesRepository:
    """In-memory user override repository (single process)."""

    def get(self, user_id: str) -> UserOverrideRecord | None:
        data = _user_overrides_store.get(user_id)
        return UserOverrideRecord.model_validate(data) if data is not None else None

    def upsert(self, record: UserOverrideRecord) -> UserOverrideRecord:
        _user_overrides_store[record.user_id] = record.model_dump()
        return record

    def delete(self, user_id: str) -> bool:
        return _user_overrides_store.pop(user_id, None) is not None


class SqlUserOverridesRepository:
    """SQL user override repository.

    Args:
        conn: SQLAlchemy connection (must be in a transaction).
    """

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def get(self, user_id: str) -> UserOverrideRecord | None:
        result = self._conn.execute(
            text(
                """
                SELECT user_id, overrides, reason, created_by, created_at, updated_at
                FROM user_overrides
                WHERE user_id = :user_id
                """
            ),
            {"user_id": user_id},
        )
        row = result.fetchone()
        if row is None:
            return None
        return self._row_to_model(row)

    def upsert(self, record: UserOverrideRecord) -> UserOverrideRecord:
        params = {
            "user_id": record.user_id,
            "overrides": json.dumps(record.overrides, sort_keys=True),
            "reason": record.reason,
            "created_by": record.created_by,
            "created_at": record.created_at.isoformat(),
            "updated_at": record.updated_at.isoformat(),
        }
        result = self._conn.execute(
            text(
                """
                UPDATE user_overrides SET
                    overrides = :overrides,
                    reason = :reason,
                    created_by = :created_by,
                    updated_at = :updated_at
                WHERE user_id = :user_id
                """
            ),
            params,
        )
        if result.rowcount == 0:
            self._conn.execute(
                text(
                    """
                    INSERT INTO user_overrides
                        (user_id, overrides, reason, created_by, created_at, updated_at)
                    VALUES
                        (:user_id, :overrides, :reason, :created_by, :created_at, :updated_at)
                    """
                ),
                params,
            )
        return record

    def delete(self, user_id: str) -> bool:
        result = self._conn.execute(
            text("DELETE FROM user_overrides WHERE user_id = :user_id"),
            {"user_id": user_id},
        )
        return result.rowcount > 0

    def _row_to_model(self, row: Any) -> UserOverrideRecord:
        overrides = row.overrides
        if isinstance(overrides, str):
            overrides = json.loads(overrides)
        return UserOverrideRecord(
            user_id=row.user_id,
            overrides=overrides or {},
            reason=row.reason,
            created_by=row.created_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


def clear_user_overrides_store() -> None:
    """Clear the in-memory user override store. For testing only."""
    _user_overrides_store.clear()
