"""Config snapshot repository (append-only)."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from sqlalchemy import text

from typescope.audit.models import ConfigSnapshot
from typescope.config.overrides import ScoringOverrides

if TYPE_CHECKING:
    from sqlalchemy import Connection

logger = logging.getLogger(__name__)


@runtime_checkable
class SnapshotsRepo(Protocol):
    """Structural interface for snapshot repositories."""

    def insert(self, snapshot: ConfigSnapshot) -> ConfigSnapshot: ...

    def get(self, snapshot_id: str) -> ConfigSnapshot | None: ...

    def list_recent(self, limit: int) -> list[ConfigSnapshot]: ...


_snapshots_store: list[dict[str, Any]] = []
"""Global in-memory store, oldest first."""


class InMemorySnapshotsRepository:
    """In-memory snapshot repository (single process)."""

    def insert(self, snapshot: ConfigSnapshot) -> ConfigSnapshot:
        _snapshots_store.append(snapshot.model_dump())
        return snapshot

    def get(self, snapshot_id: str) -> ConfigSnapshot | None:
        for data in _snapshots_store:
            if data["id"] == snapshot_id:
                return ConfigSnapshot.model_validate(data)
        return None

    def list_recent(self, limit: int) -> list[ConfigSnapshot]:
        """Return up to `limit` snapshots, newest first."""
        return [ConfigSnapshot.model_validate(data) for data in reversed(_snapshots_store)][
            :limit
        ]


class SqlSnapshotsRepository:
    """SQL snapshot repository.

    Args:
        conn: SQLAlchemy connection (must be in a transaction).
    """

    _COLUMNS = "id, created_at, user_id, description, config_data, changes_summary"

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def insert(self, snapshot: ConfigSnapshot) -> ConfigSnapshot:
        self._conn.execute(
            text(
                """
                INSERT INTO config_snapshots
                    (id, created_at, user_id, description, config_data, changes_summary)
                VALUES
                    (:id, :created_at, :user_id, :description, :config_data, :changes_summary)
                """
            ),
            {
                "id": snapshot.id,
                "created_at": snapshot.timestamp.isoformat(),
                "user_id": snapshot.user_id,
                "description": snapshot.description,
                "config_data": json.dumps(snapshot.config_data.to_document(), sort_keys=True),
                "changes_summary": json.dumps(snapshot.changes_summary),
            },
        )
        return snapshot

    def get(self, snapshot_id: str) -> ConfigSnapshot | None:
        result = self._conn.execute(
            text(f"SELECT {self._COLUMNS} FROM config_snapshots WHERE id = :id"),
            {"id": snapshot_id},
        )
        row = result.fetchone()
        if row is None:
            return None
        return self._row_to_model(row)

    def list_recent(self, limit: int) -> list[ConfigSnapshot]:
        """Return up to `limit` snapshots, newest first."""
        result = self._conn.execute(
            text(f"SELECT {self._COLUMNS} FROM config_snapshots ORDER BY seq DESC LIMIT :limit"),
            {"limit": limit},
        )
        return [self._row_to_model(row) for row in result.fetchall()]

    def _row_to_model(self, row: Any) -> ConfigSnapshot:
        config_data = row.config_data
        if isinstance(config_data, str):
            config_data = json.loads(config_data)
        summary = row.changes_summary
        if isinstance(summary, str):
            summary = json.loads(summary)
        return ConfigSnapshot(
            id=row.id,
            timestamp=row.created_at,
            user_id=row.user_id,
            description=row.description,
            config_data=ScoringOverrides.from_document(config_data),
            changes_summary=summary or [],
        )


def clear_snapshots_store() -> None:
    """Clear the in-memory snapshot store. For testing only."""
    _snapshots_store.clear()
