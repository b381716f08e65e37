"""Scoring config repository: the single versioned global override record.

Writes are version-checked (optimistic concurrency): an update only
succeeds if the stored version still equals the version the caller read.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from sqlalchemy import text

from typescope.config.overrides import ScoringConfigRecord, ScoringOverrides
from typescope.errors import ConcurrentModificationError

if TYPE_CHECKING:
    from sqlalchemy import Connection

logger = logging.getLogger(__name__)

GLOBAL_CONFIG_KEY = "global"


@runtime_checkable
class ScoringConfigRepo(Protocol):
    """Structural interface for scoring config repositories."""

    def get_latest(self) -> ScoringConfigRecord | None: ...

    def write(
        self,
        overrides: ScoringOverrides,
        updated_by: str,
        expected_version: int | None = None,
    ) -> ScoringConfigRecord: ...


def _next_record(
    current: ScoringConfigRecord | None,
    overrides: ScoringOverrides,
    updated_by: str,
    expected_version: int | None,
) -> ScoringConfigRecord:
    current_version = current.version if current is not None else 0
    if expected_version is not None and expected_version != current_version:
        raise ConcurrentModificationError(expected_version, current_version)
    return ScoringConfigRecord(
        version=current_version + 1,
        overrides=overrides,
        updated_by=updated_by,
        updated_at=datetime.now(UTC),
    )


_scoring_config_store: dict[str, dict[str, Any]] = {}
"""Global in-memory store keyed by config_key."""


class InMemoryScoringConfigRepository:
    """In-memory scoring config repository (single process)."""

    def get_latest(self) -> ScoringConfigRecord | None:
        data = _scoring_config_store.get(GLOBAL_CONFIG_KEY)
        if data is None:
            return None
        return ScoringConfigRecord.model_validate(data)

    def write(
        self,
        overrides: ScoringOverrides,
        updated_by: str,
        expected_version: int | None = None,
    ) -> ScoringConfigRecord:
        """Store a new version of the global overrides.

        Raises:
            ConcurrentModificationError: If `expected_version` is stale.
        """
        record = _next_record(self.get_latest(), overrides, updated_by, expected_version)
        _scoring_config_store[GLOBAL_CONFIG_KEY] = record.model_dump()
        return record


class SqlScoringConfigRepository:
    """SQL scoring config repository.

    Args:
        conn: SQLAlchemy connection (must be in a transaction).
    """

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def get_latest(self) -> ScoringConfigRecord | None:
        result = self._conn.execute(
            text(
                """
                SELECT version, overrides, updated_by, updated_at
                FROM scoring_config
                WHERE config_key = :config_key
                """
            ),
            {"config_key": GLOBAL_CONFIG_KEY},
        )
        row = result.fetchone()
        if row is None:
            return None
        return self._row_to_model(row)

    def write(
        self,
        overrides: ScoringOverrides,
        updated_by: str,
        expected_version: int | None = None,
    ) -> ScoringConfigRecord:
        """Store a new version of the global overrides.

        The UPDATE is conditioned on the version read in this transaction,
        so a concurrent writer that committed in between is detected even
        when the caller passed no expected version.

        Raises:
            ConcurrentModificationError: If the stored version moved on.
        """
        current = self.get_latest()
        record = _next_record(current, overrides, updated_by, expected_version)
        params = {
            "config_key": GLOBAL_CONFIG_KEY,
            "version": record.version,
            "overrides": json.dumps(overrides.to_document(), sort_keys=True),
            "updated_by": record.updated_by,
            "updated_at": record.updated_at.isoformat(),
        }

        if current is None:
            self._conn.execute(
                text(
                    """
                    INSERT INTO scoring_config
                        (config_key, version, overrides, updated_by, updated_at)
                    VALUES
                        (:config_key, :version, :overrides, :updated_by, :updated_at)
                    """
                ),
                params,
            )
            return record

        result = self._conn.execute(
            text(
                """
                UPDATE scoring_config SET
                    version = :version,
                    overrides = :overrides,
                    updated_by = :updated_by,
                    updated_at = :updated_at
                WHERE config_key = :config_key AND version = :previous_version
                """
            ),
            {**params, "previous_version": current.version},
        )
        if result.rowcount == 0:
            latest = self.get_latest()
            raise ConcurrentModificationError(
                current.version, latest.version if latest is not None else 0
            )
        return record

    def _row_to_model(self, row: Any) -> ScoringConfigRecord:
        overrides = row.overrides
        if isinstance(overrides, str):
            overrides = json.loads(overrides)
        return ScoringConfigRecord(
            version=row.version,
            overrides=ScoringOverrides.from_document(overrides),
            updated_by=row.updated_by,
            updated_at=row.updated_at,
        )


def clear_scoring_config_store() -> None:
    """Clear the in-memory scoring config store. For testing only."""
    _scoring_config_store.clear()
