"""Audit trail service.

Every configuration mutation is recorded as one immutable AuditLogEntry.
Entries written by the config store are appended inside the store's own
transaction (see record()); standalone entries open a transaction here.

After commit each entry is mirrored to the optional AuditSink. A sink
failure raises AuditWriteFailure with committed=True and the entry attached
so the caller can retry the mirror with emit(). A failure of the audit
repository itself raises AuditWriteFailure with committed=False; the
surrounding transaction is rolled back.

Snapshots capture the full override document. Rollback restores a snapshot
in a single transaction: the rollback entry and the new config version
commit together.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from typescope.audit.models import AuditAction, AuditLogEntry, AuditTarget, ConfigSnapshot
from typescope.audit.sink import AuditSink, AuditSinkError, get_audit_sink
from typescope.config.overrides import ScoringOverrides, validate_overrides
from typescope.errors import AuditWriteFailure, OverrideStoreUnavailable
from typescope.observability.tracing import traced_span
from typescope.persistence.retry import TRANSIENT_ERRORS, run_with_retry
from typescope.persistence.unit_of_work import (
    ConfigBackend,
    ConfigRepositories,
    get_config_backend,
)

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_LOG_LIMIT = 100
DEFAULT_SNAPSHOT_LIMIT = 50

RestoreListener = Callable[[ScoringOverrides], None]


class AuditTrailService:
    """Append-only audit log and snapshot management.

    Args:
        backend: Transactional store backend; defaults to get_config_backend().
        sink: Optional mirror for committed entries; defaults to get_audit_sink().
    """

    def __init__(
        self,
        backend: ConfigBackend | None = None,
        sink: AuditSink | None = None,
    ) -> None:
        self._backend = backend if backend is not None else get_config_backend()
        self._sink = sink if sink is not None else get_audit_sink()
        self._restore_listeners: list[RestoreListener] = []

    @property
    def backend(self) -> ConfigBackend:
        return self._backend

    def add_restore_listener(self, listener: RestoreListener) -> None:
        """Call `listener` with the restored overrides after each rollback commits."""
        self._restore_listeners.append(listener)

    # -- entry recording -----------------------------------------------------

    def record(self, repos: ConfigRepositories, entry: AuditLogEntry) -> AuditLogEntry:
        """Append an entry inside an already open transaction.

        Raises:
            AuditWriteFailure: If the audit repository rejects the entry
                (committed=False; the caller's transaction must roll back).
        """
        try:
            return repos.audit.append(entry)
        except TRANSIENT_ERRORS:
            raise
        except SQLAlchemyError as e:
            raise AuditWriteFailure(
                f"Failed to record audit entry {entry.id}: {type(e).__name__}",
                entry=entry,
                committed=False,
            ) from e

    def emit(self, entry: AuditLogEntry) -> None:
        """Mirror a committed entry to the sink (no-op without a sink).

        Safe to call again with the entry from an AuditWriteFailure.

        Raises:
            AuditWriteFailure: If the sink fails (committed=True).
        """
        if self._sink is None:
            return
        try:
            self._sink.emit(entry.to_event())
        except AuditSinkError as e:
            logger.error("Audit mirror failed for entry %s: %s", entry.id, e)
            raise AuditWriteFailure(
                f"Audit entry {entry.id} committed but not mirrored: {e}",
                entry=entry,
                committed=True,
            ) from e

    def log_change(
        self,
        *,
        user_id: str,
        action: AuditAction,
        target: AuditTarget,
        change_description: str,
        framework: str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogEntry:
        """Record a standalone audit entry in its own transaction.

        Returns:
            The committed entry.

        Raises:
            AuditWriteFailure: If the entry could not be stored or mirrored.
        """
        entry = AuditLogEntry(
            user_id=user_id,
            action=action,
            target=target,
            framework=framework,
            change_description=change_description,
            old_values=old_values,
            new_values=new_values,
            metadata=metadata or {},
        )

        def append() -> AuditLogEntry:
            with self._backend.transaction() as repos:
                return self.record(repos, entry)

        try:
            run_with_retry(append, description="audit append")
        except TRANSIENT_ERRORS as e:
            raise AuditWriteFailure(
                f"Audit store unavailable: {type(e).__name__}", entry=entry, committed=False
            ) from e
        self.emit(entry)
        return entry

    def log_weight_change(
        self,
        user_id: str,
        framework: str,
        dimension: str,
        trait: str,
        old_value: float | None,
        new_value: float | None,
    ) -> AuditLogEntry:
        return self.log_change(
            user_id=user_id,
            action=AuditAction.UPDATE,
            target=AuditTarget.GLOBAL_CONFIG,
            framework=framework,
            change_description=f"Weight changed: {framework}.{dimension}.{trait}",
            old_values={trait: old_value},
            new_values={trait: new_value},
            metadata={"dimension": dimension, "trait": trait},
        )

    def log_mapping_change(
        self,
        user_id: str,
        trait: str,
        old_questions: list[int],
        new_questions: list[int],
    ) -> AuditLogEntry:
        added = [q for q in new_questions if q not in old_questions]
        removed = [q for q in old_questions if q not in new_questions]
        return self.log_change(
            user_id=user_id,
            action=AuditAction.UPDATE,
            target=AuditTarget.TRAIT_MAPPING,
            change_description=f"Trait mapping changed: {trait}",
            old_values={"questions": old_questions},
            new_values={"questions": new_questions},
            metadata={
                "trait": trait,
                "added": added,
                "removed": removed,
                "added_count": len(added),
                "removed_count": len(removed),
            },
        )

    # -- snapshots -----------------------------------------------------------

    def create_snapshot(
        self,
        user_id: str,
        description: str,
        config_data: ScoringOverrides,
        changes_summary: list[str],
    ) -> str:
        """Persist a full-state snapshot and log its creation.

        Returns:
            The new snapshot id.

        Raises:
            OverrideStoreUnavailable: If the store stays unreachable.
            AuditWriteFailure: If the audit entry cannot be stored or mirrored.
        """
        snapshot = ConfigSnapshot(
            user_id=user_id,
            description=description,
            config_data=config_data,
            changes_summary=list(changes_summary),
        )
        entry = AuditLogEntry(
            user_id=user_id,
            action=AuditAction.CREATE,
            target=AuditTarget.GLOBAL_CONFIG,
            change_description=f"Snapshot created: {description}",
            metadata={"snapshot_id": snapshot.id, "change_count": len(changes_summary)},
        )

        def write() -> None:
            with self._backend.transaction() as repos:
                repos.snapshots.insert(snapshot)
                self.record(repos, entry)

        with traced_span("typescope.audit.create_snapshot", user_id=user_id):
            self._run(write, "snapshot create")
        logger.info("Snapshot %s created by %s", snapshot.id, user_id)
        self.emit(entry)
        return snapshot.id

    def get_snapshots(self, limit: int = DEFAULT_SNAPSHOT_LIMIT) -> list[ConfigSnapshot]:
        """Snapshots, newest first.

        Raises:
            OverrideStoreUnavailable: If the store stays unreachable.
        """

        def read() -> list[ConfigSnapshot]:
            with self._backend.transaction() as repos:
                return repos.snapshots.list_recent(limit)

        return self._run(read, "snapshot list")

    def get_audit_log(self, limit: int = DEFAULT_AUDIT_LOG_LIMIT) -> list[AuditLogEntry]:
        """Audit entries, newest first.

        Raises:
            OverrideStoreUnavailable: If the store stays unreachable.
        """

        def read() -> list[AuditLogEntry]:
            with self._backend.transaction() as repos:
                return repos.audit.list_recent(limit)

        return self._run(read, "audit log read")

    def rollback_to_snapshot(self, snapshot_id: str, user_id: str) -> ScoringOverrides | None:
        """Restore a snapshot as the new canonical config version.

        The rollback entry and the config write commit in one transaction.

        Returns:
            The restored overrides, or None if the snapshot does not exist.

        Raises:
            ConfigurationError: If the snapshot no longer validates.
            OverrideStoreUnavailable: If the store stays unreachable.
            AuditWriteFailure: If the audit entry cannot be stored or mirrored.
        """

        def restore() -> tuple[ScoringOverrides, AuditLogEntry] | None:
            with self._backend.transaction() as repos:
                snapshot = repos.snapshots.get(snapshot_id)
                if snapshot is None:
                    return None
                current = repos.config.get_latest()
                restored = validate_overrides(snapshot.config_data)
                record = repos.config.write(restored, user_id)
                entry = self.record(
                    repos,
                    AuditLogEntry(
                        user_id=user_id,
                        action=AuditAction.ROLLBACK,
                        target=AuditTarget.GLOBAL_CONFIG,
                        change_description=f"Rolled back to snapshot: {snapshot.description}",
                        old_values=current.overrides.to_document() if current else None,
                        new_values=restored.to_document(),
                        metadata={
                            "snapshot_id": snapshot.id,
                            "snapshot_timestamp": snapshot.timestamp.isoformat(),
                            "version": record.version,
                        },
                    ),
                )
                return restored, entry

        with traced_span("typescope.audit.rollback", user_id=user_id, snapshot_id=snapshot_id):
            result = self._run(restore, "snapshot rollback")
        if result is None:
            logger.warning("Rollback requested for unknown snapshot %s", snapshot_id)
            return None

        restored, entry = result
        logger.info("Rolled back to snapshot %s by %s", snapshot_id, user_id)
        for listener in self._restore_listeners:
            listener(restored)
        self.emit(entry)
        return restored

    # -- helpers -------------------------------------------------------------

    def _run(self, operation: Callable[[], Any], description: str) -> Any:
        try:
            return run_with_retry(operation, description=description)
        except TRANSIENT_ERRORS as e:
            raise OverrideStoreUnavailable(
                f"Config store unavailable during {description}: {type(e).__name__}"
            ) from e


_audit_service: AuditTrailService | None = None


def get_audit_service() -> AuditTrailService:
    """Get the process-wide audit service."""
    global _audit_service
    if _audit_service is None:
        _audit_service = AuditTrailService()
    return _audit_service


def reset_audit_service() -> None:
    """Forget the process-wide audit service (for testing)."""
    global _audit_service
    _audit_service = None
